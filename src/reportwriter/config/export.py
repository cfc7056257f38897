from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from reportwriter.domain.header import HeaderError, HeaderList, parse_headers
from reportwriter.utils.load import load_yaml

VALID_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")

Format = Literal["csv", "xlsx"]
HeaderModeName = Literal["merge", "flatten", "children"]
Orientation = Literal["landscape", "portrait"]


class ConfigError(ValueError):
    """Raised when an export config file cannot be loaded."""


class ExportConfig(BaseModel):
    """Settings for one export job."""

    format: Format = Field(default="csv", description="csv | xlsx")
    directory: Optional[Path] = Field(
        default=None,
        description="Directory for the output file (defaults to the cache file's directory).",
    )
    filename: Optional[str] = Field(
        default=None,
        description="Filename stem (extension derived from format).",
    )
    encoding: str = Field(default="utf-8", description="Text encoding for the cache and CSV output.")
    header_mode: Optional[HeaderModeName] = Field(
        default=None,
        description="merge | flatten | children. Defaults to merge for xlsx; csv always flattens.",
    )
    collapse_flat_headers: bool = Field(
        default=True,
        description="Emit a single header row when no nested headers exist.",
    )
    force_two_rows: bool = Field(
        default=False,
        description="Reserve two header rows in merge mode even without nested headers.",
    )
    start_row: int = Field(default=1, ge=1, description="Row the spreadsheet cursor starts on.")
    freeze_headers: bool = Field(default=False)
    freeze_cell: str = Field(
        default="A2",
        description="Freeze cell used when no header block has been written.",
    )
    author: str = ""
    title: str = ""
    sheet_title: Optional[str] = None
    orientation: Orientation = "landscape"
    remove_cache: bool = Field(
        default=False,
        description="Delete the cache file once the export has been written.",
    )
    log_level: Optional[str] = Field(default=None, description="DEBUG | INFO | WARNING | ERROR | CRITICAL")
    headers: Optional[list[Any]] = Field(
        default=None,
        description="Pre-sorted header list; skips schema discovery when set.",
    )

    @field_validator("filename", mode="before")
    @classmethod
    def _normalize_filename(cls, value):
        if value is None:
            return None
        text = str(value).strip()
        if not text:
            return None
        if any(sep in text for sep in ("/", "\\")):
            raise ValueError("filename must not contain path separators")
        if "." in Path(text).name:
            raise ValueError("filename should not include an extension; format determines the suffix")
        return text

    @field_validator("format", mode="before")
    @classmethod
    def _normalize_format(cls, value):
        if value is None:
            return "csv"
        return str(value).strip().lower()

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value):
        if value is None:
            return None
        name = str(value).upper()
        if name not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}, got {value!r}")
        return name

    @field_validator("freeze_cell")
    @classmethod
    def _normalize_freeze_cell(cls, value: str):
        text = value.strip().upper()
        if not text or not text[0].isalpha() or not text[-1].isdigit():
            raise ValueError(f"freeze_cell must be a cell address like 'A2', got {value!r}")
        return text

    @field_validator("headers")
    @classmethod
    def _validate_headers(cls, value):
        if value is None:
            return None
        try:
            parse_headers(value)
        except HeaderError as exc:
            raise ValueError(str(exc)) from exc
        return value

    @model_validator(mode="after")
    def _validate(self):
        if self.format == "csv" and self.header_mode not in (None, "flatten"):
            raise ValueError("csv output only supports header_mode 'flatten'")
        return self

    @property
    def effective_header_mode(self) -> HeaderModeName:
        if self.format == "csv":
            return "flatten"
        return self.header_mode or "merge"

    def sorted_headers(self) -> Optional[HeaderList]:
        if self.headers is None:
            return None
        return parse_headers(self.headers)


def load_export_config(path: Optional[Path | str], **overrides: Any) -> ExportConfig:
    """Load ``path`` (if any) and apply non-None ``overrides`` on top."""
    data: dict[str, Any] = {}
    if path is not None:
        try:
            data = dict(load_yaml(Path(path)))
        except (FileNotFoundError, TypeError, ValueError) as exc:
            raise ConfigError(str(exc)) from exc
    data.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return ExportConfig.model_validate(data)
    except ValidationError as exc:
        where = f" in {path}" if path is not None else ""
        raise ConfigError(f"Invalid export config{where}:\n{exc}") from exc
