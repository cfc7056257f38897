from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from reportwriter.config.export import ExportConfig


def _format_suffix(fmt: str) -> str:
    suffix_map = {
        "csv": ".csv",
        "xlsx": ".xlsx",
    }
    return suffix_map.get(fmt, ".out")


def _sanitize_segment(value: str) -> str:
    cleaned = "".join(
        ch if ch.isalnum() or ch in ("_", "-", ".") else "_"
        for ch in value.strip()
    )
    return cleaned or "report"


@dataclass(frozen=True)
class OutputTarget:
    """Resolved writer target describing where and in which format to write."""

    format: str  # csv | xlsx
    destination: Path


class OutputResolutionError(ValueError):
    """Raised when CLI/config output options cannot be resolved."""


def resolve_output_target(
    cache_path: Path,
    config: ExportConfig,
    *,
    cli_path: Optional[Path | str] = None,
    base_path: Optional[Path] = None,
) -> OutputTarget:
    """
    Resolve the output file from an explicit path, the configured
    directory/filename, or the cache file name plus the format suffix.
    """
    base_path = base_path or Path.cwd()
    suffix = _format_suffix(config.format)

    if cli_path is not None:
        dest = Path(cli_path)
        if not dest.is_absolute():
            dest = base_path / dest
        if dest.suffix.lower() != suffix:
            raise OutputResolutionError(
                f"output path {dest.name!r} does not match format '{config.format}' ({suffix})"
            )
        return OutputTarget(format=config.format, destination=dest.resolve())

    if config.directory is not None:
        directory = (
            config.directory
            if config.directory.is_absolute()
            else (base_path / config.directory)
        )
    else:
        directory = cache_path.parent

    stem = config.filename or _sanitize_segment(cache_path.stem)
    return OutputTarget(
        format=config.format,
        destination=(directory / f"{stem}{suffix}").resolve(),
    )
