from __future__ import annotations

from pathlib import Path
from typing import Optional

from openpyxl import Workbook, load_workbook

SUPPORTED_FORMATS = ("Xlsx",)


class WorkbookWriter:
    """Serializes a workbook in one output format."""

    def __init__(self, workbook: Workbook, fmt: str):
        self.workbook = workbook
        self.format = fmt

    def save(self, path: Path | str) -> Path:
        dest = Path(path)
        dest.parent.mkdir(parents=True, exist_ok=True)
        self.workbook.save(str(dest))
        return dest


class WorkbookFactory:
    """Creates workbooks and the writers that serialize them."""

    def create_workbook(self, filename: Optional[Path | str] = None) -> Workbook:
        """Return an empty workbook, or load ``filename`` when given."""
        if filename is None:
            return Workbook()
        return load_workbook(str(filename))

    def create_writer(self, workbook: Workbook, fmt: str = "Xlsx") -> WorkbookWriter:
        if fmt not in SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported workbook format '{fmt}'. Supported: {', '.join(SUPPORTED_FORMATS)}"
            )
        return WorkbookWriter(workbook, fmt)
