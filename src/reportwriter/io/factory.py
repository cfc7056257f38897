from typing import Optional

from reportwriter.config.export import ExportConfig
from reportwriter.io.output import OutputTarget
from reportwriter.io.protocols import TabularWriter
from reportwriter.io.workbook import WorkbookFactory
from reportwriter.io.writers.csv_writer import CsvTabularWriter
from reportwriter.io.writers.spreadsheet import SpreadsheetTabularWriter
from reportwriter.pipeline.observability import Observer


def writer_factory(
    target: OutputTarget,
    config: ExportConfig,
    *,
    observer: Optional[Observer] = None,
    workbook_factory: Optional[WorkbookFactory] = None,
) -> TabularWriter:
    format_ = target.format.lower()
    destination = target.destination
    destination.parent.mkdir(parents=True, exist_ok=True)

    if format_ == "csv":
        return CsvTabularWriter(
            destination,
            encoding=config.encoding,
            collapse_headers=config.collapse_flat_headers,
            cache_encoding=config.encoding,
            observer=observer,
        )
    if format_ == "xlsx":
        writer = SpreadsheetTabularWriter(
            workbook_factory,
            header_mode=config.effective_header_mode,
            start_row=config.start_row,
            freeze_cell=config.freeze_cell,
            force_two_rows=config.force_two_rows,
            collapse_headers=config.collapse_flat_headers,
            orientation=config.orientation,
            cache_encoding=config.encoding,
            observer=observer,
        )
        writer.setup(destination)
        if config.author or config.title:
            writer.set_properties(config.author, config.title)
        if config.sheet_title:
            writer.set_sheet_title(config.sheet_title)
        return writer

    raise ValueError(f"Unsupported output format '{target.format}'")
