import logging
from pathlib import Path
from typing import Any, Iterable, Optional

from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Border, Font, Side
from openpyxl.utils.cell import coordinate_from_string
from openpyxl.worksheet.pagebreak import Break

from reportwriter.domain.header import HeaderList, total_width
from reportwriter.domain.record import Entry, Record, Separator
from reportwriter.headers.layout import (
    HeaderMode,
    cell_address,
    cell_range,
    column_letter,
    render_headers,
)
from reportwriter.headers.rows import SHEET_MISSING, map_record
from reportwriter.io.cache import iter_cache
from reportwriter.io.protocols import HasFilePath, TabularWriter
from reportwriter.io.workbook import WorkbookFactory
from reportwriter.io.writers.base import normalize_row, record_values
from reportwriter.pipeline.observability import Observer

logger = logging.getLogger(__name__)

DATE_FORMAT = "yyyy-m-d"
TIME_FORMAT = "hh:mm:ss"
MAX_AUTO_WIDTH = 50


def clean_cell_value(value: Any) -> Any:
    """Strip control characters that xlsx cells cannot hold."""
    if isinstance(value, str):
        return ILLEGAL_CHARACTERS_RE.sub("", value)
    return value


def formula_number_format(value: Any) -> Optional[str]:
    """Display format for date/time formulas such as ``=DATEVALUE(...)``."""
    if not isinstance(value, str) or not value.startswith("="):
        return None
    formats = []
    if "DATEVALUE" in value:
        formats.append(DATE_FORMAT)
    if "TIMEVALUE" in value:
        formats.append(TIME_FORMAT)
    return " ".join(formats) or None


class SpreadsheetTabularWriter(TabularWriter, HasFilePath):
    """Write headers (with real merges) and rows into an openpyxl workbook.

    The writer keeps a 1-based row cursor on the active worksheet. Writing
    headers moves it below the header block, each data row advances it by
    one, and switching worksheets resets it to 1.
    """

    def __init__(
        self,
        factory: Optional[WorkbookFactory] = None,
        *,
        header_mode: HeaderMode = "merge",
        start_row: int = 1,
        freeze_cell: str = "A2",
        force_two_rows: bool = False,
        collapse_headers: bool = True,
        orientation: str = "landscape",
        output_format: str = "Xlsx",
        cache_encoding: str = "utf-8",
        observer: Optional[Observer] = None,
    ):
        self.factory = factory or WorkbookFactory()
        self.workbook = self.factory.create_workbook()
        self.header_mode = header_mode
        self.start_row = start_row
        self.default_freeze_cell = freeze_cell
        self.force_two_rows = force_two_rows
        self.collapse_headers = collapse_headers
        self.orientation = orientation
        self.output_format = output_format
        self.filepath: Optional[Path] = None
        self.rows_written = 0
        self._cache_encoding = cache_encoding
        self._observer = observer
        self._current_row = start_row
        self._header_end_row: Optional[int] = None

    @property
    def file_path(self) -> Optional[Path]:
        return self.filepath

    @property
    def current_row(self) -> int:
        return self._current_row

    @property
    def worksheet(self):
        return self.workbook.active

    def setup(self, filepath: Path | str) -> None:
        """Start a fresh workbook that ``finalize`` will save to ``filepath``."""
        self.workbook = self.factory.create_workbook()
        self.worksheet.page_setup.orientation = self.orientation
        self.filepath = Path(filepath)
        self._current_row = self.start_row
        self._header_end_row = None

    def set_properties(self, author: str = "", title: str = "") -> None:
        self.workbook.properties.creator = author
        self.workbook.properties.title = title

    def set_worksheet(self, index: Optional[int], title: str) -> None:
        """Create a worksheet at ``index`` (None for last) and make it active."""
        sheet = self.workbook.create_sheet(index=index)
        self.workbook.active = self.workbook.worksheets.index(sheet)
        sheet.page_setup.orientation = self.orientation
        self.reset_current_row(1)
        self._header_end_row = None
        self.set_sheet_title(title)

    def set_sheet_title(self, title: str) -> None:
        self.worksheet.title = title

    def reset_current_row(self, pos: int) -> None:
        self._current_row = pos

    def write_headers(self, headers: HeaderList, init_row: Optional[int] = None) -> None:
        """Write the header block at the cursor, or above ``init_row``.

        With ``init_row`` the rows from ``init_row`` down are shifted to make
        room, so headers can be added after data was written.
        """
        if not total_width(headers):
            logger.debug("No header columns to write")
            return
        worksheet = self.worksheet
        block = render_headers(
            headers,
            self.header_mode,
            collapse=self.collapse_headers,
            force_two_rows=self.force_two_rows,
        )

        if init_row:
            worksheet.insert_rows(init_row, amount=block.height)
            first_row = init_row
            next_row = max(self._current_row, init_row) + block.height
        else:
            first_row = self._current_row
            next_row = first_row + block.height

        for offset, cells in enumerate(block.rows):
            for col, text in enumerate(cells):
                if text is None or text == "":
                    continue
                worksheet.cell(row=first_row + offset, column=col + 1, value=clean_cell_value(text))
                self._fit_column(col, text)

        for col, offset in block.bold_cells:
            worksheet.cell(row=first_row + offset, column=col + 1).font = Font(bold=True)

        for merge in block.merges:
            worksheet.merge_cells(merge.address(first_row))

        self._header_end_row = first_row + block.height - 1
        self._current_row = next_row
        logger.debug(
            "Wrote %d header row(s) over %d column(s) at row %d",
            block.height,
            block.width,
            first_row,
        )

    def _fit_column(self, col: int, text: str) -> None:
        dimension = self.worksheet.column_dimensions[column_letter(col)]
        dimension.auto_size = True
        width = min(len(str(text)) + 2, MAX_AUTO_WIDTH)
        if not dimension.width or dimension.width < width:
            dimension.width = width

    def write_row(self, row: Any, headers: HeaderList = ()) -> None:
        data = normalize_row(row)
        if data is None:
            # Invalid data -- don't process this row
            logger.debug("Skipping non-tabular row of type %s", type(row).__name__)
            return

        bold = False
        if isinstance(data, Record):
            bold = data.bold
            if headers:
                values = map_record(data, headers, SHEET_MISSING, self._observer)
            else:
                values = record_values(data)
        else:
            values = data

        if not values:
            return
        self._write_values(values)
        if bold and values:
            self._bold_range(0, self._current_row - 1, len(values) - 1)

    def write_rows(self, rows: Iterable[Any], headers: HeaderList) -> None:
        for row in rows:
            self.write_row(row, headers)

    def _write_values(self, values: list) -> None:
        worksheet = self.worksheet
        row = self._current_row
        for col, value in enumerate(values, start=1):
            if value is None:
                continue
            cell = worksheet.cell(row=row, column=col, value=clean_cell_value(value))
            fmt = formula_number_format(value)
            if fmt:
                cell.number_format = fmt
        self._current_row += 1
        self.rows_written += 1

    def _bold_range(self, start_col: int, start_row: int, end_col: int) -> None:
        for cells in self.worksheet[cell_range(start_col, start_row, end_col)]:
            for cell in cells:
                cell.font = Font(bold=True)

    def add_bottom_border(
        self,
        start_col: int,
        start_row: int,
        end_col: int,
        end_row: Optional[int] = None,
    ) -> None:
        side = Side(style="thin")
        for cells in self.worksheet[cell_range(start_col, start_row, end_col, end_row)]:
            for cell in cells:
                cell.border = Border(
                    left=cell.border.left,
                    right=cell.border.right,
                    top=cell.border.top,
                    bottom=side,
                )

    def prepare(
        self,
        cache_path: Path,
        headers: HeaderList,
        freeze_headers: bool = False,
        entries: Optional[Iterable[Entry]] = None,
    ) -> Optional[Path]:
        """Write headers, then every cached row; separators draw a border.

        ``entries`` replaces reading ``cache_path`` directly, e.g. to wrap the
        cache iterator in a progress bar.
        """
        if entries is None:
            entries = iter_cache(cache_path, encoding=self._cache_encoding, observer=self._observer)
        self.write_headers(headers)
        if freeze_headers:
            self.freeze_panes()

        width = total_width(headers)
        for entry in entries:
            if isinstance(entry, Separator):
                last_row = self._current_row - 1
                if width and last_row >= 1:
                    self.add_bottom_border(0, last_row, width - 1)
                continue
            self.write_row(entry, headers)
        return self.filepath

    def freeze_panes(self, cell: Optional[str] = None) -> None:
        """Freeze the rows above ``cell`` (default: below the header block)."""
        if not cell:
            if self._header_end_row is not None:
                cell = cell_address(0, self._header_end_row + 1)
            else:
                cell = self.default_freeze_cell
        self.worksheet.freeze_panes = cell

    def add_horizontal_page_break(self, cell: Optional[str] = None) -> None:
        """Break the printed page after the row of ``cell`` (default: two rows above the cursor)."""
        if cell:
            _, row = coordinate_from_string(cell)
        else:
            row = self._current_row - 2
        if row < 1:
            raise ValueError(f"Cannot add a page break at row {row}")
        self.worksheet.row_breaks.append(Break(id=row))

    def finalize(self) -> None:
        if self.filepath is None:
            raise ValueError("SpreadsheetTabularWriter.setup() must be called before finalize()")
        # Open on the first sheet.
        self.workbook.active = 0
        writer = self.factory.create_writer(self.workbook, self.output_format)
        writer.save(self.filepath)

    def abort(self) -> None:
        # Nothing reaches disk before finalize().
        self.filepath = None
