"""Physical column layout for a frozen header list.

Columns are 0-based integers everywhere in this module; spreadsheet labels
(``A``, ``B`` ... ``AA``) are produced only by :func:`column_letter` and the
address helpers built on it.

Three renderings are provided:

- merge mode: parent names on the first row, merged across their children,
  simple headers merged vertically over both rows;
- flatten mode: the same two rows without merges, parent names padded with
  blank cells (a faux merge) so CSV output lines up;
- children mode: a single row of simple names and child names, parents
  dropped.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Literal, Optional

from reportwriter.domain.header import Header, HeaderList, NestedHeader, has_nested

HeaderMode = Literal["merge", "flatten", "children"]


@dataclass(frozen=True)
class ColumnSpan:
    header: Header
    start: int
    width: int

    @property
    def end(self) -> int:
        return self.start + self.width - 1


@dataclass(frozen=True)
class MergeRange:
    """Rectangular merge, rows relative to the first header row (0-based)."""

    start_col: int
    start_row: int
    end_col: int
    end_row: int

    def address(self, first_row: int) -> str:
        return cell_range(
            self.start_col,
            first_row + self.start_row,
            self.end_col,
            first_row + self.end_row,
        )


@dataclass
class HeaderBlock:
    spans: list[ColumnSpan]
    rows: list[list[Optional[str]]]
    merges: list[MergeRange] = field(default_factory=list)
    bold_cells: list[tuple[int, int]] = field(default_factory=list)

    @property
    def height(self) -> int:
        return len(self.rows)

    @property
    def width(self) -> int:
        return sum(span.width for span in self.spans)


def column_plan(headers: Iterable[Header]) -> list[ColumnSpan]:
    """Spans for every header that occupies at least one column."""
    spans: list[ColumnSpan] = []
    start = 0
    for header in headers:
        if not header.width:
            continue
        spans.append(ColumnSpan(header, start, header.width))
        start += header.width
    return spans


def _spans_nested(spans: list[ColumnSpan]) -> bool:
    return has_nested(span.header for span in spans)


def column_letter(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA, 701 -> ZZ, 702 -> AAA."""
    if index < 0:
        raise ValueError(f"column index must be >= 0, got {index}")
    letters = []
    n = index + 1
    while n:
        n, rem = divmod(n - 1, 26)
        letters.append(chr(ord("A") + rem))
    return "".join(reversed(letters))


def cell_address(col: int, row: int) -> str:
    return f"{column_letter(col)}{row}"


def cell_range(start_col: int, start_row: int, end_col: int, end_row: Optional[int] = None) -> str:
    """E.g. ``cell_range(0, 5, 9, 6)`` returns ``A5:J6``."""
    end_row = start_row if end_row is None else end_row
    return f"{cell_address(start_col, start_row)}:{cell_address(end_col, end_row)}"


def merge_layout(headers: HeaderList, *, force_two_rows: bool = False) -> HeaderBlock:
    spans = column_plan(headers)
    width = sum(span.width for span in spans)
    two_rows = force_two_rows or _spans_nested(spans)
    top: list[Optional[str]] = [None] * width
    bottom: list[Optional[str]] = [None] * width
    block = HeaderBlock(spans=spans, rows=[top, bottom] if two_rows else [top])

    for span in spans:
        header = span.header
        top[span.start] = header.name
        block.bold_cells.append((span.start, 0))
        if isinstance(header, NestedHeader):
            if span.width > 1:
                block.merges.append(MergeRange(span.start, 0, span.end, 0))
            for offset, child in enumerate(header.children):
                bottom[span.start + offset] = child
        elif two_rows:
            block.merges.append(MergeRange(span.start, 0, span.start, 1))
    return block


def flatten_layout(headers: HeaderList, *, collapse: bool = True) -> HeaderBlock:
    spans = column_plan(headers)
    top: list[Optional[str]] = []
    bottom: list[Optional[str]] = []
    block = HeaderBlock(spans=spans, rows=[])

    for span in spans:
        header = span.header
        block.bold_cells.append((span.start, 0))
        top.append(header.name)
        if isinstance(header, NestedHeader):
            # Blank cells pad the parent name across its children.
            top.extend([""] * (span.width - 1))
            bottom.extend(header.children)
        else:
            bottom.append("")

    block.rows = [top] if collapse and not _spans_nested(spans) else [top, bottom]
    return block


def children_layout(headers: HeaderList) -> HeaderBlock:
    spans = column_plan(headers)
    row: list[Optional[str]] = []
    block = HeaderBlock(spans=spans, rows=[row])
    for span in spans:
        header = span.header
        if isinstance(header, NestedHeader):
            for offset, child in enumerate(header.children):
                row.append(child)
                block.bold_cells.append((span.start + offset, 0))
        else:
            row.append(header.name)
            block.bold_cells.append((span.start, 0))
    return block


def render_headers(
    headers: HeaderList,
    mode: HeaderMode,
    *,
    collapse: bool = True,
    force_two_rows: bool = False,
) -> HeaderBlock:
    if mode == "merge":
        return merge_layout(headers, force_two_rows=force_two_rows)
    if mode == "flatten":
        return flatten_layout(headers, collapse=collapse)
    if mode == "children":
        return children_layout(headers)
    raise ValueError(f"Unsupported header mode '{mode}'")
