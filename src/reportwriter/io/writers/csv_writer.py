import csv
import logging
from pathlib import Path
from typing import Any, Iterable, Optional, TextIO

from reportwriter.domain.header import HeaderList, total_width
from reportwriter.domain.record import Entry, Record, Separator
from reportwriter.headers.layout import flatten_layout
from reportwriter.headers.rows import CSV_MISSING, map_record
from reportwriter.io.cache import iter_cache
from reportwriter.io.protocols import HasFilePath, TabularWriter
from reportwriter.io.sinks import AtomicTextFileSink, StreamTextSink
from reportwriter.io.writers.base import normalize_row, record_values
from reportwriter.pipeline.observability import Observer

logger = logging.getLogger(__name__)


def csv_cell(value: Any) -> Any:
    """Booleans render as ``1`` and an empty cell."""
    if value is True:
        return 1
    if value is False:
        return ""
    return value


class CsvTabularWriter(TabularWriter, HasFilePath):
    """Write header rows and flattened records as CSV lines."""

    def __init__(
        self,
        dest: Optional[Path] = None,
        *,
        stream: Optional[TextIO] = None,
        encoding: str = "utf-8",
        collapse_headers: bool = True,
        cache_encoding: str = "utf-8",
        observer: Optional[Observer] = None,
    ):
        if (dest is None) == (stream is None):
            raise ValueError("CsvTabularWriter needs exactly one of dest or stream")
        self.sink = StreamTextSink(stream) if stream is not None else AtomicTextFileSink(dest, encoding=encoding)
        self.writer = csv.writer(self.sink.fh, lineterminator="\n")
        self._collapse = collapse_headers
        self._cache_encoding = cache_encoding
        self._observer = observer
        self.rows_written = 0

    @property
    def file_path(self) -> Optional[Path]:
        return self.sink.file_path

    def write_headers(self, headers: HeaderList, init_row: Optional[int] = None) -> None:
        if init_row is not None:
            raise ValueError("CSV output cannot insert headers above written rows")
        if not total_width(headers):
            logger.debug("No header columns to write")
            return
        block = flatten_layout(headers, collapse=self._collapse)
        self.writer.writerows(block.rows)

    def write_row(self, row: Any, headers: HeaderList = ()) -> None:
        data = normalize_row(row)
        if data is None:
            logger.debug("Skipping non-tabular row of type %s", type(row).__name__)
            return
        if isinstance(data, Record):
            if not headers:
                # Without a schema the record's own field order is used.
                data = record_values(data)
            else:
                data = map_record(data, headers, CSV_MISSING, self._observer)
        if not data:
            return
        self.writer.writerow([csv_cell(value) for value in data])
        self.rows_written += 1

    def write_rows(self, rows: Iterable[Any], headers: HeaderList) -> None:
        for row in rows:
            self.write_row(row, headers)

    def prepare(
        self,
        cache_path: Path,
        headers: HeaderList,
        entries: Optional[Iterable[Entry]] = None,
    ) -> Optional[Path]:
        if entries is None:
            entries = iter_cache(cache_path, encoding=self._cache_encoding, observer=self._observer)
        self.write_headers(headers)
        for entry in entries:
            if isinstance(entry, Separator):
                continue
            self.write_row(entry, headers)
        return self.file_path

    def finalize(self) -> None:
        self.sink.close()

    def abort(self) -> None:
        self.sink.abort()
