from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional

from reportwriter.config.export import ExportConfig
from reportwriter.domain.header import HeaderList, headers_to_raw, total_width
from reportwriter.domain.record import Entry
from reportwriter.headers.registry import HeaderRegistry
from reportwriter.io.cache import iter_cache
from reportwriter.io.factory import writer_factory
from reportwriter.io.output import OutputTarget
from reportwriter.io.workbook import WorkbookFactory
from reportwriter.io.writers.spreadsheet import SpreadsheetTabularWriter
from reportwriter.pipeline.observability import (
    MALFORMED_LINE,
    SCHEMA_MISMATCH,
    ExportEvent,
    Observer,
    ObserverRegistry,
    default_observer_registry,
)

logger = logging.getLogger(__name__)

Progress = Callable[[Iterable[Entry], str], Iterable[Entry]]


@dataclass(frozen=True)
class ExportResult:
    path: Optional[Path]
    headers: HeaderList
    rows_written: int
    skipped_lines: int
    schema_mismatches: int


class _Tally:
    def __init__(self) -> None:
        self.counts: Counter[str] = Counter()

    def __call__(self, event: ExportEvent) -> None:
        self.counts[event.type] += 1


def _no_progress(entries: Iterable[Entry], _label: str) -> Iterable[Entry]:
    return entries


class ExportJob:
    """One cache file exported to one output file.

    Each job owns its header registry, writer and observers; nothing is
    shared between jobs.
    """

    def __init__(
        self,
        config: ExportConfig,
        target: OutputTarget,
        *,
        observers: Optional[ObserverRegistry] = None,
        workbook_factory: Optional[WorkbookFactory] = None,
        progress: Optional[Progress] = None,
    ) -> None:
        self.config = config
        self.target = target
        self._workbook_factory = workbook_factory
        self._progress = progress or _no_progress
        self._tally = _Tally()
        log_observer = (observers or default_observer_registry()).build(logger)
        self._observer: Observer = self._combine(log_observer)

    def _combine(self, log_observer: Optional[Observer]) -> Observer:
        tally = self._tally

        def _observer(event: ExportEvent) -> None:
            tally(event)
            if log_observer is not None:
                log_observer(event)

        return _observer

    def _entries(self, cache_path: Path, label: str) -> Iterator[Entry]:
        entries = iter_cache(
            cache_path,
            encoding=self.config.encoding,
            observer=self._observer,
        )
        yield from self._progress(entries, label)

    def collect_headers(self, cache_path: Path) -> HeaderList:
        """Stream every record through a fresh registry and return the schema."""
        registry = HeaderRegistry(observer=self._observer)
        registry.merge_all(self._entries(cache_path, "Collecting headers"))
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Discovered headers:\n%s",
                json.dumps(headers_to_raw(registry.headers), indent=2, ensure_ascii=False),
            )
        return registry.headers

    def run(self, cache_path: Path | str, headers: Optional[HeaderList] = None) -> ExportResult:
        cache_path = Path(cache_path)
        if headers is None:
            headers = self.config.sorted_headers()
        if headers is None:
            headers = self.collect_headers(cache_path)
        logger.info(
            "Exporting %s -> %s (%d headers, %d columns)",
            cache_path.name,
            self.target.destination,
            len(headers),
            total_width(headers),
        )

        # Only the write pass counts towards the result.
        self._tally.counts.clear()
        writer = writer_factory(
            self.target,
            self.config,
            observer=self._observer,
            workbook_factory=self._workbook_factory,
        )
        try:
            entries = self._entries(cache_path, "Writing rows")
            if isinstance(writer, SpreadsheetTabularWriter):
                path = writer.prepare(
                    cache_path,
                    headers,
                    freeze_headers=self.config.freeze_headers,
                    entries=entries,
                )
            else:
                path = writer.prepare(cache_path, headers, entries=entries)
            writer.finalize()
        except BaseException:
            writer.abort()
            raise

        skipped = self._tally.counts[MALFORMED_LINE]
        if skipped:
            logger.warning("Skipped %d malformed cache line(s) in %s", skipped, cache_path.name)
        if self.config.remove_cache:
            cache_path.unlink(missing_ok=True)
            logger.debug("Removed cache file %s", cache_path)

        result = ExportResult(
            path=path,
            headers=headers,
            rows_written=getattr(writer, "rows_written", 0),
            skipped_lines=skipped,
            schema_mismatches=self._tally.counts[SCHEMA_MISMATCH],
        )
        logger.info("Wrote %d row(s) to %s", result.rows_written, result.path)
        return result
