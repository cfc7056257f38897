from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

from reportwriter.domain.record import SEPARATOR, Entry, decode_entry
from reportwriter.pipeline.observability import MALFORMED_LINE, Observer, emit


class CacheWriter:
    """Append rows to a line-delimited JSON cache, one row per line."""

    def __init__(self, path: Path | str, *, encoding: str = "utf-8") -> None:
        self.path = Path(path)
        self._encoding = encoding

    def append(self, rows: Iterable[Any]) -> int:
        lines = [json.dumps(row, ensure_ascii=False, default=str) + "\n" for row in rows]
        with self.path.open("a", encoding=self._encoding) as fh:
            fh.writelines(lines)
        return len(lines)

    def append_separator(self) -> None:
        self.append([SEPARATOR])


def iter_cache(
    path: Path | str,
    *,
    encoding: str = "utf-8",
    observer: Optional[Observer] = None,
) -> Iterator[Entry]:
    """Yield decoded cache entries, skipping lines that are not usable rows.

    The file is left in place; removing it is the caller's job.
    """
    path = Path(path)
    with path.open("r", encoding=encoding) as f:
        for lineno, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                raw = json.loads(line)
            except json.JSONDecodeError as exc:
                emit(observer, MALFORMED_LINE, path=str(path), line=lineno, reason=exc.msg)
                continue
            entry = decode_entry(raw)
            if entry is None:
                emit(
                    observer,
                    MALFORMED_LINE,
                    path=str(path),
                    line=lineno,
                    reason=f"unsupported {type(raw).__name__} value",
                )
                continue
            yield entry
