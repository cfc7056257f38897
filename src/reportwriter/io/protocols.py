from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Optional, Protocol, runtime_checkable

from reportwriter.domain.header import HeaderList
from reportwriter.domain.record import Entry


class TabularWriter(Protocol):
    def write_headers(self, headers: HeaderList, init_row: Optional[int] = None) -> None: ...
    def write_row(self, row: Any, headers: HeaderList = ()) -> None: ...
    def write_rows(self, rows: Iterable[Any], headers: HeaderList) -> None: ...
    def prepare(
        self,
        cache_path: Path,
        headers: HeaderList,
        entries: Optional[Iterable[Entry]] = None,
    ) -> Optional[Path]: ...
    def finalize(self) -> None: ...
    def abort(self) -> None: ...


@runtime_checkable
class HasFilePath(Protocol):
    @property
    def file_path(self) -> Optional[Path]: ...
