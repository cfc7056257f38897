from __future__ import annotations

from typing import Iterable, Optional

from reportwriter.domain.header import Header, HeaderList, NestedHeader, SimpleHeader
from reportwriter.domain.record import Entry, NestedValue, Record
from reportwriter.pipeline.observability import SCHEMA_MISMATCH, Observer, emit


def merge_headers(
    existing: Iterable[Header],
    record: Record,
    observer: Optional[Observer] = None,
) -> HeaderList:
    """Return ``existing`` extended with the fields of ``record``.

    Headers keep the position they were first seen at. A nested header only
    ever grows: children already known stay first, new ones are appended in
    the order the record lists them.
    """
    headers: list[Header] = list(existing)
    index = {header.name: idx for idx, header in enumerate(headers)}

    for name, value in record.fields.items():
        loc = index.get(name)
        current = headers[loc] if loc is not None else None

        if isinstance(value, NestedValue):
            children = tuple(value.values.keys())
            if current is None:
                # No children yet still fixes the header position.
                index[name] = len(headers)
                headers.append(NestedHeader(name, _unique(children)))
            elif isinstance(current, NestedHeader):
                merged = current.children + tuple(
                    c for c in _unique(children) if c not in current.children
                )
                if merged != current.children:
                    headers[loc] = NestedHeader(name, merged)
            else:
                emit(observer, SCHEMA_MISMATCH, header=name, expected="scalar", stage="merge")
            continue

        if current is None:
            index[name] = len(headers)
            headers.append(SimpleHeader(name))
        elif isinstance(current, NestedHeader):
            emit(observer, SCHEMA_MISMATCH, header=name, expected="nested", stage="merge")

    return tuple(headers)


def _unique(names: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(names))


class HeaderRegistry:
    """Header schema discovered by one export job."""

    def __init__(
        self,
        initial: Iterable[Header] = (),
        *,
        observer: Optional[Observer] = None,
    ) -> None:
        self._headers: HeaderList = tuple(initial)
        self._observer = observer

    @property
    def headers(self) -> HeaderList:
        return self._headers

    def merge(self, record: Record) -> HeaderList:
        self._headers = merge_headers(self._headers, record, self._observer)
        return self._headers

    def merge_all(self, entries: Iterable[Entry]) -> HeaderList:
        for entry in entries:
            if isinstance(entry, Record):
                self.merge(entry)
        return self._headers

    def __len__(self) -> int:
        return len(self._headers)

    def __iter__(self):
        return iter(self._headers)
