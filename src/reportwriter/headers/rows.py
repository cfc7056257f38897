from __future__ import annotations

from typing import Any, Iterable, Optional

from reportwriter.domain.header import Header, NestedHeader
from reportwriter.domain.record import NestedValue, Record, ScalarValue
from reportwriter.pipeline.observability import SCHEMA_MISMATCH, Observer, emit

CSV_MISSING = ""
SHEET_MISSING = None


def map_record(
    record: Record,
    headers: Iterable[Header],
    missing: Any = None,
    observer: Optional[Observer] = None,
) -> list[Any]:
    """Flatten ``record`` into one value per physical column of ``headers``.

    Fields the headers do not name are dropped. Absent fields, and fields
    whose shape disagrees with their header, yield ``missing``.
    """
    row: list[Any] = []
    for header in headers:
        value = record.get(header.name)

        if isinstance(header, NestedHeader):
            if isinstance(value, NestedValue):
                for child in header.children:
                    row.append(_present(value.values.get(child, missing), missing))
                continue
            if isinstance(value, ScalarValue):
                emit(observer, SCHEMA_MISMATCH, header=header.name, expected="nested", stage="row")
            row.extend([missing] * header.width)
            continue

        if isinstance(value, ScalarValue):
            row.append(_present(value.value, missing))
        else:
            if isinstance(value, NestedValue):
                emit(observer, SCHEMA_MISMATCH, header=header.name, expected="scalar", stage="row")
            row.append(missing)
    return row


def _present(value: Any, missing: Any) -> Any:
    # A null field counts as absent.
    return missing if value is None else value
