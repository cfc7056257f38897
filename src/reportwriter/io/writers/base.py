from __future__ import annotations

import json
from typing import Any, Mapping, Optional, Union

from reportwriter.domain.record import (
    NestedValue,
    RawRow,
    Record,
    Separator,
    record_from_mapping,
)

Row = Union[Record, list]


def normalize_row(row: Any) -> Optional[Row]:
    """Coerce writer input into a Record or a positional list.

    Returns None for values that cannot be written as a row.
    """
    if isinstance(row, Record):
        return row
    if isinstance(row, RawRow):
        return list(row.values)
    if isinstance(row, Separator):
        return None
    if isinstance(row, Mapping):
        return record_from_mapping(row)
    if isinstance(row, (list, tuple)):
        return list(row)
    return None


def record_values(record: Record) -> list:
    """Field values in the record's own order, for headerless writes."""
    values: list = []
    for value in record.fields.values():
        if isinstance(value, NestedValue):
            values.append(json.dumps(dict(value.values), ensure_ascii=False))
        else:
            values.append(value.value)
    return values
