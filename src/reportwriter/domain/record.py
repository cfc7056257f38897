from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

SEPARATOR = "---"
BOLD_KEY = "_bold"

Scalar = Union[str, int, float, bool, None]


@dataclass(frozen=True)
class ScalarValue:
    value: Scalar


@dataclass(frozen=True)
class NestedValue:
    """Children of a nested header, keyed by child name."""

    values: Mapping[str, Scalar]


FieldValue = Union[ScalarValue, NestedValue]


@dataclass
class Record:
    """One cache line decoded into tagged field values."""

    fields: dict[str, FieldValue] = field(default_factory=dict)
    bold: bool = False

    def get(self, name: str) -> Optional[FieldValue]:
        return self.fields.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.fields

    def __len__(self) -> int:
        return len(self.fields)


@dataclass(frozen=True)
class RawRow:
    """A pre-flattened row (a JSON array in the cache)."""

    values: tuple[Scalar, ...]


@dataclass(frozen=True)
class Separator:
    """Section break marker."""


Entry = Union[Record, RawRow, Separator]


def decode_entry(raw: Any) -> Optional[Entry]:
    """Tag a decoded JSON value, or return None when it is not a usable row."""
    if isinstance(raw, str):
        return Separator() if raw == SEPARATOR else None
    if isinstance(raw, Mapping):
        return record_from_mapping(raw)
    if isinstance(raw, list):
        return RawRow(tuple(_scalar(value) for value in raw))
    return None


def record_from_mapping(data: Mapping[str, Any]) -> Record:
    fields: dict[str, FieldValue] = {}
    bold = False
    for key, value in data.items():
        name = str(key)
        if name == BOLD_KEY:
            bold = bool(value)
            continue
        if isinstance(value, Mapping):
            fields[name] = NestedValue(
                {str(child): _scalar(inner) for child, inner in value.items()}
            )
        else:
            fields[name] = ScalarValue(_scalar(value))
    return Record(fields=fields, bold=bold)


def _scalar(value: Any) -> Scalar:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, list):
        if all(isinstance(v, (str, int, float, bool)) or v is None for v in value):
            return ", ".join("" if v is None else str(v) for v in value)
    try:
        return json.dumps(value, ensure_ascii=False)
    except TypeError:
        return str(value)
