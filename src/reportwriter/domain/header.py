from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Union


class HeaderError(ValueError):
    """Raised when a caller-supplied header list cannot be used."""


@dataclass(frozen=True)
class SimpleHeader:
    """One physical column."""

    name: str

    @property
    def width(self) -> int:
        return 1


@dataclass(frozen=True)
class NestedHeader:
    """One logical column expanding into ``len(children)`` physical columns."""

    name: str
    children: tuple[str, ...]

    @property
    def width(self) -> int:
        return len(self.children)


Header = Union[SimpleHeader, NestedHeader]
HeaderList = tuple[Header, ...]


def has_nested(headers: Iterable[Header]) -> bool:
    return any(isinstance(header, NestedHeader) for header in headers)


def total_width(headers: Iterable[Header]) -> int:
    return sum(header.width for header in headers)


def parse_headers(raw: Iterable[Any]) -> HeaderList:
    """Build a HeaderList from its JSON/YAML form.

    ``["Alpha", {"Echo": ["Foxtrot", "Hotel"]}]`` yields a simple header
    followed by a nested one. Names must be unique across the list and
    children unique within their group.
    """
    if isinstance(raw, (str, bytes)) or isinstance(raw, Mapping):
        raise HeaderError("headers must be a list")

    parsed: list[Header] = []
    seen: set[str] = set()
    for position, entry in enumerate(raw):
        header = _parse_entry(entry, position)
        if header.name in seen:
            raise HeaderError(f"duplicate header name {header.name!r}")
        seen.add(header.name)
        parsed.append(header)
    return tuple(parsed)


def _parse_entry(entry: Any, position: int) -> Header:
    if isinstance(entry, str):
        if not entry:
            raise HeaderError(f"header at position {position} has an empty name")
        return SimpleHeader(entry)
    if isinstance(entry, Mapping):
        if len(entry) != 1:
            raise HeaderError(
                f"nested header at position {position} must have exactly one name, "
                f"got {len(entry)}"
            )
        name, children = next(iter(entry.items()))
        if not isinstance(name, str) or not name:
            raise HeaderError(f"nested header at position {position} has an invalid name")
        if isinstance(children, (str, bytes)) or not isinstance(children, Iterable):
            raise HeaderError(f"children of {name!r} must be a list of names")
        names = tuple(children)
        if any(not isinstance(child, str) for child in names):
            raise HeaderError(f"children of {name!r} must be strings")
        if any(not child for child in names):
            raise HeaderError(f"nested header {name!r} has an empty child name")
        if len(set(names)) != len(names):
            raise HeaderError(f"nested header {name!r} repeats a child name")
        return NestedHeader(name, names)
    raise HeaderError(
        f"header at position {position} must be a string or a mapping, "
        f"got {type(entry).__name__}"
    )


def headers_to_raw(headers: Iterable[Header]) -> list[Any]:
    out: list[Any] = []
    for header in headers:
        if isinstance(header, NestedHeader):
            out.append({header.name: list(header.children)})
        else:
            out.append(header.name)
    return out
