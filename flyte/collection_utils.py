"""Small helpers over string maps and string lists."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional


def contains_all(superset: Optional[Mapping[str, str]], subset: Optional[Mapping[str, str]]) -> bool:
    """True when every key/value pair of subset is present in superset."""
    superset = superset or {}
    return all(key in superset and superset[key] == value for key, value in (subset or {}).items())


def merge(*maps: Optional[Mapping[str, str]]) -> dict[str, str]:
    """Merge maps left to right; later maps win on duplicate keys."""
    merged: dict[str, str] = {}
    for mapping in maps:
        merged.update(mapping or {})
    return merged


def sorted_keys(mapping: Optional[Mapping[str, str]]) -> list[str]:
    """The keys of the mapping in sorted order."""
    return sorted(mapping or {})


def contains(items: Optional[Iterable[str]], item: str) -> bool:
    """True when item is one of items."""
    return item in (items or ())


def has_matching_element(a: Optional[Iterable[str]], b: Optional[Iterable[str]]) -> bool:
    """True when the two collections share at least one element."""
    return not set(a or ()).isdisjoint(b or ())


def _type_name(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "float64"
    return type(value).__name__


def to_string_list(items: Optional[Iterable[Any]]) -> list[str]:
    """Return the items as a list of strings; raise TypeError if any item is not a string."""
    converted: list[str] = []
    for value in items or ():
        if not isinstance(value, str):
            raise TypeError(
                "can only convert slices of type 'string' - "
                f"slices of type {_type_name(value)} are not supported"
            )
        converted.append(value)
    return converted