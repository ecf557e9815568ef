"""
Merge user-supplied component arguments onto secure defaults.

Defaults are frozen dataclasses. Merging never mutates either side: it
returns a new instance of the defaults' type in which every field the
caller set (anything other than None) replaces the default value.

Nested dataclasses merge recursively, mappings (tags) merge key by key
with the override winning, and every other value (lists included) is
replaced wholesale. An explicit empty list therefore turns a default
list off, while None keeps it.
"""

import dataclasses
from collections.abc import Mapping
from typing import Any, TypeVar

T = TypeVar("T")


def _field_values(overrides: Any) -> Mapping[str, Any]:
    if overrides is None:
        return {}
    if isinstance(overrides, Mapping):
        return overrides
    if dataclasses.is_dataclass(overrides) and not isinstance(overrides, type):
        return {f.name: getattr(overrides, f.name) for f in dataclasses.fields(overrides)}
    raise TypeError(f"Cannot merge overrides of type {type(overrides).__name__}")


def _merge_value(default: Any, override: Any) -> Any:
    if override is None:
        return default
    if dataclasses.is_dataclass(default) and not isinstance(default, type):
        return merge_config(default, override)
    if isinstance(default, Mapping) and isinstance(override, Mapping):
        return {**default, **override}
    return override


def merge_config(defaults: T, overrides: Any = None) -> T:
    """
    Return a copy of `defaults` with the non-None values of `overrides` applied.

    Args:
        defaults: A dataclass instance holding the secure defaults.
        overrides: A dataclass instance (usually of the same type) or a mapping
            of field name to value. Keys that are not fields of `defaults`
            raise TypeError.

    Returns:
        A new instance of type(defaults).
    """
    if not dataclasses.is_dataclass(defaults) or isinstance(defaults, type):
        raise TypeError("defaults must be a dataclass instance")

    known = {f.name for f in dataclasses.fields(defaults)}
    changes: dict[str, Any] = {}
    for name, value in _field_values(overrides).items():
        if name not in known:
            raise TypeError(f"{type(defaults).__name__} has no field {name!r}")
        if value is None:
            continue
        changes[name] = _merge_value(getattr(defaults, name), value)

    return dataclasses.replace(defaults, **changes)


def merge_tags(*tag_maps: Mapping[str, str] | None) -> dict[str, str]:
    """Combine tag maps left to right; later maps win and None entries are skipped."""
    merged: dict[str, str] = {}
    for tags in tag_maps:
        if tags:
            merged.update(tags)
    return merged
