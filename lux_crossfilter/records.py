"""
Record access helpers. Records are plain dicts or arbitrary objects; the
crossfilter never copies them, it only reads attributes and caches derived
values on them.
"""

from collections.abc import Mapping
from typing import Any


def resolve_attribute(record: Any, attribute: str) -> Any:
    """
    Read `attribute` from a record.

    Dicts are read with .get(), objects with getattr(). Dotted names walk
    nested records ("owner.name"). Objects exposing a get() accessor are
    asked through it when plain attribute access finds nothing. A missing
    attribute resolves to None.
    """
    value = record
    for part in attribute.split('.'):
        if value is None:
            return None
        value = _read(value, part)
    return value


def _read(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    value = getattr(record, name, None)
    if value is None:
        getter = getattr(record, 'get', None)
        if callable(getter):
            try:
                return getter(name)
            except (KeyError, AttributeError, TypeError):
                return None
    return value


def write_attribute(record: Any, attribute: str, value: Any):
    """Cache a derived value on a record (dict item or instance attribute)."""
    if isinstance(record, dict):
        record[attribute] = value
    else:
        setattr(record, attribute, value)


def as_values(raw: Any) -> list:
    """
    Flatten a multi-valued attribute into a list of individual values.
    A scalar counts as a single value; None counts as no values.
    """
    if raw is None:
        return []
    if isinstance(raw, (str, bytes)) or not hasattr(raw, '__iter__'):
        return [raw]
    if isinstance(raw, Mapping):
        return list(raw.keys())
    return list(raw)
