"""
Sort engine - stable ordering of records by one attribute.
"""

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Union

from .dimension import sort_key
from .errors import ConfigurationError
from .records import resolve_attribute


@dataclass
class SortSpec:
    sort_property: str
    is_ascending: bool = True

    @classmethod
    def coerce(cls, sort: Union['SortSpec', Mapping, None]) -> Optional['SortSpec']:
        """Accept a SortSpec, a {'sort_property', 'is_ascending'} dict or None."""
        if sort is None or isinstance(sort, SortSpec):
            return sort
        prop = sort.get('sort_property') or sort.get('sortProperty')
        if not prop:
            raise ConfigurationError('You must define `sort_property` in your `sort` object.')
        ascending = sort.get('is_ascending', sort.get('isAscending', True))
        return cls(sort_property=prop, is_ascending=bool(ascending))


def sorted_content(records: Iterable[Any], prop: str, ascending: bool = True) -> List[Any]:
    """
    Stable sort of records by the value of `prop`. Missing values sort first.

    Descending order is the ascending order reversed, so records with equal
    keys come out in reverse insertion order when descending.

    Args:
        records: Records to sort (not modified)
        prop: Attribute name (dotted names walk nested records)
        ascending: Sort direction

    Returns:
        A new list
    """
    result = sorted(records, key=lambda record: sort_key(resolve_attribute(record, prop)))
    if not ascending:
        result.reverse()
    return result
