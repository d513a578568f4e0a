"""
Crossfilter - a record store with sorted per-dimension indexes.

Each Dimension keeps its records sorted by a derived key and owns one bit of
a per-record exclusion mask. A record survives when no dimension has its bit
set, so top()/bottom() on any dimension respect the filters of every other.
"""

import math
import numbers
from collections.abc import Mapping, Set
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple

from sortedcontainers import SortedList

KeyFn = Callable[[Any], Any]
Predicate = Callable[[Any], bool]


def sort_key(key: Any) -> Tuple:
    """
    Total order over keys of any type. None comes first, then numbers, then
    sequences (compared element by element), then every other type grouped
    by type name. Values that cannot be ordered among themselves fall back
    to their repr.
    """
    if key is None:
        return (0,)
    if isinstance(key, numbers.Real):
        return (1, key)
    if isinstance(key, (list, tuple)):
        return (2, tuple(sort_key(item) for item in key))
    if isinstance(key, (Mapping, Set)):
        return (4, type(key).__name__, repr(key))
    return (3, type(key).__name__, key)


def _is_unbounded(bound: Any, sign: int) -> bool:
    return bound is None or (isinstance(bound, float) and math.isinf(bound) and bound * sign > 0)


def _wants_all(n) -> bool:
    return n is None or n == math.inf


class Crossfilter:
    """
    Owns the working set of records and the dimensions built over it.

    Usage:
        cf = Crossfilter(records)
        age = cf.dimension(lambda r: r['age'])
        age.filter_range(5, 8)
        oldest = age.top(1)
    """

    def __init__(self, records: Iterable[Any] = ()):
        self._records: List[Any] = []
        self._excluded: List[int] = []
        self._dimensions: List['Dimension'] = []
        self.add(records)

    def __len__(self):
        return len(self._records)

    @property
    def records(self) -> List[Any]:
        return list(self._records)

    def add(self, records: Iterable[Any]) -> int:
        """Append records to the store and to every existing dimension."""
        added = 0
        for record in records:
            index = len(self._records)
            self._records.append(record)
            self._excluded.append(0)
            for dimension in self._dimensions:
                dimension._insert(index)
            added += 1
        return added

    def dimension(self, key_fn: KeyFn, name: Optional[str] = None) -> 'Dimension':
        """Create a new dimension indexed by `key_fn(record)`."""
        bit = 1 << len(self._dimensions)
        dimension = Dimension(self, key_fn, bit, name=name)
        self._dimensions.append(dimension)
        return dimension

    def is_visible(self, index: int) -> bool:
        return self._excluded[index] == 0

    def all_filtered(self) -> List[Any]:
        """Records passing every dimension's filter, in insertion order."""
        return [record for record, mask in zip(self._records, self._excluded) if mask == 0]

    def size(self) -> int:
        """Number of records passing every filter."""
        return sum(1 for mask in self._excluded if mask == 0)


class Dimension:
    """
    One sorted projection of the crossfilter's records.

    Supports exact, range and predicate filters (a new filter replaces the
    previous one) and key-ordered top/bottom retrieval. Ties keep insertion
    order in both directions.
    """

    def __init__(self, crossfilter: Crossfilter, key_fn: KeyFn, bit: int, name: Optional[str] = None):
        self.name = name
        self._crossfilter = crossfilter
        self._key_fn = key_fn
        self._bit = bit
        self._keys = {}
        self._entries = SortedList()
        self._predicate: Optional[Predicate] = None
        for index in range(len(crossfilter)):
            self._insert(index)

    def __repr__(self):
        return f"Dimension(name={self.name!r}, size={len(self._entries)})"

    def __len__(self):
        return len(self._entries)

    @property
    def is_filtered(self) -> bool:
        return self._predicate is not None

    def key_of(self, record: Any) -> Any:
        return self._key_fn(record)

    def _insert(self, index: int):
        key = self._key_fn(self._crossfilter._records[index])
        self._keys[index] = key
        self._entries.add((sort_key(key), index))
        self._mark(index, key)

    def _mark(self, index: int, key: Any):
        excluded = self._crossfilter._excluded
        if self._predicate is None or self._predicate(key):
            excluded[index] &= ~self._bit
        else:
            excluded[index] |= self._bit

    def _refilter(self, predicate: Optional[Predicate]) -> 'Dimension':
        self._predicate = predicate
        for index, key in self._keys.items():
            self._mark(index, key)
        return self

    # --- Filters ---

    def filter_exact(self, value: Any) -> 'Dimension':
        """Keep records whose key equals `value`."""
        return self._refilter(lambda key: key == value)

    def filter_range(self, low: Any = None, high: Any = None) -> 'Dimension':
        """
        Keep records whose key lies in [low, high], inclusive. None, -inf and
        +inf leave that side unbounded. Keys that cannot be compared with the
        bounds (None, mismatched types) are filtered out.
        """
        no_low = _is_unbounded(low, -1)
        no_high = _is_unbounded(high, 1)

        def in_range(key):
            if key is None:
                return no_low and no_high
            try:
                return (no_low or key >= low) and (no_high or key <= high)
            except TypeError:
                return False

        return self._refilter(in_range)

    def filter_function(self, predicate: Predicate) -> 'Dimension':
        """Keep records for which predicate(key) is truthy."""
        return self._refilter(lambda key: bool(predicate(key)))

    def filter_all(self) -> 'Dimension':
        """Remove this dimension's restriction."""
        return self._refilter(None)

    def filter(self, value: Any) -> 'Dimension':
        """
        Dispatch on the value: None clears, a (low, high) pair is a range,
        a callable is a predicate, anything else is an exact match.
        """
        if value is None:
            return self.filter_all()
        if isinstance(value, (tuple, list)) and len(value) == 2:
            return self.filter_range(*value)
        if callable(value):
            return self.filter_function(value)
        return self.filter_exact(value)

    # --- Ordered retrieval ---

    def top(self, n=math.inf) -> List[Any]:
        """Up to n surviving records with the greatest keys, greatest first."""
        return self._take(self._descending(), n)

    def bottom(self, n=math.inf) -> List[Any]:
        """Up to n surviving records with the least keys, least first."""
        return self._take(iter(self._entries), n)

    def _descending(self) -> Iterator[Tuple]:
        group = []
        for entry in reversed(self._entries):
            if group and entry[0] != group[-1][0]:
                yield from reversed(group)
                group = []
            group.append(entry)
        yield from reversed(group)

    def _take(self, entries: Iterator[Tuple], n) -> List[Any]:
        if not _wants_all(n) and n <= 0:
            return []
        records = self._crossfilter._records
        result = []
        for _, index in entries:
            if not self._crossfilter.is_visible(index):
                continue
            result.append(records[index])
            if not _wants_all(n) and len(result) >= n:
                break
        return result
