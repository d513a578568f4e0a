"""
CrossfilterController - filtered, sorted view over a working set of records.

Owns the crossfilter, one dimension per configured index, the bitmask maps
for in_array filters and the filter registry. Every mutation recomputes the
surviving records and republishes `content` to subscribers.
"""

import copy
import logging
import math
import time
from collections.abc import Iterable, Mapping
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional

from .bitmask import BitmaskMap, build_map, enrich
from .config import DEFAULT_MAX_BITS, DEFAULT_PRIMARY_KEY, debug_from_env
from .dimension import Crossfilter, Dimension
from .errors import UnknownFilterError
from .history import FilterHistory
from .records import resolve_attribute
from .registry import BooleanMode, FilterConfig, FilterMethod, FilterRegistry, FilterState
from .sorting import SortSpec, sorted_content

logger = logging.getLogger(__name__)

Listener = Callable[[List[Any]], None]

# Upper bound on notification rounds triggered by listeners mutating the controller.
MAX_NOTIFY_ROUNDS = 10


class CrossfilterController:
    """
    Multi-dimensional filtering and sorting for a list of records.

    The filter map declares one entry per filter key:
        {'property': 'colours', 'dimension': 'colour', 'method': 'in_array', 'boolean': 'or'}

    Records are attached once (explicitly, or via `records=`); attaching an
    empty list is a no-op so the host can call attach() whenever data arrives.

    Usage:
        controller = CrossfilterController(filter_map, sort={'sort_property': 'name'})
        controller.attach(cats)
        controller.add_filter('colour', 'black')
        visible = controller.content
    """

    def __init__(self, filter_map: Mapping[str, Mapping], sort=None,
                 primary_key: str = DEFAULT_PRIMARY_KEY,
                 predicates: Optional[Mapping[str, Callable]] = None,
                 max_bits: Optional[int] = DEFAULT_MAX_BITS,
                 allow_debugging: Optional[bool] = None,
                 memento_size: Optional[int] = None,
                 records: Optional[List[Any]] = None):
        self.registry = FilterRegistry(filter_map, predicates)
        self.sort = SortSpec.coerce(sort)
        self.primary_key = primary_key
        self.max_bits = max_bits
        self.allow_debugging = debug_from_env() if allow_debugging is None else allow_debugging
        self.history = FilterHistory(self.restore_filters, memento_size=memento_size)

        self._crossfilter: Optional[Crossfilter] = None
        self._default_dimension: Optional[Dimension] = None
        self._dimensions: Dict[str, Dimension] = {}
        self._bitmask_maps: Dict[str, BitmaskMap] = {}
        self._deleted_ids = set()
        self._content: List[Any] = []
        self._listeners: List[Listener] = []
        self._suspended = 0
        self._dirty = False
        self._notifying = False
        self._pending = False

        if records:
            self.attach(records)

    # --- Construction ---

    @property
    def is_attached(self) -> bool:
        return self._crossfilter is not None

    def attach(self, records: List[Any]) -> bool:
        """
        Build the crossfilter and every dimension from the initial records.

        Returns:
            True if the crossfilter was built; False if `records` is empty or
            the crossfilter already exists.
        """
        records = list(records or [])
        if self._crossfilter is not None or not records:
            return False

        start = time.perf_counter()
        for key in self.registry:
            config = self.registry.get(key)
            if config.is_boolean:
                self._bitmask_maps[key] = self._create_filter_boolean(config, records)

        self._crossfilter = Crossfilter(records)
        self._default_dimension = self._crossfilter.dimension(
            self._accessor(self.primary_key), name=self.primary_key
        )
        for index_name, config in self.registry.dimension_configs().items():
            self._dimensions[index_name] = self._crossfilter.dimension(
                self._accessor(config.index_attribute), name=index_name
            )
        logger.info("Crossfilter built: %d record(s), %d dimension(s)",
                    len(records), len(self._dimensions))

        # Filters added before the records arrived.
        self._reapply_filters()
        self._apply_content_changes()
        self._debug('Creating', start)
        return True

    def _create_filter_boolean(self, config: FilterConfig, records: List[Any]) -> BitmaskMap:
        start = time.perf_counter()
        bitmask_map = build_map(records, config.source_attribute, max_bits=self.max_bits,
                                into=self._bitmask_maps.get(config.key))
        enrich(records, config.source_attribute, config.index_attribute, bitmask_map)
        self._debug('Properties', start)
        return bitmask_map

    @staticmethod
    def _accessor(attribute: str) -> Callable[[Any], Any]:
        return lambda record: resolve_attribute(record, attribute)

    # --- Observable content ---

    @property
    def content(self) -> List[Any]:
        """Surviving records in display order."""
        return list(self._content)

    def size(self) -> int:
        """Number of surviving records."""
        return len(self._content)

    def total(self) -> int:
        """Number of records that have not been deleted."""
        if self._crossfilter is None:
            return 0
        return sum(1 for record in self._crossfilter.records if self._record_id(record) not in self._deleted_ids)

    def subscribe(self, listener: Listener):
        """Call `listener(content)` after every republish."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    # --- Filters ---

    def add_filter(self, key: str, value: Any = True):
        """
        Apply a filter to one of the configured dimensions.

        exact/range/function filters take `value` as their new value. in_array
        filters add `value` to the selection: OR mode keeps records having any
        selected value, AND mode keeps records having all of them.
        """
        config = self.registry.get(key)
        state = self.registry.state(key)
        before = self.snapshot_filters()

        if not config.is_boolean:
            state.value = value
            state.active = True
        else:
            bit = self._bitmask_map(key).assign(value)
            if value not in state.active:
                state.active.append(value)
            if config.boolean_mode == BooleanMode.OR:
                state.value |= bit
            elif bit not in state.value:
                state.value.append(bit)

        self._update_content(config)
        self.history.record('add', key, value, before, self.snapshot_filters())

    def remove_filter(self, key: str, value: Any = None):
        """
        Clear a filter. For in_array filters only `value` is deselected, or the
        whole selection when `value` is None.
        """
        config = self.registry.get(key)
        state = self.registry.state(key)
        before = self.snapshot_filters()

        if not config.is_boolean:
            state.value = None
            state.active = False
        elif value is None:
            self.registry.reset(key)
        else:
            if value in state.active:
                state.active.remove(value)
            bit = self._bitmask_map(key).bit_for(value)
            if config.boolean_mode == BooleanMode.OR:
                if state.value & bit:
                    state.value ^= bit
            elif bit in state.value:
                state.value.remove(bit)

        self._update_content(config)
        self.history.record('remove', key, value, before, self.snapshot_filters())

    def toggle_filter(self, key: str, value: Any = True) -> bool:
        """
        Remove the filter if it is active with `value`, otherwise add it.
        exact/range/function filters active with a different value switch to
        `value`.

        Returns:
            Whether the filter is active afterwards
        """
        active = self.is_active_filter(key, value)
        if active and not self.registry.is_boolean(key):
            active = self.registry.state(key).value == value
        if active:
            self.remove_filter(key, value)
            return False
        self.add_filter(key, value)
        return True

    def clear_all_filters(self):
        """Reset every filter and recompute the content once."""
        start = time.perf_counter()
        before = self.snapshot_filters()
        for key in self.registry:
            self.registry.reset(key)
        for dimension in self._dimensions.values():
            dimension.filter_all()
        self._apply_content_changes()
        self._debug('Clearing All', start)
        self.history.record('clear', None, None, before, self.snapshot_filters())

    def is_active_filter(self, key: str, value: Any = None) -> bool:
        """
        For in_array filters, whether `value` is currently selected; for every
        other filter, whether it is active at all.
        """
        config = self.registry.get(key)
        state = self.registry.state(key)
        if config.is_boolean:
            bit = self._bitmask_map(key).bit_for(value)
            if config.boolean_mode == BooleanMode.OR:
                return bool(state.value & bit)
            return bit != 0 and bit in state.value
        return state.active is True

    def get_active_filters(self) -> List[Dict]:
        """Return the currently active filters as {'key', 'value', 'active'} dicts."""
        result = []
        for key in self.registry:
            if self.registry.is_active(key):
                state = self.registry.state(key)
                result.append({'key': key, 'value': copy.copy(state.value), 'active': copy.copy(state.active)})
        return result

    def filter_state(self, key: str) -> FilterState:
        """A copy of the live state of one filter."""
        state = self.registry.state(key)
        return FilterState(value=copy.copy(state.value), active=copy.copy(state.active))

    def filter_value(self, key: str) -> Any:
        return self.filter_state(key).value

    def snapshot_filters(self) -> Dict[str, FilterState]:
        return {key: self.filter_state(key) for key in self.registry}

    def restore_filters(self, snapshot: Dict[str, FilterState]):
        """Replace every filter state with `snapshot` and re-apply all dimensions."""
        for key, state in snapshot.items():
            live = self.registry.state(key)
            live.value = copy.copy(state.value)
            live.active = copy.copy(state.active)
        if self._crossfilter is not None:
            self._reapply_filters()
        self._apply_content_changes()

    def undo(self):
        return self.history.undo()

    def redo(self):
        return self.history.redo()

    # --- Sorting and ordered retrieval ---

    def sort_content(self, prop: str, ascending: bool = True):
        """Sort the current content by `prop` and remember it for later recomputes."""
        start = time.perf_counter()
        self.sort = SortSpec(sort_property=prop, is_ascending=ascending)
        self._publish(sorted_content(self._content, prop, ascending))
        self._debug('Sorting', start)

    def top(self, key: str, count: int = 1) -> Any:
        """Surviving record with the highest value on the dimension behind `key`."""
        return self._top_bottom(key, count, 'top')

    def bottom(self, key: str, count: int = 1) -> Any:
        """Surviving record with the lowest value on the dimension behind `key`."""
        return self._top_bottom(key, count, 'bottom')

    def _top_bottom(self, key: str, count: int, method: str) -> Any:
        dimension = self.dimension(key)
        if dimension is None:
            return None
        records = getattr(dimension, method)(count or 1)
        return records[0] if records else None

    def dimension(self, key: str) -> Optional[Dimension]:
        """
        The dimension behind a filter key, a dimension name or the primary
        key. None before records are attached.
        """
        if key in self.registry:
            return self._dimensions.get(self.registry.get(key).index_name)
        if key in self._dimensions:
            return self._dimensions[key]
        if key == self.primary_key:
            return self._default_dimension
        if self._crossfilter is None:
            return None
        raise UnknownFilterError(key)

    def bitmask_map(self, key: str) -> Optional[BitmaskMap]:
        """The bitmask map of an in_array filter (None before attach)."""
        self.registry.get(key)
        return self._bitmask_maps.get(key)

    # --- Records ---

    def add_record(self, record: Any) -> bool:
        """Add one record to the crossfilter (the first record attaches it)."""
        if self._crossfilter is None:
            return self.attach([record])
        for key, bitmask_map in self._bitmask_maps.items():
            config = self.registry.get(key)
            enrich([record], config.source_attribute, config.index_attribute, bitmask_map, grow=True)
        self._crossfilter.add([record])
        self._apply_content_changes()
        return True

    def add_records(self, records: Iterable) -> int:
        """
        Add many records, recomputing the content once.

        Returns:
            Number of records added (0 if `records` is not a collection)
        """
        if not self._is_collection(records):
            logger.warning('You must pass a list of records: use `add_record` instead!')
            return 0
        added = 0
        with self._batch():
            for record in records:
                if record is None:
                    continue
                self.add_record(record)
                added += 1
        return added

    def delete_record(self, record: Any) -> bool:
        """Soft-delete a record: it stays indexed but is excluded from content."""
        if record is not None:
            self._deleted_ids.add(self._record_id(record))
        self._apply_content_changes()
        return True

    def delete_records(self, records: Iterable) -> int:
        """
        Soft-delete many records, recomputing the content once.

        Returns:
            Number of records processed (0 if `records` is not a collection)
        """
        if not self._is_collection(records):
            logger.warning('You must pass a list of records: use `delete_record` instead!')
            return 0
        records = list(records)
        with self._batch():
            for record in records:
                self.delete_record(record)
        return len(records)

    @staticmethod
    def _is_collection(records: Any) -> bool:
        return isinstance(records, Iterable) and not isinstance(records, (str, bytes, Mapping))

    def _record_id(self, record: Any) -> Any:
        return resolve_attribute(record, self.primary_key)

    def _bitmask_map(self, key: str) -> BitmaskMap:
        # in_array filters used before attach get an empty map that records extend later
        if key not in self._bitmask_maps:
            config = self.registry.get(key)
            self._bitmask_maps[key] = BitmaskMap(attribute=config.source_attribute, max_bits=self.max_bits)
        return self._bitmask_maps[key]

    # --- Recompute ---

    def _update_content(self, config: FilterConfig):
        start = time.perf_counter()
        if self._crossfilter is not None:
            self._apply_filter(config)
            self._apply_content_changes()
        self._debug('Filtering', start)

    def _reapply_filters(self):
        for dimension in self._dimensions.values():
            dimension.filter_all()
        for key in self.registry:
            if self.registry.is_active(key):
                self._apply_filter(self.registry.get(key))

    def _apply_filter(self, config: FilterConfig):
        dimension = self._dimensions[config.index_name]
        state = self.registry.state(config.key)

        if config.is_boolean:
            self._set_filter_boolean(config, state, dimension)
        elif config.method in (FilterMethod.RANGE_MIN, FilterMethod.RANGE_MAX):
            self._set_filter_range_bounds(config, dimension)
        elif state.active is not True:
            dimension.filter_all()
        elif config.method == FilterMethod.RANGE:
            low, high = state.value if state.value is not None else (None, None)
            dimension.filter_range(low, high)
        elif config.method == FilterMethod.FUNCTION:
            dimension.filter_function(config.predicate)
        else:
            dimension.filter_exact(state.value)

    def _set_filter_boolean(self, config: FilterConfig, state: FilterState, dimension: Dimension):
        if not state.active:
            dimension.filter_all()
            return

        if config.boolean_mode == BooleanMode.OR:
            mask = state.value
            dimension.filter_function(lambda d: bool((d or 0) & mask))
            return

        required = list(state.value)
        dimension.filter_function(lambda d: all((d or 0) & bit for bit in required))

    def _set_filter_range_bounds(self, config: FilterConfig, dimension: Dimension):
        other = self.registry.state(config.counterpart)
        own = self.registry.state(config.key)
        if config.method == FilterMethod.RANGE_MIN:
            low, high = own.value, other.value
        else:
            low, high = other.value, own.value
        if low is None and high is None:
            dimension.filter_all()
            return
        dimension.filter_range(low, high)

    def _apply_content_changes(self):
        """Re-derive the surviving records from the primary-key dimension."""
        if self._suspended:
            self._dirty = True
            return
        if self._crossfilter is None:
            self._publish([])
            return

        deleted = self._deleted_ids
        if deleted:
            self._default_dimension.filter_function(lambda key: key not in deleted)
        else:
            self._default_dimension.filter_all()
        content = self._default_dimension.top(math.inf)

        if self.sort is not None:
            content = sorted_content(content, self.sort.sort_property, self.sort.is_ascending)
        self._publish(content)

    @contextmanager
    def _batch(self):
        """Defer content recomputes until the outermost batch exits."""
        self._suspended += 1
        try:
            yield
        finally:
            self._suspended -= 1
            if not self._suspended and self._dirty:
                self._dirty = False
                self._apply_content_changes()

    def _publish(self, content: List[Any]):
        self._content = content
        if self._notifying:
            # A listener mutated us; the outer loop republishes once it returns.
            self._pending = True
            return

        self._notifying = True
        try:
            for _ in range(MAX_NOTIFY_ROUNDS):
                self._pending = False
                for listener in list(self._listeners):
                    listener(self.content)
                if not self._pending:
                    break
            else:
                logger.warning('Content listeners kept mutating the controller; stopped after %d rounds',
                               MAX_NOTIFY_ROUNDS)
        finally:
            self._notifying = False

    def _debug(self, label: str, start: float):
        if self.allow_debugging:
            logger.debug('%s: %.3f millisecond(s)', label, (time.perf_counter() - start) * 1000)
