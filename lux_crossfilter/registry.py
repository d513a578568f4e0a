"""
FilterRegistry - declared filter configuration plus the live state of each
filter, kept in two parallel tables keyed by filter key.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

from .config import BITMASK_ATTRIBUTE_PREFIX
from .errors import ConfigurationError, UnknownFilterError


class FilterMethod(str, Enum):
    EXACT = 'exact'
    RANGE = 'range'
    RANGE_MIN = 'range_min'
    RANGE_MAX = 'range_max'
    IN_ARRAY = 'in_array'
    FUNCTION = 'function'


class BooleanMode(str, Enum):
    OR = 'or'
    AND = 'and'


# Legacy crossfilter method names -> (method, implied boolean mode)
_METHOD_ALIASES = {
    'filterExact': (FilterMethod.EXACT, None),
    'filterRange': (FilterMethod.RANGE, None),
    'filterRangeMin': (FilterMethod.RANGE_MIN, None),
    'filterRangeMax': (FilterMethod.RANGE_MAX, None),
    'filterInArray': (FilterMethod.IN_ARRAY, None),
    'filterOr': (FilterMethod.IN_ARRAY, BooleanMode.OR),
    'filterAnd': (FilterMethod.IN_ARRAY, BooleanMode.AND),
    'filterFunction': (FilterMethod.FUNCTION, None),
}


def _parse_method(key: str, raw: Any):
    if isinstance(raw, FilterMethod):
        return raw, None
    if raw in _METHOD_ALIASES:
        return _METHOD_ALIASES[raw]
    try:
        return FilterMethod(raw), None
    except ValueError:
        raise ConfigurationError(f"Filter '{key}' has an unknown method: {raw!r}")


def _swap_bound(key: str, src: str, dst: str) -> Optional[str]:
    """minAge -> maxAge, age_min -> age_max, ageMin -> ageMax."""
    for a, b in ((src, dst), (src.capitalize(), dst.capitalize())):
        if a in key:
            return key.replace(a, b, 1)
    return None


@dataclass(frozen=True)
class FilterConfig:
    """Immutable declaration of one filter."""
    key: str
    source_attribute: str
    index_name: str
    method: FilterMethod
    boolean_mode: Optional[BooleanMode] = None
    predicate: Optional[Callable[[Any], bool]] = None

    @classmethod
    def from_entry(cls, key: str, entry: Mapping[str, Any]) -> 'FilterConfig':
        """
        Build a config from a filter map entry:
            {'property': 'age', 'dimension': 'age', 'method': 'range_min'}
        `dimension` defaults to `property`; `boolean` is required for in_array.
        """
        if 'property' not in entry:
            raise ConfigurationError(f"Filter '{key}' must define a `property`")
        method, implied_mode = _parse_method(key, entry.get('method', FilterMethod.EXACT))
        boolean_mode = None
        if method == FilterMethod.IN_ARRAY:
            raw_mode = entry.get('boolean') or implied_mode
            if raw_mode is None:
                raise ConfigurationError(f"Filter '{key}' uses in_array and must define `boolean` ('or' or 'and')")
            try:
                boolean_mode = BooleanMode(raw_mode)
            except ValueError:
                raise ConfigurationError(f"Filter '{key}' has an unknown boolean mode: {raw_mode!r}")
        return cls(
            key=key,
            source_attribute=entry['property'],
            index_name=entry.get('dimension') or entry['property'],
            method=method,
            boolean_mode=boolean_mode,
            predicate=entry.get('predicate'),
        )

    @property
    def is_boolean(self) -> bool:
        return self.method == FilterMethod.IN_ARRAY

    @property
    def index_attribute(self) -> str:
        """Attribute the dimension index reads (the cached bitmask for in_array)."""
        if self.is_boolean:
            return BITMASK_ATTRIBUTE_PREFIX + self.key
        return self.source_attribute

    @property
    def counterpart(self) -> Optional[str]:
        """Key of the matching range bound filter (minAge <-> maxAge)."""
        if self.method == FilterMethod.RANGE_MIN:
            return _swap_bound(self.key, 'min', 'max')
        if self.method == FilterMethod.RANGE_MAX:
            return _swap_bound(self.key, 'max', 'min')
        return None


@dataclass
class FilterState:
    """
    Live state of one filter.

    value: None | scalar | (min, max) | OR bitmask | list of AND bits
    active: bool, or the ordered list of selected values for in_array filters
    """
    value: Any = None
    active: Any = False

    @classmethod
    def initial(cls, config: FilterConfig) -> 'FilterState':
        if not config.is_boolean:
            return cls()
        if config.boolean_mode == BooleanMode.OR:
            return cls(value=0, active=[])
        return cls(value=[], active=[])


class FilterRegistry:
    """
    Source of truth for filter configuration and state.

    Validates the configuration up front: a non-empty filter map, a matching
    counterpart for every range bound, and a predicate for every function
    filter (from the entry itself or from `predicates`).

    Usage:
        registry = FilterRegistry(filter_map, predicates={'isCute': lambda c: c > 9})
        registry.set_value('name', 'Boris')
        registry.set_active('name', True)
    """

    def __init__(self, filter_map: Optional[Mapping[str, Mapping]],
                 predicates: Optional[Mapping[str, Callable]] = None):
        if not filter_map:
            raise ConfigurationError('Controller implements crossfilter but `filter_map` has not been specified.')
        predicates = predicates or {}
        self._configs: Dict[str, FilterConfig] = {}
        for key, entry in filter_map.items():
            config = entry if isinstance(entry, FilterConfig) else FilterConfig.from_entry(key, entry)
            if config.predicate is None and key in predicates:
                config = replace(config, predicate=predicates[key])
            self._configs[key] = config
        self.validate()
        self._states: Dict[str, FilterState] = {
            key: FilterState.initial(config) for key, config in self._configs.items()
        }

    def validate(self):
        """Raise ConfigurationError on an incomplete or inconsistent filter map."""
        by_index: Dict[str, List[FilterConfig]] = {}
        for key, config in self._configs.items():
            by_index.setdefault(config.index_name, []).append(config)
            if config.method in (FilterMethod.RANGE_MIN, FilterMethod.RANGE_MAX):
                other_key = config.counterpart
                other = self._configs.get(other_key) if other_key else None
                bound = 'max' if config.method == FilterMethod.RANGE_MIN else 'min'
                if other is None:
                    raise ConfigurationError(f"You must define the `{bound}` dimension for {key}")
                if other.index_name != config.index_name:
                    raise ConfigurationError(
                        f"Range filters {key} and {other_key} must share a dimension "
                        f"({config.index_name!r} != {other.index_name!r})"
                    )
            if config.method == FilterMethod.FUNCTION and not callable(config.predicate):
                raise ConfigurationError(f"Crossfilter `function` filter expects a predicate for `{key}`.")

        for index_name, configs in by_index.items():
            if len(configs) > 1 and any(c.is_boolean for c in configs):
                raise ConfigurationError(f"Dimension {index_name!r} cannot be shared by an in_array filter")
            attributes = {c.source_attribute for c in configs}
            if len(attributes) > 1:
                raise ConfigurationError(
                    f"Dimension {index_name!r} is declared over several properties: {sorted(attributes)}"
                )

    def __contains__(self, key):
        return key in self._configs

    def __iter__(self) -> Iterator[str]:
        return iter(self._configs)

    def keys(self) -> List[str]:
        return list(self._configs)

    def get(self, key: str) -> FilterConfig:
        try:
            return self._configs[key]
        except KeyError:
            raise UnknownFilterError(key) from None

    def state(self, key: str) -> FilterState:
        self.get(key)
        return self._states[key]

    def set_value(self, key: str, value: Any):
        self.state(key).value = value

    def set_active(self, key: str, active: Any):
        self.state(key).active = active

    def is_boolean(self, key: str) -> bool:
        return self.get(key).is_boolean

    def boolean_mode(self, key: str) -> Optional[BooleanMode]:
        return self.get(key).boolean_mode

    def reset(self, key: str):
        """Return one filter to its initial inactive state."""
        self._states[key] = FilterState.initial(self.get(key))

    def is_active(self, key: str) -> bool:
        """True if the filter currently constrains its dimension."""
        active = self.state(key).active
        if isinstance(active, list):
            return bool(active)
        return active is True

    def dimension_configs(self) -> Dict[str, FilterConfig]:
        """One representative config per distinct dimension, in declaration order."""
        result: Dict[str, FilterConfig] = {}
        for config in self._configs.values():
            result.setdefault(config.index_name, config)
        return result
