from .errors import CrossfilterError, ConfigurationError, UnknownFilterError, BitmaskCapacityError
from .records import resolve_attribute
from .bitmask import BitmaskMap, build_map, encode, enrich
from .dimension import Crossfilter, Dimension
from .registry import FilterRegistry, FilterConfig, FilterState, FilterMethod, BooleanMode
from .sorting import SortSpec, sorted_content
from .history import FilterHistory, HistoryEntry
from .controller import CrossfilterController
from .aggregate import group_counts, reduce_sum, histogram, to_dataframe

__all__ = [
    "CrossfilterError",
    "ConfigurationError",
    "UnknownFilterError",
    "BitmaskCapacityError",
    "resolve_attribute",
    "BitmaskMap",
    "build_map",
    "encode",
    "enrich",
    "Crossfilter",
    "Dimension",
    "FilterRegistry",
    "FilterConfig",
    "FilterState",
    "FilterMethod",
    "BooleanMode",
    "SortSpec",
    "sorted_content",
    "FilterHistory",
    "HistoryEntry",
    "CrossfilterController",
    "group_counts",
    "reduce_sum",
    "histogram",
    "to_dataframe",
]
