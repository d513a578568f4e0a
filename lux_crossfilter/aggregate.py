"""
Aggregations over a controller's surviving records.
"""

from collections import Counter
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from .config import BITMASK_ATTRIBUTE_PREFIX
from .dimension import sort_key
from .records import resolve_attribute


def group_counts(controller, key: str) -> Dict[Any, int]:
    """
    Count surviving records per value of a filter's dimension.

    For in_array filters every selectable value gets a count (a record is
    counted once per value it carries); records with no values are counted
    under None. Other filters count by the raw property value, missing values
    under None.

    Args:
        controller: CrossfilterController
        key: Filter key

    Returns:
        Ordered dict of value -> count
    """
    config = controller.registry.get(key)
    content = controller.content

    if config.is_boolean:
        bitmask_map = controller.bitmask_map(key)
        counts = {value: 0 for value in (bitmask_map.bits if bitmask_map else {})}
        for record in content:
            mask = resolve_attribute(record, config.index_attribute) or 0
            if not mask:
                counts[None] = counts.get(None, 0) + 1
                continue
            for value in bitmask_map.decode(mask):
                counts[value] += 1
        return counts

    counter = Counter(resolve_attribute(record, config.source_attribute) for record in content)
    return {value: counter[value] for value in sorted(counter, key=sort_key)}


def reduce_sum(controller, attribute: str) -> float:
    """Sum of a numeric attribute over the surviving records (missing values skipped)."""
    values = [resolve_attribute(record, attribute) for record in controller.content]
    return sum(v for v in values if v is not None)


def histogram(controller, attribute: str, bins: int = 10) -> Tuple[List[int], List[float]]:
    """
    Histogram of a numeric attribute over the surviving records.

    Returns:
        (counts, bin_edges) as plain lists
    """
    values = [resolve_attribute(record, attribute) for record in controller.content]
    data = np.asarray([v for v in values if v is not None], dtype=float)
    counts, edges = np.histogram(data, bins=bins)
    return counts.tolist(), edges.tolist()


def to_dataframe(records: List[Any], columns: Optional[List[str]] = None) -> pd.DataFrame:
    """
    Tabulate records. Without `columns`, dict records keep every key and other
    records use their instance attributes; cached bitmask attributes are
    dropped either way.
    """
    if columns:
        rows = [{column: resolve_attribute(record, column) for column in columns} for record in records]
        return pd.DataFrame(rows, columns=columns)

    rows = []
    for record in records:
        row = dict(record) if isinstance(record, dict) else dict(vars(record))
        rows.append({k: v for k, v in row.items() if not str(k).startswith(BITMASK_ATTRIBUTE_PREFIX)})
    return pd.DataFrame(rows)
