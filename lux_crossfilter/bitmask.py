"""
Bitmask encoding for multi-valued attributes (tags, colours, countries...).

Every distinct value gets its own bit, so a record's whole set of values
collapses into one integer and membership tests become single AND operations.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .errors import BitmaskCapacityError
from .records import as_values, resolve_attribute, write_attribute

logger = logging.getLogger(__name__)


@dataclass
class BitmaskMap:
    """
    Mapping of distinct attribute value -> unique power-of-two bit.

    Bits are handed out in first-seen order. `total_mask` has every assigned
    bit set. With max_bits=None the map widens without limit; otherwise
    assigning past the limit raises BitmaskCapacityError.
    """
    attribute: str
    bits: Dict[Any, int] = field(default_factory=dict)
    total_mask: int = 0
    max_bits: Optional[int] = None

    def __len__(self):
        return len(self.bits)

    def __contains__(self, value):
        return value in self.bits

    def bit_for(self, value: Any) -> int:
        """Bit assigned to `value`, or 0 if the value was never seen."""
        return self.bits.get(value, 0)

    def assign(self, value: Any) -> int:
        """Return the bit for `value`, assigning the next free one if needed."""
        if value in self.bits:
            return self.bits[value]
        if self.max_bits is not None and len(self.bits) >= self.max_bits:
            raise BitmaskCapacityError(
                f"Attribute '{self.attribute}' has more than {self.max_bits} distinct values; "
                f"cannot assign a bit to {value!r}"
            )
        bit = 1 << len(self.bits)
        self.bits[value] = bit
        self.total_mask ^= bit
        return bit

    def encode(self, values: Iterable[Any], grow: bool = False) -> int:
        """
        Combine the bits of every value into one mask. Falsy values are
        skipped. Unseen values are assigned a bit when grow=True and
        contribute nothing otherwise.
        """
        mask = 0
        for value in values:
            if not value:
                continue
            if grow:
                mask |= self.assign(value)
            else:
                mask |= self.bits.get(value, 0)
        return mask

    def decode(self, mask: int) -> List[Any]:
        """Values whose bits are set in `mask`, in bit order."""
        return [value for value, bit in self.bits.items() if mask & bit]


def build_map(records: Iterable[Any], attribute: str,
              max_bits: Optional[int] = None, into: Optional[BitmaskMap] = None) -> BitmaskMap:
    """
    Collect every distinct value of `attribute` across the records (arrays
    are flattened) and assign bit 1 << i to the i-th value seen.

    Args:
        records: The working set
        attribute: Name of the multi-valued attribute
        max_bits: Optional capacity limit
        into: Existing map to extend instead of starting empty

    Returns:
        A populated BitmaskMap
    """
    bitmask_map = into if into is not None else BitmaskMap(attribute=attribute, max_bits=max_bits)
    for record in records:
        for value in as_values(resolve_attribute(record, attribute)):
            if value:
                bitmask_map.assign(value)
    logger.debug("Bitmask map for '%s': %d distinct value(s)", attribute, len(bitmask_map))
    return bitmask_map


def encode(record: Any, attribute: str, bitmask_map: BitmaskMap, grow: bool = False) -> int:
    """Encode one record's values for `attribute`. No values encodes to 0."""
    return bitmask_map.encode(as_values(resolve_attribute(record, attribute)), grow=grow)


def enrich(records: List[Any], attribute: str, target_attribute: str,
           bitmask_map: BitmaskMap, grow: bool = False) -> List[Any]:
    """
    Encode every record and cache the mask on it as `target_attribute`.

    Mutates records in-place and returns the same list. Idempotent:
    an existing cached mask is overwritten.
    """
    for record in records:
        write_attribute(record, target_attribute, encode(record, attribute, bitmask_map, grow=grow))
    return records
