from __future__ import annotations
from typing import Set

import numpy as np

from ..config import CacheGeometry
from ..errors import CacheInvariantError


class CacheStore:
    """
    The set x way grid of line slots.

    Every slot attribute lives in one contiguous (num_sets, associativity)
    numpy array. Occupancy is an explicit flag; a tag value has no meaning
    while its slot is unoccupied.
    """
    def __init__(self, geometry: CacheGeometry):
        self.geometry = geometry
        shape = (geometry.num_sets, geometry.associativity)
        self.occupied = np.zeros(shape, dtype=bool)
        self.tags = np.zeros(shape, dtype=np.uint64)
        self.dirty = np.zeros(shape, dtype=bool)

    def lookup(self, set_index: int, tag: int) -> int | None:
        """Returns the way holding `tag` in the set, or None."""
        matches = np.flatnonzero(self.occupied[set_index] & (self.tags[set_index] == np.uint64(tag)))
        if len(matches) > 1:
            raise CacheInvariantError(
                f"Tag {tag:#x} is resident in ways {matches.tolist()} of set {set_index}.")
        return int(matches[0]) if len(matches) else None

    def first_empty_way(self, set_index: int) -> int | None:
        empty = np.flatnonzero(~self.occupied[set_index])
        return int(empty[0]) if len(empty) else None

    def install(self, set_index: int, way: int, tag: int, dirty: bool):
        """Fills a slot with a new block."""
        self.occupied[set_index, way] = True
        self.tags[set_index, way] = np.uint64(tag)
        self.dirty[set_index, way] = dirty

    def is_dirty(self, set_index: int, way: int) -> bool:
        return bool(self.dirty[set_index, way])

    def set_dirty(self, set_index: int, way: int, dirty: bool):
        self.dirty[set_index, way] = dirty

    def tag_at(self, set_index: int, way: int) -> int | None:
        if not self.occupied[set_index, way]:
            return None
        return int(self.tags[set_index, way])

    def occupied_ways(self, set_index: int) -> Set[int]:
        return {int(w) for w in np.flatnonzero(self.occupied[set_index])}

    def dirty_line_count(self) -> int:
        return int(np.count_nonzero(self.dirty & self.occupied))
