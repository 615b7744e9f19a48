from __future__ import annotations
from collections import OrderedDict
from typing import Dict, List, Set

from ..errors import CacheInvariantError


class RecencyTracker:
    """
    LRU order of the occupied ways of every set.

    Each set keeps an OrderedDict keyed by way index, most recently used
    first. Keys are addressed by value, so promoting a way moves that exact
    entry wherever it sits in the order. Sets get their order lazily on
    first fill; an untouched set has no occupied ways.
    """
    def __init__(self, num_sets: int, associativity: int):
        self.num_sets = num_sets
        self.associativity = associativity
        self._orders: Dict[int, OrderedDict[int, None]] = {}

    def _order(self, set_index: int) -> OrderedDict[int, None]:
        if not 0 <= set_index < self.num_sets:
            raise CacheInvariantError(f"Set index {set_index} out of range [0, {self.num_sets}).")
        order = self._orders.get(set_index)
        if order is None:
            order = self._orders[set_index] = OrderedDict()
        return order

    def mark_most_recent(self, set_index: int, way: int):
        """Promotes an occupied way to most recently used."""
        order = self._order(set_index)
        if way not in order:
            raise CacheInvariantError(f"Way {way} of set {set_index} is not tracked as occupied.")
        order.move_to_end(way, last=False)

    def insert_most_recent(self, set_index: int, way: int):
        """Records a newly filled way as most recently used."""
        order = self._order(set_index)
        if not 0 <= way < self.associativity:
            raise CacheInvariantError(f"Way {way} out of range [0, {self.associativity}).")
        if way in order:
            raise CacheInvariantError(f"Way {way} of set {set_index} is already tracked.")
        order[way] = None
        order.move_to_end(way, last=False)

    def evict_least_recent(self, set_index: int) -> int:
        """Removes and returns the least recently used way of a full set."""
        order = self._order(set_index)
        if len(order) < self.associativity:
            raise CacheInvariantError(
                f"Eviction requested on set {set_index} holding {len(order)} of "
                f"{self.associativity} ways.")
        way, _ = order.popitem(last=True)
        return way

    def least_recent(self, set_index: int) -> int | None:
        order = self._order(set_index)
        return next(reversed(order)) if order else None

    def order(self, set_index: int) -> List[int]:
        """Occupied ways, most recently used first."""
        return list(self._order(set_index))

    def occupied_ways(self, set_index: int) -> Set[int]:
        return set(self._order(set_index))

    def tracked_sets(self) -> List[int]:
        return sorted(s for s, order in self._orders.items() if order)
