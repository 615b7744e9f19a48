from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

import numpy as np

from ..config import CacheGeometry
from ..errors import CacheInvariantError
from ..trace.record import AccessKind, AccessRecord
from .address import decode_address
from .recency import RecencyTracker
from .stats import CacheStats
from .store import CacheStore


class AccessOutcome(str, Enum):
    HIT = "hit"
    MISS = "miss"
    MISS_EVICTION = "miss_eviction"

    def __str__(self) -> str:
        return self.value


@dataclass
class AccessEvent:
    """What a single access did to the cache."""
    seq: int
    kind: AccessKind
    address: int
    size: int
    set_index: int
    tag: int
    way: int
    outcome: AccessOutcome
    evicted_tag: int | None = None
    writeback: bool = False

    def to_dict(self) -> dict:
        return {
            'seq': self.seq,
            'kind': str(self.kind),
            'address': self.address,
            'size': self.size,
            'set': self.set_index,
            'tag': self.tag,
            'way': self.way,
            'outcome': str(self.outcome),
            'evicted_tag': self.evicted_tag,
            'writeback': self.writeback,
        }


class AccessProcessor:
    """
    A write-back, write-allocate, LRU set-associative cache.

    Owns the line grid, the recency order and the statistics of one run and
    drives them through the hit, clean-miss and eviction-miss transitions.
    Counters are updated in the same step as the state change that causes
    them, so `stats` is consistent between any two accesses.
    """
    def __init__(self, geometry: CacheGeometry):
        self.geometry = geometry
        self.store = CacheStore(geometry)
        self.recency = RecencyTracker(geometry.num_sets, geometry.associativity)
        self.stats = CacheStats()
        self._seq = 0

    def access(self, record: AccessRecord) -> AccessEvent:
        """Replays one access record."""
        set_index, tag = decode_address(record.address, self.geometry)
        is_store = record.kind is AccessKind.STORE
        block_size = self.geometry.block_size
        self._seq += 1

        # --- Hit ---
        way = self.store.lookup(set_index, tag)
        if way is not None:
            self.stats.hits += 1
            self.recency.mark_most_recent(set_index, way)
            if is_store and not self.store.is_dirty(set_index, way):
                self.store.set_dirty(set_index, way, True)
                self.stats.dirty_bytes += block_size
            return self._event(record, set_index, tag, way, AccessOutcome.HIT)

        # --- Miss into an empty way ---
        way = self.store.first_empty_way(set_index)
        if way is not None:
            self.stats.misses += 1
            self.recency.insert_most_recent(set_index, way)
            self.store.install(set_index, way, tag, dirty=is_store)
            if is_store:
                self.stats.dirty_bytes += block_size
            return self._event(record, set_index, tag, way, AccessOutcome.MISS)

        # --- Miss with eviction ---
        self.stats.misses += 1
        self.stats.evictions += 1
        way = self.recency.evict_least_recent(set_index)
        evicted_tag = self.store.tag_at(set_index, way)
        was_dirty = self.store.is_dirty(set_index, way)
        if was_dirty:
            self.stats.dirty_evictions += block_size
        self.stats.dirty_bytes += (int(is_store) - int(was_dirty)) * block_size
        self.store.install(set_index, way, tag, dirty=is_store)
        self.recency.insert_most_recent(set_index, way)
        return self._event(record, set_index, tag, way, AccessOutcome.MISS_EVICTION,
                           evicted_tag=evicted_tag, writeback=was_dirty)

    def run(self, records: Iterable[AccessRecord]) -> CacheStats:
        """Replays a whole sequence and returns the final statistics."""
        for record in records:
            self.access(record)
        return self.stats.snapshot()

    def check_invariants(self):
        """Raises CacheInvariantError if the bookkeeping is inconsistent."""
        filled = {int(s) for s in np.flatnonzero(self.store.occupied.any(axis=1))}
        for set_index in sorted(filled | set(self.recency.tracked_sets())):
            order = self.recency.order(set_index)
            if len(order) != len(set(order)):
                raise CacheInvariantError(f"Duplicate ways in recency order of set {set_index}: {order}")
            if set(order) != self.store.occupied_ways(set_index):
                raise CacheInvariantError(
                    f"Set {set_index}: recency order {sorted(order)} != occupied ways "
                    f"{sorted(self.store.occupied_ways(set_index))}")

        expected = self.store.dirty_line_count() * self.geometry.block_size
        if self.stats.dirty_bytes != expected:
            raise CacheInvariantError(
                f"dirty_bytes is {self.stats.dirty_bytes}, dirty lines account for {expected}")

    def _event(self, record: AccessRecord, set_index: int, tag: int, way: int,
               outcome: AccessOutcome, evicted_tag: int | None = None,
               writeback: bool = False) -> AccessEvent:
        return AccessEvent(
            seq=self._seq,
            kind=record.kind,
            address=record.address,
            size=record.size,
            set_index=set_index,
            tag=tag,
            way=way,
            outcome=outcome,
            evicted_tag=evicted_tag,
            writeback=writeback,
        )
