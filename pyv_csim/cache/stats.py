from __future__ import annotations
from dataclasses import dataclass, asdict, replace
from typing import Dict


@dataclass
class CacheStats:
    """Running counters of a simulation."""
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    dirty_bytes: int = 0  # resident dirty bytes, goes up and down
    dirty_evictions: int = 0  # bytes written back by dirty evictions

    @property
    def accesses(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        return self.hits / self.accesses if self.accesses else 0.0

    def snapshot(self) -> CacheStats:
        return replace(self)

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)
