from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class AccessKind(str, Enum):
    """Memory operations understood by the cache."""

    LOAD = "L"
    STORE = "S"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class AccessRecord:
    """One memory access from a trace.

    `size` is the access width in bytes. The cache moves whole blocks, so the
    simulator only carries it through to events and logs.
    """
    kind: AccessKind
    address: int
    size: int = 1

    @classmethod
    def load(cls, address: int, size: int = 1) -> AccessRecord:
        return cls(AccessKind.LOAD, address, size)

    @classmethod
    def store(cls, address: int, size: int = 1) -> AccessRecord:
        return cls(AccessKind.STORE, address, size)

    @property
    def is_store(self) -> bool:
        return self.kind is AccessKind.STORE
