from __future__ import annotations
from typing import Iterable, List, Tuple

from ..cache.address import reconstruct_address
from ..cache.processor import AccessEvent, AccessOutcome, AccessProcessor
from ..cache.stats import CacheStats
from ..config import SimConfig
from ..trace.record import AccessRecord
from ..utils.logging import get_logger

logger = get_logger(__name__)


def run(records: Iterable[AccessRecord], config: SimConfig) -> Tuple[List[AccessEvent], CacheStats]:
    """
    Replays an access trace against a fresh cache built from the config.

    This is the main entry point for a simulation. Records are consumed one
    at a time, so a lazily parsed trace is never held in memory. Events are
    only retained when `config.keep_events` is set.
    """
    geometry = config.geometry()
    processor = AccessProcessor(geometry)
    events: List[AccessEvent] = []

    logger.info("Running simulation with s=%d, E=%d, b=%d (%d sets, %d-byte blocks)",
                geometry.set_bits, geometry.associativity, geometry.block_bits,
                geometry.num_sets, geometry.block_size)

    for record in records:
        event = processor.access(record)
        _log_event(event, geometry)
        if config.check_invariants:
            processor.check_invariants()
        if config.keep_events:
            events.append(event)

    return events, processor.stats.snapshot()


def _log_event(event: AccessEvent, geometry):
    if event.outcome is AccessOutcome.HIT:
        logger.debug("%s %x,%d Hit, set: %d tag: %#x",
                     event.kind, event.address, event.size, event.set_index, event.tag)
    elif event.outcome is AccessOutcome.MISS:
        logger.debug("%s %x,%d Miss, set: %d tag: %#x",
                     event.kind, event.address, event.size, event.set_index, event.tag)
    else:
        victim = reconstruct_address(event.evicted_tag, event.set_index, geometry)
        logger.debug("%s %x,%d Miss Eviction, set: %d tag: %#x victim: %#x%s",
                     event.kind, event.address, event.size, event.set_index, event.tag,
                     victim, " (write-back)" if event.writeback else "")
