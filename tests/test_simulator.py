import logging
import pytest
from pyv_csim.config import SimConfig
from pyv_csim.cache.processor import AccessOutcome
from pyv_csim.runtime.simulator import run
from pyv_csim.trace.parser import iter_trace
from pyv_csim.trace.record import AccessRecord
from pyv_csim.errors import CacheInvariantError
from pyv_csim.utils.logging import set_verbose

TRACE = """\
L 10,1
S 18,8
L 20,4
S 110,4
L 210,1
L 10,1
S 310,1
"""


@pytest.fixture
def config():
    """4 sets, 16-byte blocks, 2-way."""
    return SimConfig(set_bits=2, block_bits=4, associativity=2)


def test_run_returns_events_and_stats(config):
    events, stats = run(iter_trace(TRACE.splitlines()), config)

    assert len(events) == 7
    assert [e.outcome for e in events] == [
        AccessOutcome.MISS,           # 0x10: set 1, tag 0
        AccessOutcome.HIT,            # 0x18: same block
        AccessOutcome.MISS,           # 0x20: set 2
        AccessOutcome.MISS,           # 0x110: set 1, tag 4
        AccessOutcome.MISS_EVICTION,  # 0x210: set 1, tag 8 evicts dirty tag 0
        AccessOutcome.MISS_EVICTION,  # 0x10: evicts dirty tag 4
        AccessOutcome.MISS_EVICTION,  # 0x310: evicts clean tag 8
    ]
    assert events[4].writeback is True
    assert events[5].writeback is True
    assert events[6].writeback is False
    assert (stats.hits, stats.misses, stats.evictions) == (1, 6, 3)
    # 0x10 and 0x110 were written back, 0x310 is resident and dirty
    assert stats.dirty_evictions == 32
    assert stats.dirty_bytes == 16


def test_run_without_keeping_events(config):
    config.keep_events = False
    events, stats = run([AccessRecord.load(0), AccessRecord.load(0)], config)
    assert events == []
    assert (stats.hits, stats.misses) == (1, 1)


def test_run_with_invariant_checks(config, monkeypatch):
    config.check_invariants = True
    calls = []
    from pyv_csim.cache.processor import AccessProcessor
    original = AccessProcessor.check_invariants

    def spy(self):
        calls.append(1)
        return original(self)

    monkeypatch.setattr(AccessProcessor, "check_invariants", spy)
    run(iter_trace(TRACE.splitlines()), config)
    assert len(calls) == 7


def test_run_propagates_invariant_errors(config, monkeypatch):
    config.check_invariants = True
    from pyv_csim.cache.processor import AccessProcessor

    def broken(self):
        raise CacheInvariantError("corrupted")

    monkeypatch.setattr(AccessProcessor, "check_invariants", broken)
    with pytest.raises(CacheInvariantError):
        run([AccessRecord.load(0)], config)


def test_run_rejects_invalid_geometry():
    with pytest.raises(ValueError, match="Associativity"):
        run([], SimConfig(associativity=0))


def test_verbose_logs_every_access(config, caplog):
    set_verbose(True)
    try:
        with caplog.at_level(logging.DEBUG, logger="pyv_csim"):
            run(iter_trace(TRACE.splitlines()), config)
    finally:
        set_verbose(False)

    assert caplog.text.count("Hit, set:") == 1
    assert caplog.text.count("Miss Eviction") == 3
    assert "victim: 0x10 (write-back)" in caplog.text
