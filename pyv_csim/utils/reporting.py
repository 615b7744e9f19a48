from __future__ import annotations
import json
from pathlib import Path
from typing import List, Dict, Any
from ..config import SimConfig
from ..cache.processor import AccessEvent, AccessOutcome
from ..cache.stats import CacheStats
from . import viz


def format_summary(stats: CacheStats) -> str:
    """The one-line summary printed at the end of a run."""
    return (f"hits:{stats.hits} misses:{stats.misses} evictions:{stats.evictions} "
            f"dirty_bytes_in_cache:{stats.dirty_bytes} dirty_bytes_evicted:{stats.dirty_evictions}")


def _per_set_activity(events: List[AccessEvent]) -> Dict[int, Dict[str, int]]:
    """Counts hits, misses, evictions and write-backs of every touched set."""
    activity: Dict[int, Dict[str, int]] = {}
    for event in events:
        counts = activity.setdefault(
            event.set_index, {"hits": 0, "misses": 0, "evictions": 0, "writebacks": 0})
        if event.outcome is AccessOutcome.HIT:
            counts["hits"] += 1
        else:
            counts["misses"] += 1
        if event.outcome is AccessOutcome.MISS_EVICTION:
            counts["evictions"] += 1
        if event.writeback:
            counts["writebacks"] += 1
    return dict(sorted(activity.items()))


def generate_report_json(events: List[AccessEvent], config: SimConfig, stats: CacheStats) -> Dict[str, Any]:
    """Generates a JSON-compatible dictionary describing a finished run."""
    geometry = config.geometry()
    sets = _per_set_activity(events)
    return {
        "stats": stats.to_dict(),
        "accesses": stats.accesses,
        "hit_rate": f"{stats.hit_rate:.2%}",
        "geometry": {
            "set_bits": geometry.set_bits,
            "block_bits": geometry.block_bits,
            "associativity": geometry.associativity,
            "num_sets": geometry.num_sets,
            "block_size": geometry.block_size,
            "capacity_bytes": geometry.num_sets * geometry.associativity * geometry.block_size,
        },
        "sets": {str(k): v for k, v in sets.items()},
        "config": config.__dict__,
    }


def generate_report(events: List[AccessEvent], config: SimConfig, stats: CacheStats):
    """Generates all report artifacts."""
    report_data = generate_report_json(events, config, stats)
    output_dir = Path(config.report_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    with open(output_dir / "report.json", "w") as f:
        json.dump(report_data, f, indent=4)

    timeline = [event.to_dict() for event in events]
    viz.export_set_activity(timeline, str(output_dir / "report.html"))

    print(viz.export_set_activity_ascii(timeline))

    print(f"\nReports generated in {output_dir.absolute()}")
    print(f"Hit rate: {report_data['hit_rate']} over {report_data['accesses']} accesses")
