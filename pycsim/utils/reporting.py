from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Dict, List, Sequence

from ..config import CacheGeometry, SimConfig
from ..runtime.engine import AccessOutcome
from ..runtime.stats import SimulationStats
from . import viz


def format_outcome(outcome: AccessOutcome) -> str:
    """Formats one verbose line, e.g. 'S 32752,8 miss eviction' (decimal address)."""
    access = outcome.access
    return f"{access.operation} {access.address},{access.size} {' '.join(outcome.tags)}"


def print_verbose(outcomes: Sequence[AccessOutcome]):
    for outcome in outcomes:
        print(format_outcome(outcome))


def format_summary(stats: SimulationStats) -> str:
    return (
        f"hits:{stats.hits} misses:{stats.misses} evictions:{stats.evictions} "
        f"dirty_bytes_in_cache:{stats.dirty_bytes} dirty_bytes_evicted:{stats.dirty_evictions}"
    )


def per_set_activity(outcomes: Sequence[AccessOutcome]) -> List[Dict[str, int]]:
    """Aggregates outcomes per touched set, ordered by set index."""
    sets: Dict[int, Dict[str, int]] = {}
    for outcome in outcomes:
        row = sets.setdefault(outcome.set_index, {
            "set": outcome.set_index, "hits": 0, "misses": 0, "evictions": 0, "dirty_evictions": 0,
        })
        if outcome.hit:
            row["hits"] += 1
        else:
            row["misses"] += 1
        if outcome.eviction:
            row["evictions"] += 1
        if outcome.dirty_eviction:
            row["dirty_evictions"] += 1
    return [sets[k] for k in sorted(sets)]


def generate_report_json(outcomes: Sequence[AccessOutcome], geometry: CacheGeometry,
                         stats: SimulationStats) -> Dict[str, Any]:
    """Generates a JSON-compatible dictionary describing the run."""
    accesses = stats.accesses
    miss_rate = stats.misses / accesses if accesses else 0.0
    return {
        "stats": stats.to_dict(),
        "accesses": accesses,
        "hit_rate": f"{stats.hit_rate:.2%}",
        "miss_rate": f"{miss_rate:.2%}",
        "per_set": per_set_activity(outcomes),
        "geometry": geometry.to_dict(),
    }


def generate_report(outcomes: Sequence[AccessOutcome], config: SimConfig, stats: SimulationStats):
    """Generates all report artifacts."""
    report_data = generate_report_json(outcomes, config.geometry, stats)
    report_data["trace"] = config.trace
    output_dir = Path(config.report_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    with open(output_dir / "report.json", "w") as f:
        json.dump(report_data, f, indent=4)

    viz.export_set_activity(report_data["per_set"], str(output_dir / "sets.html"))

    if config.ascii_chart:
        print(viz.export_set_activity_ascii(report_data["per_set"]))

    print(f"\nReports generated in {output_dir.absolute()}")
    print(f"Hit rate: {report_data['hit_rate']}  Miss rate: {report_data['miss_rate']}")
