from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict


@dataclass(frozen=True)
class SimulationStats:
    """Final (or intermediate) counters of a simulation run."""
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    dirty_bytes: int = 0
    dirty_evictions: int = 0

    @property
    def accesses(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        if self.accesses == 0:
            return 0.0
        return self.hits / self.accesses

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class StatsCollector:
    """Accumulates per-access counters. dirty_bytes never goes below zero."""

    def __init__(self):
        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self.dirty_bytes = 0
        self.dirty_evictions = 0

    def record_hit(self):
        self.hits += 1

    def record_miss(self):
        self.misses += 1

    def record_eviction(self):
        self.evictions += 1

    def add_dirty(self, num_bytes: int):
        self.dirty_bytes += num_bytes

    def flush_dirty(self, num_bytes: int):
        """Moves a dirty block's bytes from resident to evicted."""
        if num_bytes > self.dirty_bytes:
            raise ValueError(
                f"Dirty byte underflow! Cannot flush {num_bytes} bytes with {self.dirty_bytes} resident."
            )
        self.dirty_bytes -= num_bytes
        self.dirty_evictions += num_bytes

    def snapshot(self) -> SimulationStats:
        return SimulationStats(
            hits=self.hits,
            misses=self.misses,
            evictions=self.evictions,
            dirty_bytes=self.dirty_bytes,
            dirty_evictions=self.dirty_evictions,
        )
