from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Tuple

from ..config import CacheGeometry
from ..trace.access import MemoryAccess
from .cache_table import CacheTable
from .decoder import AddressDecoder
from .stats import SimulationStats, StatsCollector


@dataclass(frozen=True)
class AccessOutcome:
    """What happened to the cache on one access."""
    index: int
    access: MemoryAccess
    set_index: int
    tag: int
    hit: bool
    eviction: bool = False
    dirty_eviction: bool = False

    @property
    def tags(self) -> Tuple[str, ...]:
        if self.hit:
            return ("hit",)
        if self.eviction:
            return ("miss", "eviction")
        return ("miss",)


class ReplacementEngine:
    """
    Write-back, write-allocate cache with LRU replacement.

    Accesses are processed strictly in order. The access index doubles as
    the recency clock, so every line touched gets a distinct timestamp.
    A line is always clean right after install; a store is what makes it
    dirty, and a dirty block's bytes are counted once until it is evicted.
    """

    def __init__(self, geometry: CacheGeometry, record: bool = False):
        self.geometry = geometry
        self.block_size = geometry.block_size
        self.decoder = AddressDecoder(geometry)
        self.table = CacheTable(geometry)
        self.record = record
        self.outcomes: List[AccessOutcome] = []
        self._stats = StatsCollector()
        self._clock = 0

    @property
    def stats(self) -> SimulationStats:
        return self._stats.snapshot()

    def _store(self, set_index: int, line: int):
        if not self.table.is_dirty(set_index, line):
            self.table.mark_dirty(set_index, line)
            self._stats.add_dirty(self.block_size)

    def step(self, access: MemoryAccess) -> AccessOutcome:
        """Applies one access to the cache and returns its outcome."""
        n = self._clock
        set_index, tag = self.decoder.decode(access.address)
        eviction = False
        dirty_eviction = False

        line = self.table.find_hit(set_index, tag)
        hit = line is not None
        if hit:
            self.table.touch(set_index, line, n)
            self._stats.record_hit()
        else:
            self._stats.record_miss()
            line = self.table.find_empty(set_index)
            if line is None:
                eviction = True
                self._stats.record_eviction()
                line = self.table.find_victim(set_index)
                if self.table.is_dirty(set_index, line):
                    dirty_eviction = True
                    self._stats.flush_dirty(self.block_size)
            self.table.install(set_index, line, tag, recency=n, dirty=False)

        if access.is_store:
            self._store(set_index, line)

        outcome = AccessOutcome(
            index=n,
            access=access,
            set_index=set_index,
            tag=tag,
            hit=hit,
            eviction=eviction,
            dirty_eviction=dirty_eviction,
        )
        if self.record:
            self.outcomes.append(outcome)
        self._clock += 1
        return outcome

    def run(self, trace: Iterable[MemoryAccess]) -> SimulationStats:
        for access in trace:
            self.step(access)
        return self.stats
