import random
import pytest
from pycsim.config import CacheGeometry
from pycsim.runtime.engine import ReplacementEngine
from pycsim.runtime.stats import SimulationStats
from pycsim.trace.access import MemoryAccess, Operation

L, S = Operation.LOAD, Operation.STORE


def acc(op, address, size=1):
    return MemoryAccess(address=address, size=size, operation=op)


@pytest.fixture
def one_line_engine():
    """s=0, E=1, b=0: a single one-byte line."""
    return ReplacementEngine(CacheGeometry(s=0, E=1, b=0), record=True)


def test_conflicting_loads_evict(one_line_engine):
    stats = one_line_engine.run([acc(L, 0), acc(L, 1)])
    assert stats == SimulationStats(hits=0, misses=2, evictions=1, dirty_bytes=0, dirty_evictions=0)
    assert [o.tags for o in one_line_engine.outcomes] == [("miss",), ("miss", "eviction")]


def test_store_then_load_hits_dirty_line(one_line_engine):
    stats = one_line_engine.run([acc(S, 0), acc(L, 0)])
    assert stats == SimulationStats(hits=1, misses=1, evictions=0, dirty_bytes=1, dirty_evictions=0)
    assert one_line_engine.table.line(0, 0).dirty


def test_dirty_line_eviction_is_flushed(one_line_engine):
    stats = one_line_engine.run([acc(S, 0), acc(L, 1)])
    assert stats == SimulationStats(hits=0, misses=2, evictions=1, dirty_bytes=0, dirty_evictions=1)
    second = one_line_engine.outcomes[1]
    assert second.eviction and second.dirty_eviction
    assert not one_line_engine.table.line(0, 0).dirty


def test_repeated_stores_count_dirty_bytes_once():
    engine = ReplacementEngine(CacheGeometry(s=2, E=2, b=4))
    engine.step(acc(L, 0x100))
    for _ in range(5):
        engine.step(acc(S, 0x104, size=4))
    stats = engine.stats
    assert stats.dirty_bytes == 16
    assert stats.hits == 5
    assert stats.misses == 1


def test_store_miss_with_eviction_makes_new_line_dirty():
    engine = ReplacementEngine(CacheGeometry(s=0, E=1, b=3))
    engine.run([acc(S, 0x00), acc(S, 0x08)])
    # First block flushed on eviction, second block resident and dirty
    assert engine.stats == SimulationStats(hits=0, misses=2, evictions=1, dirty_bytes=8, dirty_evictions=8)


@pytest.mark.parametrize("E", [1, 2, 4, 8])
def test_capacity_law(E):
    engine = ReplacementEngine(CacheGeometry(s=0, E=E, b=0))
    for tag in range(E):
        engine.step(acc(L, tag))
    assert engine.stats.misses == E
    assert engine.stats.evictions == 0

    outcome = engine.step(acc(L, E))
    assert engine.stats.misses == E + 1
    assert engine.stats.evictions == 1
    assert outcome.eviction


def test_lru_victim_is_least_recently_used():
    engine = ReplacementEngine(CacheGeometry(s=0, E=2, b=0), record=True)
    engine.run([acc(L, 0xA), acc(L, 0xB), acc(L, 0xA), acc(L, 0xC), acc(L, 0xA), acc(L, 0xB)])
    # 0xB is evicted by 0xC since 0xA was touched after it; 0xA stays resident
    assert [o.tags for o in engine.outcomes] == [
        ("miss",), ("miss",), ("hit",), ("miss", "eviction"), ("hit",), ("miss", "eviction"),
    ]
    tags = sorted(line.tag for line in engine.table.lines(0))
    assert tags == [0xA, 0xB]


def test_recency_is_the_access_index():
    engine = ReplacementEngine(CacheGeometry(s=0, E=2, b=0))
    engine.run([acc(L, 1), acc(L, 2), acc(L, 1)])
    assert [line.recency for line in engine.table.lines(0)] == [2, 1]


def test_sets_are_independent():
    # s=1, b=0: even addresses go to set 0, odd to set 1
    engine = ReplacementEngine(CacheGeometry(s=1, E=1, b=0), record=True)
    engine.run([acc(L, 0), acc(L, 1), acc(L, 0), acc(L, 1)])
    assert engine.stats.hits == 2
    assert [o.set_index for o in engine.outcomes] == [0, 1, 0, 1]


def test_size_does_not_split_accesses():
    # An 8-byte load at the last byte of a block still touches one block only
    engine = ReplacementEngine(CacheGeometry(s=0, E=4, b=2))
    engine.run([acc(L, 0x3, size=8), acc(L, 0x4)])
    assert engine.stats.misses == 2
    assert engine.table.find_empty(0) == 2


def test_outcomes_not_recorded_by_default():
    engine = ReplacementEngine(CacheGeometry(s=0, E=1, b=0))
    outcome = engine.step(acc(L, 0))
    assert outcome.index == 0
    assert engine.outcomes == []


def _random_trace(rng, n, address_bits=10):
    ops = [L, S]
    return [acc(rng.choice(ops), rng.getrandbits(address_bits)) for _ in range(n)]


@pytest.mark.parametrize("seed, s, E, b", [
    (1, 0, 1, 0),
    (2, 2, 2, 2),
    (3, 3, 4, 1),
    (4, 1, 8, 3),
])
def test_invariants_hold_on_random_traces(seed, s, E, b):
    rng = random.Random(seed)
    geometry = CacheGeometry(s=s, E=E, b=b)
    engine = ReplacementEngine(geometry)
    for n, access in enumerate(_random_trace(rng, 500), start=1):
        set_index, _ = engine.decoder.decode(access.address)
        was_full = engine.table.is_full(set_index)
        before = engine.table.lines(set_index)
        evictions_before = engine.stats.evictions

        outcome = engine.step(access)
        stats = engine.stats

        assert stats.hits + stats.misses == n
        assert stats.dirty_bytes >= 0
        # Dirty bytes always equal the dirty lines resident in the cache
        assert stats.dirty_bytes == engine.table.dirty_line_count() * geometry.block_size
        if stats.evictions > evictions_before:
            assert was_full
            oldest = min(line.recency for line in before)
            victim = next(i for i, line in enumerate(before) if line.recency == oldest)
            assert engine.table.line(set_index, victim).tag == outcome.tag
        # At most one valid line per tag in a set
        valid_tags = [line.tag for line in engine.table.lines(set_index) if line.valid]
        assert len(valid_tags) == len(set(valid_tags))
