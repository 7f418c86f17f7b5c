import pytest
from pycsim.config import CacheGeometry
from pycsim.errors import ResourceExhaustedError
from pycsim.runtime.cache_table import CacheLine, CacheTable


@pytest.fixture
def table():
    return CacheTable(CacheGeometry(s=1, E=4, b=0))


def test_new_table_is_empty(table):
    assert table.set_num == 2
    assert table.associativity == 4
    for set_index in range(2):
        assert table.lines(set_index) == [CacheLine(tag=0, valid=False, dirty=False, recency=0)] * 4
        assert table.find_empty(set_index) == 0
        assert not table.is_full(set_index)


def test_find_hit_requires_valid_line(table):
    # An invalid line with a zero tag is not a hit for tag 0
    assert table.find_hit(0, 0) is None
    table.install(0, 2, tag=0, recency=5)
    assert table.find_hit(0, 0) == 2
    assert table.find_hit(1, 0) is None


def test_find_empty_scans_in_line_order(table):
    table.install(0, 0, tag=7, recency=0)
    table.install(0, 2, tag=8, recency=1)
    assert table.find_empty(0) == 1
    table.install(0, 1, tag=9, recency=2)
    assert table.find_empty(0) == 3
    table.install(0, 3, tag=10, recency=3)
    assert table.find_empty(0) is None
    assert table.is_full(0)


def test_find_victim_picks_smallest_recency(table):
    for line, recency in enumerate([9, 4, 7, 6]):
        table.install(0, line, tag=line, recency=recency)
    assert table.find_victim(0) == 1
    table.touch(0, 1, 10)
    assert table.find_victim(0) == 3


def test_find_victim_ties_go_to_lowest_index(table):
    for line in range(4):
        table.install(1, line, tag=line + 100, recency=3)
    assert table.find_victim(1) == 0


def test_install_and_dirty_flags(table):
    table.install(1, 3, tag=0xFFFF_FFFF_FFFF_FFFF, recency=12, dirty=False)
    assert not table.is_dirty(1, 3)
    table.mark_dirty(1, 3)
    assert table.line(1, 3) == CacheLine(tag=0xFFFF_FFFF_FFFF_FFFF, valid=True, dirty=True, recency=12)
    assert table.dirty_line_count() == 1

    # Reinstalling recycles the line and clears the dirty bit
    table.install(1, 3, tag=1, recency=13)
    assert table.line(1, 3) == CacheLine(tag=1, valid=True, dirty=False, recency=13)
    assert table.dirty_line_count() == 0


def test_touch_only_changes_recency(table):
    table.install(0, 0, tag=5, recency=1, dirty=True)
    table.touch(0, 0, 42)
    assert table.line(0, 0) == CacheLine(tag=5, valid=True, dirty=True, recency=42)


def test_unallocatable_table_raises_resource_error():
    # 2**62 sets cannot be indexed, let alone allocated
    with pytest.raises(ResourceExhaustedError) as exc_info:
        CacheTable(CacheGeometry(s=62, E=4, b=0))
    assert exc_info.value.what == "cache table"
    assert isinstance(exc_info.value, MemoryError)
