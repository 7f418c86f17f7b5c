from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional
import numpy as np

from ..config import CacheGeometry
from ..errors import ResourceExhaustedError


@dataclass(frozen=True)
class CacheLine:
    """Read-only view of one line's state."""
    tag: int
    valid: bool
    dirty: bool
    recency: int


class CacheTable:
    """The set_num x E table of cache lines.

    Line state is kept column-wise in preallocated numpy arrays indexed by
    (set_index, line_index); lines are rewritten in place, never reallocated.
    All scans walk a set's lines from index 0 upwards. Scans are linear in
    E, which stays small for real cache shapes.
    """

    def __init__(self, geometry: CacheGeometry):
        self.set_num = geometry.set_num
        self.associativity = geometry.E
        shape = (self.set_num, self.associativity)
        try:
            self._tags = np.zeros(shape, dtype=np.uint64)
            self._valid = np.zeros(shape, dtype=bool)
            self._dirty = np.zeros(shape, dtype=bool)
            self._recency = np.zeros(shape, dtype=np.int64)
        except (MemoryError, ValueError) as e:
            # numpy reports shapes beyond its index range as ValueError
            raise ResourceExhaustedError(
                "cache table", f"{self.set_num} sets x {self.associativity} lines ({e})"
            ) from e

    def find_hit(self, set_index: int, tag: int) -> Optional[int]:
        """Returns the first valid line holding `tag`, or None."""
        matches = np.flatnonzero(self._valid[set_index] & (self._tags[set_index] == tag))
        if matches.size == 0:
            return None
        return int(matches[0])

    def find_empty(self, set_index: int) -> Optional[int]:
        """Returns the first invalid line of the set, or None if the set is full."""
        valid = self._valid[set_index]
        idx = int(np.argmin(valid))
        if valid[idx]:
            return None
        return idx

    def find_victim(self, set_index: int) -> int:
        """Returns the least recently used line of a full set.

        argmin reports the first occurrence of the minimum, so ties go to the
        lowest line index.
        """
        return int(np.argmin(self._recency[set_index]))

    def install(self, set_index: int, line_index: int, tag: int, recency: int, dirty: bool = False):
        self._tags[set_index, line_index] = tag
        self._valid[set_index, line_index] = True
        self._recency[set_index, line_index] = recency
        self._dirty[set_index, line_index] = dirty

    def touch(self, set_index: int, line_index: int, recency: int):
        self._recency[set_index, line_index] = recency

    def is_dirty(self, set_index: int, line_index: int) -> bool:
        return bool(self._dirty[set_index, line_index])

    def mark_dirty(self, set_index: int, line_index: int):
        self._dirty[set_index, line_index] = True

    def is_full(self, set_index: int) -> bool:
        return bool(self._valid[set_index].all())

    def line(self, set_index: int, line_index: int) -> CacheLine:
        return CacheLine(
            tag=int(self._tags[set_index, line_index]),
            valid=bool(self._valid[set_index, line_index]),
            dirty=bool(self._dirty[set_index, line_index]),
            recency=int(self._recency[set_index, line_index]),
        )

    def lines(self, set_index: int) -> List[CacheLine]:
        return [self.line(set_index, i) for i in range(self.associativity)]

    def dirty_line_count(self) -> int:
        return int(np.count_nonzero(self._valid & self._dirty))
