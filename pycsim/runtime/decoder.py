from __future__ import annotations
from ..config import CacheGeometry


def decode_address(address: int, s: int, b: int) -> tuple[int, int]:
    """Splits an address into (set_index, tag).

    The set index is the s bits right above the b block offset bits; the
    tag is everything above that. Callers guarantee s + b <= 64.
    """
    set_index = (address >> b) & ((1 << s) - 1)
    tag = address >> (s + b)
    return set_index, tag


class AddressDecoder:
    """Maps addresses to (set_index, tag) for a fixed cache geometry."""

    def __init__(self, geometry: CacheGeometry):
        self.s = geometry.s
        self.b = geometry.b
        self.set_mask = (1 << self.s) - 1
        self.tag_shift = self.s + self.b

    def decode(self, address: int) -> tuple[int, int]:
        return (address >> self.b) & self.set_mask, address >> self.tag_shift

    def block_address(self, set_index: int, tag: int) -> int:
        """Reconstructs the first byte address of the block held under (set_index, tag)."""
        return (tag << self.tag_shift) | (set_index << self.b)
