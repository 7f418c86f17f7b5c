from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class Operation(str, Enum):
    """Memory access kinds found in a trace."""

    LOAD = "L"
    STORE = "S"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class MemoryAccess:
    """A single trace record.

    `size` is carried for reporting only; every access is treated as
    contained in the block its address falls in.
    """
    address: int
    size: int
    operation: Operation

    @property
    def is_store(self) -> bool:
        return self.operation is Operation.STORE

    def __str__(self) -> str:
        return f"{self.operation} {self.address:x},{self.size}"
