from __future__ import annotations
import os
import re
from typing import Iterable, List

from ..errors import ResourceExhaustedError, TraceError, TraceFormatError
from ..utils.logging import get_logger
from .access import MemoryAccess, Operation

logger = get_logger(__name__)

MAX_ADDRESS = (1 << 64) - 1
MAX_SIZE = (1 << 64) - 1
# Decimal digits of MAX_SIZE; longer tokens are rejected before int()
_MAX_SIZE_DIGITS = 20

# '<Op> <Addr>,<Size>': one space after the op, hex address without prefix
_LINE_RE = re.compile(r"(?P<op>[LS]) (?P<addr>[0-9a-fA-F]+),(?P<size>[0-9]+)")


def _parse_line(line: str, line_no: int, source: str) -> MemoryAccess:
    text = line.rstrip()
    if not text:
        raise TraceFormatError(source, line_no, line, "Empty trace line")
    if text[0] not in "LS":
        raise TraceFormatError(source, line_no, line, f"Unknown operation '{text[0]}'")
    if "," not in text:
        raise TraceFormatError(source, line_no, line, "Missing ',' between address and size")

    m = _LINE_RE.fullmatch(text)
    if m is None:
        raise TraceFormatError(source, line_no, line, "Invalid trace format")

    address = int(m.group("addr"), 16)
    if address > MAX_ADDRESS:
        raise TraceFormatError(source, line_no, line, "Invalid address input, exceeds 64 bits")

    size_digits = m.group("size").lstrip("0")
    if len(size_digits) > _MAX_SIZE_DIGITS or int(size_digits or "0") > MAX_SIZE:
        raise TraceFormatError(source, line_no, line, "Invalid size input, exceeds 64 bits")

    return MemoryAccess(
        address=address,
        size=int(size_digits or "0"),
        operation=Operation(m.group("op")),
    )


def parse_trace_lines(lines: Iterable[str], source: str = "<trace>") -> List[MemoryAccess]:
    """Parses trace text into an ordered list of accesses.

    The first malformed line aborts parsing with a TraceFormatError; no
    partial trace is ever returned.
    """
    trace: List[MemoryAccess] = []
    try:
        for line_no, line in enumerate(lines, start=1):
            trace.append(_parse_line(line, line_no, source))
    except MemoryError as e:
        raise ResourceExhaustedError("trace", f"{len(trace)} records buffered from {source}") from e
    return trace


def load_trace(path: str) -> List[MemoryAccess]:
    """Loads a trace file, one '<Op> <Addr>,<Size>' record per line."""
    # open() would treat an int as an inherited file descriptor
    if not isinstance(path, (str, os.PathLike)):
        raise TraceError(f"Trace path must be a file name, got {path!r}")
    try:
        f = open(path, "r")
    except OSError as e:
        raise TraceError(f"Error opening '{path}': {e.strerror or e}") from e

    with f:
        try:
            trace = parse_trace_lines(f, source=str(path))
        except UnicodeDecodeError as e:
            raise TraceError(f"Error reading '{path}': {e}") from e

    logger.debug("Loaded %d accesses from %s", len(trace), path)
    return trace
