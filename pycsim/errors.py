from __future__ import annotations


class CacheSimError(Exception):
    """Base class for fatal simulator errors."""


class ConfigError(CacheSimError, ValueError):
    """Invalid or missing cache configuration value."""

    def __init__(self, message: str, option: str | None = None):
        super().__init__(message)
        self.option = option


class TraceError(CacheSimError):
    """The trace source could not be read."""


class TraceFormatError(TraceError, ValueError):
    """A trace line does not match '<Op> <Addr>,<Size>'."""

    def __init__(self, source: str, line_no: int, line: str, reason: str):
        super().__init__(f"{source}:{line_no}: {reason}: {line!r}")
        self.source = source
        self.line_no = line_no
        self.line = line
        self.reason = reason


class ResourceExhaustedError(CacheSimError, MemoryError):
    """The host could not provide memory for the cache table or the trace."""

    def __init__(self, what: str, detail: str = ""):
        message = f"Unable to allocate {what}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
        self.what = what
