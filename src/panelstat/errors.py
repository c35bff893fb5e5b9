"""Errors raised by metric sources."""


class SourceError(Exception):
    """Base class for a failed read; the sampler skips the tick."""


class SourceUnavailable(SourceError):
    """The file or process behind a source is missing or unreadable."""


class ParseError(SourceError):
    """The source produced content that is not in the expected shape."""


class NoEligibleInterface(SourceError):
    """Every network interface matched the denylist."""
