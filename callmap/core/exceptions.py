"""Callmap custom exceptions."""


class CallmapError(Exception):
    """Base exception for Callmap errors."""


class InvalidArgumentError(CallmapError, ValueError):
    """An operation was called with an argument of the wrong shape."""


class ParseError(CallmapError):
    """A scanning pass could not finish on a source file."""


class SourceUnavailableError(CallmapError):
    """The content of a source file could not be obtained."""


class SourceNotFoundError(SourceUnavailableError):
    """Source file does not exist."""


class SourcePermissionError(SourceUnavailableError):
    """Source file exists but cannot be read."""


class SourceTooLargeError(SourceUnavailableError):
    """Source file is larger than the configured limit."""
