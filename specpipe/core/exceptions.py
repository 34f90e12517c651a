"""
Exceptions raised by specpipe.

Only UnsupportedFormatError escapes a render; everything else is caught at
the pass or orchestrator boundary and reported as a warning.
"""

from typing import Optional


class SpecPipeError(Exception):
    """Base class for specpipe errors."""


class UnsupportedFormatError(SpecPipeError):
    """A caller asked for a content format with no registered strategy."""

    def __init__(self, format_name: str):
        super().__init__(f"Unsupported format: {format_name}")
        self.format_name = format_name


class IncludeError(SpecPipeError):
    """A data-include target could not be loaded."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class IdlParseError(SpecPipeError, ValueError):
    """Raised for malformed interface-definition blocks."""


class OutputAlreadyWrittenError(SpecPipeError):
    """A pass tried to write an output area twice in one run."""
