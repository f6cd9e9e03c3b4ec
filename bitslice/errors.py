"""Exception taxonomy for sheet conversion jobs."""

from __future__ import annotations


class BitsliceError(Exception):
    """Base class for every error raised while converting one sheet."""


class ConfigError(BitsliceError):
    """A configuration field is missing, malformed or out of range."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class SourceBoundsError(BitsliceError):
    """A configured block index or frame row falls outside the source sheet."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class CompositionError(BitsliceError):
    """Quadrant selection reached a state that cannot happen for valid input."""
