"""Error taxonomy shared by drill components."""

from __future__ import annotations


class DrillError(Exception):
    """Base class for dailydrill errors."""


class InvalidArgument(DrillError, ValueError):
    """Raised when a caller passes malformed input to a pure component."""


class StorageError(DrillError):
    """Base class for persistence failures."""


class StorageUnavailable(StorageError):
    """Underlying storage could not be opened, read or written."""


class StorageCorrupt(StorageError):
    """Stored data exists but cannot be decoded into a valid entry."""
