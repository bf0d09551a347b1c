# src/tcelflow/core/errors.py

"""
Error taxonomy.

Storage errors never escape the persistence coordinator: they are logged
there and, for user-initiated actions, turned into notifications.
"""

from __future__ import annotations


class TcelflowError(Exception):
    """Base class for all tcelflow errors."""


class StorageError(TcelflowError):
    """A storage backend could not complete an operation."""


class UnavailableError(StorageError):
    """The durable backend is disabled or cannot be opened on this host."""


class ReadError(StorageError):
    """A stored value could not be read or decoded."""


class WriteError(StorageError):
    """A value could not be written (transaction failure, disk full, unencodable value)."""


class QuotaExceededError(StorageError):
    """The fallback store capacity would be exceeded by a write."""


class InvalidFormatError(TcelflowError):
    """An import document (or an entity inside it) is malformed."""
