"""Persistence-specific exceptions."""

from __future__ import annotations


class PersistenceError(Exception):
    """Base exception for all persistence errors."""


class BackendError(PersistenceError):
    """Wraps any failure surfaced by the storage backend.

    Throttling and timeouts arrive here once the backend client's own
    retry policy is exhausted.
    """

    def __init__(self, message: str, operation: str | None = None):
        self.operation = operation
        super().__init__(f"{operation}: {message}" if operation else message)


class PointNotFoundError(PersistenceError):
    """Raised when an update targets a point that does not exist."""

    def __init__(self, hash_key: str, range_key: str):
        self.hash_key = hash_key
        self.range_key = range_key
        super().__init__(f"{hash_key}/{range_key} not found")


class PointExistsError(PersistenceError):
    """Raised when a create-only put targets a point that already exists."""

    def __init__(self, hash_key: str, range_key: str):
        self.hash_key = hash_key
        self.range_key = range_key
        super().__init__(f"{hash_key}/{range_key} already exists")
