# fedstore/errors.py
"""
Error kinds raised by the storage core.

The HTTP layer maps these to protocol responses (NotFound -> 404, etc.).
Nothing in the core retries or swallows them.
"""

from typing import Optional


class FedstoreError(Exception):
    """Base class for every error raised by fedstore."""

    def __init__(self, message: str, identifier: Optional[str] = None):
        super().__init__(message)
        self.identifier = identifier

    def __str__(self) -> str:
        return self.args[0] if self.args else ""


class NotFound(FedstoreError, KeyError):
    """Identifier absent from the store, or a missing sub-property."""


class LockNotHeld(FedstoreError):
    """Release of an identifier lock the caller does not hold."""


class InvalidDocument(FedstoreError, ValueError):
    """Document lacks an extractable identifier or is malformed."""


class MissingCollection(NotFound):
    """An actor's collection property is absent."""


class Cancelled(FedstoreError):
    """Cancellation or timeout fired while waiting on a lock."""


class UnsupportedLocality(NotFound):
    """A reverse-linkage lookup was requested for a federated identifier."""
