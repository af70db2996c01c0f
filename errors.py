"""Typed failures raised by the memory ledger core."""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for every error surfaced by the ledger core."""


class RecordValidationError(LedgerError, ValueError):
    """Raised when a memory payload does not match the record schema."""


class DuplicateRecordError(LedgerError, ValueError):
    """Raised when a memory id is already registered with the ledger."""

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Memory {record_id!r} is already registered")
        self.record_id = record_id


class ConfigurationError(LedgerError, ValueError):
    """Raised when runtime settings cannot produce a working ledger."""


class EmptyTreeError(LedgerError):
    """Raised when a Merkle proof is requested from a tree with no leaves."""


class NotFoundError(LedgerError, LookupError):
    """Raised when no Merkle leaf carries the requested digest."""

    def __init__(self, digest: str) -> None:
        super().__init__(f"No leaf with digest {digest!r}")
        self.digest = digest


class UnknownRecordError(LedgerError, KeyError):
    """Raised when the integrity monitor has never seen a record id."""

    def __init__(self, record_id: str) -> None:
        super().__init__(record_id)
        self.record_id = record_id

    def __str__(self) -> str:
        return f"Record {self.record_id!r} is not registered with the integrity monitor"


class LockHeldError(LedgerError):
    """Raised when a record already has an in-flight exclusive update."""

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Record {record_id!r} is locked for another transaction")
        self.record_id = record_id


class PersistenceFailure(LedgerError):
    """Raised when the external memory store rejects or fails a call."""


class PersistenceTimeout(PersistenceFailure, TimeoutError):
    """Raised when the external memory store does not answer in time."""


class RecordNotFoundError(PersistenceFailure, LookupError):
    """Raised when the external memory store has no row for a record id."""

    def __init__(self, record_id: str) -> None:
        super().__init__(f"Memory {record_id!r} not found")
        self.record_id = record_id


__all__ = [
    "ConfigurationError",
    "DuplicateRecordError",
    "EmptyTreeError",
    "LedgerError",
    "LockHeldError",
    "NotFoundError",
    "PersistenceFailure",
    "PersistenceTimeout",
    "RecordNotFoundError",
    "RecordValidationError",
    "UnknownRecordError",
]
