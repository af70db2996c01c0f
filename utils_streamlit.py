"""Streamlit helpers shared by the ledger console tabs."""

from __future__ import annotations

import streamlit as st

from errors import (
    ConfigurationError,
    DuplicateRecordError,
    EmptyTreeError,
    LedgerError,
    LockHeldError,
    NotFoundError,
    PersistenceTimeout,
    RecordNotFoundError,
    RecordValidationError,
    UnknownRecordError,
)


def parse_list_input(raw_value: str) -> list[str]:
    """Split comma or newline separated text into trimmed entries."""

    items: list[str] = []
    for chunk in (raw_value or "").replace("\n", ",").split(","):
        cleaned = chunk.strip()
        if cleaned:
            items.append(cleaned)
    return items


def describe_ledger_error(error: LedgerError) -> str:
    if isinstance(error, LockHeldError):
        return f"{error} Try again once the current update finishes."
    if isinstance(error, DuplicateRecordError):
        return f"{error}. Record it under a new id."
    if isinstance(error, ConfigurationError):
        return f"Configuration error: {error}"
    if isinstance(error, PersistenceTimeout):
        return f"Memory store timed out: {error}"
    if isinstance(error, RecordNotFoundError):
        return f"Memory store has no record {error.record_id!r}."
    if isinstance(error, UnknownRecordError):
        return str(error)
    if isinstance(error, (EmptyTreeError, NotFoundError)):
        return f"Merkle proof unavailable: {error}"
    if isinstance(error, RecordValidationError):
        return f"Invalid memory: {error}"
    return f"Ledger operation failed: {error}"


def show_ledger_error(error: LedgerError, *, st_module=st) -> None:
    """Render a consistent error block and toast for a ledger failure."""

    message = describe_ledger_error(error)
    st_module.error(message)
    st_module.toast(message, icon="❌")


__all__ = ["describe_ledger_error", "parse_list_input", "show_ledger_error"]
