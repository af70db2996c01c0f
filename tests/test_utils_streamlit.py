"""Tests for :mod:`utils_streamlit`."""

from __future__ import annotations

from errors import DuplicateRecordError, LockHeldError, PersistenceTimeout, RecordNotFoundError
from utils_streamlit import describe_ledger_error, parse_list_input, show_ledger_error


def test_parse_list_input() -> None:
    assert parse_list_input("park, dog\nriver,,") == ["park", "dog", "river"]


def test_describe_ledger_error_per_type() -> None:
    assert "Try again" in describe_ledger_error(LockHeldError("m1"))
    assert describe_ledger_error(DuplicateRecordError("m1")).endswith("Record it under a new id.")
    assert describe_ledger_error(PersistenceTimeout("10s")).startswith("Memory store timed out")
    assert describe_ledger_error(RecordNotFoundError("m9")) == "Memory store has no record 'm9'."


def test_show_ledger_error_uses_error_and_toast() -> None:
    calls: list[tuple] = []

    class DummySt:
        def error(self, message):
            calls.append(("error", message))

        def toast(self, message, icon=None):
            calls.append(("toast", icon))

    show_ledger_error(LockHeldError("m1"), st_module=DummySt())
    assert calls[0][0] == "error"
    assert calls[1] == ("toast", "❌")
