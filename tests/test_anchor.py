import pytest
import streamlit as st

import admin_app
from errors import PersistenceFailure
from services import api_helpers
from tabs import record_memory


@pytest.fixture(autouse=True)
def clear_state(make_settings):
    st.session_state.clear()
    st.session_state[api_helpers.SETTINGS_KEY] = make_settings()
    st.session_state.user_id = "tester"
    yield
    st.session_state.clear()


def test_anchor_success(monkeypatch):
    toasts: list[tuple[str, str | None]] = []
    monkeypatch.setattr(st, "toast", lambda msg, icon=None: toasts.append((msg, icon)))

    ok = admin_app._test_anchor()
    assert ok
    assert st.session_state["last_store_result"]["consensus_achieved"] is True
    assert st.session_state["last_store_error"] is None
    assert toasts == [("Test anchor succeeded", "✅")]


def test_anchor_failure(monkeypatch):
    errors: list[str] = []
    toasts: list[tuple[str, str | None]] = []

    def failing_store(*_args, **_kwargs):
        raise PersistenceFailure("boom")

    monkeypatch.setattr(record_memory, "store_memory", failing_store)
    monkeypatch.setattr(st, "error", lambda msg: errors.append(msg))
    monkeypatch.setattr(st, "toast", lambda msg, icon=None: toasts.append((msg, icon)))

    ok = admin_app._test_anchor()
    assert not ok
    assert not errors
    assert st.session_state["last_store_error"] == "boom"
    assert any(icon == "❌" for _, icon in toasts)


def test_submit_memory_reports_errors(monkeypatch):
    errors: list[str] = []
    monkeypatch.setattr(st, "error", lambda msg: errors.append(msg))
    monkeypatch.setattr(st, "toast", lambda msg, icon=None: None)

    ok = record_memory.submit_memory(st.session_state, {"title": ""}, user_id="tester")
    assert not ok
    assert errors and errors[0].startswith("Invalid memory")
