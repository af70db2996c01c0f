from __future__ import annotations

import json
import logging
import os

import streamlit as st

from errors import ConfigurationError, LedgerError, PersistenceFailure
from services.api_helpers import ensure_initialized, get_settings, ledger_stats, reset_context
from tabs import ledger_metrics, record_memory, verify_memory
from utils_streamlit import show_ledger_error


logger = logging.getLogger(__name__)

DEFAULT_USER_ID = os.getenv("DEFAULT_USER_ID", "demo-user")


def _init_session() -> None:
    if "user_id" not in st.session_state:
        st.session_state.user_id = DEFAULT_USER_ID
    if "last_store_result" not in st.session_state:
        st.session_state.last_store_result = None
    if "last_store_error" not in st.session_state:
        st.session_state.last_store_error = None
    if "last_verification_report" not in st.session_state:
        st.session_state.last_verification_report = None


def _initialize_ledger() -> bool:
    try:
        restored = ensure_initialized(st.session_state)
    except PersistenceFailure as exc:
        logger.error("Ledger initialization failed: %s", exc)
        show_ledger_error(exc)
        return False
    if restored:
        st.toast(f"Restored {restored} memories from the store", icon="🔗")
    return True


def _test_anchor() -> bool:
    ok = record_memory.submit_memory(
        st.session_state,
        {"title": "Test anchor", "transcript": "Hello world"},
        user_id=st.session_state.get("user_id"),
        notify=False,
    )
    if ok:
        st.toast("Test anchor succeeded", icon="✅")
    else:
        st.toast("Test anchor failed", icon="❌")
    return ok


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    st.set_page_config(page_title="Memory Ledger", layout="wide")
    _init_session()
    try:
        settings = get_settings(st.session_state)
    except ConfigurationError as exc:
        logger.error("Invalid ledger configuration: %s", exc)
        show_ledger_error(exc)
        st.stop()
        return
    _initialize_ledger()

    st.sidebar.title("Controls")
    st.session_state.user_id = st.sidebar.text_input("User id", value=st.session_state.user_id)
    st.sidebar.caption(
        "Store: Supabase" if settings.uses_remote_store else "Store: process memory (lost on restart)"
    )
    if st.sidebar.button("Test Anchor"):
        _test_anchor()
    if st.sidebar.button("Reset in-memory ledger"):
        reset_context(st.session_state)
        try:
            ensure_initialized(st.session_state)
        except LedgerError as exc:
            show_ledger_error(exc)
    st.sidebar.download_button(
        "Download ledger stats",
        data=json.dumps(ledger_stats(st.session_state), indent=2),
        file_name="ledger_stats.json",
        mime="application/json",
    )

    st.title("Memory Verification Ledger")
    record_tab, verify_tab, metrics_tab = st.tabs(["Record", "Verify", "Ledger"])
    with record_tab:
        record_memory.render_tab(st.session_state)
    with verify_tab:
        verify_memory.render_tab(st.session_state)
    with metrics_tab:
        ledger_metrics.render_tab(st.session_state)


if __name__ == "__main__":
    main()
