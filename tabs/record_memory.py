"""Record-a-memory tab renderer."""

from __future__ import annotations

from typing import Any, MutableMapping

import streamlit as st

from errors import LedgerError
from services.api_helpers import store_memory
from ui_components import render_json_viewer, render_proof, short_digest
from utils_streamlit import parse_list_input, show_ledger_error


def submit_memory(
    session_state: MutableMapping[str, Any],
    payload: dict[str, Any],
    *,
    user_id: str | None,
    notify: bool = True,
) -> bool:
    """Store ``payload`` and report the outcome; returns ``True`` on success."""

    try:
        result = store_memory(session_state, payload, user_id=user_id)
    except LedgerError as exc:
        session_state["last_store_error"] = str(exc)
        if notify:
            show_ledger_error(exc)
        return False

    session_state["last_store_error"] = None
    if notify:
        if result.consensus_achieved:
            st.toast(f"Memory anchored at height {result.consensus.block_height}", icon="✅")
        else:
            st.toast("Memory stored; consensus not achieved", icon="⚠️")
    return True


def render_tab(session_state: MutableMapping[str, Any]) -> None:
    st.subheader("Record a memory")
    with st.form("record_memory_form", clear_on_submit=False):
        title = st.text_input("Title", key="memory_title")
        transcript = st.text_area("Transcript", height=160, key="memory_transcript")
        summary = st.text_input("Summary (optional)", key="memory_summary")
        keywords = st.text_input("Keywords (comma separated)", key="memory_keywords")
        action_items = st.text_area("Action items (one per line)", height=80, key="memory_actions")
        submitted = st.form_submit_button("Store and verify")

    if submitted:
        payload: dict[str, Any] = {
            "title": title,
            "transcript": transcript or None,
            "summary": summary or None,
            "keywords": parse_list_input(keywords),
            "action_items": parse_list_input(action_items),
        }
        user_id = session_state.get("user_id")
        if user_id:
            payload["user_id"] = user_id
        with st.spinner("Hashing, voting and persisting…"):
            submit_memory(session_state, payload, user_id=user_id)

    result = session_state.get("last_store_result")
    if result:
        st.markdown(
            f"**Digest** `{short_digest(result.get('hash'))}` · "
            f"**Root** `{short_digest(result.get('merkle_root'))}` · "
            f"**Consensus** {'yes' if result.get('consensus_achieved') else 'no'}"
        )
        if not result.get("cryptographically_sound", True):
            st.warning("This digest came from the non-cryptographic fallback and proves nothing.")
        render_proof(result.get("merkle_proof") or [])
        render_json_viewer("Store result", result)
