"""Integrity verification tab renderer."""

from __future__ import annotations

from typing import Any, MutableMapping

import streamlit as st

from errors import LedgerError
from services.api_helpers import get_verification_service, verify_memory
from ui_components import render_json_viewer, render_metrics_card, render_proof
from utils_streamlit import show_ledger_error


def render_tab(session_state: MutableMapping[str, Any]) -> None:
    st.subheader("Verify a memory")
    default_id = ""
    last = session_state.get("last_store_result")
    if isinstance(last, dict):
        default_id = str((last.get("memory") or {}).get("id") or "")
    record_id = st.text_input("Memory id", value=default_id, key="verify_record_id")

    if st.button("Verify integrity", key="verify_btn", disabled=not record_id.strip()):
        try:
            report = verify_memory(session_state, record_id.strip())
        except LedgerError as exc:
            show_ledger_error(exc)
        else:
            if report.verified:
                st.success(report.message)
                st.toast("Integrity verified", icon="✅")
            else:
                st.error(report.message)
                st.toast("Verification failed", icon="❌")

    report = session_state.get("last_verification_report")
    if report:
        render_metrics_card(
            "Verdict",
            {
                "Verified": report.get("verified"),
                "Content intact": (report.get("integrity") or {}).get("verified"),
                "Included": report.get("merkle_valid"),
                "Consensus": (report.get("consensus") or {}).get("achieved"),
            },
        )
        render_proof(report.get("merkle_proof") or [])
        render_json_viewer("Verification report", report)

    if record_id.strip():
        status = get_verification_service(session_state).get_realtime_status(record_id.strip())
        if status is not None:
            st.caption(f"Monitor status: {status.status}")
