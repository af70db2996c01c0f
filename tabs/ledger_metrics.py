"""Ledger statistics tab."""

from __future__ import annotations

from typing import Any, MutableMapping

import streamlit as st

from services.api_helpers import get_context, ledger_stats
from ui_components import render_json_viewer, render_metrics_card, short_digest


def render_tab(session_state: MutableMapping[str, Any]) -> None:
    """Render Merkle, consensus and anchoring statistics."""

    stats = ledger_stats(session_state)
    render_metrics_card(
        "Merkle tree",
        {
            "Memories": stats["total_memories"],
            "Depth": stats["merkle_tree_depth"],
            "Root": short_digest(stats["merkle_root_hash"]),
        },
    )
    render_metrics_card(
        "Consensus",
        {
            "Nodes": stats["consensus_nodes"],
            "Block height": stats["last_block_height"],
            "Monitored": stats["integrity_monitor_size"],
        },
    )

    context = get_context(session_state)
    ok, bad_index = context.anchor.verify_chain()
    if ok:
        st.caption(f"Anchor chain intact across {stats['anchored_blocks']} blocks ({context.anchor.network}).")
    else:
        st.error(f"Anchor chain broken at block {bad_index}.")

    transactions = [entry.asdict() for entry in context.coordinator.transactions()[-20:]]
    if transactions:
        st.markdown("#### Recent transactions")
        st.table(transactions)
    render_json_viewer("Raw stats", stats)
