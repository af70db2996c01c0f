"""Reusable Streamlit UI primitives for the ledger console."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

import streamlit as st

from models import ProofStep


def short_digest(digest: str | None, *, width: int = 12) -> str:
    """Abbreviate a hex digest for display."""

    if not digest:
        return "—"
    if len(digest) <= width:
        return digest
    return f"{digest[:width]}…"


def prepare_metric_rows(metrics: Mapping[str, Any] | Iterable[tuple[str, Any]]) -> list[tuple[str, str]]:
    """Normalize metric entries to ``(label, value)`` rows."""

    rows: list[tuple[str, str]] = []
    if isinstance(metrics, Mapping):
        items = metrics.items()
    else:
        items = metrics or []
    for label, value in items:
        if not label:
            continue
        if value is None:
            rows.append((str(label), "—"))
        elif isinstance(value, bool):
            rows.append((str(label), "yes" if value else "no"))
        elif isinstance(value, int):
            rows.append((str(label), str(value)))
        elif isinstance(value, float):
            rows.append((str(label), f"{value:.2f}"))
        else:
            rows.append((str(label), str(value)))
    return rows


def proof_rows(proof: Sequence[ProofStep | Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Flatten a Merkle proof into table rows, leaf level first."""

    rows: list[dict[str, Any]] = []
    for level, step in enumerate(proof):
        if isinstance(step, Mapping):
            step = ProofStep.from_dict(step)
        rows.append({"level": level, "side": step.side, "sibling": short_digest(step.sibling_digest)})
    return rows


def render_json_viewer(
    title: str,
    payload: object,
    *,
    expanded: bool = False,
    st_module=st,
) -> None:
    """Render a collapsible JSON viewer with consistent styling."""

    cleaned = payload if isinstance(payload, (Mapping, list, tuple)) else {"value": payload}
    with st_module.expander(title, expanded=expanded):
        st_module.json(cleaned, expanded=expanded)


def render_metrics_card(
    title: str,
    metrics: Mapping[str, Any] | Iterable[tuple[str, Any]],
    *,
    st_module=st,
) -> None:
    """Render a titled metric group."""

    rows = prepare_metric_rows(metrics)
    if not rows:
        return
    st_module.markdown(f"#### {title}")
    columns = st_module.columns(len(rows))
    for column, (label, value) in zip(columns, rows):
        column.metric(label, value)


def render_proof(proof: Sequence[ProofStep | Mapping[str, Any]], *, st_module=st) -> None:
    rows = proof_rows(proof)
    if not rows:
        st_module.caption("Single-leaf tree: the leaf digest is the root.")
        return
    st_module.table(rows)


__all__ = [
    "prepare_metric_rows",
    "proof_rows",
    "render_json_viewer",
    "render_metrics_card",
    "render_proof",
    "short_digest",
]
