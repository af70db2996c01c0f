"""Tests for :mod:`ui_components`."""

from __future__ import annotations

from models import ProofStep
from ui_components import prepare_metric_rows, proof_rows, render_proof, short_digest


def test_prepare_metric_rows_from_mapping() -> None:
    rows = prepare_metric_rows({"Depth": 3, "Ratio": 0.456, "Consensus": True, "Root": None, "": 1})
    assert rows == [("Depth", "3"), ("Ratio", "0.46"), ("Consensus", "yes"), ("Root", "—")]


def test_short_digest() -> None:
    assert short_digest("a" * 64) == "aaaaaaaaaaaa…"
    assert short_digest("abc") == "abc"
    assert short_digest(None) == "—"


def test_proof_rows_accepts_steps_and_dicts() -> None:
    rows = proof_rows([ProofStep("left", "b" * 64), {"side": "right", "sibling_digest": "c" * 64}])
    assert rows == [
        {"level": 0, "side": "left", "sibling": "bbbbbbbbbbbb…"},
        {"level": 1, "side": "right", "sibling": "cccccccccccc…"},
    ]


class DummySt:
    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []

    def caption(self, text):
        self.calls.append(("caption", text))

    def table(self, rows):
        self.calls.append(("table", rows))


def test_render_proof_for_single_leaf() -> None:
    dummy = DummySt()
    render_proof([], st_module=dummy)
    assert dummy.calls[0][0] == "caption"
