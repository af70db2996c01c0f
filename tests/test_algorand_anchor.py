"""Tests for :mod:`services.algorand_anchor`."""

from __future__ import annotations

from services.algorand_anchor import GENESIS_HASH, SimulatedAlgorandAnchor


def test_anchor_links_blocks() -> None:
    anchor = SimulatedAlgorandAnchor(clock=lambda: 1700000000.0)

    first = anchor.anchor({"memory_id": "m1", "hash": "a" * 64})
    second = anchor.anchor({"memory_id": "m2", "hash": "b" * 64})

    assert first.success and second.success
    assert first.previous_hash == GENESIS_HASH
    assert second.previous_hash == first.block_hash
    assert second.block_number == 1
    assert first.transaction_id.startswith("TXN_")
    assert len(first.transaction_id) == 24
    assert anchor.verify_chain() == (True, None)
    assert anchor.stats()["total_blocks"] == 2


def test_verify_chain_detects_edited_payload() -> None:
    anchor = SimulatedAlgorandAnchor()
    anchor.anchor({"memory_id": "m1"})
    anchor.anchor({"memory_id": "m2"})
    anchor.anchor({"memory_id": "m3"})

    anchor.blocks[1].payload = {"memory_id": "forged"}

    assert anchor.verify_chain() == (False, 1)


def test_unserializable_payload_returns_failed_receipt() -> None:
    anchor = SimulatedAlgorandAnchor()

    receipt = anchor.anchor({"memory_id": object()})

    assert receipt.success is False
    assert receipt.transaction_id is None
    assert receipt.error
    assert len(anchor) == 0
