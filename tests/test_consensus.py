"""Tests for :mod:`services.consensus`."""

from __future__ import annotations

from hashing import hash_value
from services.consensus import DEFAULT_NODES, ConsensusSimulator, DigestValidator


DIGEST = hash_value({"title": "Walk"}).digest


def _always(vote: bool):
    def _validator(_node_id, _digest, _payload):
        return vote

    return _validator


def _boom(_node_id, _digest, _payload):
    raise RuntimeError("node offline")


def test_default_nodes_accept_well_formed_digest() -> None:
    simulator = ConsensusSimulator(DEFAULT_NODES)

    result = simulator.request_consensus(DIGEST, {"confidence_score": 0.9})

    assert result.achieved is True
    assert result.votes == 3
    assert result.total_nodes == 3
    assert result.block_height == 1
    assert simulator.block_height == 1


def test_two_of_three_is_a_majority() -> None:
    simulator = ConsensusSimulator()
    simulator.register_node("a", _always(True))
    simulator.register_node("b", _always(True))
    simulator.register_node("c", _always(False))

    result = simulator.request_consensus(DIGEST)

    assert result.achieved is True
    assert result.votes == 2


def test_tie_is_not_a_majority() -> None:
    simulator = ConsensusSimulator()
    for node_id, vote in (("a", True), ("b", True), ("c", False), ("d", False)):
        simulator.register_node(node_id, _always(vote))

    result = simulator.request_consensus(DIGEST)

    assert result.achieved is False
    assert result.votes == 2
    assert result.block_height is None
    assert simulator.block_height == 0


def test_no_nodes_never_reaches_consensus() -> None:
    result = ConsensusSimulator().request_consensus(DIGEST)

    assert result.achieved is False
    assert result.total_nodes == 0


def test_failing_validator_counts_as_negative_vote() -> None:
    simulator = ConsensusSimulator()
    simulator.register_node("a", _always(True))
    simulator.register_node("b", _boom)
    simulator.register_node("c", _boom)

    result = simulator.request_consensus(DIGEST)

    assert result.achieved is False
    assert result.votes == 1


def test_results_are_memoized_per_digest() -> None:
    calls: list[str] = []

    def _counting(node_id, _digest, _payload):
        calls.append(node_id)
        return True

    simulator = ConsensusSimulator(validator=_counting, nodes=("a", "b", "c"))
    first = simulator.request_consensus(DIGEST)
    second = simulator.request_consensus(DIGEST)

    assert first is second
    assert len(calls) == 3
    assert simulator.block_height == 1
    assert simulator.get_consensus(DIGEST) == first


def test_block_height_increases_per_new_digest() -> None:
    simulator = ConsensusSimulator(DEFAULT_NODES)

    simulator.request_consensus(DIGEST)
    result = simulator.request_consensus(hash_value({"title": "Run"}).digest)

    assert result.block_height == 2


def test_get_consensus_for_unknown_digest() -> None:
    simulator = ConsensusSimulator(DEFAULT_NODES)

    result = simulator.get_consensus(DIGEST)

    assert result.achieved is False
    assert result.votes == 0
    assert result.total_nodes == 3


def test_register_node_is_idempotent() -> None:
    simulator = ConsensusSimulator(("a",))
    simulator.register_node("a")
    simulator.register_node("a", _always(False))

    assert simulator.nodes == ("a",)
    assert simulator.request_consensus(DIGEST).achieved is False


def test_digest_validator_rules() -> None:
    validator = DigestValidator(min_confidence=0.5)

    assert validator("n", DIGEST, {"confidence_score": 0.8}) is True
    assert validator("n", DIGEST, {"confidence_score": 0.2}) is False
    assert validator("n", "not-a-digest", None) is False
    assert validator("n", DIGEST, None) is True
