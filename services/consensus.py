"""Simulated majority-vote consensus over memory digests.

This is not a Byzantine fault tolerant protocol: nodes are local callables
and a vote is a function call.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Iterable, Mapping

from hashing import hash_value, is_digest
from models import ConsensusResult


logger = logging.getLogger(__name__)

NodeValidator = Callable[[str, str, Any], bool]

DEFAULT_NODES: tuple[str, ...] = ("node-1", "node-2", "node-3")


class DigestValidator:
    """Default node vote: well-formed digest, sound node hash, enough confidence."""

    def __init__(self, *, min_confidence: float = 0.0) -> None:
        self.min_confidence = float(min_confidence)

    def __call__(self, node_id: str, digest: str, payload: Any) -> bool:
        if not is_digest(digest):
            return False
        validation = hash_value({"node_id": node_id, "digest": digest, "payload": payload})
        if not validation.cryptographically_sound:
            return False
        if isinstance(payload, Mapping):
            confidence = payload.get("confidence_score")
            if isinstance(confidence, (int, float)) and confidence < self.min_confidence:
                return False
        return True


class ConsensusSimulator:
    """Registered nodes vote once per digest; results are memoized."""

    def __init__(
        self,
        nodes: Iterable[str] | None = None,
        *,
        validator: NodeValidator | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._default_validator: NodeValidator = validator or DigestValidator()
        self._clock = clock
        self._nodes: dict[str, NodeValidator | None] = {}
        self._results: dict[str, ConsensusResult] = {}
        self._block_height = 0
        self._lock = threading.Lock()
        for node_id in nodes or ():
            self.register_node(node_id)

    @property
    def nodes(self) -> tuple[str, ...]:
        return tuple(self._nodes)

    @property
    def block_height(self) -> int:
        return self._block_height

    def register_node(self, node_id: str, validator: NodeValidator | None = None) -> None:
        """Add ``node_id``; re-registering keeps the node and updates its validator."""

        with self._lock:
            if node_id in self._nodes and validator is None:
                return
            self._nodes[node_id] = validator

    def _vote(self, node_id: str, validator: NodeValidator | None, digest: str, payload: Any) -> bool:
        vote_fn = validator or self._default_validator
        try:
            return bool(vote_fn(node_id, digest, payload))
        except Exception:  # noqa: BLE001 - a failing node counts as a negative vote
            logger.warning("Node %s failed to vote on %s; counting a negative vote", node_id, digest, exc_info=True)
            return False

    def request_consensus(self, digest: str, payload: Any = None) -> ConsensusResult:
        """Run one vote round for ``digest`` unless a result already exists."""

        with self._lock:
            existing = self._results.get(digest)
            if existing is not None:
                return existing
            nodes = list(self._nodes.items())
            votes = sum(1 for node_id, validator in nodes if self._vote(node_id, validator, digest, payload))
            total = len(nodes)
            achieved = votes > total / 2
            if achieved:
                self._block_height += 1
                result = ConsensusResult(
                    achieved=True,
                    votes=votes,
                    total_nodes=total,
                    block_height=self._block_height,
                    timestamp=self._clock(),
                )
            else:
                result = ConsensusResult(achieved=False, votes=votes, total_nodes=total)
            self._results[digest] = result
        logger.info("Consensus for %s: %d/%d votes (achieved=%s)", digest, votes, total, achieved)
        return result

    def get_consensus(self, digest: str) -> ConsensusResult:
        result = self._results.get(digest)
        if result is None:
            return ConsensusResult(achieved=False, votes=0, total_nodes=len(self._nodes))
        return result

    def results(self) -> dict[str, ConsensusResult]:
        return dict(self._results)


__all__ = ["ConsensusSimulator", "DEFAULT_NODES", "DigestValidator", "NodeValidator"]
