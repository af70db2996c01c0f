"""Append-only Merkle tree over memory digests.

Every append rebuilds all internal nodes from the leaves (O(n) per insert).
When a level has an odd number of nodes the last one is paired with itself.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from errors import EmptyTreeError, NotFoundError
from hashing import DEFAULT_ALGORITHM, hash_pair, unique_digest
from models import HashResult, ProofStep


logger = logging.getLogger(__name__)


@dataclass(eq=False)
class MerkleNode:
    """Leaf (wrapping one digest) or internal node (owning two children)."""

    digest: str
    left: "MerkleNode | None" = None
    right: "MerkleNode | None" = None
    record: Any = None

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None


def _build_levels(leaves: Sequence[MerkleNode], algorithm: str) -> tuple[MerkleNode, int]:
    level = list(leaves)
    depth = 0
    while len(level) > 1:
        parents: list[MerkleNode] = []
        for index in range(0, len(level), 2):
            left = level[index]
            right = level[index + 1] if index + 1 < len(level) else left
            parents.append(MerkleNode(hash_pair(left.digest, right.digest, algorithm=algorithm).digest, left, right))
        level = parents
        depth += 1
    return level[0], depth


class MerkleTree:
    """Ordered leaves plus a root rebuilt from scratch on every append."""

    def __init__(self, *, algorithm: str = DEFAULT_ALGORITHM) -> None:
        self._algorithm = algorithm
        self._leaves: list[MerkleNode] = []
        self._root: MerkleNode | None = None
        self._depth = 0
        self._lock = threading.RLock()

    @classmethod
    def from_digests(cls, digests: Iterable[str], *, algorithm: str = DEFAULT_ALGORITHM) -> "MerkleTree":
        tree = cls(algorithm=algorithm)
        for digest in digests:
            tree.append_digest(digest)
        return tree

    # Inspection ----------------------------------------------------------
    @property
    def root(self) -> MerkleNode | None:
        return self._root

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def leaves(self) -> tuple[MerkleNode, ...]:
        return tuple(self._leaves)

    def __len__(self) -> int:
        return len(self._leaves)

    def get_root(self) -> str | None:
        root = self._root
        return root.digest if root is not None else None

    def leaf_digests(self) -> list[str]:
        return [leaf.digest for leaf in self._leaves]

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                "depth": self._depth,
                "leaves": len(self._leaves),
                "root": self.get_root(),
            }

    # Mutation ------------------------------------------------------------
    def add_leaf(self, record: Any) -> HashResult:
        """Hash ``record`` with a nonce and timestamp, then append it."""

        result = unique_digest(record, algorithm=self._algorithm)
        if not result.cryptographically_sound:
            logger.warning("Merkle leaf added with a non-cryptographic digest")
        self.append_digest(result.digest, record=record)
        return result

    def append_digest(self, digest: str, *, record: Any = None) -> str:
        """Append an already computed digest as the next leaf and rebuild."""

        if not isinstance(digest, str) or not digest:
            raise ValueError("digest must be a non-empty string")
        with self._lock:
            leaves = [*self._leaves, MerkleNode(digest, record=record)]
            root, depth = _build_levels(leaves, self._algorithm)
            self._leaves, self._root, self._depth = leaves, root, depth
        return digest

    # Proofs --------------------------------------------------------------
    def generate_proof(self, target_digest: str) -> list[ProofStep]:
        """Return the leaf-to-root proof for the first leaf matching ``target_digest``."""

        with self._lock:
            root = self._root
        if root is None:
            raise EmptyTreeError("Cannot generate a proof from an empty tree")

        path: list[ProofStep] = []

        def _descend(node: MerkleNode) -> bool:
            if node.is_leaf:
                return node.digest == target_digest
            assert node.left is not None and node.right is not None
            path.append(ProofStep(side="left", sibling_digest=node.right.digest))
            if _descend(node.left):
                return True
            path.pop()
            path.append(ProofStep(side="right", sibling_digest=node.left.digest))
            if _descend(node.right):
                return True
            path.pop()
            return False

        if not _descend(root):
            raise NotFoundError(target_digest)
        path.reverse()
        return path

    def proof_with_root(self, target_digest: str) -> tuple[list[ProofStep], str]:
        """Return a proof and the root it was generated against, read atomically."""

        with self._lock:
            proof = self.generate_proof(target_digest)
            root = self.get_root()
        assert root is not None
        return proof, root

    def verify_proof(
        self,
        target_digest: str,
        proof: Sequence[ProofStep],
        expected_root: str | None,
    ) -> bool:
        return verify_proof(target_digest, proof, expected_root, algorithm=self._algorithm)


def verify_proof(
    target_digest: str,
    proof: Sequence[ProofStep],
    expected_root: str | None,
    *,
    algorithm: str = DEFAULT_ALGORITHM,
) -> bool:
    """Recompute the root from ``target_digest`` and ``proof``; never mutates a tree."""

    if not expected_root:
        return False
    computed = target_digest
    for step in proof:
        if step.side == "left":
            computed = hash_pair(computed, step.sibling_digest, algorithm=algorithm).digest
        elif step.side == "right":
            computed = hash_pair(step.sibling_digest, computed, algorithm=algorithm).digest
        else:
            return False
    return computed == expected_root


__all__ = ["MerkleNode", "MerkleTree", "verify_proof"]
