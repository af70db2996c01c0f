"""Orchestrates hashing, Merkle inclusion, integrity, consensus and persistence."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import requests

from errors import DuplicateRecordError, PersistenceFailure, PersistenceTimeout, RecordValidationError
from hashing import is_digest
from models import (
    AnchorReceipt,
    ContentAnalysis,
    IntegrityRecord,
    IntegrityReport,
    MemoryRecord,
    StoredMemoryResult,
)
from services.context import VerificationContext
from services.entitlements import ADVANCED_VERIFICATION, BLOCKCHAIN_ANCHORING


logger = logging.getLogger(__name__)


class VerificationService:
    """Entry point for storing and verifying memories against the ledger.

    Every mutation of shared ledger state for a record runs inside the
    coordinator's exclusive section for that record id. The Merkle tree
    serializes its own appends, so different records may be stored
    concurrently.
    """

    def __init__(self, context: VerificationContext) -> None:
        self._context = context

    @property
    def context(self) -> VerificationContext:
        return self._context

    # Storing ---------------------------------------------------------------
    def store_verified_memory(
        self,
        payload: Mapping[str, Any] | MemoryRecord,
        *,
        user_id: str | None = None,
    ) -> StoredMemoryResult:
        """Validate, hash, vote on and persist a memory."""

        record = payload if isinstance(payload, MemoryRecord) else MemoryRecord.from_dict(payload)
        owner = user_id or record.user_id
        return self._context.coordinator.run_exclusive(record.record_id, self._store_locked, record, owner)

    def _store_locked(self, record: MemoryRecord, user_id: str | None) -> StoredMemoryResult:
        ctx = self._context
        if record.record_id in ctx.monitor:
            raise DuplicateRecordError(record.record_id)
        analysis = self._analyze(record, user_id)
        content = record.canonical()

        leaf = ctx.tree.add_leaf(content)
        ctx.monitor.register(record.record_id, content)

        consensus_payload: dict[str, Any] = {"record_id": record.record_id}
        if analysis is not None:
            consensus_payload["confidence_score"] = analysis.confidence_score
            consensus_payload["flags"] = list(analysis.flags)
        consensus = ctx.consensus.request_consensus(leaf.digest, consensus_payload)
        merkle_root = ctx.tree.get_root()

        anchor: AnchorReceipt | None = None
        if consensus.achieved and ctx.entitlements.is_entitled(user_id, BLOCKCHAIN_ANCHORING):
            anchor = ctx.anchor.anchor(
                {
                    "type": "memory_verification",
                    "record_id": record.record_id,
                    "hash": leaf.digest,
                    "merkle_root": merkle_root,
                    "consensus": consensus.achieved,
                }
            )

        row = {
            **record.asdict(),
            "blockchain_hash": leaf.digest,
            "merkle_root": merkle_root,
            "consensus_achieved": consensus.achieved,
            "verification_status": "verified" if consensus.achieved else "pending",
            "anchor_transaction_id": anchor.transaction_id if anchor else None,
        }
        try:
            stored = self._persist(row)
        except PersistenceFailure:
            ctx.monitor.purge(record.record_id)
            raise

        proof, proof_root = ctx.tree.proof_with_root(leaf.digest)
        logger.info("Stored memory %s with digest %s", record.record_id, leaf.digest)
        return StoredMemoryResult(
            memory=stored,
            digest=leaf.digest,
            merkle_root=proof_root,
            consensus=consensus,
            merkle_proof=tuple(proof),
            cryptographically_sound=leaf.cryptographically_sound,
            analysis=analysis,
            anchor=anchor,
        )

    def _analyze(self, record: MemoryRecord, user_id: str | None) -> ContentAnalysis | None:
        ctx = self._context
        if not ctx.entitlements.is_entitled(user_id, ADVANCED_VERIFICATION):
            return None
        content = record.transcript or record.summary or record.title
        return ctx.analyzer.analyze(content)

    def _persist(self, row: Mapping[str, Any]) -> dict[str, Any]:
        try:
            return self._context.store.insert(row)
        except PersistenceFailure:
            raise
        except (requests.Timeout, TimeoutError) as exc:
            raise PersistenceTimeout(f"Memory store timed out: {exc}") from exc
        except requests.RequestException as exc:
            raise PersistenceFailure(f"Memory store request failed: {exc}") from exc

    # Verifying -------------------------------------------------------------
    def verify_memory_integrity(self, record_id: str) -> IntegrityReport:
        """Check a persisted memory against its registered digest and the tree."""

        return self._context.coordinator.run_exclusive(record_id, self._verify_locked, record_id)

    def _verify_locked(self, record_id: str) -> IntegrityReport:
        ctx = self._context
        row = self._fetch(record_id)
        record = MemoryRecord.from_dict(row)
        integrity = ctx.monitor.verify(record_id, record.canonical())

        digest = row.get("blockchain_hash")
        if not is_digest(digest):
            raise RecordValidationError(f"Memory {record_id!r} has no valid blockchain_hash")
        consensus = ctx.consensus.get_consensus(digest)
        proof, root = ctx.tree.proof_with_root(digest)
        merkle_valid = ctx.tree.verify_proof(digest, proof, root)

        return IntegrityReport(
            record_id=record_id,
            integrity=integrity,
            consensus=consensus,
            merkle_valid=merkle_valid,
            merkle_proof=tuple(proof),
            status=ctx.monitor.status(record_id),
        )

    def _fetch(self, record_id: str) -> dict[str, Any]:
        try:
            return self._context.store.fetch(record_id)
        except PersistenceFailure:
            raise
        except (requests.Timeout, TimeoutError) as exc:
            raise PersistenceTimeout(f"Memory store timed out: {exc}") from exc
        except requests.RequestException as exc:
            raise PersistenceFailure(f"Memory store request failed: {exc}") from exc

    # Inspection ------------------------------------------------------------
    def get_realtime_status(self, record_id: str) -> IntegrityRecord | None:
        return self._context.monitor.status(record_id)

    def get_blockchain_stats(self) -> dict[str, Any]:
        ctx = self._context
        tree_stats = ctx.tree.stats()
        return {
            "merkle_tree_depth": tree_stats["depth"],
            "total_memories": tree_stats["leaves"],
            "merkle_root_hash": tree_stats["root"],
            "consensus_nodes": len(ctx.consensus.nodes),
            "integrity_monitor_size": len(ctx.monitor),
            "last_block_height": ctx.consensus.block_height,
            "anchored_blocks": len(ctx.anchor),
        }

    # Maintenance -----------------------------------------------------------
    def initialize_from_store(self) -> int:
        """Replay persisted memories into the tree and integrity monitor.

        Rows are replayed in ``created_at`` order using their stored
        ``blockchain_hash`` so proofs for existing memories keep working.
        Returns the number of memories restored.
        """

        ctx = self._context
        rows = ctx.store.list_all()
        known = set(ctx.tree.leaf_digests())
        restored = 0
        for row in rows:
            try:
                record = MemoryRecord.from_dict(row)
            except RecordValidationError as exc:
                logger.warning("Skipping stored memory %r: %s", row.get("id"), exc)
                continue
            digest = row.get("blockchain_hash")
            if not is_digest(digest):
                logger.warning("Skipping stored memory %s without a blockchain_hash", record.record_id)
                continue
            ctx.coordinator.run_exclusive(record.record_id, self._restore_locked, record, digest, known)
            restored += 1
        logger.info("Initialized ledger with %d existing memories", restored)
        return restored

    def _restore_locked(self, record: MemoryRecord, digest: str, known: set[str]) -> None:
        ctx = self._context
        content = record.canonical()
        if digest not in known:
            ctx.tree.append_digest(digest, record=content)
            known.add(digest)
        ctx.monitor.register(record.record_id, content)
        ctx.consensus.request_consensus(digest, {"record_id": record.record_id})

    def purge_memory(self, record_id: str) -> bool:
        """Delete a memory from the store and forget its integrity entry."""

        return self._context.coordinator.run_exclusive(record_id, self._purge_locked, record_id)

    def _purge_locked(self, record_id: str) -> bool:
        ctx = self._context
        try:
            deleted = ctx.store.delete(record_id)
        except requests.RequestException as exc:
            raise PersistenceFailure(f"Memory store request failed: {exc}") from exc
        ctx.monitor.purge(record_id)
        return deleted


__all__ = ["VerificationService"]
