"""Shared dataclasses for the memory ledger core and its collaborators."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from errors import RecordValidationError


INTEGRITY_STATUSES = ("verified", "tampered", "unknown")
TRANSACTION_STATUSES = ("pending", "committed", "rolled_back")
PROOF_SIDES = ("left", "right")

# Columns the core attaches when persisting; never part of hashed content.
LEDGER_COLUMNS = frozenset(
    {
        "blockchain_hash",
        "merkle_root",
        "consensus_achieved",
        "verification_status",
        "created_at",
        "anchor_transaction_id",
    }
)


def _string_tuple(value: Any, field_name: str) -> tuple[str, ...]:
    if value is None:
        return tuple()
    if isinstance(value, str) or not isinstance(value, Sequence):
        raise RecordValidationError(f"{field_name} must be a list of strings")
    items: list[str] = []
    for entry in value:
        if not isinstance(entry, str):
            raise RecordValidationError(f"{field_name} must be a list of strings")
        cleaned = entry.strip()
        if cleaned:
            items.append(cleaned)
    return tuple(items)


def _optional_text(payload: Mapping[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise RecordValidationError(f"{key} must be a string")
    return value


@dataclass(frozen=True)
class HashResult:
    """Digest plus a flag telling whether a real hash primitive produced it."""

    digest: str
    cryptographically_sound: bool = True

    def asdict(self) -> dict[str, Any]:
        return {"digest": self.digest, "cryptographically_sound": self.cryptographically_sound}


@dataclass(frozen=True)
class MemoryRecord:
    """Validated memory content; the only shape the ledger ever hashes."""

    record_id: str
    title: str
    user_id: str | None = None
    transcript: str | None = None
    summary: str | None = None
    emotion: str | None = None
    keywords: tuple[str, ...] = field(default_factory=tuple)
    action_items: tuple[str, ...] = field(default_factory=tuple)
    timestamp: str | None = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "MemoryRecord":
        if not isinstance(payload, Mapping):
            raise RecordValidationError("memory payload must be a mapping")
        raw_id = payload.get("id") or payload.get("record_id")
        if raw_id is None:
            record_id = str(uuid.uuid4())
        elif isinstance(raw_id, (str, int)) and str(raw_id).strip():
            record_id = str(raw_id).strip()
        else:
            raise RecordValidationError("id must be a non-empty string")
        title = payload.get("title")
        if not isinstance(title, str) or not title.strip():
            raise RecordValidationError("title is required")
        return cls(
            record_id=record_id,
            title=title.strip(),
            user_id=_optional_text(payload, "user_id"),
            transcript=_optional_text(payload, "transcript"),
            summary=_optional_text(payload, "summary"),
            emotion=_optional_text(payload, "emotion"),
            keywords=_string_tuple(payload.get("keywords"), "keywords"),
            action_items=_string_tuple(payload.get("action_items"), "action_items"),
            timestamp=_optional_text(payload, "timestamp"),
        )

    def canonical(self) -> dict[str, Any]:
        """Return the content mapping that digests are computed over."""

        return {
            "id": self.record_id,
            "title": self.title,
            "user_id": self.user_id,
            "transcript": self.transcript or "",
            "summary": self.summary or "",
            "emotion": self.emotion or "",
            "keywords": list(self.keywords),
            "action_items": list(self.action_items),
            "timestamp": self.timestamp,
        }

    def asdict(self) -> dict[str, Any]:
        payload = self.canonical()
        payload["transcript"] = self.transcript
        payload["summary"] = self.summary
        payload["emotion"] = self.emotion
        return payload


@dataclass(frozen=True)
class ProofStep:
    """One hop of a Merkle inclusion proof, ordered leaf to root.

    ``side`` is the position the running digest takes when it is combined
    with ``sibling_digest``.
    """

    side: str
    sibling_digest: str

    def __post_init__(self) -> None:
        if self.side not in PROOF_SIDES:
            raise ValueError(f"side must be one of {PROOF_SIDES}, got {self.side!r}")

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ProofStep":
        sibling = payload.get("sibling_digest") or payload.get("hash")
        return cls(side=str(payload.get("side") or ""), sibling_digest=str(sibling or ""))

    def asdict(self) -> dict[str, str]:
        return {"side": self.side, "sibling_digest": self.sibling_digest}


@dataclass(frozen=True)
class IntegrityRecord:
    """Last-known digest and verification state for one record."""

    digest: str
    last_verified_at: float
    status: str = "verified"
    cryptographically_sound: bool = True

    def asdict(self) -> dict[str, Any]:
        return {
            "digest": self.digest,
            "last_verified_at": self.last_verified_at,
            "status": self.status,
            "cryptographically_sound": self.cryptographically_sound,
        }


@dataclass(frozen=True)
class IntegrityCheck:
    """Outcome of comparing a record snapshot against its stored digest."""

    verified: bool
    stored_digest: str
    current_digest: str
    last_verified_at: float

    def asdict(self) -> dict[str, Any]:
        return {
            "verified": self.verified,
            "stored_digest": self.stored_digest,
            "current_digest": self.current_digest,
            "last_verified_at": self.last_verified_at,
        }


@dataclass(frozen=True)
class ConsensusResult:
    """Simulated majority vote over a digest."""

    achieved: bool
    votes: int = 0
    total_nodes: int = 0
    block_height: int | None = None
    timestamp: float | None = None

    def asdict(self) -> dict[str, Any]:
        return {
            "achieved": self.achieved,
            "votes": self.votes,
            "total_nodes": self.total_nodes,
            "block_height": self.block_height,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class TransactionRecord:
    """Bookkeeping entry for a single exclusive update."""

    transaction_id: str
    record_id: str
    status: str
    start_time: float
    end_time: float | None = None
    error: str | None = None

    def asdict(self) -> dict[str, Any]:
        return {
            "transaction_id": self.transaction_id,
            "record_id": self.record_id,
            "status": self.status,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "error": self.error,
        }


@dataclass(frozen=True)
class ContentAnalysis:
    """Confidence score and flags returned by a content analyzer."""

    confidence_score: float
    flags: tuple[str, ...] = field(default_factory=tuple)
    summary: str | None = None
    emotion: str | None = None
    keywords: tuple[str, ...] = field(default_factory=tuple)
    source: str = "heuristic"

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any], *, source: str = "remote") -> "ContentAnalysis":
        raw_score = payload.get("confidence_score")
        if raw_score is None:
            raw_score = payload.get("confidence")
        try:
            score = float(raw_score)
        except (TypeError, ValueError):
            score = 0.0
        score = min(1.0, max(0.0, score))
        flags_field = payload.get("flags") or []
        flags = tuple(str(flag) for flag in flags_field) if isinstance(flags_field, Sequence) and not isinstance(flags_field, str) else ()
        keywords_field = payload.get("keywords") or []
        keywords = (
            tuple(str(word) for word in keywords_field)
            if isinstance(keywords_field, Sequence) and not isinstance(keywords_field, str)
            else ()
        )
        summary = payload.get("summary") if isinstance(payload.get("summary"), str) else None
        emotion = payload.get("emotion") if isinstance(payload.get("emotion"), str) else None
        return cls(
            confidence_score=score,
            flags=flags,
            summary=summary,
            emotion=emotion,
            keywords=keywords,
            source=source,
        )

    def asdict(self) -> dict[str, Any]:
        return {
            "confidence_score": self.confidence_score,
            "flags": list(self.flags),
            "summary": self.summary,
            "emotion": self.emotion,
            "keywords": list(self.keywords),
            "source": self.source,
        }


@dataclass(frozen=True)
class AnchorReceipt:
    """Receipt for a memory digest anchored on the simulated chain."""

    success: bool
    transaction_id: str | None
    block_hash: str | None = None
    previous_hash: str | None = None
    block_number: int | None = None
    network: str = ""
    timestamp: float | None = None
    error: str | None = None

    def asdict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "transaction_id": self.transaction_id,
            "block_hash": self.block_hash,
            "previous_hash": self.previous_hash,
            "block_number": self.block_number,
            "network": self.network,
            "timestamp": self.timestamp,
            "error": self.error,
        }


@dataclass(frozen=True)
class StoredMemoryResult:
    """Everything the ledger produced while storing one memory."""

    memory: Mapping[str, Any]
    digest: str
    merkle_root: str | None
    consensus: ConsensusResult
    merkle_proof: tuple[ProofStep, ...]
    cryptographically_sound: bool
    analysis: ContentAnalysis | None = None
    anchor: AnchorReceipt | None = None

    @property
    def consensus_achieved(self) -> bool:
        return self.consensus.achieved

    @property
    def verified(self) -> bool:
        if self.anchor is not None and not self.anchor.success:
            return False
        return self.consensus.achieved and self.cryptographically_sound

    def asdict(self) -> dict[str, Any]:
        return {
            "memory": dict(self.memory),
            "hash": self.digest,
            "merkle_root": self.merkle_root,
            "consensus": self.consensus.asdict(),
            "consensus_achieved": self.consensus_achieved,
            "merkle_proof": [step.asdict() for step in self.merkle_proof],
            "cryptographically_sound": self.cryptographically_sound,
            "analysis": self.analysis.asdict() if self.analysis else None,
            "anchor": self.anchor.asdict() if self.anchor else None,
            "verified": self.verified,
        }


@dataclass(frozen=True)
class IntegrityReport:
    """Combined integrity, consensus and inclusion verdict for a stored memory."""

    record_id: str
    integrity: IntegrityCheck
    consensus: ConsensusResult
    merkle_valid: bool
    merkle_proof: tuple[ProofStep, ...]
    status: IntegrityRecord | None

    @property
    def verified(self) -> bool:
        return self.integrity.verified and self.consensus.achieved and self.merkle_valid

    @property
    def message(self) -> str:
        if not self.integrity.verified:
            return "Memory content changed since it was registered"
        if not self.merkle_valid:
            return "Memory digest is not included under the current Merkle root"
        if not self.consensus.achieved:
            return "Memory content is intact but consensus was not achieved"
        return "Memory integrity verified with consensus"

    def asdict(self) -> dict[str, Any]:
        return {
            "record_id": self.record_id,
            "verified": self.verified,
            "integrity": self.integrity.asdict(),
            "consensus": self.consensus.asdict(),
            "merkle_valid": self.merkle_valid,
            "merkle_proof": [step.asdict() for step in self.merkle_proof],
            "status": self.status.asdict() if self.status else None,
            "message": self.message,
        }


__all__ = [
    "AnchorReceipt",
    "ConsensusResult",
    "ContentAnalysis",
    "HashResult",
    "INTEGRITY_STATUSES",
    "IntegrityCheck",
    "IntegrityRecord",
    "IntegrityReport",
    "LEDGER_COLUMNS",
    "MemoryRecord",
    "ProofStep",
    "StoredMemoryResult",
    "TRANSACTION_STATUSES",
    "TransactionRecord",
]
