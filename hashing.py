"""Deterministic content hashing for memory records and Merkle nodes."""

from __future__ import annotations

import dataclasses
import hashlib
import json
import logging
import re
import time
import uuid
from datetime import date, datetime
from typing import Any, Mapping

from errors import ConfigurationError
from models import HashResult


logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "sha256"
DIGEST_LENGTH = 64

_DIGEST_PATTERN = re.compile(r"^[0-9a-f]{64}$")


def _canonical_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=lambda item: json.dumps(item, sort_keys=True, default=str))
    if isinstance(value, Mapping):
        return {str(key): item for key, item in value.items()}
    raise TypeError(f"Cannot canonicalize value of type {type(value).__name__}")


def canonical_json(value: Any) -> str:
    """Serialize ``value`` with stable key ordering and compact separators."""

    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
        default=_canonical_default,
    )


def validate_algorithm(algorithm: str) -> str:
    """Return ``algorithm`` if hashlib provides it with a 64 hex character digest."""

    try:
        digest_size = hashlib.new(algorithm).digest_size
    except (ValueError, TypeError) as exc:
        raise ConfigurationError(f"Hash algorithm {algorithm!r} is not available") from exc
    if digest_size * 2 != DIGEST_LENGTH:
        raise ConfigurationError(
            f"Hash algorithm {algorithm!r} produces {digest_size * 2} hex characters; {DIGEST_LENGTH} are required"
        )
    return algorithm


def _fallback_digest() -> str:
    return (uuid.uuid4().hex + uuid.uuid4().hex)[:DIGEST_LENGTH]


def hash_value(value: Any, *, algorithm: str = DEFAULT_ALGORITHM) -> HashResult:
    """Return the hex digest of ``value``'s canonical serialization.

    When the digest primitive cannot be used the result carries a
    pseudo-random identifier with ``cryptographically_sound`` set to
    ``False``; callers must not treat that identifier as a content hash.
    Serialization errors (``TypeError``/``ValueError`` from malformed input)
    propagate unchanged.
    """

    payload = canonical_json(value).encode("utf-8")
    try:
        hasher = hashlib.new(algorithm)
    except (ValueError, TypeError) as exc:
        logger.warning("Digest algorithm %r unavailable (%s); using non-cryptographic fallback", algorithm, exc)
        return HashResult(digest=_fallback_digest(), cryptographically_sound=False)
    hasher.update(payload)
    digest = hasher.hexdigest()
    if len(digest) != DIGEST_LENGTH:
        logger.warning("Digest algorithm %r produced %d hex chars; using fallback", algorithm, len(digest))
        return HashResult(digest=_fallback_digest(), cryptographically_sound=False)
    return HashResult(digest=digest, cryptographically_sound=True)


def hash_pair(left: str, right: str, *, algorithm: str = DEFAULT_ALGORITHM) -> HashResult:
    """Digest of an internal Merkle node from its children's digests."""

    return hash_value({"left": left, "right": right}, algorithm=algorithm)


def unique_digest(value: Any, *, algorithm: str = DEFAULT_ALGORITHM) -> HashResult:
    """Digest ``value`` together with a nonce and the insertion time."""

    envelope = {
        "record": value,
        "nonce": uuid.uuid4().hex,
        "timestamp": int(time.time() * 1000),
    }
    return hash_value(envelope, algorithm=algorithm)


def is_digest(text: object) -> bool:
    """Return ``True`` for 64 lowercase hexadecimal characters."""

    return isinstance(text, str) and bool(_DIGEST_PATTERN.match(text))


__all__ = [
    "DEFAULT_ALGORITHM",
    "DIGEST_LENGTH",
    "canonical_json",
    "hash_pair",
    "hash_value",
    "is_digest",
    "unique_digest",
    "validate_algorithm",
]
