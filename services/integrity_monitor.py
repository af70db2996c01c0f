"""Keyed integrity tracking for registered memory records."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable

from errors import UnknownRecordError
from hashing import DEFAULT_ALGORITHM, hash_value
from models import IntegrityCheck, IntegrityRecord


logger = logging.getLogger(__name__)


class IntegrityMonitor:
    """Maps record ids to their last known digest and verification status.

    Lookups and updates are a single dictionary access per record. Entries are
    never expired; a collaborator deleting a record must call :meth:`purge`.
    """

    def __init__(
        self,
        *,
        algorithm: str = DEFAULT_ALGORITHM,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._algorithm = algorithm
        self._clock = clock
        self._records: dict[str, IntegrityRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._records

    def register(self, record_id: str, record: Any) -> str:
        """Store the digest of ``record`` as the trusted state of ``record_id``."""

        result = hash_value(record, algorithm=self._algorithm)
        entry = IntegrityRecord(
            digest=result.digest,
            last_verified_at=self._clock(),
            status="verified",
            cryptographically_sound=result.cryptographically_sound,
        )
        with self._lock:
            self._records[record_id] = entry
        return result.digest

    def verify(self, record_id: str, current_record: Any) -> IntegrityCheck:
        """Compare ``current_record`` against the registered digest."""

        with self._lock:
            stored = self._records.get(record_id)
        if stored is None:
            raise UnknownRecordError(record_id)

        current = hash_value(current_record, algorithm=self._algorithm)
        verified = current.cryptographically_sound and current.digest == stored.digest
        checked_at = self._clock()
        with self._lock:
            self._records[record_id] = IntegrityRecord(
                digest=stored.digest,
                last_verified_at=checked_at,
                status="verified" if verified else "tampered",
                cryptographically_sound=stored.cryptographically_sound,
            )
        if not verified:
            logger.warning("Integrity mismatch for record %s", record_id)
        return IntegrityCheck(
            verified=verified,
            stored_digest=stored.digest,
            current_digest=current.digest,
            last_verified_at=checked_at,
        )

    def status(self, record_id: str) -> IntegrityRecord | None:
        return self._records.get(record_id)

    def purge(self, record_id: str) -> bool:
        with self._lock:
            return self._records.pop(record_id, None) is not None


__all__ = ["IntegrityMonitor"]
