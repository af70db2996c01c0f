"""Per-record advisory locking with commit/rollback bookkeeping.

The lock is a set of record ids held in this process. It does not coordinate
across processes or replicas, and callers that bypass :meth:`run_exclusive`
are not prevented from mutating shared state.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections import OrderedDict
from typing import Any, Callable, TypeVar

from errors import LockHeldError
from models import TransactionRecord


logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_HISTORY_LIMIT = 1000


class AtomicUpdateCoordinator:
    """Runs at most one update per record id at a time; never queues.

    Only the most recent ``history_limit`` transactions are kept.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        if history_limit < 1:
            raise ValueError("history_limit must be at least 1")
        self._clock = clock
        self.history_limit = history_limit
        self._locked: set[str] = set()
        self._transactions: OrderedDict[str, TransactionRecord] = OrderedDict()
        self._guard = threading.Lock()

    def is_locked(self, record_id: str) -> bool:
        with self._guard:
            return record_id in self._locked

    def get_transaction(self, transaction_id: str) -> TransactionRecord | None:
        return self._transactions.get(transaction_id)

    def transactions(self, record_id: str | None = None) -> list[TransactionRecord]:
        with self._guard:
            entries = list(self._transactions.values())
        if record_id is None:
            return entries
        return [entry for entry in entries if entry.record_id == record_id]

    def run_exclusive(self, record_id: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Execute ``fn`` while holding the lock for ``record_id``.

        Raises :class:`LockHeldError` immediately when the record is already
        locked. Errors from ``fn`` roll the transaction back and propagate after
        the lock is released.
        """

        with self._guard:
            if record_id in self._locked:
                raise LockHeldError(record_id)
            self._locked.add(record_id)
            transaction_id = str(uuid.uuid4())
            pending = TransactionRecord(
                transaction_id=transaction_id,
                record_id=record_id,
                status="pending",
                start_time=self._clock(),
            )
            self._transactions[transaction_id] = pending
            while len(self._transactions) > self.history_limit:
                self._transactions.popitem(last=False)

        try:
            result = fn(*args, **kwargs)
        except BaseException as exc:
            self._finish(pending, "rolled_back", error=str(exc) or type(exc).__name__)
            logger.warning("Transaction %s for %s rolled back: %s", transaction_id, record_id, exc)
            raise
        else:
            self._finish(pending, "committed")
            logger.info("Transaction %s for %s committed", transaction_id, record_id)
            return result
        finally:
            with self._guard:
                self._locked.discard(record_id)

    def _finish(self, pending: TransactionRecord, status: str, *, error: str | None = None) -> None:
        with self._guard:
            if pending.transaction_id not in self._transactions:
                return
            self._transactions[pending.transaction_id] = TransactionRecord(
                transaction_id=pending.transaction_id,
                record_id=pending.record_id,
                status=status,
                start_time=pending.start_time,
                end_time=self._clock(),
                error=error,
            )


__all__ = ["AtomicUpdateCoordinator", "DEFAULT_HISTORY_LIMIT"]
