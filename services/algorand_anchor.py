"""Simulated Algorand anchoring for verified memory digests.

No network calls are made. Each anchor appends a block whose hash covers the
previous block's hash, so the local chain can be re-walked to detect edits.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from hashing import hash_value
from models import AnchorReceipt


logger = logging.getLogger(__name__)

NETWORK = "ProofMate-Chain (simulated Algorand)"
GENESIS_HASH = "0" * 64


@dataclass
class AnchorBlock:
    index: int
    transaction_id: str
    previous_hash: str
    payload: Mapping[str, Any]
    timestamp: float
    block_hash: str = ""

    def content(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "transaction_id": self.transaction_id,
            "previous_hash": self.previous_hash,
            "payload": dict(self.payload),
            "timestamp": self.timestamp,
        }


class SimulatedAlgorandAnchor:
    """Append-only local hash chain standing in for an Algorand transaction."""

    def __init__(
        self,
        *,
        network: str = NETWORK,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.network = network
        self._clock = clock
        self._blocks: list[AnchorBlock] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._blocks)

    @property
    def blocks(self) -> tuple[AnchorBlock, ...]:
        return tuple(self._blocks)

    def anchor(self, payload: Mapping[str, Any]) -> AnchorReceipt:
        """Record ``payload`` in a new block and return its receipt."""

        try:
            with self._lock:
                previous = self._blocks[-1].block_hash if self._blocks else GENESIS_HASH
                block = AnchorBlock(
                    index=len(self._blocks),
                    transaction_id=f"TXN_{uuid.uuid4().hex[:20].upper()}",
                    previous_hash=previous,
                    payload=dict(payload),
                    timestamp=self._clock(),
                )
                result = hash_value(block.content())
                if not result.cryptographically_sound:
                    return AnchorReceipt(
                        success=False,
                        transaction_id=None,
                        network=self.network,
                        error="Block hash unavailable",
                    )
                block.block_hash = result.digest
                self._blocks.append(block)
        except (TypeError, ValueError) as exc:
            logger.error("Anchoring failed: %s", exc)
            return AnchorReceipt(success=False, transaction_id=None, network=self.network, error=str(exc))

        return AnchorReceipt(
            success=True,
            transaction_id=block.transaction_id,
            block_hash=block.block_hash,
            previous_hash=block.previous_hash,
            block_number=block.index,
            network=self.network,
            timestamp=block.timestamp,
        )

    def verify_chain(self) -> tuple[bool, int | None]:
        """Re-walk the chain; return ``(ok, index_of_first_bad_block)``."""

        expected_previous = GENESIS_HASH
        for block in self._blocks:
            if block.previous_hash != expected_previous:
                return False, block.index
            if hash_value(block.content()).digest != block.block_hash:
                return False, block.index
            expected_previous = block.block_hash
        return True, None

    def stats(self) -> dict[str, Any]:
        last = self._blocks[-1] if self._blocks else None
        return {
            "network": self.network,
            "total_blocks": len(self._blocks),
            "last_block_hash": last.block_hash if last else None,
        }


__all__ = ["AnchorBlock", "GENESIS_HASH", "NETWORK", "SimulatedAlgorandAnchor"]
