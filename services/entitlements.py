"""Entitlement sources gating advanced verification features."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Protocol

import requests


logger = logging.getLogger(__name__)

ADVANCED_VERIFICATION = "advanced_verification"
BLOCKCHAIN_ANCHORING = "blockchain_anchoring"

TIER_FEATURES: dict[str, frozenset[str]] = {
    "free": frozenset({"basic_verification"}),
    "basic": frozenset(
        {"basic_verification", ADVANCED_VERIFICATION, "advanced_analytics", "priority_support"}
    ),
    "pro": frozenset(
        {
            "basic_verification",
            ADVANCED_VERIFICATION,
            BLOCKCHAIN_ANCHORING,
            "advanced_analytics",
            "priority_support",
            "api_access",
            "custom_integrations",
        }
    ),
}

REVENUECAT_API = "https://api.revenuecat.com/v1"


class EntitlementSource(Protocol):
    def is_entitled(self, user_id: str | None, feature: str) -> bool: ...


@dataclass
class StaticEntitlements:
    """Tier lookup from a fixed user -> tier map."""

    default_tier: str = "free"
    user_tiers: dict[str, str] = field(default_factory=dict)

    def tier_for(self, user_id: str | None) -> str:
        if user_id and user_id in self.user_tiers:
            return self.user_tiers[user_id]
        return self.default_tier

    def is_entitled(self, user_id: str | None, feature: str) -> bool:
        return feature in TIER_FEATURES.get(self.tier_for(user_id), frozenset())


def _parse_expiry(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class RevenueCatEntitlements:
    """Query RevenueCat's subscriber endpoint; fails closed on any error."""

    api_key: str
    base_url: str = REVENUECAT_API
    timeout: float = 5
    feature_map: Mapping[str, str] = field(default_factory=dict)
    now: Callable[[], datetime] = field(default=lambda: datetime.now(timezone.utc), repr=False)

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")

    def _entitlements(self, user_id: str) -> Mapping[str, Any]:
        response = requests.get(
            f"{self.base_url}/subscribers/{user_id}",
            headers={"Authorization": f"Bearer {self.api_key}"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        payload = response.json()
        subscriber = payload.get("subscriber") if isinstance(payload, Mapping) else None
        entitlements = subscriber.get("entitlements") if isinstance(subscriber, Mapping) else None
        return entitlements if isinstance(entitlements, Mapping) else {}

    def is_entitled(self, user_id: str | None, feature: str) -> bool:
        if not user_id:
            return False
        try:
            entitlements = self._entitlements(user_id)
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Entitlement lookup failed for %s: %s", user_id, exc)
            return False
        entry = entitlements.get(self.feature_map.get(feature, feature))
        if not isinstance(entry, Mapping):
            return False
        expires = entry.get("expires_date")
        if expires is None:
            return True
        parsed = _parse_expiry(expires)
        return parsed is not None and parsed > self.now()


__all__ = [
    "ADVANCED_VERIFICATION",
    "BLOCKCHAIN_ANCHORING",
    "EntitlementSource",
    "REVENUECAT_API",
    "RevenueCatEntitlements",
    "StaticEntitlements",
    "TIER_FEATURES",
]
