"""Application configuration helpers for the memory ledger."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

import streamlit as st

from hashing import DEFAULT_ALGORITHM, validate_algorithm


DEFAULT_CONSENSUS_NODES: tuple[str, ...] = ("node-1", "node-2", "node-3")
DEFAULT_PERSISTENCE_TIMEOUT = 10.0


@dataclass(frozen=True)
class AppSettings:
    """Immutable configuration bundle for the verification ledger."""

    supabase_url: str | None
    supabase_key: str | None
    supabase_table: str
    openai_api_key: str | None
    openai_model: str
    revenuecat_api_key: str | None
    consensus_nodes: tuple[str, ...]
    consensus_min_confidence: float
    persistence_timeout: float
    enable_advanced_verification: bool
    default_tier: str
    hash_algorithm: str

    @property
    def uses_remote_store(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


def _safe_secret(key: str) -> Any:
    """Return a Streamlit secret when available."""

    try:
        return st.secrets.get(key)
    except Exception:
        return None


def _coerce_bool(value: Any, default: bool = False) -> bool:
    """Parse truthy/falsey strings and primitives into booleans."""

    if isinstance(value, bool):
        return value
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if not text:
        return default
    if text in {"1", "true", "yes", "on", "enabled", "enable"}:
        return True
    if text in {"0", "false", "no", "off", "disabled", "disable"}:
        return False
    return default


def _coerce_float(value: Any, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _parse_nodes(raw: Any) -> tuple[str, ...]:
    """Parse a comma separated (or list) node configuration."""

    if not raw:
        return DEFAULT_CONSENSUS_NODES
    if isinstance(raw, str):
        items = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        items = [str(item) for item in raw]
    else:
        return DEFAULT_CONSENSUS_NODES
    nodes: list[str] = []
    for item in items:
        cleaned = item.strip()
        if cleaned and cleaned not in nodes:
            nodes.append(cleaned)
    return tuple(nodes) or DEFAULT_CONSENSUS_NODES


def load_settings() -> AppSettings:
    """Collect runtime configuration from environment and secrets.

    Raises :class:`errors.ConfigurationError` for an unusable ``HASH_ALGORITHM``.
    """

    supabase_url = _safe_secret("SUPABASE_URL") or os.getenv("SUPABASE_URL")
    supabase_key = _safe_secret("SUPABASE_KEY") or os.getenv("SUPABASE_KEY")
    openai_api_key = _safe_secret("OPENAI_API_KEY") or os.getenv("OPENAI_API_KEY")
    revenuecat_api_key = _safe_secret("REVENUECAT_API_KEY") or os.getenv("REVENUECAT_API_KEY")
    consensus_nodes = _parse_nodes(_safe_secret("CONSENSUS_NODES") or os.getenv("CONSENSUS_NODES"))
    enable_advanced_verification = _coerce_bool(
        _safe_secret("ENABLE_ADVANCED_VERIFICATION") or os.getenv("ENABLE_ADVANCED_VERIFICATION"),
        default=True,
    )
    return AppSettings(
        supabase_url=supabase_url.rstrip("/") if supabase_url else None,
        supabase_key=supabase_key,
        supabase_table=os.getenv("SUPABASE_TABLE", "memories"),
        openai_api_key=openai_api_key,
        openai_model=os.getenv("OPENAI_MODEL", "gpt-3.5-turbo"),
        revenuecat_api_key=revenuecat_api_key,
        consensus_nodes=consensus_nodes,
        consensus_min_confidence=_coerce_float(os.getenv("CONSENSUS_MIN_CONFIDENCE"), 0.0),
        persistence_timeout=_coerce_float(os.getenv("PERSISTENCE_TIMEOUT"), DEFAULT_PERSISTENCE_TIMEOUT),
        enable_advanced_verification=enable_advanced_verification,
        default_tier=os.getenv("DEFAULT_TIER", "pro"),
        hash_algorithm=validate_algorithm(os.getenv("HASH_ALGORITHM") or DEFAULT_ALGORITHM),
    )


__all__ = ["AppSettings", "DEFAULT_CONSENSUS_NODES", "DEFAULT_PERSISTENCE_TIMEOUT", "load_settings"]
