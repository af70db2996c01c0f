"""Helper functions for Streamlit tabs to reach the ledger services."""

from __future__ import annotations

from typing import Any, Mapping, MutableMapping

from app_settings import AppSettings, load_settings
from models import IntegrityReport, StoredMemoryResult
from services.context import VerificationContext, build_context
from services.verification_service import VerificationService

SETTINGS_KEY = "__ledger_settings__"
_CONTEXT_KEY = "__verification_context__"
_SERVICE_KEY = "__verification_service__"
_INITIALIZED_KEY = "__ledger_initialized__"


def get_settings(session_state: MutableMapping[str, Any]) -> AppSettings:
    settings = session_state.get(SETTINGS_KEY)
    if not isinstance(settings, AppSettings):
        settings = load_settings()
        session_state[SETTINGS_KEY] = settings
    return settings


def get_context(session_state: MutableMapping[str, Any]) -> VerificationContext:
    context = session_state.get(_CONTEXT_KEY)
    if not isinstance(context, VerificationContext):
        context = build_context(get_settings(session_state))
        session_state[_CONTEXT_KEY] = context
        session_state.pop(_SERVICE_KEY, None)
    return context


def get_verification_service(session_state: MutableMapping[str, Any]) -> VerificationService:
    service = session_state.get(_SERVICE_KEY)
    context = get_context(session_state)
    if not isinstance(service, VerificationService) or service.context is not context:
        service = VerificationService(context)
        session_state[_SERVICE_KEY] = service
    return service


def ensure_initialized(session_state: MutableMapping[str, Any]) -> int:
    """Replay stored memories once per session; returns the restored count."""

    if session_state.get(_INITIALIZED_KEY):
        return 0
    restored = get_verification_service(session_state).initialize_from_store()
    session_state[_INITIALIZED_KEY] = True
    return restored


def store_memory(
    session_state: MutableMapping[str, Any],
    payload: Mapping[str, Any],
    *,
    user_id: str | None = None,
) -> StoredMemoryResult:
    service = get_verification_service(session_state)
    result = service.store_verified_memory(payload, user_id=user_id)
    session_state["last_store_result"] = result.asdict()
    return result


def verify_memory(session_state: MutableMapping[str, Any], record_id: str) -> IntegrityReport:
    service = get_verification_service(session_state)
    report = service.verify_memory_integrity(record_id)
    session_state["last_verification_report"] = report.asdict()
    return report


def ledger_stats(session_state: MutableMapping[str, Any]) -> dict[str, Any]:
    return get_verification_service(session_state).get_blockchain_stats()


def reset_context(session_state: MutableMapping[str, Any]) -> None:
    for key in (_CONTEXT_KEY, _SERVICE_KEY, _INITIALIZED_KEY):
        session_state.pop(key, None)


__all__ = [
    "SETTINGS_KEY",
    "ensure_initialized",
    "get_context",
    "get_settings",
    "get_verification_service",
    "ledger_stats",
    "reset_context",
    "store_memory",
    "verify_memory",
]
