"""Tests for :mod:`services.api_helpers`."""

from __future__ import annotations

import pytest

from errors import ConfigurationError, RecordNotFoundError
from services import api_helpers
from services.memory_store import InMemoryMemoryStore


@pytest.fixture
def session_state(make_settings) -> dict:
    return {api_helpers.SETTINGS_KEY: make_settings()}


def test_service_is_cached_per_session(session_state) -> None:
    first = api_helpers.get_verification_service(session_state)
    second = api_helpers.get_verification_service(session_state)

    assert first is second
    assert isinstance(first.context.store, InMemoryMemoryStore)


def test_store_and_verify_record_session_results(session_state) -> None:
    result = api_helpers.store_memory(session_state, {"id": "m1", "title": "Walk"}, user_id="u1")
    report = api_helpers.verify_memory(session_state, "m1")

    assert session_state["last_store_result"]["hash"] == result.digest
    assert session_state["last_verification_report"]["verified"] is True
    assert report.verified is True
    assert api_helpers.ledger_stats(session_state)["total_memories"] == 1


def test_reset_context_drops_ledger_state(session_state) -> None:
    api_helpers.store_memory(session_state, {"id": "m1", "title": "Walk"})
    before = api_helpers.get_verification_service(session_state)

    api_helpers.reset_context(session_state)
    after = api_helpers.get_verification_service(session_state)

    assert after is not before
    assert api_helpers.ledger_stats(session_state)["total_memories"] == 0
    with pytest.raises(RecordNotFoundError):
        api_helpers.verify_memory(session_state, "m1")


def test_ensure_initialized_runs_once(session_state) -> None:
    store = api_helpers.get_context(session_state).store
    store.insert({"id": "m1", "title": "Walk", "blockchain_hash": "c" * 64})

    assert api_helpers.ensure_initialized(session_state) == 1
    assert api_helpers.ensure_initialized(session_state) == 0


def test_disabled_advanced_verification_uses_free_tier(make_settings) -> None:
    session_state = {api_helpers.SETTINGS_KEY: make_settings(enable_advanced_verification=False)}

    result = api_helpers.store_memory(session_state, {"id": "m1", "title": "Walk"})

    assert result.analysis is None
    assert result.anchor is None


def test_context_rejects_unusable_hash_algorithm(make_settings) -> None:
    session_state = {api_helpers.SETTINGS_KEY: make_settings(hash_algorithm="sha512")}

    with pytest.raises(ConfigurationError):
        api_helpers.get_context(session_state)


def test_sha3_context_stores_and_verifies(make_settings) -> None:
    session_state = {api_helpers.SETTINGS_KEY: make_settings(hash_algorithm="sha3_256")}

    api_helpers.store_memory(session_state, {"id": "m1", "title": "Walk"})
    api_helpers.store_memory(session_state, {"id": "m2", "title": "Run"})

    assert api_helpers.verify_memory(session_state, "m1").merkle_valid is True
