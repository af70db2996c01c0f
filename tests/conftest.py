"""Shared fixtures for the ledger test-suite."""

from __future__ import annotations

import pytest

from app_settings import AppSettings


@pytest.fixture
def make_settings():
    def _make(**overrides) -> AppSettings:
        values = dict(
            supabase_url=None,
            supabase_key=None,
            supabase_table="memories",
            openai_api_key=None,
            openai_model="gpt-3.5-turbo",
            revenuecat_api_key=None,
            consensus_nodes=("node-1", "node-2", "node-3"),
            consensus_min_confidence=0.0,
            persistence_timeout=10.0,
            enable_advanced_verification=True,
            default_tier="pro",
            hash_algorithm="sha256",
        )
        values.update(overrides)
        return AppSettings(**values)

    return _make
