"""Tests for :mod:`app_settings`."""

from __future__ import annotations

import pytest

import app_settings
from errors import ConfigurationError
from app_settings import DEFAULT_CONSENSUS_NODES, load_settings


ENV_KEYS = (
    "SUPABASE_URL",
    "SUPABASE_KEY",
    "OPENAI_API_KEY",
    "REVENUECAT_API_KEY",
    "CONSENSUS_NODES",
    "ENABLE_ADVANCED_VERIFICATION",
    "CONSENSUS_MIN_CONFIDENCE",
    "PERSISTENCE_TIMEOUT",
    "DEFAULT_TIER",
    "HASH_ALGORITHM",
)


@pytest.fixture(autouse=True)
def no_secrets(monkeypatch):
    monkeypatch.setattr(app_settings, "_safe_secret", lambda _key: None)
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_configuration() -> None:
    settings = load_settings()

    assert settings.uses_remote_store is False
    assert settings.consensus_nodes == DEFAULT_CONSENSUS_NODES
    assert settings.enable_advanced_verification is True
    assert settings.persistence_timeout == 10.0
    assert settings.default_tier == "pro"
    assert settings.hash_algorithm == "sha256"


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("SUPABASE_URL", "https://db.example/")
    monkeypatch.setenv("SUPABASE_KEY", "anon")
    monkeypatch.setenv("CONSENSUS_NODES", "alpha, beta,,alpha, gamma")
    monkeypatch.setenv("ENABLE_ADVANCED_VERIFICATION", "off")
    monkeypatch.setenv("CONSENSUS_MIN_CONFIDENCE", "0.6")
    monkeypatch.setenv("PERSISTENCE_TIMEOUT", "not-a-number")

    settings = load_settings()

    assert settings.supabase_url == "https://db.example"
    assert settings.uses_remote_store is True
    assert settings.consensus_nodes == ("alpha", "beta", "gamma")
    assert settings.enable_advanced_verification is False
    assert settings.consensus_min_confidence == 0.6
    assert settings.persistence_timeout == 10.0


def test_secrets_take_precedence(monkeypatch) -> None:
    secrets = {"OPENAI_API_KEY": "sk-secret", "CONSENSUS_NODES": ["x", "y"]}
    monkeypatch.setattr(app_settings, "_safe_secret", secrets.get)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")

    settings = load_settings()

    assert settings.openai_api_key == "sk-secret"
    assert settings.consensus_nodes == ("x", "y")


def test_unusable_hash_algorithm_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("HASH_ALGORITHM", "sha512")

    with pytest.raises(ConfigurationError):
        load_settings()


def test_alternate_hash_algorithm_is_accepted(monkeypatch) -> None:
    monkeypatch.setenv("HASH_ALGORITHM", "sha3_256")

    assert load_settings().hash_algorithm == "sha3_256"
