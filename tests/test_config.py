"""
Unit tests for config.py
"""

import pytest

from tagline.ai_rewriter import DEFAULT_MODEL
from tagline.config import DEFAULT_REQUEST_TIMEOUT, load_settings

ENV_NAMES = [
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "GEMINI_MODEL",
    "TAGLINE_REQUEST_TIMEOUT",
    "TAGLINE_FETCH_TIMEOUT",
    "TAGLINE_MAX_SOURCE_CHARS",
    "TAGLINE_WALK_FALLBACK_MINUTES",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = load_settings(dotenv=False)
    assert settings.api_key is None
    assert settings.model_name == DEFAULT_MODEL
    assert settings.request_timeout == DEFAULT_REQUEST_TIMEOUT
    assert settings.walk_fallback_minutes == 10


def test_google_api_key_fallback(monkeypatch):
    monkeypatch.setenv("GOOGLE_API_KEY", " abc ")
    assert load_settings(dotenv=False).api_key == "abc"


def test_overrides(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "key")
    monkeypatch.setenv("GEMINI_MODEL", "models/gemini-2.5-pro")
    monkeypatch.setenv("TAGLINE_FETCH_TIMEOUT", "5")
    monkeypatch.setenv("TAGLINE_MAX_SOURCE_CHARS", "1000")
    monkeypatch.setenv("TAGLINE_WALK_FALLBACK_MINUTES", "15")

    settings = load_settings(dotenv=False)

    assert settings.api_key == "key"
    assert settings.model_name == "models/gemini-2.5-pro"
    assert settings.fetch_timeout == 5.0
    assert settings.max_source_chars == 1000
    assert settings.walk_fallback_minutes == 15


def test_empty_walk_fallback_disables_lock(monkeypatch):
    monkeypatch.setenv("TAGLINE_WALK_FALLBACK_MINUTES", "")
    assert load_settings(dotenv=False).walk_fallback_minutes is None


def test_invalid_values_use_defaults(monkeypatch):
    monkeypatch.setenv("TAGLINE_REQUEST_TIMEOUT", "abc")
    monkeypatch.setenv("TAGLINE_WALK_FALLBACK_MINUTES", "ten")
    settings = load_settings(dotenv=False)
    assert settings.request_timeout == DEFAULT_REQUEST_TIMEOUT
    assert settings.walk_fallback_minutes == 10
