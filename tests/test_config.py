"""Tests for configuration parsing."""

from ticket_tracker.config import DEFAULT_DEMO_USERS, Settings, parse_demo_users


def test_parse_demo_users_defaults() -> None:
    assert parse_demo_users(None) == DEFAULT_DEMO_USERS
    assert parse_demo_users("   ") == DEFAULT_DEMO_USERS


def test_parse_demo_users_pairs() -> None:
    parsed = parse_demo_users("alice:wonderland, bob:builder1 ,broken,:nouser")

    assert parsed == {"alice": "wonderland", "bob": "builder1"}


def test_parse_demo_users_keeps_colons_in_password() -> None:
    assert parse_demo_users("carol:pa:ss") == {"carol": "pa:ss"}


def test_parse_demo_users_falls_back_when_nothing_parses() -> None:
    assert parse_demo_users("nonsense") == DEFAULT_DEMO_USERS


def test_settings_read_environment(monkeypatch) -> None:
    monkeypatch.setenv("SESSION_TTL_HOURS", "6")
    monkeypatch.setenv("STORAGE_BACKEND", "supabase")

    settings = Settings()

    assert settings.session_ttl_hours == 6
    assert settings.storage_backend == "supabase"
