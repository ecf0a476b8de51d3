"""Application configuration."""

import os
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_DEMO_USERS: dict[str, str] = {
    "demo": "password",
    "admin": "admin123",
    "user@example.com": "userpass",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    environment: str = _ENVIRONMENT
    log_level: str = "INFO"
    storage_backend: Literal["memory", "supabase"] = "memory"
    storage_quota_bytes: int = 5 * 1024 * 1024
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    supabase_table: str = "kv_store"
    session_ttl_hours: int = 24
    demo_users: str | None = None
    login_path: str = "/auth/login"
    dashboard_path: str = "/dashboard"
    tickets_path: str = "/tickets/list"
    notification_duration_ms: int = 3000
    duplicate_window_ms: int = 3000

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_demo_users(raw: str | None) -> dict[str, str]:
    """Parse demo credentials from env, falling back to the built-in set."""
    if raw is None:
        return dict(DEFAULT_DEMO_USERS)
    cleaned = raw.strip()
    if not cleaned:
        return dict(DEFAULT_DEMO_USERS)
    users: dict[str, str] = {}
    for chunk in cleaned.split(","):
        username, sep, password = chunk.strip().partition(":")
        if not sep or not username.strip() or not password:
            continue
        users[username.strip()] = password
    return users or dict(DEFAULT_DEMO_USERS)
