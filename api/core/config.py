"""
Application settings.

All values come from environment variables and are parsed once, at app
construction time, into an immutable `Settings`. Bad numeric values fall back
to the default instead of crashing the process.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from fastapi import Request

DEFAULT_SESSION_TTL_MS = 604_800_000  # 7 days
DEFAULT_SESSION_SECRET = "dev-change-this-session-secret"


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, "").strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    env: str = "development"
    log_level: str = "INFO"

    database_url: str = ""
    db_pool_min: int = 1
    db_pool_max: int = 5
    db_command_timeout_s: float = 30.0

    # JWT signing secret. None means JWT routes answer with a 500.
    salt: str | None = None
    jwt_expire_seconds: int = 86_400

    session_secret: str = DEFAULT_SESSION_SECRET
    session_ttl_ms: int = DEFAULT_SESSION_TTL_MS
    session_path: str = "/"
    session_sweep_interval_s: int = 3_600

    request_timeout_s: float = 10.0
    cors_origins: tuple[str, ...] = ("http://localhost:3000",)
    snowflake_worker_id: int = 28

    @property
    def is_production(self) -> bool:
        return self.env == "production"


def load_settings() -> Settings:
    defaults = Settings()
    return Settings(
        env=_env_str("APP_ENV", defaults.env),
        log_level=_env_str("LOG_LEVEL", defaults.log_level).upper(),
        database_url=os.environ.get("DATABASE_URL", "").strip(),
        db_pool_min=_env_int("DB_POOL_MIN", defaults.db_pool_min),
        db_pool_max=_env_int("DB_POOL_MAX", defaults.db_pool_max),
        db_command_timeout_s=_env_float("DB_COMMAND_TIMEOUT_S", defaults.db_command_timeout_s),
        salt=os.environ.get("JWT_SALT", "").strip() or None,
        jwt_expire_seconds=_env_int("JWT_EXPIRE_SECONDS", defaults.jwt_expire_seconds),
        session_secret=_env_str("SESSION_SECRET", defaults.session_secret),
        session_ttl_ms=_env_int("SESSION_TTL_MS", defaults.session_ttl_ms),
        session_path=_env_str("SESSION_PATH", defaults.session_path),
        session_sweep_interval_s=_env_int("SESSION_SWEEP_INTERVAL_S", defaults.session_sweep_interval_s),
        request_timeout_s=_env_float("REQUEST_TIMEOUT_S", defaults.request_timeout_s),
        cors_origins=_env_list("CORS_ORIGINS", defaults.cors_origins),
        snowflake_worker_id=_env_int("SNOWFLAKE_WORKER_ID", defaults.snowflake_worker_id),
    )


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
