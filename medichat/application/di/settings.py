"""Runtime configuration read from environment variables."""

import os
from dataclasses import dataclass, field
from typing import Optional


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


@dataclass(frozen=True)
class Settings:
    """
    Service settings. Build with `Settings.from_env()`.

    With the memory store the hospital directory is empty unless
    `hospital_directory_file` names a JSON seed file; tenants without an
    entry get the generic assistant context.
    """

    # Storage
    chat_store_backend: str = "postgres"
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "medichat_db"
    db_user: str = "postgres"
    db_password: str = "postgres"
    db_pool_min_size: int = 2
    db_pool_max_size: int = 10

    # Guard layer
    chat_guard_backend: str = "memory"
    redis_url: str = "redis://localhost:6379/0"
    rate_limit_window_ms: int = 300_000
    rate_limit_max_requests: int = 1
    cache_ttl_ms: int = 600_000
    cache_max_entries: int = 10_000

    # Provider
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"
    gemini_temperature: float = 0.7
    gemini_max_output_tokens: int = 500
    provider_timeout_seconds: float = 30.0
    provider_max_retries: int = 2
    provider_retry_base_delay: float = 1.0

    # Sessions
    max_session_messages: int = 50
    hospital_directory_file: Optional[str] = None

    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            chat_store_backend=os.getenv("CHAT_STORE_BACKEND", "postgres").lower(),
            db_host=os.getenv("DB_HOST", "localhost"),
            db_port=_env_int("DB_PORT", 5432),
            db_name=os.getenv("DB_NAME", "medichat_db"),
            db_user=os.getenv("DB_USER", "postgres"),
            db_password=os.getenv("DB_PASSWORD", "postgres"),
            db_pool_min_size=_env_int("DB_POOL_MIN_SIZE", 2),
            db_pool_max_size=_env_int("DB_POOL_MAX_SIZE", 10),
            chat_guard_backend=os.getenv("CHAT_GUARD_BACKEND", "memory").lower(),
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            rate_limit_window_ms=_env_int("RATE_LIMIT_WINDOW_MS", 300_000),
            rate_limit_max_requests=_env_int("RATE_LIMIT_MAX_REQUESTS", 1),
            cache_ttl_ms=_env_int("CACHE_TTL_MS", 600_000),
            cache_max_entries=_env_int("CACHE_MAX_ENTRIES", 10_000),
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
            gemini_temperature=_env_float("GEMINI_TEMPERATURE", 0.7),
            gemini_max_output_tokens=_env_int("GEMINI_MAX_OUTPUT_TOKENS", 500),
            provider_timeout_seconds=_env_float("PROVIDER_TIMEOUT_SECONDS", 30.0),
            provider_max_retries=_env_int("PROVIDER_MAX_RETRIES", 2),
            provider_retry_base_delay=_env_float("PROVIDER_RETRY_BASE_DELAY", 1.0),
            max_session_messages=_env_int("MAX_SESSION_MESSAGES", 50),
            hospital_directory_file=os.getenv("HOSPITAL_DIRECTORY_FILE") or None,
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )
