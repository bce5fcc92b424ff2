from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv


# Placeholder credential shared by bulk-provisioned accounts; rotated on first login.
BUILTIN_BULK_PASSWORD = "123456"


def _load_env() -> None:
    # Centralized dotenv loading; safe if .env missing
    load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    log_level: str

    # Core/runtime
    db_path: str
    run_env: str
    storage_root: str

    openai_api_key: str | None
    openai_model: str | None
    openai_base_url: str | None

    # AI gating
    ai_enabled: bool
    ai_provider: str  # only openai is wired

    # Extraction limits/timeouts
    llm_timeout_seconds: float
    llm_max_retries: int
    max_publications: int

    # Bulk provisioning
    bulk_default_password: str
    bulk_account_role: str
    bcrypt_rounds: int

    # API auth
    jwt_secret_key: str
    jwt_algorithm: str
    admin_role: str

    # Logging/tracing
    llm_trace: bool = False
    llm_log_path: str = "logs/llm_calls.jsonl"

    @property
    def uses_builtin_password(self) -> bool:
        return self.bulk_default_password == BUILTIN_BULK_PASSWORD


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    _load_env()
    ai_enabled = _as_bool(os.getenv("AI_ENABLED"), default=True)
    ai_provider = os.getenv("AI_PROVIDER", "openai")
    openai_api_key = os.getenv("OPENAI_API_KEY")

    if ai_enabled and ai_provider == "openai" and not openai_api_key:
        if os.getenv("RUN_ENV", "local").lower() != "test":
            raise RuntimeError(
                "OPENAI_API_KEY required when AI_PROVIDER=openai and AI_ENABLED=true"
            )
    return Settings(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        db_path=os.getenv("DB_PATH", "talent.db"),
        run_env=os.getenv("RUN_ENV", "local"),
        storage_root=os.getenv("STORAGE_ROOT", "storage/resumes"),
        openai_api_key=openai_api_key,
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
        ai_enabled=ai_enabled,
        ai_provider=ai_provider,
        llm_timeout_seconds=float(os.getenv("LLM_TIMEOUT_SECONDS", "120")),
        llm_max_retries=int(os.getenv("LLM_MAX_RETRIES", "0")),
        max_publications=int(os.getenv("MAX_PUBLICATIONS", "10")),
        bulk_default_password=os.getenv("BULK_DEFAULT_PASSWORD", BUILTIN_BULK_PASSWORD),
        bulk_account_role=os.getenv("BULK_ACCOUNT_ROLE", "candidate"),
        bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "12")),
        jwt_secret_key=os.getenv("JWT_SECRET_KEY", "change-this-secret"),
        jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
        admin_role=os.getenv("ADMIN_ROLE", "admin"),
        llm_trace=_as_bool(os.getenv("LLM_TRACE")),
        llm_log_path=os.getenv("LLM_LOG_PATH", "logs/llm_calls.jsonl"),
    )
