"""Application configuration using Pydantic BaseSettings."""

import json
from functools import lru_cache
from typing import Annotated, List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from env/.env with validation."""

    # ── Core ─────────────────────────────────────
    app_name: str = "Body Parser Daemon"
    listen_host: str = "0.0.0.0"
    listen_port: Optional[int] = 3000

    model_config = SettingsConfigDict(
        env_prefix="BODYPARSER_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        validate_default=False,
    )

    # Logging level
    log_level: str = "INFO"

    # Reduce noisy logs from random scanners
    suppress_404_logs: bool = True

    # ── Body parsing ──────────────────────────────────────────────────────────
    # Max request body in bytes (0 = unlimited)
    body_limit: int = 50 * 1024
    # Also accept application/x-www-form-urlencoded, transcoded to JSON
    accept_form: bool = False
    # Comma separated or JSON list in the environment
    methods: Annotated[List[str], NoDecode] = ["POST", "PUT", "PATCH"]

    # ── Validators ────────────────────────────────────────────────────────────
    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = (value or "").strip().upper()
        valid = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}
        return level if level in valid else "INFO"

    @field_validator("body_limit")
    @classmethod
    def _validate_body_limit(cls, value: int) -> int:
        if value < 0:
            raise ValueError("body_limit must be >= 0 (0 disables the limit)")
        return value

    @field_validator("methods", mode="before")
    @classmethod
    def _parse_method_list(cls, value):
        if value is None:
            return value
        if isinstance(value, str):
            text = value.strip()
            if text.startswith("[") and text.endswith("]"):
                try:
                    parsed = json.loads(text)
                    if isinstance(parsed, list):
                        return [str(x).strip().upper() for x in parsed]
                except json.JSONDecodeError:
                    pass
            return [part.strip().upper() for part in text.split(",") if part.strip()]
        if isinstance(value, list):
            return [str(x).strip().upper() for x in value]
        return value


# Cached settings instance
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance (validates env on first call)."""
    return Settings()
