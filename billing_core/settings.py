"""
Central settings module.

All configuration comes from environment variables (or .env in local dev).
Never import settings directly from this file; always use the `settings`
singleton at the bottom so the entire app shares one instance.
"""

import json

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # silently ignore unrecognised env vars
        case_sensitive=False,
    )

    # ── Environment ────────────────────────────────────────────────────────
    environment: str = "development"
    log_level: str = "INFO"

    # ── Database ───────────────────────────────────────────────────────────
    database_url: str = "sqlite:///./practice_billing.db"
    # Migrations are not shipped; tables are created from model metadata on startup.
    auto_create_tables: bool = True

    # ── File Storage (LEDES exports) ───────────────────────────────────────
    storage_backend: str = "local"  # local only
    local_storage_path: str = "/tmp/practice_billing_exports"
    ledes_export_max_bytes: int = 5 * 1024 * 1024  # 5 MiB per export file

    # ── Trust account balance updates ──────────────────────────────────────
    balance_retry_base_delay_seconds: float = 0.1

    # ── CORS ───────────────────────────────────────────────────────────────
    # Stored as str so pydantic-settings doesn't try to JSON-parse it at the
    # source layer. Use the `allowed_origins` property below for the parsed list.
    # Accepts: plain URL, comma-separated, or JSON array.
    allowed_origins_raw: str = Field(default="", validation_alias="allowed_origins")

    @property
    def allowed_origins(self) -> list[str]:
        raw = self.allowed_origins_raw.strip()
        if not raw:
            return []
        if raw.startswith("["):
            try:
                parsed = json.loads(raw)
                if isinstance(parsed, list):
                    return [str(x) for x in parsed]
            except json.JSONDecodeError:
                pass
        return [origin.strip() for origin in raw.split(",") if origin.strip()]

    # ── Derived helpers ────────────────────────────────────────────────────
    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


# Singleton, import this everywhere
settings = Settings()
