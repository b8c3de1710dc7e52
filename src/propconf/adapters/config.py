# src/propconf/adapters/config.py
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    # App & logging
    ENV: str = Field(default="dev")
    LOG_LEVEL: str = Field(default="INFO")

    # persistence
    DB_URI: str = Field(default="sqlite:///propconf.db")

    # -----------------------------
    # Object storage
    # -----------------------------
    STORAGE_DIR: str = Field(default="uploads")
    PUBLIC_BASE_URL: str = Field(default="http://localhost:8000/uploads")

    # When set, uploads go to this remote endpoint instead of STORAGE_DIR
    UPLOAD_URL: str | None = Field(default=None)

    BROCHURE_MAX_BYTES: int = Field(default=10 * 1024 * 1024)

    # -----------------------------
    # Admin gate
    # -----------------------------
    # Comma separated in the environment: PROPCONF_ADMIN_TOKENS="a,b"
    ADMIN_TOKENS: str = Field(default="")

    LISTING_PAGE_SIZE: int = Field(default=12)

    model_config = SettingsConfigDict(
        env_prefix="PROPCONF_",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def admin_tokens(self) -> list[str]:
        return [t.strip() for t in self.ADMIN_TOKENS.split(",") if t.strip()]

    @field_validator("BROCHURE_MAX_BYTES", "LISTING_PAGE_SIZE", mode="before")
    @classmethod
    def _positive(cls, v: Any) -> Any:
        n = int(v)
        if n <= 0:
            raise ValueError("must be > 0")
        return n


config = AppConfig()
