from __future__ import annotations
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["console", "json"] = "console"

    # comma-separated, e.g. "http://localhost:3000,https://app.example"
    BACKEND_CORS_ORIGINS: str = ""

    # Zone substituted for an unrecognised identifier at the service boundary.
    # None disables the fallback: unknown zones are rejected with 422.
    FALLBACK_TIMEZONE: Optional[str] = None

    MAX_DATE_RANGE_DAYS: int = 366
    DISPLAY_WINDOW_PADDING_DAYS: int = 1

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.BACKEND_CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
