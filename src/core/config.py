from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Ignore unrelated env keys so local/dev .env can include optional integrations.
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Rider Ops Backend"
    environment: str = "development"
    api_prefix: str = "/api/v1"
    cors_allow_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    sheets_spreadsheet_id: Optional[str] = Field(default=None, alias="SHEETS_SPREADSHEET_ID")
    sheets_api_key: Optional[str] = Field(default=None, alias="SHEETS_API_KEY")
    sheets_access_token: Optional[str] = Field(default=None, alias="SHEETS_ACCESS_TOKEN")
    sheets_base_url: str = Field(default="https://sheets.googleapis.com/v4", alias="SHEETS_BASE_URL")
    sheets_timeout_seconds: float = Field(default=30.0, alias="SHEETS_TIMEOUT_SECONDS")

    cache_default_ttl_seconds: float = Field(default=900.0, alias="CACHE_DEFAULT_TTL_SECONDS")
    riders_cache_ttl_seconds: float = Field(default=900.0, alias="RIDERS_CACHE_TTL_SECONDS")
    performance_cache_ttl_seconds: float = Field(default=900.0, alias="PERFORMANCE_CACHE_TTL_SECONDS")

    security_inquiry_cost: Decimal = Field(default=Decimal("100"), alias="SECURITY_INQUIRY_COST")
    config_dir: str = Field(default="data", alias="CONFIG_DIR")


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_cors_origins() -> list[str]:
    settings = get_settings()
    return [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()]
