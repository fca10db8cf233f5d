from functools import lru_cache
from typing import List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import json
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "Lead CRM API"
    api_v1_prefix: str = "/api/v1"
    database_url: str = "postgresql+psycopg://postgres:postgres@db:5432/lead_crm"
    timezone: str = "UTC"
    log_level: str = "INFO"
    token_ttl_days: int = 7
    export_row_limit: int = 10000
    cors_origins: str = "*"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    @field_validator("database_url")
    @classmethod
    def validate_db_url(cls, value: str) -> str:
        if not value:
            raise ValueError("DATABASE_URL is required")
        return value

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone: {value}") from exc
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return (value or "INFO").upper()

    @property
    def cors_origin_list(self) -> List[str]:
        s = self.cors_origins.strip()
        if not s:
            return []
        # accept JSON array format, e.g. '["https://a.example","https://b.example"]'
        if s.startswith("[") and s.endswith("]"):
            try:
                return [str(item) for item in json.loads(s)]
            except json.JSONDecodeError:
                pass
        # accept comma-separated string
        return [item.strip() for item in s.split(",") if item.strip()]

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
