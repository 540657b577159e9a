from datetime import date
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    app_name: str = "Chat Transcript Import API"
    environment: Literal["dev", "test", "prod"] = "dev"
    debug: bool = False

    default_timezone: str = "UTC"
    earliest_message_date: date = date(2009, 1, 1)
    future_tolerance_hours: int = Field(default=24, ge=0)
    max_content_length: int = 65536
    max_sender_name_length: int = 100
    sniff_sample_size: int = Field(default=1024, gt=0)
    progress_log_interval: int = Field(default=5000, gt=0)

    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"])
    max_upload_size_mb: int = 15
    rate_limit_per_minute: int = 60


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
