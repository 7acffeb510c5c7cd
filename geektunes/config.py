# geektunes/config.py
from functools import lru_cache
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="GEEKTUNES_", env_file=".env", extra="ignore")

    # Storage
    database_url: str = "sqlite:///./geektunes.db"
    storage_backend: Literal["database", "memory"] = "database"
    seed_sample_data: bool = True

    # Auth
    secret_key: str = "change-me-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    refresh_token_expire_days: int = 7
    admin_usernames: List[str] = []

    # Chat
    chat_message_max_length: int = 500
    typing_timeout_seconds: float = 2.0

    # App
    environment: str = "development"
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]
    host: str = "127.0.0.1"
    port: int = 8000


@lru_cache
def get_settings() -> Settings:
    return Settings()
