from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field("sqlite+aiosqlite:///./assignment_hub.db", alias="DATABASE_URL")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Capped list size used by the list endpoints and by the matrix client
    list_fetch_limit: int = Field(100, alias="LIST_FETCH_LIMIT")
    list_max_limit: int = Field(500, alias="LIST_MAX_LIMIT")

    api_base_url: str = Field("http://localhost:8000", alias="API_BASE_URL")
    api_timeout_seconds: float = Field(30.0, alias="API_TIMEOUT_SECONDS")

    draft_storage_path: str = Field(".assignment_hub/storage.json", alias="DRAFT_STORAGE_PATH")
    draft_ttl_hours: float = Field(24.0, alias="DRAFT_TTL_HOURS")
    completion_check_delay_seconds: float = Field(1.0, alias="COMPLETION_CHECK_DELAY_SECONDS")
    status_poll_interval_seconds: Optional[float] = Field(10.0, alias="STATUS_POLL_INTERVAL_SECONDS")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
