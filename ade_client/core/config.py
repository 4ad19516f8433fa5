from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENVIRONMENT_BASE_URLS: dict[str, str] = {
    "production": "https://api.va.landing.ai",
    "eu": "https://api.va.eu-west-1.landing.ai",
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = "ade-client"
    log_level: str = "INFO"
    log_json: bool = False

    ade_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("ade_api_key", "vision_agent_api_key"),
    )
    ade_environment: Literal["production", "eu"] = "production"
    ade_base_url: str = ""
    ade_parse_model: str = "dpt-2-latest"
    ade_extract_model: str = "extract-latest"

    ade_timeout_seconds: float = 120.0
    ade_max_retries: int = 3
    ade_retry_backoff_seconds: float = 1.0
    ade_retry_max_backoff_seconds: float = 30.0

    ade_job_poll_interval_seconds: float = 2.0
    ade_job_poll_max_interval_seconds: float = 30.0
    ade_job_timeout_seconds: float = 1800.0

    ade_sync_page_limit: int = 50
    ade_batch_max_workers: int = 4

    def resolved_base_url(self) -> str:
        if self.ade_base_url:
            return self.ade_base_url.rstrip("/")
        return ENVIRONMENT_BASE_URLS[self.ade_environment]


@lru_cache
def get_settings() -> Settings:
    return Settings()
