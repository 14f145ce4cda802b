from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # App
    app_name: str = "Pagesmith"
    debug: bool = False
    port: int = 3001

    # Intake shared secret (MY_SECRET kept for existing deployments)
    shared_secret: str = Field(
        default="",
        validation_alias=AliasChoices("shared_secret", "SHARED_SECRET", "MY_SECRET"),
    )

    # GitHub
    github_token: str = ""
    github_api_url: str = "https://api.github.com"
    github_default_branch: str = "main"

    # Anthropic
    anthropic_api_key: str = ""
    generation_model: str = "claude-sonnet-4-20250514"
    generation_max_tokens: int = 8000
    generation_temperature: float = 0.7

    # Pipeline policy
    max_generation_attempts: int = Field(default=3, ge=1)
    repo_settle_seconds: float = 2.0
    pages_poll_timeout_seconds: float = 120.0
    pages_poll_interval_seconds: float = Field(default=10.0, gt=0)
    notify_max_attempts: int = Field(default=6, ge=1)  # 1 initial + 5 retries
    http_timeout_seconds: float = 30.0

    # Secret scanning
    trufflehog_path: str = "trufflehog"


@lru_cache
def get_settings() -> Settings:
    return Settings()
