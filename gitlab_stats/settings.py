from pydantic import Field
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Values are read from process environment and optionally from `.env`.
    `GITLAB_TOKEN` is required, so building settings without it fails at startup.
    """

    gitlab_url: str = "https://gitlab.com"
    gitlab_token: str = Field(min_length=1)
    request_timeout_seconds: float = 15.0
    projects_per_page: int = Field(default=100, ge=1, le=100)
    log_level: str = "INFO"
    sentry_dsn: str | None = None
    environment: str = "development"
    release: str | None = None
    sentry_traces_sample_rate: float = 0.1

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
