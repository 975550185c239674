from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Values are read from process environment and optionally from `.env`.
    """

    github_api_base_url: str = "https://api.github.com"
    github_api_version: str = "2022-11-28"
    github_user_agent: str = "profile-dashboard"
    github_timeout_seconds: float = 20.0
    repositories_per_page: int = 100
    events_per_page: int = 100
    top_repository_count: int = 10
    synthetic_fallback_enabled: bool = True
    synthetic_fallback_seed: int | None = None
    log_level: str = "INFO"
    sentry_dsn: str | None = None
    environment: str = "development"
    release: str | None = None
    sentry_traces_sample_rate: float = 0.1
    rate_limit_per_minute: int = 30
    rate_limit_window_seconds: int = 60

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
