"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # GitHub API
    github_oauth_token: str = ""
    github_api_base_url: str = "https://api.github.com"

    # GitHub Enterprise (used with --internal)
    github_enterprise_host: str = ""
    github_enterprise_oauth_token: str = ""

    http_timeout_seconds: float = 30.0

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "text"] = "text"

    # Run defaults
    max_concurrent_repos: int = 0
    clone_depth: int = 1
    command_timeout_seconds: float | None = None

    # Prometheus exporter, 0 disables it
    metrics_port: int = 0

    @property
    def metrics_enabled(self) -> bool:
        """Check if the metrics exporter should be started."""
        return self.metrics_port > 0


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
