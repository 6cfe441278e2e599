from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="WIWO_",
        case_sensitive=False,
        extra="ignore",
    )

    # GitHub token - unlocks received/private events and raises rate limits
    # Read from GH_TOKEN (the conventional name) or WIWO_GH_TOKEN
    gh_token: str = Field(
        default="",
        validation_alias=AliasChoices("GH_TOKEN", "WIWO_GH_TOKEN"),
    )

    # GitHub endpoints
    api_base_url: str = "https://api.github.com"
    clone_base_url: str = "https://github.com"
    api_version: str = "2022-11-28"
    user_agent: str = "wiwo-cli"

    # Events API pagination
    per_page: int = Field(default=100, ge=1, le=100)
    max_pages: int = Field(default=30, ge=1)
    # Events older than this are not served by the Events API
    event_horizon_days: int = Field(default=90, ge=1)
    default_time_range: str = "30d"

    # History fallback (clone-and-scan)
    clone_concurrency: int = Field(default=4, ge=1)
    clone_timeout_seconds: float = 300.0
    include_forks: bool = False

    # HTTP behaviour
    request_timeout_seconds: float = 30.0
    max_retries: int = Field(default=3, ge=1)

    # Whole-pipeline deadline in seconds (0 disables it)
    overall_timeout_seconds: float = 0.0

    log_level: str = "WARNING"

    @property
    def has_token(self) -> bool:
        """Check if a GitHub token is configured."""
        return bool(self.gh_token)


settings = Settings()
