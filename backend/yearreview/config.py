"""
Application Configuration

Uses Pydantic Settings for type-safe configuration.
"""

from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator, ConfigDict


class Settings(BaseSettings):
    """Application settings with validation."""

    # === Core ===
    log_level: str = Field(default="INFO", description="Logging level")
    default_providers: str = Field(
        default="github,google,slack,linear",
        description="Comma-separated providers included when none are requested"
    )

    # === Credentials ===
    credentials_database_url: str = Field(
        default="sqlite:///./credentials.db",
        description="Database URL for persisted provider tokens"
    )
    token_expiry_margin_seconds: int = Field(
        default=300,
        description="Subtracted from provider-declared token lifetimes"
    )

    # === HTTP / Rate Limiting ===
    http_timeout_seconds: float = Field(default=30.0)
    max_rate_limit_retries: int = Field(default=2)
    max_rate_limit_wait_seconds: float = Field(default=60.0)
    review_timeout_seconds: float = Field(
        default=300.0,
        description="Upper bound for one provider's statistics run"
    )

    # === GitHub ===
    github_api_url: str = Field(default="https://api.github.com")
    github_token: Optional[str] = Field(default=None)
    github_max_repositories: int = Field(
        default=15,
        description="Most recently updated repositories probed for commits"
    )
    github_page_size: int = Field(default=100)
    github_repository_pages: int = Field(default=3)
    github_commit_pages: int = Field(default=10)
    github_call_delay_seconds: float = Field(default=0.0)

    # === Google ===
    google_api_url: str = Field(default="https://www.googleapis.com")
    google_token_url: str = Field(default="https://oauth2.googleapis.com/token")
    google_client_id: Optional[str] = Field(default=None)
    google_client_secret: Optional[str] = Field(default=None)
    google_access_token: Optional[str] = Field(default=None)
    google_refresh_token: Optional[str] = Field(default=None)
    gmail_list_max_results: int = Field(default=500)
    gmail_sample_size: int = Field(
        default=50,
        description="Messages inspected to estimate the monthly distribution"
    )
    gmail_call_delay_seconds: float = Field(default=0.05)
    calendar_page_size: int = Field(default=2500)
    calendar_max_pages: int = Field(default=10)

    # === Slack ===
    slack_api_url: str = Field(default="https://slack.com/api")
    slack_token: Optional[str] = Field(default=None)
    slack_max_channels: int = Field(
        default=20,
        description="Member channels probed for message history"
    )
    slack_max_messages_per_channel: int = Field(default=1000)
    slack_page_size: int = Field(default=200)
    slack_call_delay_seconds: float = Field(default=0.2)

    # === Linear ===
    linear_api_url: str = Field(default="https://api.linear.app/graphql")
    linear_api_key: Optional[str] = Field(default=None)
    linear_page_size: int = Field(default=250)
    linear_max_pages: int = Field(default=4)

    @field_validator('credentials_database_url')
    @classmethod
    def fix_postgres_url(cls, v: str) -> str:
        """Fix Render/Railway postgres:// URL to postgresql://"""
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    @property
    def provider_list(self) -> List[str]:
        """Parse providers from comma-separated string."""
        return [p.strip().lower() for p in self.default_providers.split(",") if p.strip()]

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
