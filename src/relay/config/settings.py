"""Pydantic settings configuration for the relay."""

from enum import Enum
from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    """Valid logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ConfigurationError(Exception):
    """Raised when required start-up configuration is missing."""

    def __init__(self, message: str, missing: list[str] | None = None):
        super().__init__(message)
        self.missing = missing or []


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="RELAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Server settings
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: LogLevel = LogLevel.INFO

    # Credentials (also accepted under their unprefixed names; the AI key
    # additionally under JAPAN_AI_API_KEY)
    slack_bot_token: str = Field(
        default="",
        validation_alias=AliasChoices("RELAY_SLACK_BOT_TOKEN", "SLACK_BOT_TOKEN"),
    )
    slack_app_token: str = Field(
        default="",
        validation_alias=AliasChoices("RELAY_SLACK_APP_TOKEN", "SLACK_APP_TOKEN"),
    )
    ai_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("RELAY_AI_API_KEY", "AI_API_KEY", "JAPAN_AI_API_KEY"),
    )

    # AI service settings
    ai_base_url: str = "https://api.japan-ai.co.jp"
    ai_endpoint: str = "/chat/v2"
    ai_timeout_seconds: float = 60.0
    ai_profile_path: str | None = None

    # Session settings
    session_expiry_hours: float = 24.0
    session_sweep_interval_hours: float = 24.0

    # Slack transport
    socket_mode_enabled: bool = True

    # Observability settings
    audit_enabled: bool = True
    audit_log_level: str = "INFO"

    @property
    def ai_url(self) -> str:
        """Full URL of the AI chat endpoint."""
        return f"{self.ai_base_url.rstrip('/')}{self.ai_endpoint}"

    def require_credentials(self) -> None:
        """Check that every credential needed to serve traffic is present.

        Raises:
            ConfigurationError: If any credential is empty, listing all of them.
        """
        required = {
            "SLACK_BOT_TOKEN": self.slack_bot_token,
            "SLACK_APP_TOKEN": self.slack_app_token,
            "AI_API_KEY": self.ai_api_key,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}",
                missing=missing,
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
