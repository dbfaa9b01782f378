"""
Type-safe configuration using Pydantic Settings
Validates environment variables and provides sensible defaults
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class PoolConfig(BaseSettings):
    """
    Resource pool bot configuration with validation
    Automatically loads from environment variables and .env file
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Required settings
    telegram_bot_token: str = Field(
        ..., description="Telegram Bot API token from @BotFather"
    )

    # Optional Telegram settings
    admin_telegram_id: Optional[int] = Field(
        None, description="Admin user ID for alerts and catalog reseeding"
    )

    # OpenAI API settings (optional - static fallback replies if not set)
    openai_api_key: Optional[str] = Field(
        None, description="OpenAI API key for free-text replies"
    )
    openai_model: str = Field("gpt-4o-mini", description="OpenAI model to use")
    openai_api_url: str = Field(
        "https://api.openai.com/v1/chat/completions",
        description="OpenAI-compatible chat completions endpoint",
    )

    # Extra notification transports
    slack_webhook_url: Optional[str] = Field(
        None, description="Slack incoming webhook for notifications"
    )
    email_webhook_url: Optional[str] = Field(
        None, description="Email relay endpoint accepting {to, body} JSON"
    )

    # Database settings
    db_file: str = Field("pool_data.db", description="SQLite database file path")
    pool_name: str = Field("default", description="Name of the resource pool document")

    # Arbitration settings
    reminder_hour: int = Field(
        9, ge=0, le=23, description="UTC hour of the daily reminder sweep"
    )
    reminder_hours_ahead: int = Field(
        24, ge=1, description="Remind holders whose return is due within this many hours"
    )
    conversation_cap: int = Field(
        20, ge=2, description="Chat messages kept per user as assistant context"
    )

    log_level: str = Field("INFO", description="Root logging level")

    @field_validator("telegram_bot_token")
    @classmethod
    def validate_telegram_token(cls, v: str) -> str:
        """Validate Telegram bot token format"""
        if not v or v == "your_bot_token_here":
            raise ValueError(
                "TELEGRAM_BOT_TOKEN must be set to a valid token from @BotFather"
            )
        if ":" not in v:
            raise ValueError(
                "TELEGRAM_BOT_TOKEN appears to be invalid (should contain ':')"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def has_openai(self) -> bool:
        """Check if OpenAI API is configured"""
        return self.openai_api_key is not None and self.openai_api_key != ""


# Singleton instance
_config: Optional[PoolConfig] = None


def get_config() -> PoolConfig:
    """
    Get or create the global configuration instance

    Returns:
        PoolConfig: Validated configuration

    Raises:
        ValidationError: If configuration is invalid
    """
    global _config
    if _config is None:
        _config = PoolConfig()
    return _config


def reload_config() -> PoolConfig:
    """Force reload configuration from environment"""
    global _config
    _config = PoolConfig()
    return _config
