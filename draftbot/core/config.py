"""Draft bot configuration"""

import logging
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class BotSettings(BaseSettings):
    """Draft bot settings"""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
    )

    # Discord
    discord_token: str = Field(..., description="Discord bot token")
    owner_id: str = Field(default="", description="User allowed to fire queues early")
    draft_channel_id: str = Field(
        default="", description="If set, draft commands only work in this channel"
    )
    matchmaking_channel_id: str = Field(
        default="", description="Channel for !report, !status and round announcements"
    )

    # Google Sheets
    live_sheet_id: str = Field(..., description="Spreadsheet document ID")
    sheets_max_retries: int = Field(default=5, description="Attempts per Sheets call")
    sheets_retry_delay: float = Field(default=1.0, description="Base backoff in seconds")

    # Draft queues
    reminder_delay_seconds: float = Field(default=3600, description="Inactivity reminder delay")
    response_window_seconds: float = Field(default=300, description="Reminder reply window")
    notification_cooldown_seconds: float = Field(
        default=12 * 3600, description="Minimum gap between notification DMs"
    )
    notify_threshold: int = Field(default=5, description="Queue size that triggers DMs")
    draftmancer_url: str = Field(
        default="https://draftmancer.com/?session=", description="Draft session link prefix"
    )

    # Environment
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("live_sheet_id", "discord_token")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            logger.warning(f"Invalid log level '{v}', defaulting to INFO")
            return "INFO"
        return v_upper

    @field_validator("reminder_delay_seconds", "response_window_seconds")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @property
    def draft_channel_restricted(self) -> bool:
        return bool(self.draft_channel_id)


@lru_cache
def get_settings() -> BotSettings:
    """Get cached settings instance"""
    return BotSettings()  # type: ignore[call-arg]
