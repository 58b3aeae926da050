"""
Configuration management for the video catalog bot.
Loads settings from environment variables with validation.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    base_dir: Path = Path(__file__).parent.parent
    data_dir: Path = Path(__file__).parent.parent / "data"

    # Telegram
    telegram_bot_token: str = Field(..., description="Telegram Bot API token")
    admin_password: str = Field(..., description="Password required to add videos")

    # Conversation
    entry_mode: Literal["menu", "auto_start"] = Field(
        default="menu", description="Greet idle chats with the main menu or with tag selection"
    )
    link_marker: str = Field(
        default="instagram.com", description="Substring that marks a supported video link"
    )
    max_videos: int = Field(default=5, ge=1, description="Maximum videos per request")
    clean_depth: int = Field(default=200, ge=1, description="Message ids walked back by /clean")

    # Storage
    storage_backend: Literal["sheets", "sqlite"] = Field(
        default="sheets", description="Where video records are kept"
    )

    # Google Sheets
    google_sheet_id: Optional[str] = Field(default=None, description="Spreadsheet ID")
    google_credentials_path: Path = Field(
        default=Path(__file__).parent.parent / "credentials.json",
        description="Service account key file",
    )
    sheet_name: str = Field(default="Sheet1", description="Worksheet with the videos")

    # Database
    database_url: Optional[str] = Field(
        default=None,
        description="Database connection URL",
    )

    # Webhook
    webhook_base_url: Optional[str] = Field(
        default=None, description="Public base URL; enables webhook mode when set"
    )
    webhook_path: str = Field(default="/webhook", description="Path for Telegram updates")
    webhook_secret: Optional[str] = Field(
        default=None, description="Secret token Telegram sends with every update"
    )
    port: int = Field(default=3000, description="Listening port in webhook mode")

    # Debug
    debug: bool = Field(default=False, description="Debug mode")

    @model_validator(mode="after")
    def check_storage(self) -> "Settings":
        if self.storage_backend == "sheets" and not self.google_sheet_id:
            raise ValueError("GOOGLE_SHEET_ID is required when STORAGE_BACKEND=sheets")
        return self

    @property
    def db_url(self) -> str:
        """Get database URL with absolute path."""
        if self.database_url:
            return self.database_url
        return f"sqlite+aiosqlite:///{self.data_dir / 'catalog.db'}"

    @property
    def webhook_mode(self) -> bool:
        return bool(self.webhook_base_url)

    @property
    def webhook_url(self) -> str:
        """Full URL Telegram posts updates to."""
        return f"{(self.webhook_base_url or '').rstrip('/')}{self.webhook_path}"


# Global settings instance
settings = Settings()
