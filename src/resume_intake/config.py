"""Runtime settings loaded from the environment or a .env file."""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    CREDENTIALS_PATH,
    DEFAULT_FOLDER,
    DEFAULT_IMAP_HOST,
    DEFAULT_IMAP_PORT,
    DEFAULT_SCAN_INTERVAL_MS,
    INTAKE_DB_PATH,
    RESUME_DIR,
    TOKEN_PATH,
)


class Settings(BaseSettings):
    # Mailbox settings
    mailbox_provider: str = Field(default="imap", validation_alias="MAILBOX_PROVIDER")
    imap_host: str = Field(default=DEFAULT_IMAP_HOST, validation_alias="IMAP_HOST")
    imap_port: int = Field(default=DEFAULT_IMAP_PORT, validation_alias="IMAP_PORT")
    imap_user: str | None = Field(default=None, validation_alias=AliasChoices("IMAP_USER", "SMTP_USER"))
    imap_password: str | None = Field(default=None, validation_alias=AliasChoices("IMAP_PASS", "SMTP_PASS"))
    imap_tls: bool = Field(default=True, validation_alias="IMAP_TLS")
    imap_folder: str = Field(default=DEFAULT_FOLDER, validation_alias="IMAP_FOLDER")

    # Scheduling
    scan_interval_ms: int = Field(default=DEFAULT_SCAN_INTERVAL_MS, validation_alias="SCAN_INTERVAL_MS")

    # Storage
    db_path: Path = Field(default=INTAKE_DB_PATH, validation_alias="INTAKE_DB_PATH")
    resume_dir: Path = Field(default=RESUME_DIR, validation_alias="INTAKE_RESUME_DIR")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    def has_mailbox_credentials(self) -> bool:
        if self.mailbox_provider == "gmail":
            return CREDENTIALS_PATH.exists() or TOKEN_PATH.exists()
        return bool(self.imap_user) and bool(self.imap_password)
