"""
Configuration management for the conversation audit log.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = Field(default="sqlite:///./conversation_audit.db")

    # Retention
    default_retention_days: int = Field(
        default=90,
        ge=1,
        description="Used when the settings record has no retention value.",
    )

    # Fingerprinting
    host_identity: Optional[str] = Field(
        default=None,
        description="Overrides the host name mixed into fingerprint keys.",
    )
    fingerprint_namespace: str = Field(default="conversation-audit")

    # Export
    redaction_placeholder: str = Field(default="[REDACTED]")

    # Listing
    default_list_limit: int = Field(default=50, ge=1)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return settings
