"""
Shared configuration management for the Contact Message Service.
"""

from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local", validation_alias="CONTACT_ENV")
    log_level: str = Field(default="info", validation_alias="CONTACT_LOG_LEVEL")

    # Listener
    host: str = Field(default="0.0.0.0", validation_alias="CONTACT_HOST")
    port: int = Field(default=3000, validation_alias=AliasChoices("CONTACT_PORT", "PORT"))

    # Front-end collaborators
    static_dir: Optional[str] = Field(default="public", validation_alias="CONTACT_STATIC_DIR")
    cors_allow_origins: List[str] = Field(
        default_factory=lambda: ["*"],
        validation_alias="CONTACT_CORS_ALLOW_ORIGINS",
    )


class ContactConfig(BaseConfig):
    """Configuration for the contact service components."""

    # Access gate
    admin_user: Optional[str] = Field(default=None, validation_alias=AliasChoices("CONTACT_ADMIN_USER", "ADMIN_USER"))
    admin_pass: Optional[str] = Field(default=None, validation_alias=AliasChoices("CONTACT_ADMIN_PASS", "ADMIN_PASS"))
    admin_realm: str = Field(default="Admin Area", validation_alias="CONTACT_ADMIN_REALM")

    # Store
    messages_file: str = Field(default="data/messages.json", validation_alias="CONTACT_MESSAGES_FILE")

    # Admission gate
    rate_limit_window_ms: int = Field(default=60_000, gt=0, validation_alias="CONTACT_RATE_LIMIT_WINDOW_MS")
    rate_limit_max: int = Field(default=6, gt=0, validation_alias="CONTACT_RATE_LIMIT_MAX")
    trust_forwarded_for: bool = Field(default=False, validation_alias="CONTACT_TRUST_FORWARDED_FOR")

    # Submission limits
    max_message_length: int = Field(default=5000, gt=0, validation_alias="CONTACT_MAX_MESSAGE_LENGTH")
    max_body_bytes: int = Field(default=10 * 1024, gt=0, validation_alias="CONTACT_MAX_BODY_BYTES")

    @property
    def admin_configured(self) -> bool:
        return bool(self.admin_user) and bool(self.admin_pass)


def get_config(**overrides) -> ContactConfig:
    """Get configuration for the contact service."""
    return ContactConfig(**overrides)
