"""
Global configuration using Pydantic Settings.
All secrets loaded from environment variables.
"""

from dotenv import load_dotenv
from typing import Literal, Optional
from pydantic import Field, SecretStr, RedisDsn
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file
load_dotenv()


class StateConfig(BaseSettings):
    """State store configuration."""

    model_config = SettingsConfigDict(env_prefix="KEYRING_STATE_", extra="ignore")

    backend: Literal["memory", "file"] = Field(
        default="file",
        description="State store backend"
    )
    path: str = Field(
        default="~/.eoa-keyring/state.json",
        description="State file path (file backend)"
    )


class EncryptionConfig(BaseSettings):
    """Encryption configuration."""

    model_config = SettingsConfigDict(env_prefix="ENCRYPTION_", extra="ignore")

    key: Optional[SecretStr] = Field(
        default=None,
        description="Master secret for encrypting private keys at rest"
    )


class RedisConfig(BaseSettings):
    """Redis configuration."""

    model_config = SettingsConfigDict(env_prefix="REDIS_", extra="ignore")

    url: RedisDsn = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL"
    )
    max_connections: int = Field(default=10, description="Max connections")


class EventsConfig(BaseSettings):
    """Event notifier configuration."""

    model_config = SettingsConfigDict(env_prefix="EVENTS_", extra="ignore")

    backend: Literal["log", "redis"] = Field(
        default="log",
        description="Event notifier backend"
    )
    channel_prefix: str = Field(
        default="keyring:events",
        description="Redis channel prefix"
    )


class ApprovalConfig(BaseSettings):
    """Approval mode configuration."""

    model_config = SettingsConfigDict(env_prefix="APPROVAL_", extra="ignore")

    sync: bool = Field(
        default=False,
        description="Initial approval mode when no state has been persisted yet"
    )


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_", extra="ignore")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    json_output: bool = Field(default=True, description="Render logs as JSON")


class KeyringConfig(BaseSettings):
    """Master configuration aggregating all sub-configs."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    debug: bool = Field(default=False, description="Force DEBUG logging")

    # Sub-configurations
    state: StateConfig = Field(default_factory=StateConfig)
    encryption: EncryptionConfig = Field(default_factory=EncryptionConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    events: EventsConfig = Field(default_factory=EventsConfig)
    approval: ApprovalConfig = Field(default_factory=ApprovalConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# Global config instance
config = KeyringConfig()


__all__ = [
    "KeyringConfig",
    "StateConfig",
    "EncryptionConfig",
    "RedisConfig",
    "EventsConfig",
    "ApprovalConfig",
    "LoggingConfig",
    "config",
]
