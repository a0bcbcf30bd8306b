"""
Application configuration using Pydantic Settings.
Loads configuration from HELLO_* environment variables with demo-friendly defaults.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .queues import QUEUE_NAME


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="HELLO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Broker
    mqtt_host: str = "127.0.0.1"
    mqtt_port: int = 1883
    mqtt_keepalive: int = 30
    mqtt_qos: int = Field(default=1, ge=0, le=2)

    # Queue
    namespace: str = ""
    queue_name: str = QUEUE_NAME

    # Roles, comma separated: "sender", "receiver", both or none
    profiles: str = ""

    # Sender
    sender_initial_delay_ms: int = Field(default=500, ge=0)
    sender_period_ms: int = Field(default=1000, ge=1)
    dots_wrap: int = Field(default=3, ge=1)

    # Receiver
    receiver_work_ms: int = Field(default=100, ge=0)
    receiver_failure_probability: float = Field(default=0.2, ge=0.0, le=1.0)
    receiver_workers: int = Field(default=1, ge=1)
    shared_group: str = "hello"
    failure_policy: Literal["drop", "dead-letter"] = "drop"

    # Observability
    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
