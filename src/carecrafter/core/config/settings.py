"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """CareCrafter Health server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default; there is no auth layer in front of the tools.
    carecrafter_host: str = "127.0.0.1"
    carecrafter_port: int = 8001
    carecrafter_log_level: str = "info"
    # Must be set true before binding to a non-loopback host.
    carecrafter_allow_insecure_bind: bool = False

    # Storage (health data bank)
    db_path: str = "~/.carecrafter/health.db"

    # Encryption. Empty means entries live in memory only.
    encryption_key: str = ""

    # Chatbot
    knowledge_base_path: str = ""
    default_age_group: Literal["youth", "adult", "senior"] = "adult"

    # Analytics
    default_range_preset: Literal[
        "last_7_days", "last_30_days", "last_90_days", "all_time"
    ] = "last_30_days"


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
