"""
RifsRedis Configuration Settings

This module contains all configuration constants for the RifsRedis
server and client. Every field can be overridden from the environment.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Server and client configuration settings."""

    # Network settings
    HOST: str = os.environ.get("RIFS_REDIS_HOST", "127.0.0.1")
    PORT: int = int(os.environ.get("RIFS_REDIS_PORT", "7379"))

    # Client response wait: GET_RETRIES_COUNT * GET_RETRIES_INTERVAL seconds
    GET_RETRIES_COUNT: int = int(os.environ.get("RIFS_REDIS_GET_RETRIES", "100"))
    GET_RETRIES_INTERVAL: float = float(os.environ.get("RIFS_REDIS_GET_INTERVAL", "0.1"))

    # Connection settings
    READ_BUFFER_SIZE: int = 65536  # Longest accepted message line, in bytes

    # Logging settings
    DEBUG: bool = os.environ.get("RIFS_REDIS_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("RIFS_REDIS_LOG_LEVEL", "INFO")

    @property
    def response_timeout(self) -> float:
        """Default time a client waits for a matching response."""
        return self.GET_RETRIES_COUNT * self.GET_RETRIES_INTERVAL


# Global settings instance
settings = Settings()
