"""
Configuration management for MONGO_REPO.

The repositories themselves only need a client handle; this module covers the
two settings used to build that handle at process start.
"""

import os

from .constants import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    MAX_PORT,
    MIN_PORT,
    MONGO_HOST_ENV_KEY,
    MONGO_PORT_ENV_KEY,
)
from .exceptions import ConfigurationError


class RepoConfig:
    """
    MongoDB connection configuration.

    Values come from explicit parameters first, then from the environment,
    then from the documented defaults.

    Example:
        # Using environment variables (MONGO_HOST / MONGO_PORT)
        config = RepoConfig()
        manager = ConnectionManager.from_config(config)

        # Or using direct parameters
        config = RepoConfig(host="mongo", port=27018)
    """

    def __init__(self, host: str | None = None, port: int | None = None):
        """
        Initialize configuration.

        Args:
            host: MongoDB host (defaults to MONGO_HOST env var or 127.0.0.1)
            port: MongoDB port (defaults to MONGO_PORT env var or 27017)

        Raises:
            ConfigurationError: If MONGO_PORT is set but is not an integer
        """
        self.host = host or os.getenv(MONGO_HOST_ENV_KEY, DEFAULT_HOST)
        if port is None:
            raw_port = os.getenv(MONGO_PORT_ENV_KEY)
            if raw_port is None:
                port = DEFAULT_PORT
            else:
                try:
                    port = int(raw_port)
                except ValueError as e:
                    raise ConfigurationError(
                        f"invalid mongo port: {raw_port}",
                        config_key=MONGO_PORT_ENV_KEY,
                        config_value=raw_port,
                    ) from e
        self.port = port

    @property
    def mongo_uri(self) -> str:
        """Connection string built from host and port."""
        return f"mongodb://{self.host}:{self.port}"

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigurationError: If a value is missing or out of range
        """
        if not self.host:
            raise ConfigurationError(
                "host is required (set MONGO_HOST environment variable or pass directly)",
                config_key=MONGO_HOST_ENV_KEY,
            )

        if not MIN_PORT <= self.port <= MAX_PORT:
            raise ConfigurationError(
                f"port must be between {MIN_PORT} and {MAX_PORT}, got {self.port}",
                config_key=MONGO_PORT_ENV_KEY,
                config_value=self.port,
            )
