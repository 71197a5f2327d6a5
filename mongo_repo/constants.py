"""
Constants for MONGO_REPO.

Shared defaults and environment variable names, kept in one place to avoid
magic values across the codebase.
"""

from typing import Final

# ============================================================================
# CONNECTION CONSTANTS
# ============================================================================

DEFAULT_HOST: Final[str] = "127.0.0.1"
"""Default MongoDB host when MONGO_HOST is not set."""

DEFAULT_PORT: Final[int] = 27017
"""Default MongoDB port when MONGO_PORT is not set."""

MONGO_HOST_ENV_KEY: Final[str] = "MONGO_HOST"
"""Environment variable holding the MongoDB host."""

MONGO_PORT_ENV_KEY: Final[str] = "MONGO_PORT"
"""Environment variable holding the MongoDB port."""

DEFAULT_SERVER_SELECTION_TIMEOUT_MS: Final[int] = 5000
"""Default server selection timeout in milliseconds."""

APP_NAME: Final[str] = "MONGO_REPO"
"""Application name reported to the MongoDB server."""

MIN_PORT: Final[int] = 1
MAX_PORT: Final[int] = 65535

# ============================================================================
# DOCUMENT CONSTANTS
# ============================================================================

ID_FIELD: Final[str] = "_id"
"""Reserved primary-key field name in MongoDB documents."""

SET_OPERATOR: Final[str] = "$set"

# ============================================================================
# METRICS CONSTANTS
# ============================================================================

MAX_METRICS: Final[int] = 10000
"""Maximum number of distinct metric keys kept before LRU eviction."""
