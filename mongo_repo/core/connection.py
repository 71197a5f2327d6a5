"""
Connection management for MONGO_REPO.

Builds the motor client handle that repositories and units of work are
constructed with. Repositories never create clients themselves.
"""

import logging
import time

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError

from ..config import RepoConfig
from ..constants import APP_NAME, DEFAULT_SERVER_SELECTION_TIMEOUT_MS
from ..exceptions import InitializationError
from ..observability import get_logger as get_contextual_logger
from ..observability import record_operation
from ..repositories import UnitOfWork

logger = logging.getLogger(__name__)
contextual_logger = get_contextual_logger(__name__)


class ConnectionManager:
    """
    Manages the MongoDB client lifecycle.

    Example:
        manager = ConnectionManager.from_config(RepoConfig())
        await manager.initialize()
        service = ItemsService(manager.unit_of_work())
        ...
        await manager.shutdown()
    """

    def __init__(
        self,
        mongo_uri: str,
        server_selection_timeout_ms: int = DEFAULT_SERVER_SELECTION_TIMEOUT_MS,
    ) -> None:
        """
        Initialize the connection manager.

        Args:
            mongo_uri: MongoDB connection URI
            server_selection_timeout_ms: How long the ping may wait for a server
        """
        self.mongo_uri = mongo_uri
        self.server_selection_timeout_ms = server_selection_timeout_ms

        self._mongo_client: AsyncIOMotorClient | None = None
        self._initialized: bool = False

    @classmethod
    def from_config(cls, config: RepoConfig) -> "ConnectionManager":
        """Build a manager from validated configuration."""
        config.validate()
        return cls(config.mongo_uri)

    async def initialize(self) -> None:
        """
        Create the client and verify the server is reachable.

        Raises:
            InitializationError: If the client cannot be created or pinged
        """
        start_time = time.time()

        if self._initialized:
            logger.warning("ConnectionManager already initialized. Skipping re-initialization.")
            return

        contextual_logger.info("creating mongo client", extra={"mongo_uri": self.mongo_uri})

        try:
            self._mongo_client = AsyncIOMotorClient(
                self.mongo_uri,
                serverSelectionTimeoutMS=self.server_selection_timeout_ms,
                appname=APP_NAME,
            )
            await self._mongo_client.admin.command("ping")
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            duration_ms = (time.time() - start_time) * 1000
            record_operation("connection.initialize", duration_ms, success=False)
            contextual_logger.critical(
                "MongoDB connection failed",
                extra={
                    "error_type": type(e).__name__,
                    "error": str(e),
                    "duration_ms": round(duration_ms, 2),
                },
                exc_info=True,
            )
            self._close_client()
            raise InitializationError(
                f"Failed to connect to MongoDB: {e}",
                mongo_uri=self.mongo_uri,
                context={"error_type": type(e).__name__},
            ) from e
        except (PyMongoError, TypeError, ValueError) as e:
            # Malformed URI or options
            duration_ms = (time.time() - start_time) * 1000
            record_operation("connection.initialize", duration_ms, success=False)
            self._close_client()
            raise InitializationError(
                f"ConnectionManager initialization failed: {e}",
                mongo_uri=self.mongo_uri,
                context={"error_type": type(e).__name__},
            ) from e

        self._initialized = True
        duration_ms = (time.time() - start_time) * 1000
        record_operation("connection.initialize", duration_ms, success=True)
        contextual_logger.info(
            "MongoDB connection initialized successfully",
            extra={"duration_ms": round(duration_ms, 2)},
        )

    async def shutdown(self) -> None:
        """
        Close the client.

        This method is idempotent - it's safe to call multiple times.
        """
        if not self._initialized:
            return

        self._close_client()
        self._initialized = False
        contextual_logger.info("MongoDB connection closed.")

    def _close_client(self) -> None:
        if self._mongo_client is not None:
            self._mongo_client.close()
        self._mongo_client = None

    @property
    def mongo_client(self) -> AsyncIOMotorClient:
        """
        Get the MongoDB client.

        Raises:
            RuntimeError: If connection is not initialized
        """
        if not self._initialized or self._mongo_client is None:
            raise RuntimeError("ConnectionManager not initialized. Call initialize() first.")
        return self._mongo_client

    @property
    def initialized(self) -> bool:
        return self._initialized

    def unit_of_work(self) -> UnitOfWork:
        """A fresh non-transactional UnitOfWork on this client."""
        return UnitOfWork(self.mongo_client)
