"""
Unit of Work Pattern

The UnitOfWork is the transactional context: it hands out repositories and,
once a transaction is started, binds every repository it creates to one
shared client session so their operations commit or abort together.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError

from ..exceptions import MongoRepoError, TransactionError
from ..observability import get_logger as get_contextual_logger
from .base import R
from .mongo import MongoRepository, SharedSession

logger = logging.getLogger(__name__)
contextual_logger = get_contextual_logger(__name__)


class UnitOfWork:
    """
    Transactional context for repository access.

    A UnitOfWork built from a client is non-transactional. ``start_transaction``
    returns a new, transactional UnitOfWork whose repositories share a single
    session; the original stays usable on its own. ``commit_transaction`` and
    ``abort_transaction`` consume the transactional context: afterwards it,
    and every repository obtained from it, rejects further use.

    Usage:
        uow = UnitOfWork(client)

        # Plain reads
        items = await uow.repository(Item).retrieve_all()

        # Explicit transaction
        tx = await uow.start_transaction()
        item_id = await tx.repository(Item).create(spec)
        await tx.commit_transaction()

        # Scoped transaction: commits on success, aborts if the block raises
        async with uow.transaction() as tx:
            await tx.repository(Item).delete(item_id)

    Nested transactions are not supported.
    """

    def __init__(self, client: AsyncIOMotorClient, session: SharedSession | None = None):
        """
        Initialize the Unit of Work.

        Args:
            client: Motor client handle
            session: Shared transaction session (set by start_transaction)
        """
        self._client = client
        self._session = session
        self._repositories: dict[type, MongoRepository] = {}
        self._finalized = False

    @property
    def client(self) -> AsyncIOMotorClient:
        return self._client

    @property
    def in_transaction(self) -> bool:
        return self._session is not None

    @property
    def finalized(self) -> bool:
        """True once the transaction has been committed or aborted."""
        return self._finalized

    def repository(self, reposable_class: type[R]) -> MongoRepository[R]:
        """
        Get or create the repository for a Reposable kind.

        Repositories are cached per kind for the lifetime of this context.
        """
        self._ensure_usable()

        repo = self._repositories.get(reposable_class)
        if repo is None:
            repo = MongoRepository(self._client, reposable_class, session=self._session)
            self._repositories[reposable_class] = repo
            logger.debug(
                f"Created repository for '{reposable_class.collection_name}' "
                f"(transactional={self.in_transaction})"
            )
        return repo

    async def start_transaction(self) -> "UnitOfWork":
        """
        Open a session, start a multi-statement transaction on it and return
        a context whose repositories run inside it.

        Raises:
            TransactionError: If called on a transactional context, or if the
                session cannot be opened or the transaction started
        """
        self._ensure_usable()
        if self._session is not None:
            raise TransactionError("nested transactions are not supported")

        try:
            session = await self._client.start_session()
        except PyMongoError as e:
            raise TransactionError(
                f"failed to start session: {e}", context={"error_type": type(e).__name__}
            ) from e

        try:
            session.start_transaction()
        except PyMongoError as e:
            await session.end_session()
            raise TransactionError(
                f"failed to start transaction: {e}", context={"error_type": type(e).__name__}
            ) from e

        contextual_logger.debug("Transaction started")
        return UnitOfWork(self._client, SharedSession(session))

    async def commit_transaction(self) -> None:
        """Commit the transaction and consume this context."""
        session = self._consume("commit")
        await session.commit()

    async def abort_transaction(self) -> None:
        """Abort the transaction and consume this context."""
        session = self._consume("abort")
        await session.abort()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["UnitOfWork"]:
        """
        Run a block inside a transaction.

        Commits when the block exits normally unless the block already
        finalized the transaction itself; aborts and re-raises when the
        block raises.
        """
        tx = await self.start_transaction()
        try:
            yield tx
        except BaseException as e:
            if not tx.finalized:
                try:
                    await tx.abort_transaction()
                except MongoRepoError:
                    # Propagate the block's error, not the abort's
                    contextual_logger.error(
                        "Transaction abort failed after error in transaction block",
                        extra={"error_type": type(e).__name__},
                        exc_info=True,
                    )
            raise
        if not tx.finalized:
            await tx.commit_transaction()

    def _consume(self, action: str) -> SharedSession:
        self._ensure_usable()
        if self._session is None:
            raise TransactionError(f"cannot {action}: no transaction has been started")
        session = self._session
        self._finalized = True
        self._repositories.clear()
        return session

    def _ensure_usable(self) -> None:
        if self._finalized:
            raise TransactionError("transactional context has already been committed or aborted")
