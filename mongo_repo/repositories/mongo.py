"""
MongoDB Repository Implementation

Implements the Repository interface on top of a motor client. One
MongoRepository class serves every Reposable kind: the kind's Spec, Patch
and Filter models are serialized straight into insert, update and match
documents.

A repository is either standalone (every call is an independent statement)
or bound to a SharedSession, in which case each call runs inside that
session's transaction while holding the session lock.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, Generic

from bson import ObjectId
from bson.errors import BSONError
from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorClientSession,
    AsyncIOMotorCollection,
)
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from ..common import Id
from ..constants import ID_FIELD, SET_OPERATOR
from ..exceptions import RepositoryError, TransactionError
from ..observability import get_logger as get_contextual_logger
from ..observability import repository_context, timed_operation
from .base import Filter, Patch, R, Repository, Spec, check_window

logger = logging.getLogger(__name__)
contextual_logger = get_contextual_logger(__name__)

# Failures that become RepositoryError: driver errors, documents BSON cannot
# encode, and stored documents that do not validate as the entity
_STORE_ERRORS = (PyMongoError, BSONError, ValidationError)


class SharedSession:
    """
    A motor client session shared by the repositories of one transaction.

    A client session cannot carry two operations at once, so access goes
    through ``acquire()``, which holds an asyncio lock for the duration of a
    single store call. ``commit()`` and ``abort()`` finalize the transaction
    and end the session; afterwards every ``acquire()`` raises
    TransactionError.
    """

    def __init__(self, session: AsyncIOMotorClientSession):
        self._session = session
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[AsyncIOMotorClientSession]:
        async with self._lock:
            if self._closed:
                raise TransactionError("transaction session has already been finalized")
            yield self._session

    async def commit(self) -> None:
        await self._finish("commit")

    async def abort(self) -> None:
        await self._finish("abort")

    async def _finish(self, action: str) -> None:
        async with self._lock:
            if self._closed:
                raise TransactionError(
                    f"cannot {action}: transaction session has already been finalized"
                )
            self._closed = True
            try:
                if action == "commit":
                    await self._session.commit_transaction()
                else:
                    await self._session.abort_transaction()
            except PyMongoError as e:
                contextual_logger.error(
                    f"Transaction {action} failed",
                    extra={"error_type": type(e).__name__, "error": str(e)},
                    exc_info=True,
                )
                raise TransactionError(
                    f"failed to {action} transaction: {e}",
                    context={"error_type": type(e).__name__},
                ) from e
            finally:
                await self._session.end_session()
            logger.debug(f"Transaction {action} complete")


class MongoRepository(Repository[R], Generic[R]):
    """
    MongoDB implementation of the Repository interface.

    The target collection is fixed by the Reposable kind
    (``client[R.db_name][R.collection_name]``).

    Example:
        items = MongoRepository(client, Item)

        item_id = await items.create(ItemSpec(name="Widget", size=ItemSize.SMALL))
        await items.update(ItemPatch(id=item_id, name="Gadget"))
        matches = await items.find_all(ItemFilter(size=ItemSize.SMALL))
    """

    def __init__(
        self,
        client: AsyncIOMotorClient,
        reposable_class: type[R],
        session: SharedSession | None = None,
    ):
        """
        Initialize the MongoDB repository.

        Args:
            client: Motor client handle
            reposable_class: Reposable kind stored by this repository
            session: Optional transaction session shared with sibling repositories
        """
        super().__init__(reposable_class)
        self._client = client
        self._session = session

    @property
    def collection_name(self) -> str:
        return self._reposable_class.collection_name

    @property
    def transactional(self) -> bool:
        return self._session is not None

    @property
    def _collection(self) -> AsyncIOMotorCollection:
        return self._client[self._reposable_class.db_name][self.collection_name]

    @asynccontextmanager
    async def _session_scope(self) -> AsyncIterator[AsyncIOMotorClientSession | None]:
        if self._session is None:
            yield None
        else:
            async with self._session.acquire() as session:
                yield session

    @asynccontextmanager
    async def _operation(self, operation: str) -> AsyncIterator[None]:
        """
        Time one store exchange, scope the repository logging context to it
        and translate its failures.
        """
        with repository_context(
            db_name=self._reposable_class.db_name,
            collection_name=self.collection_name,
            transactional=self.transactional,
        ), timed_operation(
            f"repository.{operation}",
            collection_name=self.collection_name,
            transactional=self.transactional,
        ):
            contextual_logger.debug(f"Repository {operation}")
            try:
                yield
            except _STORE_ERRORS as e:
                contextual_logger.error(
                    f"Repository {operation} failed",
                    extra={
                        "operation": operation,
                        "error_type": type(e).__name__,
                        "error": str(e),
                    },
                )
                raise RepositoryError(
                    f"{operation} on '{self.collection_name}' failed: {e}",
                    operation=operation,
                    collection_name=self.collection_name,
                    context={"error_type": type(e).__name__},
                ) from e

    def _filter_for(self, id: Id) -> dict[str, Any]:
        return self._reposable_class.filter_class.by_id(id).to_document()

    def _to_entity(self, doc: dict[str, Any] | None) -> R | None:
        if doc is None:
            return None
        return self._reposable_class.model_validate(doc)

    async def create(self, spec: Spec) -> Id:
        """Insert spec as a new document and return the store-assigned id."""
        self._require(spec, "spec_class")
        doc = spec.to_document()

        async with self._operation("create"):
            async with self._session_scope() as session:
                result = await self._collection.insert_one(doc, session=session)

        inserted_id = result.inserted_id
        if not isinstance(inserted_id, ObjectId):
            raise AssertionError(f"inserted ID was not an ObjectId: {inserted_id!r}")

        logger.debug(f"Created {self._reposable_class.__name__} with id={inserted_id}")
        return Id(inserted_id)

    async def retrieve(self, id: Id) -> R | None:
        query = self._filter_for(id)

        async with self._operation("retrieve"):
            async with self._session_scope() as session:
                doc = await self._collection.find_one(query, session=session)
            return self._to_entity(doc)

    async def find_all(self, filter: Filter) -> list[R]:
        self._require(filter, "filter_class")
        return await self._find("find_all", filter.to_document())

    async def find_page(self, filter: Filter, offset: int, limit: int) -> list[R]:
        self._require(filter, "filter_class")
        check_window(offset, limit)
        return await self._find("find_page", filter.to_document(), skip=offset, limit=limit)

    async def _find(self, operation: str, query: dict[str, Any], **options: Any) -> list[R]:
        entities: list[R] = []

        async with self._operation(operation):
            async with self._session_scope() as session:
                cursor = self._collection.find(query, session=session, **options)
                async for doc in cursor:
                    entities.append(self._to_entity(doc))

        return entities

    async def update(self, patch: Patch) -> bool:
        """Set the fields present on patch; unset fields are left unchanged."""
        self._require(patch, "patch_class")
        query = self._filter_for(patch.id)
        fields = patch.to_document()

        async with self._operation("update"):
            async with self._session_scope() as session:
                if not fields:
                    # MongoDB rejects an empty $set; a no-op patch only reports existence
                    doc = await self._collection.find_one(
                        query, projection={ID_FIELD: 1}, session=session
                    )
                    return doc is not None
                result = await self._collection.update_one(
                    query, {SET_OPERATOR: fields}, session=session
                )

        return result.matched_count > 0

    async def delete(self, id: Id) -> bool:
        query = self._filter_for(id)

        async with self._operation("delete"):
            async with self._session_scope() as session:
                result = await self._collection.delete_one(query, session=session)

        return result.deleted_count > 0
