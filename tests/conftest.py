"""
Pytest configuration and shared fixtures for MONGO_REPO tests.

This module provides:
- Fake motor clients (see tests/fakes.py) for testing repository semantics
  without a server
- MagicMock-based collection doubles for asserting exact query documents
- Testcontainers fixtures for integration tests against a real MongoDB
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection

from mongo_repo.items import Item, ItemSize, ItemSpec
from mongo_repo.observability import get_metrics_collector
from mongo_repo.repositories import InMemoryRepository, MongoRepository, UnitOfWork

from tests.fakes import FakeCursor, FakeMongoClient

# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch):
    """Clear connection settings and metrics before each test."""
    for var in ("MONGO_HOST", "MONGO_PORT"):
        monkeypatch.delenv(var, raising=False)
    get_metrics_collector().reset()
    yield


@pytest.fixture
def fake_client() -> FakeMongoClient:
    return FakeMongoClient()


@pytest.fixture
def uow(fake_client: FakeMongoClient) -> UnitOfWork:
    return UnitOfWork(fake_client)


@pytest.fixture
def items_repo(fake_client: FakeMongoClient) -> MongoRepository[Item]:
    return MongoRepository(fake_client, Item)


@pytest.fixture
def memory_repo() -> InMemoryRepository[Item]:
    return InMemoryRepository(Item)


@pytest.fixture
def mock_mongo_collection() -> MagicMock:
    """A collection double for asserting the exact documents sent to MongoDB."""
    collection = MagicMock(spec=AsyncIOMotorCollection)
    collection.name = "items"
    collection.find_one = AsyncMock(return_value=None)
    collection.find = MagicMock(return_value=FakeCursor([]))
    collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id=ObjectId()))
    collection.update_one = AsyncMock(return_value=MagicMock(matched_count=1, modified_count=1))
    collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
    return collection


@pytest.fixture
def mock_mongo_client(mock_mongo_collection: MagicMock) -> MagicMock:
    """A client double whose every database/collection is mock_mongo_collection."""
    client = MagicMock(spec=AsyncIOMotorClient)
    database = MagicMock()
    database.__getitem__.return_value = mock_mongo_collection
    client.__getitem__.return_value = database
    client.admin = MagicMock()
    client.admin.command = AsyncMock(return_value={"ok": 1})
    return client


@pytest.fixture
def widget_spec() -> ItemSpec:
    return ItemSpec(name="Widget", size=ItemSize.SMALL)


# ============================================================================
# TESTCONTAINERS FIXTURES (Real MongoDB for Integration Tests)
# ============================================================================


@pytest.fixture(scope="session")
def mongodb_container():
    """
    Start a MongoDB Atlas Local container (a single-node replica set, so
    multi-statement transactions are available).

    Session-scoped: container starts once and is reused for all integration tests.
    """
    try:
        from testcontainers.mongodb import MongoDbContainer
    except ImportError:
        pytest.skip("testcontainers not installed. Install with: pip install -e '.[test]'")

    with MongoDbContainer(image="mongodb/mongodb-atlas-local:latest") as container:
        yield container


@pytest.fixture
async def real_mongo_client(mongodb_container):
    """
    Real motor client connected to the container; the example database is
    dropped after each test.
    """
    exposed_port = mongodb_container.get_exposed_port(27017)
    client = AsyncIOMotorClient(f"mongodb://localhost:{exposed_port}/?directConnection=true")
    await client.admin.command("ping")

    # Collections must exist before a transaction can write to them
    db = client[Item.db_name]
    if Item.collection_name not in await db.list_collection_names():
        await db.create_collection(Item.collection_name)

    yield client

    await client.drop_database(Item.db_name)
    client.close()
