"""
Integration tests for MongoRepository and UnitOfWork against a real MongoDB.

Requires Docker; the container fixture skips when testcontainers is missing.
"""

import pytest

from mongo_repo.common import Id
from mongo_repo.core import ConnectionManager
from mongo_repo.items import Item, ItemFilter, ItemPatch, ItemSize, ItemSpec, ItemsService
from mongo_repo.repositories import MongoRepository, UnitOfWork


@pytest.mark.integration
@pytest.mark.asyncio
class TestMongoRepositoryIntegration:
    async def test_round_trip(self, real_mongo_client):
        repo = MongoRepository(real_mongo_client, Item)

        item_id = await repo.create(ItemSpec(name="Widget", size=ItemSize.SMALL))
        item = await repo.retrieve(item_id)

        assert item == Item(id=item_id, name="Widget", size=ItemSize.SMALL)
        raw = await real_mongo_client["repotest"]["items"].find_one({"_id": item_id.to_object_id()})
        assert raw["size"] == "Small"

    async def test_update_and_delete(self, real_mongo_client):
        repo = MongoRepository(real_mongo_client, Item)
        item_id = await repo.create(ItemSpec(name="Widget", size=ItemSize.SMALL))

        assert await repo.update(ItemPatch(id=item_id, name="Gadget")) is True
        assert await repo.update(ItemPatch(id=item_id, name="Gadget")) is True
        assert await repo.update(ItemPatch(id=item_id)) is True
        assert await repo.update(ItemPatch(id=Id(), name="Gadget")) is False
        assert (await repo.retrieve(item_id)).name == "Gadget"

        assert await repo.delete(item_id) is True
        assert await repo.delete(item_id) is False
        assert await repo.retrieve(item_id) is None

    async def test_find_and_paginate(self, real_mongo_client):
        repo = MongoRepository(real_mongo_client, Item)
        sizes = [ItemSize.SMALL, ItemSize.LARGE, ItemSize.SMALL, ItemSize.MEDIUM, ItemSize.SMALL]
        for i, size in enumerate(sizes):
            await repo.create(ItemSpec(name=f"item-{i}", size=size))

        everything = await repo.retrieve_all()
        assert len(everything) == 5

        pages = []
        for offset in range(0, 5, 2):
            pages.extend(await repo.retrieve_page(offset, 2))
        assert pages == everything
        assert await repo.retrieve_page(10, 2) == []

        small = await repo.find_all(ItemFilter(size=ItemSize.SMALL))
        assert [i.name for i in small] == ["item-0", "item-2", "item-4"]
        assert await repo.find_page(ItemFilter(size=ItemSize.SMALL), 1, 1) == [small[1]]


@pytest.mark.integration
@pytest.mark.asyncio
class TestTransactionsIntegration:
    async def test_abort_discards_writes(self, real_mongo_client):
        uow = UnitOfWork(real_mongo_client)

        tx = await uow.start_transaction()
        item_id = await tx.repository(Item).create(ItemSpec(name="Widget", size=ItemSize.SMALL))
        await tx.abort_transaction()

        assert await uow.repository(Item).retrieve(item_id) is None

    async def test_commit_publishes_writes(self, real_mongo_client):
        uow = UnitOfWork(real_mongo_client)

        async with uow.transaction() as tx:
            item_id = await tx.repository(Item).create(
                ItemSpec(name="Widget", size=ItemSize.SMALL)
            )
            assert await uow.repository(Item).retrieve(item_id) is None

        assert await uow.repository(Item).retrieve(item_id) is not None

    async def test_widget_scenario(self, real_mongo_client):
        service = ItemsService(UnitOfWork(real_mongo_client))

        widget = await service.create_item(ItemSpec(name="Widget", size=ItemSize.SMALL))
        gadget = await service.update_item(ItemPatch(id=widget.id, name="Gadget"))

        assert gadget == Item(id=widget.id, name="Gadget", size=ItemSize.SMALL)
        assert await service.delete_item(widget.id) is True
        assert await service.item(widget.id) is None


@pytest.mark.integration
@pytest.mark.asyncio
class TestConnectionManagerIntegration:
    async def test_initialize_and_shutdown(self, mongodb_container):
        port = mongodb_container.get_exposed_port(27017)
        manager = ConnectionManager(f"mongodb://localhost:{port}/?directConnection=true")

        await manager.initialize()
        assert manager.initialized is True
        assert await manager.unit_of_work().repository(Item).retrieve(Id()) is None

        await manager.shutdown()
        assert manager.initialized is False
