"""
Behavioral tests for the Repository contract.

Every test runs against both InMemoryRepository and MongoRepository (backed by
the fake motor client), so the two implementations cannot drift apart.
"""

import pytest

from mongo_repo.common import Id
from mongo_repo.items import Item, ItemFilter, ItemPatch, ItemSize, ItemSpec
from mongo_repo.repositories import InMemoryRepository, MongoRepository


@pytest.fixture(params=["memory", "mongo"])
def repo(request, fake_client):
    if request.param == "memory":
        return InMemoryRepository(Item)
    return MongoRepository(fake_client, Item)


async def _populate(repo, count):
    sizes = list(ItemSize)
    ids = []
    for i in range(count):
        ids.append(await repo.create(ItemSpec(name=f"item-{i}", size=sizes[i % 3])))
    return ids


@pytest.mark.asyncio
class TestCreateAndRetrieve:
    async def test_round_trip(self, repo, widget_spec):
        item_id = await repo.create(widget_spec)
        item = await repo.retrieve(item_id)

        assert item is not None
        assert item.id == item_id
        assert item.name == widget_spec.name
        assert item.size == widget_spec.size

    async def test_create_assigns_distinct_ids(self, repo, widget_spec):
        first = await repo.create(widget_spec)
        second = await repo.create(widget_spec)
        assert first != second

    async def test_retrieve_missing_returns_none(self, repo):
        assert await repo.retrieve(Id()) is None

    async def test_retrieved_entities_are_independent_copies(self, repo, widget_spec):
        item_id = await repo.create(widget_spec)
        first = await repo.retrieve(item_id)
        await repo.update(ItemPatch(id=item_id, name="Gadget"))
        assert first.name == "Widget"

    async def test_create_rejects_wrong_spec_type(self, repo):
        with pytest.raises(TypeError):
            await repo.create(ItemFilter(name="Widget"))


@pytest.mark.asyncio
class TestUpdate:
    async def test_only_patched_field_changes(self, repo, widget_spec):
        item_id = await repo.create(widget_spec)

        assert await repo.update(ItemPatch(id=item_id, size=ItemSize.LARGE)) is True

        item = await repo.retrieve(item_id)
        assert item.size is ItemSize.LARGE
        assert item.name == "Widget"

    async def test_update_missing_returns_false(self, repo):
        assert await repo.update(ItemPatch(id=Id(), name="Gadget")) is False

    async def test_no_op_update_of_existing_entity_counts(self, repo, widget_spec):
        item_id = await repo.create(widget_spec)
        assert await repo.update(ItemPatch(id=item_id, name="Widget")) is True

    async def test_empty_patch_reports_existence(self, repo, widget_spec):
        item_id = await repo.create(widget_spec)
        assert await repo.update(ItemPatch(id=item_id)) is True
        assert await repo.update(ItemPatch(id=Id())) is False

    async def test_update_touches_only_target(self, repo):
        first, second = await _populate(repo, 2)
        await repo.update(ItemPatch(id=first, name="renamed"))
        assert (await repo.retrieve(second)).name == "item-1"


@pytest.mark.asyncio
class TestDelete:
    async def test_delete_signals_once(self, repo, widget_spec):
        item_id = await repo.create(widget_spec)

        assert await repo.delete(item_id) is True
        assert await repo.delete(item_id) is False
        assert await repo.retrieve(item_id) is None

    async def test_delete_missing_returns_false(self, repo):
        assert await repo.delete(Id()) is False


@pytest.mark.asyncio
class TestFind:
    async def test_empty_filter_matches_retrieve_all(self, repo):
        await _populate(repo, 5)
        found = await repo.find_all(ItemFilter())
        everything = await repo.retrieve_all()
        assert [i.id for i in found] == [i.id for i in everything]
        assert len(found) == 5

    async def test_filter_by_field(self, repo):
        await _populate(repo, 6)
        small = await repo.find_all(ItemFilter(size=ItemSize.SMALL))
        assert [i.name for i in small] == ["item-0", "item-3"]

    async def test_filter_by_id(self, repo):
        ids = await _populate(repo, 3)
        found = await repo.find_all(ItemFilter(id=ids[1]))
        assert [i.id for i in found] == [ids[1]]

    async def test_filter_fields_combine(self, repo):
        await _populate(repo, 6)
        found = await repo.find_all(ItemFilter(name="item-3", size=ItemSize.SMALL))
        assert [i.name for i in found] == ["item-3"]
        assert await repo.find_all(ItemFilter(name="item-3", size=ItemSize.LARGE)) == []

    async def test_find_on_empty_repository(self, repo):
        assert await repo.retrieve_all() == []

    async def test_find_rejects_wrong_filter_type(self, repo):
        with pytest.raises(TypeError):
            await repo.find_all(ItemSpec(name="x", size=ItemSize.SMALL))


@pytest.mark.asyncio
class TestPagination:
    @pytest.mark.parametrize("page_size", [1, 2, 3, 7, 10])
    async def test_pages_cover_every_entity_once(self, repo, page_size):
        ids = await _populate(repo, 7)

        collected = []
        offset = 0
        while offset < len(ids):
            collected.extend(i.id for i in await repo.retrieve_page(offset, page_size))
            offset += page_size

        assert collected == ids

    async def test_page_past_end_is_empty(self, repo):
        await _populate(repo, 4)
        assert await repo.retrieve_page(4, 2) == []
        assert await repo.retrieve_page(100, 2) == []

    async def test_window_applies_to_matches(self, repo):
        await _populate(repo, 9)
        page = await repo.find_page(ItemFilter(size=ItemSize.MEDIUM), 1, 5)
        assert [i.name for i in page] == ["item-4", "item-7"]

    @pytest.mark.parametrize("offset,limit", [(-1, 5), (0, 0), (0, -3)])
    async def test_invalid_window_is_rejected(self, repo, offset, limit):
        with pytest.raises(ValueError):
            await repo.retrieve_page(offset, limit)


@pytest.mark.asyncio
async def test_widget_scenario(repo):
    item_id = await repo.create(ItemSpec(name="Widget", size=ItemSize.SMALL))

    item = await repo.retrieve(item_id)
    assert (item.id, item.name) == (item_id, "Widget")

    assert await repo.update(ItemPatch(id=item_id, name="Gadget")) is True
    item = await repo.retrieve(item_id)
    assert (item.id, item.name) == (item_id, "Gadget")

    assert await repo.delete(item_id) is True
    assert await repo.retrieve(item_id) is None
