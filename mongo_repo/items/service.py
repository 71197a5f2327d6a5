"""
Domain operations over items.

Writes run inside a transaction so the follow-up read observes exactly the
state being committed.
"""

import time

from ..common import Id
from ..observability import get_logger, log_operation
from ..repositories import UnitOfWork
from .item import Item, ItemFilter, ItemPatch, ItemSpec

logger = get_logger(__name__)


class ItemsService:
    """
    Item use cases on top of a UnitOfWork.

    Example:
        service = ItemsService(UnitOfWork(client))
        item = await service.create_item(ItemSpec(name="Widget", size=ItemSize.SMALL))
    """

    def __init__(self, uow: UnitOfWork):
        self._uow = uow

    async def item(self, id: Id) -> Item | None:
        return await self._uow.repository(Item).retrieve(id)

    async def all_items(self) -> list[Item]:
        return await self._uow.repository(Item).retrieve_all()

    async def find_items(self, filter: ItemFilter) -> list[Item]:
        return await self._uow.repository(Item).find_all(filter)

    async def items_page(self, offset: int, limit: int) -> list[Item]:
        return await self._uow.repository(Item).retrieve_page(offset, limit)

    async def create_item(self, spec: ItemSpec) -> Item:
        """Create an item and return it as stored."""
        start_time = time.perf_counter()

        async with self._uow.transaction() as tx:
            items = tx.repository(Item)
            item_id = await items.create(spec)
            item = await items.retrieve(item_id)
            if item is None:
                raise AssertionError("item could not be retrieved following creation")

        self._log("items.create_item", start_time, item_id=str(item.id))
        return item

    async def update_item(self, patch: ItemPatch) -> Item | None:
        """
        Apply patch and return the updated item, or None if no item has
        the patch's id.
        """
        start_time = time.perf_counter()

        async with self._uow.transaction() as tx:
            items = tx.repository(Item)
            if not await items.update(patch):
                await tx.abort_transaction()
                self._log("items.update_item", start_time, success=False, item_id=str(patch.id))
                return None
            item = await items.retrieve(patch.id)
            if item is None:
                raise AssertionError("item could not be retrieved following update")

        self._log("items.update_item", start_time, item_id=str(item.id))
        return item

    async def delete_item(self, id: Id) -> bool:
        """Delete an item; False if no item has this id."""
        start_time = time.perf_counter()

        async with self._uow.transaction() as tx:
            if not await tx.repository(Item).delete(id):
                await tx.abort_transaction()
                self._log("items.delete_item", start_time, success=False, item_id=str(id))
                return False

        self._log("items.delete_item", start_time, item_id=str(id))
        return True

    @staticmethod
    def _log(operation: str, start_time: float, success: bool = True, **context) -> None:
        log_operation(
            logger,
            operation,
            success=success,
            duration_ms=(time.perf_counter() - start_time) * 1000,
            collection_name=Item.collection_name,
            **context,
        )
