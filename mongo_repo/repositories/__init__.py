"""
MONGO_REPO Repository Pattern

Provides the Reposable entity contract, the abstract Repository interface,
the MongoDB implementation and the transactional UnitOfWork.

Usage:
    from mongo_repo.repositories import UnitOfWork

    uow = UnitOfWork(client)
    item = await uow.repository(Item).retrieve(item_id)

    async with uow.transaction() as tx:
        item_id = await tx.repository(Item).create(spec)
"""

from .base import (
    Filter,
    InMemoryRepository,
    Patch,
    Repository,
    Reposable,
    Spec,
    check_reposable,
)
from .mongo import MongoRepository, SharedSession
from .unit_of_work import UnitOfWork

__all__ = [
    "Reposable",
    "Spec",
    "Patch",
    "Filter",
    "check_reposable",
    "Repository",
    "InMemoryRepository",
    "MongoRepository",
    "SharedSession",
    "UnitOfWork",
]
