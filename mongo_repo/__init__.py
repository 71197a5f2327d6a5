"""
MONGO_REPO - generic MongoDB repositories

Store, query, partially update and transactionally group any number of
entity kinds through one repository implementation.
"""

from .common import Entity, Id
from .config import RepoConfig
from .core import ConnectionManager
from .exceptions import (
    ConfigurationError,
    InitializationError,
    MalformedIdError,
    MongoRepoError,
    RepositoryError,
    TransactionError,
)
from .repositories import (
    Filter,
    InMemoryRepository,
    MongoRepository,
    Patch,
    Repository,
    Reposable,
    SharedSession,
    Spec,
    UnitOfWork,
)

__version__ = "0.1.0"

__all__ = [
    # Contracts
    "Id",
    "Entity",
    "Reposable",
    "Spec",
    "Patch",
    "Filter",
    # Repositories
    "Repository",
    "InMemoryRepository",
    "MongoRepository",
    "SharedSession",
    "UnitOfWork",
    # Connection
    "ConnectionManager",
    "RepoConfig",
    # Errors
    "MongoRepoError",
    "MalformedIdError",
    "RepositoryError",
    "TransactionError",
    "ConfigurationError",
    "InitializationError",
]
