"""
Abstract Repository Pattern

Defines the Reposable entity contract and the repository interface that
abstracts data access for any Reposable kind.

A Reposable entity declares three companion models:

- Spec: the fields needed to create a new instance (no identifier)
- Patch: the target identifier plus optional fields to change
- Filter: optional fields (including the identifier) to match on

Fields left as None on a Patch or Filter are omitted from the generated
documents, so they neither overwrite nor constrain anything.
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Generic, Optional, TypeVar

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field

from ..common import Entity, Id
from ..constants import ID_FIELD
from ..exceptions import ConfigurationError


class _Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    def to_document(self) -> dict[str, Any]:
        """Serialize to a BSON-ready dict, omitting unset fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Spec(_Document):
    """
    Fields required to create an entity.

    The store assigns the identifier, so a Spec must not declare one. Every
    field is written, so an optional field left as None is stored as null.
    """

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class Patch(_Document):
    """
    Partial update of one entity.

    ``id`` selects the target and is never written into the update document.
    """

    id: Id = Field(exclude=True)


class Filter(_Document):
    """
    Partial-match predicate over entities.

    An instance with every field unset matches all entities.
    """

    id: Optional[Id] = Field(default=None, alias=ID_FIELD)

    @classmethod
    def by_id(cls, id: Id) -> "Filter":
        """Build a filter constraining only the identifier."""
        return cls(id=id)


class Reposable(Entity):
    """
    An entity kind that can be stored by a repository.

    Subclasses bind their companion models and storage location as class
    variables.

    Example:
        class Item(Reposable):
            spec_class: ClassVar[type[Spec]] = ItemSpec
            patch_class: ClassVar[type[Patch]] = ItemPatch
            filter_class: ClassVar[type[Filter]] = ItemFilter
            db_name: ClassVar[str] = "repotest"
            collection_name: ClassVar[str] = "items"

            name: str
    """

    spec_class: ClassVar[type[Spec]]
    patch_class: ClassVar[type[Patch]]
    filter_class: ClassVar[type[Filter]]
    db_name: ClassVar[str]
    collection_name: ClassVar[str]


R = TypeVar("R", bound=Reposable)

_BINDINGS = (
    ("spec_class", Spec),
    ("patch_class", Patch),
    ("filter_class", Filter),
)


def check_reposable(reposable_class: type[Reposable]) -> None:
    """
    Verify that a Reposable's companion models agree with each other.

    Every Spec field must appear as an optional field on both Patch and
    Filter, and Patch/Filter may not add fields beyond the Spec's plus ``id``.

    Raises:
        ConfigurationError: If a binding is missing or the field sets disagree
    """
    name = reposable_class.__name__

    for attr, base in _BINDINGS:
        bound = getattr(reposable_class, attr, None)
        if not (isinstance(bound, type) and issubclass(bound, base)):
            raise ConfigurationError(
                f"{name}.{attr} must be a {base.__name__} subclass",
                config_key=attr,
                config_value=bound,
            )
    for attr in ("db_name", "collection_name"):
        if not getattr(reposable_class, attr, None):
            raise ConfigurationError(f"{name}.{attr} is not set", config_key=attr)

    spec_fields = set(reposable_class.spec_class.model_fields)
    if "id" in spec_fields or any(
        f.alias == ID_FIELD for f in reposable_class.spec_class.model_fields.values()
    ):
        raise ConfigurationError(f"{name} spec must not carry an identifier")

    for attr in ("patch_class", "filter_class"):
        model = getattr(reposable_class, attr)
        fields = {k: v for k, v in model.model_fields.items() if k != "id"}
        if set(fields) != spec_fields:
            raise ConfigurationError(
                f"{name}.{attr} fields {sorted(fields)} do not match spec fields "
                f"{sorted(spec_fields)}",
                config_key=attr,
            )
        required = sorted(k for k, v in fields.items() if v.is_required())
        if required:
            raise ConfigurationError(
                f"{name}.{attr} fields must be optional: {required}", config_key=attr
            )


def check_window(offset: int, limit: int) -> None:
    """Reject page windows the store cannot express."""
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")


class Repository(ABC, Generic[R]):
    """
    Abstract repository interface for one Reposable kind.

    Not-found is reported structurally: ``retrieve`` returns None and
    ``update``/``delete`` return False. Store failures raise RepositoryError.

    Example:
        class ItemsService:
            def __init__(self, items: Repository[Item]):
                self._items = items

            async def rename(self, id: Id, name: str) -> bool:
                return await self._items.update(ItemPatch(id=id, name=name))
    """

    def __init__(self, reposable_class: type[R]):
        check_reposable(reposable_class)
        self._reposable_class = reposable_class

    @property
    def reposable_class(self) -> type[R]:
        return self._reposable_class

    @abstractmethod
    async def create(self, spec: Spec) -> Id:
        """
        Store a new entity built from spec.

        Returns:
            Identifier assigned by the store
        """

    @abstractmethod
    async def retrieve(self, id: Id) -> R | None:
        """
        Get a single entity by identifier.

        Returns:
            Entity if found, None otherwise
        """

    async def retrieve_all(self) -> list[R]:
        """All entities, in store order."""
        return await self.find_all(self._reposable_class.filter_class())

    async def retrieve_page(self, offset: int, limit: int) -> list[R]:
        """
        A window of all entities, in store order.

        An offset past the end yields an empty list.
        """
        return await self.find_page(self._reposable_class.filter_class(), offset, limit)

    @abstractmethod
    async def find_all(self, filter: Filter) -> list[R]:
        """
        Find entities matching filter.

        Returns:
            Matching entities in store order (all entities for an empty filter)
        """

    @abstractmethod
    async def find_page(self, filter: Filter, offset: int, limit: int) -> list[R]:
        """
        Find a window of the entities matching filter.

        Args:
            filter: Match predicate
            offset: Number of matches to skip
            limit: Maximum number of matches to return (>= 1)
        """

    @abstractmethod
    async def update(self, patch: Patch) -> bool:
        """
        Apply the fields set on patch to the entity it targets.

        Returns:
            True if the target existed and was updated, False if not found
        """

    @abstractmethod
    async def delete(self, id: Id) -> bool:
        """
        Delete an entity by identifier.

        Returns:
            True if entity was deleted, False if not found
        """

    def _require(self, value: Any, attr: str) -> None:
        expected = getattr(self._reposable_class, attr)
        if not isinstance(value, expected):
            raise TypeError(
                f"expected {expected.__name__} for {self._reposable_class.__name__}, "
                f"got {type(value).__name__}"
            )


class InMemoryRepository(Repository[R]):
    """
    In-memory repository implementation for testing.

    Stores serialized documents in insertion order and matches filters by
    field equality, mirroring what MongoRepository sends to the store.
    """

    def __init__(self, reposable_class: type[R]):
        super().__init__(reposable_class)
        self._storage: dict[ObjectId, dict[str, Any]] = {}

    async def create(self, spec: Spec) -> Id:
        self._require(spec, "spec_class")
        doc = spec.to_document()
        oid = ObjectId()
        doc[ID_FIELD] = oid
        self._storage[oid] = doc
        return Id(oid)

    async def retrieve(self, id: Id) -> R | None:
        matches = self._match(self._filter_for(id))
        return self._to_entity(matches[0]) if matches else None

    async def find_all(self, filter: Filter) -> list[R]:
        self._require(filter, "filter_class")
        return [self._to_entity(doc) for doc in self._match(filter.to_document())]

    async def find_page(self, filter: Filter, offset: int, limit: int) -> list[R]:
        self._require(filter, "filter_class")
        check_window(offset, limit)
        matches = self._match(filter.to_document())[offset : offset + limit]
        return [self._to_entity(doc) for doc in matches]

    async def update(self, patch: Patch) -> bool:
        self._require(patch, "patch_class")
        matches = self._match(self._filter_for(patch.id))
        if not matches:
            return False
        matches[0].update(patch.to_document())
        return True

    async def delete(self, id: Id) -> bool:
        matches = self._match(self._filter_for(id))
        if not matches:
            return False
        del self._storage[matches[0][ID_FIELD]]
        return True

    def clear(self) -> None:
        """Clear all entities (useful for test setup)."""
        self._storage.clear()

    def _filter_for(self, id: Id) -> dict[str, Any]:
        return self._reposable_class.filter_class.by_id(id).to_document()

    def _match(self, query: dict[str, Any]) -> list[dict[str, Any]]:
        return [
            doc
            for doc in self._storage.values()
            if all(key in doc and doc[key] == value for key, value in query.items())
        ]

    def _to_entity(self, doc: dict[str, Any]) -> R:
        return self._reposable_class.model_validate(dict(doc))
