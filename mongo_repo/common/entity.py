"""
Entity base model.
"""

from pydantic import BaseModel, ConfigDict, Field

from ..constants import ID_FIELD
from .id import Id


class Entity(BaseModel):
    """
    A uniquely identified domain object.

    The identifier is stored under MongoDB's reserved ``_id`` key and exposed
    as the read-only ``id`` attribute. Instances are frozen: a retrieved
    entity is an independent snapshot with no live binding to the store.

    Example:
        class User(Entity):
            email: str
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: Id = Field(alias=ID_FIELD)
