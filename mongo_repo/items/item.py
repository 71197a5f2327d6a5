"""
Item: a named thing with a size.

The example Reposable kind, stored in ``repotest.items``.
"""

from enum import Enum
from typing import Annotated, ClassVar, Optional

from pydantic import StringConstraints

from ..repositories.base import Filter, Patch, Reposable, Spec

MONGO_DB = "repotest"
MONGO_COLLECTION = "items"

# Validation happens when a Spec/Patch/Filter is built, before any store call
Name = Annotated[str, StringConstraints(min_length=1)]


class ItemSize(str, Enum):
    SMALL = "Small"
    MEDIUM = "Medium"
    LARGE = "Large"


class ItemSpec(Spec):
    name: Name
    size: ItemSize


class ItemPatch(Patch):
    name: Optional[Name] = None
    size: Optional[ItemSize] = None


class ItemFilter(Filter):
    name: Optional[Name] = None
    size: Optional[ItemSize] = None


class Item(Reposable):
    spec_class: ClassVar[type[Spec]] = ItemSpec
    patch_class: ClassVar[type[Patch]] = ItemPatch
    filter_class: ClassVar[type[Filter]] = ItemFilter
    db_name: ClassVar[str] = MONGO_DB
    collection_name: ClassVar[str] = MONGO_COLLECTION

    name: Name
    size: ItemSize
