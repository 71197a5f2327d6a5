"""
Example Reposable kind and its domain service.
"""

from .item import Item, ItemFilter, ItemPatch, ItemSize, ItemSpec
from .service import ItemsService

__all__ = ["Item", "ItemSpec", "ItemPatch", "ItemFilter", "ItemSize", "ItemsService"]
