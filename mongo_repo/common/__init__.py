"""
Identifier and entity contracts.
"""

from .entity import Entity
from .id import Id

__all__ = ["Entity", "Id"]
