"""
Client lifecycle management.
"""

from .connection import ConnectionManager

__all__ = ["ConnectionManager"]
