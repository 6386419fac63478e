"""
Database models package.

This package contains the SQLAlchemy ORM models that make up the record
store: stock items, recipes and their component lines.
"""

from .base import Base, BaseModel
from .stock_item import StockItem
from .recipe import Recipe, RecipeComponent

__all__ = [
    "Base",
    "BaseModel",
    "StockItem",
    "Recipe",
    "RecipeComponent",
]
