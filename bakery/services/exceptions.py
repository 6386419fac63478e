"""Service layer exception classes for the Bakery Cost Engine.

This module defines the custom exceptions raised by the services so callers
get consistent, user-presentable errors. ValidationError and
UnsupportedConversion belong to the costing core and are re-exported here.

Exception Hierarchy:
    ServiceError (base)
    ├── RecipeNotFound
    ├── StockItemNotFound
    ├── RecipeInUse
    ├── StockItemInUse
    ├── UnresolvedReference
    └── DatabaseError

    CostingError (bakery.costing.errors)
    ├── ValidationError
    └── UnsupportedConversion
"""

from typing import Iterable

from bakery.costing.errors import CostingError, UnsupportedConversion, ValidationError

__all__ = [
    "CostingError",
    "DatabaseError",
    "RecipeInUse",
    "RecipeNotFound",
    "ServiceError",
    "StockItemInUse",
    "StockItemNotFound",
    "UnresolvedReference",
    "UnsupportedConversion",
    "ValidationError",
]


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions should inherit from this class.
    """

    pass


class RecipeNotFound(ServiceError):
    """Raised when a recipe cannot be found by ID."""

    def __init__(self, recipe_id: int):
        self.recipe_id = recipe_id
        super().__init__(f"Recipe with ID {recipe_id} not found")


class StockItemNotFound(ServiceError):
    """Raised when a stock item cannot be found by ID."""

    def __init__(self, stock_item_id: int):
        self.stock_item_id = stock_item_id
        super().__init__(f"Stock item with ID {stock_item_id} not found")


class RecipeInUse(ServiceError):
    """Raised when deleting a recipe that other recipes use as a component.

    Args:
        recipe_id: The recipe being deleted
        dependent_names: Names of the recipes that reference it
    """

    def __init__(self, recipe_id: int, dependent_names: Iterable[str]):
        self.recipe_id = recipe_id
        self.dependent_names = list(dependent_names)
        super().__init__(
            f"Cannot delete recipe {recipe_id}: used in "
            f"{len(self.dependent_names)} recipe(s) ({', '.join(self.dependent_names)})"
        )


class StockItemInUse(ServiceError):
    """Raised when deleting a stock item that recipes still consume."""

    def __init__(self, stock_item_id: int, dependent_names: Iterable[str]):
        self.stock_item_id = stock_item_id
        self.dependent_names = list(dependent_names)
        super().__init__(
            f"Cannot delete stock item {stock_item_id}: used in "
            f"{len(self.dependent_names)} recipe(s) ({', '.join(self.dependent_names)})"
        )


class UnresolvedReference(ServiceError):
    """Raised when a component points at an id missing from the loaded collections.

    The costing core treats dangling references leniently (leaf nodes, skipped
    tree entries); this exception is for callers that need to fail instead.

    Args:
        kind: "recipe" or "stock item"
        ref_id: The id that could not be resolved
    """

    def __init__(self, kind: str, ref_id: int):
        self.kind = kind
        self.ref_id = ref_id
        super().__init__(f"Component references unknown {kind} {ref_id}")


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Exception = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")
