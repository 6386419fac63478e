"""
Stock Item Service - Business logic for purchased goods.

This service provides CRUD operations for stock items with:
- Input validation
- Deletion guarded against items still used by recipes
- Low-stock listing
- Costing views (StockItemInfo) for the recipe editor
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from bakery.costing.cost_model import StockItemInfo, to_decimal
from bakery.models import Recipe, RecipeComponent, StockItem
from bakery.services.database import session_scope
from bakery.services.exceptions import (
    DatabaseError,
    StockItemInUse,
    StockItemNotFound,
    ValidationError,
)
from bakery.services.logging_utils import get_service_logger, log_operation
from bakery.utils.validators import validate_stock_item_data

logger = get_service_logger(__name__)

_NUMERIC_FIELDS = ("cost", "current_stock", "minimum_stock")
_UPDATABLE_FIELDS = ("name", "category", "unit", "is_processed") + _NUMERIC_FIELDS


def _clean(data: Dict) -> Dict:
    """Normalize incoming field values (units lower-cased, numbers as Decimal)."""
    cleaned = {key: value for key, value in data.items() if key in _UPDATABLE_FIELDS}
    if cleaned.get("unit"):
        cleaned["unit"] = cleaned["unit"].strip().lower()
    if cleaned.get("name"):
        cleaned["name"] = cleaned["name"].strip()
    for field in _NUMERIC_FIELDS:
        if cleaned.get(field) is not None:
            cleaned[field] = to_decimal(cleaned[field])
    return cleaned


# ============================================================================
# CRUD Operations
# ============================================================================


def create_stock_item(data: Dict) -> StockItem:
    """
    Create a new stock item.

    Args:
        data: Dictionary with fields:
            - name: str (required)
            - unit: str (required, e.g. "kg")
            - cost: number (required, per unit)
            - category: str (optional)
            - current_stock / minimum_stock: number (optional)
            - is_processed: bool (optional)

    Returns:
        Created StockItem instance

    Raises:
        ValidationError: If data validation fails
        DatabaseError: If database operation fails
    """
    is_valid, errors = validate_stock_item_data(data)
    if not is_valid:
        log_operation(
            logger, "create_stock_item", "validation_failed", level=logging.WARNING, errors=errors
        )
        raise ValidationError(errors)

    try:
        with session_scope() as session:
            item = StockItem(**_clean(data))
            session.add(item)
            session.flush()
            session.refresh(item)

            log_operation(logger, "create_stock_item", "success", stock_item_id=item.id)
            return item

    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create stock item", e)


def get_stock_item(stock_item_id: int) -> StockItem:
    """
    Retrieve a stock item by ID.

    Raises:
        StockItemNotFound: If the item doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            item = session.query(StockItem).filter_by(id=stock_item_id).first()
            if not item:
                raise StockItemNotFound(stock_item_id)
            return item

    except StockItemNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve stock item {stock_item_id}", e)


def get_all_stock_items(
    category: Optional[str] = None,
    name_search: Optional[str] = None,
    processed: Optional[bool] = None,
) -> List[StockItem]:
    """
    Retrieve stock items with optional filtering, ordered by name.

    Args:
        category: Filter by category (exact match)
        name_search: Filter by name (case-insensitive partial match)
        processed: If given, filter on is_processed
    """
    try:
        with session_scope() as session:
            query = session.query(StockItem)

            if category:
                query = query.filter(StockItem.category == category)

            if name_search:
                query = query.filter(StockItem.name.ilike(f"%{name_search}%"))

            if processed is not None:
                query = query.filter(StockItem.is_processed == processed)

            return query.order_by(StockItem.name).all()

    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve stock items", e)


def update_stock_item(stock_item_id: int, data: Dict) -> StockItem:
    """
    Update fields of a stock item.

    A new cost does not reprice recipe lines that already use the item;
    call recipe_service.reprice_recipe_components() for that.

    Raises:
        StockItemNotFound: If the item doesn't exist
        ValidationError: If data validation fails
        DatabaseError: If database operation fails
    """
    is_valid, errors = validate_stock_item_data(data, partial=True)
    if not is_valid:
        raise ValidationError(errors)

    try:
        with session_scope() as session:
            item = session.query(StockItem).filter_by(id=stock_item_id).first()
            if not item:
                raise StockItemNotFound(stock_item_id)

            item.update_from_dict(_clean(data))
            session.flush()
            session.refresh(item)

            log_operation(logger, "update_stock_item", "success", stock_item_id=item.id)
            return item

    except (StockItemNotFound, ValidationError):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update stock item {stock_item_id}", e)


def delete_stock_item(stock_item_id: int) -> bool:
    """
    Delete a stock item that no recipe uses.

    Raises:
        StockItemNotFound: If the item doesn't exist
        StockItemInUse: If any recipe still has a line for it
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            item = session.query(StockItem).filter_by(id=stock_item_id).first()
            if not item:
                raise StockItemNotFound(stock_item_id)

            users = (
                session.query(Recipe.name)
                .join(RecipeComponent, Recipe.id == RecipeComponent.recipe_id)
                .filter(RecipeComponent.stock_item_id == stock_item_id)
                .distinct()
                .order_by(Recipe.name)
                .all()
            )
            if users:
                raise StockItemInUse(stock_item_id, [row.name for row in users])

            session.delete(item)
            log_operation(logger, "delete_stock_item", "success", stock_item_id=stock_item_id)
            return True

    except (StockItemNotFound, StockItemInUse):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete stock item {stock_item_id}", e)


# ============================================================================
# Queries
# ============================================================================


def get_low_stock_items() -> List[StockItem]:
    """Stock items whose current stock is below their minimum, ordered by name."""
    try:
        with session_scope() as session:
            return (
                session.query(StockItem)
                .filter(StockItem.current_stock < StockItem.minimum_stock)
                .order_by(StockItem.name)
                .all()
            )

    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve low stock items", e)


def get_all_stock_infos() -> List[StockItemInfo]:
    """Costing views of every stock item."""
    return [item.to_info() for item in get_all_stock_items()]


def get_inventory_value() -> Decimal:
    """Total value of stock on hand (sum of current_stock * cost)."""
    return sum(
        (to_decimal(item.current_stock or 0) * to_decimal(item.cost or 0)
         for item in get_all_stock_items()),
        Decimal("0"),
    )
