"""
Input validation functions for the Bakery Cost Engine.

This module provides validation functions for user input coming into the
services:
- Numeric validation (positive, non-negative, finite)
- String validation (length, required fields)
- Unit and recipe type validation
- Whole-record validation for recipes, components and stock items

Each field validator returns a (is_valid, error_message) tuple; record
validators return (is_valid, list_of_errors).
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Tuple

from .constants import (
    ALL_UNITS,
    ERROR_INVALID_NON_NEGATIVE,
    ERROR_INVALID_NUMBER,
    ERROR_INVALID_POSITIVE,
    ERROR_INVALID_RECIPE_TYPE,
    ERROR_INVALID_UNIT,
    ERROR_REQUIRED_FIELD,
    MAX_CATEGORY_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    MAX_NAME_LENGTH,
    MAX_NOTES_LENGTH,
    MAX_UNIT_LENGTH,
    RECIPE_TYPE_LABELS,
)


def _to_decimal(value: Any) -> Optional[Decimal]:
    """Coerce value to a finite Decimal, or None if it isn't a number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def validate_required_string(value: Optional[str], field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a string field is not empty.

    Args:
        value: The string value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return False, f"{field_name}: {ERROR_REQUIRED_FIELD}"
    return True, ""


def validate_string_length(
    value: Optional[str], max_length: int, field_name: str = "Field"
) -> Tuple[bool, str]:
    """Validate that a string doesn't exceed maximum length."""
    if value and len(value) > max_length:
        return False, f"{field_name}: Must be {max_length} characters or less"
    return True, ""


def validate_positive_number(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """
    Validate that a value is a finite number greater than zero.

    Args:
        value: The value to validate
        field_name: Name of the field for error messages

    Returns:
        Tuple of (is_valid, error_message)
    """
    number = _to_decimal(value)
    if number is None:
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if number <= 0:
        return False, f"{field_name}: {ERROR_INVALID_POSITIVE}"
    return True, ""


def validate_non_negative_number(value: Any, field_name: str = "Field") -> Tuple[bool, str]:
    """Validate that a value is a finite number greater than or equal to zero."""
    number = _to_decimal(value)
    if number is None:
        return False, f"{field_name}: {ERROR_INVALID_NUMBER}"
    if number < 0:
        return False, f"{field_name}: {ERROR_INVALID_NON_NEGATIVE}"
    return True, ""


def validate_unit(unit: Optional[str], field_name: str = "Unit") -> Tuple[bool, str]:
    """
    Validate a unit of measurement.

    Units are matched case-insensitively against the known unit list.
    """
    is_valid, error = validate_required_string(unit, field_name)
    if not is_valid:
        return is_valid, error
    if len(unit) > MAX_UNIT_LENGTH or unit.strip().lower() not in ALL_UNITS:
        return False, f"{field_name}: {ERROR_INVALID_UNIT} '{unit}'"
    return True, ""


def validate_recipe_type(value: Any, field_name: str = "Recipe Type") -> Tuple[bool, str]:
    """Validate that a recipe type is one of base, processed or final."""
    raw = getattr(value, "value", value)
    if raw not in RECIPE_TYPE_LABELS:
        return False, f"{field_name}: {ERROR_INVALID_RECIPE_TYPE}"
    return True, ""


def validate_recipe_data(data: dict, partial: bool = False) -> Tuple[bool, list]:  # noqa: C901
    """
    Validate all fields for a recipe.

    Args:
        data: Dictionary containing recipe fields
        partial: If True, only validate fields present in data (updates)

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    if not partial or "name" in data:
        is_valid, error = validate_required_string(data.get("name"), "Recipe Name")
        if not is_valid:
            errors.append(error)
        else:
            is_valid, error = validate_string_length(data["name"], MAX_NAME_LENGTH, "Recipe Name")
            if not is_valid:
                errors.append(error)

    if not partial or "recipe_type" in data:
        is_valid, error = validate_recipe_type(data.get("recipe_type"))
        if not is_valid:
            errors.append(error)

    if not partial or "yield_quantity" in data:
        is_valid, error = validate_positive_number(data.get("yield_quantity"), "Yield")
        if not is_valid:
            errors.append(error)

    if not partial or "yield_unit" in data:
        is_valid, error = validate_unit(data.get("yield_unit"), "Yield Unit")
        if not is_valid:
            errors.append(error)

    if data.get("prep_cost") is not None:
        is_valid, error = validate_non_negative_number(data.get("prep_cost"), "Preparation Cost")
        if not is_valid:
            errors.append(error)

    if data.get("category"):
        is_valid, error = validate_string_length(
            data.get("category"), MAX_CATEGORY_LENGTH, "Category"
        )
        if not is_valid:
            errors.append(error)

    if data.get("description"):
        is_valid, error = validate_string_length(
            data.get("description"), MAX_DESCRIPTION_LENGTH, "Description"
        )
        if not is_valid:
            errors.append(error)

    return len(errors) == 0, errors


def validate_component_data(quantity: Any, unit: Optional[str], notes: Optional[str] = None) -> Tuple[bool, list]:
    """
    Validate the quantity/unit pair of a recipe component line.

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    is_valid, error = validate_positive_number(quantity, "Quantity")
    if not is_valid:
        errors.append(error)

    if unit is not None:
        is_valid, error = validate_unit(unit)
        if not is_valid:
            errors.append(error)

    if notes:
        is_valid, error = validate_string_length(notes, MAX_NOTES_LENGTH, "Notes")
        if not is_valid:
            errors.append(error)

    return len(errors) == 0, errors


def validate_stock_item_data(data: dict, partial: bool = False) -> Tuple[bool, list]:
    """
    Validate all fields for a stock item.

    Args:
        data: Dictionary containing stock item fields
        partial: If True, only validate fields present in data (updates)

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    if not partial or "name" in data:
        is_valid, error = validate_required_string(data.get("name"), "Name")
        if not is_valid:
            errors.append(error)
        else:
            is_valid, error = validate_string_length(data["name"], MAX_NAME_LENGTH, "Name")
            if not is_valid:
                errors.append(error)

    if not partial or "unit" in data:
        is_valid, error = validate_unit(data.get("unit"))
        if not is_valid:
            errors.append(error)

    if not partial or "cost" in data:
        is_valid, error = validate_non_negative_number(data.get("cost"), "Cost")
        if not is_valid:
            errors.append(error)

    for field, label in (("current_stock", "Current Stock"), ("minimum_stock", "Minimum Stock")):
        if data.get(field) is not None:
            is_valid, error = validate_non_negative_number(data.get(field), label)
            if not is_valid:
                errors.append(error)

    if data.get("category"):
        is_valid, error = validate_string_length(
            data.get("category"), MAX_CATEGORY_LENGTH, "Category"
        )
        if not is_valid:
            errors.append(error)

    return len(errors) == 0, errors
