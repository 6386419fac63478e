"""
Builder-style editing of recipe sheets.

Transaction boundary: pure computation (no database access).

Every function here takes a sheet and returns a new, refreshed sheet.
There are no setters: the only way to change lines, preparation cost or
yield is through these functions, so cached totals always match their
inputs. validate_sheet() is the pre-save gate used by the services.
"""

from dataclasses import replace
from typing import Iterable, Optional

from .cost_calculator import refresh
from .cost_model import (
    DEFAULT_YIELD_UNIT,
    ZERO,
    RecipeRef,
    RecipeSheet,
    RecipeType,
    SheetLine,
    StockItemInfo,
    StockRef,
    to_decimal,
)
from .cycle_detector import describe_cycle, find_cycle
from .errors import ERROR_BASE_WITH_COMPONENTS, ERROR_CYCLE_DETECTED, ValidationError
from .unit_cost_converter import proportional_cost


def new_sheet(
    recipe_id: int,
    name: str,
    recipe_type: RecipeType,
    yield_quantity=1,
    yield_unit: str = DEFAULT_YIELD_UNIT,
    prep_cost=ZERO,
    lines: Iterable[SheetLine] = (),
    category: Optional[str] = None,
    description: Optional[str] = None,
) -> RecipeSheet:
    """Create a refreshed sheet."""
    return refresh(
        RecipeSheet(
            id=recipe_id,
            name=name,
            recipe_type=recipe_type,
            lines=tuple(lines),
            prep_cost=prep_cost,
            yield_quantity=yield_quantity,
            yield_unit=yield_unit,
            category=category,
            description=description,
        )
    )


# ============================================================================
# Line Construction
# ============================================================================


def line_from_stock_item(
    line_id: int,
    item: StockItemInfo,
    quantity,
    unit: Optional[str] = None,
    strict: bool = False,
) -> SheetLine:
    """
    Build a line consuming a stock item.

    The item's cost is captured now, converted from the item's unit into
    the line's unit. Later price changes do not touch this line until it
    is repriced.
    """
    unit = unit or item.unit
    cost = proportional_cost(item.unit, unit, item.cost, strict=strict)
    return SheetLine(
        id=line_id,
        ref=StockRef(item.id),
        name=item.name,
        quantity=quantity,
        unit=unit,
        cost_per_unit=cost,
        total_cost=to_decimal(quantity) * cost,
    )


def line_from_recipe(
    line_id: int,
    component: RecipeSheet,
    quantity,
    unit: Optional[str] = None,
    strict: bool = False,
) -> SheetLine:
    """Build a line consuming another recipe, priced at its current cost per yield unit."""
    unit = unit or component.yield_unit
    cost = proportional_cost(component.yield_unit, unit, component.cost_per_unit, strict=strict)
    return SheetLine(
        id=line_id,
        ref=RecipeRef(component.id),
        name=component.name,
        quantity=quantity,
        unit=unit,
        cost_per_unit=cost,
        total_cost=to_decimal(quantity) * cost,
    )


# ============================================================================
# Mutations
# ============================================================================


def _find_line(sheet: RecipeSheet, line_id: int) -> SheetLine:
    for line in sheet.lines:
        if line.id == line_id:
            return line
    raise ValidationError([f"Component line {line_id} not found in '{sheet.name}'"])


def _replace_line(sheet: RecipeSheet, updated: SheetLine) -> RecipeSheet:
    lines = tuple(updated if line.id == updated.id else line for line in sheet.lines)
    return refresh(replace(sheet, lines=lines))


def next_line_id(sheet: RecipeSheet) -> int:
    return max((line.id for line in sheet.lines), default=0) + 1


def add_line(sheet: RecipeSheet, line: SheetLine) -> RecipeSheet:
    """Append a line. Line ids must be unique within the sheet."""
    if any(existing.id == line.id for existing in sheet.lines):
        raise ValidationError([f"Component line {line.id} already exists in '{sheet.name}'"])
    return refresh(replace(sheet, lines=sheet.lines + (line,)))


def remove_line(sheet: RecipeSheet, line_id: int) -> RecipeSheet:
    """Drop a line; unknown ids raise ValidationError."""
    _find_line(sheet, line_id)
    return refresh(replace(sheet, lines=tuple(line for line in sheet.lines if line.id != line_id)))


def update_line_quantity(sheet: RecipeSheet, line_id: int, quantity) -> RecipeSheet:
    line = _find_line(sheet, line_id)
    return _replace_line(sheet, replace(line, quantity=to_decimal(quantity)))


def change_line_unit(
    sheet: RecipeSheet,
    line_id: int,
    unit: str,
    source_unit: str,
    source_cost,
    strict: bool = False,
) -> RecipeSheet:
    """
    Switch a line to another unit, recapturing its cost per unit.

    Args:
        sheet: Sheet to edit
        line_id: Line to change
        unit: New unit for the line's quantity
        source_unit: Native unit of the component (stock unit or yield unit)
        source_cost: Component cost per native unit
        strict: Raise UnsupportedConversion on unsupported pairs
    """
    line = _find_line(sheet, line_id)
    cost = proportional_cost(source_unit, unit, source_cost, strict=strict)
    return _replace_line(sheet, replace(line, unit=unit, cost_per_unit=cost))


def set_prep_cost(sheet: RecipeSheet, prep_cost) -> RecipeSheet:
    return refresh(replace(sheet, prep_cost=to_decimal(prep_cost)))


def set_yield(sheet: RecipeSheet, yield_quantity, yield_unit: Optional[str] = None) -> RecipeSheet:
    return refresh(
        replace(
            sheet,
            yield_quantity=to_decimal(yield_quantity),
            yield_unit=yield_unit or sheet.yield_unit,
        )
    )


def rename(sheet: RecipeSheet, name: str) -> RecipeSheet:
    return replace(sheet, name=name)


# ============================================================================
# Pre-save Validation
# ============================================================================


def _check_amount(value, label: str, allow_zero: bool) -> Optional[str]:
    number = to_decimal(value)
    if not number.is_finite():
        return f"{label}: Must be a valid number"
    if allow_zero and number < 0:
        return f"{label}: Must be zero or greater"
    if not allow_zero and number <= 0:
        return f"{label}: Must be greater than zero"
    return None


def collect_errors(sheet: RecipeSheet, all_recipes: Iterable[RecipeSheet]) -> list:
    """Every user-correctable problem with sheet, in display order."""
    errors = []

    if not sheet.name or not sheet.name.strip():
        errors.append("Recipe Name: This field is required")

    for error in (
        _check_amount(sheet.yield_quantity, "Yield", allow_zero=False),
        _check_amount(sheet.prep_cost, "Preparation Cost", allow_zero=True),
    ):
        if error:
            errors.append(error)

    for line in sheet.lines:
        for error in (
            _check_amount(line.quantity, f"Quantity of '{line.name}'", allow_zero=False),
            _check_amount(line.cost_per_unit, f"Cost of '{line.name}'", allow_zero=True),
        ):
            if error:
                errors.append(error)

    if sheet.recipe_type == RecipeType.BASE:
        if sheet.lines:
            errors.append(ERROR_BASE_WITH_COMPONENTS)
    else:
        recipes = list(all_recipes)
        cycle = find_cycle(sheet, recipes)
        if cycle:
            errors.append(f"{ERROR_CYCLE_DETECTED} ({describe_cycle(cycle, recipes + [sheet])})")

    return errors


def validate_sheet(sheet: RecipeSheet, all_recipes: Iterable[RecipeSheet]) -> RecipeSheet:
    """
    Gate a sheet before it is saved.

    Args:
        sheet: Draft to be saved
        all_recipes: Every stored recipe (the draft replaces its stored copy)

    Returns:
        The refreshed sheet, ready to persist

    Raises:
        ValidationError: Listing every problem found, including cycles
    """
    errors = collect_errors(sheet, all_recipes)
    if errors:
        raise ValidationError(errors)
    return refresh(sheet)
