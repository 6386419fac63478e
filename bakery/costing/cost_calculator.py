"""
Cost calculation for recipe sheets.

Transaction boundary: pure computation (no database access).

Provides:
- line_cost: quantity * cost_per_unit for one component line
- recipe_cost: sum of line costs plus preparation cost
- cost_per_unit: recipe cost divided by yield (0 when yield is 0)
- refresh: a new sheet with every cached cost recomputed, optionally at
  storage precision
"""

from dataclasses import replace
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from .cost_model import ZERO, RecipeSheet, SheetLine, to_decimal
from .errors import ValidationError


def _require_amount(value, label: str) -> Decimal:
    number = to_decimal(value)
    if not number.is_finite():
        raise ValidationError([f"{label}: Must be a valid number"])
    if number < 0:
        raise ValidationError([f"{label}: Must be zero or greater"])
    return number


def line_cost(line: SheetLine) -> Decimal:
    """Cost of one component line.

    Args:
        line: Component line

    Returns:
        quantity * cost_per_unit

    Raises:
        ValidationError: If quantity or cost_per_unit is NaN, infinite or negative

    Examples:
        >>> line_cost(SheetLine(1, StockRef(1), "Chocolate", "0.5", "kg", "20.00"))
        Decimal('10.000')
    """
    quantity = _require_amount(line.quantity, f"Quantity of '{line.name}'")
    unit_cost = _require_amount(line.cost_per_unit, f"Cost of '{line.name}'")
    return quantity * unit_cost


def recipe_cost(sheet: RecipeSheet) -> Decimal:
    """Total cost of a recipe: every line cost plus the preparation cost.

    Line costs are recomputed from quantity and cost_per_unit, never read
    from the cached line total.
    """
    prep_cost = _require_amount(sheet.prep_cost, "Preparation Cost")
    return sum((line_cost(line) for line in sheet.lines), ZERO) + prep_cost


def cost_per_unit(sheet: RecipeSheet) -> Decimal:
    """Cost of one unit of yield.

    Returns 0 for a non-positive yield instead of dividing by zero.
    """
    yield_quantity = to_decimal(sheet.yield_quantity)
    if not yield_quantity.is_finite() or yield_quantity <= 0:
        return ZERO
    return recipe_cost(sheet) / yield_quantity


def _fit(value, precision: Optional[Decimal]) -> Decimal:
    number = to_decimal(value)
    if precision is None or not number.is_finite():
        return number
    return number.quantize(precision, rounding=ROUND_HALF_UP)


def _fit_inputs(sheet: RecipeSheet, precision: Decimal) -> RecipeSheet:
    lines = tuple(
        replace(
            line,
            quantity=_fit(line.quantity, precision),
            cost_per_unit=_fit(line.cost_per_unit, precision),
        )
        for line in sheet.lines
    )
    return replace(
        sheet,
        lines=lines,
        prep_cost=_fit(sheet.prep_cost, precision),
        yield_quantity=_fit(sheet.yield_quantity, precision),
    )


def refresh(sheet: RecipeSheet, precision: Optional[Decimal] = None) -> RecipeSheet:
    """Return a copy of sheet with every cached cost recomputed.

    Args:
        sheet: Sheet to recompute
        precision: Storage quantum (e.g. Decimal("0.000001")). When given,
            quantities, captured line prices, preparation cost and yield are
            rounded to it first, and every computed cost is rounded to it
            after, so the result survives a round trip through fixed-scale
            columns and recomputes to itself.

    Idempotent: refresh(refresh(s, p), p) == refresh(s, p).
    """
    if precision is not None:
        sheet = _fit_inputs(sheet, precision)
    lines = tuple(
        replace(line, total_cost=_fit(line_cost(line), precision)) for line in sheet.lines
    )
    refreshed = replace(sheet, lines=lines)
    return replace(
        refreshed,
        total_cost=_fit(recipe_cost(refreshed), precision),
        cost_per_unit=_fit(cost_per_unit(refreshed), precision),
    )


def is_fresh(sheet: RecipeSheet, precision: Optional[Decimal] = None) -> bool:
    """True if the cached totals match a recomputation at the given precision."""
    return refresh(sheet, precision) == sheet
