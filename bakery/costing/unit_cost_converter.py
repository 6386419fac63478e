"""
Unit-aware cost conversion.

Transaction boundary: pure computation (no database access).

Conversion Strategy:
- Exact, table-driven factors only: kg <-> g and l <-> ml (factor 1000)
- Unit matching is case-insensitive and ignores surrounding whitespace
- Same unit returns the input unchanged
- Any other pair passes the input through unchanged, unless strict=True,
  in which case UnsupportedConversion is raised
"""

import logging
from decimal import Decimal
from typing import Dict, Optional, Tuple

from .cost_model import to_decimal
from .errors import UnsupportedConversion

logger = logging.getLogger(__name__)

# Exact conversions, keyed by (from_unit, to_unit): 1 from_unit == factor to_unit
UNIT_FACTORS: Dict[tuple, int] = {
    ("kg", "g"): 1000,
    ("l", "ml"): 1000,
}


def normalize_unit(unit: str) -> str:
    return (unit or "").strip().lower()


def _lookup(from_unit: str, to_unit: str) -> Optional[Tuple[int, bool]]:
    """
    Find the table factor linking two units.

    Returns:
        (factor, forward) where forward means 1 from_unit == factor to_unit,
        (1, True) for the same unit, or None if the pair is unsupported.
    """
    source = normalize_unit(from_unit)
    target = normalize_unit(to_unit)

    if source == target:
        return 1, True
    if (source, target) in UNIT_FACTORS:
        return UNIT_FACTORS[(source, target)], True
    if (target, source) in UNIT_FACTORS:
        return UNIT_FACTORS[(target, source)], False
    return None


def can_convert(from_unit: str, to_unit: str) -> bool:
    """
    Check whether two units can be converted exactly.

    Examples:
        >>> can_convert("kg", "G")
        True
        >>> can_convert("kg", "un")
        False
    """
    return _lookup(from_unit, to_unit) is not None


def convert_quantity(quantity, from_unit: str, to_unit: str, strict: bool = False) -> Decimal:
    """
    Convert a quantity between units.

    Args:
        quantity: Amount in from_unit
        from_unit: Source unit
        to_unit: Target unit
        strict: Raise instead of passing through on unsupported pairs

    Returns:
        Amount in to_unit (unchanged if the pair is unsupported and not strict)

    Raises:
        UnsupportedConversion: If strict and the units are not convertible
    """
    amount = to_decimal(quantity)
    found = _lookup(from_unit, to_unit)
    if found is None:
        if strict:
            raise UnsupportedConversion(from_unit, to_unit)
        logger.debug(f"No conversion from '{from_unit}' to '{to_unit}', keeping {amount}")
        return amount

    factor, forward = found
    if factor == 1:
        return amount
    return amount * factor if forward else amount / factor


def proportional_cost(source_unit: str, target_unit: str, cost, strict: bool = False) -> Decimal:
    """
    Re-express a cost per source_unit as a cost per target_unit.

    Args:
        source_unit: Unit the cost is quoted in (e.g., the stock item's unit)
        target_unit: Unit the recipe line is measured in
        cost: Cost per one source_unit
        strict: Raise instead of passing through on unsupported pairs

    Returns:
        Cost per one target_unit

    Raises:
        UnsupportedConversion: If strict and the units are not convertible

    Examples:
        >>> proportional_cost("kg", "g", 10)
        Decimal('0.01')
        >>> proportional_cost("g", "kg", 10)
        Decimal('10000')
        >>> proportional_cost("kg", "un", 10)
        Decimal('10')
    """
    amount = to_decimal(cost)
    found = _lookup(source_unit, target_unit)
    if found is None:
        if strict:
            raise UnsupportedConversion(source_unit, target_unit)
        logger.debug(
            f"No conversion from '{source_unit}' to '{target_unit}', keeping cost {amount}"
        )
        return amount

    factor, forward = found
    if factor == 1:
        return amount
    # A kilogram holds 1000 grams, so a gram costs a thousandth of the kilogram price
    return amount / factor if forward else amount * factor
