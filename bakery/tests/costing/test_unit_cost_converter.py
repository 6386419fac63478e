"""
Unit tests for unit-aware cost conversion.

Tests cover:
- Cost per unit re-expressed across mass and volume units
- Same-unit and case-insensitive handling
- Pass-through of unsupported pairs, and strict mode rejection
- Quantity conversion
"""

from decimal import Decimal

import pytest

from bakery.costing import can_convert, convert_quantity, normalize_unit, proportional_cost
from bakery.costing.errors import UnsupportedConversion


# ============================================================================
# proportional_cost
# ============================================================================


class TestProportionalCost:
    """Test cost conversion between units."""

    def test_kilogram_to_gram(self):
        assert proportional_cost("kg", "g", 10) == Decimal("0.01")

    def test_gram_to_kilogram(self):
        assert proportional_cost("g", "kg", 10) == Decimal("10000")

    def test_liter_to_milliliter(self):
        assert proportional_cost("l", "ml", 5) == Decimal("0.005")

    def test_milliliter_to_liter(self):
        assert proportional_cost("ml", "l", "0.015") == Decimal("15")

    def test_same_unit_unchanged(self):
        assert proportional_cost("un", "un", 3) == Decimal("3")

    def test_case_and_whitespace_ignored(self):
        assert proportional_cost(" KG", "g ", 10) == Decimal("0.01")

    def test_unsupported_pair_passes_through(self):
        assert proportional_cost("kg", "un", 10) == Decimal("10")

    def test_mass_to_volume_passes_through(self):
        assert proportional_cost("kg", "l", "4.5") == Decimal("4.5")

    def test_strict_rejects_unsupported_pair(self):
        with pytest.raises(UnsupportedConversion) as exc_info:
            proportional_cost("kg", "un", 10, strict=True)
        assert exc_info.value.source_unit == "kg"
        assert exc_info.value.target_unit == "un"

    def test_strict_allows_supported_pair(self):
        assert proportional_cost("kg", "g", 10, strict=True) == Decimal("0.01")

    def test_float_input_has_no_binary_noise(self):
        assert proportional_cost("kg", "g", 0.1) == Decimal("0.0001")


# ============================================================================
# Quantities and helpers
# ============================================================================


class TestConvertQuantity:
    """Test quantity conversion between units."""

    def test_kilogram_to_gram(self):
        assert convert_quantity("0.3", "kg", "g") == Decimal("300")

    def test_milliliter_to_liter(self):
        assert convert_quantity(250, "ml", "l") == Decimal("0.25")

    def test_same_unit(self):
        assert convert_quantity(4, "un", "un") == Decimal("4")

    def test_unsupported_passes_through(self):
        assert convert_quantity(2, "un", "kg") == Decimal("2")

    def test_strict_raises(self):
        with pytest.raises(UnsupportedConversion):
            convert_quantity(2, "un", "kg", strict=True)


class TestUnitHelpers:
    """Test unit normalization and compatibility checks."""

    def test_normalize_unit(self):
        assert normalize_unit(" ML ") == "ml"
        assert normalize_unit(None) == ""

    def test_can_convert(self):
        assert can_convert("kg", "g")
        assert can_convert("g", "kg")
        assert can_convert("L", "ml")
        assert can_convert("un", "un")
        assert not can_convert("kg", "un")
        assert not can_convert("g", "ml")
