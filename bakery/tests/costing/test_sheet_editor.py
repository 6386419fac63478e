"""
Unit tests for builder-style sheet editing and pre-save validation.

Tests cover:
- Building lines from stock items and sub-recipes (with unit conversion)
- Every mutation returning a refreshed sheet
- Validation messages for bad names, yields, amounts and base recipes
- Cycle rejection with a readable path
- The ganache/cake end-to-end costing scenario
"""

from decimal import Decimal

import pytest

from bakery.costing import (
    RecipeRef,
    RecipeType,
    StockItemInfo,
    StockRef,
    add_line,
    change_line_unit,
    collect_errors,
    is_fresh,
    line_from_recipe,
    line_from_stock_item,
    new_sheet,
    next_line_id,
    remove_line,
    rename,
    set_prep_cost,
    set_yield,
    update_line_quantity,
    validate_sheet,
)
from bakery.costing.errors import UnsupportedConversion, ValidationError
from bakery.costing.errors import ERROR_BASE_WITH_COMPONENTS, ERROR_CYCLE_DETECTED


# ============================================================================
# End-to-end scenario
# ============================================================================


class TestGanacheAndCake:
    """Chocolate Ganache used inside a Cake."""

    def test_ganache_totals(self, ganache_sheet):
        assert [line.total_cost for line in ganache_sheet.lines] == [
            Decimal("10.00"), Decimal("3.00"),
        ]
        assert ganache_sheet.total_cost == Decimal("15.00")
        assert ganache_sheet.cost_per_unit == Decimal("15.00")

    def test_cake_totals(self, cake_sheet):
        line = cake_sheet.lines[0]
        assert line.ref == RecipeRef(10)
        assert line.cost_per_unit == Decimal("15.00")
        assert line.total_cost == Decimal("4.50")
        assert cake_sheet.total_cost == Decimal("9.50")

    def test_cake_validates(self, cake_sheet, ganache_sheet):
        assert validate_sheet(cake_sheet, [ganache_sheet]) == cake_sheet

    def test_cake_in_grams(self, ganache_sheet):
        cake = new_sheet(20, "Cake", RecipeType.FINAL, prep_cost="5.00")
        cake = add_line(cake, line_from_recipe(1, ganache_sheet, 300, "g"))
        assert cake.lines[0].cost_per_unit == Decimal("0.015")
        assert cake.total_cost == Decimal("9.50")


# ============================================================================
# Line construction
# ============================================================================


class TestLineConstruction:
    """Test line builders."""

    def test_stock_line_defaults_to_item_unit(self, chocolate):
        line = line_from_stock_item(1, chocolate, "0.5")
        assert line.unit == "kg"
        assert line.ref == StockRef(1)
        assert line.name == "Chocolate"
        assert not line.is_recipe

    def test_stock_line_converts_cost(self, chocolate):
        line = line_from_stock_item(1, chocolate, 250, "g")
        assert line.cost_per_unit == Decimal("0.02")
        assert line.total_cost == Decimal("5")

    def test_recipe_line_defaults_to_yield_unit(self, ganache_sheet):
        line = line_from_recipe(3, ganache_sheet, "0.3")
        assert line.unit == "kg"
        assert line.is_recipe

    def test_unsupported_unit_passes_through(self, chocolate):
        line = line_from_stock_item(1, chocolate, 2, "un")
        assert line.cost_per_unit == Decimal("20.00")

    def test_strict_unsupported_unit(self, chocolate):
        with pytest.raises(UnsupportedConversion):
            line_from_stock_item(1, chocolate, 2, "un", strict=True)

    def test_ids_colliding_across_kinds_stay_distinct(self, ganache_sheet):
        flour = StockItemInfo(id=10, name="Flour", unit="kg", cost="2")
        stock_line = line_from_stock_item(1, flour, 1)
        recipe_line = line_from_recipe(2, ganache_sheet, 1)
        assert stock_line.ref != recipe_line.ref
        assert stock_line.ref.id == recipe_line.ref.id


# ============================================================================
# Mutations
# ============================================================================


class TestMutations:
    """Test that every edit returns a refreshed sheet."""

    def test_new_sheet_is_fresh(self):
        sheet = new_sheet(1, "Bread", RecipeType.FINAL, yield_quantity=4, prep_cost="2")
        assert is_fresh(sheet)
        assert sheet.cost_per_unit == Decimal("0.5")

    def test_add_line(self, ganache_sheet, chocolate):
        sheet = add_line(ganache_sheet, line_from_stock_item(3, chocolate, "0.1"))
        assert sheet.total_cost == Decimal("17.00")
        assert ganache_sheet.total_cost == Decimal("15.00")

    def test_add_duplicate_line_id(self, ganache_sheet, chocolate):
        with pytest.raises(ValidationError):
            add_line(ganache_sheet, line_from_stock_item(1, chocolate, "0.1"))

    def test_next_line_id(self, ganache_sheet):
        assert next_line_id(ganache_sheet) == 3
        assert next_line_id(new_sheet(1, "Empty", RecipeType.FINAL)) == 1

    def test_remove_line(self, ganache_sheet):
        sheet = remove_line(ganache_sheet, 1)
        assert [line.id for line in sheet.lines] == [2]
        assert sheet.total_cost == Decimal("5.00")

    def test_remove_unknown_line(self, ganache_sheet):
        with pytest.raises(ValidationError):
            remove_line(ganache_sheet, 99)

    def test_update_line_quantity(self, ganache_sheet):
        sheet = update_line_quantity(ganache_sheet, 1, "1")
        assert sheet.lines[0].total_cost == Decimal("20.00")
        assert sheet.total_cost == Decimal("25.00")

    def test_change_line_unit_recaptures_cost(self, ganache_sheet):
        sheet = change_line_unit(ganache_sheet, 1, "g", "kg", "20.00")
        sheet = update_line_quantity(sheet, 1, 500)
        assert sheet.lines[0].unit == "g"
        assert sheet.lines[0].cost_per_unit == Decimal("0.02")
        assert sheet.total_cost == Decimal("15.00")

    def test_set_prep_cost(self, ganache_sheet):
        assert set_prep_cost(ganache_sheet, 0).total_cost == Decimal("13.00")

    def test_set_yield(self, ganache_sheet):
        sheet = set_yield(ganache_sheet, 3)
        assert sheet.yield_unit == "kg"
        assert sheet.cost_per_unit == Decimal("5")

        sheet = set_yield(ganache_sheet, 2, "un")
        assert sheet.yield_unit == "un"
        assert sheet.cost_per_unit == Decimal("7.5")

    def test_rename(self, ganache_sheet):
        assert rename(ganache_sheet, "Dark Ganache").name == "Dark Ganache"


# ============================================================================
# Validation
# ============================================================================


class TestValidation:
    """Test the pre-save gate."""

    def test_empty_name(self):
        sheet = new_sheet(1, "  ", RecipeType.FINAL)
        assert collect_errors(sheet, []) == ["Recipe Name: This field is required"]

    def test_zero_yield(self):
        sheet = new_sheet(1, "Bread", RecipeType.FINAL, yield_quantity=0)
        with pytest.raises(ValidationError) as exc_info:
            validate_sheet(sheet, [])
        assert exc_info.value.errors == ["Yield: Must be greater than zero"]

    def test_zero_line_quantity(self, ganache_sheet):
        sheet = update_line_quantity(ganache_sheet, 1, 0)
        assert collect_errors(sheet, []) == [
            "Quantity of 'Chocolate': Must be greater than zero"
        ]

    def test_all_errors_reported_together(self):
        sheet = new_sheet(1, "", RecipeType.FINAL, yield_quantity=0)
        assert len(collect_errors(sheet, [])) == 2

    def test_base_recipe_without_lines(self):
        sheet = new_sheet(1, "Butter", RecipeType.BASE, yield_unit="kg", prep_cost="9")
        assert validate_sheet(sheet, []) == sheet

    def test_base_recipe_with_lines(self, chocolate):
        sheet = new_sheet(1, "Butter", RecipeType.BASE)
        sheet = add_line(sheet, line_from_stock_item(1, chocolate, 1))
        assert collect_errors(sheet, []) == [ERROR_BASE_WITH_COMPONENTS]

    def test_self_reference_rejected(self, ganache_sheet):
        sheet = add_line(ganache_sheet, line_from_recipe(3, ganache_sheet, "0.1"))
        with pytest.raises(ValidationError) as exc_info:
            validate_sheet(sheet, [ganache_sheet])
        message = exc_info.value.errors[0]
        assert message.startswith(ERROR_CYCLE_DETECTED)
        assert "Chocolate Ganache -> Chocolate Ganache" in message

    def test_indirect_cycle_rejected(self, ganache_sheet, cake_sheet):
        """Ganache may not start using the cake that already uses it."""
        edited = add_line(ganache_sheet, line_from_recipe(3, cake_sheet, 1))
        with pytest.raises(ValidationError) as exc_info:
            validate_sheet(edited, [ganache_sheet, cake_sheet])
        assert "(Chocolate Ganache -> Cake -> Chocolate Ganache)" in exc_info.value.errors[0]

    def test_validate_returns_refreshed_sheet(self, ganache_sheet):
        stale = ganache_sheet.__class__(
            ganache_sheet.id, ganache_sheet.name, ganache_sheet.recipe_type,
            lines=ganache_sheet.lines, prep_cost=ganache_sheet.prep_cost,
            yield_quantity=ganache_sheet.yield_quantity, yield_unit=ganache_sheet.yield_unit,
        )
        assert stale.total_cost == Decimal("0")
        assert validate_sheet(stale, []).total_cost == Decimal("15.00")
