"""
Unit tests for cost change cascade analysis.

Tests cover:
- Direct dependents lookup
- Dependency ordering over chains and diamonds
- Repricing sub-recipe lines (with unit conversion)
- Impact deltas for changed recipes and their dependents
"""

from decimal import Decimal

from bakery.costing import (
    RecipeRef,
    RecipeSheet,
    RecipeType,
    SheetLine,
    StockRef,
    cascade_impact,
    cascade_order,
    cascade_sheets,
    get_dependents,
    refresh,
    reprice_lines,
)


def _uses(line_id, recipe_id, quantity=1, unit="un", cost=0):
    return SheetLine(line_id, RecipeRef(recipe_id), f"#{recipe_id}", quantity, unit, cost)


def _sheet(recipe_id, name, *lines, prep="0"):
    return refresh(RecipeSheet(recipe_id, name, RecipeType.PROCESSED, lines=lines, prep_cost=prep))


class TestDependents:
    """Test dependent discovery and ordering."""

    def test_direct_dependents_only(self):
        a = _sheet(1, "A")
        b = _sheet(2, "B", _uses(1, 1))
        c = _sheet(3, "C", _uses(1, 2))
        assert [s.id for s in get_dependents(1, [a, b, c])] == [2]

    def test_stock_ref_with_same_id_is_not_a_dependent(self):
        a = _sheet(1, "A")
        b = _sheet(2, "B", SheetLine(1, StockRef(1), "Flour", 1, "kg", 1))
        assert get_dependents(1, [a, b]) == []

    def test_order_over_chain(self):
        a = _sheet(1, "A")
        b = _sheet(2, "B", _uses(1, 1))
        c = _sheet(3, "C", _uses(1, 2))
        assert cascade_order(1, [c, b, a]) == [1, 2, 3]

    def test_order_over_diamond(self):
        """The top recipe comes after both of the paths that feed it."""
        a = _sheet(1, "A")
        left = _sheet(2, "Left", _uses(1, 1))
        right = _sheet(3, "Right", _uses(1, 1))
        top = _sheet(4, "Top", _uses(1, 2), _uses(2, 3))

        order = cascade_order(1, [a, left, right, top])
        assert order[0] == 1
        assert order[-1] == 4
        assert sorted(order) == [1, 2, 3, 4]

    def test_unrelated_recipes_excluded(self):
        a = _sheet(1, "A")
        other = _sheet(2, "Other")
        assert cascade_order(1, [a, other]) == [1]

    def test_unknown_recipe(self):
        assert cascade_order(42, [_sheet(1, "A")]) == []
        assert cascade_impact(42, [_sheet(1, "A")]) == {}


class TestRepriceLines:
    """Test repricing of sub-recipe lines."""

    def test_converts_into_line_unit(self):
        ganache = RecipeSheet(
            1, "Ganache", RecipeType.PROCESSED, prep_cost="20", yield_unit="kg",
            total_cost="20", cost_per_unit="20",
        )
        cake = _sheet(2, "Cake", _uses(1, 1, quantity=300, unit="g", cost="0.015"))

        repriced = reprice_lines(cake, {1: ganache})
        assert repriced.lines[0].cost_per_unit == Decimal("0.02")
        assert repriced.total_cost == Decimal("6")

    def test_unknown_components_keep_captured_cost(self):
        cake = _sheet(2, "Cake", _uses(1, 1, quantity=2, cost="3"))
        assert reprice_lines(cake, {}) == cake


class TestCascadeImpact:
    """Test cost delta propagation."""

    def test_component_cost_change_reaches_dependent(self):
        """A cached at 10 now costs 15; B uses one A."""
        a = RecipeSheet(
            1, "A", RecipeType.PROCESSED, prep_cost="15", total_cost="10", cost_per_unit="10",
        )
        b = _sheet(2, "B", _uses(1, 1, quantity=1, cost="10"))
        assert b.total_cost == Decimal("10")

        assert cascade_impact(1, [a, b]) == {1: Decimal("5"), 2: Decimal("5")}

    def test_delta_scales_with_quantity(self):
        a = RecipeSheet(
            1, "A", RecipeType.PROCESSED, prep_cost="15", total_cost="10", cost_per_unit="10",
        )
        b = _sheet(2, "B", _uses(1, 1, quantity="0.5", cost="10"), prep="1")
        assert cascade_impact(1, [a, b]) == {1: Decimal("5"), 2: Decimal("2.5")}

    def test_propagates_through_chain(self):
        a = RecipeSheet(
            1, "A", RecipeType.PROCESSED, prep_cost="12", total_cost="10", cost_per_unit="10",
        )
        b = _sheet(2, "B", _uses(1, 1, quantity=2, cost="10"))
        c = _sheet(3, "C", _uses(1, 2, quantity=1, cost="20"))

        assert cascade_impact(1, [a, b, c]) == {
            1: Decimal("2"), 2: Decimal("4"), 3: Decimal("4"),
        }

    def test_no_change_no_impact(self):
        a = _sheet(1, "A", prep="10")
        b = _sheet(2, "B", _uses(1, 1, cost="10"))
        assert cascade_impact(1, [a, b]) == {}

    def test_stale_dependent_reported_even_if_source_unchanged(self):
        """A dependent whose captured price is out of date shows up."""
        a = _sheet(1, "A", prep="10")
        b = _sheet(2, "B", _uses(1, 1, cost="8"))
        assert cascade_impact(1, [a, b]) == {2: Decimal("2")}

    def test_cascade_sheets_returns_refreshed_copies(self):
        a = RecipeSheet(
            1, "A", RecipeType.PROCESSED, prep_cost="15", total_cost="10", cost_per_unit="10",
        )
        b = _sheet(2, "B", _uses(1, 1, cost="10"))

        recomputed = cascade_sheets(1, [a, b])
        assert set(recomputed) == {1, 2}
        assert recomputed[1].total_cost == Decimal("15")
        assert recomputed[2].lines[0].cost_per_unit == Decimal("15")
        assert b.total_cost == Decimal("10")

    def test_cyclic_input_terminates(self):
        a = _sheet(1, "A", _uses(1, 2))
        b = _sheet(2, "B", _uses(1, 1))
        assert sorted(cascade_order(1, [a, b])) == [1, 2]


class TestCascadeAtStoragePrecision:
    """Test cascades that round every level like a fixed-scale store."""

    PRECISION = Decimal("0.000001")

    def _chain(self):
        thirds = refresh(
            RecipeSheet(1, "Thirds", RecipeType.PROCESSED, prep_cost="1", yield_quantity="3")
        )
        single = _sheet(2, "Single", _uses(1, 1))
        triple = _sheet(3, "Triple", _uses(1, 2, quantity=3))
        return [thirds, single, triple]

    def test_each_level_reads_rounded_cost(self):
        recomputed = cascade_sheets(1, self._chain(), self.PRECISION)
        assert recomputed[1].cost_per_unit == Decimal("0.333333")
        assert recomputed[2].lines[0].cost_per_unit == Decimal("0.333333")
        assert recomputed[3].total_cost == Decimal("0.999999")

    def test_full_precision_without_quantum(self):
        recomputed = cascade_sheets(1, self._chain())
        assert recomputed[3].total_cost.quantize(self.PRECISION) == Decimal("1.000000")

    def test_impact_uses_rounded_totals(self):
        impact = cascade_impact(1, self._chain(), self.PRECISION)
        assert impact[3] == Decimal("0.999999")
