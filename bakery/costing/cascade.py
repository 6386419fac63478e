"""
Cascade impact analysis for cost changes.

Transaction boundary: pure computation (no database access).

When a recipe's cost changes, every recipe that uses it (directly or
through other recipes) changes too. This module works out which recipes
are affected and by how much, without mutating or persisting anything.

Algorithm:
1. Recompute the changed recipe from its current lines and compare with
   its cached total_cost.
2. Walk dependents in dependency order. Each dependent is recomputed with
   its RecipeRef lines repriced from the new cost per unit of any already
   affected component (converted into the line's unit), and compared with
   its own cached total_cost.
3. A processed set guarantees each recipe is handled once.
"""

from dataclasses import replace
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Set

from .cost_calculator import refresh
from .cost_model import RecipeRef, RecipeSheet, index_by_id
from .unit_cost_converter import proportional_cost


def get_dependents(recipe_id: int, all_recipes: Iterable[RecipeSheet]) -> List[RecipeSheet]:
    """Recipes with at least one line referencing recipe_id, in collection order."""
    return [sheet for sheet in all_recipes if sheet.uses_recipe(recipe_id)]


def cascade_order(changed_recipe_id: int, all_recipes: Iterable[RecipeSheet]) -> List[int]:
    """
    Ids of the changed recipe and all its transitive dependents.

    A recipe always appears after every affected recipe it consumes, so
    recomputing in this order sees fresh component costs. Unknown ids
    yield an empty list.
    """
    sheets = list(all_recipes)
    lookup = index_by_id(sheets)
    if changed_recipe_id not in lookup:
        return []

    processed: Set[int] = set()
    post_order: List[int] = []

    def walk(recipe_id: int) -> None:
        if recipe_id in processed:
            return
        processed.add(recipe_id)
        for dependent in get_dependents(recipe_id, sheets):
            walk(dependent.id)
        post_order.append(recipe_id)

    walk(changed_recipe_id)
    # Reversed post-order of the "used by" graph is a topological order
    return list(reversed(post_order))


def reprice_lines(
    sheet: RecipeSheet,
    component_sheets: Dict[int, RecipeSheet],
    precision: Optional[Decimal] = None,
) -> RecipeSheet:
    """
    Return a refreshed sheet whose RecipeRef lines take their cost per unit
    from component_sheets (converted from the component's yield unit into
    the line's unit). Lines for recipes not in component_sheets keep their
    captured cost. precision is passed through to refresh().
    """
    lines = []
    for line in sheet.lines:
        if isinstance(line.ref, RecipeRef) and line.ref.id in component_sheets:
            component = component_sheets[line.ref.id]
            line = replace(
                line,
                cost_per_unit=proportional_cost(
                    component.yield_unit, line.unit, component.cost_per_unit
                ),
            )
        lines.append(line)
    return refresh(replace(sheet, lines=tuple(lines)), precision)


def cascade_sheets(
    changed_recipe_id: int,
    all_recipes: Iterable[RecipeSheet],
    precision: Optional[Decimal] = None,
) -> Dict[int, RecipeSheet]:
    """
    Recompute the changed recipe and every transitive dependent.

    With a precision, each recipe is rounded before its dependents read
    its cost per unit, as if every level had been stored in turn.

    Returns:
        id -> recomputed sheet for every recipe in cascade_order()
    """
    sheets = list(all_recipes)
    lookup = index_by_id(sheets)
    recomputed: Dict[int, RecipeSheet] = {}

    for recipe_id in cascade_order(changed_recipe_id, sheets):
        recomputed[recipe_id] = reprice_lines(lookup[recipe_id], recomputed, precision)

    return recomputed


def cascade_impact(
    changed_recipe_id: int,
    all_recipes: Iterable[RecipeSheet],
    precision: Optional[Decimal] = None,
) -> Dict[int, Decimal]:
    """
    Cost delta for every recipe affected by a change to changed_recipe_id.

    Args:
        changed_recipe_id: Recipe whose lines or prep cost changed
        all_recipes: Every known recipe, with cached totals as last saved
        precision: Optional storage quantum, see cascade_sheets()

    Returns:
        recipe id -> (new total cost - cached total cost); zero deltas are
        omitted

    Example:
        A cached at 10 now costs 15; B uses 1 of A and nothing else:
        cascade_impact(A.id, [A, B]) == {A.id: Decimal('5'), B.id: Decimal('5')}
    """
    sheets = list(all_recipes)
    lookup = index_by_id(sheets)
    impact: Dict[int, Decimal] = {}

    for recipe_id, sheet in cascade_sheets(changed_recipe_id, sheets, precision).items():
        delta = sheet.total_cost - lookup[recipe_id].total_cost
        if delta != 0:
            impact[recipe_id] = delta

    return impact
