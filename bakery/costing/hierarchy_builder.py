"""
Nested BOM tree construction.

Transaction boundary: pure computation (no database access).

build_hierarchy() expands a recipe into its component recipes, depth
first, in line order. One visited set spans the whole call: any recipe
met a second time, anywhere in the tree, is emitted as a leaf instead of
being expanded again. That keeps the builder finite even on a cyclic
graph, which validation should already have rejected.

Stock item lines and dangling recipe refs do not appear in the tree.
"""

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Set, Tuple

from .cost_model import RecipeHierarchy, RecipeSheet, index_by_id

logger = logging.getLogger(__name__)

TREE_INDENT = "  "


def _expand(
    sheet: RecipeSheet,
    lookup: Dict[int, RecipeSheet],
    level: int,
    visited: Set[int],
) -> RecipeHierarchy:
    if sheet.id in visited:
        logger.debug(f"Recipe {sheet.id} already expanded, rendering as leaf at level {level}")
        return RecipeHierarchy(recipe=sheet, children=(), level=level)

    visited.add(sheet.id)

    children = tuple(
        _expand(lookup[child_id], lookup, level + 1, visited)
        for child_id in sheet.recipe_refs()
        if child_id in lookup
    )
    return RecipeHierarchy(recipe=sheet, children=children, level=level)


def build_hierarchy(root: RecipeSheet, all_recipes: Iterable[RecipeSheet]) -> RecipeHierarchy:
    """
    Build the nested component tree for a recipe.

    Args:
        root: Recipe at the top of the tree (level 0)
        all_recipes: Every known recipe, used to resolve RecipeRef lines

    Returns:
        A fresh RecipeHierarchy; nothing is cached between calls
    """
    lookup = index_by_id(all_recipes)
    lookup[root.id] = root
    return _expand(root, lookup, 0, set())


def flatten_hierarchy(tree: RecipeHierarchy) -> List[Tuple[int, RecipeSheet]]:
    """Depth-first (level, recipe) pairs, root first."""
    rows = [(tree.level, tree.recipe)]
    for child in tree.children:
        rows.extend(flatten_hierarchy(child))
    return rows


def _format_amount(value: Decimal) -> str:
    return f"{value.quantize(Decimal('0.01'))}"


def format_hierarchy(tree: RecipeHierarchy) -> List[str]:
    """
    Render a tree as indented text lines.

    Each node produces two lines: the recipe name with its yield, and its
    cost per yield unit.

    Example:
        Cake (1 un)
          cost/un: 9.50
          Chocolate Ganache (1 kg)
            cost/kg: 15.00
    """
    lines = []
    for level, recipe in flatten_hierarchy(tree):
        prefix = TREE_INDENT * level
        lines.append(f"{prefix}{recipe.name} ({recipe.yield_quantity.normalize():f} {recipe.yield_unit})")
        lines.append(f"{prefix}{TREE_INDENT}cost/{recipe.yield_unit}: {_format_amount(recipe.cost_per_unit)}")
    return lines
