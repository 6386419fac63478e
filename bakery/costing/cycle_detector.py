"""
Circular composition detection for nested recipes.

Transaction boundary: pure computation (no database access).

Recipes form a directed graph through their RecipeRef lines. Saving a
recipe that closes a loop (A uses B, B uses A) must be refused, so the
editor calls has_cycle()/find_cycle() on the draft before persisting.

Traversal is a depth-first search with two accumulators threaded through
the recursion:
- visited: nodes whose subtree is proven cycle-free
- path: nodes on the current DFS path (the "on stack" set, kept ordered
  so the offending loop can be reported)

Stock item lines are never followed. Recipe refs that resolve to nothing
are treated as leaves.
"""

from typing import Dict, Iterable, List, Optional, Set

from .cost_model import RecipeSheet, index_by_id


def _visit(
    sheet: RecipeSheet,
    lookup: Dict[int, RecipeSheet],
    visited: Set[int],
    path: List[int],
) -> Optional[List[int]]:
    path.append(sheet.id)

    for child_id in sheet.recipe_refs():
        if child_id in path:
            # Back edge: report the loop starting at its first node
            start = path.index(child_id)
            return path[start:] + [child_id]
        if child_id in visited:
            continue
        child = lookup.get(child_id)
        if child is None:
            continue
        cycle = _visit(child, lookup, visited, path)
        if cycle:
            return cycle

    path.pop()
    visited.add(sheet.id)
    return None


def find_cycle(candidate: RecipeSheet, all_recipes: Iterable[RecipeSheet]) -> Optional[List[int]]:
    """
    Find a composition loop reachable from candidate.

    The candidate replaces any stored recipe with the same id, so unsaved
    edits are checked against the rest of the collection.

    Args:
        candidate: Recipe about to be saved
        all_recipes: Every known recipe

    Returns:
        Recipe ids forming the loop with the first id repeated at the end
        (e.g. [1, 2, 3, 1]), or None if there is no loop

    Examples:
        Self reference: find_cycle(A) -> [A.id, A.id]
    """
    lookup = index_by_id(all_recipes)
    lookup[candidate.id] = candidate
    return _visit(candidate, lookup, set(), [])


def has_cycle(candidate: RecipeSheet, all_recipes: Iterable[RecipeSheet]) -> bool:
    """
    Check whether saving candidate would create circular composition.

    Never raises; the caller turns True into a ValidationError.
    """
    return find_cycle(candidate, all_recipes) is not None


def describe_cycle(cycle: List[int], all_recipes: Iterable[RecipeSheet]) -> str:
    """Render a cycle as 'Cake -> Ganache -> Cake' using known recipe names."""
    lookup = index_by_id(all_recipes)
    names = [lookup[rid].name if rid in lookup else f"#{rid}" for rid in cycle]
    return " -> ".join(names)
