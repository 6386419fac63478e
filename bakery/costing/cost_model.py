"""
Value types for recipe costing.

This module contains:
- RecipeType: base / processed / final classification
- StockRef, RecipeRef: tagged component references
- SheetLine: one line of a technical sheet (bill of materials)
- RecipeSheet: a recipe with its lines and cached cost totals
- StockItemInfo: read-only view of a purchased stock item
- RecipeHierarchy: transient tree used for nested BOM display

All values are immutable. Mutations go through bakery.costing.sheet_editor,
which always hands back a refreshed sheet.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple, Union

ZERO = Decimal("0")
DEFAULT_YIELD_UNIT = "un"


class RecipeType(str, Enum):
    """
    Recipe classification.

    Values:
        BASE: Purchased raw material, never has components
        PROCESSED: Intermediate preparation, usable as a component
        FINAL: Sellable end product
    """

    BASE = "base"
    PROCESSED = "processed"
    FINAL = "final"


def to_decimal(value) -> Decimal:
    """Coerce int/float/str/Decimal into Decimal without float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class StockRef:
    """Component reference to a stock item."""

    id: int


@dataclass(frozen=True)
class RecipeRef:
    """Component reference to another recipe."""

    id: int


ComponentRef = Union[StockRef, RecipeRef]


@dataclass(frozen=True)
class SheetLine:
    """One component line of a recipe.

    Attributes:
        id: Line identifier, unique within the owning recipe
        ref: StockRef or RecipeRef
        name: Display name of the component at capture time
        quantity: Amount consumed per one yield of the owning recipe
        unit: Unit of quantity (may differ from the component's native unit)
        cost_per_unit: Cost per single unit, captured when the line was added
        total_cost: quantity * cost_per_unit (kept current by refresh)
    """

    id: int
    ref: ComponentRef
    name: str
    quantity: Decimal
    unit: str
    cost_per_unit: Decimal
    total_cost: Decimal = ZERO

    def __post_init__(self):
        object.__setattr__(self, "quantity", to_decimal(self.quantity))
        object.__setattr__(self, "cost_per_unit", to_decimal(self.cost_per_unit))
        object.__setattr__(self, "total_cost", to_decimal(self.total_cost))

    @property
    def is_recipe(self) -> bool:
        return isinstance(self.ref, RecipeRef)


@dataclass(frozen=True)
class RecipeSheet:
    """A recipe and its technical sheet.

    total_cost and cost_per_unit are caches over lines, prep_cost and
    yield_quantity; build and mutate sheets through sheet_editor so they
    never drift.
    """

    id: int
    name: str
    recipe_type: RecipeType
    lines: Tuple[SheetLine, ...] = ()
    prep_cost: Decimal = ZERO
    yield_quantity: Decimal = Decimal("1")
    yield_unit: str = "un"
    total_cost: Decimal = ZERO
    cost_per_unit: Decimal = ZERO
    category: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "recipe_type", RecipeType(self.recipe_type))
        object.__setattr__(self, "lines", tuple(self.lines))
        object.__setattr__(self, "prep_cost", to_decimal(self.prep_cost))
        object.__setattr__(self, "yield_quantity", to_decimal(self.yield_quantity))
        object.__setattr__(self, "total_cost", to_decimal(self.total_cost))
        object.__setattr__(self, "cost_per_unit", to_decimal(self.cost_per_unit))

    def recipe_refs(self) -> Tuple[int, ...]:
        """Ids of the recipes this sheet consumes, in line order."""
        return tuple(line.ref.id for line in self.lines if isinstance(line.ref, RecipeRef))

    def uses_recipe(self, recipe_id: int) -> bool:
        return recipe_id in self.recipe_refs()


@dataclass(frozen=True)
class StockItemInfo:
    """Read-only view of a stock item. cost is per one native unit."""

    id: int
    name: str
    unit: str
    cost: Decimal
    is_processed: bool = False

    def __post_init__(self):
        object.__setattr__(self, "cost", to_decimal(self.cost))


@dataclass(frozen=True)
class RecipeHierarchy:
    """Nested BOM view rooted at one recipe. Rebuilt on demand, never stored."""

    recipe: RecipeSheet
    children: Tuple["RecipeHierarchy", ...] = field(default_factory=tuple)
    level: int = 0


def index_by_id(sheets: Iterable[RecipeSheet]) -> Dict[int, RecipeSheet]:
    """Build an id -> sheet lookup. Later entries win on duplicate ids."""
    return {sheet.id: sheet for sheet in sheets}
