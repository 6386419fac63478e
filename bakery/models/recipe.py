"""
Recipe models for technical sheets.

This module contains:
- Recipe: A base, processed or final recipe with cached cost totals
- RecipeComponent: One line of a recipe's bill of materials, pointing at
  either a stock item or another recipe
"""

from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from bakery.costing.cost_model import (
    RecipeRef,
    RecipeSheet,
    RecipeType,
    SheetLine,
    StockRef,
)

from .base import BaseModel


class Recipe(BaseModel):
    """
    Recipe model.

    Attributes:
        name: Recipe name (required)
        recipe_type: "base", "processed" or "final"
        category: Recipe category (e.g., "Fillings", "Cakes")
        description: Free text
        prep_cost: Labor/overhead added at this level
        yield_quantity: Quantity produced per batch
        yield_unit: Unit of the yield (e.g., "kg", "un")
        total_cost: Cached sum of component costs plus prep_cost
        cost_per_unit: Cached total_cost / yield_quantity

    total_cost and cost_per_unit are written only by the recipe service,
    from a refreshed RecipeSheet.
    """

    __tablename__ = "recipes"

    name = Column(String(200), nullable=False, index=True)
    recipe_type = Column(String(20), nullable=False, default=RecipeType.PROCESSED.value)
    category = Column(String(100), nullable=True, index=True)
    description = Column(Text, nullable=True)

    prep_cost = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    yield_quantity = Column(Numeric(18, 6), nullable=False, default=Decimal("1"))
    yield_unit = Column(String(20), nullable=False, default="un")

    total_cost = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    cost_per_unit = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))

    components = relationship(
        "RecipeComponent",
        foreign_keys="RecipeComponent.recipe_id",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeComponent.sort_order",
        lazy="joined",
    )
    used_in_components = relationship(
        "RecipeComponent",
        foreign_keys="RecipeComponent.component_recipe_id",
        back_populates="component_recipe",
        lazy="select",
    )

    __table_args__ = (
        CheckConstraint(
            "recipe_type IN ('base', 'processed', 'final')",
            name="ck_recipe_type_valid",
        ),
        CheckConstraint("prep_cost >= 0", name="ck_recipe_prep_cost_non_negative"),
        CheckConstraint("yield_quantity > 0", name="ck_recipe_yield_positive"),
        Index("idx_recipe_name", "name"),
        Index("idx_recipe_type", "recipe_type"),
    )

    def __repr__(self) -> str:
        return f"Recipe(id={self.id}, name='{self.name}', type='{self.recipe_type}')"

    def to_sheet(self) -> RecipeSheet:
        """
        Convert this row and its components into a costing sheet.

        Cached totals are carried over as stored so callers can compare
        them with a recomputation.
        """
        return RecipeSheet(
            id=self.id,
            name=self.name,
            recipe_type=RecipeType(self.recipe_type),
            lines=tuple(component.to_line() for component in self.components),
            prep_cost=self.prep_cost if self.prep_cost is not None else Decimal("0"),
            yield_quantity=(
                self.yield_quantity if self.yield_quantity is not None else Decimal("1")
            ),
            yield_unit=self.yield_unit,
            total_cost=self.total_cost if self.total_cost is not None else Decimal("0"),
            cost_per_unit=self.cost_per_unit if self.cost_per_unit is not None else Decimal("0"),
            category=self.category,
            description=self.description,
        )

    def apply_sheet_costs(self, sheet: RecipeSheet) -> None:
        """Copy cached totals and line prices from a refreshed sheet."""
        self.total_cost = sheet.total_cost
        self.cost_per_unit = sheet.cost_per_unit

        lines = {line.id: line for line in sheet.lines}
        for component in self.components:
            line = lines.get(component.id)
            if line is not None:
                component.unit = line.unit
                component.quantity = line.quantity
                component.cost_per_unit = line.cost_per_unit
                component.total_cost = line.total_cost

    def to_dict(self, include_relationships: bool = False) -> dict:
        result = super().to_dict(include_relationships)
        result["component_count"] = len(self.components)
        return result


class RecipeComponent(BaseModel):
    """
    One line of a recipe's bill of materials.

    Exactly one of stock_item_id / component_recipe_id is set; that column
    decides whether the line is a StockRef or a RecipeRef.

    Attributes:
        recipe_id: Owning recipe
        stock_item_id: Consumed stock item, if any
        component_recipe_id: Consumed recipe, if any
        quantity: Amount per one yield of the owning recipe
        unit: Unit of quantity
        cost_per_unit: Cost per unit captured when the line was added or repriced
        total_cost: quantity * cost_per_unit
        sort_order: Display order within the recipe
        notes: Optional notes
    """

    __tablename__ = "recipe_components"

    recipe_id = Column(Integer, ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False)
    stock_item_id = Column(
        Integer, ForeignKey("stock_items.id", ondelete="RESTRICT"), nullable=True
    )
    component_recipe_id = Column(
        Integer, ForeignKey("recipes.id", ondelete="RESTRICT"), nullable=True
    )

    quantity = Column(Numeric(18, 6), nullable=False)
    unit = Column(String(20), nullable=False)
    cost_per_unit = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    total_cost = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    sort_order = Column(Integer, nullable=False, default=0)
    notes = Column(String(500), nullable=True)

    recipe = relationship(
        "Recipe",
        foreign_keys=[recipe_id],
        back_populates="components",
    )
    component_recipe = relationship(
        "Recipe",
        foreign_keys=[component_recipe_id],
        back_populates="used_in_components",
        lazy="joined",
    )
    stock_item = relationship(
        "StockItem",
        back_populates="used_in_components",
        lazy="joined",
    )

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_recipe_component_quantity_positive"),
        CheckConstraint(
            "(stock_item_id IS NULL) != (component_recipe_id IS NULL)",
            name="ck_recipe_component_single_ref",
        ),
        Index("idx_recipe_component_recipe", "recipe_id"),
        Index("idx_recipe_component_component", "component_recipe_id"),
        Index("idx_recipe_component_stock_item", "stock_item_id"),
        Index("idx_recipe_component_sort", "recipe_id", "sort_order"),
    )

    def __repr__(self) -> str:
        target = (
            f"component_recipe_id={self.component_recipe_id}"
            if self.component_recipe_id is not None
            else f"stock_item_id={self.stock_item_id}"
        )
        return (
            f"RecipeComponent(recipe_id={self.recipe_id}, {target}, "
            f"quantity={self.quantity}, unit='{self.unit}')"
        )

    @property
    def component_name(self) -> str:
        if self.component_recipe is not None:
            return self.component_recipe.name
        if self.stock_item is not None:
            return self.stock_item.name
        return "Removed item"

    def to_line(self) -> SheetLine:
        """Convert this row into a costing line with an explicit reference tag."""
        if self.component_recipe_id is not None:
            ref = RecipeRef(self.component_recipe_id)
        else:
            ref = StockRef(self.stock_item_id)
        return SheetLine(
            id=self.id,
            ref=ref,
            name=self.component_name,
            quantity=self.quantity,
            unit=self.unit,
            cost_per_unit=self.cost_per_unit if self.cost_per_unit is not None else Decimal("0"),
            total_cost=self.total_cost if self.total_cost is not None else Decimal("0"),
        )

    def to_dict(self, include_relationships: bool = False) -> dict:
        result = super().to_dict(include_relationships)
        result["component_name"] = self.component_name
        return result
