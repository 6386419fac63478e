"""
Recipe Service - Business logic for recipes and their technical sheets.

This service provides CRUD operations for recipes with:
- Input validation
- Component (bill of materials) management for stock items and sub-recipes
- Cost capture and refresh through the costing core
- Circular composition checks before every save
- Nested hierarchy views and cost cascade analysis

Every write builds the candidate RecipeSheet, runs it through
costing.validate_sheet() against the full recipe collection, and only then
stores the refreshed cached costs. A failed check rolls the whole
transaction back.
"""

import logging
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bakery.costing import (
    RecipeHierarchy,
    RecipeRef,
    RecipeSheet,
    build_hierarchy,
    cascade_impact,
    cascade_sheets,
    change_line_unit,
    format_hierarchy,
    line_from_recipe,
    line_from_stock_item,
    proportional_cost,
    refresh,
    update_line_quantity,
    validate_sheet,
)
from bakery.costing.cost_model import RecipeType, to_decimal
from bakery.models import Recipe, RecipeComponent, StockItem
from bakery.services.database import session_scope
from bakery.services.exceptions import (
    DatabaseError,
    RecipeInUse,
    RecipeNotFound,
    StockItemNotFound,
    UnresolvedReference,
    UnsupportedConversion,
    ValidationError,
)
from bakery.services.logging_utils import get_service_logger, log_operation
from bakery.utils.config import get_config
from bakery.utils.constants import COST_PRECISION
from bakery.utils.validators import validate_component_data, validate_recipe_data

logger = get_service_logger(__name__)

_RECIPE_FIELDS = (
    "name",
    "recipe_type",
    "category",
    "description",
    "prep_cost",
    "yield_quantity",
    "yield_unit",
)


# ============================================================================
# Internal Helpers
# ============================================================================


def _clean_recipe_data(data: Dict) -> Dict:
    cleaned = {key: value for key, value in data.items() if key in _RECIPE_FIELDS}
    if "recipe_type" in cleaned:
        cleaned["recipe_type"] = RecipeType(getattr(cleaned["recipe_type"], "value", cleaned["recipe_type"])).value
    if cleaned.get("name"):
        cleaned["name"] = cleaned["name"].strip()
    if cleaned.get("yield_unit"):
        cleaned["yield_unit"] = cleaned["yield_unit"].strip().lower()
    for field in ("prep_cost", "yield_quantity"):
        if cleaned.get(field) is not None:
            cleaned[field] = to_decimal(cleaned[field])
    if "prep_cost" in cleaned and cleaned["prep_cost"] is None:
        cleaned["prep_cost"] = Decimal("0")
    return cleaned


def _get_recipe_or_raise(session: Session, recipe_id: int) -> Recipe:
    recipe = session.query(Recipe).filter_by(id=recipe_id).first()
    if not recipe:
        raise RecipeNotFound(recipe_id)
    return recipe


def _find_component(recipe: Recipe, component_id: int) -> RecipeComponent:
    for component in recipe.components:
        if component.id == component_id:
            return component
    raise ValidationError([f"Component {component_id} not found in '{recipe.name}'"])


def _load_sheets(session: Session, exclude_id: Optional[int] = None) -> List[RecipeSheet]:
    query = session.query(Recipe)
    if exclude_id is not None:
        query = query.filter(Recipe.id != exclude_id)
    return [recipe.to_sheet() for recipe in query.all()]


def _strict_units() -> bool:
    return get_config().strict_unit_conversion


def _build_component(session: Session, data: Dict, sort_order: int) -> RecipeComponent:
    """
    Create an unsaved component row, capturing the source's current cost.

    Args:
        data: Dict with exactly one of stock_item_id / component_recipe_id,
            plus quantity, optional unit (defaults to the source's native
            unit) and optional notes
        sort_order: Display position

    Raises:
        ValidationError: Bad quantity/unit, ambiguous reference, or (strict
            mode) a unit that cannot be converted
        StockItemNotFound / RecipeNotFound: Unknown reference
    """
    stock_item_id = data.get("stock_item_id")
    component_recipe_id = data.get("component_recipe_id")
    if (stock_item_id is None) == (component_recipe_id is None):
        raise ValidationError(
            ["Component must reference exactly one stock item or one recipe"]
        )

    unit = data.get("unit")
    if unit:
        unit = unit.strip().lower()
    is_valid, errors = validate_component_data(data.get("quantity"), unit, data.get("notes"))
    if not is_valid:
        raise ValidationError(errors)

    item = source = None
    try:
        if stock_item_id is not None:
            item = session.query(StockItem).filter_by(id=stock_item_id).first()
            if not item:
                raise StockItemNotFound(stock_item_id)
            line = line_from_stock_item(
                0, item.to_info(), data["quantity"], unit, strict=_strict_units()
            )
        else:
            source = session.query(Recipe).filter_by(id=component_recipe_id).first()
            if not source:
                raise RecipeNotFound(component_recipe_id)
            line = line_from_recipe(
                0, source.to_sheet(), data["quantity"], unit, strict=_strict_units()
            )
    except UnsupportedConversion as e:
        raise ValidationError([str(e)])

    # Built last: linking to a persistent source puts the row in the session
    return RecipeComponent(
        stock_item=item,
        component_recipe=source,
        quantity=line.quantity,
        unit=line.unit,
        cost_per_unit=line.cost_per_unit,
        total_cost=line.total_cost,
        sort_order=sort_order,
        notes=data.get("notes"),
    )


def _native_price(component: RecipeComponent):
    """(native unit, cost per native unit) of the component's live source."""
    if component.component_recipe is not None:
        source = component.component_recipe
        return source.yield_unit, to_decimal(source.cost_per_unit or 0)
    if component.stock_item is not None:
        return component.stock_item.unit, to_decimal(component.stock_item.cost or 0)
    ref_kind = "recipe" if component.component_recipe_id is not None else "stock item"
    raise UnresolvedReference(ref_kind, component.component_recipe_id or component.stock_item_id)


def _warn_dangling(session: Session, sheet: RecipeSheet) -> None:
    """Log component references that resolve to nothing; they are not fatal."""
    recipe_ids = {row.id for row in session.query(Recipe.id)}
    stock_ids = {row.id for row in session.query(StockItem.id)}
    for line in sheet.lines:
        known = recipe_ids if isinstance(line.ref, RecipeRef) else stock_ids
        if line.ref.id not in known:
            log_operation(
                logger,
                "save_recipe",
                "dangling_reference",
                level=logging.WARNING,
                recipe_id=sheet.id,
                component_id=line.id,
                ref_kind="recipe" if isinstance(line.ref, RecipeRef) else "stock_item",
                ref_id=line.ref.id,
            )


def _save_sheet(
    session: Session,
    recipe: Recipe,
    operation: str,
    candidate: Optional[RecipeSheet] = None,
) -> RecipeSheet:
    """
    Validate the recipe as it would be saved and write its refreshed costs.

    Raises:
        ValidationError: On any validation problem, including cycles
    """
    session.flush()
    if candidate is None:
        candidate = recipe.to_sheet()

    try:
        sheet = validate_sheet(candidate, _load_sheets(session, exclude_id=recipe.id))
    except ValidationError as e:
        log_operation(
            logger,
            operation,
            "validation_failed",
            level=logging.WARNING,
            recipe_id=recipe.id,
            errors=e.errors,
        )
        raise

    # Stored lines must reproduce the stored totals after a round trip
    sheet = refresh(sheet, COST_PRECISION)
    _warn_dangling(session, sheet)
    recipe.apply_sheet_costs(sheet)
    session.flush()

    log_operation(
        logger,
        operation,
        "success",
        recipe_id=recipe.id,
        total_cost=str(sheet.total_cost),
        cost_per_unit=str(sheet.cost_per_unit),
    )
    return sheet


# ============================================================================
# CRUD Operations
# ============================================================================


def create_recipe(recipe_data: Dict, components_data: Optional[List[Dict]] = None) -> Recipe:
    """
    Create a new recipe with optional components.

    Args:
        recipe_data: Dictionary with recipe fields:
            - name: str (required)
            - recipe_type: "base" | "processed" | "final" (required)
            - yield_quantity: number > 0 (required)
            - yield_unit: str (required)
            - prep_cost: number >= 0 (optional, default 0)
            - category, description: str (optional)
        components_data: List of component dicts with:
            - stock_item_id: int, or
            - component_recipe_id: int
            - quantity: number > 0
            - unit: str (optional, defaults to the source's unit)
            - notes: str (optional)

    Returns:
        Created Recipe instance with components and cached costs

    Raises:
        ValidationError: If data validation fails
        StockItemNotFound / RecipeNotFound: If a component reference doesn't exist
        DatabaseError: If database operation fails
    """
    is_valid, errors = validate_recipe_data(recipe_data)
    if not is_valid:
        raise ValidationError(errors)

    try:
        with session_scope() as session:
            cleaned = _clean_recipe_data(recipe_data)
            cleaned.setdefault("prep_cost", Decimal("0"))
            recipe = Recipe(**cleaned)
            session.add(recipe)
            session.flush()

            for position, comp_data in enumerate(components_data or [], start=1):
                recipe.components.append(_build_component(session, comp_data, position))

            _save_sheet(session, recipe, "create_recipe")
            session.refresh(recipe)
            return recipe

    except (ValidationError, StockItemNotFound, RecipeNotFound):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to create recipe", e)


def get_recipe(recipe_id: int) -> Recipe:
    """
    Retrieve a recipe by ID, with its components loaded.

    Raises:
        RecipeNotFound: If recipe doesn't exist
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            recipe = _get_recipe_or_raise(session, recipe_id)
            for component in recipe.components:
                _ = component.component_name
            return recipe

    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to retrieve recipe {recipe_id}", e)


def get_all_recipes(
    recipe_type: Optional[str] = None,
    category: Optional[str] = None,
    name_search: Optional[str] = None,
) -> List[Recipe]:
    """
    Retrieve all recipes with optional filtering, ordered by name.

    Args:
        recipe_type: Filter by type ("base", "processed", "final")
        category: Filter by category (exact match)
        name_search: Filter by name (case-insensitive partial match)
    """
    try:
        with session_scope() as session:
            query = session.query(Recipe)

            if recipe_type:
                query = query.filter(
                    Recipe.recipe_type == RecipeType(getattr(recipe_type, "value", recipe_type)).value
                )

            if category:
                query = query.filter(Recipe.category == category)

            if name_search:
                query = query.filter(Recipe.name.ilike(f"%{name_search}%"))

            recipes = query.order_by(Recipe.name).all()
            for recipe in recipes:
                for component in recipe.components:
                    _ = component.component_name
            return recipes

    except SQLAlchemyError as e:
        raise DatabaseError("Failed to retrieve recipes", e)


def get_all_sheets() -> List[RecipeSheet]:
    """Costing sheets for every recipe, as stored."""
    try:
        with session_scope() as session:
            return _load_sheets(session)

    except SQLAlchemyError as e:
        raise DatabaseError("Failed to load recipe sheets", e)


def get_recipe_sheet(recipe_id: int) -> RecipeSheet:
    """Costing sheet for one recipe, as stored."""
    try:
        with session_scope() as session:
            return _get_recipe_or_raise(session, recipe_id).to_sheet()

    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to load recipe sheet {recipe_id}", e)


def update_recipe(
    recipe_id: int, recipe_data: Dict, components_data: Optional[List[Dict]] = None
) -> Recipe:
    """
    Update a recipe and optionally replace all of its components.

    Args:
        recipe_id: Recipe ID
        recipe_data: Fields to change (same keys as create_recipe)
        components_data: If provided, replaces every component

    Returns:
        Updated Recipe instance

    Raises:
        RecipeNotFound: If recipe doesn't exist
        ValidationError: If validation fails (including circular composition)
        StockItemNotFound: If a component references an unknown stock item
        DatabaseError: If database operation fails
    """
    is_valid, errors = validate_recipe_data(recipe_data, partial=True)
    if not is_valid:
        raise ValidationError(errors)

    try:
        with session_scope() as session:
            recipe = _get_recipe_or_raise(session, recipe_id)

            for field, value in _clean_recipe_data(recipe_data).items():
                setattr(recipe, field, value)

            if components_data is not None:
                recipe.components.clear()
                session.flush()
                for position, comp_data in enumerate(components_data, start=1):
                    recipe.components.append(_build_component(session, comp_data, position))

            _save_sheet(session, recipe, "update_recipe")
            session.refresh(recipe)
            return recipe

    except (RecipeNotFound, ValidationError, StockItemNotFound):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to update recipe {recipe_id}", e)


def delete_recipe(recipe_id: int) -> bool:
    """
    Delete a recipe and its components.

    Recipes used as a component elsewhere cannot be deleted; remove them
    from their parents first.

    Raises:
        RecipeNotFound: If recipe doesn't exist
        RecipeInUse: If other recipes use it as a component
        DatabaseError: If database operation fails
    """
    try:
        with session_scope() as session:
            recipe = _get_recipe_or_raise(session, recipe_id)

            parents = sorted({component.recipe.name for component in recipe.used_in_components})
            if parents:
                log_operation(
                    logger,
                    "delete_recipe",
                    "in_use",
                    level=logging.WARNING,
                    recipe_id=recipe_id,
                    dependents=parents,
                )
                raise RecipeInUse(recipe_id, parents)

            session.delete(recipe)
            log_operation(logger, "delete_recipe", "success", recipe_id=recipe_id)
            return True

    except (RecipeNotFound, RecipeInUse):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to delete recipe {recipe_id}", e)


# ============================================================================
# Component Management
# ============================================================================


def add_recipe_component(
    recipe_id: int,
    quantity,
    unit: Optional[str] = None,
    stock_item_id: Optional[int] = None,
    component_recipe_id: Optional[int] = None,
    notes: Optional[str] = None,
    sort_order: Optional[int] = None,
) -> RecipeComponent:
    """
    Add a stock item or another recipe as a component of a recipe.

    The component's cost per unit is captured now, converted into the
    requested unit.

    Args:
        recipe_id: Parent recipe ID
        quantity: Amount per one yield of the parent
        unit: Unit of quantity (default: the source's native unit)
        stock_item_id: Stock item to consume (exclusive with component_recipe_id)
        component_recipe_id: Recipe to consume (exclusive with stock_item_id)
        notes: Optional notes
        sort_order: Display order (default: append to end)

    Returns:
        Created RecipeComponent instance

    Raises:
        RecipeNotFound: If parent or component recipe doesn't exist
        StockItemNotFound: If the stock item doesn't exist
        ValidationError: Bad input, duplicate component, or circular composition
    """
    try:
        with session_scope() as session:
            recipe = _get_recipe_or_raise(session, recipe_id)

            for existing in recipe.components:
                duplicate = (
                    stock_item_id is not None and existing.stock_item_id == stock_item_id
                ) or (
                    component_recipe_id is not None
                    and existing.component_recipe_id == component_recipe_id
                )
                if duplicate:
                    raise ValidationError(
                        [f"'{existing.component_name}' is already a component of this recipe"]
                    )

            if sort_order is None:
                sort_order = max((c.sort_order for c in recipe.components), default=0) + 1

            component = _build_component(
                session,
                {
                    "stock_item_id": stock_item_id,
                    "component_recipe_id": component_recipe_id,
                    "quantity": quantity,
                    "unit": unit,
                    "notes": notes,
                },
                sort_order,
            )
            recipe.components.append(component)

            _save_sheet(session, recipe, "add_recipe_component")
            session.refresh(component)
            _ = component.component_name
            return component

    except (RecipeNotFound, StockItemNotFound, ValidationError):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to add recipe component", e)


def update_recipe_component(
    recipe_id: int,
    component_id: int,
    quantity=None,
    unit: Optional[str] = None,
    notes: Optional[str] = None,
    sort_order: Optional[int] = None,
) -> RecipeComponent:
    """
    Edit one component line.

    Changing the unit recaptures the cost per unit from the source's
    current price, converted into the new unit.

    Args:
        recipe_id: Parent recipe ID
        component_id: RecipeComponent ID
        quantity: New quantity (if provided)
        unit: New unit (if provided)
        notes: New notes (if provided, empty string clears)
        sort_order: New display order (if provided)

    Raises:
        RecipeNotFound: If parent recipe doesn't exist
        ValidationError: Unknown component or invalid values
    """
    if unit is not None:
        unit = unit.strip().lower()
    if quantity is not None or unit is not None:
        is_valid, errors = validate_component_data(
            quantity if quantity is not None else 1, unit
        )
        if not is_valid:
            raise ValidationError(errors)

    try:
        with session_scope() as session:
            recipe = _get_recipe_or_raise(session, recipe_id)
            component = _find_component(recipe, component_id)

            if notes is not None:
                component.notes = notes if notes else None
            if sort_order is not None:
                component.sort_order = sort_order

            sheet = recipe.to_sheet()
            if quantity is not None:
                sheet = update_line_quantity(sheet, component_id, quantity)
            if unit is not None:
                source_unit, source_cost = _native_price(component)
                try:
                    sheet = change_line_unit(
                        sheet,
                        component_id,
                        unit,
                        source_unit,
                        source_cost,
                        strict=_strict_units(),
                    )
                except UnsupportedConversion as e:
                    raise ValidationError([str(e)])

            _save_sheet(session, recipe, "update_recipe_component", candidate=sheet)
            session.refresh(component)
            _ = component.component_name
            return component

    except (RecipeNotFound, ValidationError, UnresolvedReference):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to update recipe component", e)


def remove_recipe_component(recipe_id: int, component_id: int) -> bool:
    """
    Remove a component line from a recipe and refresh its costs.

    Returns:
        True if removed, False if the component wasn't part of the recipe

    Raises:
        RecipeNotFound: If parent recipe doesn't exist
    """
    try:
        with session_scope() as session:
            recipe = _get_recipe_or_raise(session, recipe_id)

            component = next((c for c in recipe.components if c.id == component_id), None)
            if component is None:
                return False

            recipe.components.remove(component)
            _save_sheet(session, recipe, "remove_recipe_component")
            return True

    except (RecipeNotFound, ValidationError):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError("Failed to remove recipe component", e)


def get_recipe_components(recipe_id: int) -> List[RecipeComponent]:
    """
    Get all component lines of a recipe, ordered by sort_order.

    Raises:
        RecipeNotFound: If recipe doesn't exist
    """
    try:
        with session_scope() as session:
            recipe = _get_recipe_or_raise(session, recipe_id)
            components = sorted(recipe.components, key=lambda c: (c.sort_order, c.id))
            for component in components:
                _ = component.component_name
            return components

    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to get recipe components for {recipe_id}", e)


def get_recipes_using_component(component_recipe_id: int) -> List[Recipe]:
    """
    Get the recipes that directly use a given recipe as a component.

    Raises:
        RecipeNotFound: If recipe doesn't exist
    """
    try:
        with session_scope() as session:
            _get_recipe_or_raise(session, component_recipe_id)

            parents = (
                session.query(Recipe)
                .join(RecipeComponent, Recipe.id == RecipeComponent.recipe_id)
                .filter(RecipeComponent.component_recipe_id == component_recipe_id)
                .order_by(Recipe.name)
                .all()
            )
            # Joined eager loading can repeat parents that use the recipe twice
            return list(dict.fromkeys(parents))

    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to get recipes using component {component_recipe_id}", e)


def reprice_recipe_components(recipe_id: int) -> Recipe:
    """
    Recapture every line's cost per unit from its source's current price.

    Lines keep their captured price until this (or a unit change) is
    called; a stock price update alone does not touch existing recipes.

    Raises:
        RecipeNotFound: If recipe doesn't exist
        ValidationError: If the repriced recipe fails validation
        UnresolvedReference: If a component's source row is missing
    """
    try:
        with session_scope() as session:
            recipe = _get_recipe_or_raise(session, recipe_id)

            for component in recipe.components:
                source_unit, source_cost = _native_price(component)
                try:
                    component.cost_per_unit = proportional_cost(
                        source_unit, component.unit, source_cost, strict=_strict_units()
                    )
                except UnsupportedConversion as e:
                    raise ValidationError([str(e)])

            _save_sheet(session, recipe, "reprice_recipe_components")
            session.refresh(recipe)
            return recipe

    except (RecipeNotFound, ValidationError, UnresolvedReference):
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to reprice recipe {recipe_id}", e)


# ============================================================================
# Hierarchy and Cascade
# ============================================================================


def get_recipe_hierarchy(recipe_id: int) -> RecipeHierarchy:
    """
    Build the nested component tree of a recipe.

    Raises:
        RecipeNotFound: If recipe doesn't exist
    """
    try:
        with session_scope() as session:
            root = _get_recipe_or_raise(session, recipe_id).to_sheet()
            return build_hierarchy(root, _load_sheets(session))

    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to build hierarchy for recipe {recipe_id}", e)


def format_recipe_tree(recipe_id: int) -> List[str]:
    """Indented text rendering of a recipe's component tree."""
    return format_hierarchy(get_recipe_hierarchy(recipe_id))


def _significant(impact: Dict[int, Decimal]) -> Dict[int, Decimal]:
    """Round deltas to storage precision and drop the ones that vanish."""
    rounded = {rid: delta.quantize(COST_PRECISION) for rid, delta in impact.items()}
    return {rid: delta for rid, delta in rounded.items() if delta != 0}


def get_cost_impact(recipe_id: int) -> Dict[int, Decimal]:
    """
    Preview how a recipe's current cost propagates to the recipes using it.

    Nothing is written.

    Returns:
        recipe id -> cost delta against the stored total, zero deltas omitted

    Raises:
        RecipeNotFound: If recipe doesn't exist
    """
    try:
        with session_scope() as session:
            _get_recipe_or_raise(session, recipe_id)
            return _significant(cascade_impact(recipe_id, _load_sheets(session), COST_PRECISION))

    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to compute cost impact for recipe {recipe_id}", e)


def apply_cost_cascade(recipe_id: int) -> Dict[int, Decimal]:
    """
    Recompute a recipe and every recipe that depends on it, and store the
    new costs (including repriced sub-recipe lines).

    Returns:
        recipe id -> applied cost delta, zero deltas omitted

    Raises:
        RecipeNotFound: If recipe doesn't exist
    """
    try:
        with session_scope() as session:
            _get_recipe_or_raise(session, recipe_id)

            stored = _load_sheets(session)
            impact = _significant(cascade_impact(recipe_id, stored, COST_PRECISION))
            recomputed = cascade_sheets(recipe_id, stored, COST_PRECISION)

            rows = {
                row.id: row
                for row in session.query(Recipe).filter(Recipe.id.in_(list(recomputed))).all()
            }
            for rid, sheet in recomputed.items():
                rows[rid].apply_sheet_costs(sheet)

            session.flush()
            log_operation(
                logger,
                "apply_cost_cascade",
                "success",
                recipe_id=recipe_id,
                affected=sorted(impact),
            )
            return impact

    except RecipeNotFound:
        raise
    except SQLAlchemyError as e:
        raise DatabaseError(f"Failed to apply cost cascade for recipe {recipe_id}", e)
