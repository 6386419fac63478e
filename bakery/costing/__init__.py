"""
Recipe costing core (bill of materials).

Pure, in-memory computation over already-loaded recipes and stock items;
nothing in this package touches the database. The services load data,
call in here, and persist the values that come back.

This package provides:
- Costing errors (ValidationError, UnsupportedConversion)
- Cost model value types (RecipeSheet, SheetLine, StockRef, RecipeRef, ...)
- Cost calculation (line, recipe, per-yield-unit, refresh)
- Builder-style sheet editing with pre-save validation
- Cycle detection over the recipe composition graph
- Nested hierarchy building and text rendering
- Unit-aware proportional cost conversion
- Cascade impact analysis for cost changes

Usage:
    from bakery.costing import new_sheet, line_from_stock_item, add_line, validate_sheet
"""

from .errors import (
    ERROR_BASE_WITH_COMPONENTS,
    ERROR_CYCLE_DETECTED,
    CostingError,
    UnsupportedConversion,
    ValidationError,
)

from .cost_model import (
    ComponentRef,
    RecipeHierarchy,
    RecipeRef,
    RecipeSheet,
    RecipeType,
    SheetLine,
    StockItemInfo,
    StockRef,
    index_by_id,
    to_decimal,
)

from .cost_calculator import (
    cost_per_unit,
    is_fresh,
    line_cost,
    recipe_cost,
    refresh,
)

from .unit_cost_converter import (
    can_convert,
    convert_quantity,
    normalize_unit,
    proportional_cost,
)

from .cycle_detector import (
    describe_cycle,
    find_cycle,
    has_cycle,
)

from .hierarchy_builder import (
    build_hierarchy,
    flatten_hierarchy,
    format_hierarchy,
)

from .cascade import (
    cascade_impact,
    cascade_order,
    cascade_sheets,
    get_dependents,
    reprice_lines,
)

from .sheet_editor import (
    add_line,
    change_line_unit,
    collect_errors,
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

__all__ = [
    # Errors
    "ERROR_BASE_WITH_COMPONENTS",
    "ERROR_CYCLE_DETECTED",
    "CostingError",
    "UnsupportedConversion",
    "ValidationError",
    # Cost model
    "ComponentRef",
    "RecipeHierarchy",
    "RecipeRef",
    "RecipeSheet",
    "RecipeType",
    "SheetLine",
    "StockItemInfo",
    "StockRef",
    "index_by_id",
    "to_decimal",
    # Cost calculation
    "cost_per_unit",
    "is_fresh",
    "line_cost",
    "recipe_cost",
    "refresh",
    # Unit conversion
    "can_convert",
    "convert_quantity",
    "normalize_unit",
    "proportional_cost",
    # Cycle detection
    "describe_cycle",
    "find_cycle",
    "has_cycle",
    # Hierarchy
    "build_hierarchy",
    "flatten_hierarchy",
    "format_hierarchy",
    # Cascade
    "cascade_impact",
    "cascade_order",
    "cascade_sheets",
    "get_dependents",
    "reprice_lines",
    # Sheet editing
    "add_line",
    "change_line_unit",
    "collect_errors",
    "line_from_recipe",
    "line_from_stock_item",
    "new_sheet",
    "next_line_id",
    "remove_line",
    "rename",
    "set_prep_cost",
    "set_yield",
    "update_line_quantity",
    "validate_sheet",
]
