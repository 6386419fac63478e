"""
Constants for the Bakery Cost Engine.

This module defines system-wide constants including:
- Application metadata
- Measurement units
- Recipe type labels
- Validation limits and error messages
"""

from decimal import Decimal
from typing import Dict, List

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "Bakery Cost Engine"
APP_VERSION = "0.1.0"
DATABASE_VERSION = "1.0"
DATABASE_FILENAME = "bakery.db"
APP_DATA_DIRNAME = "BakeryManager"

# ============================================================================
# Units
# ============================================================================

# Mass units
MASS_UNITS: List[str] = [
    "kg",  # Kilogram
    "g",  # Gram
]

# Volume units
VOLUME_UNITS: List[str] = [
    "l",  # Liter
    "ml",  # Milliliter
]

# Count units
COUNT_UNITS: List[str] = [
    "un",  # Unit / piece
]

ALL_UNITS: List[str] = MASS_UNITS + VOLUME_UNITS + COUNT_UNITS

DEFAULT_STOCK_UNIT = "kg"

# ============================================================================
# Recipe Types
# ============================================================================

RECIPE_TYPE_LABELS: Dict[str, str] = {
    "base": "Base ingredient (purchased)",
    "processed": "Processed ingredient (prepared)",
    "final": "Final product",
}

# ============================================================================
# Validation Limits
# ============================================================================

MAX_NAME_LENGTH = 200
MAX_CATEGORY_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MAX_NOTES_LENGTH = 500
MAX_UNIT_LENGTH = 20

# ============================================================================
# Error Messages
# ============================================================================

ERROR_REQUIRED_FIELD = "This field is required"
ERROR_INVALID_NUMBER = "Must be a valid number"
ERROR_INVALID_POSITIVE = "Must be greater than zero"
ERROR_INVALID_NON_NEGATIVE = "Must be zero or greater"
ERROR_INVALID_UNIT = "Invalid unit of measurement"
ERROR_INVALID_RECIPE_TYPE = "Must be one of: base, processed, final"

# ============================================================================
# Storage Precision
# ============================================================================

# Scale of stored monetary values; deltas smaller than this are noise
COST_PRECISION = Decimal("0.000001")
