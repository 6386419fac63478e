"""
Errors raised by the costing core.

The services re-export these from bakery.services.exceptions, so callers
catch one ValidationError whether it came from an input check or from
validate_sheet().

Exception Hierarchy:
    CostingError (base)
    ├── ValidationError
    └── UnsupportedConversion
"""

from typing import List, Union

ERROR_CYCLE_DETECTED = "Cycle detected: a recipe cannot contain itself, directly or indirectly"
ERROR_BASE_WITH_COMPONENTS = "Base ingredients cannot have components"


class CostingError(Exception):
    """Base exception for costing errors."""

    pass


class ValidationError(CostingError):
    """Raised when user input or a draft sheet fails validation.

    Args:
        errors: List of error messages (a single string is accepted too)

    Example:
        >>> raise ValidationError(["Yield: Must be greater than zero"])
        ValidationError: Validation failed: Yield: Must be greater than zero
    """

    def __init__(self, errors: Union[List[str], str]):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        error_msg = "; ".join(self.errors)
        super().__init__(f"Validation failed: {error_msg}")


class UnsupportedConversion(CostingError):
    """Raised in strict mode when no conversion exists between two units.

    Example:
        >>> raise UnsupportedConversion("kg", "un")
        UnsupportedConversion: Cannot convert cost from 'kg' to 'un'
    """

    def __init__(self, source_unit: str, target_unit: str):
        self.source_unit = source_unit
        self.target_unit = target_unit
        super().__init__(f"Cannot convert cost from '{source_unit}' to '{target_unit}'")
