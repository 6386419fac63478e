"""Service layer logging utilities.

Provides a consistent logger namespace and a structured log helper for
service operations.

Usage:
    from bakery.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    log_operation(
        logger,
        operation="update_recipe",
        outcome="success",
        recipe_id=12,
        total_cost="15.00",
    )
"""

import logging
from typing import Any


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger under the 'bakery.services' namespace.

    Example:
        >>> get_service_logger("bakery.services.recipe_service").name
        'bakery.services.recipe_service'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"bakery.services.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The message is "<operation>: <outcome>"; operation, outcome and every
    context field are attached to the record through ``extra``.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "create_recipe", "apply_cost_cascade")
        outcome: Outcome description (e.g., "success", "validation_failed")
        level: Log level (default: INFO)
        **context: Additional fields (recipe_id, errors, deltas, ...)
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)
