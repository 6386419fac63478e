"""
Tests for service logging helpers.
"""

import logging

from bakery.services.logging_utils import get_service_logger, log_operation


class TestServiceLogging:
    """Test logger naming and structured records."""

    def test_logger_namespace(self):
        assert get_service_logger("bakery.services.recipe_service").name == "bakery.services.recipe_service"
        assert get_service_logger("custom").name == "bakery.services.custom"

    def test_log_operation_record(self, caplog):
        logger = get_service_logger("test_ops")
        with caplog.at_level(logging.INFO, logger="bakery.services.test_ops"):
            log_operation(logger, "apply_cost_cascade", "success", recipe_id=3, affected=[4, 5])

        record = caplog.records[-1]
        assert record.getMessage() == "apply_cost_cascade: success"
        assert record.levelno == logging.INFO
        assert record.operation == "apply_cost_cascade"
        assert record.outcome == "success"
        assert record.recipe_id == 3
        assert record.affected == [4, 5]

    def test_log_operation_level(self, caplog):
        logger = get_service_logger("test_ops")
        with caplog.at_level(logging.DEBUG, logger="bakery.services.test_ops"):
            log_operation(logger, "delete_recipe", "in_use", level=logging.WARNING)
        assert caplog.records[-1].levelno == logging.WARNING
