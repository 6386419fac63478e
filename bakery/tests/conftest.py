"""Pytest configuration and fixtures for the Bakery Cost Engine tests."""

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import scoped_session, sessionmaker

from bakery.costing import (
    RecipeType,
    StockItemInfo,
    add_line,
    line_from_recipe,
    line_from_stock_item,
    new_sheet,
)
from bakery.models.base import Base
from bakery.utils.config import reset_config


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    """Every test starts from a config built from a clean environment."""
    for name in ("BAKERY_ENV", "BAKERY_DB_TIMEOUT", "BAKERY_STRICT_UNITS"):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Provides the database to the test
    4. Drops all tables after the test completes
    """
    import bakery.services.database as db_module
    from bakery import models  # noqa: F401

    engine = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)

    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    # Monkey-patch the global session factory for tests
    original_get_session_factory = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    yield Session

    Session.remove()
    Base.metadata.drop_all(engine)
    engine.dispose()

    db_module.get_session_factory = original_get_session_factory


# ============================================================================
# Costing core fixtures (no database)
# ============================================================================


@pytest.fixture
def chocolate():
    return StockItemInfo(id=1, name="Chocolate", unit="kg", cost=Decimal("20.00"))


@pytest.fixture
def cream():
    return StockItemInfo(id=2, name="Cream", unit="l", cost=Decimal("15.00"))


@pytest.fixture
def ganache_sheet(chocolate, cream):
    """Chocolate Ganache: 0.5 kg chocolate + 0.2 l cream + 2.00 prep = 15.00 per kg."""
    sheet = new_sheet(
        10, "Chocolate Ganache", RecipeType.PROCESSED,
        yield_quantity=1, yield_unit="kg", prep_cost=Decimal("2.00"),
    )
    sheet = add_line(sheet, line_from_stock_item(1, chocolate, Decimal("0.5")))
    return add_line(sheet, line_from_stock_item(2, cream, Decimal("0.2")))


@pytest.fixture
def cake_sheet(ganache_sheet):
    """Cake: 0.3 kg of ganache + 5.00 prep = 9.50 per cake."""
    sheet = new_sheet(
        20, "Cake", RecipeType.FINAL,
        yield_quantity=1, yield_unit="un", prep_cost=Decimal("5.00"),
    )
    return add_line(sheet, line_from_recipe(1, ganache_sheet, Decimal("0.3"), "kg"))


# ============================================================================
# Database fixtures
# ============================================================================


@pytest.fixture
def sample_stock_items(test_db):
    """Chocolate (20.00/kg) and cream (15.00/l) stored as stock items."""
    from bakery.services import stock_item_service

    chocolate = stock_item_service.create_stock_item(
        {"name": "Chocolate", "unit": "kg", "cost": "20.00", "category": "Chocolate"}
    )
    cream = stock_item_service.create_stock_item(
        {"name": "Cream", "unit": "l", "cost": "15.00", "category": "Dairy"}
    )
    return chocolate, cream


@pytest.fixture
def sample_ganache(sample_stock_items):
    """Chocolate Ganache stored with both stock items as components."""
    from bakery.services import recipe_service

    chocolate, cream = sample_stock_items
    return recipe_service.create_recipe(
        {
            "name": "Chocolate Ganache",
            "recipe_type": "processed",
            "yield_quantity": 1,
            "yield_unit": "kg",
            "prep_cost": "2.00",
            "category": "Fillings",
        },
        [
            {"stock_item_id": chocolate.id, "quantity": "0.5"},
            {"stock_item_id": cream.id, "quantity": "0.2"},
        ],
    )


@pytest.fixture
def sample_cake(sample_ganache):
    """Cake using 0.3 kg of the stored ganache."""
    from bakery.services import recipe_service

    return recipe_service.create_recipe(
        {
            "name": "Cake",
            "recipe_type": "final",
            "yield_quantity": 1,
            "yield_unit": "un",
            "prep_cost": "5.00",
            "category": "Cakes",
        },
        [{"component_recipe_id": sample_ganache.id, "quantity": "0.3", "unit": "kg"}],
    )
