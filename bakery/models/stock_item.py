"""
StockItem model for purchased goods.

A stock item is anything bought and kept on hand (flour, chocolate, cream,
packaging). Recipes consume stock items through RecipeComponent lines.
"""

from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Column, Index, Numeric, String
from sqlalchemy.orm import relationship

from bakery.costing.cost_model import StockItemInfo
from bakery.utils.constants import DEFAULT_STOCK_UNIT

from .base import BaseModel


class StockItem(BaseModel):
    """
    Stock item model.

    Attributes:
        name: Display name (required)
        category: Free-form grouping (e.g., "Dairy")
        unit: Native unit the cost is quoted in (e.g., "kg")
        cost: Cost per one native unit
        current_stock: Quantity on hand, in native units
        minimum_stock: Reorder threshold, in native units
        is_processed: True for preparations tracked as stock
    """

    __tablename__ = "stock_items"

    name = Column(String(200), nullable=False, index=True)
    category = Column(String(100), nullable=True, index=True)
    unit = Column(String(20), nullable=False, default=DEFAULT_STOCK_UNIT)
    cost = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    current_stock = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    minimum_stock = Column(Numeric(18, 6), nullable=False, default=Decimal("0"))
    is_processed = Column(Boolean, nullable=False, default=False)

    used_in_components = relationship(
        "RecipeComponent",
        back_populates="stock_item",
        lazy="select",
    )

    __table_args__ = (
        CheckConstraint("cost >= 0", name="ck_stock_item_cost_non_negative"),
        Index("idx_stock_item_name", "name"),
    )

    def __repr__(self) -> str:
        return f"StockItem(id={self.id}, name='{self.name}', unit='{self.unit}')"

    @property
    def is_low_stock(self) -> bool:
        return (self.current_stock or 0) < (self.minimum_stock or 0)

    def to_info(self) -> StockItemInfo:
        """Read-only costing view of this item."""
        return StockItemInfo(
            id=self.id,
            name=self.name,
            unit=self.unit,
            cost=self.cost if self.cost is not None else Decimal("0"),
            is_processed=bool(self.is_processed),
        )
