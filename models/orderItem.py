from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel
from sqlalchemy import Column, Integer, DateTime, Float, String, Text, Boolean, func, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship

from models.base import Base


class OrderItem(Base):
    """
    Frozen snapshot of one cart line at checkout.

    product_id is deliberately not a foreign key: products may be edited or
    deleted later, the name and price columns below are the historical record.
    """
    __tablename__ = 'order_items'

    # Add table-level constraints and indexes
    __table_args__ = (
        # Check constraints for data integrity
        CheckConstraint('quantity_kg >= 0', name='ck_order_item_quantity_non_negative'),
        CheckConstraint('price_per_kg_at_order >= 0', name='ck_order_item_price_non_negative'),
        CheckConstraint('bags_1kg >= 0 AND bags_5kg >= 0 AND bags_10kg >= 0 AND bags_25kg >= 0',
                        name='ck_order_item_bags_non_negative'),

        # Indexes for performance
        Index('ix_order_items_order_id', 'order_id'),

        # One line per product per order (the cart is keyed by product)
        Index('ix_order_items_unique', 'order_id', 'product_id', unique=True),
    )

    id = Column(String(36), primary_key=True, default=lambda: uuid4().hex)
    order_id = Column(String(36), ForeignKey('orders.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(String(36), nullable=False)

    # Product snapshot
    product_name = Column(String, nullable=False)
    product_description = Column(Text, nullable=False, default="")

    # Quantity and bag breakdown
    quantity_kg = Column(Float, nullable=False)
    bags_1kg = Column(Integer, nullable=False, default=0)
    bags_5kg = Column(Integer, nullable=False, default=0)
    bags_10kg = Column(Integer, nullable=False, default=0)
    bags_25kg = Column(Integer, nullable=False, default=0)

    # Pricing snapshot (never updated after creation)
    price_per_kg_at_order = Column(Float, nullable=False)
    base_price_per_kg_at_order = Column(Float, nullable=False)
    tier_applied = Column(String(16), nullable=False)
    tier_price_at_order = Column(Float, nullable=True)

    # Discount
    discount_percentage = Column(Float, nullable=False, default=0.0)
    discount_amount = Column(Float, nullable=False, default=0.0)
    discount_reason = Column(String, nullable=True)

    # Totals
    subtotal_before_discount = Column(Float, nullable=False)
    total_after_discount = Column(Float, nullable=False)

    # Metadata (admin-editable)
    notes = Column(Text, nullable=False, default="")
    needs_reconciliation = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    # Relationships
    order = relationship("Order", back_populates="items")


class OrderItemDTO(BaseModel):
    id: str | None = None
    order_id: str | None = None
    product_id: str | None = None
    product_name: str | None = None
    product_description: str = ""
    quantity_kg: float = 0.0
    bags_1kg: int = 0
    bags_5kg: int = 0
    bags_10kg: int = 0
    bags_25kg: int = 0
    price_per_kg_at_order: float = 0.0
    base_price_per_kg_at_order: float = 0.0
    tier_applied: str | None = None
    tier_price_at_order: float | None = None
    discount_percentage: float = 0.0
    discount_amount: float = 0.0
    discount_reason: str | None = None
    subtotal_before_discount: float = 0.0
    total_after_discount: float = 0.0
    notes: str = ""
    needs_reconciliation: bool = False
    created_at: datetime | None = None


# Columns frozen at checkout; OrderItemRepository.update() refuses to touch them
ORDER_ITEM_PRICE_FIELDS = frozenset({
    "product_id",
    "product_name",
    "product_description",
    "quantity_kg",
    "bags_1kg",
    "bags_5kg",
    "bags_10kg",
    "bags_25kg",
    "price_per_kg_at_order",
    "base_price_per_kg_at_order",
    "tier_applied",
    "tier_price_at_order",
    "discount_percentage",
    "discount_amount",
    "subtotal_before_discount",
    "total_after_discount",
})
