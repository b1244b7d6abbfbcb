from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel
from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey, String, func, CheckConstraint, Enum as SQLEnum, Text, Index
from sqlalchemy.orm import relationship

from enums.order_status import OrderStatus
from models.base import Base
from models.loyalty_record import LoyaltyRecordDTO
from models.orderItem import OrderItemDTO


class Order(Base):
    __tablename__ = 'orders'

    id = Column(String(36), primary_key=True, default=lambda: uuid4().hex)
    customer_id = Column(String(36), ForeignKey('customers.id'), nullable=False)
    address_id = Column(String(36), nullable=True)
    status = Column(
        SQLEnum(OrderStatus, values_callable=lambda statuses: [s.value for s in statuses]),
        nullable=False,
        default=OrderStatus.PENDING
    )
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    # Summary fields (denormalized from order_items for fast reads)
    # Must always equal the sum over this order's OrderItem rows
    total_items_count = Column(Integer, nullable=False, default=0)
    total_weight_kg = Column(Float, nullable=False, default=0.0)
    subtotal_before_discount = Column(Float, nullable=False, default=0.0)
    total_discount_amount = Column(Float, nullable=False, default=0.0)
    total_price = Column(Float, nullable=False, default=0.0)

    # Loyalty code redeemed in this order (if any)
    loyalty_code_applied = Column(String, nullable=True)

    # Legacy CSV item list ("productId:7kg,productId:5kg")
    # Only present on orders created before order_items existed; order_items is canonical
    order_items = Column(Text, nullable=True)

    notes = Column(Text, nullable=True)

    # Relations
    items = relationship('OrderItem', back_populates='order', cascade='all, delete-orphan')

    __table_args__ = (
        CheckConstraint('total_price >= 0', name='check_order_total_price_non_negative'),
        Index('ix_orders_customer_id', 'customer_id'),
    )


class OrderDTO(BaseModel):
    id: str | None = None
    customer_id: str | None = None
    address_id: str | None = None
    status: OrderStatus | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    total_items_count: int = 0
    total_weight_kg: float = 0.0
    subtotal_before_discount: float = 0.0
    total_discount_amount: float = 0.0
    total_price: float = 0.0
    loyalty_code_applied: str | None = None
    order_items: str | None = None  # Legacy CSV item list
    notes: str | None = None


class OrderSummaryDTO(BaseModel):
    """Order-level totals derived from its order items."""
    total_items_count: int
    total_weight_kg: float
    subtotal_before_discount: float
    total_discount_amount: float
    total_price: float


class CustomerOrderStatsDTO(BaseModel):
    """Aggregate over a customer's non-returned orders, computed in the database."""
    customer_id: str
    total_orders: int
    total_spend: float


class PlacedOrderDTO(BaseModel):
    """Result of checkout: the committed order, its item snapshots and the loyalty reward it earned (if any)."""
    order: OrderDTO
    items: list[OrderItemDTO]
    reward: LoyaltyRecordDTO | None = None
