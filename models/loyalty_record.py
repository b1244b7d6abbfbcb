from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel
from sqlalchemy import Column, Integer, Float, Boolean, DateTime, String, ForeignKey, Enum as SQLEnum, Index, UniqueConstraint

from enums.loyalty_code_status import LoyaltyCodeStatus
from models.base import Base


class LoyaltyRecord(Base):
    """
    One issued loyalty discount code.

    UNIQUE(customer_id, qualifying_order_id) is what makes issuance
    at-most-once per order: a second insert for the same pair fails in the
    database no matter how many processes race for it.
    """
    __tablename__ = 'loyalty_records'

    id = Column(String(36), primary_key=True, default=lambda: uuid4().hex)
    type = Column(String(32), nullable=False, default="loyalty")
    customer_id = Column(String(36), ForeignKey('customers.id'), nullable=False)
    customer_name = Column(String, nullable=True)

    # Aggregate at issuance time
    total_purchases = Column(Integer, nullable=False, default=0)
    total_purchase_amount = Column(Float, nullable=False, default=0.0)

    # Rule snapshot
    rule_name = Column(String, nullable=False)
    rule_active = Column(Boolean, nullable=False, default=True)
    discount_percentage = Column(Float, nullable=False)
    extra_discount_percentage = Column(Float, nullable=False)

    # Code
    discount_code = Column(String(32), nullable=False, unique=True)
    code_status = Column(
        SQLEnum(LoyaltyCodeStatus, values_callable=lambda statuses: [s.value for s in statuses]),
        nullable=False,
        default=LoyaltyCodeStatus.ACTIVE
    )
    qualifying_order_id = Column(String(36), nullable=False)
    used_in_order_id = Column(String(36), nullable=True)
    issued_at = Column(DateTime, default=datetime.now, nullable=False)
    used_at = Column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint('customer_id', 'qualifying_order_id', name='uq_loyalty_customer_order'),
        Index('ix_loyalty_customer_status', 'customer_id', 'code_status'),
    )


class LoyaltyRecordDTO(BaseModel):
    id: str | None = None
    type: str = "loyalty"
    customer_id: str | None = None
    customer_name: str | None = None
    total_purchases: int = 0
    total_purchase_amount: float = 0.0
    rule_name: str | None = None
    rule_active: bool = True
    discount_percentage: float = 0.0
    extra_discount_percentage: float = 0.0
    discount_code: str | None = None
    code_status: LoyaltyCodeStatus = LoyaltyCodeStatus.ACTIVE
    qualifying_order_id: str | None = None
    used_in_order_id: str | None = None
    issued_at: datetime | None = None
    used_at: datetime | None = None


class LoyaltyRuleDTO(BaseModel):
    """Business rule that decides when an order earns a loyalty code."""
    enabled: bool = True
    rule_name: str = "Loyalty Discount Program"
    min_order_amount: float = 5000.0
    min_total_orders: int = 1
    min_total_spend: float = 0.0
    discount_percentage: float = 3.0
    code_prefix: str = "LOYALTY"
    code_random_length: int = 6
    excluded_keywords: list[str] = ["hotel", "restaurant"]

    @classmethod
    def from_config(cls) -> 'LoyaltyRuleDTO':
        import config

        return cls(
            enabled=config.LOYALTY_ENABLED,
            rule_name=config.LOYALTY_RULE_NAME,
            min_order_amount=config.LOYALTY_MIN_ORDER_AMOUNT,
            min_total_orders=config.LOYALTY_MIN_TOTAL_ORDERS,
            min_total_spend=config.LOYALTY_MIN_TOTAL_SPEND,
            discount_percentage=config.LOYALTY_DISCOUNT_PERCENTAGE,
            code_prefix=config.LOYALTY_CODE_PREFIX,
            code_random_length=config.LOYALTY_CODE_RANDOM_LENGTH,
            excluded_keywords=config.LOYALTY_EXCLUDED_KEYWORDS,
        )


class DiscountValidationResultDTO(BaseModel):
    is_valid: bool
    discount_percentage: float = 0.0
    message: str
    record: LoyaltyRecordDTO | None = None
