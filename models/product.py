from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel
from sqlalchemy import Column, String, Float, Boolean, DateTime, Text, CheckConstraint, func

from models.base import Base


# Product is a rice variety sold by the kg, optionally with volume tier prices
class Product(Base):
    __tablename__ = 'products'

    id = Column(String(36), primary_key=True, default=lambda: uuid4().hex)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    base_price_per_kg = Column(Float, nullable=False)
    available = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=func.now())

    # Tiered Pricing
    # Only consulted when has_tier_pricing is set; an unset tier falls through to the next one
    has_tier_pricing = Column(Boolean, nullable=False, default=False)
    tier_2_4kg_price = Column(Float, nullable=True)
    tier_5_9kg_price = Column(Float, nullable=True)
    tier_10kg_up_price = Column(Float, nullable=True)

    __table_args__ = (
        CheckConstraint('base_price_per_kg >= 0', name='check_base_price_non_negative'),
    )


class ProductDTO(BaseModel):
    id: str | None = None
    name: str | None = None
    description: str | None = None
    base_price_per_kg: float = 0.0
    available: bool = True
    has_tier_pricing: bool = False
    tier_2_4kg_price: float | None = None
    tier_5_9kg_price: float | None = None
    tier_10kg_up_price: float | None = None
    created_at: datetime | None = None

    def tier_anomalies(self) -> list[str]:
        """
        Describe tier configurations that look wrong.

        Tier prices above base or tier pricing without any tier set are
        business-data anomalies an admin has to fix, not a reason to fail
        a cart or checkout.
        """
        if not self.has_tier_pricing:
            return []

        tier_prices = {
            "tier_2_4kg_price": self.tier_2_4kg_price,
            "tier_5_9kg_price": self.tier_5_9kg_price,
            "tier_10kg_up_price": self.tier_10kg_up_price,
        }
        if not any(tier_prices.values()):
            return ["tier pricing enabled but no tier price set"]

        return [
            f"{field_name}={price} is above base price {self.base_price_per_kg}"
            for field_name, price in tier_prices.items()
            if price and price > self.base_price_per_kg
        ]
