from pydantic import BaseModel

from enums.pricing_tier import PricingTier


class TierPricingResultDTO(BaseModel):
    """Complete result of tier pricing calculation for one product and quantity."""
    quantity_kg: float
    price_per_kg: float
    total: float
    original_price: float
    savings: float
    savings_percentage: float
    tier_applied: PricingTier | None = None
