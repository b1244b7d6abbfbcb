from enum import Enum


class PricingTier(str, Enum):
    """
    Labels for the volume tier that priced an order line.

    Values are persisted verbatim in order_items.tier_applied.
    """
    BASE = "base"
    TIER_2_4_KG = "2-4kg"
    TIER_5_9_KG = "5-9kg"
    TIER_10_KG_UP = "10kg+"
