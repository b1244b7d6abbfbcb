import logging

from enums.pricing_tier import PricingTier
from exceptions.cart import InvalidQuantityException
from models.price_tier import TierPricingResultDTO
from models.product import ProductDTO


class PricingService:
    """Service for tiered per-kg pricing calculations."""

    @staticmethod
    def _validate_quantity(quantity_kg: float) -> None:
        if isinstance(quantity_kg, bool) or quantity_kg < 0:
            raise InvalidQuantityException(quantity_kg, "quantity must be a non-negative number")

    @staticmethod
    def tier_for_quantity(product: ProductDTO, quantity_kg: float) -> PricingTier | None:
        """
        Determine which volume tier applies to a quantity.

        Thresholds are strict and evaluated top-down, the highest qualifying
        tier wins. A tier whose price is unset (or 0) is skipped and the
        quantity falls through to the next lower tier.

        Args:
            product: Product with tier configuration
            quantity_kg: Ordered quantity in kg

        Returns:
            PricingTier of the tier that fired, or None when base price applies
        """
        PricingService._validate_quantity(quantity_kg)
        if not product.has_tier_pricing:
            return None

        if quantity_kg >= 10 and product.tier_10kg_up_price:
            return PricingTier.TIER_10_KG_UP
        elif quantity_kg >= 5 and product.tier_5_9kg_price:
            return PricingTier.TIER_5_9_KG
        elif quantity_kg >= 2 and product.tier_2_4kg_price:
            return PricingTier.TIER_2_4_KG
        return None

    @staticmethod
    def tier_price(product: ProductDTO, tier: PricingTier | None) -> float | None:
        if tier == PricingTier.TIER_10_KG_UP:
            return product.tier_10kg_up_price
        elif tier == PricingTier.TIER_5_9_KG:
            return product.tier_5_9kg_price
        elif tier == PricingTier.TIER_2_4_KG:
            return product.tier_2_4kg_price
        return None

    @staticmethod
    def price_per_kg(product: ProductDTO, quantity_kg: float) -> float:
        """
        Price per kg for a product at a given quantity.

        Example with base 200 and tiers 190/180/170:
            - 1 kg  -> 200
            - 3 kg  -> 190
            - 7 kg  -> 180
            - 12 kg -> 170

        Raises:
            InvalidQuantityException: If quantity is negative
        """
        tier = PricingService.tier_for_quantity(product, quantity_kg)
        if tier is None:
            return product.base_price_per_kg

        price = PricingService.tier_price(product, tier)
        if price > product.base_price_per_kg:
            logging.warning(
                f"⚠️ Product {product.id}: tier {tier.value} price {price} is above base price "
                f"{product.base_price_per_kg}"
            )
        return price

    @staticmethod
    def total_price(product: ProductDTO, quantity_kg: float) -> float:
        PricingService._validate_quantity(quantity_kg)
        if quantity_kg == 0:
            return 0.0
        return round(PricingService.price_per_kg(product, quantity_kg) * quantity_kg, 2)

    @staticmethod
    def calculate(product: ProductDTO, quantity_kg: float) -> TierPricingResultDTO:
        """
        Full pricing breakdown for display and checkout.

        A quantity of 0 still shows the 1 kg price per kg (so an empty line
        item does not render a degenerate price) but its totals are 0.

        Args:
            product: Product with tier configuration
            quantity_kg: Ordered quantity in kg

        Returns:
            TierPricingResultDTO with price, totals, savings and the tier label

        Raises:
            InvalidQuantityException: If quantity is negative
        """
        PricingService._validate_quantity(quantity_kg)
        lookup_quantity = max(quantity_kg, 1)

        price_per_kg = PricingService.price_per_kg(product, lookup_quantity)
        tier_applied = PricingService.tier_for_quantity(product, lookup_quantity)

        total = round(price_per_kg * quantity_kg, 2)
        original_price = round(product.base_price_per_kg * quantity_kg, 2)
        savings = round(original_price - total, 2)
        savings_percentage = round(savings / original_price * 100, 2) if original_price > 0 else 0.0

        return TierPricingResultDTO(
            quantity_kg=quantity_kg,
            price_per_kg=price_per_kg,
            total=total,
            original_price=original_price,
            savings=savings,
            savings_percentage=savings_percentage,
            tier_applied=tier_applied
        )

    @staticmethod
    def format_available_tiers(product: ProductDTO, currency_symbol: str = "Rs.") -> str | None:
        """
        Format the product's volume prices as a price list.

        Example output:
            ```
            Volume prices:
                  1 kg+: Rs. 200.00/kg
                  2 kg+: Rs. 190.00/kg
                  5 kg+: Rs. 180.00/kg
                 10 kg+: Rs. 170.00/kg
            ```

        Returns:
            Formatted string, or None if the product has no tier prices
        """
        if not product.has_tier_pricing:
            return None

        tiers = [
            (2, product.tier_2_4kg_price),
            (5, product.tier_5_9kg_price),
            (10, product.tier_10kg_up_price),
        ]
        tiers = [(min_kg, price) for min_kg, price in tiers if price]
        if not tiers:
            return None

        lines = ["Volume prices:"]
        for min_kg, price in [(1, product.base_price_per_kg)] + tiers:
            range_str = f"{min_kg} kg+"
            lines.append(f"  {range_str:>8}: {currency_symbol} {price:.2f}/kg")
        return "\n".join(lines)
