# The cart lives on the client side (persisted by services/cart_storage.py) and is never
# a source of truth for prices: every total is recomputed from the embedded product,
# which CartService.refresh_products() reloads from the store before checkout.
#
# Quantity is never stored. It is always derived from the bag counts so the two cannot drift.
import logging

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from enums.bag_size import BagSize
from models.product import ProductDTO


class BagCounts(BaseModel):
    model_config = ConfigDict(frozen=True)

    kg1: int = Field(default=0, ge=0)
    kg5: int = Field(default=0, ge=0)
    kg10: int = Field(default=0, ge=0)
    kg25: int = Field(default=0, ge=0)

    @property
    def quantity_kg(self) -> int:
        return self.kg1 * 1 + self.kg5 * 5 + self.kg10 * 10 + self.kg25 * 25

    @property
    def total_bags(self) -> int:
        return self.kg1 + self.kg5 + self.kg10 + self.kg25

    @property
    def is_empty(self) -> bool:
        return self.quantity_kg == 0

    def count(self, size: BagSize) -> int:
        return getattr(self, BagSize.from_value(size).field_name)

    def with_added(self, size: BagSize, count: int = 1) -> 'BagCounts':
        field_name = BagSize.from_value(size).field_name
        return self.model_copy(update={field_name: getattr(self, field_name) + count})

    def with_removed(self, size: BagSize) -> 'BagCounts':
        """Decrement one bag of the given size, floored at zero."""
        field_name = BagSize.from_value(size).field_name
        return self.model_copy(update={field_name: max(getattr(self, field_name) - 1, 0)})

    def merged(self, other: 'BagCounts') -> 'BagCounts':
        return BagCounts(
            kg1=self.kg1 + other.kg1,
            kg5=self.kg5 + other.kg5,
            kg10=self.kg10 + other.kg10,
            kg25=self.kg25 + other.kg25,
        )

    @classmethod
    def from_quantity(cls, quantity_kg: int | float) -> 'BagCounts':
        """
        Greedy split of a kg amount into bags, largest bag first.

        Used to attach a bag breakdown to legacy order lines that only
        recorded a quantity. Fractional kg are truncated.

        Examples:
            >>> BagCounts.from_quantity(37)
            BagCounts(kg1=2, kg5=0, kg10=1, kg25=1)
        """
        remaining = int(quantity_kg)
        if remaining < 0:
            from exceptions.cart import InvalidQuantityException
            raise InvalidQuantityException(quantity_kg)

        kg25, remaining = divmod(remaining, 25)
        kg10, remaining = divmod(remaining, 10)
        kg5, kg1 = divmod(remaining, 5)
        return cls(kg1=kg1, kg5=kg5, kg10=kg10, kg25=kg25)


class CartItemDTO(BaseModel):
    product: ProductDTO
    bags: BagCounts = BagCounts()

    @model_validator(mode='before')
    @classmethod
    def upgrade_legacy_item(cls, data):
        """Attach zeroed bags to items stored by the old quantity-only cart format."""
        if isinstance(data, dict) and data.get("bags") is None:
            product = data.get("product")
            product_id = product.get("id") if isinstance(product, dict) else getattr(product, "id", None)
            logging.info(f"🔄 Upgrading legacy cart item for product {product_id} (quantity={data.get('quantity')})")
            data = {**data, "bags": BagCounts().model_dump()}
        return data

    @computed_field
    @property
    def quantity(self) -> int:
        return self.bags.quantity_kg

    @property
    def product_id(self) -> str | None:
        return self.product.id


class CartDTO(BaseModel):
    items: list[CartItemDTO] = []

    def get_item(self, product_id: str) -> CartItemDTO | None:
        for item in self.items:
            if item.product.id == product_id:
                return item
        return None

    @property
    def is_empty(self) -> bool:
        return len(self.items) == 0


class CartItemSummaryDTO(BaseModel):
    """Display line for one cart item with freshly computed pricing."""
    product_id: str | None
    product_name: str | None
    quantity_kg: int
    total_bags: int
    price_per_kg: float
    total: float
    original_price: float
    savings: float
    savings_percentage: float
    tier_applied: str | None
