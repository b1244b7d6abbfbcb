import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from enums.bag_size import BagSize
from exceptions.cart import CartItemNotFoundException, InvalidQuantityException
from exceptions.product import ProductNotFoundException
from models.cart import BagCounts, CartDTO, CartItemDTO, CartItemSummaryDTO
from models.product import ProductDTO
from repositories.product import ProductRepository
from services.pricing import PricingService


class CartService:
    """
    Bag composition and cart aggregation.

    All mutators return a new CartDTO and leave the input untouched.
    Prices and totals are never stored on the cart, they are recomputed
    from the embedded product on every call.
    """

    @staticmethod
    def _replace_item(cart: CartDTO, product_id: str, new_item: CartItemDTO | None) -> CartDTO:
        items = []
        replaced = False
        for item in cart.items:
            if item.product_id == product_id:
                replaced = True
                if new_item is not None:
                    items.append(new_item)
            else:
                items.append(item)
        if not replaced and new_item is not None:
            items.append(new_item)
        return CartDTO(items=items)

    @staticmethod
    def add_bag(cart: CartDTO, product: ProductDTO, size: BagSize | int) -> CartDTO:
        """
        Add one bag of the given size for a product.

        Raises:
            InvalidBagSizeException: If size is not 1, 5, 10 or 25
        """
        bag_size = BagSize.from_value(size)
        existing = cart.get_item(product.id)
        bags = existing.bags if existing is not None else BagCounts()
        new_item = CartItemDTO(product=product, bags=bags.with_added(bag_size))
        return CartService._replace_item(cart, product.id, new_item)

    @staticmethod
    def remove_bag(cart: CartDTO, product_id: str, size: BagSize | int) -> CartDTO:
        """
        Remove one bag of the given size.

        Removing from a product that is not in the cart, or a size with no
        bags left, changes nothing. When the quantity reaches 0 the item is
        dropped from the cart.

        Raises:
            InvalidBagSizeException: If size is not 1, 5, 10 or 25
        """
        bag_size = BagSize.from_value(size)
        existing = cart.get_item(product_id)
        if existing is None:
            return CartDTO(items=list(cart.items))

        bags = existing.bags.with_removed(bag_size)
        if bags.is_empty:
            return CartService._replace_item(cart, product_id, None)
        return CartService._replace_item(cart, product_id, CartItemDTO(product=existing.product, bags=bags))

    @staticmethod
    def add_item(cart: CartDTO, product: ProductDTO, bags: BagCounts) -> CartDTO:
        """Add a product with a bag breakdown, merging with an existing line."""
        if bags.is_empty:
            raise InvalidQuantityException(0, "at least one bag is required")

        existing = cart.get_item(product.id)
        if existing is not None:
            bags = existing.bags.merged(bags)
        return CartService._replace_item(cart, product.id, CartItemDTO(product=product, bags=bags))

    @staticmethod
    def remove_item(cart: CartDTO, product_id: str) -> CartDTO:
        if cart.get_item(product_id) is None:
            raise CartItemNotFoundException(product_id)
        return CartService._replace_item(cart, product_id, None)

    @staticmethod
    def clear_cart(cart: CartDTO) -> CartDTO:
        return CartDTO(items=[])

    @staticmethod
    def total_price(cart: CartDTO) -> float:
        total = sum(PricingService.total_price(item.product, item.quantity) for item in cart.items)
        return round(total, 2)

    @staticmethod
    def total_items(cart: CartDTO) -> int:
        """Number of bags in the cart (badge count), not kg."""
        return sum(item.bags.total_bags for item in cart.items)

    @staticmethod
    def total_weight_kg(cart: CartDTO) -> int:
        return sum(item.quantity for item in cart.items)

    @staticmethod
    def total_savings(cart: CartDTO) -> float:
        savings = sum(PricingService.calculate(item.product, item.quantity).savings for item in cart.items)
        return round(savings, 2)

    @staticmethod
    def item_summaries(cart: CartDTO) -> list[CartItemSummaryDTO]:
        summaries = []
        for item in cart.items:
            pricing = PricingService.calculate(item.product, item.quantity)
            summaries.append(CartItemSummaryDTO(
                product_id=item.product_id,
                product_name=item.product.name,
                quantity_kg=item.quantity,
                total_bags=item.bags.total_bags,
                price_per_kg=pricing.price_per_kg,
                total=pricing.total,
                original_price=pricing.original_price,
                savings=pricing.savings,
                savings_percentage=pricing.savings_percentage,
                tier_applied=pricing.tier_applied.value if pricing.tier_applied else None
            ))
        return summaries

    @staticmethod
    async def refresh_products(cart: CartDTO, session: AsyncSession | Session) -> CartDTO:
        """
        Replace embedded products with their current rows.

        A cart restored from storage may carry product data from days ago.
        Items whose product no longer exists are kept as they are, checkout
        turns them into placeholder lines.

        Args:
            cart: Cart restored from storage
            session: Database session

        Returns:
            New CartDTO with fresh product data
        """
        products = await ProductRepository.get_by_ids([item.product_id for item in cart.items], session)

        items = []
        for item in cart.items:
            product = products.get(item.product_id)
            if product is None:
                logging.warning(f"⚠️ Cart item references missing product {item.product_id}, keeping stale data")
                items.append(item)
            else:
                items.append(CartItemDTO(product=product, bags=item.bags))
        return CartDTO(items=items)

    @staticmethod
    async def add_bag_by_product_id(
        cart: CartDTO,
        product_id: str,
        size: BagSize | int,
        session: AsyncSession | Session
    ) -> CartDTO:
        """
        Add a bag for a product looked up in the store.

        Raises:
            InvalidBagSizeException: If size is not 1, 5, 10 or 25
            ProductNotFoundException: If the product doesn't exist or is unavailable
        """
        bag_size = BagSize.from_value(size)
        product = await ProductRepository.get_by_id(product_id, session)
        if product is None or not product.available:
            raise ProductNotFoundException(product_id)
        return CartService.add_bag(cart, product, bag_size)
