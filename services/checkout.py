import logging

from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from models.loyalty_record import LoyaltyRuleDTO
from models.order import PlacedOrderDTO
from services.cart import CartService
from services.cart_storage import CartStorage
from services.order import OrderService


class CheckoutService:
    """Glue between the stored cart and order placement."""

    @staticmethod
    async def get_cart_summary_data(
        owner_key: str,
        storage: CartStorage,
        session: AsyncSession | Session
    ) -> dict:
        """
        Get cart summary data without UI dependencies.

        Products are refreshed from the store first, so prices shown here
        are the prices checkout will charge.

        Returns:
            Dict with keys: items (list[CartItemSummaryDTO]), total_bags,
            total_weight_kg, total_savings, total
        """
        async with storage.open(owner_key) as stored:
            stored.cart = await CartService.refresh_products(stored.cart, session)
            cart = stored.cart

        return {
            "items": CartService.item_summaries(cart),
            "total_bags": CartService.total_items(cart),
            "total_weight_kg": CartService.total_weight_kg(cart),
            "total_savings": CartService.total_savings(cart),
            "total": CartService.total_price(cart),
        }

    @staticmethod
    async def checkout(
        owner_key: str,
        customer_id: str,
        storage: CartStorage,
        session: AsyncSession | Session,
        address_id: str | None = None,
        loyalty_code: str | None = None,
        notifier=None,
        rule: LoyaltyRuleDTO | None = None
    ) -> PlacedOrderDTO:
        """
        Place an order from the stored cart and empty the cart.

        The stored cart is only cleared once the order is committed. If
        placing the order raises, the cart stays exactly as it was. A cart
        that cannot be cleared after the commit is logged and left to
        expire, the order stands.

        Raises:
            EmptyCartException: If the stored cart is empty
            LoyaltyException: If the loyalty code cannot be redeemed
            SQLAlchemyError: If the order could not be persisted
        """
        cart = await CartService.refresh_products(await storage.load(owner_key), session)
        placed = await OrderService.place_order(
            cart,
            customer_id,
            session,
            address_id=address_id,
            loyalty_code=loyalty_code,
            notifier=notifier,
            rule=rule
        )

        try:
            await storage.save(owner_key, CartService.clear_cart(cart))
        except (RedisError, ConnectionError, OSError) as e:
            logging.error(f"❌ Order {placed.order.id} placed but cart of {owner_key} was not cleared: {e}")

        logging.info(f"🛒 Checkout of {owner_key} completed as order {placed.order.id}")
        return placed
