"""
Cart Persistence

Stores each customer's cart as a JSON blob in Redis so it survives reloads
and restarts. The stored cart holds bag counts and a product copy only,
never prices: every total is recomputed from product data on read.

Key layout: cart:{owner_key}, expiring CART_TTL_SECONDS after the last save.
"""

import logging
from contextlib import asynccontextmanager

from pydantic import ValidationError
from redis.asyncio import Redis

from models.cart import CartDTO


class StoredCart:
    """Mutable holder yielded by CartStorage.open(), assign a new cart to .cart to persist it."""

    def __init__(self, owner_key: str, cart: CartDTO):
        self.owner_key = owner_key
        self.cart = cart


class CartStorage:
    """
    Redis-backed cart persistence.

    Usage:
        storage = CartStorage(redis, ttl_seconds=config.CART_TTL_SECONDS)
        async with storage.open(customer_id) as stored:
            stored.cart = CartService.add_bag(stored.cart, product, BagSize.FIVE_KG)
    """

    def __init__(self, redis: Redis, ttl_seconds: int):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def _key(owner_key: str) -> str:
        return f"cart:{owner_key}"

    async def load(self, owner_key: str) -> CartDTO:
        """
        Load a cart, upgrading items saved by the old quantity-only format.

        Legacy items get zeroed bags attached on validation, which leaves
        them at quantity 0, so they are pruned here and the migrated cart
        is written back once.

        Returns:
            Stored cart, or an empty cart if nothing (or nothing readable) is stored
        """
        raw = await self.redis.get(self._key(owner_key))
        if raw is None:
            return CartDTO()

        try:
            cart = CartDTO.model_validate_json(raw)
        except ValidationError as e:
            logging.error(f"❌ Unreadable cart for {owner_key}, starting with an empty cart: {e}")
            return CartDTO()

        kept_items = []
        for item in cart.items:
            if item.quantity == 0:
                logging.info(f"🧹 Dropping zero-quantity cart item {item.product_id} for {owner_key}")
            else:
                kept_items.append(item)

        if len(kept_items) != len(cart.items):
            cart = CartDTO(items=kept_items)
            await self.save(owner_key, cart)
        return cart

    async def save(self, owner_key: str, cart: CartDTO) -> None:
        if cart.is_empty:
            await self.delete(owner_key)
            return
        await self.redis.set(self._key(owner_key), cart.model_dump_json(), ex=self.ttl_seconds)

    async def delete(self, owner_key: str) -> None:
        await self.redis.delete(self._key(owner_key))

    @asynccontextmanager
    async def open(self, owner_key: str):
        """
        Load a cart for the duration of a block and save it on clean exit.

        Nothing is written when the block raises, a failed cart action
        must not leave a half-applied cart behind.
        """
        stored = StoredCart(owner_key, await self.load(owner_key))
        yield stored
        await self.save(owner_key, stored.cart)
