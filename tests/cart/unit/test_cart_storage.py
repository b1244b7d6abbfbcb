"""
CartStorage Unit Tests

Uses fakeredis, no Redis server needed.
"""

import json

import pytest

from enums.bag_size import BagSize
from exceptions.cart import InvalidBagSizeException
from models.cart import BagCounts, CartDTO
from services.cart import CartService
from services.cart_storage import CartStorage


@pytest.fixture
def storage(redis_client):
    return CartStorage(redis_client, ttl_seconds=3600)


class TestCartStorage:

    @pytest.mark.asyncio
    async def test_load_missing_cart_is_empty(self, storage):
        cart = await storage.load("customer-1")

        assert cart.is_empty

    @pytest.mark.asyncio
    async def test_save_and_load(self, storage, make_product):
        product = make_product()
        cart = CartService.add_item(CartDTO(), product, BagCounts(kg1=1, kg10=2))

        await storage.save("customer-1", cart)
        loaded = await storage.load("customer-1")

        assert loaded.get_item(product.id).bags == BagCounts(kg1=1, kg10=2)
        assert loaded.get_item(product.id).quantity == 21

    @pytest.mark.asyncio
    async def test_save_sets_ttl(self, storage, redis_client, make_product):
        cart = CartService.add_item(CartDTO(), make_product(), BagCounts(kg1=1))

        await storage.save("customer-1", cart)

        ttl = await redis_client.ttl("cart:customer-1")
        assert 0 < ttl <= 3600

    @pytest.mark.asyncio
    async def test_saving_empty_cart_deletes_key(self, storage, redis_client, make_product):
        cart = CartService.add_item(CartDTO(), make_product(), BagCounts(kg1=1))
        await storage.save("customer-1", cart)

        await storage.save("customer-1", CartDTO())

        assert await redis_client.exists("cart:customer-1") == 0

    @pytest.mark.asyncio
    async def test_stored_prices_are_not_trusted(self, storage, redis_client, make_product):
        product = make_product()
        cart = CartService.add_item(CartDTO(), product, BagCounts(kg1=1))
        await storage.save("customer-1", cart)

        loaded = await storage.load("customer-1")

        raw = json.loads(await redis_client.get("cart:customer-1"))
        assert "total" not in raw["items"][0]
        assert CartService.total_price(loaded) == 200.0

    @pytest.mark.asyncio
    async def test_legacy_items_are_upgraded_and_pruned(self, storage, redis_client, make_product):
        legacy_product = make_product(name="Old Samba")
        current_product = make_product(name="Basmati")
        payload = {
            "items": [
                {"product": legacy_product.model_dump(mode="json"), "quantity": 7},
                {"product": current_product.model_dump(mode="json"), "bags": {"kg1": 0, "kg5": 1, "kg10": 0, "kg25": 0}},
            ]
        }
        await redis_client.set("cart:customer-1", json.dumps(payload))

        cart = await storage.load("customer-1")

        assert [item.product.name for item in cart.items] == ["Basmati"]
        stored = json.loads(await redis_client.get("cart:customer-1"))
        assert len(stored["items"]) == 1

    @pytest.mark.asyncio
    async def test_unreadable_cart_starts_empty(self, storage, redis_client):
        await redis_client.set("cart:customer-1", "{not json")

        cart = await storage.load("customer-1")

        assert cart.is_empty

    @pytest.mark.asyncio
    async def test_delete(self, storage, redis_client, make_product):
        await storage.save("customer-1", CartService.add_item(CartDTO(), make_product(), BagCounts(kg1=1)))

        await storage.delete("customer-1")

        assert await redis_client.get("cart:customer-1") is None


class TestOpenContextManager:

    @pytest.mark.asyncio
    async def test_changes_saved_on_clean_exit(self, storage, make_product):
        product = make_product()

        async with storage.open("customer-1") as stored:
            stored.cart = CartService.add_bag(stored.cart, product, BagSize.TWENTY_FIVE_KG)

        loaded = await storage.load("customer-1")
        assert loaded.get_item(product.id).quantity == 25

    @pytest.mark.asyncio
    async def test_nothing_saved_when_block_raises(self, storage, make_product):
        product = make_product()
        await storage.save("customer-1", CartService.add_bag(CartDTO(), product, BagSize.ONE_KG))

        with pytest.raises(InvalidBagSizeException):
            async with storage.open("customer-1") as stored:
                stored.cart = CartService.add_bag(stored.cart, product, BagSize.FIVE_KG)
                stored.cart = CartService.add_bag(stored.cart, product, 3)

        loaded = await storage.load("customer-1")
        assert loaded.get_item(product.id).quantity == 1
