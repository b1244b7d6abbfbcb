"""
Tests for the shop exception hierarchy and where services raise it.
"""

import pytest

from exceptions import (
    ShopException,
    CartException,
    InvalidBagSizeException,
    InvalidQuantityException,
    EmptyCartException,
    CartItemNotFoundException,
    ProductNotFoundException,
    OrderException,
    OrderNotFoundException,
    InvalidOrderStateException,
    OrderSummaryMismatchException,
    ImmutableOrderItemFieldException,
    OrderItemNotFoundException,
    LoyaltyException,
    DiscountCodeAlreadyUsedException,
    LoyaltyIssuanceException,
)
from enums.bag_size import BagSize
from enums.order_status import OrderStatus
from models.cart import CartDTO
from services.cart import CartService
from services.order import OrderService


class TestExceptionHierarchy:

    @pytest.mark.parametrize("exc,parent", [
        (InvalidBagSizeException(7), CartException),
        (InvalidQuantityException(-1), CartException),
        (EmptyCartException("c1"), CartException),
        (CartItemNotFoundException("p1"), CartException),
        (OrderNotFoundException("o1"), OrderException),
        (OrderItemNotFoundException("i1"), OrderException),
        (DiscountCodeAlreadyUsedException("LOYALTYAB12CD"), LoyaltyException),
        (LoyaltyIssuanceException("c1", "o1", "db down"), LoyaltyException),
    ])
    def test_parents(self, exc, parent):
        assert isinstance(exc, parent)
        assert isinstance(exc, ShopException)

    def test_message_and_details(self):
        exc = InvalidOrderStateException(order_id="o1", current_state="delivered", required_state="none (final status)")

        assert str(exc) == "Order o1 is in state 'delivered', required 'none (final status)'"
        assert exc.details == {
            'order_id': 'o1',
            'current_state': 'delivered',
            'required_state': 'none (final status)'
        }
        assert repr(exc).startswith("InvalidOrderStateException('Order o1")

    def test_base_without_details(self):
        exc = ShopException("boom")
        assert exc.details == {}
        assert repr(exc) == "ShopException('boom')"

    def test_summary_mismatch(self):
        exc = OrderSummaryMismatchException("o1", "total_price", 100.0, 90.0)
        assert exc.field == "total_price"
        assert "items sum to 90.0" in str(exc)

    def test_immutable_fields_are_sorted(self):
        exc = ImmutableOrderItemFieldException("i1", ["total_after_discount", "price_per_kg_at_order"])
        assert exc.fields == ["price_per_kg_at_order", "total_after_discount"]


class TestRaisedByServices:

    def test_invalid_bag_size(self, make_product):
        with pytest.raises(InvalidBagSizeException) as exc_info:
            CartService.add_bag(CartDTO(), make_product(), 7)
        assert exc_info.value.size == 7

    def test_bool_is_not_a_bag_size(self):
        with pytest.raises(InvalidBagSizeException):
            BagSize.from_value(True)

    def test_remove_unknown_cart_item(self):
        with pytest.raises(CartItemNotFoundException):
            CartService.remove_item(CartDTO(), "p1")

    @pytest.mark.asyncio
    async def test_checkout_empty_cart(self, test_session):
        with pytest.raises(EmptyCartException):
            await OrderService.place_order(CartDTO(), "c1", test_session)

    @pytest.mark.asyncio
    async def test_add_unknown_product(self, test_session):
        with pytest.raises(ProductNotFoundException):
            await CartService.add_bag_by_product_id(CartDTO(), "missing", 5, test_session)

    @pytest.mark.asyncio
    async def test_status_change_of_unknown_order(self, test_session):
        with pytest.raises(OrderNotFoundException):
            await OrderService.update_status("missing", OrderStatus.ACCEPTED, test_session)

    @pytest.mark.asyncio
    async def test_notes_of_unknown_item(self, test_session):
        with pytest.raises(OrderItemNotFoundException):
            await OrderService.update_item_notes("missing", "note", test_session)
