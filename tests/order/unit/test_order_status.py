"""
Order status transitions.

OrderStateMachine rules plus OrderService.update_status(), including the
revocation of a loyalty code earned by a returned order.
"""

import pytest

from enums.loyalty_code_status import LoyaltyCodeStatus
from enums.order_status import OrderStatus
from exceptions.order import InvalidOrderStateException, OrderNotFoundException
from models.cart import BagCounts, CartDTO
from repositories.loyalty_record import LoyaltyRecordRepository
from services.cart import CartService
from services.order import OrderService
from utils.order_state_machine import OrderStateMachine


class TestOrderStateMachine:

    @pytest.mark.parametrize("from_status,to_status", [
        (OrderStatus.PENDING, OrderStatus.ACCEPTED),
        (OrderStatus.ACCEPTED, OrderStatus.OUT_FOR_DELIVERY),
        (OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED),
        (OrderStatus.PENDING, OrderStatus.RETURNED),
        (OrderStatus.OUT_FOR_DELIVERY, OrderStatus.RETURNED),
    ])
    def test_valid_transitions(self, from_status, to_status):
        assert OrderStateMachine.is_valid_transition(from_status, to_status)

    @pytest.mark.parametrize("from_status,to_status", [
        (OrderStatus.PENDING, OrderStatus.DELIVERED),
        (OrderStatus.ACCEPTED, OrderStatus.PENDING),
        (OrderStatus.DELIVERED, OrderStatus.RETURNED),
        (OrderStatus.RETURNED, OrderStatus.PENDING),
        (OrderStatus.PENDING, OrderStatus.PENDING),
    ])
    def test_invalid_transitions(self, from_status, to_status):
        assert not OrderStateMachine.is_valid_transition(from_status, to_status)

    def test_return_requires_admin(self):
        assert OrderStateMachine.requires_admin(OrderStatus.ACCEPTED, OrderStatus.RETURNED)
        assert not OrderStateMachine.requires_admin(OrderStatus.PENDING, OrderStatus.ACCEPTED)
        assert not OrderStateMachine.validate_and_log_transition("o1", OrderStatus.ACCEPTED, OrderStatus.RETURNED)
        assert OrderStateMachine.validate_and_log_transition(
            "o1", OrderStatus.ACCEPTED, OrderStatus.RETURNED, admin_id="admin-1"
        )

    def test_final_statuses(self):
        assert OrderStateMachine.is_final_status(OrderStatus.DELIVERED)
        assert OrderStateMachine.is_final_status(OrderStatus.RETURNED)
        assert OrderStateMachine.get_valid_transitions(OrderStatus.DELIVERED) == []

    def test_next_statuses_from_pending(self):
        assert OrderStateMachine.get_valid_transitions(OrderStatus.PENDING) == [
            OrderStatus.ACCEPTED, OrderStatus.RETURNED
        ]


class TestUpdateStatus:

    async def _place(self, session, customer, product, bags):
        cart = CartService.add_item(CartDTO(), product, bags)
        return await OrderService.place_order(cart, customer.id, session)

    @pytest.mark.asyncio
    async def test_full_fulfilment_path(self, test_session, create_customer, create_product):
        customer = await create_customer(test_session)
        product = await create_product(test_session)
        placed = await self._place(test_session, customer, product, BagCounts(kg1=1))

        for status in (OrderStatus.ACCEPTED, OrderStatus.OUT_FOR_DELIVERY, OrderStatus.DELIVERED):
            order = await OrderService.update_status(placed.order.id, status, test_session)
            assert order.status == status

    @pytest.mark.asyncio
    async def test_invalid_transition_raises(self, test_session, create_customer, create_product):
        customer = await create_customer(test_session)
        product = await create_product(test_session)
        placed = await self._place(test_session, customer, product, BagCounts(kg1=1))

        with pytest.raises(InvalidOrderStateException) as exc_info:
            await OrderService.update_status(placed.order.id, OrderStatus.DELIVERED, test_session)

        assert exc_info.value.current_state == "pending"
        assert "accepted" in exc_info.value.required_state

    @pytest.mark.asyncio
    async def test_unknown_order(self, test_session):
        with pytest.raises(OrderNotFoundException):
            await OrderService.update_status("missing", OrderStatus.ACCEPTED, test_session)

    @pytest.mark.asyncio
    async def test_return_without_admin_rejected(self, test_session, create_customer, create_product):
        customer = await create_customer(test_session)
        product = await create_product(test_session)
        placed = await self._place(test_session, customer, product, BagCounts(kg1=1))

        with pytest.raises(InvalidOrderStateException):
            await OrderService.update_status(placed.order.id, OrderStatus.RETURNED, test_session)

    @pytest.mark.asyncio
    async def test_return_revokes_earned_code(self, test_session, create_customer, create_product):
        customer = await create_customer(test_session)
        product = await create_product(test_session)
        placed = await self._place(test_session, customer, product, BagCounts(kg5=1, kg25=1))
        assert placed.reward is not None

        order = await OrderService.update_status(
            placed.order.id, OrderStatus.RETURNED, test_session, admin_id="admin-1"
        )

        assert order.status == OrderStatus.RETURNED
        record = await LoyaltyRecordRepository.get_by_code(placed.reward.discount_code, test_session)
        assert record.code_status == LoyaltyCodeStatus.REVOKED
