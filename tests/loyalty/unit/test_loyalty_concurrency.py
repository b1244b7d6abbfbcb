"""
Concurrent loyalty issuance.

Two callers that both see "no record yet" for the same (customer, order)
must still end up with a single record and the same code.
"""

import asyncio
from unittest.mock import patch

import pytest
from sqlalchemy import select, func

from models.cart import BagCounts, CartDTO
from models.loyalty_record import LoyaltyRecord, LoyaltyRuleDTO
from repositories.loyalty_record import LoyaltyRecordRepository
from services.cart import CartService
from services.loyalty import LoyaltyService
from services.order import OrderService


async def place_qualifying_order(session, customer, product):
    cart = CartService.add_item(CartDTO(), product, BagCounts(kg5=1, kg25=1))
    placed = await OrderService.place_order(
        cart, customer.id, session, rule=LoyaltyRuleDTO(min_order_amount=float("inf"))
    )
    return placed.order.id


def barrier_lookup(parties: int):
    """
    Wrap the (customer, order) lookup so the first `parties` callers all
    read before any of them writes.
    """
    original = LoyaltyRecordRepository.get_by_customer_and_order
    arrived = 0
    everyone_read = asyncio.Event()

    async def lookup(customer_id, order_id, session):
        nonlocal arrived
        result = await original(customer_id, order_id, session)
        if arrived < parties:
            arrived += 1
            if arrived == parties:
                everyone_read.set()
            await asyncio.wait_for(everyone_read.wait(), timeout=10)
        return result

    return lookup


class TestConcurrentIssuance:

    @pytest.mark.asyncio
    async def test_racing_issuers_share_one_record(self, file_session_maker, create_customer, create_product):
        async with file_session_maker() as setup_session:
            customer = await create_customer(setup_session)
            product = await create_product(setup_session)
            order_id = await place_qualifying_order(setup_session, customer, product)

        async def issue():
            async with file_session_maker() as session:
                return await LoyaltyService.issue_reward(customer.id, order_id, session, rule=LoyaltyRuleDTO())

        with patch(
            'services.loyalty.LoyaltyRecordRepository.get_by_customer_and_order',
            new=barrier_lookup(2)
        ):
            first, second = await asyncio.gather(issue(), issue())

        assert first is not None
        assert second is not None
        assert first.discount_code == second.discount_code
        assert first.id == second.id

        async with file_session_maker() as session:
            result = await session.execute(
                select(func.count(LoyaltyRecord.id)).where(LoyaltyRecord.customer_id == customer.id)
            )
            assert result.scalar() == 1

    @pytest.mark.asyncio
    async def test_stale_read_falls_back_to_existing_record(self, test_session, create_customer, create_product):
        customer = await create_customer(test_session)
        product = await create_product(test_session)
        order_id = await place_qualifying_order(test_session, customer, product)
        existing = await LoyaltyService.issue_reward(customer.id, order_id, test_session, rule=LoyaltyRuleDTO())

        original = LoyaltyRecordRepository.get_by_customer_and_order
        calls = 0

        async def stale_lookup(customer_id, order_id, session):
            nonlocal calls
            calls += 1
            if calls == 1:
                return None
            return await original(customer_id, order_id, session)

        with patch('services.loyalty.LoyaltyRecordRepository.get_by_customer_and_order', new=stale_lookup):
            record = await LoyaltyService.issue_reward(customer.id, order_id, test_session, rule=LoyaltyRuleDTO())

        assert record.discount_code == existing.discount_code
        assert calls == 2
        active = await LoyaltyService.get_active_record(customer.id, test_session)
        assert active.discount_code == existing.discount_code
