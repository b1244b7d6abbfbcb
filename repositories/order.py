import logging

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from enums.order_status import OrderStatus
from models.order import Order, OrderDTO, OrderSummaryDTO, CustomerOrderStatsDTO

logger = logging.getLogger(__name__)


class OrderRepository:
    @staticmethod
    async def create(order_dto: OrderDTO, session: AsyncSession | Session) -> str:
        order = Order(**order_dto.model_dump(exclude_none=True))
        session.add(order)
        await session_flush(session)
        return order.id

    @staticmethod
    async def get_by_id(order_id: str, session: AsyncSession | Session) -> OrderDTO | None:
        stmt = select(Order).where(Order.id == order_id)
        order = await session_execute(stmt, session)
        order = order.scalar()
        if order is not None:
            return OrderDTO.model_validate(order, from_attributes=True)
        else:
            return None

    @staticmethod
    async def get_by_customer_id(customer_id: str, session: AsyncSession | Session) -> list[OrderDTO]:
        stmt = select(Order).where(Order.customer_id == customer_id).order_by(Order.created_at.desc())
        orders = await session_execute(stmt, session)
        return [OrderDTO.model_validate(order, from_attributes=True) for order in orders.scalars().all()]

    @staticmethod
    async def update_status(order_id: str, status: OrderStatus, session: AsyncSession | Session) -> None:
        stmt = update(Order).where(Order.id == order_id).values(status=status)
        await session_execute(stmt, session)

    @staticmethod
    async def update_summary(order_id: str, summary: OrderSummaryDTO, session: AsyncSession | Session) -> None:
        stmt = update(Order).where(Order.id == order_id).values(**summary.model_dump())
        await session_execute(stmt, session)

    @staticmethod
    async def get_stats_by_customer(customer_id: str, session: AsyncSession | Session) -> CustomerOrderStatsDTO:
        """
        Count and sum a customer's orders, excluding returned ones.

        Computed in SQL from persisted orders so callers cannot inflate
        the numbers with client-side data.
        """
        stmt = (
            select(func.count(Order.id), func.coalesce(func.sum(Order.total_price), 0.0))
            .where(Order.customer_id == customer_id)
            .where(Order.status != OrderStatus.RETURNED)
        )
        result = await session_execute(stmt, session)
        total_orders, total_spend = result.one()
        return CustomerOrderStatsDTO(
            customer_id=customer_id,
            total_orders=total_orders,
            total_spend=round(float(total_spend), 2)
        )

    @staticmethod
    async def get_legacy_orders(session: AsyncSession | Session) -> list[OrderDTO]:
        """Orders that still carry the legacy CSV item list."""
        stmt = select(Order).where(Order.order_items.is_not(None), Order.order_items != "")
        orders = await session_execute(stmt, session)
        return [OrderDTO.model_validate(order, from_attributes=True) for order in orders.scalars().all()]
