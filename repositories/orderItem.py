from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from exceptions.order import ImmutableOrderItemFieldException
from models.orderItem import OrderItem, OrderItemDTO, ORDER_ITEM_PRICE_FIELDS


class OrderItemRepository:
    @staticmethod
    async def create_many(order_items: list[OrderItemDTO], session: AsyncSession | Session) -> None:
        for order_item_dto in order_items:
            order_item = OrderItem(**order_item_dto.model_dump(exclude_none=True))
            session.add(order_item)
        await session_flush(session)

    @staticmethod
    async def get_by_order_id(order_id: str, session: AsyncSession | Session) -> list[OrderItemDTO]:
        stmt = select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.created_at, OrderItem.id)
        order_items = await session_execute(stmt, session)
        return [OrderItemDTO.model_validate(order_item, from_attributes=True) for order_item in order_items.scalars().all()]

    @staticmethod
    async def get_by_id(order_item_id: str, session: AsyncSession | Session) -> OrderItemDTO | None:
        stmt = select(OrderItem).where(OrderItem.id == order_item_id)
        order_item = await session_execute(stmt, session)
        order_item = order_item.scalar()
        if order_item is not None:
            return OrderItemDTO.model_validate(order_item, from_attributes=True)
        else:
            return None

    @staticmethod
    async def count_by_order_id(order_id: str, session: AsyncSession | Session) -> int:
        stmt = select(func.count(OrderItem.id)).where(OrderItem.order_id == order_id)
        result = await session_execute(stmt, session)
        return result.scalar()

    @staticmethod
    async def update(order_item_id: str, values: dict, session: AsyncSession | Session) -> None:
        """
        Administrative correction of an order item (notes, reconciliation flag).

        Raises:
            ImmutableOrderItemFieldException: If values touch any frozen snapshot column
        """
        frozen = ORDER_ITEM_PRICE_FIELDS.intersection(values)
        if frozen:
            raise ImmutableOrderItemFieldException(order_item_id, list(frozen))

        stmt = update(OrderItem).where(OrderItem.id == order_item_id).values(**values)
        await session_execute(stmt, session)
