from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from enums.loyalty_code_status import LoyaltyCodeStatus
from models.loyalty_record import LoyaltyRecord, LoyaltyRecordDTO


class LoyaltyRecordRepository:
    @staticmethod
    async def get_by_customer_and_order(
        customer_id: str,
        order_id: str,
        session: AsyncSession | Session
    ) -> LoyaltyRecordDTO | None:
        stmt = select(LoyaltyRecord).where(
            LoyaltyRecord.customer_id == customer_id,
            LoyaltyRecord.qualifying_order_id == order_id
        )
        record = await session_execute(stmt, session)
        record = record.scalar()
        if record is not None:
            return LoyaltyRecordDTO.model_validate(record, from_attributes=True)
        else:
            return None

    @staticmethod
    async def get_active_by_customer(customer_id: str, session: AsyncSession | Session) -> LoyaltyRecordDTO | None:
        stmt = (
            select(LoyaltyRecord)
            .where(LoyaltyRecord.customer_id == customer_id)
            .where(LoyaltyRecord.code_status == LoyaltyCodeStatus.ACTIVE)
            .order_by(LoyaltyRecord.issued_at.desc())
            .limit(1)
        )
        record = await session_execute(stmt, session)
        record = record.scalar()
        if record is not None:
            return LoyaltyRecordDTO.model_validate(record, from_attributes=True)
        else:
            return None

    @staticmethod
    async def get_latest_by_customer(customer_id: str, session: AsyncSession | Session) -> LoyaltyRecordDTO | None:
        stmt = (
            select(LoyaltyRecord)
            .where(LoyaltyRecord.customer_id == customer_id)
            .order_by(LoyaltyRecord.issued_at.desc())
            .limit(1)
        )
        record = await session_execute(stmt, session)
        record = record.scalar()
        if record is not None:
            return LoyaltyRecordDTO.model_validate(record, from_attributes=True)
        else:
            return None

    @staticmethod
    async def get_by_customer_id(customer_id: str, session: AsyncSession | Session) -> list[LoyaltyRecordDTO]:
        stmt = select(LoyaltyRecord).where(LoyaltyRecord.customer_id == customer_id)
        records = await session_execute(stmt, session)
        return [LoyaltyRecordDTO.model_validate(record, from_attributes=True) for record in records.scalars().all()]

    @staticmethod
    async def get_by_code(discount_code: str, session: AsyncSession | Session) -> LoyaltyRecordDTO | None:
        stmt = select(LoyaltyRecord).where(LoyaltyRecord.discount_code == discount_code)
        record = await session_execute(stmt, session)
        record = record.scalar()
        if record is not None:
            return LoyaltyRecordDTO.model_validate(record, from_attributes=True)
        else:
            return None

    @staticmethod
    async def code_exists(discount_code: str, session: AsyncSession | Session) -> bool:
        stmt = select(LoyaltyRecord.id).where(LoyaltyRecord.discount_code == discount_code).limit(1)
        result = await session_execute(stmt, session)
        return result.scalar() is not None

    @staticmethod
    async def create(record_dto: LoyaltyRecordDTO, session: AsyncSession | Session) -> str:
        """
        Insert a record and flush immediately.

        The flush surfaces a UNIQUE(customer_id, qualifying_order_id) or
        UNIQUE(discount_code) violation as IntegrityError right here.
        """
        record = LoyaltyRecord(**record_dto.model_dump(exclude_none=True))
        session.add(record)
        await session_flush(session)
        return record.id

    @staticmethod
    async def supersede_active(customer_id: str, keep_record_id: str, session: AsyncSession | Session) -> int:
        """Mark every other active code of the customer as superseded. Returns affected rows."""
        stmt = (
            update(LoyaltyRecord)
            .where(LoyaltyRecord.customer_id == customer_id)
            .where(LoyaltyRecord.code_status == LoyaltyCodeStatus.ACTIVE)
            .where(LoyaltyRecord.id != keep_record_id)
            .values(code_status=LoyaltyCodeStatus.SUPERSEDED)
        )
        result = await session_execute(stmt, session)
        return result.rowcount

    @staticmethod
    async def mark_used(
        discount_code: str,
        order_id: str,
        used_at: datetime,
        session: AsyncSession | Session
    ) -> bool:
        """
        Conditionally flip an active code to used.

        Returns:
            True if this call redeemed the code, False if it was no longer active
        """
        stmt = (
            update(LoyaltyRecord)
            .where(LoyaltyRecord.discount_code == discount_code)
            .where(LoyaltyRecord.code_status == LoyaltyCodeStatus.ACTIVE)
            .values(code_status=LoyaltyCodeStatus.USED, used_in_order_id=order_id, used_at=used_at)
        )
        result = await session_execute(stmt, session)
        return result.rowcount == 1

    @staticmethod
    async def revoke_active_by_order(order_id: str, session: AsyncSession | Session) -> int:
        stmt = (
            update(LoyaltyRecord)
            .where(LoyaltyRecord.qualifying_order_id == order_id)
            .where(LoyaltyRecord.code_status == LoyaltyCodeStatus.ACTIVE)
            .values(code_status=LoyaltyCodeStatus.REVOKED)
        )
        result = await session_execute(stmt, session)
        return result.rowcount
