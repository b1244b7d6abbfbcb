from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.customer import Customer, CustomerDTO


class CustomerRepository:
    @staticmethod
    async def get_by_id(customer_id: str, session: AsyncSession | Session) -> CustomerDTO | None:
        stmt = select(Customer).where(Customer.id == customer_id)
        customer = await session_execute(stmt, session)
        customer = customer.scalar()
        if customer is not None:
            return CustomerDTO.model_validate(customer, from_attributes=True)
        else:
            return None

    @staticmethod
    async def create(customer_dto: CustomerDTO, session: AsyncSession | Session) -> str:
        customer = Customer(**customer_dto.model_dump(exclude_none=True))
        session.add(customer)
        await session_flush(session)
        return customer.id
