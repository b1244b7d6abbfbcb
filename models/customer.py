from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel
from sqlalchemy import Column, String, DateTime, func

from models.base import Base


class Customer(Base):
    __tablename__ = 'customers'

    id = Column(String(36), primary_key=True, default=lambda: uuid4().hex)
    full_name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    created_at = Column(DateTime, default=func.now())


class CustomerDTO(BaseModel):
    id: str | None = None
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    created_at: datetime | None = None
