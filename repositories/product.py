import logging

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.product import Product, ProductDTO


class ProductRepository:
    @staticmethod
    def _log_tier_anomalies(product_dto: ProductDTO) -> None:
        for anomaly in product_dto.tier_anomalies():
            logging.warning(f"⚠️ Product {product_dto.id} ({product_dto.name}): {anomaly}")

    @staticmethod
    async def get_by_id(product_id: str, session: AsyncSession | Session) -> ProductDTO | None:
        stmt = select(Product).where(Product.id == product_id)
        product = await session_execute(stmt, session)
        product = product.scalar()
        if product is not None:
            return ProductDTO.model_validate(product, from_attributes=True)
        else:
            return None

    @staticmethod
    async def get_by_ids(product_ids: list[str], session: AsyncSession | Session) -> dict[str, ProductDTO]:
        """
        Batch-load products (prevents N+1 queries).

        Args:
            product_ids: List of product IDs
            session: Database session

        Returns:
            Dict mapping product_id to ProductDTO. Missing IDs are simply absent.
        """
        if not product_ids:
            return {}

        stmt = select(Product).where(Product.id.in_(set(product_ids)))
        result = await session_execute(stmt, session)
        return {
            product.id: ProductDTO.model_validate(product, from_attributes=True)
            for product in result.scalars().all()
        }

    @staticmethod
    async def create(product_dto: ProductDTO, session: AsyncSession | Session) -> str:
        ProductRepository._log_tier_anomalies(product_dto)
        product = Product(**product_dto.model_dump(exclude_none=True))
        session.add(product)
        await session_flush(session)
        return product.id

    @staticmethod
    async def update(product_dto: ProductDTO, session: AsyncSession | Session) -> None:
        ProductRepository._log_tier_anomalies(product_dto)
        # Tier prices may legitimately be cleared, so only drop keys that are never nullable
        product_dto_dict = product_dto.model_dump(exclude={"id", "created_at"})
        stmt = update(Product).where(Product.id == product_dto.id).values(**product_dto_dict)
        await session_execute(stmt, session)

    @staticmethod
    async def delete(product_id: str, session: AsyncSession | Session) -> None:
        stmt = delete(Product).where(Product.id == product_id)
        await session_execute(stmt, session)
