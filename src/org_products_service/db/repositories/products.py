"""Repository for organization products."""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from org_products_service.db.models import ProductModel


class ProductsRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, org_id: UUID, **fields: Any) -> ProductModel:
        product = ProductModel(organization_id=org_id, **fields)
        self._session.add(product)
        await self._session.commit()
        await self._session.refresh(product)
        return product

    async def get(self, org_id: UUID, product_id: UUID) -> ProductModel | None:
        result = await self._session.execute(
            select(ProductModel).where(
                ProductModel.id == product_id,
                ProductModel.organization_id == org_id,
            )
        )
        return result.scalars().first()

    async def get_by_name(self, org_id: UUID, name: str) -> ProductModel | None:
        result = await self._session.execute(
            select(ProductModel).where(
                ProductModel.organization_id == org_id,
                ProductModel.name == name,
            )
        )
        return result.scalars().first()

    async def search(
        self,
        org_id: UUID,
        name: str | None = None,
        category: str | None = None,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[ProductModel], int]:
        """Return one page of matching products and the total number of matches."""
        query = select(ProductModel).where(ProductModel.organization_id == org_id)
        if name:
            query = query.where(ProductModel.name.ilike(f"%{name}%"))
        if category:
            query = query.where(ProductModel.category == category)
        if min_price is not None:
            query = query.where(ProductModel.price >= min_price)
        if max_price is not None:
            query = query.where(ProductModel.price <= max_price)
        total = await self._session.scalar(select(func.count()).select_from(query.subquery()))
        query = query.order_by(ProductModel.created_at.desc()).offset(offset).limit(limit)
        result = await self._session.execute(query)
        return list(result.scalars().all()), total or 0

    async def update(self, product: ProductModel, **fields: Any) -> ProductModel:
        for key, value in fields.items():
            if hasattr(product, key):
                setattr(product, key, value)
        await self._session.commit()
        await self._session.refresh(product)
        return product

    async def delete(self, product: ProductModel) -> None:
        await self._session.delete(product)
        await self._session.commit()
