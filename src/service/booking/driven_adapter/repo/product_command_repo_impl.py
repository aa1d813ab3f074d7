from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.exception.exceptions import EntityNotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_product_command_repo import IProductCommandRepo
from src.service.booking.domain.entity.product_entity import Product
from src.service.booking.driven_adapter.model.product_model import ProductModel
from src.service.booking.driven_adapter.repo.entity_mapper import (
    product_ledger_values,
    product_to_entity,
)


class ProductCommandRepoImpl(IProductCommandRepo):
    """Only the ledger columns (quantity, quantity_reserved, status) are ever written here."""

    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @Logger.io
    async def get_by_id(self, *, product_id: UUID) -> Optional[Product]:
        result = await self.session.execute(
            select(ProductModel)
            .where(ProductModel.id == product_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return product_to_entity(row) if row else None

    @Logger.io
    async def get_by_id_for_update(self, *, product_id: UUID) -> Optional[Product]:
        result = await self.session.execute(
            select(ProductModel)
            .where(ProductModel.id == product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return product_to_entity(row) if row else None

    @Logger.io
    async def update(self, *, product: Product) -> Product:
        result = await self.session.execute(
            update(ProductModel)
            .where(ProductModel.id == product.id)
            .values(**product_ledger_values(product))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise EntityNotFoundError('Product', product.id)
        return product
