from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from src.service.booking.domain.entity.product_entity import Product


class IProductCommandRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, product_id: UUID) -> Optional[Product]:
        pass

    @abstractmethod
    async def get_by_id_for_update(self, *, product_id: UUID) -> Optional[Product]:
        """
        Load a product under an exclusive row lock held until the transaction ends.

        Concurrent callers for the same product block here; plain readers do not.
        """
        pass

    @abstractmethod
    async def update(self, *, product: Product) -> Product:
        pass
