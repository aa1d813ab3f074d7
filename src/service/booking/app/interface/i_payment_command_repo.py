from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from src.service.booking.domain.entity.payment_entity import Payment


class IPaymentCommandRepo(ABC):
    @abstractmethod
    async def create(self, *, payment: Payment) -> Payment:
        pass

    @abstractmethod
    async def update(self, *, payment: Payment) -> Payment:
        pass

    @abstractmethod
    async def get_by_booking_id(self, *, booking_id: UUID) -> Optional[Payment]:
        pass
