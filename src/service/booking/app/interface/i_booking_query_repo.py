from abc import ABC, abstractmethod
from typing import Iterable, List, Optional
from uuid import UUID

from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.enum.booking_status import BookingStatus


class IBookingQueryRepo(ABC):
    """Repository interface for booking read operations"""

    @abstractmethod
    async def get_by_id(self, *, booking_id: UUID) -> Optional[Booking]:
        pass

    @abstractmethod
    async def list_by_user(
        self, *, user_id: UUID, statuses: Optional[Iterable[BookingStatus]] = None
    ) -> List[Booking]:
        pass
