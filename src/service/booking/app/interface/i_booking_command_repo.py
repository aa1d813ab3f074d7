from abc import ABC, abstractmethod
from datetime import datetime
from typing import Iterable, List, Optional
from uuid import UUID

from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.enum.booking_status import BookingStatus


class IBookingCommandRepo(ABC):
    """Write-side booking persistence; always used through the unit of work session."""

    @abstractmethod
    async def create(self, *, booking: Booking) -> Booking:
        """
        Insert a new booking and flush it.

        Raises:
            OrderNumberCollisionError: order_number already taken
            IdempotencyKeyConflictError: idempotency_key already taken
        """
        pass

    @abstractmethod
    async def update(self, *, booking: Booking) -> Booking:
        pass

    @abstractmethod
    async def get_by_id(self, *, booking_id: UUID) -> Optional[Booking]:
        pass

    @abstractmethod
    async def get_by_id_for_update(self, *, booking_id: UUID) -> Optional[Booking]:
        pass

    @abstractmethod
    async def get_by_idempotency_key(self, *, idempotency_key: str) -> Optional[Booking]:
        pass

    @abstractmethod
    async def list_ended_before(
        self, *, cutoff: datetime, statuses: Iterable[BookingStatus]
    ) -> List[Booking]:
        """Bookings in statuses whose pickup window closed before cutoff."""
        pass

    @abstractmethod
    async def list_ending_between(
        self, *, lower: datetime, upper: datetime, statuses: Iterable[BookingStatus]
    ) -> List[Booking]:
        """Bookings in statuses whose pickup window closes in (lower, upper]."""
        pass
