from typing import List, Optional, Self
from uuid import UUID

from fastapi import Request

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.enum.booking_status import (
    ACTIVE_BOOKING_STATUSES,
    PAST_BOOKING_STATUSES,
)


class ListUserBookingsUseCase:
    def __init__(self, *, booking_query_repo: IBookingQueryRepo) -> None:
        self.booking_query_repo = booking_query_repo

    @classmethod
    def depends(cls, request: Request) -> Self:
        return request.app.state.container.list_user_bookings_use_case()

    @Logger.io
    async def execute(self, *, user_id: UUID, status: Optional[str] = None) -> List[Booking]:
        # status: 'active' | 'past' | None (everything)
        if status == 'active':
            statuses = ACTIVE_BOOKING_STATUSES
        elif status == 'past':
            statuses = PAST_BOOKING_STATUSES
        elif status is None:
            statuses = None
        else:
            raise ValueError(f"status must be 'active' or 'past', got {status!r}")
        return await self.booking_query_repo.list_by_user(user_id=user_id, statuses=statuses)
