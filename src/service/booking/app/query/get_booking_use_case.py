from typing import Optional, Self
from uuid import UUID

from fastapi import Request

from src.platform.exception.exceptions import EntityNotFoundError, UnauthorizedAccessError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.booking.domain.entity.booking_entity import Booking


class GetBookingUseCase:
    def __init__(self, *, booking_query_repo: IBookingQueryRepo) -> None:
        self.booking_query_repo = booking_query_repo

    @classmethod
    def depends(cls, request: Request) -> Self:
        return request.app.state.container.get_booking_use_case()

    @Logger.io
    async def execute(
        self, *, booking_id: UUID, user_id: UUID, store_id: Optional[UUID] = None
    ) -> Booking:
        """Visible to the buyer who placed it and to the store that fulfils it."""
        booking = await self.booking_query_repo.get_by_id(booking_id=booking_id)
        if booking is None:
            raise EntityNotFoundError('Booking', booking_id)
        if booking.user_id != user_id and (store_id is None or booking.store_id != store_id):
            raise UnauthorizedAccessError('Booking')
        return booking
