from typing import AsyncContextManager, Callable, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.enum.booking_status import BookingStatus
from src.service.booking.driven_adapter.model.booking_model import BookingModel
from src.service.booking.driven_adapter.repo.entity_mapper import booking_to_entity


class BookingQueryRepoImpl(IBookingQueryRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]):
        self.session_factory = session_factory

    @Logger.io
    async def get_by_id(self, *, booking_id: UUID) -> Optional[Booking]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(BookingModel).where(BookingModel.id == booking_id)
            )
            row = result.scalar_one_or_none()
            return booking_to_entity(row) if row else None

    @Logger.io
    async def list_by_user(
        self, *, user_id: UUID, statuses: Optional[Iterable[BookingStatus]] = None
    ) -> List[Booking]:
        query = select(BookingModel).where(BookingModel.user_id == user_id)
        if statuses is not None:
            query = query.where(BookingModel.status.in_([s.value for s in statuses]))
        query = query.order_by(BookingModel.created_at.desc())

        async with self.session_factory() as session:
            result = await session.execute(query)
            return [booking_to_entity(row) for row in result.scalars().all()]
