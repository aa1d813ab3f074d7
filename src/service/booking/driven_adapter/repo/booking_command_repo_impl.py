from datetime import datetime
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.exception.exceptions import (
    EntityNotFoundError,
    IdempotencyKeyConflictError,
    OrderNumberCollisionError,
)
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.enum.booking_status import BookingStatus
from src.service.booking.driven_adapter.model.booking_model import (
    IDEMPOTENCY_KEY_UNIQUE,
    ORDER_NUMBER_UNIQUE,
    BookingModel,
)
from src.service.booking.driven_adapter.repo.entity_mapper import (
    booking_to_entity,
    booking_values,
)


def _violated_constraint(error: IntegrityError) -> str:
    # asyncpg exposes constraint_name on the driver exception chained under orig
    driver_error = getattr(error.orig, '__cause__', None)
    name = getattr(driver_error, 'constraint_name', None)
    return name or str(error.orig)


class BookingCommandRepoImpl(IBookingCommandRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @Logger.io
    async def create(self, *, booking: Booking) -> Booking:
        model = BookingModel(id=booking.id, **booking_values(booking))
        self.session.add(model)
        try:
            await self.session.flush()
        except IntegrityError as e:
            constraint = _violated_constraint(e)
            if ORDER_NUMBER_UNIQUE in constraint:
                raise OrderNumberCollisionError(booking.order_number) from e
            if IDEMPOTENCY_KEY_UNIQUE in constraint and booking.idempotency_key:
                raise IdempotencyKeyConflictError(booking.idempotency_key) from e
            raise
        await self.session.refresh(model)
        return booking_to_entity(model)

    @Logger.io
    async def update(self, *, booking: Booking) -> Booking:
        result = await self.session.execute(
            update(BookingModel)
            .where(BookingModel.id == booking.id)
            .values(**booking_values(booking))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise EntityNotFoundError('Booking', booking.id)
        return booking

    @Logger.io
    async def get_by_id(self, *, booking_id: UUID) -> Optional[Booking]:
        result = await self.session.execute(
            select(BookingModel)
            .where(BookingModel.id == booking_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return booking_to_entity(row) if row else None

    @Logger.io
    async def get_by_id_for_update(self, *, booking_id: UUID) -> Optional[Booking]:
        result = await self.session.execute(
            select(BookingModel)
            .where(BookingModel.id == booking_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return booking_to_entity(row) if row else None

    @Logger.io
    async def get_by_idempotency_key(self, *, idempotency_key: str) -> Optional[Booking]:
        result = await self.session.execute(
            select(BookingModel)
            .where(BookingModel.idempotency_key == idempotency_key)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        return booking_to_entity(row) if row else None

    @Logger.io
    async def list_ended_before(
        self, *, cutoff: datetime, statuses: Iterable[BookingStatus]
    ) -> List[Booking]:
        result = await self.session.execute(
            select(BookingModel)
            .where(
                BookingModel.status.in_([s.value for s in statuses]),
                BookingModel.pickup_window_end < cutoff,
            )
            .order_by(BookingModel.pickup_window_end)
        )
        return [booking_to_entity(row) for row in result.scalars().all()]

    @Logger.io
    async def list_ending_between(
        self, *, lower: datetime, upper: datetime, statuses: Iterable[BookingStatus]
    ) -> List[Booking]:
        result = await self.session.execute(
            select(BookingModel)
            .where(
                BookingModel.status.in_([s.value for s in statuses]),
                BookingModel.pickup_window_end > lower,
                BookingModel.pickup_window_end <= upper,
            )
            .order_by(BookingModel.pickup_window_end)
        )
        return [booking_to_entity(row) for row in result.scalars().all()]
