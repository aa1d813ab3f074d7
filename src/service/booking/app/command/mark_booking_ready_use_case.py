from typing import Callable, Self
from uuid import UUID

from fastapi import Request

from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import EntityNotFoundError, UnauthorizedAccessError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.app.dto.notification import Notification
from src.service.booking.app.interface.i_notification_sender import INotificationSender
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.enum.booking_status import BookingStatus
from src.service.booking.domain.enum.notification_type import NotificationType


class MarkBookingReadyUseCase:
    """Seller flags a CONFIRMED order as packed; the buyer is told it can be collected."""

    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        notification_sender: INotificationSender,
    ) -> None:
        self.uow_factory = uow_factory
        self.notification_sender = notification_sender

    @classmethod
    def depends(cls, request: Request) -> Self:
        return request.app.state.container.mark_booking_ready_use_case()

    @Logger.io
    async def execute(self, *, booking_id: UUID, store_id: UUID) -> Booking:
        async with self.uow_factory() as uow:
            booking = await uow.booking_command_repo.get_by_id_for_update(booking_id=booking_id)
            if booking is None:
                raise EntityNotFoundError('Booking', booking_id)
            if booking.store_id != store_id:
                raise UnauthorizedAccessError('Booking')

            ready = await uow.booking_command_repo.update(booking=booking.mark_ready())
            await uow.commit()

        metrics.record_transition(to_status=BookingStatus.READY)
        try:
            await self.notification_sender.send(
                notification=Notification(
                    user_id=ready.user_id,
                    type=NotificationType.ORDER_READY,
                    title='Order Ready',
                    body=f'Your order {ready.order_number} is ready for pickup.',
                    data={'bookingId': str(ready.id), 'orderNumber': ready.order_number},
                )
            )
        except Exception as e:
            Logger.base.warning(
                f'📭 [READY] Could not notify buyer of {ready.order_number}: {e}'
            )
        return ready
