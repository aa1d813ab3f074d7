from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from opentelemetry import trace

from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto.notification import Notification
from src.service.booking.app.dto.sweep_report import SweepReport
from src.service.booking.app.interface.i_notification_sender import INotificationSender
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.enum.booking_status import BookingStatus
from src.service.booking.domain.enum.notification_type import NotificationType


REMINDER_LEAD_MIN = timedelta(minutes=30)
REMINDER_LEAD_MAX = timedelta(minutes=60)


class SendPickupRemindersUseCase:
    """
    Reminder sweep: nudge buyers whose pickup window closes in 30-60 minutes.

    The sweep runs every 30 minutes, so each booking falls into the
    (now+30m, now+60m] band on exactly one tick.
    """

    JOB = 'pickup_reminder'

    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        notification_sender: INotificationSender,
    ) -> None:
        self.uow_factory = uow_factory
        self.notification_sender = notification_sender
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def execute(self, *, now: Optional[datetime] = None) -> SweepReport:
        now = now or datetime.now(timezone.utc)
        report = SweepReport(job=self.JOB)

        with self.tracer.start_as_current_span('sweep.pickup_reminder'):
            async with self.uow_factory() as uow:
                due = await uow.booking_command_repo.list_ending_between(
                    lower=now + REMINDER_LEAD_MIN,
                    upper=now + REMINDER_LEAD_MAX,
                    statuses=(BookingStatus.CONFIRMED, BookingStatus.READY),
                )

            for booking in due:
                try:
                    await self.notification_sender.send(notification=self._reminder(booking))
                except Exception as e:
                    report.failed += 1
                    Logger.base.exception(
                        f'❌ [REMINDER] Failed to remind {booking.order_number} '
                        f'(booking={booking.id}): {e}'
                    )
                    continue
                report.processed += 1

        if due:
            Logger.base.info(
                f'🔔 [REMINDER] Sent {report.processed} reminder(s), failed={report.failed}'
            )
        return report

    @staticmethod
    def _reminder(booking: Booking) -> Notification:
        deadline = booking.pickup_window.end.strftime('%H:%M')
        return Notification(
            user_id=booking.user_id,
            type=NotificationType.PICKUP_REMINDER,
            title='Pickup Reminder',
            body=f"Don't forget! Pick up your order at the store by {deadline}.",
            data={
                'bookingId': str(booking.id),
                'orderNumber': booking.order_number,
                'storeId': str(booking.store_id),
            },
        )
