from datetime import datetime, timezone
from typing import Callable, Optional

from opentelemetry import trace

from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.app.dto.notification import Notification
from src.service.booking.app.dto.sweep_report import SweepReport
from src.service.booking.app.interface.i_notification_sender import INotificationSender
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.enum.booking_status import BookingStatus
from src.service.booking.domain.enum.notification_type import NotificationType
from src.service.booking.domain.enum.payment_status import PaymentStatus


EXPIRABLE_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.READY)


class ExpireBookingsUseCase:
    """
    Expiration sweep: bookings nobody collected before the pickup window closed.

    Each candidate is handled in its own transaction: the row is re-read under lock,
    re-checked (a buyer may have cancelled or the seller completed it since the scan),
    moved to EXPIRED and its units returned to the product. One bad record is logged
    and counted, never aborts the batch.

    PENDING bookings whose window closed are leftovers of a saga that died between
    insert and capture; they are moved to FAILED and their stock released the same way.
    """

    JOB = 'booking_expiration'

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

        with self.tracer.start_as_current_span('sweep.booking_expiration'):
            async with self.uow_factory() as uow:
                candidates = await uow.booking_command_repo.list_ended_before(
                    cutoff=now,
                    statuses=(*EXPIRABLE_STATUSES, BookingStatus.PENDING),
                )

            if not candidates:
                return report

            Logger.base.info(f'⏰ [EXPIRATION] {len(candidates)} booking(s) past pickup window')
            for candidate in candidates:
                try:
                    expired = await self._expire_one(booking=candidate, now=now)
                except Exception as e:
                    report.failed += 1
                    Logger.base.exception(
                        f'❌ [EXPIRATION] Failed to expire {candidate.order_number} '
                        f'(booking={candidate.id}): {e}'
                    )
                    continue
                if expired is None:
                    continue
                report.processed += 1
                if expired.status != BookingStatus.EXPIRED:
                    continue
                try:
                    await self._notify(booking=expired)
                except Exception as e:
                    # The expiry is already committed
                    Logger.base.warning(
                        f'📭 [EXPIRATION] Could not notify buyer of {expired.order_number}: {e}'
                    )

        Logger.base.info(
            f'✅ [EXPIRATION] Sweep done: processed={report.processed}, failed={report.failed}'
        )
        return report

    async def _expire_one(self, *, booking: Booking, now: datetime) -> Optional[Booking]:
        async with self.uow_factory() as uow:
            current = await uow.booking_command_repo.get_by_id_for_update(booking_id=booking.id)
            if current is None or not current.pickup_window.has_ended(now):
                return None
            if current.status in EXPIRABLE_STATUSES:
                updated = current.mark_expired()
            elif current.status == BookingStatus.PENDING:
                updated = current.mark_failed()
                Logger.base.warning(
                    f'🧹 [EXPIRATION] Stale PENDING {current.order_number} moved to FAILED'
                )
            else:
                # Settled since the scan
                return None

            product = await uow.product_command_repo.get_by_id_for_update(
                product_id=current.product_id
            )
            if product is not None:
                await uow.product_command_repo.update(
                    product=product.release_stock(current.quantity)
                )

            if updated.status == BookingStatus.FAILED:
                payment = await uow.payment_command_repo.get_by_booking_id(booking_id=current.id)
                if payment is not None and payment.status == PaymentStatus.PENDING:
                    await uow.payment_command_repo.update(
                        payment=payment.fail('Reservation abandoned before capture')
                    )

            updated = await uow.booking_command_repo.update(booking=updated)
            await uow.commit()

        metrics.record_transition(to_status=updated.status)
        return updated

    async def _notify(self, *, booking: Booking) -> None:
        await self.notification_sender.send(
            notification=Notification(
                user_id=booking.user_id,
                type=NotificationType.ORDER_EXPIRED,
                title='Order Expired',
                body=(
                    f'Your order {booking.order_number} has expired. '
                    'The pickup window has passed.'
                ),
                data={'bookingId': str(booking.id), 'orderNumber': booking.order_number},
            )
        )
