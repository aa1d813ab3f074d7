from typing import Callable, Optional, Self
from uuid import UUID

from fastapi import Request

from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import EntityNotFoundError, UnauthorizedAccessError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.app.dto.cancellation_result import CancellationResult, RefundSummary
from src.service.booking.app.interface.i_payment_gateway import IPaymentGateway
from src.service.booking.domain.enum.booking_status import BookingStatus


class CancelBookingUseCase:
    """
    Buyer cancels their own booking.

    Flow:
    1. Lock the booking row, check ownership, apply the CANCELLED transition
       (only PENDING/CONFIRMED/READY may cancel)
    2. Release the reserved units back to the product
    3. If the payment was captured, refund what is still refundable. A refund the
       gateway rejects is logged for manual reconciliation and does not block the
       cancellation
    4. Commit
    """

    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        payment_gateway: IPaymentGateway,
    ) -> None:
        self.uow_factory = uow_factory
        self.payment_gateway = payment_gateway

    @classmethod
    def depends(cls, request: Request) -> Self:
        return request.app.state.container.cancel_booking_use_case()

    @Logger.io
    async def execute(
        self, *, booking_id: UUID, actor_id: UUID, reason: Optional[str] = None
    ) -> CancellationResult:
        async with self.uow_factory() as uow:
            booking = await uow.booking_command_repo.get_by_id_for_update(booking_id=booking_id)
            if booking is None:
                raise EntityNotFoundError('Booking', booking_id)
            if booking.user_id != actor_id:
                raise UnauthorizedAccessError('Booking')

            cancelled = booking.cancel(reason)

            product = await uow.product_command_repo.get_by_id_for_update(
                product_id=booking.product_id
            )
            if product is not None:
                await uow.product_command_repo.update(
                    product=product.release_stock(booking.quantity)
                )
            else:
                Logger.base.warning(
                    f'⚠️ [CANCEL] Product {booking.product_id} missing, no stock to release'
                )

            refund: Optional[RefundSummary] = None
            payment = await uow.payment_command_repo.get_by_booking_id(booking_id=booking.id)
            if payment is not None and payment.can_refund and payment.provider_tx_id:
                amount = payment.refundable_amount
                result = await self.payment_gateway.refund_payment(
                    transaction_id=payment.provider_tx_id, amount=amount
                )
                metrics.record_payment_operation(operation='refund', success=result.success)
                if result.success:
                    payment = payment.refund(result.refund_id or '', amount)
                    await uow.payment_command_repo.update(payment=payment)
                else:
                    Logger.base.error(
                        f'🧾 [CANCEL] Refund failed for {booking.order_number} '
                        f'(tx={payment.provider_tx_id}, amount={amount}): {result.error}. '
                        'Manual reconciliation required'
                    )
                refund = RefundSummary(amount=amount, status=payment.status)

            cancelled = await uow.booking_command_repo.update(booking=cancelled)
            await uow.commit()

        metrics.record_transition(to_status=BookingStatus.CANCELLED)
        Logger.base.info(f'🛑 [CANCEL] {cancelled.order_number} cancelled by {actor_id}')
        return CancellationResult(booking=cancelled, refund=refund)
