import time
from typing import Any, Callable, Optional, Self
from uuid import UUID

import anyio
from fastapi import Request
from opentelemetry import trace
from uuid_utils.compat import uuid7

from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import (
    CustomBaseError,
    DuplicateBookingError,
    EntityNotFoundError,
    IdempotencyKeyConflictError,
    MissingIdempotencyKeyError,
    OrderNumberCollisionError,
    PaymentFailedError,
    ProductExpiredError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.app.dto.payment_result import CapturePaymentResult
from src.service.booking.app.interface.i_order_number_allocator import IOrderNumberAllocator
from src.service.booking.app.interface.i_payment_gateway import IPaymentGateway
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.entity.payment_entity import Payment
from src.service.booking.domain.entity.product_entity import Product
from src.service.booking.domain.enum.booking_status import BookingStatus
from src.service.booking.domain.value_object.qr_payload import QrPayload


class CreateBookingUseCase:
    """
    Reservation saga: turn a purchase intent into a held, paid booking.

    Flow:
    1. Replay: a booking already stored under the idempotency key is returned as-is
       to the same buyer (DuplicateBookingError when that attempt FAILED or the key
       belongs to another buyer)
    2. Lock the product row (SELECT ... FOR UPDATE) inside one transaction
    3. Validate expiry and availability, reserve stock on the ledger, persist it
    4. Allocate an order number and insert Booking + Payment (both PENDING) inside a
       savepoint; an order-number collision rolls back only the savepoint and retries
       with a suffixed number
    5. Capture payment with "<idempotency key>_payment"
       - declined/timeout: release stock, mark booking and payment FAILED, COMMIT,
         then raise PaymentFailedError
       - success: payment CAPTURED, booking CONFIRMED with its QR payload, COMMIT
    6. Anything else leaving the block rolls the whole transaction back

    Dependencies:
    - uow_factory: opens a fresh unit of work (own session) per call
    - payment_gateway: capture
    - order_number_allocator: per-day sequential numbers
    """

    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        payment_gateway: IPaymentGateway,
        order_number_allocator: IOrderNumberAllocator,
        currency: str = 'USD',
        max_order_number_attempts: int = 3,
        order_number_retry_backoff_seconds: float = 0.05,
    ) -> None:
        self.uow_factory = uow_factory
        self.payment_gateway = payment_gateway
        self.order_number_allocator = order_number_allocator
        self.currency = currency
        self.max_order_number_attempts = max_order_number_attempts
        self.order_number_retry_backoff_seconds = order_number_retry_backoff_seconds
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    def depends(cls, request: Request) -> Self:
        return request.app.state.container.create_booking_use_case()

    @Logger.io
    async def create_booking(
        self,
        *,
        user_id: UUID,
        product_id: UUID,
        quantity: int,
        payment_method_id: Optional[str],
        idempotency_key: Optional[str],
    ) -> Booking:
        """
        Args:
            user_id: Buyer placing the order
            product_id: Product to reserve from
            quantity: Units requested
            payment_method_id: Provider payment method reference
            idempotency_key: Client-supplied natural key of this request (required)

        Returns:
            The CONFIRMED booking, or the previously stored booking on replay

        Raises:
            MissingIdempotencyKeyError, DuplicateBookingError, EntityNotFoundError,
            ProductExpiredError, InvalidStateTransitionError, InsufficientStockError,
            PaymentFailedError
        """
        if not idempotency_key:
            raise MissingIdempotencyKeyError()

        started = time.perf_counter()
        outcome = 'error'
        with self.tracer.start_as_current_span(
            'use_case.create_booking',
            attributes={
                'booking.product_id': str(product_id),
                'booking.quantity': quantity,
                'booking.idempotency_key': idempotency_key,
            },
        ):
            try:
                replay = await self._find_replay(user_id=user_id, idempotency_key=idempotency_key)
                if replay is not None:
                    outcome = 'replayed'
                    return replay

                try:
                    booking = await self._run_saga(
                        user_id=user_id,
                        product_id=product_id,
                        quantity=quantity,
                        payment_method_id=payment_method_id,
                        idempotency_key=idempotency_key,
                    )
                except IdempotencyKeyConflictError:
                    # A concurrent request with the same key committed first
                    Logger.base.warning(
                        f'🔁 [CREATE-BOOKING] Lost idempotency race for key {idempotency_key}'
                    )
                    winner = await self._find_replay(
                        user_id=user_id, idempotency_key=idempotency_key
                    )
                    if winner is None:
                        raise
                    outcome = 'replayed'
                    return winner

                outcome = 'confirmed'
                return booking
            except PaymentFailedError:
                outcome = 'payment_failed'
                raise
            except CustomBaseError:
                outcome = 'rejected'
                raise
            finally:
                metrics.record_booking_request(
                    result=outcome, duration=time.perf_counter() - started
                )

    async def _find_replay(self, *, user_id: UUID, idempotency_key: str) -> Optional[Booking]:
        async with self.uow_factory() as uow:
            existing = await uow.booking_command_repo.get_by_idempotency_key(
                idempotency_key=idempotency_key
            )
        if existing is None:
            return None
        if existing.user_id != user_id:
            # Keys are scoped to the buyer that sent them
            Logger.base.warning(
                f'🚫 [CREATE-BOOKING] Key {idempotency_key} reused by another buyer {user_id}'
            )
            raise DuplicateBookingError(idempotency_key)
        if existing.status == BookingStatus.FAILED:
            raise DuplicateBookingError(idempotency_key)
        Logger.base.info(
            f'♻️ [CREATE-BOOKING] Replaying {existing.order_number} for key {idempotency_key}'
        )
        return existing

    async def _run_saga(
        self,
        *,
        user_id: UUID,
        product_id: UUID,
        quantity: int,
        payment_method_id: Optional[str],
        idempotency_key: str,
    ) -> Booking:
        async with self.uow_factory() as uow:
            product = await uow.product_command_repo.get_by_id_for_update(product_id=product_id)
            if product is None:
                raise EntityNotFoundError('Product', product_id)
            if product.is_expired():
                raise ProductExpiredError(product_id)

            reserved = product.reserve(quantity)
            await uow.product_command_repo.update(product=reserved)
            Logger.base.info(
                f'📦 [CREATE-BOOKING] Reserved {quantity} of {product_id} '
                f'(available {product.quantity_available} -> {reserved.quantity_available})'
            )

            booking, payment = await self._insert_booking_and_payment(
                uow=uow,
                product=reserved,
                user_id=user_id,
                quantity=quantity,
                payment_method_id=payment_method_id,
                idempotency_key=idempotency_key,
            )

            result = await self._capture(booking=booking, payment=payment, user_id=user_id)

            if not result.success:
                reason = result.error or 'Payment declined'
                await uow.product_command_repo.update(product=reserved.release_stock(quantity))
                await uow.booking_command_repo.update(booking=booking.mark_failed())
                await uow.payment_command_repo.update(payment=payment.fail(reason))
                # The failure must be durable before the caller hears about it
                await uow.commit()
                metrics.record_transition(to_status=BookingStatus.FAILED)
                Logger.base.warning(
                    f'💳 [CREATE-BOOKING] {booking.order_number} payment failed, '
                    f'stock released: {reason}'
                )
                raise PaymentFailedError(reason)

            captured = payment.capture(
                result.transaction_id or '', last4=result.last4, card_brand=result.card_brand
            )
            qr_code_data = QrPayload(
                booking_id=booking.id, order_number=booking.order_number
            ).encode()
            confirmed = booking.confirm(qr_code_data=qr_code_data)

            await uow.payment_command_repo.update(payment=captured)
            await uow.booking_command_repo.update(booking=confirmed)
            await uow.commit()

        metrics.record_transition(to_status=BookingStatus.CONFIRMED)
        Logger.base.info(
            f'✅ [CREATE-BOOKING] {confirmed.order_number} confirmed '
            f'(booking={confirmed.id}, user={user_id}, total={confirmed.total_price})'
        )
        return confirmed

    async def _insert_booking_and_payment(
        self,
        *,
        uow: AbstractUnitOfWork,
        product: Product,
        user_id: UUID,
        quantity: int,
        payment_method_id: Optional[str],
        idempotency_key: str,
    ) -> tuple[Booking, Payment]:
        booking_id = uuid7()
        attempt = 1
        while True:
            order_number = await self.order_number_allocator.allocate(attempt=attempt)
            booking = Booking.create(
                id=booking_id,
                order_number=order_number,
                user_id=user_id,
                product_id=product.id,
                store_id=product.store_id,
                quantity=quantity,
                unit_price=product.discounted_price,
                pickup_window=product.pickup_window,
                idempotency_key=idempotency_key,
            )
            payment = Payment.create(
                id=uuid7(),
                booking_id=booking_id,
                amount=booking.total_price,
                currency=self.currency,
                idempotency_key=f'{idempotency_key}_payment',
                payment_method_id=payment_method_id,
            )
            try:
                async with uow.savepoint():
                    booking = await uow.booking_command_repo.create(booking=booking)
                    payment = await uow.payment_command_repo.create(payment=payment)
                return booking, payment
            except OrderNumberCollisionError:
                metrics.order_number_collisions.inc()
                if attempt >= self.max_order_number_attempts:
                    Logger.base.error(
                        f'🚨 [CREATE-BOOKING] Order number still colliding after {attempt} attempts'
                    )
                    raise
                Logger.base.warning(
                    f'⚠️ [CREATE-BOOKING] Order number {order_number} taken, retrying'
                )
                await anyio.sleep(self.order_number_retry_backoff_seconds * attempt)
                attempt += 1

    async def _capture(
        self, *, booking: Booking, payment: Payment, user_id: UUID
    ) -> CapturePaymentResult:
        metadata: dict[str, Any] = {
            'bookingId': str(booking.id),
            'orderNumber': booking.order_number,
            'userId': str(user_id),
        }
        with self.tracer.start_as_current_span(
            'payment.capture', attributes={'booking.order_number': booking.order_number}
        ):
            try:
                result = await self.payment_gateway.capture_payment(
                    amount=payment.amount,
                    currency=payment.currency,
                    payment_method_id=payment.provider_payment_method_id,
                    idempotency_key=payment.idempotency_key,
                    metadata=metadata,
                )
            except Exception as e:
                # Gateways should not raise; if one does, it is a failed capture
                Logger.base.exception(f'💥 [CREATE-BOOKING] Payment gateway raised: {e}')
                result = CapturePaymentResult.failed(str(e) or type(e).__name__)
        metrics.record_payment_operation(operation='capture', success=result.success)
        return result
