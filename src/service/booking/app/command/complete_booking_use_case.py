from typing import Callable, Self
from uuid import UUID

from fastapi import Request

from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import (
    EntityNotFoundError,
    InvalidQrCodeError,
    UnauthorizedAccessError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.entity.impact_stats_entity import (
    BuyerImpactDelta,
    StoreImpactDelta,
)
from src.service.booking.domain.enum.booking_status import BookingStatus
from src.service.booking.domain.value_object.qr_payload import QrPayload


class CompleteBookingUseCase:
    """
    Seller scans the buyer's QR code at pickup.

    Flow:
    1. Parse the QR payload (JSON, legacy MAZZA:..., or bare UUID) and check it names
       the booking being completed
    2. Lock the booking, verify it belongs to the seller's store, apply COMPLETED
       (only CONFIRMED/READY)
    3. confirm_sale on the product: the units leave both total and reserved
    4. Add the pickup to buyer and store impact totals
    5. Commit
    """

    def __init__(self, *, uow_factory: Callable[[], AbstractUnitOfWork]) -> None:
        self.uow_factory = uow_factory

    @classmethod
    def depends(cls, request: Request) -> Self:
        return request.app.state.container.complete_booking_use_case()

    @Logger.io
    async def execute(self, *, booking_id: UUID, store_id: UUID, qr_code_data: str) -> Booking:
        qr = QrPayload.parse(qr_code_data)
        if qr.booking_id != booking_id:
            raise InvalidQrCodeError('QR code does not belong to this order')

        async with self.uow_factory() as uow:
            booking = await uow.booking_command_repo.get_by_id_for_update(booking_id=booking_id)
            if booking is None:
                raise EntityNotFoundError('Booking', booking_id)
            if not qr.matches(booking_id=booking.id, order_number=booking.order_number):
                raise InvalidQrCodeError('QR code does not belong to this order')
            if booking.store_id != store_id:
                raise UnauthorizedAccessError('Booking')

            completed = booking.complete()

            product = await uow.product_command_repo.get_by_id_for_update(
                product_id=booking.product_id
            )
            original_price = booking.unit_price
            if product is not None:
                original_price = product.original_price
                await uow.product_command_repo.update(
                    product=product.confirm_sale(booking.quantity)
                )

            await uow.impact_stats_repo.add_buyer_impact(
                delta=BuyerImpactDelta.for_pickup(
                    user_id=booking.user_id,
                    quantity=booking.quantity,
                    original_price=original_price,
                    unit_price=booking.unit_price,
                )
            )
            await uow.impact_stats_repo.add_store_impact(
                delta=StoreImpactDelta.for_pickup(
                    store_id=booking.store_id,
                    quantity=booking.quantity,
                    total_price=booking.total_price,
                )
            )

            completed = await uow.booking_command_repo.update(booking=completed)
            await uow.commit()

        metrics.record_transition(to_status=BookingStatus.COMPLETED)
        Logger.base.info(f'🎉 [COMPLETE] {completed.order_number} picked up at store {store_id}')
        return completed
