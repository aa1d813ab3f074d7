from uuid import UUID

from fastapi import APIRouter, Depends

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.command.complete_booking_use_case import CompleteBookingUseCase
from src.service.booking.app.command.mark_booking_ready_use_case import MarkBookingReadyUseCase
from src.service.booking.driving_adapter.http_controller.auth.role_auth import (
    require_seller_store,
)
from src.service.booking.driving_adapter.http_controller.schema.seller_order_schema import (
    CompletedOrder,
    CompleteOrderRequest,
    CompleteOrderResponse,
    ReadyOrder,
    ReadyOrderResponse,
)


router = APIRouter()


@router.post('/{booking_id}/ready')
@Logger.io
async def mark_order_ready(
    booking_id: UUID,
    store_id: UUID = Depends(require_seller_store),
    use_case: MarkBookingReadyUseCase = Depends(MarkBookingReadyUseCase.depends),
) -> ReadyOrderResponse:
    booking = await use_case.execute(booking_id=booking_id, store_id=store_id)
    return ReadyOrderResponse(
        order=ReadyOrder(id=booking.id, status=booking.status.value, ready_at=booking.ready_at)
    )


@router.post('/{booking_id}/complete')
@Logger.io
async def complete_order(
    booking_id: UUID,
    request: CompleteOrderRequest,
    store_id: UUID = Depends(require_seller_store),
    use_case: CompleteBookingUseCase = Depends(CompleteBookingUseCase.depends),
) -> CompleteOrderResponse:
    booking = await use_case.execute(
        booking_id=booking_id,
        store_id=store_id,
        qr_code_data=request.qr_code_data,
    )
    return CompleteOrderResponse(
        order=CompletedOrder(
            id=booking.id, status=booking.status.value, completed_at=booking.completed_at
        )
    )
