from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Header, Query, status
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.command.cancel_booking_use_case import CancelBookingUseCase
from src.service.booking.app.command.create_booking_use_case import CreateBookingUseCase
from src.service.booking.app.query.get_booking_use_case import GetBookingUseCase
from src.service.booking.app.query.list_user_bookings_use_case import ListUserBookingsUseCase
from src.service.booking.driving_adapter.http_controller.auth.jwt_auth import (
    AuthenticatedUser,
    get_current_user,
)
from src.service.booking.driving_adapter.http_controller.auth.role_auth import require_buyer
from src.service.booking.driving_adapter.http_controller.schema.booking_schema import (
    BookingCreateRequest,
    BookingListResponse,
    BookingResponse,
    CancelBookingRequest,
    CancelBookingResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def create_booking(
    request: BookingCreateRequest,
    idempotency_key: Optional[str] = Header(None, alias='Idempotency-Key'),
    current_user: AuthenticatedUser = Depends(require_buyer),
    use_case: CreateBookingUseCase = Depends(CreateBookingUseCase.depends),
) -> BookingResponse:
    with tracer.start_as_current_span('controller.create_booking') as span:
        span.set_attribute('product_id', str(request.product_id))
        span.set_attribute('quantity', request.quantity)
        span.set_attribute('user_id', str(current_user.id))

        booking = await use_case.create_booking(
            user_id=current_user.id,
            product_id=request.product_id,
            quantity=request.quantity,
            payment_method_id=request.payment_method_id,
            idempotency_key=idempotency_key,
        )

        span.set_attribute('booking.id', str(booking.id))
        return BookingResponse.from_entity(booking)


@router.get('')
@Logger.io
async def list_my_bookings(
    status_filter: Optional[Literal['active', 'past']] = Query(None, alias='status'),
    current_user: AuthenticatedUser = Depends(require_buyer),
    use_case: ListUserBookingsUseCase = Depends(ListUserBookingsUseCase.depends),
) -> BookingListResponse:
    bookings = await use_case.execute(user_id=current_user.id, status=status_filter)
    return BookingListResponse(bookings=[BookingResponse.from_entity(b) for b in bookings])


@router.get('/{booking_id}')
@Logger.io
async def get_booking(
    booking_id: UUID,
    current_user: AuthenticatedUser = Depends(get_current_user),
    use_case: GetBookingUseCase = Depends(GetBookingUseCase.depends),
) -> BookingResponse:
    booking = await use_case.execute(
        booking_id=booking_id, user_id=current_user.id, store_id=current_user.store_id
    )
    return BookingResponse.from_entity(booking)


@router.post('/{booking_id}/cancel', status_code=status.HTTP_200_OK)
@Logger.io
async def cancel_booking(
    booking_id: UUID,
    request: Optional[CancelBookingRequest] = Body(None),
    current_user: AuthenticatedUser = Depends(require_buyer),
    use_case: CancelBookingUseCase = Depends(CancelBookingUseCase.depends),
) -> CancelBookingResponse:
    result = await use_case.execute(
        booking_id=booking_id,
        actor_id=current_user.id,
        reason=request.reason if request else None,
    )
    return CancelBookingResponse.from_result(result)
