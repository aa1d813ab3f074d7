from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.service.booking.app.dto.cancellation_result import CancellationResult
from src.service.booking.domain.entity.booking_entity import Booking


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BookingCreateRequest(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            'example': {
                'productId': '01934f2a-8b7e-7c3d-9a1b-2c3d4e5f6a7b',
                'quantity': 2,
                'paymentMethodId': 'pm_card_visa',
            }
        },
    )

    product_id: UUID
    quantity: int = Field(gt=0)
    payment_method_id: Optional[str] = None


class BookingResponse(CamelModel):
    id: UUID
    order_number: str
    status: str
    status_label: str
    user_id: UUID
    product_id: UUID
    store_id: UUID
    quantity: int
    unit_price: int
    total_price: int
    pickup_window_start: datetime
    pickup_window_end: datetime
    qr_code_data: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    ready_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    expired_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, booking: Booking) -> 'BookingResponse':
        return cls(
            id=booking.id,
            order_number=booking.order_number,
            status=booking.status.value,
            status_label=booking.status_label,
            user_id=booking.user_id,
            product_id=booking.product_id,
            store_id=booking.store_id,
            quantity=booking.quantity,
            unit_price=booking.unit_price,
            total_price=booking.total_price,
            pickup_window_start=booking.pickup_window.start,
            pickup_window_end=booking.pickup_window.end,
            qr_code_data=booking.qr_code_data,
            cancellation_reason=booking.cancellation_reason,
            created_at=booking.created_at,
            confirmed_at=booking.confirmed_at,
            ready_at=booking.ready_at,
            completed_at=booking.completed_at,
            cancelled_at=booking.cancelled_at,
            expired_at=booking.expired_at,
        )


class BookingListResponse(CamelModel):
    bookings: List[BookingResponse]


class CancelBookingRequest(CamelModel):
    reason: Optional[str] = Field(default=None, max_length=500)


class RefundResponse(CamelModel):
    amount: int
    status: str


class CancelledBookingResponse(CamelModel):
    id: UUID
    status: str
    refund: Optional[RefundResponse] = None


class CancelBookingResponse(CamelModel):
    booking: CancelledBookingResponse

    @classmethod
    def from_result(cls, result: CancellationResult) -> 'CancelBookingResponse':
        refund = (
            RefundResponse(amount=result.refund.amount, status=result.refund.status.value)
            if result.refund
            else None
        )
        return cls(
            booking=CancelledBookingResponse(
                id=result.booking.id, status=result.booking.status.value, refund=refund
            )
        )
