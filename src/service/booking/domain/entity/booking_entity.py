from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

import attrs

from src.platform.exception.exceptions import DomainError, InvalidStateTransitionError
from src.platform.logging.loguru_io import Logger
from src.service.booking.domain.enum.booking_status import (
    ACTIVE_BOOKING_STATUSES,
    CANCELLABLE_BOOKING_STATUSES,
    BookingStatus,
)
from src.service.booking.domain.value_object.pickup_window import PickupWindow


# Legal moves only; anything else is an InvalidStateTransitionError
_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset(
        {BookingStatus.CONFIRMED, BookingStatus.FAILED, BookingStatus.CANCELLED}
    ),
    BookingStatus.CONFIRMED: frozenset(
        {
            BookingStatus.READY,
            BookingStatus.COMPLETED,
            BookingStatus.CANCELLED,
            BookingStatus.EXPIRED,
        }
    ),
    BookingStatus.READY: frozenset(
        {BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.EXPIRED}
    ),
}


@attrs.define
class Booking:
    id: UUID
    order_number: str
    user_id: UUID
    product_id: UUID
    store_id: UUID
    quantity: int
    unit_price: int  # cents
    total_price: int  # cents
    pickup_window: PickupWindow
    idempotency_key: Optional[str] = None
    status: BookingStatus = BookingStatus.PENDING
    qr_code_data: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    ready_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    expired_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        id: UUID,
        order_number: str,
        user_id: UUID,
        product_id: UUID,
        store_id: UUID,
        quantity: int,
        unit_price: int,
        pickup_window: PickupWindow,
        idempotency_key: Optional[str],
    ) -> 'Booking':
        if quantity <= 0:
            raise DomainError('quantity must be a positive integer')
        if unit_price < 0:
            raise DomainError('unit_price must not be negative')

        now = datetime.now(timezone.utc)
        return cls(
            id=id,
            order_number=order_number,
            user_id=user_id,
            product_id=product_id,
            store_id=store_id,
            quantity=quantity,
            unit_price=unit_price,
            total_price=unit_price * quantity,
            pickup_window=pickup_window,
            idempotency_key=idempotency_key,
            status=BookingStatus.PENDING,
            created_at=now,
            updated_at=now,
        )

    @property
    def status_label(self) -> str:
        return self.status.label

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_BOOKING_STATUSES

    @property
    def can_cancel(self) -> bool:
        return self.status in CANCELLABLE_BOOKING_STATUSES

    def _transition(self, target: BookingStatus, *, at: datetime, **changes) -> 'Booking':
        if target not in _TRANSITIONS.get(self.status, frozenset()):
            raise InvalidStateTransitionError('Booking', self.status, target)
        return attrs.evolve(self, status=target, updated_at=at, **changes)

    @Logger.io
    def confirm(self, *, qr_code_data: Optional[str] = None) -> 'Booking':
        now = datetime.now(timezone.utc)
        return self._transition(
            BookingStatus.CONFIRMED, at=now, confirmed_at=now, qr_code_data=qr_code_data
        )

    @Logger.io
    def mark_ready(self) -> 'Booking':
        now = datetime.now(timezone.utc)
        return self._transition(BookingStatus.READY, at=now, ready_at=now)

    @Logger.io
    def complete(self) -> 'Booking':
        now = datetime.now(timezone.utc)
        return self._transition(BookingStatus.COMPLETED, at=now, completed_at=now)

    @Logger.io
    def cancel(self, reason: Optional[str] = None) -> 'Booking':
        now = datetime.now(timezone.utc)
        return self._transition(
            BookingStatus.CANCELLED, at=now, cancelled_at=now, cancellation_reason=reason or None
        )

    @Logger.io
    def mark_expired(self) -> 'Booking':
        now = datetime.now(timezone.utc)
        return self._transition(BookingStatus.EXPIRED, at=now, expired_at=now)

    @Logger.io
    def mark_failed(self) -> 'Booking':
        return self._transition(BookingStatus.FAILED, at=datetime.now(timezone.utc))
