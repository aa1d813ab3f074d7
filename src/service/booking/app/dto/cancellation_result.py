from typing import Optional

import attrs

from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.enum.payment_status import PaymentStatus


@attrs.define(frozen=True)
class RefundSummary:
    amount: int  # cents
    status: PaymentStatus


@attrs.define(frozen=True)
class CancellationResult:
    booking: Booking
    refund: Optional[RefundSummary] = None
