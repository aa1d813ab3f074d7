from enum import StrEnum


class BookingStatus(StrEnum):
    PENDING = 'PENDING'
    CONFIRMED = 'CONFIRMED'
    READY = 'READY'
    COMPLETED = 'COMPLETED'
    CANCELLED = 'CANCELLED'
    EXPIRED = 'EXPIRED'
    FAILED = 'FAILED'

    @property
    def label(self) -> str:
        return _LABELS[self]


# Buyer-facing wording
_LABELS = {
    BookingStatus.PENDING: 'Processing',
    BookingStatus.CONFIRMED: 'Paid & Confirmed',
    BookingStatus.READY: 'Ready for Pickup',
    BookingStatus.COMPLETED: 'Completed',
    BookingStatus.CANCELLED: 'Cancelled',
    BookingStatus.EXPIRED: 'Expired',
    BookingStatus.FAILED: 'Failed',
}

ACTIVE_BOOKING_STATUSES = frozenset({BookingStatus.CONFIRMED, BookingStatus.READY})
CANCELLABLE_BOOKING_STATUSES = frozenset(
    {BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.READY}
)
PAST_BOOKING_STATUSES = frozenset(
    {
        BookingStatus.COMPLETED,
        BookingStatus.CANCELLED,
        BookingStatus.EXPIRED,
        BookingStatus.FAILED,
    }
)
