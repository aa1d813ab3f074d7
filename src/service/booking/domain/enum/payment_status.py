from enum import StrEnum


class PaymentStatus(StrEnum):
    PENDING = 'PENDING'
    CAPTURED = 'CAPTURED'
    REFUNDED = 'REFUNDED'
    PARTIALLY_REFUNDED = 'PARTIALLY_REFUNDED'
    FAILED = 'FAILED'
