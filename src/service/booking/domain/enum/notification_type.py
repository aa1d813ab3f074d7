from enum import StrEnum


class NotificationType(StrEnum):
    ORDER_CONFIRMED = 'ORDER_CONFIRMED'
    ORDER_READY = 'ORDER_READY'
    ORDER_CANCELLED = 'ORDER_CANCELLED'
    ORDER_COMPLETED = 'ORDER_COMPLETED'
    ORDER_EXPIRED = 'ORDER_EXPIRED'
    PICKUP_REMINDER = 'PICKUP_REMINDER'
