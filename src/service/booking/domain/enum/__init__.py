from src.service.booking.domain.enum.booking_status import BookingStatus
from src.service.booking.domain.enum.notification_type import NotificationType
from src.service.booking.domain.enum.payment_status import PaymentStatus
from src.service.booking.domain.enum.product_status import ProductStatus

__all__ = ['BookingStatus', 'NotificationType', 'PaymentStatus', 'ProductStatus']
