"""Application layer interfaces (Ports)"""

from src.service.booking.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.booking.app.interface.i_database_readiness import IDatabaseReadiness
from src.service.booking.app.interface.i_impact_stats_repo import IImpactStatsRepo
from src.service.booking.app.interface.i_notification_sender import INotificationSender
from src.service.booking.app.interface.i_order_number_allocator import IOrderNumberAllocator
from src.service.booking.app.interface.i_payment_command_repo import IPaymentCommandRepo
from src.service.booking.app.interface.i_payment_gateway import IPaymentGateway
from src.service.booking.app.interface.i_product_command_repo import IProductCommandRepo
from src.service.booking.app.interface.i_shared_cache import ISharedCache

__all__ = [
    'IBookingCommandRepo',
    'IBookingQueryRepo',
    'IDatabaseReadiness',
    'IImpactStatsRepo',
    'INotificationSender',
    'IOrderNumberAllocator',
    'IPaymentCommandRepo',
    'IPaymentGateway',
    'IProductCommandRepo',
    'ISharedCache',
]
