from src.service.booking.driven_adapter.model.booking_model import BookingModel
from src.service.booking.driven_adapter.model.impact_stats_model import (
    BuyerImpactStatsModel,
    StoreImpactStatsModel,
)
from src.service.booking.driven_adapter.model.payment_model import PaymentModel
from src.service.booking.driven_adapter.model.product_model import ProductModel

__all__ = [
    'BookingModel',
    'BuyerImpactStatsModel',
    'PaymentModel',
    'ProductModel',
    'StoreImpactStatsModel',
]
