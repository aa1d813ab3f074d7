"""Application layer data transfer objects."""

from src.service.booking.app.dto.cancellation_result import CancellationResult, RefundSummary
from src.service.booking.app.dto.notification import Notification
from src.service.booking.app.dto.payment_result import CapturePaymentResult, RefundPaymentResult
from src.service.booking.app.dto.sweep_report import SweepReport

__all__ = [
    'CancellationResult',
    'CapturePaymentResult',
    'Notification',
    'RefundPaymentResult',
    'RefundSummary',
    'SweepReport',
]
