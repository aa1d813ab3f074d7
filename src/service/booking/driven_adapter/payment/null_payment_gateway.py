from typing import Any, Optional

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto.payment_result import CapturePaymentResult, RefundPaymentResult
from src.service.booking.app.interface.i_payment_gateway import IPaymentGateway


PAYMENTS_DISABLED_MESSAGE = (
    'Payments are currently disabled. Please try again later or contact support.'
)


class NullPaymentGateway(IPaymentGateway):
    """Used when PAYMENTS_MODE=disabled: every call returns a structured failure."""

    async def capture_payment(
        self,
        *,
        amount: int,
        currency: str,
        payment_method_id: Optional[str],
        idempotency_key: str,
        metadata: dict[str, Any],
    ) -> CapturePaymentResult:
        Logger.base.warning(
            f'🚫 [PAYMENT] Capture refused, payments disabled (key={idempotency_key})'
        )
        return CapturePaymentResult.failed(PAYMENTS_DISABLED_MESSAGE)

    async def refund_payment(
        self, *, transaction_id: str, amount: Optional[int] = None
    ) -> RefundPaymentResult:
        Logger.base.warning(f'🚫 [PAYMENT] Refund refused, payments disabled (tx={transaction_id})')
        return RefundPaymentResult.failed(PAYMENTS_DISABLED_MESSAGE)
