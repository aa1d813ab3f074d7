from typing import Any, Optional
from uuid import uuid4

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto.payment_result import CapturePaymentResult, RefundPaymentResult
from src.service.booking.app.interface.i_payment_gateway import IPaymentGateway


class MockPaymentGateway(IPaymentGateway):
    """
    Development gateway: every capture succeeds with a fake visa ending 4242.

    Captures are remembered per idempotency key, so a retried capture returns
    the original transaction the way a real provider would.
    """

    def __init__(self) -> None:
        self._captures: dict[str, CapturePaymentResult] = {}
        Logger.base.warning('⚠️ [PAYMENT] MOCK PAYMENTS ENABLED - no real charges are made')

    @property
    def capture_count(self) -> int:
        return len(self._captures)

    async def capture_payment(
        self,
        *,
        amount: int,
        currency: str,
        payment_method_id: Optional[str],
        idempotency_key: str,
        metadata: dict[str, Any],
    ) -> CapturePaymentResult:
        if idempotency_key in self._captures:
            return self._captures[idempotency_key]

        result = CapturePaymentResult(
            success=True,
            transaction_id=f'mock_txn_{uuid4().hex[:16]}',
            last4='4242',
            card_brand='visa',
        )
        self._captures[idempotency_key] = result
        Logger.base.info(
            f'✅ [PAYMENT] Mock capture {amount} {currency} '
            f'(booking={metadata.get("bookingId")}, tx={result.transaction_id})'
        )
        return result

    async def refund_payment(
        self, *, transaction_id: str, amount: Optional[int] = None
    ) -> RefundPaymentResult:
        refund_id = f'mock_refund_{uuid4().hex[:16]}'
        Logger.base.info(f'✅ [PAYMENT] Mock refund {amount or "full"} for {transaction_id}')
        return RefundPaymentResult(success=True, refund_id=refund_id)
