from abc import ABC, abstractmethod
from typing import Any, Optional

from src.service.booking.app.dto.payment_result import CapturePaymentResult, RefundPaymentResult


class IPaymentGateway(ABC):
    """
    External payment provider.

    Implementations convert every provider error (decline, timeout, network)
    into a result with success=False; they do not raise.
    """

    @abstractmethod
    async def capture_payment(
        self,
        *,
        amount: int,
        currency: str,
        payment_method_id: Optional[str],
        idempotency_key: str,
        metadata: dict[str, Any],
    ) -> CapturePaymentResult:
        pass

    @abstractmethod
    async def refund_payment(
        self, *, transaction_id: str, amount: Optional[int] = None
    ) -> RefundPaymentResult:
        pass
