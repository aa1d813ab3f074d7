from typing import Optional

import attrs


@attrs.define(frozen=True)
class CapturePaymentResult:
    """
    Outcome of a capture call.

    Gateways never raise for a declined or unreachable capture; they return
    success=False with a human-readable error instead.
    """

    success: bool
    transaction_id: Optional[str] = None
    last4: Optional[str] = None
    card_brand: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str) -> 'CapturePaymentResult':
        return cls(success=False, error=error)


@attrs.define(frozen=True)
class RefundPaymentResult:
    success: bool
    refund_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str) -> 'RefundPaymentResult':
        return cls(success=False, error=error)
