from typing import Any, Optional

import anyio
import stripe

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.dto.payment_result import CapturePaymentResult, RefundPaymentResult
from src.service.booking.app.interface.i_payment_gateway import IPaymentGateway


class StripePaymentGateway(IPaymentGateway):
    """
    Stripe PaymentIntent capture and refunds.

    The Stripe SDK is blocking, so calls run in a worker thread. A call that
    outlives timeout_seconds is reported as a failed capture; the idempotency
    key makes a later retry of the same capture safe on Stripe's side.
    """

    def __init__(self, *, secret_key: str, timeout_seconds: float) -> None:
        if not secret_key:
            raise ValueError('STRIPE_SECRET_KEY is required when PAYMENTS_MODE=stripe')
        self.client = stripe.StripeClient(secret_key)
        self.timeout_seconds = timeout_seconds

    @Logger.io(truncate_content=True)
    async def capture_payment(
        self,
        *,
        amount: int,
        currency: str,
        payment_method_id: Optional[str],
        idempotency_key: str,
        metadata: dict[str, Any],
    ) -> CapturePaymentResult:
        if not payment_method_id:
            return CapturePaymentResult.failed('A payment method is required')

        def _capture() -> CapturePaymentResult:
            # Card details come back on the expanded intent; no second call after the charge
            intent = self.client.payment_intents.create(
                params={
                    'amount': amount,
                    'currency': currency.lower(),
                    'payment_method': payment_method_id,
                    'confirm': True,
                    'automatic_payment_methods': {'enabled': True, 'allow_redirects': 'never'},
                    'metadata': {k: str(v) for k, v in metadata.items()},
                    'expand': ['payment_method'],
                },
                options={'idempotency_key': idempotency_key},
            )
            if intent.status != 'succeeded':
                return CapturePaymentResult.failed(f'Payment status: {intent.status}')

            method = intent.payment_method
            card = None if isinstance(method, str) else getattr(method, 'card', None)
            return CapturePaymentResult(
                success=True,
                transaction_id=intent.id,
                last4=getattr(card, 'last4', None),
                card_brand=getattr(card, 'brand', None),
            )

        try:
            with anyio.fail_after(self.timeout_seconds):
                return await anyio.to_thread.run_sync(_capture, abandon_on_cancel=True)
        except TimeoutError:
            Logger.base.error(
                f'⏱️ [PAYMENT] Capture timed out after {self.timeout_seconds}s '
                f'(key={idempotency_key}, booking={metadata.get("bookingId")})'
            )
            return CapturePaymentResult.failed('Payment provider timed out')
        except stripe.StripeError as e:
            Logger.base.error(
                f'💳 [PAYMENT] Capture failed (key={idempotency_key}, '
                f'booking={metadata.get("bookingId")}, code={e.code}): {e.user_message or e}'
            )
            return CapturePaymentResult.failed(e.user_message or str(e))

    @Logger.io
    async def refund_payment(
        self, *, transaction_id: str, amount: Optional[int] = None
    ) -> RefundPaymentResult:
        params: dict[str, Any] = {
            'payment_intent': transaction_id,
            'reason': 'requested_by_customer',
        }
        if amount is not None:
            params['amount'] = amount

        try:
            with anyio.fail_after(self.timeout_seconds):
                refund = await anyio.to_thread.run_sync(
                    lambda: self.client.refunds.create(params=params),  # type: ignore[arg-type]
                    abandon_on_cancel=True,
                )
        except TimeoutError:
            return RefundPaymentResult.failed('Payment provider timed out')
        except stripe.StripeError as e:
            Logger.base.error(f'💳 [PAYMENT] Refund failed for {transaction_id}: {e}')
            return RefundPaymentResult.failed(e.user_message or str(e))
        return RefundPaymentResult(success=True, refund_id=refund.id)
