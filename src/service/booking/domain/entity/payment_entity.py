from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

import attrs

from src.platform.exception.exceptions import DomainError, InvalidStateTransitionError
from src.platform.logging.loguru_io import Logger
from src.service.booking.domain.enum.payment_status import PaymentStatus


@attrs.define
class Payment:
    id: UUID
    booking_id: UUID
    amount: int  # cents
    currency: str
    idempotency_key: str
    status: PaymentStatus = PaymentStatus.PENDING
    provider_payment_method_id: Optional[str] = None
    provider_tx_id: Optional[str] = None
    refunded_amount: int = 0
    refund_tx_id: Optional[str] = None
    last4: Optional[str] = None
    card_brand: Optional[str] = None
    failure_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        *,
        id: UUID,
        booking_id: UUID,
        amount: int,
        currency: str,
        idempotency_key: str,
        payment_method_id: Optional[str],
    ) -> 'Payment':
        now = datetime.now(timezone.utc)
        return cls(
            id=id,
            booking_id=booking_id,
            amount=amount,
            currency=currency,
            idempotency_key=idempotency_key,
            provider_payment_method_id=payment_method_id,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_captured(self) -> bool:
        return self.status == PaymentStatus.CAPTURED

    @property
    def can_refund(self) -> bool:
        return self.status in (PaymentStatus.CAPTURED, PaymentStatus.PARTIALLY_REFUNDED)

    @property
    def refundable_amount(self) -> int:
        return max(0, self.amount - self.refunded_amount)

    @Logger.io
    def capture(
        self,
        provider_tx_id: str,
        last4: Optional[str] = None,
        card_brand: Optional[str] = None,
    ) -> 'Payment':
        if self.status != PaymentStatus.PENDING:
            raise InvalidStateTransitionError('Payment', self.status, PaymentStatus.CAPTURED)
        return attrs.evolve(
            self,
            status=PaymentStatus.CAPTURED,
            provider_tx_id=provider_tx_id,
            last4=last4 or None,
            card_brand=card_brand or None,
            updated_at=datetime.now(timezone.utc),
        )

    @Logger.io
    def fail(self, reason: str) -> 'Payment':
        if self.status != PaymentStatus.PENDING:
            raise InvalidStateTransitionError('Payment', self.status, PaymentStatus.FAILED)
        return attrs.evolve(
            self,
            status=PaymentStatus.FAILED,
            failure_reason=reason,
            updated_at=datetime.now(timezone.utc),
        )

    @Logger.io
    def refund(self, refund_tx_id: str, amount: Optional[int] = None) -> 'Payment':
        """
        Record a (partial) refund.

        Omitting amount refunds whatever is still refundable. Refunds accumulate;
        the payment flips to REFUNDED once the captured amount is fully returned.
        """
        if not self.can_refund:
            raise InvalidStateTransitionError('Payment', self.status, PaymentStatus.REFUNDED)
        refund_amount = self.refundable_amount if amount is None else amount
        if refund_amount <= 0 or refund_amount > self.refundable_amount:
            raise DomainError(
                f'Refund amount must be between 1 and {self.refundable_amount}, got {refund_amount}'
            )

        refunded = self.refunded_amount + refund_amount
        return attrs.evolve(
            self,
            status=PaymentStatus.REFUNDED
            if refunded >= self.amount
            else PaymentStatus.PARTIALLY_REFUNDED,
            refunded_amount=refunded,
            refund_tx_id=refund_tx_id,
            updated_at=datetime.now(timezone.utc),
        )
