from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

import attrs

from src.platform.exception.exceptions import (
    DomainError,
    InsufficientStockError,
    InvalidStateTransitionError,
)
from src.platform.logging.loguru_io import Logger
from src.service.booking.domain.enum.product_status import ProductStatus
from src.service.booking.domain.value_object.pickup_window import PickupWindow


def _validate_positive(quantity: int) -> None:
    if quantity <= 0:
        raise DomainError('quantity must be a positive integer')


@attrs.define
class Product:
    """
    Perishable inventory unit and its reservation ledger.

    quantity_reserved always stays within [0, quantity_total]; the check runs on
    every construction, including the copies produced by each ledger operation.
    """

    id: UUID
    store_id: UUID
    name: str
    original_price: int  # cents
    discounted_price: int  # cents
    quantity_total: int
    quantity_reserved: int
    pickup_window: PickupWindow
    expires_at: datetime
    status: ProductStatus = ProductStatus.DRAFT
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __attrs_post_init__(self) -> None:
        if not 0 <= self.quantity_reserved <= self.quantity_total:
            raise DomainError(
                f'Product {self.id} ledger out of range: '
                f'reserved={self.quantity_reserved}, total={self.quantity_total}',
                500,
            )

    @property
    def quantity_available(self) -> int:
        return self.quantity_total - self.quantity_reserved

    @property
    def is_sold_out(self) -> bool:
        return self.quantity_available <= 0

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.now(timezone.utc)) > self.expires_at

    def _evolve(self, **changes) -> 'Product':
        return attrs.evolve(self, updated_at=datetime.now(timezone.utc), **changes)

    @Logger.io
    def reserve(self, quantity: int) -> 'Product':
        _validate_positive(quantity)
        if self.status not in (ProductStatus.ACTIVE, ProductStatus.SOLD_OUT):
            raise InvalidStateTransitionError('Product', self.status, 'reserve')
        # SOLD_OUT has nothing available, so it always lands here
        if quantity > self.quantity_available:
            raise InsufficientStockError(self.id, quantity, self.quantity_available)

        reserved = self.quantity_reserved + quantity
        status = (
            ProductStatus.SOLD_OUT if self.quantity_total - reserved == 0 else self.status
        )
        return self._evolve(quantity_reserved=reserved, status=status)

    @Logger.io
    def release_stock(self, quantity: int) -> 'Product':
        """Return reserved units. Over-release clamps at zero."""
        _validate_positive(quantity)
        reserved = max(0, self.quantity_reserved - quantity)
        status = self.status
        if status == ProductStatus.SOLD_OUT and self.quantity_total - reserved > 0:
            status = ProductStatus.ACTIVE
        return self._evolve(quantity_reserved=reserved, status=status)

    @Logger.io
    def confirm_sale(self, quantity: int) -> 'Product':
        """Consume reserved units for good: both total and reserved shrink."""
        _validate_positive(quantity)
        consumed = min(quantity, self.quantity_reserved)
        return self._evolve(
            quantity_total=self.quantity_total - consumed,
            quantity_reserved=self.quantity_reserved - consumed,
        )

    @Logger.io
    def restock(self, quantity: int) -> 'Product':
        _validate_positive(quantity)
        total = self.quantity_total + quantity
        status = self.status
        if status == ProductStatus.SOLD_OUT and total - self.quantity_reserved > 0:
            status = ProductStatus.ACTIVE
        return self._evolve(quantity_total=total, status=status)

    @Logger.io
    def publish(self) -> 'Product':
        if self.status != ProductStatus.DRAFT:
            raise InvalidStateTransitionError('Product', self.status, ProductStatus.ACTIVE)
        return self._evolve(
            status=ProductStatus.SOLD_OUT if self.is_sold_out else ProductStatus.ACTIVE
        )

    @Logger.io
    def mark_expired(self) -> 'Product':
        if self.status not in (ProductStatus.ACTIVE, ProductStatus.SOLD_OUT):
            return self
        return self._evolve(status=ProductStatus.EXPIRED)

    @Logger.io
    def deactivate(self) -> 'Product':
        if self.status == ProductStatus.DRAFT:
            raise InvalidStateTransitionError('Product', self.status, ProductStatus.DEACTIVATED)
        return self._evolve(status=ProductStatus.DEACTIVATED)

    @Logger.io
    def reactivate(self) -> 'Product':
        if self.status != ProductStatus.DEACTIVATED:
            raise InvalidStateTransitionError('Product', self.status, ProductStatus.ACTIVE)
        return self._evolve(
            status=ProductStatus.SOLD_OUT if self.is_sold_out else ProductStatus.ACTIVE
        )
