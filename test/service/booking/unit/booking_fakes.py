"""
In-memory stand-ins for the booking ports.

InMemoryBookingStore plays the database: committed rows live on the store, each
unit of work stages its writes and only publishes them on commit. Row locks are
real asyncio locks held until the unit of work exits, so concurrent sagas against
one product serialize the way SELECT ... FOR UPDATE makes them.
"""

import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
import copy
from typing import Any, AsyncIterator, Iterable, List, Optional
from uuid import UUID

from uuid_utils.compat import uuid7

from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import (
    EntityNotFoundError,
    IdempotencyKeyConflictError,
    OrderNumberCollisionError,
)
from src.service.booking.app.dto.notification import Notification
from src.service.booking.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.booking.app.interface.i_database_readiness import IDatabaseReadiness
from src.service.booking.app.interface.i_impact_stats_repo import IImpactStatsRepo
from src.service.booking.app.interface.i_notification_sender import INotificationSender
from src.service.booking.app.interface.i_payment_command_repo import IPaymentCommandRepo
from src.service.booking.app.interface.i_product_command_repo import IProductCommandRepo
from src.service.booking.app.interface.i_shared_cache import ISharedCache
from src.service.booking.domain.entity.booking_entity import Booking
from src.service.booking.domain.entity.impact_stats_entity import (
    BuyerImpactDelta,
    StoreImpactDelta,
)
from src.service.booking.domain.entity.payment_entity import Payment
from src.service.booking.domain.entity.product_entity import Product
from src.service.booking.domain.enum.booking_status import BookingStatus
from src.service.booking.domain.enum.payment_status import PaymentStatus
from src.service.booking.domain.enum.product_status import ProductStatus
from src.service.booking.domain.value_object.pickup_window import PickupWindow


# ============================================================================
# Builders
# ============================================================================


def make_window(
    *, starts_in: timedelta = timedelta(hours=1), ends_in: timedelta = timedelta(hours=3)
) -> PickupWindow:
    now = datetime.now(timezone.utc)
    return PickupWindow(start=now + starts_in, end=now + ends_in)


def make_product(
    *,
    quantity_total: int = 5,
    quantity_reserved: int = 0,
    status: ProductStatus = ProductStatus.ACTIVE,
    original_price: int = 1200,
    discounted_price: int = 500,
    store_id: Optional[UUID] = None,
    pickup_window: Optional[PickupWindow] = None,
    expires_at: Optional[datetime] = None,
) -> Product:
    window = pickup_window or make_window()
    return Product(
        id=uuid7(),
        store_id=store_id or uuid7(),
        name='Surprise bag',
        original_price=original_price,
        discounted_price=discounted_price,
        quantity_total=quantity_total,
        quantity_reserved=quantity_reserved,
        pickup_window=window,
        expires_at=expires_at or window.end,
        status=status,
    )


def make_booking(
    *,
    product: Product,
    user_id: Optional[UUID] = None,
    quantity: int = 1,
    status: BookingStatus = BookingStatus.CONFIRMED,
    order_number: str = '#00001',
    idempotency_key: Optional[str] = None,
    pickup_window: Optional[PickupWindow] = None,
) -> Booking:
    booking = Booking.create(
        id=uuid7(),
        order_number=order_number,
        user_id=user_id or uuid7(),
        product_id=product.id,
        store_id=product.store_id,
        quantity=quantity,
        unit_price=product.discounted_price,
        pickup_window=pickup_window or product.pickup_window,
        idempotency_key=idempotency_key or f'key-{uuid7()}',
    )
    booking.status = status
    return booking


def make_captured_payment(*, booking: Booking, tx_id: str = 'txn_1') -> Payment:
    payment = Payment.create(
        id=uuid7(),
        booking_id=booking.id,
        amount=booking.total_price,
        currency='USD',
        idempotency_key=f'{booking.idempotency_key}_payment',
        payment_method_id='pm_card_visa',
    )
    return payment.capture(tx_id, last4='4242', card_brand='visa')


# ============================================================================
# Database
# ============================================================================


class InMemoryBookingStore:
    def __init__(self) -> None:
        self.products: dict[UUID, Product] = {}
        self.bookings: dict[UUID, Booking] = {}
        self.payments: dict[UUID, Payment] = {}
        self.buyer_impact: dict[UUID, dict[str, Any]] = {}
        self.store_impact: dict[UUID, dict[str, Any]] = {}
        self.commits = 0
        self._row_locks: defaultdict[tuple[str, UUID], asyncio.Lock] = defaultdict(asyncio.Lock)

    def unit_of_work(self) -> 'FakeUnitOfWork':
        return FakeUnitOfWork(self)

    def row_lock(self, table: str, row_id: UUID) -> asyncio.Lock:
        return self._row_locks[(table, row_id)]

    def add_product(self, product: Product) -> Product:
        self.products[product.id] = product
        return product

    def add_booking(self, booking: Booking, payment: Optional[Payment] = None) -> Booking:
        self.bookings[booking.id] = booking
        if payment is not None:
            self.payments[payment.id] = payment
        return booking

    def payment_for(self, booking_id: UUID) -> Optional[Payment]:
        return next((p for p in self.payments.values() if p.booking_id == booking_id), None)


class _Staged:
    def __init__(self) -> None:
        self.products: dict[UUID, Product] = {}
        self.bookings: dict[UUID, Booking] = {}
        self.payments: dict[UUID, Payment] = {}
        self.buyer_deltas: list[BuyerImpactDelta] = []
        self.store_deltas: list[StoreImpactDelta] = []


class FakeUnitOfWork(AbstractUnitOfWork):
    def __init__(self, store: InMemoryBookingStore) -> None:
        self.store = store
        self.staged = _Staged()
        self._held: dict[tuple[str, UUID], asyncio.Lock] = {}
        self.product_command_repo = FakeProductCommandRepo(self)
        self.booking_command_repo = FakeBookingCommandRepo(self)
        self.payment_command_repo = FakePaymentCommandRepo(self)
        self.impact_stats_repo = FakeImpactStatsRepo(self)

    async def __aexit__(self, *args) -> None:
        try:
            await super().__aexit__(*args)
        finally:
            for lock in self._held.values():
                lock.release()
            self._held.clear()

    async def lock(self, table: str, row_id: UUID) -> None:
        if (table, row_id) in self._held:
            return
        lock = self.store.row_lock(table, row_id)
        await lock.acquire()
        self._held[(table, row_id)] = lock

    async def _commit(self) -> None:
        self.store.products.update(self.staged.products)
        self.store.bookings.update(self.staged.bookings)
        self.store.payments.update(self.staged.payments)
        for buyer in self.staged.buyer_deltas:
            totals = self.store.buyer_impact.setdefault(
                buyer.user_id, {'meals_saved': 0, 'co2_saved_kg': 0.0, 'money_saved': 0}
            )
            totals['meals_saved'] += buyer.meals_saved
            totals['co2_saved_kg'] += buyer.co2_saved_kg
            totals['money_saved'] += buyer.money_saved
        for store_delta in self.staged.store_deltas:
            totals = self.store.store_impact.setdefault(
                store_delta.store_id, {'items_sold': 0, 'revenue': 0, 'food_saved_kg': 0.0}
            )
            totals['items_sold'] += store_delta.items_sold
            totals['revenue'] += store_delta.revenue
            totals['food_saved_kg'] += store_delta.food_saved_kg
        self.staged = _Staged()
        self.store.commits += 1

    async def rollback(self) -> None:
        self.staged = _Staged()

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        snapshot = copy.copy(self.staged)
        snapshot.products = dict(self.staged.products)
        snapshot.bookings = dict(self.staged.bookings)
        snapshot.payments = dict(self.staged.payments)
        snapshot.buyer_deltas = list(self.staged.buyer_deltas)
        snapshot.store_deltas = list(self.staged.store_deltas)
        try:
            yield
        except BaseException:
            self.staged = snapshot
            raise

    def visible_bookings(self) -> List[Booking]:
        return list((self.store.bookings | self.staged.bookings).values())

    def visible_payments(self) -> List[Payment]:
        return list((self.store.payments | self.staged.payments).values())


class FakeProductCommandRepo(IProductCommandRepo):
    def __init__(self, uow: FakeUnitOfWork) -> None:
        self.uow = uow

    async def get_by_id(self, *, product_id: UUID) -> Optional[Product]:
        return self.uow.staged.products.get(product_id) or self.uow.store.products.get(product_id)

    async def get_by_id_for_update(self, *, product_id: UUID) -> Optional[Product]:
        await self.uow.lock('products', product_id)
        return await self.get_by_id(product_id=product_id)

    async def update(self, *, product: Product) -> Product:
        if await self.get_by_id(product_id=product.id) is None:
            raise EntityNotFoundError('Product', product.id)
        self.uow.staged.products[product.id] = product
        return product


class FakeBookingCommandRepo(IBookingCommandRepo):
    def __init__(self, uow: FakeUnitOfWork) -> None:
        self.uow = uow

    async def create(self, *, booking: Booking) -> Booking:
        for existing in self.uow.visible_bookings():
            if existing.order_number == booking.order_number:
                raise OrderNumberCollisionError(booking.order_number)
            if booking.idempotency_key and existing.idempotency_key == booking.idempotency_key:
                raise IdempotencyKeyConflictError(booking.idempotency_key)
        self.uow.staged.bookings[booking.id] = booking
        return booking

    async def update(self, *, booking: Booking) -> Booking:
        if await self.get_by_id(booking_id=booking.id) is None:
            raise EntityNotFoundError('Booking', booking.id)
        self.uow.staged.bookings[booking.id] = booking
        return booking

    async def get_by_id(self, *, booking_id: UUID) -> Optional[Booking]:
        return self.uow.staged.bookings.get(booking_id) or self.uow.store.bookings.get(booking_id)

    async def get_by_id_for_update(self, *, booking_id: UUID) -> Optional[Booking]:
        await self.uow.lock('bookings', booking_id)
        return await self.get_by_id(booking_id=booking_id)

    async def get_by_idempotency_key(self, *, idempotency_key: str) -> Optional[Booking]:
        return next(
            (b for b in self.uow.visible_bookings() if b.idempotency_key == idempotency_key),
            None,
        )

    async def list_ended_before(
        self, *, cutoff: datetime, statuses: Iterable[BookingStatus]
    ) -> List[Booking]:
        wanted = set(statuses)
        return [
            b
            for b in self.uow.visible_bookings()
            if b.status in wanted and b.pickup_window.end < cutoff
        ]

    async def list_ending_between(
        self, *, lower: datetime, upper: datetime, statuses: Iterable[BookingStatus]
    ) -> List[Booking]:
        wanted = set(statuses)
        return [
            b
            for b in self.uow.visible_bookings()
            if b.status in wanted and b.pickup_window.ends_between(lower, upper)
        ]


class FakePaymentCommandRepo(IPaymentCommandRepo):
    def __init__(self, uow: FakeUnitOfWork) -> None:
        self.uow = uow

    async def create(self, *, payment: Payment) -> Payment:
        self.uow.staged.payments[payment.id] = payment
        return payment

    async def update(self, *, payment: Payment) -> Payment:
        self.uow.staged.payments[payment.id] = payment
        return payment

    async def get_by_booking_id(self, *, booking_id: UUID) -> Optional[Payment]:
        return next((p for p in self.uow.visible_payments() if p.booking_id == booking_id), None)


class FakeImpactStatsRepo(IImpactStatsRepo):
    def __init__(self, uow: FakeUnitOfWork) -> None:
        self.uow = uow

    async def add_buyer_impact(self, *, delta: BuyerImpactDelta) -> None:
        self.uow.staged.buyer_deltas.append(delta)

    async def add_store_impact(self, *, delta: StoreImpactDelta) -> None:
        self.uow.staged.store_deltas.append(delta)


class FakeBookingQueryRepo(IBookingQueryRepo):
    def __init__(self, store: InMemoryBookingStore) -> None:
        self.store = store

    async def get_by_id(self, *, booking_id: UUID) -> Optional[Booking]:
        return self.store.bookings.get(booking_id)

    async def list_by_user(
        self, *, user_id: UUID, statuses: Optional[Iterable[BookingStatus]] = None
    ) -> List[Booking]:
        wanted = set(statuses) if statuses is not None else None
        found = [
            b
            for b in self.store.bookings.values()
            if b.user_id == user_id and (wanted is None or b.status in wanted)
        ]
        return sorted(found, key=lambda b: b.created_at or datetime.min, reverse=True)


# ============================================================================
# Kvrocks / notifications / readiness
# ============================================================================


class FakeSharedCache(ISharedCache):
    def __init__(self) -> None:
        self.values: dict[str, Any] = {}
        self.ttls: dict[str, int] = {}

    async def set_if_not_exists(self, *, key: str, value: str, ttl_seconds: int) -> bool:
        if key in self.values:
            return False
        self.values[key] = value
        self.ttls[key] = ttl_seconds
        return True

    async def delete(self, *, key: str) -> None:
        self.values.pop(key, None)
        self.ttls.pop(key, None)

    async def delete_if_owner(self, *, key: str, value: str) -> bool:
        if self.values.get(key) != value:
            return False
        await self.delete(key=key)
        return True

    async def increment(self, *, key: str) -> int:
        self.values[key] = int(self.values.get(key, 0)) + 1
        return self.values[key]

    async def expire(self, *, key: str, ttl_seconds: int) -> None:
        self.ttls[key] = ttl_seconds


class FakeNotificationSender(INotificationSender):
    def __init__(self) -> None:
        self.sent: list[Notification] = []
        self.fail_for: set[UUID] = set()

    async def send(self, *, notification: Notification) -> None:
        if notification.user_id in self.fail_for:
            raise ConnectionError('notification channel unavailable')
        self.sent.append(notification)


class FakeReadiness(IDatabaseReadiness):
    def __init__(self, ready: bool = True) -> None:
        self.ready = ready

    async def is_ready(self) -> bool:
        return self.ready


def payment_statuses(store: InMemoryBookingStore) -> list[PaymentStatus]:
    return [p.status for p in store.payments.values()]
