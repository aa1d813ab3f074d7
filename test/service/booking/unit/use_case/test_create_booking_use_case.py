"""
Unit tests for CreateBookingUseCase (reservation saga)

Test Focus:
1. Happy path: stock reserved, booking CONFIRMED with QR, payment CAPTURED
2. N concurrent requests for K units: exactly K succeed
3. Same idempotency key: one booking, one charge
4. Declined payment: durable FAILED state, availability restored, retry rejected
5. Order-number collision: retried with a suffixed number inside a savepoint
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import orjson
import pytest
from uuid_utils.compat import uuid7

from src.platform.exception.exceptions import (
    DuplicateBookingError,
    EntityNotFoundError,
    InsufficientStockError,
    MissingIdempotencyKeyError,
    OrderNumberCollisionError,
    PaymentFailedError,
    ProductExpiredError,
)
from src.service.booking.app.command.create_booking_use_case import CreateBookingUseCase
from src.service.booking.app.dto.payment_result import CapturePaymentResult
from src.service.booking.domain.enum.booking_status import BookingStatus
from src.service.booking.domain.enum.payment_status import PaymentStatus
from src.service.booking.domain.enum.product_status import ProductStatus
from src.service.booking.driven_adapter.payment.mock_payment_gateway import MockPaymentGateway
from src.service.booking.driven_adapter.payment.null_payment_gateway import (
    PAYMENTS_DISABLED_MESSAGE,
    NullPaymentGateway,
)
from src.service.booking.driven_adapter.state.order_number_allocator_impl import (
    OrderNumberAllocatorImpl,
)
from test.service.booking.unit.booking_fakes import make_booking, make_product, make_window


@pytest.fixture
def gateway() -> MockPaymentGateway:
    return MockPaymentGateway()


@pytest.fixture
def allocator(shared_cache) -> OrderNumberAllocatorImpl:
    return OrderNumberAllocatorImpl(cache=shared_cache, counter_ttl_seconds=172800)


@pytest.fixture
def use_case(uow_factory, gateway, allocator) -> CreateBookingUseCase:
    return CreateBookingUseCase(
        uow_factory=uow_factory,
        payment_gateway=gateway,
        order_number_allocator=allocator,
        order_number_retry_backoff_seconds=0,
    )


BUYER_ID = uuid7()


async def _book(use_case, product, *, quantity=1, key=None, user_id=None):
    return await use_case.create_booking(
        user_id=user_id or BUYER_ID,
        product_id=product.id,
        quantity=quantity,
        payment_method_id='pm_card_visa',
        idempotency_key=key or f'key-{uuid7()}',
    )


@pytest.mark.unit
class TestCreateBookingHappyPath:
    @pytest.mark.asyncio
    async def test_confirms_booking_and_captures_payment(self, use_case, store, gateway):
        # Given: 5 units at 500 cents
        product = store.add_product(make_product(quantity_total=5, discounted_price=500))
        user_id = uuid7()

        # When
        booking = await _book(use_case, product, quantity=2, key='order-1', user_id=user_id)

        # Then: booking confirmed with a QR naming itself
        assert booking.status == BookingStatus.CONFIRMED
        assert booking.order_number == '#00001'
        assert booking.total_price == 1000
        assert booking.user_id == user_id
        assert booking.confirmed_at is not None
        assert orjson.loads(booking.qr_code_data) == {
            'orderNumber': '#00001',
            'bookingId': str(booking.id),
        }

        # And: the reservation is committed on the ledger
        assert store.products[product.id].quantity_reserved == 2
        assert store.bookings[booking.id].status == BookingStatus.CONFIRMED

        # And: payment captured under "<key>_payment"
        payment = store.payment_for(booking.id)
        assert payment.status == PaymentStatus.CAPTURED
        assert payment.idempotency_key == 'order-1_payment'
        assert payment.amount == 1000
        assert payment.last4 == '4242'
        assert gateway.capture_count == 1

    @pytest.mark.asyncio
    async def test_capture_receives_booking_metadata(self, uow_factory, allocator, store):
        product = store.add_product(make_product())
        gateway = AsyncMock()
        gateway.capture_payment.return_value = CapturePaymentResult(
            success=True, transaction_id='pi_1', last4='1881', card_brand='visa'
        )
        use_case = CreateBookingUseCase(
            uow_factory=uow_factory,
            payment_gateway=gateway,
            order_number_allocator=allocator,
            currency='EUR',
        )
        user_id = uuid7()

        booking = await _book(use_case, product, key='k-meta', user_id=user_id)

        kwargs = gateway.capture_payment.await_args.kwargs
        assert kwargs['currency'] == 'EUR'
        assert kwargs['idempotency_key'] == 'k-meta_payment'
        assert kwargs['payment_method_id'] == 'pm_card_visa'
        assert kwargs['metadata'] == {
            'bookingId': str(booking.id),
            'orderNumber': booking.order_number,
            'userId': str(user_id),
        }

    @pytest.mark.asyncio
    async def test_last_unit_sells_product_out(self, use_case, store):
        product = store.add_product(make_product(quantity_total=1))

        await _book(use_case, product)

        assert store.products[product.id].status == ProductStatus.SOLD_OUT


@pytest.mark.unit
class TestCreateBookingRejections:
    @pytest.mark.asyncio
    async def test_missing_idempotency_key(self, use_case, store):
        product = store.add_product(make_product())

        with pytest.raises(MissingIdempotencyKeyError):
            await use_case.create_booking(
                user_id=uuid7(),
                product_id=product.id,
                quantity=1,
                payment_method_id='pm_card_visa',
                idempotency_key=None,
            )

    @pytest.mark.asyncio
    async def test_unknown_product(self, use_case):
        with pytest.raises(EntityNotFoundError):
            await use_case.create_booking(
                user_id=uuid7(),
                product_id=uuid7(),
                quantity=1,
                payment_method_id='pm_card_visa',
                idempotency_key='k',
            )

    @pytest.mark.asyncio
    async def test_expired_product(self, use_case, store, gateway):
        now = datetime.now(timezone.utc)
        product = store.add_product(
            make_product(
                pickup_window=make_window(
                    starts_in=timedelta(hours=-3), ends_in=timedelta(hours=-1)
                ),
                expires_at=now - timedelta(minutes=1),
            )
        )

        with pytest.raises(ProductExpiredError):
            await _book(use_case, product)

        assert store.bookings == {}
        assert gateway.capture_count == 0

    @pytest.mark.asyncio
    async def test_insufficient_stock_leaves_nothing_behind(self, use_case, store, gateway):
        product = store.add_product(make_product(quantity_total=2))

        with pytest.raises(InsufficientStockError) as exc_info:
            await _book(use_case, product, quantity=3)

        assert exc_info.value.requested == 3
        assert exc_info.value.available == 2
        assert store.products[product.id].quantity_reserved == 0
        assert store.bookings == {}
        assert store.payments == {}
        assert gateway.capture_count == 0


@pytest.mark.unit
class TestConcurrentReservations:
    @pytest.mark.asyncio
    @pytest.mark.parametrize('attempts, units', [(10, 3), (5, 5), (8, 1)])
    async def test_exactly_k_of_n_succeed(self, use_case, store, gateway, attempts, units):
        # Given: K units and N buyers hitting the product at once
        product = store.add_product(make_product(quantity_total=units))

        # When
        results = await asyncio.gather(
            *(_book(use_case, product) for _ in range(attempts)), return_exceptions=True
        )

        # Then
        confirmed = [r for r in results if not isinstance(r, BaseException)]
        rejected = [r for r in results if isinstance(r, BaseException)]
        assert len(confirmed) == units
        assert len(rejected) == attempts - units
        assert all(isinstance(e, InsufficientStockError) for e in rejected)

        final = store.products[product.id]
        assert final.quantity_reserved == units
        assert final.status == ProductStatus.SOLD_OUT
        assert len({b.order_number for b in confirmed}) == units
        assert gateway.capture_count == units


@pytest.mark.unit
class TestIdempotency:
    @pytest.mark.asyncio
    async def test_same_key_twice_yields_one_booking_and_one_charge(
        self, use_case, store, gateway
    ):
        product = store.add_product(make_product(quantity_total=5))

        first = await _book(use_case, product, key='same-key')
        second = await _book(use_case, product, key='same-key')

        assert second.id == first.id
        assert len(store.bookings) == 1
        assert gateway.capture_count == 1
        assert store.products[product.id].quantity_reserved == 1

    @pytest.mark.asyncio
    async def test_concurrent_same_key_returns_the_winner(self, use_case, store, gateway):
        product = store.add_product(make_product(quantity_total=5))

        first, second = await asyncio.gather(
            _book(use_case, product, key='race-key'), _book(use_case, product, key='race-key')
        )

        assert first.id == second.id
        assert len(store.bookings) == 1
        assert gateway.capture_count == 1
        # Loser's reservation was rolled back with its transaction
        assert store.products[product.id].quantity_reserved == 1

    @pytest.mark.asyncio
    async def test_key_of_another_buyer_is_not_replayed(self, use_case, store, gateway):
        # Given: a confirmed booking made by one buyer
        product = store.add_product(make_product(quantity_total=5))
        owner_booking = await _book(use_case, product, key='shared-key', user_id=uuid7())

        # When: a different buyer sends the same key
        with pytest.raises(DuplicateBookingError):
            await _book(use_case, product, key='shared-key', user_id=uuid7())

        # Then: nothing leaked, nothing new reserved or charged
        assert list(store.bookings) == [owner_booking.id]
        assert gateway.capture_count == 1
        assert store.products[product.id].quantity_reserved == 1

    @pytest.mark.asyncio
    async def test_concurrent_same_key_from_two_buyers(self, use_case, store, gateway):
        product = store.add_product(make_product(quantity_total=5))

        results = await asyncio.gather(
            _book(use_case, product, key='race-key', user_id=uuid7()),
            _book(use_case, product, key='race-key', user_id=uuid7()),
            return_exceptions=True,
        )

        confirmed = [r for r in results if not isinstance(r, BaseException)]
        rejected = [r for r in results if isinstance(r, BaseException)]
        assert len(confirmed) == 1
        assert len(rejected) == 1
        assert isinstance(rejected[0], DuplicateBookingError)
        assert store.products[product.id].quantity_reserved == 1


@pytest.mark.unit
class TestPaymentFailure:
    @pytest.mark.asyncio
    async def test_declined_payment_is_durable_and_restores_availability(
        self, uow_factory, allocator, store
    ):
        # Given
        product = store.add_product(make_product(quantity_total=3))
        available_before = product.quantity_available
        use_case = CreateBookingUseCase(
            uow_factory=uow_factory,
            payment_gateway=NullPaymentGateway(),
            order_number_allocator=allocator,
        )

        # When
        with pytest.raises(PaymentFailedError) as exc_info:
            await _book(use_case, product, key='declined')

        # Then: 422 carrying the gateway reason
        assert exc_info.value.status_code == 422
        assert exc_info.value.reason == PAYMENTS_DISABLED_MESSAGE

        # And: FAILED state was committed, not rolled back
        (booking,) = store.bookings.values()
        assert booking.status == BookingStatus.FAILED
        payment = store.payment_for(booking.id)
        assert payment.status == PaymentStatus.FAILED
        assert payment.failure_reason == PAYMENTS_DISABLED_MESSAGE

        # And: availability is exactly what it was
        assert store.products[product.id].quantity_available == available_before
        assert store.products[product.id].status == ProductStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_retry_after_failed_outcome_is_duplicate(self, uow_factory, allocator, store):
        product = store.add_product(make_product())
        use_case = CreateBookingUseCase(
            uow_factory=uow_factory,
            payment_gateway=NullPaymentGateway(),
            order_number_allocator=allocator,
        )
        with pytest.raises(PaymentFailedError):
            await _book(use_case, product, key='declined')

        with pytest.raises(DuplicateBookingError):
            await _book(use_case, product, key='declined')

    @pytest.mark.asyncio
    async def test_gateway_exception_is_treated_as_decline(self, uow_factory, allocator, store):
        product = store.add_product(make_product(quantity_total=2))
        gateway = AsyncMock()
        gateway.capture_payment.side_effect = TimeoutError('provider timed out')
        use_case = CreateBookingUseCase(
            uow_factory=uow_factory, payment_gateway=gateway, order_number_allocator=allocator
        )

        with pytest.raises(PaymentFailedError, match='provider timed out'):
            await _book(use_case, product)

        assert store.products[product.id].quantity_reserved == 0


@pytest.mark.unit
class TestOrderNumberCollision:
    @pytest.mark.asyncio
    async def test_collision_retries_with_suffix_and_persists_once(
        self, use_case, store, shared_cache
    ):
        # Given: "#00001" already taken (counter and DB out of sync)
        product = store.add_product(make_product(quantity_total=5))
        store.add_booking(make_booking(product=product, order_number='#00001'))

        # When
        booking = await _book(use_case, product, key='collide')

        # Then: second attempt, suffixed number
        assert booking.order_number.startswith('#00002-')
        assert len(booking.order_number) == len('#00002-ABC')
        assert [b.idempotency_key for b in store.bookings.values()].count('collide') == 1
        assert len(store.payments) == 1
        assert store.products[product.id].quantity_reserved == 1

    @pytest.mark.asyncio
    async def test_collision_exhausts_attempts_and_rolls_back(self, store):
        product = store.add_product(make_product(quantity_total=5))
        allocator = AsyncMock()
        allocator.allocate.return_value = '#00001'
        store.add_booking(make_booking(product=product, order_number='#00001'))
        use_case = CreateBookingUseCase(
            uow_factory=store.unit_of_work,
            payment_gateway=MockPaymentGateway(),
            order_number_allocator=allocator,
            max_order_number_attempts=3,
            order_number_retry_backoff_seconds=0,
        )

        with pytest.raises(OrderNumberCollisionError):
            await _book(use_case, product)

        assert allocator.allocate.await_count == 3
        assert [c.kwargs['attempt'] for c in allocator.allocate.await_args_list] == [1, 2, 3]
        assert len(store.bookings) == 1
        assert store.products[product.id].quantity_reserved == 0
