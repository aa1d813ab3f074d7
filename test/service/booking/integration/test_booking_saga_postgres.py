"""
Reservation saga against a real Postgres

Test Focus:
1. Order-number collision: the savepoint rolls back only the failed insert, the
   retry with a suffixed number commits in the same transaction
2. Row lock: N concurrent reservers on K units give exactly K bookings
3. Declined payment: FAILED booking and payment are committed, stock restored
4. Same idempotency key racing: the unique index decides, one booking survives
"""

import asyncio

import pytest
from sqlalchemy import func, select
from uuid_utils.compat import uuid7

from src.platform.database.orm_db_setting import get_session_maker
from src.platform.exception.exceptions import (
    InsufficientStockError,
    OrderNumberCollisionError,
    PaymentFailedError,
)
from src.service.booking.app.command.create_booking_use_case import CreateBookingUseCase
from src.service.booking.domain.enum.booking_status import BookingStatus
from src.service.booking.domain.enum.payment_status import PaymentStatus
from src.service.booking.domain.enum.product_status import ProductStatus
from src.service.booking.driven_adapter.model.booking_model import BookingModel
from src.service.booking.driven_adapter.model.payment_model import PaymentModel
from src.service.booking.driven_adapter.payment.mock_payment_gateway import MockPaymentGateway
from src.service.booking.driven_adapter.payment.null_payment_gateway import NullPaymentGateway
from src.service.booking.driven_adapter.state.order_number_allocator_impl import (
    OrderNumberAllocatorImpl,
)
from test.service.booking.unit.booking_fakes import FakeSharedCache, make_booking, make_product


def _use_case(uow_factory, gateway=None) -> CreateBookingUseCase:
    return CreateBookingUseCase(
        uow_factory=uow_factory,
        payment_gateway=gateway or MockPaymentGateway(),
        order_number_allocator=OrderNumberAllocatorImpl(
            cache=FakeSharedCache(), counter_ttl_seconds=172800
        ),
        order_number_retry_backoff_seconds=0,
    )


async def _book(use_case, product, *, key, user_id=None, quantity=1):
    return await use_case.create_booking(
        user_id=user_id or uuid7(),
        product_id=product.id,
        quantity=quantity,
        payment_method_id='pm_card_visa',
        idempotency_key=key,
    )


async def _load_product(uow_factory, product_id):
    async with uow_factory() as uow:
        return await uow.product_command_repo.get_by_id(product_id=product_id)


async def _count(model, *where) -> int:
    async with get_session_maker()() as session:
        return await session.scalar(select(func.count()).select_from(model).where(*where))


@pytest.mark.integration
class TestOrderNumberCollision:
    @pytest.mark.asyncio
    async def test_collision_retries_inside_the_same_transaction(
        self, db_uow_factory, insert_product
    ):
        # Given: '#00001' is already taken while the day counter still starts at 1
        product = await insert_product(make_product(quantity_total=3))
        async with db_uow_factory() as uow:
            await uow.booking_command_repo.create(
                booking=make_booking(product=product, order_number='#00001')
            )
            await uow.commit()

        # When
        booking = await _book(_use_case(db_uow_factory), product, key='collide')

        # Then: persisted once, with a suffixed number, stock and payment committed
        assert booking.status == BookingStatus.CONFIRMED
        assert booking.order_number.startswith('#00002-')
        assert await _count(BookingModel, BookingModel.idempotency_key == 'collide') == 1
        assert await _count(BookingModel) == 2
        assert await _count(PaymentModel, PaymentModel.status == PaymentStatus.CAPTURED) == 1
        stored = await _load_product(db_uow_factory, product.id)
        assert stored.quantity_reserved == 1

    @pytest.mark.asyncio
    async def test_outer_transaction_survives_a_rolled_back_savepoint(
        self, db_uow_factory, insert_product
    ):
        product = await insert_product(make_product(quantity_total=3))
        async with db_uow_factory() as uow:
            await uow.booking_command_repo.create(
                booking=make_booking(product=product, order_number='#00001')
            )
            await uow.commit()

        async with db_uow_factory() as uow:
            locked = await uow.product_command_repo.get_by_id_for_update(product_id=product.id)
            await uow.product_command_repo.update(product=locked.reserve(2))
            with pytest.raises(OrderNumberCollisionError):
                async with uow.savepoint():
                    await uow.booking_command_repo.create(
                        booking=make_booking(product=product, order_number='#00001')
                    )
            # Work done before the savepoint is still there and commits
            await uow.commit()

        stored = await _load_product(db_uow_factory, product.id)
        assert stored.quantity_reserved == 2
        assert await _count(BookingModel) == 1


@pytest.mark.integration
class TestRowLockSerializesReservers:
    @pytest.mark.asyncio
    @pytest.mark.parametrize('attempts, units', [(8, 3), (5, 1)])
    async def test_n_concurrent_reservers_on_k_units(
        self, db_uow_factory, insert_product, attempts, units
    ):
        # Given
        product = await insert_product(make_product(quantity_total=units))
        use_case = _use_case(db_uow_factory)

        # When
        results = await asyncio.gather(
            *(_book(use_case, product, key=f'buyer-{i}') for i in range(attempts)),
            return_exceptions=True,
        )

        # Then
        confirmed = [r for r in results if not isinstance(r, BaseException)]
        rejected = [r for r in results if isinstance(r, BaseException)]
        assert len(confirmed) == units
        assert len(rejected) == attempts - units
        assert all(isinstance(e, InsufficientStockError) for e in rejected)

        stored = await _load_product(db_uow_factory, product.id)
        assert stored.quantity_reserved == units
        assert stored.status == ProductStatus.SOLD_OUT
        assert await _count(BookingModel) == units


@pytest.mark.integration
class TestDeclinedPaymentIsDurable:
    @pytest.mark.asyncio
    async def test_failed_outcome_is_committed_and_stock_restored(
        self, db_uow_factory, insert_product
    ):
        product = await insert_product(make_product(quantity_total=2))

        with pytest.raises(PaymentFailedError):
            await _book(_use_case(db_uow_factory, NullPaymentGateway()), product, key='declined')

        async with db_uow_factory() as uow:
            booking = await uow.booking_command_repo.get_by_idempotency_key(
                idempotency_key='declined'
            )
        assert booking.status == BookingStatus.FAILED
        assert await _count(PaymentModel, PaymentModel.status == PaymentStatus.FAILED) == 1
        stored = await _load_product(db_uow_factory, product.id)
        assert stored.quantity_reserved == 0
        assert stored.status == ProductStatus.ACTIVE


@pytest.mark.integration
class TestIdempotencyKeyRace:
    @pytest.mark.asyncio
    async def test_same_key_racing_leaves_one_booking(self, db_uow_factory, insert_product):
        product = await insert_product(make_product(quantity_total=5))
        use_case = _use_case(db_uow_factory)
        buyer_id = uuid7()

        first, second = await asyncio.gather(
            _book(use_case, product, key='race-key', user_id=buyer_id),
            _book(use_case, product, key='race-key', user_id=buyer_id),
        )

        assert first.id == second.id
        assert await _count(BookingModel) == 1
        stored = await _load_product(db_uow_factory, product.id)
        assert stored.quantity_reserved == 1
