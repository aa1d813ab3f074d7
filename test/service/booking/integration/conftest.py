"""
Postgres fixtures for the booking integration suite

Setup (once per session):
- Create the test database if missing, reset the public schema, run alembic to head
- Skip the whole suite when Postgres cannot be reached

Per test:
- TRUNCATE every booking table before the test
- Dispose the engine afterwards (it is bound to the test's event loop)
"""

import asyncio
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path

from alembic import command
from alembic.config import Config
import pytest
import pytest_asyncio
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import create_async_engine

from src.platform.config.core_setting import settings
from src.platform.database.orm_db_setting import dispose_engine, get_session_maker
from src.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from src.service.booking.domain.entity.product_entity import Product
from src.service.booking.driven_adapter.model.product_model import ProductModel


PROJECT_ROOT = Path(__file__).resolve().parents[4]
BOOKING_TABLES = ('payments', 'bookings', 'products', 'buyer_impact_stats', 'store_impact_stats')


async def _create_test_database() -> None:
    server_url = settings.DATABASE_URL_ASYNC.replace(f'/{settings.POSTGRES_DB}', '/postgres')
    engine = create_async_engine(
        server_url, isolation_level='AUTOCOMMIT', connect_args={'timeout': 5}
    )
    try:
        async with engine.connect() as conn:
            exists = await conn.scalar(
                text('SELECT 1 FROM pg_database WHERE datname = :name'),
                {'name': settings.POSTGRES_DB},
            )
            if not exists:
                await conn.execute(text(f'CREATE DATABASE "{settings.POSTGRES_DB}"'))
    finally:
        await engine.dispose()

    reset_engine = create_async_engine(settings.DATABASE_URL_ASYNC)
    try:
        async with reset_engine.begin() as conn:
            await conn.execute(text('DROP SCHEMA public CASCADE'))
            await conn.execute(text('CREATE SCHEMA public'))
    finally:
        await reset_engine.dispose()


@pytest.fixture(scope='session')
def postgres_schema() -> None:
    try:
        asyncio.run(_create_test_database())
    except (OSError, DBAPIError) as e:
        pytest.skip(f'Postgres not reachable at {settings.POSTGRES_SERVER}: {e}')

    alembic_cfg = Config(str(PROJECT_ROOT / 'alembic.ini'))
    alembic_cfg.set_main_option('script_location', str(PROJECT_ROOT / 'src/platform/alembic'))
    command.upgrade(alembic_cfg, 'head')


@pytest_asyncio.fixture
async def clean_database(postgres_schema: None) -> AsyncGenerator[None, None]:
    async with get_session_maker()() as session:
        await session.execute(text(f'TRUNCATE {", ".join(BOOKING_TABLES)} CASCADE'))
        await session.commit()
    yield
    await dispose_engine()


@pytest.fixture
def db_uow_factory(clean_database: None) -> Callable[[], SqlAlchemyUnitOfWork]:
    return lambda: SqlAlchemyUnitOfWork(session_factory=get_session_maker())


@pytest.fixture
def insert_product(clean_database: None) -> Callable[[Product], Awaitable[Product]]:
    """Products belong to the catalog; tests seed them straight into the table."""

    async def _insert(product: Product) -> Product:
        async with get_session_maker()() as session:
            session.add(
                ProductModel(
                    id=product.id,
                    store_id=product.store_id,
                    name=product.name,
                    original_price=product.original_price,
                    discounted_price=product.discounted_price,
                    quantity=product.quantity_total,
                    quantity_reserved=product.quantity_reserved,
                    pickup_window_start=product.pickup_window.start,
                    pickup_window_end=product.pickup_window.end,
                    expires_at=product.expires_at,
                    status=product.status.value,
                )
            )
            await session.commit()
        return product

    return _insert
