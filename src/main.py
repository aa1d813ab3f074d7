"""
Production FastAPI Application

Booking API plus the expiration and reminder sweeps, which run in-process on
every instance and coordinate through Kvrocks locks.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.platform.app_factory import create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import cleanup, container
from src.platform.database.orm_db_setting import dispose_engine, get_engine
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.platform.state.kvrocks_client import kvrocks_client


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    Logger.base.info('🚀 [Booking Service] Starting up...')

    tracing = TracingConfig(service_name='surplus-booking')
    tracing.setup()
    tracing.instrument_sqlalchemy(engine=get_engine())
    tracing.instrument_redis()
    Logger.base.info('📊 [Booking Service] Tracing configured')

    # Fail fast if Kvrocks is unreachable
    await kvrocks_client.initialize()
    Logger.base.info('📡 [Booking Service] Kvrocks initialized')

    scheduler = container.booking_scheduler()
    if settings.SCHEDULER_ENABLED:
        scheduler.start()
        Logger.base.info('🗓️ [Booking Service] Sweeps scheduled')

    Logger.base.info('✅ [Booking Service] Ready to serve requests')
    try:
        yield
    finally:
        Logger.base.info('🛑 [Booking Service] Shutting down...')
        scheduler.shutdown()

        await kvrocks_client.disconnect()
        Logger.base.info('📡 [Booking Service] Kvrocks disconnected')

        await dispose_engine()

        tracing.shutdown()
        cleanup()
        Logger.base.info('👋 [Booking Service] Shutdown complete')


app = create_app(lifespan=lifespan)
