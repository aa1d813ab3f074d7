from typing import AsyncContextManager, Callable

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_database_readiness import IDatabaseReadiness


REQUIRED_TABLES = ('products', 'bookings', 'payments')


class DatabaseReadinessImpl(IDatabaseReadiness):
    """Ready once the database answers and the migrated booking tables exist."""

    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]):
        self.session_factory = session_factory
        self._ready = False

    async def is_ready(self) -> bool:
        if self._ready:
            return True
        try:
            async with self.session_factory() as session:
                await session.execute(text('SELECT 1'))
                result = await session.execute(
                    text(
                        'SELECT table_name FROM information_schema.tables '
                        "WHERE table_schema = 'public' AND table_name = ANY(:names)"
                    ),
                    {'names': list(REQUIRED_TABLES)},
                )
                found = {row[0] for row in result.all()}
        except (SQLAlchemyError, OSError) as e:
            Logger.base.warning(f'⏳ [DB] Not ready: {e}')
            return False

        missing = set(REQUIRED_TABLES) - found
        if missing:
            Logger.base.warning(f'⏳ [DB] Waiting for migrations, missing tables: {sorted(missing)}')
            return False

        self._ready = True
        Logger.base.info('✅ [DB] Schema ready')
        return True
