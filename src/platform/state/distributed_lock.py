"""
Distributed lock on top of the shared cache.

Acquire is a single atomic "set if not exists with expiry"; release deletes the key
only while it still carries this holder's value, so a holder whose TTL ran out
never removes a lock that another instance has since taken.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
import os
import socket
from typing import TYPE_CHECKING, AsyncIterator, Optional
from uuid import uuid4

from src.platform.logging.loguru_io import Logger


if TYPE_CHECKING:
    from src.service.booking.app.interface.i_shared_cache import ISharedCache


def _owner_marker() -> str:
    started_at = datetime.now(timezone.utc).isoformat()
    return f'{socket.gethostname()}:{os.getpid()}:{uuid4().hex[:8]}:{started_at}'


class DistributedLock:
    def __init__(self, *, cache: 'ISharedCache') -> None:
        self.cache = cache
        self.lock_value: Optional[str] = None

    async def acquire_lock(self, *, key: str, ttl: int) -> bool:
        lock_value = _owner_marker()
        acquired = await self.cache.set_if_not_exists(key=key, value=lock_value, ttl_seconds=ttl)
        if acquired:
            self.lock_value = lock_value
            Logger.base.debug(f'🔒 [LOCK] Acquired lock: {key} (ttl={ttl}s)')
        else:
            Logger.base.debug(f'⏳ [LOCK] Failed to acquire lock: {key} (already locked)')
        return acquired

    async def release_lock(self, *, key: str) -> bool:
        if not self.lock_value:
            Logger.base.warning(f'⚠️ [LOCK] No lock value to release: {key}')
            return False
        try:
            released = await self.cache.delete_if_owner(key=key, value=self.lock_value)
        finally:
            self.lock_value = None
        if released:
            Logger.base.debug(f'🔓 [LOCK] Released lock: {key}')
        else:
            Logger.base.warning(
                f'⚠️ [LOCK] Failed to release lock: {key} (ownership mismatch or expired)'
            )
        return released

    @asynccontextmanager
    async def hold(self, *, key: str, ttl: int) -> AsyncIterator[bool]:
        """
        Yield whether the lock was won; when it was, release it on exit no matter
        how the block ends.
        """
        acquired = await self.acquire_lock(key=key, ttl=ttl)
        try:
            yield acquired
        finally:
            if acquired:
                try:
                    await self.release_lock(key=key)
                except Exception as e:
                    # TTL still bounds the lock
                    Logger.base.error(f'❌ [LOCK] Error releasing lock {key}: {e}')
