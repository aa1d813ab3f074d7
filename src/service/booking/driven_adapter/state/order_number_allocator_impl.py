from datetime import datetime, timezone
import secrets
import string

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_order_number_allocator import IOrderNumberAllocator
from src.service.booking.app.interface.i_shared_cache import ISharedCache


ORDER_COUNTER_KEY = 'order_number:{day}'
_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
_SUFFIX_LENGTH = 3


def format_order_number(sequence: int) -> str:
    return f'#{sequence:05d}'


class OrderNumberAllocatorImpl(IOrderNumberAllocator):
    """
    Per-day sequential order numbers from an atomic counter in the shared cache.

    The counter key is dated (UTC) and expires after counter_ttl_seconds, so each
    day restarts at #00001.
    """

    def __init__(self, *, cache: ISharedCache, counter_ttl_seconds: int) -> None:
        self.cache = cache
        self.counter_ttl_seconds = counter_ttl_seconds

    @Logger.io
    async def allocate(self, *, attempt: int = 1) -> str:
        key = ORDER_COUNTER_KEY.format(day=datetime.now(timezone.utc).strftime('%Y-%m-%d'))
        sequence = await self.cache.increment(key=key)
        if sequence == 1:
            await self.cache.expire(key=key, ttl_seconds=self.counter_ttl_seconds)

        order_number = format_order_number(sequence)
        if attempt > 1:
            suffix = ''.join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LENGTH))
            order_number = f'{order_number}-{suffix}'
            Logger.base.warning(
                f'🔁 [ORDER-NUMBER] Retry {attempt} after collision, using {order_number}'
            )
        return order_number
