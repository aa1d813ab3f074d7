from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.platform.state.kvrocks_client import kvrocks_client
from src.service.booking.app.interface.i_shared_cache import ISharedCache


# Compare-and-delete: only the current holder may remove the key
_DELETE_IF_OWNER_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class KvrocksSharedCacheImpl(ISharedCache):
    def __init__(self, *, key_prefix: str = settings.KVROCKS_KEY_PREFIX) -> None:
        self.key_prefix = key_prefix

    def _key(self, key: str) -> str:
        return f'{self.key_prefix}{key}'

    @Logger.io
    async def set_if_not_exists(self, *, key: str, value: str, ttl_seconds: int) -> bool:
        client = kvrocks_client.get_client()
        # SET key value NX EX ttl
        result = await client.set(self._key(key), value, nx=True, ex=ttl_seconds)
        return bool(result)

    @Logger.io
    async def delete(self, *, key: str) -> None:
        await kvrocks_client.get_client().delete(self._key(key))

    @Logger.io
    async def delete_if_owner(self, *, key: str, value: str) -> bool:
        client = kvrocks_client.get_client()
        result = await client.eval(_DELETE_IF_OWNER_SCRIPT, 1, self._key(key), value)  # type: ignore[misc]
        return bool(result)

    @Logger.io
    async def increment(self, *, key: str) -> int:
        return int(await kvrocks_client.get_client().incr(self._key(key)))

    @Logger.io
    async def expire(self, *, key: str, ttl_seconds: int) -> None:
        await kvrocks_client.get_client().expire(self._key(key), ttl_seconds)
