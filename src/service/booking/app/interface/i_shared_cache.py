from abc import ABC, abstractmethod


class ISharedCache(ABC):
    """Cluster-wide key-value store used for counters and mutual exclusion."""

    @abstractmethod
    async def set_if_not_exists(self, *, key: str, value: str, ttl_seconds: int) -> bool:
        pass

    @abstractmethod
    async def delete(self, *, key: str) -> None:
        pass

    @abstractmethod
    async def delete_if_owner(self, *, key: str, value: str) -> bool:
        """Delete key only while it still holds value."""
        pass

    @abstractmethod
    async def increment(self, *, key: str) -> int:
        pass

    @abstractmethod
    async def expire(self, *, key: str, ttl_seconds: int) -> None:
        pass
