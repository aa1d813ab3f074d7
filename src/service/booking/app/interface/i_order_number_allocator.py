from abc import ABC, abstractmethod


class IOrderNumberAllocator(ABC):
    @abstractmethod
    async def allocate(self, *, attempt: int = 1) -> str:
        """
        Next human-readable order number for today, e.g. ``#00042``.

        attempt > 1 means the previous number collided; a random suffix is
        appended so the retry cannot hit the same value.
        """
        pass
