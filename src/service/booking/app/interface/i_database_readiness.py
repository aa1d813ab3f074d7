from abc import ABC, abstractmethod


class IDatabaseReadiness(ABC):
    @abstractmethod
    async def is_ready(self) -> bool:
        pass
