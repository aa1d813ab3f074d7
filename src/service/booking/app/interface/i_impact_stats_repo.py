from abc import ABC, abstractmethod

from src.service.booking.domain.entity.impact_stats_entity import (
    BuyerImpactDelta,
    StoreImpactDelta,
)


class IImpactStatsRepo(ABC):
    """Running buyer/store sustainability totals, incremented atomically per pickup."""

    @abstractmethod
    async def add_buyer_impact(self, *, delta: BuyerImpactDelta) -> None:
        pass

    @abstractmethod
    async def add_store_impact(self, *, delta: StoreImpactDelta) -> None:
        pass
