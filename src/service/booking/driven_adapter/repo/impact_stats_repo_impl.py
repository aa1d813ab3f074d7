from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_impact_stats_repo import IImpactStatsRepo
from src.service.booking.domain.entity.impact_stats_entity import (
    BuyerImpactDelta,
    StoreImpactDelta,
)
from src.service.booking.driven_adapter.model.impact_stats_model import (
    BuyerImpactStatsModel,
    StoreImpactStatsModel,
)


class ImpactStatsRepoImpl(IImpactStatsRepo):
    """Upserts that add to the running totals in SQL, so concurrent pickups never lose an increment."""

    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @Logger.io
    async def add_buyer_impact(self, *, delta: BuyerImpactDelta) -> None:
        table = BuyerImpactStatsModel.__table__
        stmt = insert(table).values(
            user_id=delta.user_id,
            meals_saved=delta.meals_saved,
            co2_saved_kg=delta.co2_saved_kg,
            money_saved=delta.money_saved,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.user_id],
            set_={
                'meals_saved': table.c.meals_saved + stmt.excluded.meals_saved,
                'co2_saved_kg': table.c.co2_saved_kg + stmt.excluded.co2_saved_kg,
                'money_saved': table.c.money_saved + stmt.excluded.money_saved,
            },
        )
        await self.session.execute(stmt)

    @Logger.io
    async def add_store_impact(self, *, delta: StoreImpactDelta) -> None:
        table = StoreImpactStatsModel.__table__
        stmt = insert(table).values(
            store_id=delta.store_id,
            items_sold=delta.items_sold,
            revenue=delta.revenue,
            food_saved_kg=delta.food_saved_kg,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.store_id],
            set_={
                'items_sold': table.c.items_sold + stmt.excluded.items_sold,
                'revenue': table.c.revenue + stmt.excluded.revenue,
                'food_saved_kg': table.c.food_saved_kg + stmt.excluded.food_saved_kg,
            },
        )
        await self.session.execute(stmt)
