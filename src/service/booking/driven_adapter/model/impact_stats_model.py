from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Float, Integer
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from src.platform.database.orm_db_setting import Base


class BuyerImpactStatsModel(Base):
    __tablename__ = 'buyer_impact_stats'

    user_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    meals_saved: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    co2_saved_kg: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    money_saved: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class StoreImpactStatsModel(Base):
    __tablename__ = 'store_impact_stats'

    store_id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    items_sold: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    revenue: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    food_saved_kg: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
