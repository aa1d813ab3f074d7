from uuid import UUID

import attrs


CO2_PER_MEAL_KG = 0.4
FOOD_KG_PER_ITEM = 0.3


@attrs.frozen
class BuyerImpactDelta:
    """Increment applied to a buyer's running totals when a pickup completes."""

    user_id: UUID
    meals_saved: int
    co2_saved_kg: float
    money_saved: int  # cents

    @classmethod
    def for_pickup(
        cls, *, user_id: UUID, quantity: int, original_price: int, unit_price: int
    ) -> 'BuyerImpactDelta':
        return cls(
            user_id=user_id,
            meals_saved=quantity,
            co2_saved_kg=round(quantity * CO2_PER_MEAL_KG, 3),
            money_saved=max(0, original_price - unit_price) * quantity,
        )


@attrs.frozen
class StoreImpactDelta:
    store_id: UUID
    items_sold: int
    revenue: int  # cents
    food_saved_kg: float

    @classmethod
    def for_pickup(cls, *, store_id: UUID, quantity: int, total_price: int) -> 'StoreImpactDelta':
        return cls(
            store_id=store_id,
            items_sold=quantity,
            revenue=total_price,
            food_saved_kg=round(quantity * FOOD_KG_PER_ITEM, 3),
        )
