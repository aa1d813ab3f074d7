from datetime import datetime, timedelta

import attrs

from src.platform.exception.exceptions import DomainError


@attrs.frozen
class PickupWindow:
    start: datetime
    end: datetime

    def __attrs_post_init__(self) -> None:
        if self.end <= self.start:
            raise DomainError('Pickup window end must be after its start')

    def has_ended(self, now: datetime) -> bool:
        return self.end < now

    def ends_between(self, lower: datetime, upper: datetime) -> bool:
        """True when the window closes in (lower, upper]."""
        return lower < self.end <= upper

    def remaining(self, now: datetime) -> timedelta:
        return max(self.end - now, timedelta(0))
