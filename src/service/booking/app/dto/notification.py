from typing import Any
from uuid import UUID

import attrs

from src.service.booking.domain.enum.notification_type import NotificationType


@attrs.define(frozen=True)
class Notification:
    user_id: UUID
    type: NotificationType
    title: str
    body: str
    data: dict[str, Any] = attrs.field(factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            'userId': str(self.user_id),
            'type': str(self.type),
            'title': self.title,
            'body': self.body,
            'data': self.data,
        }
