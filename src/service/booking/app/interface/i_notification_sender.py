from abc import ABC, abstractmethod

from src.service.booking.app.dto.notification import Notification


class INotificationSender(ABC):
    @abstractmethod
    async def send(self, *, notification: Notification) -> None:
        """Fire-and-forget delivery; failures are the sender's concern."""
        pass
