import orjson

from src.platform.logging.loguru_io import Logger
from src.platform.state.kvrocks_client import kvrocks_client
from src.service.booking.app.dto.notification import Notification
from src.service.booking.app.interface.i_notification_sender import INotificationSender


NOTIFICATION_CHANNEL = 'notification:user:{user_id}'


class KvrocksNotificationPublisher(INotificationSender):
    """
    Publish notifications on a per-user pub/sub channel.

    Delivery (push, e-mail, in-app feed) belongs to whoever subscribes; a publish
    failure is logged and dropped.
    """

    @Logger.io
    async def send(self, *, notification: Notification) -> None:
        channel = NOTIFICATION_CHANNEL.format(user_id=notification.user_id)
        try:
            receivers = await kvrocks_client.get_client().publish(
                channel, orjson.dumps(notification.to_payload())
            )
        except Exception as e:
            Logger.base.error(
                f'📭 [NOTIFY] Failed to publish {notification.type} to {channel}: {e}'
            )
            return
        Logger.base.info(f'📨 [NOTIFY] {notification.type} -> {channel} ({receivers} receivers)')
