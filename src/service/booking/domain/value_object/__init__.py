from src.service.booking.domain.value_object.pickup_window import PickupWindow
from src.service.booking.domain.value_object.qr_payload import QrPayload

__all__ = ['PickupWindow', 'QrPayload']
