"""
Pickup QR payload.

Current format is a JSON object ``{"orderNumber": "#00042", "bookingId": "<uuid>"}``.
Two older forms are still accepted when scanning:

- ``MAZZA:<order number without #>:<booking id>``
- a bare booking UUID
"""

from typing import Optional
from uuid import UUID

import attrs
import orjson

from src.platform.exception.exceptions import InvalidQrCodeError


LEGACY_QR_PREFIX = 'MAZZA'


def _to_uuid(raw: object) -> UUID:
    try:
        return UUID(str(raw))
    except ValueError:
        raise InvalidQrCodeError()


@attrs.frozen
class QrPayload:
    booking_id: UUID
    order_number: Optional[str] = None

    def encode(self) -> str:
        return orjson.dumps(
            {'orderNumber': self.order_number, 'bookingId': str(self.booking_id)}
        ).decode()

    def matches(self, *, booking_id: UUID, order_number: str) -> bool:
        if self.booking_id != booking_id:
            return False
        return self.order_number is None or self.order_number == order_number

    @classmethod
    def parse(cls, data: str) -> 'QrPayload':
        raw = (data or '').strip()
        if not raw:
            raise InvalidQrCodeError()

        if raw.startswith('{'):
            try:
                decoded = orjson.loads(raw)
            except orjson.JSONDecodeError:
                raise InvalidQrCodeError()
            if not isinstance(decoded, dict) or 'bookingId' not in decoded:
                raise InvalidQrCodeError()
            order_number = decoded.get('orderNumber')
            return cls(
                booking_id=_to_uuid(decoded['bookingId']),
                order_number=str(order_number) if order_number else None,
            )

        if raw.startswith(f'{LEGACY_QR_PREFIX}:'):
            parts = raw.split(':')
            if len(parts) != 3 or not parts[1]:
                raise InvalidQrCodeError()
            return cls(booking_id=_to_uuid(parts[2]), order_number=f'#{parts[1]}')

        return cls(booking_id=_to_uuid(raw))
