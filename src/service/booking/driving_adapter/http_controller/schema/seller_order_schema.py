from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.service.booking.driving_adapter.http_controller.schema.booking_schema import CamelModel


class CompleteOrderRequest(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            'example': {
                'qrCodeData': (
                    '{"orderNumber":"#00042","bookingId":"01934f2a-8b7e-7c3d-9a1b-2c3d4e5f6a7b"}'
                )
            }
        },
    )

    qr_code_data: str = Field(min_length=1)


class ReadyOrder(CamelModel):
    id: UUID
    status: str
    ready_at: Optional[datetime] = None


class ReadyOrderResponse(CamelModel):
    order: ReadyOrder


class CompletedOrder(CamelModel):
    id: UUID
    status: str
    completed_at: Optional[datetime] = None


class CompleteOrderResponse(CamelModel):
    order: CompletedOrder
