from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.exception.exceptions import EntityNotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_payment_command_repo import IPaymentCommandRepo
from src.service.booking.domain.entity.payment_entity import Payment
from src.service.booking.driven_adapter.model.payment_model import PaymentModel
from src.service.booking.driven_adapter.repo.entity_mapper import (
    payment_to_entity,
    payment_values,
)


class PaymentCommandRepoImpl(IPaymentCommandRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @Logger.io
    async def create(self, *, payment: Payment) -> Payment:
        model = PaymentModel(id=payment.id, **payment_values(payment))
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return payment_to_entity(model)

    @Logger.io
    async def update(self, *, payment: Payment) -> Payment:
        result = await self.session.execute(
            update(PaymentModel)
            .where(PaymentModel.id == payment.id)
            .values(**payment_values(payment))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise EntityNotFoundError('Payment', payment.id)
        return payment

    @Logger.io
    async def get_by_booking_id(self, *, booking_id: UUID) -> Optional[Payment]:
        result = await self.session.execute(
            select(PaymentModel).where(PaymentModel.booking_id == booking_id)
        )
        row = result.scalar_one_or_none()
        return payment_to_entity(row) if row else None
