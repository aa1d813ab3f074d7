"""
Unit of Work - one database session and transaction shared by all booking repositories.

Architecture:
- UoW owns the session lifecycle (opened on enter, closed on exit)
- UoW owns commit/rollback; leaving the block without commit rolls back
- savepoint() opens a nested transaction that rolls back on its own on error,
  leaving the outer transaction usable
"""

from __future__ import annotations

import abc
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession


if TYPE_CHECKING:
    from src.service.booking.app.interface.i_booking_command_repo import IBookingCommandRepo
    from src.service.booking.app.interface.i_impact_stats_repo import IImpactStatsRepo
    from src.service.booking.app.interface.i_payment_command_repo import IPaymentCommandRepo
    from src.service.booking.app.interface.i_product_command_repo import IProductCommandRepo


class AbstractUnitOfWork(abc.ABC):
    """
    Usage:
        async with uow_factory() as uow:
            product = await uow.product_command_repo.get_by_id_for_update(product_id=...)
            async with uow.savepoint():
                await uow.booking_command_repo.create(booking=...)
            await uow.commit()
    """

    product_command_repo: IProductCommandRepo
    booking_command_repo: IBookingCommandRepo
    payment_command_repo: IPaymentCommandRepo
    impact_stats_repo: IImpactStatsRepo

    async def __aenter__(self) -> AbstractUnitOfWork:
        return self

    async def __aexit__(self, *args) -> None:
        await self.rollback()

    async def commit(self) -> None:
        await self._commit()

    @abc.abstractmethod
    async def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def savepoint(self) -> AbstractAsyncContextManager[None]:
        raise NotImplementedError


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    def __init__(self, session_factory: Callable[[], AsyncSession]) -> None:
        self._session_factory = session_factory
        self.session: Optional[AsyncSession] = None

    async def __aenter__(self) -> SqlAlchemyUnitOfWork:
        from src.service.booking.driven_adapter.repo.booking_command_repo_impl import (
            BookingCommandRepoImpl,
        )
        from src.service.booking.driven_adapter.repo.impact_stats_repo_impl import (
            ImpactStatsRepoImpl,
        )
        from src.service.booking.driven_adapter.repo.payment_command_repo_impl import (
            PaymentCommandRepoImpl,
        )
        from src.service.booking.driven_adapter.repo.product_command_repo_impl import (
            ProductCommandRepoImpl,
        )

        self.session = self._session_factory()
        self.product_command_repo = ProductCommandRepoImpl(session=self.session)
        self.booking_command_repo = BookingCommandRepoImpl(session=self.session)
        self.payment_command_repo = PaymentCommandRepoImpl(session=self.session)
        self.impact_stats_repo = ImpactStatsRepoImpl(session=self.session)
        await super().__aenter__()
        return self

    async def __aexit__(self, *args) -> None:
        try:
            await super().__aexit__(*args)
        finally:
            if self.session is not None:
                await self.session.close()
            self.session = None

    async def _commit(self) -> None:
        assert self.session is not None, 'UnitOfWork used outside "async with"'
        await self.session.commit()

    async def rollback(self) -> None:
        if self.session is not None:
            await self.session.rollback()

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        assert self.session is not None, 'UnitOfWork used outside "async with"'
        async with self.session.begin_nested():
            yield
