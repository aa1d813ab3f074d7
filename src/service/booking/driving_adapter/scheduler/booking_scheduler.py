"""
Periodic booking sweeps.

Every instance runs the same APScheduler timers; a tick only does work when the
database schema is ready and this instance wins the job's distributed lock. A
tick that loses the lock is skipped, the next tick picks up whatever is left.
"""

from typing import Awaitable, Callable, Optional

from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.platform.state.distributed_lock import DistributedLock
from src.service.booking.app.command.expire_bookings_use_case import ExpireBookingsUseCase
from src.service.booking.app.command.send_pickup_reminders_use_case import (
    SendPickupRemindersUseCase,
)
from src.service.booking.app.dto.sweep_report import SweepReport
from src.service.booking.app.interface.i_database_readiness import IDatabaseReadiness
from src.service.booking.app.interface.i_shared_cache import ISharedCache


EXPIRATION_LOCK_KEY = 'scheduler:booking-expiration:lock'
REMINDER_LOCK_KEY = 'scheduler:pickup-reminder:lock'


class BookingScheduler:
    def __init__(
        self,
        *,
        cache: ISharedCache,
        readiness: IDatabaseReadiness,
        expire_bookings_use_case: ExpireBookingsUseCase,
        send_pickup_reminders_use_case: SendPickupRemindersUseCase,
        lock_ttl_seconds: int = 120,
        expiration_interval_seconds: int = 60,
        reminder_cron_minute: str = '*/30',
        timezone: str = 'UTC',
    ) -> None:
        self.cache = cache
        self.readiness = readiness
        self.expire_bookings_use_case = expire_bookings_use_case
        self.send_pickup_reminders_use_case = send_pickup_reminders_use_case
        self.lock_ttl_seconds = lock_ttl_seconds
        self.expiration_interval_seconds = expiration_interval_seconds
        self.reminder_cron_minute = reminder_cron_minute
        self.timezone = timezone
        self._scheduler: Optional[AsyncIOScheduler] = None

    async def run_expiration_sweep(self) -> SweepReport:
        return await self._run_guarded(
            job=ExpireBookingsUseCase.JOB,
            lock_key=EXPIRATION_LOCK_KEY,
            sweep=self.expire_bookings_use_case.execute,
        )

    async def run_reminder_sweep(self) -> SweepReport:
        return await self._run_guarded(
            job=SendPickupRemindersUseCase.JOB,
            lock_key=REMINDER_LOCK_KEY,
            sweep=self.send_pickup_reminders_use_case.execute,
        )

    async def _run_guarded(
        self, *, job: str, lock_key: str, sweep: Callable[[], Awaitable[SweepReport]]
    ) -> SweepReport:
        if not await self.readiness.is_ready():
            Logger.base.info(f'⏸️ [SCHEDULER] {job} skipped: database not ready')
            metrics.record_scheduler_run(job=job, result='skipped_not_ready')
            return SweepReport.skip(job)

        # One lock object per tick; its owner marker must not outlive the tick
        lock = DistributedLock(cache=self.cache)
        async with lock.hold(key=lock_key, ttl=self.lock_ttl_seconds) as acquired:
            if not acquired:
                Logger.base.info(f'⏭️ [SCHEDULER] {job} skipped: lock held by another instance')
                metrics.record_scheduler_run(job=job, result='skipped_locked')
                return SweepReport.skip(job)
            try:
                report = await sweep()
            except Exception as e:
                Logger.base.exception(f'💥 [SCHEDULER] {job} crashed: {e}')
                metrics.record_scheduler_run(job=job, result='failed')
                return SweepReport(job=job)

        metrics.record_scheduler_run(
            job=job, result='completed', processed=report.processed, failed=report.failed
        )
        return report

    def start(self) -> None:
        if self._scheduler is not None and self._scheduler.running:
            return

        self._scheduler = AsyncIOScheduler(
            jobstores={'default': MemoryJobStore()},
            executors={'default': AsyncIOExecutor()},
            job_defaults={
                'coalesce': True,
                'max_instances': 1,
                'misfire_grace_time': 30,
            },
            timezone=self.timezone,
        )
        self._scheduler.add_job(
            self.run_expiration_sweep,
            IntervalTrigger(seconds=self.expiration_interval_seconds),
            id='booking_expiration',
            name='Expire bookings past their pickup window',
            replace_existing=True,
        )
        self._scheduler.add_job(
            self.run_reminder_sweep,
            CronTrigger(minute=self.reminder_cron_minute, timezone=self.timezone),
            id='pickup_reminder',
            name='Remind buyers of an upcoming pickup deadline',
            replace_existing=True,
        )
        self._scheduler.start()

        for job in self._scheduler.get_jobs():
            Logger.base.info(f'🗓️ [SCHEDULER] {job.name} - next run: {job.next_run_time}')

    def shutdown(self) -> None:
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            Logger.base.info('🛑 [SCHEDULER] Stopped')
        self._scheduler = None
