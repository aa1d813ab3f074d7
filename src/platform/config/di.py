"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html

Composition root. Collaborators are assembled here once at startup and handed to
use cases through their constructors; controllers reach use cases through
``UseCase.depends``, which reads the container from ``app.state``.
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.platform.database.orm_db_setting import Database, get_session_maker
from src.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from src.service.booking.app.command.cancel_booking_use_case import CancelBookingUseCase
from src.service.booking.app.command.complete_booking_use_case import CompleteBookingUseCase
from src.service.booking.app.command.create_booking_use_case import CreateBookingUseCase
from src.service.booking.app.command.expire_bookings_use_case import ExpireBookingsUseCase
from src.service.booking.app.command.mark_booking_ready_use_case import MarkBookingReadyUseCase
from src.service.booking.app.command.send_pickup_reminders_use_case import (
    SendPickupRemindersUseCase,
)
from src.service.booking.app.query.get_booking_use_case import GetBookingUseCase
from src.service.booking.app.query.list_user_bookings_use_case import ListUserBookingsUseCase
from src.service.booking.driven_adapter.payment.mock_payment_gateway import MockPaymentGateway
from src.service.booking.driven_adapter.payment.null_payment_gateway import NullPaymentGateway
from src.service.booking.driven_adapter.payment.stripe_payment_gateway import (
    StripePaymentGateway,
)
from src.service.booking.driven_adapter.readiness.database_readiness_impl import (
    DatabaseReadinessImpl,
)
from src.service.booking.driven_adapter.repo.booking_query_repo_impl import BookingQueryRepoImpl
from src.service.booking.driven_adapter.state.kvrocks_shared_cache_impl import (
    KvrocksSharedCacheImpl,
)
from src.service.booking.driven_adapter.state.notification_publisher_impl import (
    KvrocksNotificationPublisher,
)
from src.service.booking.driven_adapter.state.order_number_allocator_impl import (
    OrderNumberAllocatorImpl,
)
from src.service.booking.driving_adapter.http_controller.auth.jwt_auth import JwtAuth
from src.service.booking.driving_adapter.scheduler.booking_scheduler import BookingScheduler


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Database
    database = providers.Singleton(Database)

    # One unit of work (own session) per use-case call; use cases get the factory itself
    unit_of_work = providers.Factory(
        SqlAlchemyUnitOfWork, session_factory=providers.Callable(get_session_maker)
    )

    # Read side (session per query)
    booking_query_repo = providers.Singleton(
        BookingQueryRepoImpl, session_factory=database.provided.session
    )
    database_readiness = providers.Singleton(
        DatabaseReadinessImpl, session_factory=database.provided.session
    )

    # Kvrocks: counters, scheduler locks, notification pub/sub
    shared_cache = providers.Singleton(
        KvrocksSharedCacheImpl, key_prefix=config_service.provided.KVROCKS_KEY_PREFIX
    )
    order_number_allocator = providers.Singleton(
        OrderNumberAllocatorImpl,
        cache=shared_cache,
        counter_ttl_seconds=config_service.provided.ORDER_COUNTER_TTL_SECONDS,
    )
    notification_sender = providers.Singleton(KvrocksNotificationPublisher)

    # Payment gateway chosen by PAYMENTS_MODE
    payment_gateway = providers.Selector(
        config_service.provided.PAYMENTS_MODE,
        disabled=providers.Singleton(NullPaymentGateway),
        mock=providers.Singleton(MockPaymentGateway),
        stripe=providers.Singleton(
            StripePaymentGateway,
            secret_key=config_service.provided.STRIPE_SECRET_KEY.get_secret_value.call(),
            timeout_seconds=config_service.provided.PAYMENT_GATEWAY_TIMEOUT_SECONDS,
        ),
    )

    # Auth
    jwt_auth = providers.Singleton(
        JwtAuth,
        secret=config_service.provided.SECRET_KEY.get_secret_value.call(),
        algorithm=config_service.provided.ALGORITHM,
    )

    # Command use cases
    create_booking_use_case = providers.Factory(
        CreateBookingUseCase,
        uow_factory=unit_of_work.provider,
        payment_gateway=payment_gateway,
        order_number_allocator=order_number_allocator,
        currency=config_service.provided.PAYMENT_CURRENCY,
        max_order_number_attempts=config_service.provided.ORDER_NUMBER_MAX_ATTEMPTS,
        order_number_retry_backoff_seconds=(
            config_service.provided.ORDER_NUMBER_RETRY_BACKOFF_SECONDS
        ),
    )
    cancel_booking_use_case = providers.Factory(
        CancelBookingUseCase,
        uow_factory=unit_of_work.provider,
        payment_gateway=payment_gateway,
    )
    mark_booking_ready_use_case = providers.Factory(
        MarkBookingReadyUseCase,
        uow_factory=unit_of_work.provider,
        notification_sender=notification_sender,
    )
    complete_booking_use_case = providers.Factory(
        CompleteBookingUseCase, uow_factory=unit_of_work.provider
    )
    expire_bookings_use_case = providers.Factory(
        ExpireBookingsUseCase,
        uow_factory=unit_of_work.provider,
        notification_sender=notification_sender,
    )
    send_pickup_reminders_use_case = providers.Factory(
        SendPickupRemindersUseCase,
        uow_factory=unit_of_work.provider,
        notification_sender=notification_sender,
    )

    # Query use cases
    get_booking_use_case = providers.Factory(
        GetBookingUseCase, booking_query_repo=booking_query_repo
    )
    list_user_bookings_use_case = providers.Factory(
        ListUserBookingsUseCase, booking_query_repo=booking_query_repo
    )

    # Scheduler
    booking_scheduler = providers.Singleton(
        BookingScheduler,
        cache=shared_cache,
        readiness=database_readiness,
        expire_bookings_use_case=expire_bookings_use_case,
        send_pickup_reminders_use_case=send_pickup_reminders_use_case,
        lock_ttl_seconds=config_service.provided.SCHEDULER_LOCK_TTL_SECONDS,
        expiration_interval_seconds=config_service.provided.EXPIRATION_SWEEP_INTERVAL_SECONDS,
        reminder_cron_minute=config_service.provided.REMINDER_SWEEP_CRON,
        timezone=config_service.provided.SCHEDULER_TIMEZONE,
    )


container = Container()


def cleanup() -> None:
    container.reset_singletons()
