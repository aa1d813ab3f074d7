"""
Test Configuration and Fixtures

Architecture:
- Unit tests (test/**/unit/): in-memory fakes of the repository, cache and
  gateway ports; no Postgres or Kvrocks needed
- HTTP tests: FastAPI TestClient against an app whose container is overridden
  with the same fakes
- Integration tests (test/**/integration/): real Postgres, fixtures in their own
  conftest.py
"""

# =============================================================================
# CRITICAL: Environment setup MUST happen before any other imports
# Settings are read once at import time
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    os.environ['POSTGRES_DB'] = 'surplus_booking_test_db'
    os.environ['KVROCKS_KEY_PREFIX'] = 'test_'
    os.environ['PAYMENTS_MODE'] = 'mock'
    os.environ['SCHEDULER_ENABLED'] = 'false'
    os.environ['SECRET_KEY'] = 'test_secret_key'
    os.environ.setdefault('DEBUG', 'false')

    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)


_early_setup_test_environment()

import pytest  # noqa: E402

from test.service.booking.unit.booking_fakes import (  # noqa: E402
    FakeNotificationSender,
    FakeReadiness,
    FakeSharedCache,
    InMemoryBookingStore,
)


@pytest.fixture
def store() -> InMemoryBookingStore:
    return InMemoryBookingStore()


@pytest.fixture
def uow_factory(store: InMemoryBookingStore):
    return store.unit_of_work


@pytest.fixture
def shared_cache() -> FakeSharedCache:
    return FakeSharedCache()


@pytest.fixture
def notification_sender() -> FakeNotificationSender:
    return FakeNotificationSender()


@pytest.fixture
def readiness() -> FakeReadiness:
    return FakeReadiness()
