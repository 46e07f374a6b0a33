"""
Pytest fixtures for the shift kernel test suite.

Provides:
- In-memory SQLite engine with all tables, one session per test
- A DeterministicClock pinned to Tuesday 2026-03-10 08:00 UTC
- Service fixtures wired through ShiftKernelServices
- Factories for shifts and already-completed attendance
- Captured structured log records
"""

import json
import logging
from datetime import datetime, time, timedelta, timezone
from io import StringIO
from uuid import uuid4

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import shift_kernel.models  # noqa: F401  (registers every table)
from shift_kernel.db.base import Base
from shift_kernel.domain.clock import DeterministicClock
from shift_kernel.domain.values import ValidationStatus
from shift_kernel.logging_config import LogContext, StructuredFormatter
from shift_kernel.models.shift import Shift
from shift_kernel.services import ShiftKernelServices
from tests.helpers import TODAY, YESTERDAY, at


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture shift_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, attendance_service):
            attendance_service.check_in(...)
            logs = captured_logs()
            assert any(r["message"] == "check_in_recorded" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("shift_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    factory = sessionmaker(bind=engine, expire_on_commit=False)
    sess = factory()
    yield sess
    sess.rollback()
    sess.close()


# =============================================================================
# Identities and time
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock(at(TODAY, 8))


@pytest.fixture
def business_id():
    return uuid4()


@pytest.fixture
def other_business_id():
    return uuid4()


@pytest.fixture
def actor_id():
    """The merchant performing scheduling operations."""
    return uuid4()


@pytest.fixture
def employee_id():
    return uuid4()


@pytest.fixture
def other_employee_id():
    return uuid4()


# =============================================================================
# Services
# =============================================================================


@pytest.fixture
def services(session, clock):
    return ShiftKernelServices(session, clock)


@pytest.fixture
def shift_service(services):
    return services.shifts


@pytest.fixture
def template_service(services):
    return services.templates


@pytest.fixture
def limit_service(services):
    return services.limits


@pytest.fixture
def attendance_service(services):
    return services.attendance


@pytest.fixture
def validation_service(services):
    return services.validation


@pytest.fixture
def adjustment_service(services):
    return services.adjustments


@pytest.fixture
def swap_service(services):
    return services.swaps


@pytest.fixture
def wellbeing_service(services):
    return services.wellbeing


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_shift(shift_service, business_id, actor_id, employee_id):
    """
    Create a shift through the scheduler.

    Defaults to today 09:00-17:00 with a 60 minute break, assigned to
    ``employee_id``.  Pass ``employee_id=None`` for an open shift.
    """
    default_employee = employee_id

    def _make(
        shift_date=TODAY,
        start_time=time(9, 0),
        end_time=time(17, 0),
        break_minutes=60,
        employee_id=default_employee,
        **kwargs,
    ):
        kwargs.setdefault("business_id", business_id)
        return shift_service.create_shift(
            actor_id=actor_id,
            shift_date=shift_date,
            start_time=start_time,
            end_time=end_time,
            break_minutes=break_minutes,
            employee_id=employee_id,
            **kwargs,
        )

    return _make


@pytest.fixture
def completed_shift(session, business_id, actor_id, employee_id):
    """
    Insert a shift whose attendance was already recorded.

    Bypasses the state machine, as attendance imported from another system
    would.  Returns the ORM instance.
    """

    def _make(
        shift_date=YESTERDAY,
        start_time=time(9, 0),
        end_time=time(17, 0),
        break_minutes=60,
        check_in_at=None,
        check_out_at=None,
        validation_status=ValidationStatus.PENDING,
        employee_id=employee_id,
        business_id=business_id,
    ):
        start = datetime.combine(shift_date, start_time, tzinfo=timezone.utc)
        shift = Shift(
            business_id=business_id,
            employee_id=employee_id,
            shift_date=shift_date,
            start_time=start_time,
            end_time=end_time,
            break_minutes=break_minutes,
            is_checked_in=True,
            check_in_at=check_in_at or start,
            is_checked_out=True,
            check_out_at=check_out_at or (start + timedelta(hours=8)),
            validation_status=validation_status.value,
            is_active=True,
            version=1,
            created_by_id=actor_id,
        )
        session.add(shift)
        session.flush()
        return shift

    return _make


@pytest.fixture
def work_shift(attendance_service, clock, employee_id):
    """Check a shift in and out at the given instants."""

    def _work(shift, check_in_at, check_out_at, employee=None):
        employee = employee or employee_id
        clock.set_time(check_in_at)
        attendance_service.check_in(employee, shift.id)
        clock.set_time(check_out_at)
        return attendance_service.check_out(employee, shift.id)

    return _work
