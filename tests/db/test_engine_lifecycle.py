"""
Engine initialisation, session scope and service container wiring.
"""

from datetime import time

import pytest

from shift_kernel.db import engine as db_engine
from shift_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    is_postgres,
    reset_engine,
    session_scope,
)
from shift_kernel.domain.clock import DeterministicClock
from shift_kernel.domain.policy import AttendancePolicy
from shift_kernel.exceptions import ConfigurationError
from shift_kernel.logging_config import reset_logging
from shift_kernel.models.shift import Shift
from shift_kernel.services import ShiftKernelServices
from tests.helpers import TODAY, at


@pytest.fixture
def sqlite_engine():
    reset_engine()
    reset_logging()
    init_engine_from_url("sqlite://")
    create_tables()
    yield get_engine()
    drop_tables()
    reset_engine()
    reset_logging()


class TestEngineLifecycle:

    def test_uninitialised_engine_raises(self):
        reset_engine()
        with pytest.raises(RuntimeError):
            get_engine()
        with pytest.raises(RuntimeError):
            get_session()
        assert not is_postgres()

    def test_sqlite_url_accepted(self, sqlite_engine):
        assert sqlite_engine.dialect.name == "sqlite"
        assert not is_postgres()

    def test_reset_drops_engine(self):
        init_engine_from_url("sqlite://")
        reset_engine()
        reset_logging()
        assert db_engine._engine is None
        with pytest.raises(RuntimeError):
            get_session()


class TestSessionScope:

    def _create(self, session, business_id, actor_id):
        services = ShiftKernelServices(session, DeterministicClock(at(TODAY, 8)))
        return services.shifts.create_shift(
            business_id, actor_id, TODAY, time(9), time(17), 60
        )

    def test_commits_on_success(self, sqlite_engine, business_id, actor_id):
        with session_scope() as session:
            created = self._create(session, business_id, actor_id)

        with session_scope() as session:
            assert session.get(Shift, created.id) is not None

    def test_rolls_back_on_error(self, sqlite_engine, business_id, actor_id):
        with pytest.raises(ValueError):
            with session_scope() as session:
                created = self._create(session, business_id, actor_id)
                raise ValueError("abort")

        with session_scope() as session:
            assert session.get(Shift, created.id) is None


class TestServiceContainer:

    def test_clock_required(self, session):
        with pytest.raises(ConfigurationError) as exc_info:
            ShiftKernelServices(session, None)
        assert exc_info.value.setting == "clock"

    def test_invalid_policy_rejected(self, session, clock):
        with pytest.raises(ConfigurationError):
            ShiftKernelServices(session, clock, AttendancePolicy(tolerance_minutes=-1))

    def test_services_share_policy(self, session, clock):
        policy = AttendancePolicy(tolerance_minutes=5)
        services = ShiftKernelServices(session, clock, policy)
        assert services.policy is policy
        assert services.clock is clock
