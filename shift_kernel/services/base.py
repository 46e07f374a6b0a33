"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every service in the kernel layer.  All concrete services inherit
    from BaseService, receiving a SQLAlchemy ``Session`` that they use
    via ``session.flush()`` -- never ``session.commit()``.  Also provides
    the conditional-update primitive every state transition goes through.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's
      transaction and never commit or rollback themselves.  The caller
      (``session_scope()`` or the test harness) owns commit/rollback.
    - Atomic transitions: ``_transition()`` issues a single
      ``UPDATE ... WHERE id = :id AND <pre-state>`` and reports whether
      exactly one row changed.  Check-and-set never spans two statements.

Failure modes:
    - ConfigurationError from the constructor when no clock is injected.
"""

from abc import ABC
from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from shift_kernel.db.base import Base
from shift_kernel.domain.clock import Clock, require_clock
from shift_kernel.domain.policy import DEFAULT_POLICY, AttendancePolicy

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Write-side service bound to one caller-owned session.

    Guarantees:
        - Changes reach the database through ``flush()`` or a conditional
          UPDATE; never ``commit()`` or ``rollback()``.
        - ``self._clock`` is always a Clock; ``self._policy`` is always an
          AttendancePolicy.

    Non-goals:
        - Does NOT provide query-only (read) methods -- those belong
          in ``shift_kernel/selectors/``.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock,
        policy: AttendancePolicy | None = None,
    ):
        """
        Args:
            session: Caller-owned session; its transaction spans the call.
            clock: Time source for every "now" the service needs.
            policy: Attendance thresholds; production defaults when omitted.
        """
        self.session = session
        self._clock = require_clock(clock)
        self._policy = policy or DEFAULT_POLICY

    def _transition(
        self,
        model: type[Base],
        entity_id: UUID,
        criteria: tuple[Any, ...],
        values: dict[str, Any],
    ) -> bool:
        """
        Apply ``values`` to one row only if ``criteria`` still hold.

        Returns True when exactly one row was updated.  The in-session
        instance, if any, is refreshed so callers read the new state.
        """
        stmt = (
            update(model)
            .where(model.id == entity_id, *criteria)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        if result.rowcount != 1:
            return False

        instance = self.session.get(model, entity_id)
        if instance is not None:
            self.session.refresh(instance)
        return True

    def _reload(self, model: type[ModelType], entity_id: UUID) -> ModelType | None:
        """Re-read a row, overwriting whatever the identity map holds."""
        return self.session.get(model, entity_id, populate_existing=True)
