"""
Working-hour limit CRUD and validity resolution.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from shift_kernel.exceptions import ValidationError, WorkingHoursLimitNotFoundError
from tests.helpers import TODAY


@pytest.fixture
def make_limit(limit_service, business_id, employee_id, actor_id):
    def _make(**kwargs):
        kwargs.setdefault("valid_from", date(2026, 1, 1))
        return limit_service.create_limit(
            business_id=business_id,
            employee_id=employee_id,
            actor_id=actor_id,
            **kwargs,
        )

    return _make


class TestCreateLimit:

    def test_create_and_get(self, make_limit, limit_service, business_id):
        created = make_limit(max_hours_per_week=Decimal("40"), min_hours_per_week=Decimal("20"))
        found = limit_service.get_limit(created.id, business_id)
        assert found.max_hours_per_week == Decimal("40")
        assert found.min_hours_per_week == Decimal("20")
        assert found.allow_overtime
        assert found.is_active

    @pytest.mark.parametrize(
        "field", ["max_hours_per_day", "max_hours_per_week", "max_overtime_hours_per_month"]
    )
    def test_non_positive_caps_rejected(self, make_limit, field):
        with pytest.raises(ValidationError) as exc_info:
            make_limit(**{field: Decimal("0")})
        assert exc_info.value.field == field

    def test_min_above_max_rejected(self, make_limit):
        with pytest.raises(ValidationError) as exc_info:
            make_limit(max_hours_per_month=Decimal("100"), min_hours_per_month=Decimal("120"))
        assert exc_info.value.field == "min_hours_per_month"

    def test_empty_validity_window_rejected(self, make_limit):
        with pytest.raises(ValidationError) as exc_info:
            make_limit(valid_from=date(2026, 3, 1), valid_to=date(2026, 3, 1))
        assert exc_info.value.field == "valid_to"

    def test_unknown_limit(self, limit_service, business_id):
        with pytest.raises(WorkingHoursLimitNotFoundError):
            limit_service.get_limit(uuid4(), business_id)


class TestUpdateLimit:

    def test_update_changes_only_given_fields(self, make_limit, limit_service, business_id, actor_id):
        created = make_limit(max_hours_per_week=Decimal("40"), max_hours_per_day=Decimal("9"))
        updated = limit_service.update_limit(
            created.id, business_id, actor_id, max_hours_per_week=Decimal("38"), notes="part time"
        )
        assert updated.max_hours_per_week == Decimal("38")
        assert updated.max_hours_per_day == Decimal("9")
        assert updated.notes == "part time"

    def test_none_clears_a_cap(self, make_limit, limit_service, business_id, actor_id):
        created = make_limit(max_hours_per_week=Decimal("40"))
        updated = limit_service.update_limit(created.id, business_id, actor_id, max_hours_per_week=None)
        assert updated.max_hours_per_week is None

    def test_unknown_field_rejected(self, make_limit, limit_service, business_id, actor_id):
        created = make_limit()
        with pytest.raises(ValidationError):
            limit_service.update_limit(created.id, business_id, actor_id, employee_id=None)

    def test_invalid_update_rejected(self, make_limit, limit_service, business_id, actor_id):
        created = make_limit(max_hours_per_week=Decimal("40"))
        with pytest.raises(ValidationError):
            limit_service.update_limit(
                created.id, business_id, actor_id, min_hours_per_week=Decimal("45")
            )

    def test_rejected_update_leaves_limit_unchanged(
        self, make_limit, limit_service, session, business_id, employee_id, actor_id
    ):
        created = make_limit(max_hours_per_week=Decimal("40"), valid_from=date(2026, 3, 1))

        with pytest.raises(ValidationError) as exc_info:
            limit_service.update_limit(
                created.id,
                business_id,
                actor_id,
                notes="cut hours",
                max_hours_per_week=Decimal("-5"),
            )
        assert exc_info.value.field == "max_hours_per_week"

        session.flush()
        active = limit_service.get_active_limit(employee_id, TODAY)
        assert active.max_hours_per_week == Decimal("40")
        assert active.notes is None

    def test_rejected_validity_change_leaves_limit_unchanged(
        self, make_limit, limit_service, business_id, actor_id
    ):
        created = make_limit(valid_from=date(2026, 3, 1), max_hours_per_week=Decimal("40"))

        with pytest.raises(ValidationError):
            limit_service.update_limit(created.id, business_id, actor_id, valid_to=date(2026, 2, 1))

        assert limit_service.get_limit(created.id, business_id).valid_to is None


class TestBusinessScope:

    def test_foreign_business_cannot_read(self, make_limit, limit_service, other_business_id):
        created = make_limit(max_hours_per_week=Decimal("40"))
        with pytest.raises(WorkingHoursLimitNotFoundError):
            limit_service.get_limit(created.id, other_business_id)

    def test_foreign_business_cannot_update(
        self, make_limit, limit_service, business_id, other_business_id, actor_id
    ):
        created = make_limit(max_hours_per_week=Decimal("40"))
        with pytest.raises(WorkingHoursLimitNotFoundError):
            limit_service.update_limit(
                created.id, other_business_id, actor_id, max_hours_per_week=Decimal("60")
            )
        assert limit_service.get_limit(created.id, business_id).max_hours_per_week == Decimal("40")

    def test_foreign_business_cannot_deactivate(
        self, make_limit, limit_service, business_id, other_business_id, actor_id
    ):
        created = make_limit(max_hours_per_week=Decimal("40"))
        with pytest.raises(WorkingHoursLimitNotFoundError):
            limit_service.deactivate_limit(created.id, other_business_id, actor_id)
        assert limit_service.get_limit(created.id, business_id).is_active

    def test_listing_is_scoped(self, make_limit, limit_service, business_id, other_business_id, employee_id):
        make_limit(max_hours_per_week=Decimal("40"))
        assert len(limit_service.list_limits(business_id, employee_id)) == 1
        assert limit_service.list_limits(other_business_id, employee_id) == []


class TestActiveLimit:

    def test_active_limit_respects_validity(self, make_limit, limit_service, employee_id):
        old = make_limit(
            valid_from=date(2025, 1, 1), valid_to=date(2026, 3, 1), max_hours_per_week=Decimal("30")
        )
        current = make_limit(valid_from=date(2026, 3, 1), max_hours_per_week=Decimal("40"))

        assert limit_service.get_active_limit(employee_id).id == current.id
        assert limit_service.get_active_limit(employee_id, date(2026, 2, 28)).id == old.id
        assert limit_service.get_active_limit(employee_id, date(2024, 12, 31)) is None

    def test_deactivated_limit_no_longer_applies(
        self, make_limit, limit_service, business_id, employee_id, actor_id
    ):
        created = make_limit(max_hours_per_week=Decimal("40"))
        limit_service.deactivate_limit(created.id, business_id, actor_id)

        assert limit_service.get_active_limit(employee_id, TODAY) is None
        assert limit_service.list_limits(business_id, employee_id) == []
        assert len(limit_service.list_limits(business_id, employee_id, include_inactive=True)) == 1
