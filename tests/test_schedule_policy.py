from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

import pytest
from fakes import FakeStore, build_services, make_actor

from academy.core.enums import RoleEnum
from academy.modules.policy.schemas import PolicyUpdate
from academy.modules.policy.service import settings
from academy.shared.exceptions import Forbidden, InvalidPolicy, NotConfigured


@pytest.mark.asyncio
async def test_get_policy_raises_not_configured_when_missing() -> None:
    services = build_services()

    with pytest.raises(NotConfigured):
        await services.policy.get_policy()


@pytest.mark.asyncio
async def test_effective_policy_falls_back_to_settings_defaults() -> None:
    services = build_services()

    snapshot = await services.policy.get_effective_policy()

    assert snapshot.is_default is True
    assert snapshot.week_reset_day == settings.default_week_reset_day
    assert snapshot.week_reset_hour == settings.default_week_reset_hour
    assert snapshot.availability_open_hours == settings.default_availability_open_hours


@pytest.mark.asyncio
async def test_update_policy_creates_then_versions_row() -> None:
    services = build_services()
    manager = make_actor(RoleEnum.MANAGER)

    created = await services.policy.update_policy(
        PolicyUpdate(week_reset_day=5, week_reset_hour=22, availability_open_hours=168),
        manager,
    )
    assert created.version == 1
    assert created.updated_by_id == manager.id

    updated = await services.policy.update_policy(
        PolicyUpdate(
            week_reset_day=0,
            week_reset_hour=20,
            availability_open_hours=72,
            next_open_date=datetime(2026, 10, 25, 20, 0, tzinfo=UTC),
        ),
        manager,
    )
    assert updated.version == 2
    assert updated.week_reset_day == 0

    snapshot = await services.policy.get_effective_policy()
    assert snapshot.is_default is False
    assert snapshot.availability_open_hours == 72
    assert services.store.event_types() == ["schedule_policy.updated", "schedule_policy.updated"]


@pytest.mark.asyncio
async def test_update_policy_reports_every_invalid_field() -> None:
    services = build_services()

    with pytest.raises(InvalidPolicy) as exc:
        await services.policy.update_policy(
            PolicyUpdate(week_reset_day=7, week_reset_hour=24, availability_open_hours=0),
            make_actor(RoleEnum.OWNER),
        )

    assert set(exc.value.details["fields"]) == {"weekResetDay", "weekResetHour", "availabilityOpenHours"}
    assert services.store.policy is None


@pytest.mark.asyncio
@pytest.mark.parametrize("role", [RoleEnum.COORDINATOR, RoleEnum.INSTRUCTOR, RoleEnum.STUDENT])
async def test_update_policy_limited_to_owner_and_manager(role: RoleEnum) -> None:
    store = FakeStore()
    store.set_policy(5, 22, 168)
    services = build_services(store)

    with pytest.raises(Forbidden):
        await services.policy.update_policy(
            PolicyUpdate(week_reset_day=1, week_reset_hour=8, availability_open_hours=24),
            make_actor(role, uuid4()),
        )
    assert store.policy.week_reset_day == 5


@pytest.mark.asyncio
async def test_booking_window_uses_configured_policy() -> None:
    store = FakeStore()
    store.set_policy(5, 22, 24)
    services = build_services(store)

    window = await services.policy.get_booking_window(datetime(2026, 10, 14, 10, 0, tzinfo=UTC))

    assert window.current_week_start.isoformat() == "2026-10-09"
    assert window.next_week_open is False
