from __future__ import annotations

from datetime import UTC, date, datetime
from uuid import uuid4

import pytest
from fakes import FakeStore, build_services, make_actor

from academy.core.enums import RoleEnum
from academy.modules.scheduling.schemas import SlotCreate, WeekConfirm, WeekSlot, WeekSlotsCreate
from academy.modules.scheduling.service import group_slots_by_instructor
from academy.shared.exceptions import (
    Forbidden,
    InvalidRange,
    SlotConflict,
    TrackNotFound,
    WeekAlreadyConfirmed,
    WindowClosed,
)

NOW = datetime(2026, 10, 14, 10, 0, tzinfo=UTC)
CURRENT_WEEK = date(2026, 10, 9)
NEXT_WEEK = date(2026, 10, 16)


def _setup(open_hours: int = 168):
    store = FakeStore()
    store.set_policy(5, 22, open_hours)
    instructor = make_actor(RoleEnum.INSTRUCTOR)
    track = store.add_track(instructor.id)
    return build_services(store), instructor, track


def _slot(instructor, track, **overrides) -> SlotCreate:
    values = {
        "instructor_id": instructor.id,
        "track_id": track.id,
        "week_start_date": CURRENT_WEEK,
        "day_of_week": 5,
        "start_hour": 10,
        "end_hour": 11,
    }
    values.update(overrides)
    return SlotCreate(**values)


@pytest.mark.asyncio
async def test_instructor_publishes_slot_for_current_week() -> None:
    services, instructor, track = _setup()

    slot = await services.scheduling.publish_slot(_slot(instructor, track), instructor, now=NOW)

    assert slot.is_booked is False
    assert slot.created_by_id == instructor.id
    assert slot.calendar_date == date(2026, 10, 9)


@pytest.mark.asyncio
async def test_publish_accepts_camel_case_payload() -> None:
    services, instructor, track = _setup()
    payload = SlotCreate.model_validate(
        {
            "instructorId": str(instructor.id),
            "trackId": str(track.id),
            "weekStartDate": "2026-10-09",
            "dayOfWeek": 1,
            "startHour": 18,
            "endHour": 20,
        },
    )

    slot = await services.scheduling.publish_slot(payload, instructor, now=NOW)

    assert slot.calendar_date == date(2026, 10, 12)


@pytest.mark.asyncio
async def test_duplicate_slot_is_rejected() -> None:
    services, instructor, track = _setup()
    await services.scheduling.publish_slot(_slot(instructor, track), instructor, now=NOW)

    with pytest.raises(SlotConflict):
        await services.scheduling.publish_slot(_slot(instructor, track, end_hour=12), instructor, now=NOW)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("start_hour", "end_hour", "day_of_week"),
    [(11, 11, 5), (12, 10, 5), (23, 25, 5), (10, 11, 7)],
)
async def test_invalid_slot_range_is_rejected(start_hour: int, end_hour: int, day_of_week: int) -> None:
    services, instructor, track = _setup()

    with pytest.raises(InvalidRange):
        await services.scheduling.publish_slot(
            _slot(instructor, track, start_hour=start_hour, end_hour=end_hour, day_of_week=day_of_week),
            instructor,
            now=NOW,
        )


@pytest.mark.asyncio
async def test_week_start_must_match_reset_day() -> None:
    services, instructor, track = _setup()

    with pytest.raises(InvalidRange) as exc:
        await services.scheduling.publish_slot(
            _slot(instructor, track, week_start_date=date(2026, 10, 12)),
            instructor,
            now=NOW,
        )
    assert "Friday" in exc.value.message


@pytest.mark.asyncio
async def test_next_week_closed_for_instructor_but_open_for_manager() -> None:
    services, instructor, track = _setup(open_hours=24)

    with pytest.raises(WindowClosed) as exc:
        await services.scheduling.publish_slot(
            _slot(instructor, track, week_start_date=NEXT_WEEK),
            instructor,
            now=NOW,
        )
    assert exc.value.details["nextWeekStart"] == "2026-10-16"

    slot = await services.scheduling.publish_slot(
        _slot(instructor, track, week_start_date=NEXT_WEEK),
        make_actor(RoleEnum.MANAGER),
        now=NOW,
    )
    assert slot.week_start_date == NEXT_WEEK


@pytest.mark.asyncio
async def test_instructor_cannot_publish_for_someone_else() -> None:
    services, instructor, track = _setup()
    other = make_actor(RoleEnum.INSTRUCTOR)

    with pytest.raises(Forbidden):
        await services.scheduling.publish_slot(_slot(instructor, track), other, now=NOW)


@pytest.mark.asyncio
async def test_instructor_must_be_assigned_to_track() -> None:
    services, instructor, _ = _setup()
    foreign_track = services.store.add_track(uuid4())

    with pytest.raises(Forbidden):
        await services.scheduling.publish_slot(_slot(instructor, foreign_track), instructor, now=NOW)

    with pytest.raises(TrackNotFound):
        await services.scheduling.publish_slot(
            _slot(instructor, foreign_track, track_id=uuid4()),
            instructor,
            now=NOW,
        )


@pytest.mark.asyncio
async def test_students_cannot_publish() -> None:
    services, instructor, track = _setup()

    with pytest.raises(Forbidden):
        await services.scheduling.publish_slot(_slot(instructor, track), make_actor(RoleEnum.STUDENT), now=NOW)


@pytest.mark.asyncio
async def test_publish_week_is_all_or_nothing_on_duplicates() -> None:
    services, instructor, track = _setup()
    payload = WeekSlotsCreate(
        instructor_id=instructor.id,
        track_id=track.id,
        week_start_date=CURRENT_WEEK,
        slots=[
            WeekSlot(day_of_week=1, start_hour=10, end_hour=11),
            WeekSlot(day_of_week=1, start_hour=10, end_hour=12),
        ],
    )

    with pytest.raises(SlotConflict):
        await services.scheduling.publish_week(payload, instructor, now=NOW)
    assert services.store.slots == {}


@pytest.mark.asyncio
async def test_confirmed_week_cannot_be_republished() -> None:
    services, instructor, track = _setup()
    created = await services.scheduling.publish_week(
        WeekSlotsCreate(
            instructor_id=instructor.id,
            track_id=track.id,
            week_start_date=CURRENT_WEEK,
            slots=[
                WeekSlot(day_of_week=1, start_hour=10, end_hour=11),
                WeekSlot(day_of_week=2, start_hour=10, end_hour=11),
            ],
        ),
        instructor,
        now=NOW,
    )
    assert len(created) == 2

    confirmed = await services.scheduling.confirm_week(
        WeekConfirm(instructor_id=instructor.id, track_id=track.id, week_start_date=CURRENT_WEEK),
        instructor,
    )
    assert confirmed == 2
    assert "availability.week.confirmed" in services.store.event_types()

    with pytest.raises(WeekAlreadyConfirmed):
        await services.scheduling.publish_week(
            WeekSlotsCreate(
                instructor_id=instructor.id,
                track_id=track.id,
                week_start_date=CURRENT_WEEK,
                slots=[WeekSlot(day_of_week=3, start_hour=10, end_hour=11)],
            ),
            instructor,
            now=NOW,
        )


@pytest.mark.asyncio
async def test_available_slots_exclude_booked_and_group_by_instructor() -> None:
    services, instructor, track = _setup()
    first = await services.scheduling.publish_slot(_slot(instructor, track), instructor, now=NOW)
    await services.scheduling.publish_slot(_slot(instructor, track, start_hour=12, end_hour=13), instructor, now=NOW)
    await services.scheduling.confirm_week(
        WeekConfirm(instructor_id=instructor.id, track_id=track.id, week_start_date=CURRENT_WEEK),
        instructor,
    )
    await services.scheduling.mark_booked(first.id)

    available = await services.scheduling.list_available_slots(track.id, CURRENT_WEEK)

    assert [slot.start_hour for slot in available] == [12]
    assert list(group_slots_by_instructor(available)) == [instructor.id]


@pytest.mark.asyncio
async def test_resolve_week_start_defaults_to_current_bucket() -> None:
    services, _, _ = _setup()

    assert await services.scheduling.resolve_week_start(None, now=NOW) == CURRENT_WEEK
    assert await services.scheduling.resolve_week_start(NEXT_WEEK, now=NOW) == NEXT_WEEK
