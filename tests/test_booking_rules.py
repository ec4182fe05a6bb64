from __future__ import annotations

import asyncio
from datetime import UTC, date, datetime, time
from uuid import uuid4

import pytest
from fakes import FakeStore, build_services, make_actor

from academy.core.enums import BookingStatusEnum, RoleEnum
from academy.modules.booking.schemas import BookingCreate, BookingNotesUpdate
from academy.modules.booking.service import hours_overlap
from academy.modules.scheduling.schemas import SlotCreate, WeekConfirm
from academy.modules.sessions.schemas import SessionCreate
from academy.shared.exceptions import (
    BookingNotFound,
    CannotCancelLinkedBooking,
    Forbidden,
    OverlappingBooking,
    SlotAlreadyBooked,
    SlotNotConfirmed,
    SlotNotFound,
    WindowClosed,
)

NOW = datetime(2026, 10, 14, 10, 0, tzinfo=UTC)
CURRENT_WEEK = date(2026, 10, 9)
NEXT_WEEK = date(2026, 10, 16)


def _setup(open_hours: int = 168):
    store = FakeStore()
    store.set_policy(5, 22, open_hours)
    instructor = make_actor(RoleEnum.INSTRUCTOR, full_name="Instructor")
    track = store.add_track(instructor.id)
    return build_services(store), instructor, track


async def _publish(services, instructor, track, *, week=CURRENT_WEEK, day=5, start=10, end=11, confirm=True):
    manager = make_actor(RoleEnum.MANAGER)
    slot = await services.scheduling.publish_slot(
        SlotCreate(
            instructor_id=instructor.id,
            track_id=track.id,
            week_start_date=week,
            day_of_week=day,
            start_hour=start,
            end_hour=end,
        ),
        manager,
        now=NOW,
    )
    if confirm:
        await services.scheduling.confirm_week(
            WeekConfirm(instructor_id=instructor.id, track_id=track.id, week_start_date=week),
            manager,
        )
    return slot


def test_hours_overlap_is_half_open() -> None:
    assert hours_overlap(10, 12, 11, 13) is True
    assert hours_overlap(10, 12, 12, 13) is False
    assert hours_overlap(10, 12, 8, 10) is False
    assert hours_overlap(10, 12, 9, 14) is True


@pytest.mark.asyncio
async def test_book_publish_attach_then_cancel_is_refused() -> None:
    services, instructor, track = _setup()
    student = make_actor(RoleEnum.STUDENT)
    slot = await _publish(services, instructor, track)

    booking = await services.booking.book(BookingCreate(availability_id=slot.id), student, now=NOW)

    assert slot.is_booked is True
    assert list(services.store.bookings) == [booking.id]
    assert booking.session_id is None
    assert booking.track_id == track.id

    live_session = await services.sessions.create_session(
        SessionCreate(
            title="Friday class",
            track_id=track.id,
            date=slot.calendar_date,
            start_time=time(10, 0),
            end_time=time(11, 0),
        ),
        instructor,
    )
    await services.sessions.attach_booking(live_session.id, booking.id, instructor)
    assert booking.session_id == live_session.id

    with pytest.raises(CannotCancelLinkedBooking):
        await services.booking.cancel(booking.id, student)
    assert slot.is_booked is True
    assert booking.id in services.store.bookings


@pytest.mark.asyncio
async def test_simultaneous_bookings_only_one_wins() -> None:
    services, instructor, track = _setup()
    slot = await _publish(services, instructor, track)
    first = make_actor(RoleEnum.STUDENT)
    second = make_actor(RoleEnum.STUDENT)

    results = await asyncio.gather(
        services.booking.book(BookingCreate(availability_id=slot.id), first, now=NOW),
        services.booking.book(BookingCreate(availability_id=slot.id), second, now=NOW),
        return_exceptions=True,
    )

    succeeded = [item for item in results if not isinstance(item, Exception)]
    failed = [item for item in results if isinstance(item, Exception)]
    assert len(succeeded) == 1
    assert len(failed) == 1
    assert isinstance(failed[0], SlotAlreadyBooked)
    assert len(services.store.bookings) == 1


@pytest.mark.asyncio
async def test_booking_unknown_slot_raises_not_found() -> None:
    services, _, _ = _setup()

    with pytest.raises(SlotNotFound):
        await services.booking.book(BookingCreate(availability_id=uuid4()), make_actor(RoleEnum.STUDENT), now=NOW)


@pytest.mark.asyncio
async def test_booking_booked_slot_is_conflict() -> None:
    services, instructor, track = _setup()
    slot = await _publish(services, instructor, track)
    await services.booking.book(BookingCreate(availability_id=slot.id), make_actor(RoleEnum.STUDENT), now=NOW)

    with pytest.raises(SlotAlreadyBooked):
        await services.booking.book(BookingCreate(availability_id=slot.id), make_actor(RoleEnum.STUDENT), now=NOW)


@pytest.mark.asyncio
async def test_student_cannot_book_closed_week() -> None:
    services, instructor, track = _setup(open_hours=24)
    slot = await _publish(services, instructor, track, week=NEXT_WEEK)

    with pytest.raises(WindowClosed):
        await services.booking.book(BookingCreate(availability_id=slot.id), make_actor(RoleEnum.STUDENT), now=NOW)
    assert slot.is_booked is False


@pytest.mark.asyncio
async def test_overlapping_booking_same_day_is_rejected() -> None:
    services, instructor, track = _setup()
    other_instructor = make_actor(RoleEnum.INSTRUCTOR)
    other_track = services.store.add_track(other_instructor.id)
    student = make_actor(RoleEnum.STUDENT)

    morning = await _publish(services, instructor, track, day=1, start=10, end=12)
    overlapping = await _publish(services, other_instructor, other_track, day=1, start=11, end=12)
    adjacent = await _publish(services, other_instructor, other_track, day=1, start=12, end=13)
    other_day = await _publish(services, other_instructor, other_track, day=2, start=10, end=12)

    await services.booking.book(BookingCreate(availability_id=morning.id), student, now=NOW)
    with pytest.raises(OverlappingBooking):
        await services.booking.book(BookingCreate(availability_id=overlapping.id), student, now=NOW)
    assert overlapping.is_booked is False

    await services.booking.book(BookingCreate(availability_id=adjacent.id), student, now=NOW)
    await services.booking.book(BookingCreate(availability_id=other_day.id), student, now=NOW)
    assert len(services.store.bookings) == 3


@pytest.mark.asyncio
async def test_staff_books_on_behalf_and_instructor_cannot_book() -> None:
    services, instructor, track = _setup()
    slot = await _publish(services, instructor, track)
    student = make_actor(RoleEnum.STUDENT)

    with pytest.raises(Forbidden):
        await services.booking.book(
            BookingCreate(availability_id=slot.id, student_id=student.id),
            instructor,
            now=NOW,
        )

    booking = await services.booking.book(
        BookingCreate(availability_id=slot.id, student_id=student.id),
        make_actor(RoleEnum.COORDINATOR),
        now=NOW,
    )
    assert booking.student_id == student.id


@pytest.mark.asyncio
async def test_cancel_releases_slot_and_hides_foreign_bookings() -> None:
    services, instructor, track = _setup()
    slot = await _publish(services, instructor, track)
    student = make_actor(RoleEnum.STUDENT)
    booking = await services.booking.book(BookingCreate(availability_id=slot.id), student, now=NOW)

    with pytest.raises(BookingNotFound):
        await services.booking.cancel(booking.id, make_actor(RoleEnum.STUDENT))

    await services.booking.cancel(booking.id, student)

    assert services.store.bookings == {}
    assert slot.is_booked is False
    assert services.store.event_types()[-1] == "booking.cancelled"


@pytest.mark.asyncio
async def test_find_matching_slots_returns_unlinked_overlapping_bookings() -> None:
    services, instructor, track = _setup()
    monday_early = await _publish(services, instructor, track, day=1, start=9, end=10)
    monday_mid = await _publish(services, instructor, track, day=1, start=10, end=11)
    tuesday = await _publish(services, instructor, track, day=2, start=10, end=11)
    for slot in (monday_early, monday_mid, tuesday):
        await services.booking.book(BookingCreate(availability_id=slot.id), make_actor(RoleEnum.STUDENT), now=NOW)

    matches = await services.booking.find_matching_slots(date(2026, 10, 12), 10, 12, instructor.id)

    assert [booking.availability_id for booking in matches] == [monday_mid.id]


@pytest.mark.asyncio
async def test_notes_remain_editable_on_linked_booking() -> None:
    services, instructor, track = _setup()
    slot = await _publish(services, instructor, track)
    student = make_actor(RoleEnum.STUDENT)
    booking = await services.booking.book(BookingCreate(availability_id=slot.id), student, now=NOW)
    booking.session_id = booking.id

    updated = await services.booking.update_notes(
        booking.id,
        BookingNotesUpdate(instructor_notes="Bring the worksheet"),
        instructor,
    )
    assert updated.instructor_notes == "Bring the worksheet"

    with pytest.raises(Forbidden):
        await services.booking.update_notes(booking.id, BookingNotesUpdate(instructor_notes="x"), student)


@pytest.mark.asyncio
async def test_list_bookings_scoped_to_student() -> None:
    store = FakeStore()
    store.set_policy(5, 22, 168)
    services = build_services(store)
    instructor = make_actor(RoleEnum.INSTRUCTOR)
    track = store.add_track(instructor.id)
    student = make_actor(RoleEnum.STUDENT)
    first = await _publish(services, instructor, track, day=1)
    second = await _publish(services, instructor, track, day=2)
    await services.booking.book(BookingCreate(availability_id=first.id), student, now=NOW)
    await services.booking.book(BookingCreate(availability_id=second.id), make_actor(RoleEnum.STUDENT), now=NOW)

    items, total = await services.booking.list_bookings(student, limit=20, offset=0)

    assert total == 1
    assert items[0].status == BookingStatusEnum.BOOKED


@pytest.mark.asyncio
async def test_unconfirmed_slot_is_hidden_and_cannot_be_booked() -> None:
    services, instructor, track = _setup()
    slot = await _publish(services, instructor, track, confirm=False)

    assert await services.scheduling.list_available_slots(track.id, CURRENT_WEEK) == []
    with pytest.raises(SlotNotConfirmed):
        await services.booking.book(BookingCreate(availability_id=slot.id), make_actor(RoleEnum.STUDENT), now=NOW)
    assert slot.is_booked is False
    assert services.store.bookings == {}

    await services.scheduling.confirm_week(
        WeekConfirm(instructor_id=instructor.id, track_id=track.id, week_start_date=CURRENT_WEEK),
        instructor,
    )

    assert [item.id for item in await services.scheduling.list_available_slots(track.id, CURRENT_WEEK)] == [slot.id]
    booking = await services.booking.book(BookingCreate(availability_id=slot.id), make_actor(RoleEnum.STUDENT), now=NOW)
    assert booking.availability_id == slot.id
