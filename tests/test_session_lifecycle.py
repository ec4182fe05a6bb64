from __future__ import annotations

from datetime import UTC, date, datetime, time

import pytest
from fakes import FakeStore, build_services, make_actor

from academy.core.enums import BookingStatusEnum, RoleEnum, SessionStatusEnum
from academy.modules.booking.schemas import BookingCreate
from academy.modules.scheduling.schemas import SlotCreate, WeekConfirm
from academy.modules.sessions.schemas import SessionCreate, SessionLinkUpdate, SessionTransition
from academy.modules.sessions.transitions import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    can_start_session,
    validate_external_link,
)
from academy.shared.exceptions import (
    BookingAlreadyLinked,
    Forbidden,
    IllegalTransition,
    InvalidMeetingLink,
    InvalidRange,
    MissingExternalLink,
    SessionNotFound,
)

S = SessionStatusEnum
NOW = datetime(2026, 10, 14, 10, 0, tzinfo=UTC)


def _setup():
    store = FakeStore()
    store.set_policy(5, 22, 168)
    instructor = make_actor(RoleEnum.INSTRUCTOR, full_name="Ada Instructor")
    track = store.add_track(instructor.id)
    return build_services(store), instructor, track


async def _scheduled_session(services, instructor, track):
    return await services.sessions.create_session(
        SessionCreate(
            title="Weekly review",
            track_id=track.id,
            date=date(2026, 10, 16),
            start_time=time(10, 0),
            end_time=time(11, 0),
        ),
        instructor,
    )


def test_transition_table_has_terminal_completed_and_cancelled() -> None:
    assert TERMINAL_STATUSES == {S.COMPLETED, S.CANCELLED}
    assert ALLOWED_TRANSITIONS[S.ACTIVE] == {S.COMPLETED, S.CANCELLED}
    assert S.COMPLETED not in ALLOWED_TRANSITIONS[S.READY]
    for status in S:
        if status not in TERMINAL_STATUSES:
            assert S.CANCELLED in ALLOWED_TRANSITIONS[status]


@pytest.mark.parametrize(
    ("url", "platform"),
    [
        ("https://zoom.us/j/123456789", "zoom"),
        ("https://meet.google.com/abc-defg-hij", "google-meet"),
        ("https://teams.microsoft.com/l/meetup-join/x", "teams"),
        ("  https://meet.example/abc  ", "other"),
    ],
)
def test_valid_links_are_labelled_by_host(url: str, platform: str) -> None:
    check = validate_external_link(url)

    assert check.is_valid is True
    assert check.platform == platform
    assert check.link == url.strip()


@pytest.mark.parametrize("url", [None, "", "   ", "meet.example/abc", "ftp://files.example/x", "https://"])
def test_invalid_links_cannot_start_session(url: str | None) -> None:
    assert can_start_session(url) is False


@pytest.mark.asyncio
async def test_session_needs_link_before_going_active() -> None:
    services, instructor, track = _setup()
    live_session = await _scheduled_session(services, instructor, track)
    assert live_session.status == S.SCHEDULED

    with pytest.raises(MissingExternalLink):
        await services.sessions.transition(live_session.id, SessionTransition(status=S.ACTIVE), instructor, now=NOW)
    assert live_session.status == S.SCHEDULED

    await services.sessions.set_link(
        live_session.id,
        SessionLinkUpdate(external_link="https://meet.example/abc"),
        instructor,
        now=NOW,
    )
    assert live_session.status == S.READY
    assert live_session.link_added_at == NOW

    result = await services.sessions.transition(
        live_session.id,
        SessionTransition(status=S.ACTIVE),
        instructor,
        now=NOW,
    )
    assert result.status == S.ACTIVE


@pytest.mark.asyncio
async def test_illegal_transition_reports_current_and_target() -> None:
    services, instructor, track = _setup()
    draft = await services.sessions.create_session(
        SessionCreate(title="Draft", track_id=track.id),
        instructor,
    )
    assert draft.status == S.DRAFT

    with pytest.raises(IllegalTransition) as exc:
        await services.sessions.transition(draft.id, SessionTransition(status=S.ACTIVE), instructor, now=NOW)

    assert exc.value.details["currentStatus"] == "DRAFT"
    assert exc.value.details["targetStatus"] == "ACTIVE"
    assert draft.status == S.DRAFT


@pytest.mark.asyncio
async def test_draft_is_scheduled_once_times_are_given() -> None:
    services, instructor, track = _setup()
    draft = await services.sessions.create_session(SessionCreate(title="Draft", track_id=track.id), instructor)

    with pytest.raises(InvalidRange):
        await services.sessions.transition(draft.id, SessionTransition(status=S.SCHEDULED), instructor, now=NOW)

    scheduled = await services.sessions.transition(
        draft.id,
        SessionTransition(status=S.SCHEDULED, date=date(2026, 10, 16), start_time=time(9), end_time=time(10)),
        instructor,
        now=NOW,
    )
    assert scheduled.status == S.SCHEDULED
    assert scheduled.start_time == time(9)


@pytest.mark.asyncio
async def test_completing_session_completes_linked_bookings_and_is_terminal() -> None:
    services, instructor, track = _setup()
    slot = await services.scheduling.publish_slot(
        SlotCreate(
            instructor_id=instructor.id,
            track_id=track.id,
            week_start_date=date(2026, 10, 9),
            day_of_week=5,
            start_hour=10,
            end_hour=11,
        ),
        instructor,
        now=NOW,
    )
    await services.scheduling.confirm_week(
        WeekConfirm(instructor_id=instructor.id, track_id=track.id, week_start_date=date(2026, 10, 9)),
        instructor,
    )
    booking = await services.booking.book(
        BookingCreate(availability_id=slot.id),
        make_actor(RoleEnum.STUDENT),
        now=NOW,
    )
    live_session = await _scheduled_session(services, instructor, track)
    await services.sessions.attach_booking(live_session.id, booking.id, instructor)
    await services.sessions.set_link(
        live_session.id,
        SessionLinkUpdate(external_link="https://zoom.us/j/1"),
        instructor,
        now=NOW,
    )
    await services.sessions.transition(live_session.id, SessionTransition(status=S.ACTIVE), instructor, now=NOW)

    await services.sessions.transition(live_session.id, SessionTransition(status=S.COMPLETED), instructor, now=NOW)

    assert booking.status == BookingStatusEnum.COMPLETED
    with pytest.raises(IllegalTransition):
        await services.sessions.transition(live_session.id, SessionTransition(status=S.CANCELLED), instructor)
    with pytest.raises(IllegalTransition):
        await services.sessions.set_link(live_session.id, SessionLinkUpdate(external_link=None), instructor)


@pytest.mark.asyncio
async def test_booking_cannot_be_attached_twice() -> None:
    services, instructor, track = _setup()
    slot = await services.scheduling.publish_slot(
        SlotCreate(
            instructor_id=instructor.id,
            track_id=track.id,
            week_start_date=date(2026, 10, 9),
            day_of_week=6,
            start_hour=8,
            end_hour=9,
        ),
        instructor,
        now=NOW,
    )
    await services.scheduling.confirm_week(
        WeekConfirm(instructor_id=instructor.id, track_id=track.id, week_start_date=date(2026, 10, 9)),
        instructor,
    )
    booking = await services.booking.book(BookingCreate(availability_id=slot.id), make_actor(RoleEnum.STUDENT), now=NOW)
    first = await _scheduled_session(services, instructor, track)
    second = await _scheduled_session(services, instructor, track)

    await services.sessions.attach_booking(first.id, booking.id, instructor)
    with pytest.raises(BookingAlreadyLinked):
        await services.sessions.attach_booking(second.id, booking.id, instructor)
    assert booking.session_id == first.id


@pytest.mark.asyncio
async def test_malformed_link_rejected_and_clearing_demotes_ready() -> None:
    services, instructor, track = _setup()
    live_session = await _scheduled_session(services, instructor, track)

    with pytest.raises(InvalidMeetingLink):
        await services.sessions.set_link(live_session.id, SessionLinkUpdate(external_link="not a url"), instructor)

    await services.sessions.set_link(live_session.id, SessionLinkUpdate(external_link="https://meet.example/a"), instructor)
    assert live_session.status == S.READY

    await services.sessions.set_link(live_session.id, SessionLinkUpdate(external_link=None), instructor)
    assert live_session.status == S.SCHEDULED
    assert live_session.external_link is None


@pytest.mark.asyncio
async def test_scheduled_status_never_carries_a_link() -> None:
    services, instructor, track = _setup()
    live_session = await _scheduled_session(services, instructor, track)
    await services.sessions.set_link(live_session.id, SessionLinkUpdate(external_link="https://meet.example/a"), instructor)

    with pytest.raises(IllegalTransition):
        await services.sessions.transition(live_session.id, SessionTransition(status=S.SCHEDULED), instructor, now=NOW)
    assert live_session.status == S.READY

    draft = await services.sessions.create_session(SessionCreate(title="Draft", track_id=track.id), instructor)
    await services.sessions.set_link(draft.id, SessionLinkUpdate(external_link="https://zoom.us/j/7"), instructor)
    assert draft.status == S.DRAFT

    promoted = await services.sessions.transition(
        draft.id,
        SessionTransition(status=S.SCHEDULED, date=date(2026, 10, 16), start_time=time(9), end_time=time(10)),
        instructor,
        now=NOW,
    )
    assert promoted.status == S.READY
    assert promoted.external_link == "https://zoom.us/j/7"


@pytest.mark.asyncio
async def test_losing_status_race_reports_fresh_status() -> None:
    services, instructor, track = _setup()
    live_session = await _scheduled_session(services, instructor, track)
    repository = services.sessions.repository

    async def _cancelled_meanwhile(session_id, expected, **values) -> bool:
        live_session.status = S.CANCELLED
        return False

    repository.update_if_status = _cancelled_meanwhile

    with pytest.raises(IllegalTransition) as exc:
        await services.sessions.transition(live_session.id, SessionTransition(status=S.READY), instructor, now=NOW)
    assert exc.value.details["currentStatus"] == "CANCELLED"


@pytest.mark.asyncio
async def test_role_checks_on_transitions() -> None:
    services, instructor, track = _setup()
    live_session = await _scheduled_session(services, instructor, track)

    with pytest.raises(Forbidden):
        await services.sessions.transition(
            live_session.id,
            SessionTransition(status=S.CANCELLED),
            make_actor(RoleEnum.STUDENT),
        )
    with pytest.raises(Forbidden):
        await services.sessions.transition(
            live_session.id,
            SessionTransition(status=S.CANCELLED),
            make_actor(RoleEnum.INSTRUCTOR),
        )

    coordinator = make_actor(RoleEnum.COORDINATOR, full_name="Coordinator")
    cancelled = await services.sessions.transition(
        live_session.id,
        SessionTransition(status=S.CANCELLED, notes="Instructor unavailable"),
        coordinator,
        now=NOW,
    )
    assert cancelled.status == S.CANCELLED
    assert cancelled.notes == "[2026-10-14T10:00:00+00:00] Coordinator: Instructor unavailable"


@pytest.mark.asyncio
async def test_join_info_only_while_active() -> None:
    services, instructor, track = _setup()
    live_session = await _scheduled_session(services, instructor, track)
    await services.sessions.set_link(
        live_session.id,
        SessionLinkUpdate(external_link="https://meet.google.com/abc-defg-hij"),
        instructor,
    )

    info = await services.sessions.get_join_info(live_session.id, instructor)
    assert info.can_join is False
    assert info.external_link is None

    await services.sessions.transition(live_session.id, SessionTransition(status=S.ACTIVE), instructor)
    info = await services.sessions.get_join_info(live_session.id, instructor)
    assert info.can_join is True
    assert info.platform == "google-meet"

    with pytest.raises(SessionNotFound):
        await services.sessions.get_join_info(live_session.id, make_actor(RoleEnum.STUDENT))
