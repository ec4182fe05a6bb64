"""Live session business logic layer."""

from __future__ import annotations

import datetime as dt
import logging
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from academy.core.database import get_db_session
from academy.core.enums import STAFF_ROLES, RoleEnum, SessionStatusEnum
from academy.core.metrics import record_session_transition
from academy.modules.audit.repository import AuditRepository
from academy.modules.booking.models import Booking
from academy.modules.booking.repository import BookingRepository
from academy.modules.identity.models import User
from academy.modules.sessions.models import LiveSession
from academy.modules.sessions.repository import SessionsRepository
from academy.modules.sessions.schemas import JoinInfoRead, SessionCreate, SessionLinkUpdate, SessionTransition
from academy.modules.sessions.transitions import (
    TERMINAL_STATUSES,
    allowed_targets,
    can_start_session,
    is_transition_allowed,
    validate_external_link,
)
from academy.modules.tracks.repository import TracksRepository
from academy.shared.exceptions import (
    BookingAlreadyLinked,
    BookingNotFound,
    BusinessRuleException,
    Forbidden,
    IllegalTransition,
    InvalidMeetingLink,
    InvalidRange,
    MissingExternalLink,
    SessionNotFound,
    TrackNotFound,
    ValidationException,
)
from academy.shared.utils import local_now

logger = logging.getLogger(__name__)


def append_note(existing: str | None, author: str, note: str, now: dt.datetime) -> str:
    """Append one ``[timestamp] author: note`` line to the control log."""
    line = f"[{now.isoformat(timespec='seconds')}] {author}: {note.strip()}"
    return f"{existing}\n{line}" if existing else line


def validate_schedule(
    date: dt.date | None,
    start_time: dt.time | None,
    end_time: dt.time | None,
) -> bool:
    """Return True for a complete schedule, False for none; raise on a partial or inverted one."""
    provided = [value is not None for value in (date, start_time, end_time)]
    if not any(provided):
        return False
    if not all(provided):
        raise InvalidRange(
            "date, startTime and endTime must be given together",
            details={
                "date": date and date.isoformat(),
                "startTime": start_time and start_time.isoformat(),
                "endTime": end_time and end_time.isoformat(),
            },
        )
    if end_time <= start_time:
        raise InvalidRange(
            "endTime must be after startTime",
            details={"startTime": start_time.isoformat(), "endTime": end_time.isoformat()},
        )
    return True


class SessionService:
    """Session lifecycle: creation, status transitions, links and booking attachment."""

    def __init__(
        self,
        repository: SessionsRepository,
        booking_repository: BookingRepository,
        tracks_repository: TracksRepository,
        audit_repository: AuditRepository,
    ) -> None:
        self.repository = repository
        self.booking_repository = booking_repository
        self.tracks_repository = tracks_repository
        self.audit_repository = audit_repository

    @staticmethod
    def _ensure_can_manage(live_session: LiveSession, actor: User) -> None:
        role = actor.role.name
        if role in STAFF_ROLES:
            return
        if role == RoleEnum.INSTRUCTOR and live_session.instructor_id == actor.id:
            return
        raise Forbidden("Only staff or the session instructor can manage this session")

    async def _get_session(self, session_id: UUID) -> LiveSession:
        live_session = await self.repository.get_session_by_id(session_id)
        if live_session is None:
            raise SessionNotFound(details={"sessionId": str(session_id)})
        return live_session

    async def _raise_lost_race(self, live_session: LiveSession, target: SessionStatusEnum) -> None:
        fresh = await self.repository.get_status(live_session.id)
        raise IllegalTransition(
            "Session status changed concurrently",
            details={"currentStatus": str(fresh), "targetStatus": str(target)},
        )

    async def _record(self, live_session: LiveSession, actor: User, event_type: str, payload: dict) -> None:
        await self.audit_repository.record_event(
            actor_id=actor.id,
            aggregate_type="live_session",
            aggregate_id=str(live_session.id),
            event_type=event_type,
            payload={"session_id": str(live_session.id), **payload},
        )

    async def get_session(self, session_id: UUID, actor: User) -> LiveSession:
        """Return a session the actor can see; others get a not-found error."""
        live_session = await self._get_session(session_id)
        role = actor.role.name
        if role in STAFF_ROLES:
            return live_session
        if role == RoleEnum.INSTRUCTOR and live_session.instructor_id == actor.id:
            return live_session
        if role == RoleEnum.STUDENT and await self.repository.student_has_booking(live_session.id, actor.id):
            return live_session
        raise SessionNotFound(details={"sessionId": str(session_id)})

    async def create_session(self, payload: SessionCreate, actor: User) -> LiveSession:
        role = actor.role.name
        instructor_id = payload.instructor_id
        if role == RoleEnum.INSTRUCTOR:
            if instructor_id is not None and instructor_id != actor.id:
                raise Forbidden("Instructors can only create their own sessions")
            instructor_id = actor.id
        elif role not in STAFF_ROLES:
            raise Forbidden("Only instructors or staff can create sessions")
        elif instructor_id is None:
            raise ValidationException("instructorId is required")

        track = await self.tracks_repository.get_track_by_id(payload.track_id)
        if track is None:
            raise TrackNotFound(details={"trackId": str(payload.track_id)})
        if role == RoleEnum.INSTRUCTOR and track.instructor_id != actor.id:
            raise Forbidden("Instructor is not assigned to this track")

        scheduled = validate_schedule(payload.date, payload.start_time, payload.end_time)
        live_session = await self.repository.create_session(
            title=payload.title,
            description=payload.description,
            track_id=payload.track_id,
            instructor_id=instructor_id,
            created_by_id=actor.id,
            date=payload.date,
            start_time=payload.start_time,
            end_time=payload.end_time,
            status=SessionStatusEnum.SCHEDULED if scheduled else SessionStatusEnum.DRAFT,
        )
        for booking_id in payload.booking_ids:
            await self._attach(live_session, booking_id)

        await self._record(
            live_session,
            actor,
            "session.created",
            {"status": str(live_session.status), "booking_ids": [str(item) for item in payload.booking_ids]},
        )
        logger.info("Session %s created in %s by %s", live_session.id, live_session.status, actor.id)
        return live_session

    async def transition(
        self,
        session_id: UUID,
        payload: SessionTransition,
        actor: User,
        now: dt.datetime | None = None,
    ) -> LiveSession:
        """Move a session along the lifecycle table.

        The write is conditional on the status read here; a concurrent change
        surfaces as ``IllegalTransition`` carrying the fresh status.
        """
        live_session = await self._get_session(session_id)
        self._ensure_can_manage(live_session, actor)

        current = live_session.status
        target = payload.status
        if not is_transition_allowed(current, target):
            raise IllegalTransition(
                details={
                    "currentStatus": str(current),
                    "targetStatus": str(target),
                    "allowedTargets": allowed_targets(current),
                },
            )

        values: dict = {"status": target}
        if target == SessionStatusEnum.SCHEDULED:
            date = payload.date or live_session.date
            start_time = payload.start_time or live_session.start_time
            end_time = payload.end_time or live_session.end_time
            if not validate_schedule(date, start_time, end_time):
                raise InvalidRange("date, startTime and endTime are required to schedule a session")
            values.update(date=date, start_time=start_time, end_time=end_time)
            if can_start_session(live_session.external_link):
                if current == SessionStatusEnum.READY:
                    raise IllegalTransition(
                        "Clear the meeting link to move a ready session back to scheduled",
                        details={"currentStatus": str(current), "targetStatus": str(target)},
                    )
                # A draft that already carries a link lands in READY.
                target = SessionStatusEnum.READY
                values["status"] = target
        if target == SessionStatusEnum.ACTIVE and not can_start_session(live_session.external_link):
            raise MissingExternalLink(
                details={"sessionId": str(live_session.id), "currentStatus": str(current)},
            )

        now = now or local_now()
        if payload.notes:
            values["notes"] = append_note(live_session.notes, actor.full_name, payload.notes, now)

        if not await self.repository.update_if_status(live_session.id, current, **values):
            await self._raise_lost_race(live_session, target)

        completed_bookings = 0
        if target == SessionStatusEnum.COMPLETED:
            completed_bookings = await self.booking_repository.complete_session_bookings(live_session.id)

        record_session_transition(str(current), str(target))
        await self._record(
            live_session,
            actor,
            "session.status_changed",
            {"from_status": str(current), "to_status": str(target), "completed_bookings": completed_bookings},
        )
        logger.info("Session %s moved %s -> %s by %s", live_session.id, current, target, actor.id)
        return await self.repository.refresh(live_session)

    async def set_link(
        self,
        session_id: UUID,
        payload: SessionLinkUpdate,
        actor: User,
        now: dt.datetime | None = None,
    ) -> LiveSession:
        """Store or clear the meeting link, moving between SCHEDULED and READY to match."""
        live_session = await self._get_session(session_id)
        self._ensure_can_manage(live_session, actor)

        current = live_session.status
        if current in TERMINAL_STATUSES:
            raise IllegalTransition(
                "Cannot change the link of a finished session",
                details={"currentStatus": str(current)},
            )

        link = payload.external_link
        if link is not None and link.strip():
            check = validate_external_link(link)
            if not check.is_valid:
                raise InvalidMeetingLink(check.error, details={"externalLink": link})
            link = check.link
        else:
            link = None
        if link is None and current == SessionStatusEnum.ACTIVE:
            raise MissingExternalLink("An active session must keep its meeting link")

        target = current
        if link is not None and current == SessionStatusEnum.SCHEDULED:
            target = SessionStatusEnum.READY
        elif link is None and current == SessionStatusEnum.READY:
            target = SessionStatusEnum.SCHEDULED

        values: dict = {
            "external_link": link,
            "link_added_at": (now or local_now()) if link is not None else None,
        }
        if target != current:
            values["status"] = target
        if not await self.repository.update_if_status(live_session.id, current, **values):
            await self._raise_lost_race(live_session, target)

        if target != current:
            record_session_transition(str(current), str(target))
        await self._record(
            live_session,
            actor,
            "session.link_updated",
            {"has_link": link is not None, "from_status": str(current), "to_status": str(target)},
        )
        logger.info("Session %s link %s", live_session.id, "set" if link else "cleared")
        return await self.repository.refresh(live_session)

    async def _attach(self, live_session: LiveSession, booking_id: UUID) -> Booking:
        if live_session.status in TERMINAL_STATUSES:
            raise IllegalTransition(
                "Session no longer accepts bookings",
                details={"currentStatus": str(live_session.status)},
            )
        booking = await self.booking_repository.get_booking_by_id(booking_id)
        if booking is None:
            raise BookingNotFound(details={"bookingId": str(booking_id)})
        if booking.track_id != live_session.track_id:
            raise BusinessRuleException(
                "Booking belongs to a different track",
                details={"bookingTrackId": str(booking.track_id), "sessionTrackId": str(live_session.track_id)},
            )

        linked = BookingAlreadyLinked(details={"bookingId": str(booking.id)})
        if booking.session_id is not None:
            raise linked
        if not await self.booking_repository.attach_to_session(booking.id, live_session.id):
            raise linked
        return booking

    async def attach_booking(self, session_id: UUID, booking_id: UUID, actor: User) -> Booking:
        """Link an unattached booking to the session."""
        live_session = await self._get_session(session_id)
        self._ensure_can_manage(live_session, actor)
        booking = await self._attach(live_session, booking_id)
        await self._record(live_session, actor, "session.booking_attached", {"booking_id": str(booking.id)})
        logger.info("Booking %s attached to session %s", booking.id, live_session.id)
        return booking

    async def list_sessions(
        self,
        actor: User,
        limit: int,
        offset: int,
        status: SessionStatusEnum | None = None,
    ) -> tuple[list[LiveSession], int]:
        return await self.repository.list_sessions(actor.id, actor.role.name, limit, offset, status)

    async def get_join_info(self, session_id: UUID, actor: User) -> JoinInfoRead:
        """Joining is possible only while the session is active and its link is valid."""
        live_session = await self.get_session(session_id, actor)
        check = validate_external_link(live_session.external_link)
        can_join = live_session.status == SessionStatusEnum.ACTIVE and check.is_valid
        return JoinInfoRead(
            session_id=live_session.id,
            status=live_session.status,
            can_join=can_join,
            external_link=check.link if can_join else None,
            platform=check.platform,
        )


def build_session_service(session: AsyncSession) -> SessionService:
    return SessionService(
        repository=SessionsRepository(session),
        booking_repository=BookingRepository(session),
        tracks_repository=TracksRepository(session),
        audit_repository=AuditRepository(session),
    )


async def get_session_service(session: AsyncSession = Depends(get_db_session)) -> SessionService:
    """Dependency provider for session service."""
    return build_session_service(session)
