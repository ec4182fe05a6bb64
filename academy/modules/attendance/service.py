"""Attendance business logic layer."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from academy.core.database import get_db_session
from academy.core.enums import STAFF_ROLES, AttendanceStatusEnum, RoleEnum
from academy.modules.attendance.models import AttendanceRecord
from academy.modules.attendance.repository import AttendanceRepository
from academy.modules.attendance.schemas import AttendanceMark
from academy.modules.booking.repository import BookingRepository
from academy.modules.identity.models import User
from academy.modules.sessions.models import LiveSession
from academy.modules.sessions.repository import SessionsRepository
from academy.shared.exceptions import Forbidden, InvalidStatus, SessionNotFound
from academy.shared.utils import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AttendanceStats:
    session_id: UUID
    present: int
    absent: int
    late: int
    excused: int
    total: int
    attendance_rate: float


def parse_status(value: str) -> AttendanceStatusEnum:
    try:
        return AttendanceStatusEnum(value.strip().lower())
    except ValueError as exc:
        raise InvalidStatus(
            details={"status": value, "allowed": [str(item) for item in AttendanceStatusEnum]},
        ) from exc


def summarize(session_id: UUID, records: Iterable[AttendanceRecord]) -> AttendanceStats:
    """Count records per status; the rate is 0 for an empty roster."""
    counts = Counter(record.status for record in records)
    total = sum(counts.values())
    present = counts[AttendanceStatusEnum.PRESENT]
    return AttendanceStats(
        session_id=session_id,
        present=present,
        absent=counts[AttendanceStatusEnum.ABSENT],
        late=counts[AttendanceStatusEnum.LATE],
        excused=counts[AttendanceStatusEnum.EXCUSED],
        total=total,
        attendance_rate=present / total if total else 0.0,
    )


class AttendanceService:
    """Attendance ledger for live sessions."""

    def __init__(
        self,
        repository: AttendanceRepository,
        sessions_repository: SessionsRepository,
        booking_repository: BookingRepository,
    ) -> None:
        self.repository = repository
        self.sessions_repository = sessions_repository
        self.booking_repository = booking_repository

    async def _get_managed_session(self, session_id: UUID, actor: User) -> LiveSession:
        live_session = await self.sessions_repository.get_session_by_id(session_id)
        if live_session is None:
            raise SessionNotFound(details={"sessionId": str(session_id)})
        role = actor.role.name
        if role in STAFF_ROLES:
            return live_session
        if role == RoleEnum.INSTRUCTOR and live_session.instructor_id == actor.id:
            return live_session
        raise Forbidden("Only staff or the session instructor can manage attendance")

    async def initialize_roster(
        self,
        session_id: UUID,
        student_ids: list[UUID] | None,
        actor: User,
    ) -> list[AttendanceRecord]:
        """Materialize ``absent`` rows for students not yet on the roster."""
        live_session = await self._get_managed_session(session_id, actor)
        if student_ids is None:
            bookings = await self.booking_repository.list_bookings_for_session(live_session.id)
            student_ids = [booking.student_id for booking in bookings]
        unique_ids = list(dict.fromkeys(student_ids))

        created = await self.repository.create_missing(live_session.id, unique_ids)
        logger.info("Roster of session %s: %s new of %s students", live_session.id, created, len(unique_ids))
        return await self.repository.list_records(live_session.id)

    async def set_status(
        self,
        session_id: UUID,
        student_id: UUID,
        status: str,
        actor: User,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        parsed = parse_status(status)
        live_session = await self._get_managed_session(session_id, actor)
        await self.repository.upsert_record(
            live_session.id,
            student_id,
            parsed,
            marked_by_id=actor.id,
            marked_at=now or utc_now(),
            notes=notes,
        )
        records = await self.repository.list_records(live_session.id)
        return next(record for record in records if record.student_id == student_id)

    async def mark_bulk(
        self,
        session_id: UUID,
        entries: list[AttendanceMark],
        actor: User,
        now: datetime | None = None,
    ) -> list[AttendanceRecord]:
        """Validate every entry, then write them all; one bad status rejects the batch."""
        parsed = [(entry, parse_status(entry.status)) for entry in entries]
        live_session = await self._get_managed_session(session_id, actor)
        marked_at = now or utc_now()
        for entry, status in parsed:
            await self.repository.upsert_record(
                live_session.id,
                entry.student_id,
                status,
                marked_by_id=actor.id,
                marked_at=marked_at,
                notes=entry.notes,
            )
        logger.info("Marked %s attendance records for session %s", len(parsed), live_session.id)
        return await self.repository.list_records(live_session.id)

    async def compute_stats(self, session_id: UUID, actor: User) -> AttendanceStats:
        live_session = await self._get_managed_session(session_id, actor)
        return summarize(live_session.id, await self.repository.list_records(live_session.id))

    async def list_roster(self, session_id: UUID, actor: User) -> list[AttendanceRecord]:
        live_session = await self._get_managed_session(session_id, actor)
        return await self.repository.list_records(live_session.id)


async def get_attendance_service(session: AsyncSession = Depends(get_db_session)) -> AttendanceService:
    """Dependency provider for attendance service."""
    return AttendanceService(
        repository=AttendanceRepository(session),
        sessions_repository=SessionsRepository(session),
        booking_repository=BookingRepository(session),
    )
