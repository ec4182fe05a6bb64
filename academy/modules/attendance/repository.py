"""Attendance repository layer."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from academy.core.enums import AttendanceStatusEnum
from academy.modules.attendance.models import AttendanceRecord


class AttendanceRepository:
    """DB operations for attendance records."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list_records(self, session_id: UUID) -> list[AttendanceRecord]:
        stmt = (
            select(AttendanceRecord)
            .where(AttendanceRecord.session_id == session_id)
            .order_by(AttendanceRecord.created_at.asc())
            .execution_options(populate_existing=True)
        )
        return list((await self.session.scalars(stmt)).all())

    async def create_missing(self, session_id: UUID, student_ids: Sequence[UUID]) -> int:
        """Insert an ``absent`` row per student, skipping students already on the roster."""
        if not student_ids:
            return 0
        stmt = (
            insert(AttendanceRecord)
            .values(
                [
                    {"session_id": session_id, "student_id": student_id, "status": AttendanceStatusEnum.ABSENT}
                    for student_id in student_ids
                ],
            )
            .on_conflict_do_nothing(constraint="uq_attendance_records_session_student")
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def upsert_record(
        self,
        session_id: UUID,
        student_id: UUID,
        status: AttendanceStatusEnum,
        marked_by_id: UUID,
        marked_at: datetime,
        notes: str | None,
    ) -> None:
        values = {
            "status": status,
            "marked_by_id": marked_by_id,
            "marked_at": marked_at,
        }
        # Omitted notes keep whatever was recorded earlier.
        if notes is not None:
            values["notes"] = notes
        stmt = (
            insert(AttendanceRecord)
            .values(session_id=session_id, student_id=student_id, **values)
            .on_conflict_do_update(constraint="uq_attendance_records_session_student", set_=values)
        )
        await self.session.execute(stmt)
