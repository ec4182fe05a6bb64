"""Attendance schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import ConfigDict, Field

from academy.core.enums import AttendanceStatusEnum
from academy.shared.schemas import CamelModel


class RosterInit(CamelModel):
    """Omit ``studentIds`` to build the roster from the session's bookings."""

    student_ids: list[UUID] | None = None


class AttendanceMark(CamelModel):
    # Kept as plain text so unknown values surface as ``invalid_status``.
    student_id: UUID
    status: str
    notes: str | None = Field(default=None, max_length=2000)


class AttendanceStatusUpdate(CamelModel):
    status: str
    notes: str | None = Field(default=None, max_length=2000)


class AttendanceBulk(CamelModel):
    records: list[AttendanceMark] = Field(min_length=1)


class AttendanceRecordRead(CamelModel):
    """Attendance record response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    session_id: UUID
    student_id: UUID
    status: AttendanceStatusEnum
    marked_at: datetime | None
    marked_by_id: UUID | None
    notes: str | None


class AttendanceStatsRead(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    session_id: UUID
    present: int
    absent: int
    late: int
    excused: int
    total: int
    attendance_rate: float
