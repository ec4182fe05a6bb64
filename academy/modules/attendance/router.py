"""Attendance API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from academy.modules.attendance.schemas import (
    AttendanceBulk,
    AttendanceRecordRead,
    AttendanceStatsRead,
    AttendanceStatusUpdate,
    RosterInit,
)
from academy.modules.attendance.service import AttendanceService, get_attendance_service
from academy.modules.identity.service import get_current_user

router = APIRouter(prefix="/attendance", tags=["attendance"])


@router.post("/sessions/{session_id}/roster", response_model=list[AttendanceRecordRead])
async def initialize_roster(
    session_id: UUID,
    payload: RosterInit,
    service: AttendanceService = Depends(get_attendance_service),
    current_user=Depends(get_current_user),
) -> list[AttendanceRecordRead]:
    """Create missing roster rows for the session."""
    records = await service.initialize_roster(session_id, payload.student_ids, current_user)
    return [AttendanceRecordRead.model_validate(item) for item in records]


@router.get("/sessions/{session_id}/roster", response_model=list[AttendanceRecordRead])
async def list_roster(
    session_id: UUID,
    service: AttendanceService = Depends(get_attendance_service),
    current_user=Depends(get_current_user),
) -> list[AttendanceRecordRead]:
    records = await service.list_roster(session_id, current_user)
    return [AttendanceRecordRead.model_validate(item) for item in records]


@router.put("/sessions/{session_id}/students/{student_id}", response_model=AttendanceRecordRead)
async def set_attendance_status(
    session_id: UUID,
    student_id: UUID,
    payload: AttendanceStatusUpdate,
    service: AttendanceService = Depends(get_attendance_service),
    current_user=Depends(get_current_user),
) -> AttendanceRecordRead:
    """Mark one student's attendance."""
    record = await service.set_status(session_id, student_id, payload.status, current_user, payload.notes)
    return AttendanceRecordRead.model_validate(record)


@router.post("/sessions/{session_id}/marks", response_model=list[AttendanceRecordRead])
async def mark_attendance_bulk(
    session_id: UUID,
    payload: AttendanceBulk,
    service: AttendanceService = Depends(get_attendance_service),
    current_user=Depends(get_current_user),
) -> list[AttendanceRecordRead]:
    """Mark attendance for several students at once."""
    records = await service.mark_bulk(session_id, payload.records, current_user)
    return [AttendanceRecordRead.model_validate(item) for item in records]


@router.get("/sessions/{session_id}/stats", response_model=AttendanceStatsRead)
async def get_attendance_stats(
    session_id: UUID,
    service: AttendanceService = Depends(get_attendance_service),
    current_user=Depends(get_current_user),
) -> AttendanceStatsRead:
    stats = await service.compute_stats(session_id, current_user)
    return AttendanceStatsRead.model_validate(stats)
