"""Scheduling API router."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from academy.core.enums import RoleEnum
from academy.modules.identity.service import get_current_user
from academy.modules.scheduling.schemas import (
    AvailableSlotsRead,
    InstructorSlots,
    SlotCreate,
    SlotRead,
    WeekConfirm,
    WeekConfirmResult,
    WeekSlotsCreate,
)
from academy.modules.scheduling.service import (
    SchedulingService,
    get_scheduling_service,
    group_slots_by_instructor,
)
from academy.shared.exceptions import Forbidden

router = APIRouter(prefix="/scheduling", tags=["scheduling"])


@router.post("/slots", response_model=SlotRead, status_code=status.HTTP_201_CREATED)
async def publish_slot(
    payload: SlotCreate,
    service: SchedulingService = Depends(get_scheduling_service),
    current_user=Depends(get_current_user),
) -> SlotRead:
    """Publish one availability slot."""
    slot = await service.publish_slot(payload, current_user)
    return SlotRead.model_validate(slot)


@router.post("/slots/week", response_model=list[SlotRead], status_code=status.HTTP_201_CREATED)
async def publish_week(
    payload: WeekSlotsCreate,
    service: SchedulingService = Depends(get_scheduling_service),
    current_user=Depends(get_current_user),
) -> list[SlotRead]:
    """Publish several slots of one week and track."""
    slots = await service.publish_week(payload, current_user)
    return [SlotRead.model_validate(slot) for slot in slots]


@router.post("/slots/confirm", response_model=WeekConfirmResult)
async def confirm_week(
    payload: WeekConfirm,
    service: SchedulingService = Depends(get_scheduling_service),
    current_user=Depends(get_current_user),
) -> WeekConfirmResult:
    """Confirm a published week."""
    confirmed = await service.confirm_week(payload, current_user)
    return WeekConfirmResult(confirmed=confirmed)


@router.get("/slots/available", response_model=AvailableSlotsRead)
async def list_available_slots(
    track_id: UUID = Query(alias="trackId"),
    week_start_date: date | None = Query(default=None, alias="weekStartDate"),
    service: SchedulingService = Depends(get_scheduling_service),
    current_user=Depends(get_current_user),
) -> AvailableSlotsRead:
    """List unbooked slots for a track, defaulting to the current week."""
    week_start = await service.resolve_week_start(week_start_date)
    slots = await service.list_available_slots(track_id, week_start)
    grouped = group_slots_by_instructor(slots)
    return AvailableSlotsRead(
        track_id=track_id,
        week_start_date=week_start,
        instructors=[
            InstructorSlots(
                instructor_id=instructor_id,
                slots=[SlotRead.model_validate(slot) for slot in instructor_slots],
            )
            for instructor_id, instructor_slots in grouped.items()
        ],
    )


@router.get("/slots/mine", response_model=list[SlotRead])
async def list_my_slots(
    week_start_date: date | None = Query(default=None, alias="weekStartDate"),
    track_id: UUID | None = Query(default=None, alias="trackId"),
    service: SchedulingService = Depends(get_scheduling_service),
    current_user=Depends(get_current_user),
) -> list[SlotRead]:
    """List the current instructor's own slots."""
    if current_user.role.name != RoleEnum.INSTRUCTOR:
        raise Forbidden("Only instructors have their own availability")
    slots = await service.list_instructor_slots(current_user.id, week_start_date, track_id)
    return [SlotRead.model_validate(slot) for slot in slots]
