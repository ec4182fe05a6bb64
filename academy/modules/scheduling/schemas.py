"""Scheduling schemas."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from pydantic import ConfigDict, Field

from academy.shared.schemas import CamelModel


class SlotCreate(CamelModel):
    """Publish one availability slot."""

    instructor_id: UUID
    track_id: UUID
    week_start_date: date
    day_of_week: int
    start_hour: int
    end_hour: int


class WeekSlot(CamelModel):
    """Day and hour range inside a bulk publish request."""

    day_of_week: int
    start_hour: int
    end_hour: int


class WeekSlotsCreate(CamelModel):
    """Publish several slots of one week and track at once."""

    instructor_id: UUID
    track_id: UUID
    week_start_date: date
    slots: list[WeekSlot] = Field(min_length=1)


class WeekConfirm(CamelModel):
    """Confirm an instructor's published week for a track."""

    instructor_id: UUID
    track_id: UUID
    week_start_date: date


class WeekConfirmResult(CamelModel):
    confirmed: int


class SlotRead(CamelModel):
    """Availability slot response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    instructor_id: UUID
    track_id: UUID
    week_start_date: date
    day_of_week: int
    start_hour: int
    end_hour: int
    calendar_date: date
    is_booked: bool
    is_confirmed: bool


class InstructorSlots(CamelModel):
    instructor_id: UUID
    slots: list[SlotRead]


class AvailableSlotsRead(CamelModel):
    """Unbooked slots of one track and week grouped by instructor."""

    track_id: UUID
    week_start_date: date
    instructors: list[InstructorSlots]
