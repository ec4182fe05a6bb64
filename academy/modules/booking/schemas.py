"""Booking schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import ConfigDict, Field

from academy.core.enums import BookingStatusEnum
from academy.modules.scheduling.schemas import SlotRead
from academy.shared.schemas import CamelModel


class BookingCreate(CamelModel):
    """Book a slot; staff pass ``studentId`` to book on a student's behalf."""

    availability_id: UUID
    student_id: UUID | None = None
    student_notes: str | None = Field(default=None, max_length=2000)


class BookingNotesUpdate(CamelModel):
    """Notes are the only editable fields of a booking."""

    student_notes: str | None = Field(default=None, max_length=2000)
    instructor_notes: str | None = Field(default=None, max_length=2000)


class BookingRead(CamelModel):
    """Booking response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    availability_id: UUID
    student_id: UUID
    track_id: UUID
    session_id: UUID | None
    status: BookingStatusEnum
    student_notes: str | None
    instructor_notes: str | None
    created_at: datetime
    slot: SlotRead | None = None
