"""Live session schemas."""

from __future__ import annotations

import datetime as dt
from uuid import UUID

from pydantic import ConfigDict, Field

from academy.core.enums import SessionStatusEnum
from academy.shared.schemas import CamelModel


class SessionCreate(CamelModel):
    """Create a session; leave the schedule empty to start in ``DRAFT``."""

    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    track_id: UUID
    instructor_id: UUID | None = None
    date: dt.date | None = None
    start_time: dt.time | None = None
    end_time: dt.time | None = None
    booking_ids: list[UUID] = Field(default_factory=list)


class SessionTransition(CamelModel):
    """Move a session to ``status``; schedule fields complete a draft."""

    status: SessionStatusEnum
    notes: str | None = Field(default=None, max_length=2000)
    date: dt.date | None = None
    start_time: dt.time | None = None
    end_time: dt.time | None = None


class SessionLinkUpdate(CamelModel):
    external_link: str | None = Field(default=None, max_length=2048)


class SessionBookingAttach(CamelModel):
    booking_id: UUID


class SessionRead(CamelModel):
    """Live session response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str | None
    track_id: UUID
    instructor_id: UUID
    date: dt.date | None
    start_time: dt.time | None
    end_time: dt.time | None
    status: SessionStatusEnum
    external_link: str | None
    link_added_at: dt.datetime | None
    notes: str | None
    created_at: dt.datetime


class JoinInfoRead(CamelModel):
    """What a participant needs to enter the external meeting."""

    session_id: UUID
    status: SessionStatusEnum
    can_join: bool
    external_link: str | None
    platform: str | None
