"""Schedule policy schemas."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import ConfigDict

from academy.shared.schemas import CamelModel


class PolicyUpdate(CamelModel):
    """Update schedule policy request.

    Ranges are checked by the service so violations surface as
    ``invalid_policy`` rather than a generic payload error.
    """

    week_reset_day: int
    week_reset_hour: int
    availability_open_hours: int
    next_open_date: datetime | None = None


class PolicyRead(CamelModel):
    """Schedule policy response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    week_reset_day: int
    week_reset_hour: int
    availability_open_hours: int
    next_open_date: datetime | None
    version: int
    updated_by_id: UUID | None
    updated_at: datetime


class BookingWindowRead(CamelModel):
    """Computed booking window for the current moment."""

    model_config = ConfigDict(from_attributes=True)

    current_week_start: date
    next_week_start: date
    next_reset_at: datetime
    next_week_opens_at: datetime
    next_week_open: bool
