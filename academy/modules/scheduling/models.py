"""Scheduling ORM models."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, Date, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from academy.core.database import Base, BaseModelMixin
from academy.modules.policy.calendar import slot_date

if TYPE_CHECKING:
    from academy.modules.booking.models import Booking


class AvailabilitySlot(BaseModelMixin, Base):
    """Weekly hour range an instructor offers for one track."""

    __tablename__ = "availability_slots"
    __table_args__ = (
        UniqueConstraint(
            "instructor_id",
            "track_id",
            "week_start_date",
            "day_of_week",
            "start_hour",
            name="uq_availability_slots_instructor_week_hour",
        ),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="day_of_week_range"),
        CheckConstraint("start_hour BETWEEN 0 AND 23", name="start_hour_range"),
        CheckConstraint("end_hour > start_hour AND end_hour <= 24", name="end_hour_range"),
    )

    instructor_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    track_id: Mapped[UUID] = mapped_column(
        ForeignKey("tracks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_by_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    week_start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    start_hour: Mapped[int] = mapped_column(Integer, nullable=False)
    end_hour: Mapped[int] = mapped_column(Integer, nullable=False)
    is_booked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    is_confirmed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    booking: Mapped[Booking | None] = relationship(back_populates="slot", uselist=False)

    @property
    def calendar_date(self) -> date:
        return slot_date(self.week_start_date, self.day_of_week)
