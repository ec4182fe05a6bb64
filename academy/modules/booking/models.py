"""Booking ORM models."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Enum as SAEnum, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from academy.core.database import Base, BaseModelMixin
from academy.core.enums import BookingStatusEnum

if TYPE_CHECKING:
    from academy.modules.scheduling.models import AvailabilitySlot
    from academy.modules.sessions.models import LiveSession


class Booking(BaseModelMixin, Base):
    """Student claim on one availability slot."""

    __tablename__ = "bookings"

    availability_id: Mapped[UUID] = mapped_column(
        ForeignKey("availability_slots.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
    )
    student_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    track_id: Mapped[UUID] = mapped_column(ForeignKey("tracks.id", ondelete="CASCADE"), nullable=False, index=True)
    session_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("live_sessions.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    status: Mapped[BookingStatusEnum] = mapped_column(
        SAEnum(BookingStatusEnum, name="booking_status_enum", native_enum=False),
        default=BookingStatusEnum.BOOKED,
        nullable=False,
        index=True,
    )
    student_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    instructor_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    slot: Mapped["AvailabilitySlot"] = relationship(back_populates="booking")
    session: Mapped["LiveSession | None"] = relationship(back_populates="bookings")
