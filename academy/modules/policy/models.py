"""Schedule policy ORM model."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from academy.core.database import Base, BaseModelMixin

GLOBAL_SCOPE = "global"


class SchedulePolicy(BaseModelMixin, Base):
    """Process-wide weekly reset configuration.

    ``scope`` is unique and always ``global`` so the table holds one row.
    ``version`` is bumped by the ORM on each update and guards concurrent
    writers.
    """

    __tablename__ = "schedule_policies"
    __table_args__ = (
        CheckConstraint("week_reset_day BETWEEN 0 AND 6", name="week_reset_day_range"),
        CheckConstraint("week_reset_hour BETWEEN 0 AND 23", name="week_reset_hour_range"),
        CheckConstraint("availability_open_hours > 0", name="availability_open_hours_positive"),
    )

    scope: Mapped[str] = mapped_column(String(32), default=GLOBAL_SCOPE, unique=True, nullable=False)
    week_reset_day: Mapped[int] = mapped_column(Integer, nullable=False)
    week_reset_hour: Mapped[int] = mapped_column(Integer, nullable=False)
    availability_open_hours: Mapped[int] = mapped_column(Integer, nullable=False)
    next_open_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_by_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    __mapper_args__ = {"version_id_col": version}
