"""Track ORM models."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.orm import Mapped, mapped_column

from academy.core.database import Base, BaseModelMixin


class Track(BaseModelMixin, Base):
    """Learning track inside a grade, owned by the academics service."""

    __tablename__ = "tracks"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    grade_id: Mapped[UUID | None] = mapped_column(PGUUID(as_uuid=True), nullable=True, index=True)
    instructor_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
