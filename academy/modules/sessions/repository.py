"""Live session repository layer."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import Select, false, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from academy.core.enums import STAFF_ROLES, RoleEnum, SessionStatusEnum
from academy.modules.booking.models import Booking
from academy.modules.sessions.models import LiveSession


class SessionsRepository:
    """DB operations for live sessions."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_session(self, **fields: Any) -> LiveSession:
        live_session = LiveSession(**fields)
        self.session.add(live_session)
        await self.session.flush()
        return live_session

    async def get_session_by_id(self, session_id: UUID) -> LiveSession | None:
        stmt = select(LiveSession).options(selectinload(LiveSession.bookings)).where(LiveSession.id == session_id)
        return await self.session.scalar(stmt)

    async def get_status(self, session_id: UUID) -> SessionStatusEnum | None:
        stmt = select(LiveSession.status).where(LiveSession.id == session_id)
        return await self.session.scalar(stmt)

    async def update_if_status(
        self,
        session_id: UUID,
        expected: SessionStatusEnum,
        **values: Any,
    ) -> bool:
        """Apply ``values`` only while the row still has the ``expected`` status."""
        stmt = (
            update(LiveSession)
            .where(LiveSession.id == session_id, LiveSession.status == expected)
            .values(**values)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def student_has_booking(self, session_id: UUID, student_id: UUID) -> bool:
        stmt = select(Booking.id).where(Booking.session_id == session_id, Booking.student_id == student_id).limit(1)
        return (await self.session.scalar(stmt)) is not None

    async def list_sessions(
        self,
        user_id: UUID,
        role_name: RoleEnum,
        limit: int,
        offset: int,
        status: SessionStatusEnum | None = None,
    ) -> tuple[list[LiveSession], int]:
        base_stmt: Select[tuple[LiveSession]] = select(LiveSession)

        if role_name == RoleEnum.INSTRUCTOR:
            base_stmt = base_stmt.where(LiveSession.instructor_id == user_id)
        elif role_name == RoleEnum.STUDENT:
            booked = select(Booking.session_id).where(Booking.student_id == user_id, Booking.session_id.is_not(None))
            base_stmt = base_stmt.where(LiveSession.id.in_(booked))
        elif role_name not in STAFF_ROLES:
            base_stmt = base_stmt.where(false())
        if status is not None:
            base_stmt = base_stmt.where(LiveSession.status == status)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = (
            base_stmt.order_by(LiveSession.date.desc().nulls_last(), LiveSession.start_time.asc())
            .limit(limit)
            .offset(offset)
        )
        items = (await self.session.scalars(stmt)).all()
        return items, total

    async def refresh(self, live_session: LiveSession) -> LiveSession:
        await self.session.refresh(live_session)
        return live_session
