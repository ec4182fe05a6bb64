"""Booking repository layer."""

from __future__ import annotations

from datetime import date, timedelta
from uuid import UUID

from sqlalchemy import Select, delete, false, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from academy.core.enums import STAFF_ROLES, BookingStatusEnum, RoleEnum
from academy.modules.booking.models import Booking
from academy.modules.scheduling.models import AvailabilitySlot


def _weeks_covering(day: date) -> tuple[date, date]:
    """Range of week-start dates whose week can contain ``day``."""
    return day - timedelta(days=6), day


class BookingRepository:
    """DB operations for booking domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_booking(
        self,
        availability_id: UUID,
        student_id: UUID,
        track_id: UUID,
        student_notes: str | None,
    ) -> Booking:
        booking = Booking(
            availability_id=availability_id,
            student_id=student_id,
            track_id=track_id,
            status=BookingStatusEnum.BOOKED,
            student_notes=student_notes,
        )
        self.session.add(booking)
        await self.session.flush()
        await self.session.refresh(booking, attribute_names=["slot"])
        return booking

    async def get_booking_by_id(self, booking_id: UUID) -> Booking | None:
        stmt = select(Booking).options(selectinload(Booking.slot)).where(Booking.id == booking_id)
        return await self.session.scalar(stmt)

    async def delete_unlinked_booking(self, booking_id: UUID) -> bool:
        """Delete the booking only while it is not attached to a session."""
        stmt = delete(Booking).where(Booking.id == booking_id, Booking.session_id.is_(None))
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def list_student_bookings_near(self, student_id: UUID, day: date) -> list[Booking]:
        """Active bookings of a student whose week bucket may contain ``day``."""
        first_week, last_week = _weeks_covering(day)
        stmt = (
            select(Booking)
            .join(Booking.slot)
            .options(selectinload(Booking.slot))
            .where(
                Booking.student_id == student_id,
                Booking.status == BookingStatusEnum.BOOKED,
                AvailabilitySlot.week_start_date.between(first_week, last_week),
            )
        )
        return list((await self.session.scalars(stmt)).all())

    async def list_unlinked_bookings_near(self, instructor_id: UUID, day: date) -> list[Booking]:
        """Bookings on an instructor's slots, not yet attached, whose week may contain ``day``."""
        first_week, last_week = _weeks_covering(day)
        stmt = (
            select(Booking)
            .join(Booking.slot)
            .options(selectinload(Booking.slot))
            .where(
                AvailabilitySlot.instructor_id == instructor_id,
                AvailabilitySlot.week_start_date.between(first_week, last_week),
                Booking.session_id.is_(None),
                Booking.status == BookingStatusEnum.BOOKED,
            )
            .order_by(AvailabilitySlot.day_of_week.asc(), AvailabilitySlot.start_hour.asc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def attach_to_session(self, booking_id: UUID, session_id: UUID) -> bool:
        """Set ``session_id`` only if the booking is still unattached."""
        stmt = (
            update(Booking)
            .where(Booking.id == booking_id, Booking.session_id.is_(None))
            .values(session_id=session_id)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def list_bookings_for_session(self, session_id: UUID) -> list[Booking]:
        stmt = (
            select(Booking)
            .options(selectinload(Booking.slot))
            .where(Booking.session_id == session_id)
            .order_by(Booking.created_at.asc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def complete_session_bookings(self, session_id: UUID) -> int:
        stmt = (
            update(Booking)
            .where(Booking.session_id == session_id, Booking.status == BookingStatusEnum.BOOKED)
            .values(status=BookingStatusEnum.COMPLETED)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def list_bookings(
        self,
        user_id: UUID,
        role_name: RoleEnum,
        limit: int,
        offset: int,
    ) -> tuple[list[Booking], int]:
        base_stmt: Select[tuple[Booking]] = select(Booking).options(selectinload(Booking.slot))

        if role_name == RoleEnum.STUDENT:
            base_stmt = base_stmt.where(Booking.student_id == user_id)
        elif role_name == RoleEnum.INSTRUCTOR:
            base_stmt = base_stmt.join(Booking.slot).where(AvailabilitySlot.instructor_id == user_id)
        elif role_name not in STAFF_ROLES:
            base_stmt = base_stmt.where(false())

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(Booking.created_at.desc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return items, total

    async def save(self, booking: Booking) -> Booking:
        await self.session.flush()
        return booking
