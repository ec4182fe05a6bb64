"""Scheduling repository layer."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import Select, exists, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from academy.modules.scheduling.models import AvailabilitySlot


class SchedulingRepository:
    """DB access for availability slots."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_slot(
        self,
        instructor_id: UUID,
        track_id: UUID,
        week_start_date: date,
        day_of_week: int,
        start_hour: int,
        end_hour: int,
        created_by_id: UUID | None,
    ) -> AvailabilitySlot:
        slot = AvailabilitySlot(
            instructor_id=instructor_id,
            track_id=track_id,
            week_start_date=week_start_date,
            day_of_week=day_of_week,
            start_hour=start_hour,
            end_hour=end_hour,
            created_by_id=created_by_id,
            is_booked=False,
            is_confirmed=False,
        )
        self.session.add(slot)
        await self.session.flush()
        return slot

    async def get_slot_by_id(self, slot_id: UUID) -> AvailabilitySlot | None:
        stmt = select(AvailabilitySlot).where(AvailabilitySlot.id == slot_id)
        return await self.session.scalar(stmt)

    async def find_slot(
        self,
        instructor_id: UUID,
        track_id: UUID,
        week_start_date: date,
        day_of_week: int,
        start_hour: int,
    ) -> AvailabilitySlot | None:
        stmt = select(AvailabilitySlot).where(
            AvailabilitySlot.instructor_id == instructor_id,
            AvailabilitySlot.track_id == track_id,
            AvailabilitySlot.week_start_date == week_start_date,
            AvailabilitySlot.day_of_week == day_of_week,
            AvailabilitySlot.start_hour == start_hour,
        )
        return await self.session.scalar(stmt)

    async def list_available_slots(self, track_id: UUID, week_start_date: date) -> list[AvailabilitySlot]:
        stmt = (
            select(AvailabilitySlot)
            .where(
                AvailabilitySlot.track_id == track_id,
                AvailabilitySlot.week_start_date == week_start_date,
                AvailabilitySlot.is_booked.is_(False),
                AvailabilitySlot.is_confirmed.is_(True),
            )
            .order_by(
                AvailabilitySlot.instructor_id.asc(),
                AvailabilitySlot.day_of_week.asc(),
                AvailabilitySlot.start_hour.asc(),
            )
        )
        return list((await self.session.scalars(stmt)).all())

    async def list_instructor_slots(
        self,
        instructor_id: UUID,
        week_start_date: date | None,
        track_id: UUID | None,
    ) -> list[AvailabilitySlot]:
        stmt: Select[tuple[AvailabilitySlot]] = select(AvailabilitySlot).where(
            AvailabilitySlot.instructor_id == instructor_id,
        )
        if week_start_date is not None:
            stmt = stmt.where(AvailabilitySlot.week_start_date == week_start_date)
        if track_id is not None:
            stmt = stmt.where(AvailabilitySlot.track_id == track_id)
        stmt = stmt.order_by(
            AvailabilitySlot.week_start_date.asc(),
            AvailabilitySlot.day_of_week.asc(),
            AvailabilitySlot.start_hour.asc(),
        )
        return list((await self.session.scalars(stmt)).all())

    async def has_confirmed_week(self, instructor_id: UUID, track_id: UUID, week_start_date: date) -> bool:
        stmt = select(
            exists().where(
                AvailabilitySlot.instructor_id == instructor_id,
                AvailabilitySlot.track_id == track_id,
                AvailabilitySlot.week_start_date == week_start_date,
                AvailabilitySlot.is_confirmed.is_(True),
            ),
        )
        return bool(await self.session.scalar(stmt))

    async def confirm_week(self, instructor_id: UUID, track_id: UUID, week_start_date: date) -> int:
        stmt = (
            update(AvailabilitySlot)
            .where(
                AvailabilitySlot.instructor_id == instructor_id,
                AvailabilitySlot.track_id == track_id,
                AvailabilitySlot.week_start_date == week_start_date,
                AvailabilitySlot.is_confirmed.is_(False),
            )
            .values(is_confirmed=True)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def mark_booked(self, slot_id: UUID) -> bool:
        """Flip ``is_booked`` to true only if it is currently false."""
        stmt = (
            update(AvailabilitySlot)
            .where(AvailabilitySlot.id == slot_id, AvailabilitySlot.is_booked.is_(False))
            .values(is_booked=True)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def release_slot(self, slot_id: UUID) -> bool:
        stmt = (
            update(AvailabilitySlot)
            .where(AvailabilitySlot.id == slot_id, AvailabilitySlot.is_booked.is_(True))
            .values(is_booked=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
