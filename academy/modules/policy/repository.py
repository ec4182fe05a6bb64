"""Schedule policy repository layer."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academy.modules.policy.models import GLOBAL_SCOPE, SchedulePolicy


class PolicyRepository:
    """DB access for the schedule policy row."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_policy(self) -> SchedulePolicy | None:
        stmt = select(SchedulePolicy).where(SchedulePolicy.scope == GLOBAL_SCOPE)
        return await self.session.scalar(stmt)

    async def create_policy(
        self,
        week_reset_day: int,
        week_reset_hour: int,
        availability_open_hours: int,
        next_open_date: datetime | None,
        updated_by_id: UUID | None,
    ) -> SchedulePolicy:
        policy = SchedulePolicy(
            scope=GLOBAL_SCOPE,
            week_reset_day=week_reset_day,
            week_reset_hour=week_reset_hour,
            availability_open_hours=availability_open_hours,
            next_open_date=next_open_date,
            updated_by_id=updated_by_id,
        )
        self.session.add(policy)
        await self.session.flush()
        return policy

    async def update_policy(self, policy: SchedulePolicy, **changes) -> SchedulePolicy:
        for key, value in changes.items():
            setattr(policy, key, value)
        await self.session.flush()
        return policy
