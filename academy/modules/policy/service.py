"""Schedule policy business logic layer."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from academy.core.config import get_settings
from academy.core.database import get_db_session
from academy.core.enums import POLICY_ADMIN_ROLES
from academy.modules.audit.repository import AuditRepository
from academy.modules.identity.models import User
from academy.modules.policy.calendar import BookingWindow, PolicySnapshot, compute_booking_window
from academy.modules.policy.models import SchedulePolicy
from academy.modules.policy.repository import PolicyRepository
from academy.modules.policy.schemas import PolicyUpdate
from academy.shared.exceptions import ConflictException, Forbidden, InvalidPolicy, NotConfigured

settings = get_settings()
logger = logging.getLogger(__name__)


def default_policy() -> PolicySnapshot:
    """Policy used while no row has been configured."""
    return PolicySnapshot(
        week_reset_day=settings.default_week_reset_day,
        week_reset_hour=settings.default_week_reset_hour,
        availability_open_hours=settings.default_availability_open_hours,
        is_default=True,
    )


def validate_policy_values(week_reset_day: int, week_reset_hour: int, availability_open_hours: int) -> None:
    """Raise ``InvalidPolicy`` listing every out-of-range field."""
    problems: dict[str, str] = {}
    if not 0 <= week_reset_day <= 6:
        problems["weekResetDay"] = "must be between 0 (Sunday) and 6 (Saturday)"
    if not 0 <= week_reset_hour <= 23:
        problems["weekResetHour"] = "must be between 0 and 23"
    if availability_open_hours <= 0:
        problems["availabilityOpenHours"] = "must be a positive number of hours"
    if problems:
        raise InvalidPolicy(details={"fields": problems})


class PolicyService:
    """Reads and updates the global schedule policy."""

    def __init__(self, repository: PolicyRepository, audit_repository: AuditRepository) -> None:
        self.repository = repository
        self.audit_repository = audit_repository

    async def get_policy(self) -> SchedulePolicy:
        """Return the configured policy row."""
        policy = await self.repository.get_policy()
        if policy is None:
            raise NotConfigured()
        return policy

    async def get_effective_policy(self) -> PolicySnapshot:
        """Return the policy snapshot for this request, falling back to defaults."""
        try:
            policy = await self.get_policy()
        except NotConfigured:
            logger.warning("Schedule policy is not configured, using defaults from settings")
            return default_policy()
        return PolicySnapshot.from_model(policy)

    async def update_policy(self, payload: PolicyUpdate, actor: User) -> SchedulePolicy:
        """Create or update the policy (owner and manager only)."""
        if actor.role.name not in POLICY_ADMIN_ROLES:
            raise Forbidden("Only owner or manager can update the schedule policy")

        validate_policy_values(
            payload.week_reset_day,
            payload.week_reset_hour,
            payload.availability_open_hours,
        )

        values = {
            "week_reset_day": payload.week_reset_day,
            "week_reset_hour": payload.week_reset_hour,
            "availability_open_hours": payload.availability_open_hours,
            "next_open_date": payload.next_open_date,
            "updated_by_id": actor.id,
        }
        policy = await self.repository.get_policy()
        try:
            if policy is None:
                policy = await self.repository.create_policy(**values)
            else:
                policy = await self.repository.update_policy(policy, **values)
        except (StaleDataError, IntegrityError) as exc:
            raise ConflictException("Schedule policy was changed by another request") from exc

        await self.audit_repository.record_event(
            actor_id=actor.id,
            aggregate_type="schedule_policy",
            aggregate_id=str(policy.id),
            event_type="schedule_policy.updated",
            payload={
                "week_reset_day": policy.week_reset_day,
                "week_reset_hour": policy.week_reset_hour,
                "availability_open_hours": policy.availability_open_hours,
                "next_open_date": policy.next_open_date.isoformat() if policy.next_open_date else None,
                "version": policy.version,
            },
        )
        logger.info(
            "Schedule policy v%s set to day=%s hour=%s open_hours=%s by %s",
            policy.version,
            policy.week_reset_day,
            policy.week_reset_hour,
            policy.availability_open_hours,
            actor.id,
        )
        return policy

    async def get_booking_window(self, now: datetime) -> BookingWindow:
        policy = await self.get_effective_policy()
        return compute_booking_window(policy, now)


async def get_policy_service(session: AsyncSession = Depends(get_db_session)) -> PolicyService:
    """Dependency provider for policy service."""
    return PolicyService(PolicyRepository(session), AuditRepository(session))
