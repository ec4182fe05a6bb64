"""Scheduling business logic layer."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime
from uuid import UUID

from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from academy.core.database import get_db_session
from academy.core.enums import POLICY_ADMIN_ROLES, STAFF_ROLES, RoleEnum
from academy.modules.audit.repository import AuditRepository
from academy.modules.identity.models import User
from academy.modules.policy.calendar import (
    PolicySnapshot,
    compute_booking_window,
    compute_current_week_start,
    is_week_start,
    week_anchor_day,
)
from academy.modules.policy.repository import PolicyRepository
from academy.modules.policy.service import PolicyService
from academy.modules.scheduling.models import AvailabilitySlot
from academy.modules.scheduling.repository import SchedulingRepository
from academy.modules.scheduling.schemas import SlotCreate, WeekConfirm, WeekSlot, WeekSlotsCreate
from academy.modules.tracks.repository import TracksRepository
from academy.shared.exceptions import (
    AlreadyBooked,
    Forbidden,
    InvalidRange,
    SlotConflict,
    SlotNotFound,
    TrackNotFound,
    WeekAlreadyConfirmed,
    WindowClosed,
)
from academy.shared.utils import local_now

logger = logging.getLogger(__name__)

_DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def validate_slot_range(day_of_week: int, start_hour: int, end_hour: int) -> None:
    """Raise ``InvalidRange`` unless the slot fits inside one day."""
    if not 0 <= day_of_week <= 6:
        raise InvalidRange("dayOfWeek must be between 0 and 6", details={"dayOfWeek": day_of_week})
    if not 0 <= start_hour <= 23 or not 1 <= end_hour <= 24:
        raise InvalidRange(
            "Hours must be within 0-24",
            details={"startHour": start_hour, "endHour": end_hour},
        )
    if end_hour <= start_hour:
        raise InvalidRange(
            "endHour must be after startHour",
            details={"startHour": start_hour, "endHour": end_hour},
        )


def group_slots_by_instructor(slots: Iterable[AvailabilitySlot]) -> dict[UUID, list[AvailabilitySlot]]:
    grouped: dict[UUID, list[AvailabilitySlot]] = {}
    for slot in slots:
        grouped.setdefault(slot.instructor_id, []).append(slot)
    return grouped


class SchedulingService:
    """Availability catalog: publishing, listing and booking flag."""

    def __init__(
        self,
        repository: SchedulingRepository,
        tracks_repository: TracksRepository,
        policy_service: PolicyService,
        audit_repository: AuditRepository,
    ) -> None:
        self.repository = repository
        self.tracks_repository = tracks_repository
        self.policy_service = policy_service
        self.audit_repository = audit_repository

    async def _authorize_publisher(self, instructor_id: UUID, track_id: UUID, actor: User) -> None:
        role = actor.role.name
        if role == RoleEnum.INSTRUCTOR:
            if instructor_id != actor.id:
                raise Forbidden("Instructors can only publish their own availability")
        elif role not in STAFF_ROLES:
            raise Forbidden("Only instructors or staff can publish availability")

        track = await self.tracks_repository.get_track_by_id(track_id)
        if track is None:
            raise TrackNotFound()
        if track.instructor_id != instructor_id:
            raise Forbidden("Instructor is not assigned to this track")

    def _check_week(
        self,
        policy: PolicySnapshot,
        week_start_date: date,
        actor: User,
        now: datetime,
    ) -> None:
        if not is_week_start(policy, week_start_date):
            raise InvalidRange(
                f"weekStartDate must be a {_DAY_NAMES[week_anchor_day(policy)]}",
                details={"weekStartDate": week_start_date.isoformat()},
            )

        if actor.role.name in POLICY_ADMIN_ROLES:
            return
        window = compute_booking_window(policy, now)
        if not window.is_open(week_start_date):
            raise WindowClosed(
                details={
                    "weekStartDate": week_start_date.isoformat(),
                    "currentWeekStart": window.current_week_start.isoformat(),
                    "nextWeekStart": window.next_week_start.isoformat(),
                    "nextWeekOpensAt": window.next_week_opens_at.isoformat(),
                },
            )

    async def _create_slot(
        self,
        instructor_id: UUID,
        track_id: UUID,
        week_start_date: date,
        slot: WeekSlot | SlotCreate,
        actor: User,
    ) -> AvailabilitySlot:
        existing = await self.repository.find_slot(
            instructor_id,
            track_id,
            week_start_date,
            slot.day_of_week,
            slot.start_hour,
        )
        conflict_details = {
            "weekStartDate": week_start_date.isoformat(),
            "dayOfWeek": slot.day_of_week,
            "startHour": slot.start_hour,
        }
        if existing is not None:
            raise SlotConflict(details=conflict_details)
        try:
            return await self.repository.create_slot(
                instructor_id=instructor_id,
                track_id=track_id,
                week_start_date=week_start_date,
                day_of_week=slot.day_of_week,
                start_hour=slot.start_hour,
                end_hour=slot.end_hour,
                created_by_id=actor.id,
            )
        except IntegrityError as exc:
            raise SlotConflict(details=conflict_details) from exc

    async def publish_slot(
        self,
        payload: SlotCreate,
        actor: User,
        now: datetime | None = None,
    ) -> AvailabilitySlot:
        """Publish one weekly slot for an instructor and track."""
        await self._authorize_publisher(payload.instructor_id, payload.track_id, actor)
        validate_slot_range(payload.day_of_week, payload.start_hour, payload.end_hour)

        policy = await self.policy_service.get_effective_policy()
        self._check_week(policy, payload.week_start_date, actor, now or local_now())

        slot = await self._create_slot(
            payload.instructor_id,
            payload.track_id,
            payload.week_start_date,
            payload,
            actor,
        )
        logger.info(
            "Published slot %s for instructor %s week %s day %s %s-%s",
            slot.id,
            slot.instructor_id,
            slot.week_start_date,
            slot.day_of_week,
            slot.start_hour,
            slot.end_hour,
        )
        return slot

    async def publish_week(
        self,
        payload: WeekSlotsCreate,
        actor: User,
        now: datetime | None = None,
    ) -> list[AvailabilitySlot]:
        """Publish a batch of slots for one week; any failure aborts the whole batch."""
        await self._authorize_publisher(payload.instructor_id, payload.track_id, actor)

        seen: set[tuple[int, int]] = set()
        for item in payload.slots:
            validate_slot_range(item.day_of_week, item.start_hour, item.end_hour)
            key = (item.day_of_week, item.start_hour)
            if key in seen:
                raise SlotConflict(
                    "Request contains the same day and start hour twice",
                    details={"dayOfWeek": item.day_of_week, "startHour": item.start_hour},
                )
            seen.add(key)

        policy = await self.policy_service.get_effective_policy()
        self._check_week(policy, payload.week_start_date, actor, now or local_now())

        if await self.repository.has_confirmed_week(payload.instructor_id, payload.track_id, payload.week_start_date):
            raise WeekAlreadyConfirmed(details={"weekStartDate": payload.week_start_date.isoformat()})

        created = [
            await self._create_slot(payload.instructor_id, payload.track_id, payload.week_start_date, item, actor)
            for item in payload.slots
        ]
        logger.info(
            "Published %s slots for instructor %s week %s",
            len(created),
            payload.instructor_id,
            payload.week_start_date,
        )
        return created

    async def confirm_week(self, payload: WeekConfirm, actor: User) -> int:
        """Mark every slot of the instructor's week and track as confirmed."""
        await self._authorize_publisher(payload.instructor_id, payload.track_id, actor)
        confirmed = await self.repository.confirm_week(
            payload.instructor_id,
            payload.track_id,
            payload.week_start_date,
        )
        await self.audit_repository.record_event(
            actor_id=actor.id,
            aggregate_type="availability_week",
            aggregate_id=f"{payload.instructor_id}:{payload.track_id}:{payload.week_start_date.isoformat()}",
            event_type="availability.week.confirmed",
            payload={
                "instructor_id": str(payload.instructor_id),
                "track_id": str(payload.track_id),
                "week_start_date": payload.week_start_date.isoformat(),
                "confirmed": confirmed,
            },
        )
        return confirmed

    async def resolve_week_start(self, week_start_date: date | None, now: datetime | None = None) -> date:
        """Return the given week start, or the current week bucket when omitted."""
        if week_start_date is not None:
            return week_start_date
        policy = await self.policy_service.get_effective_policy()
        return compute_current_week_start(policy, now or local_now())

    async def list_available_slots(self, track_id: UUID, week_start_date: date) -> list[AvailabilitySlot]:
        """Confirmed, unbooked slots of one track and week, ordered by instructor, day and hour."""
        return await self.repository.list_available_slots(track_id, week_start_date)

    async def list_instructor_slots(
        self,
        instructor_id: UUID,
        week_start_date: date | None,
        track_id: UUID | None,
    ) -> list[AvailabilitySlot]:
        return await self.repository.list_instructor_slots(instructor_id, week_start_date, track_id)

    async def get_slot(self, slot_id: UUID) -> AvailabilitySlot:
        slot = await self.repository.get_slot_by_id(slot_id)
        if slot is None:
            raise SlotNotFound(details={"availabilityId": str(slot_id)})
        return slot

    async def mark_booked(self, slot_id: UUID) -> None:
        """Atomically flip the slot to booked; a second call fails."""
        if not await self.repository.mark_booked(slot_id):
            raise AlreadyBooked(details={"availabilityId": str(slot_id)})

    async def release_slot(self, slot_id: UUID) -> None:
        """Return a booked slot to the catalog."""
        if not await self.repository.release_slot(slot_id):
            logger.warning("Slot %s was not booked when released", slot_id)


def build_scheduling_service(session: AsyncSession) -> SchedulingService:
    audit_repository = AuditRepository(session)
    return SchedulingService(
        repository=SchedulingRepository(session),
        tracks_repository=TracksRepository(session),
        policy_service=PolicyService(PolicyRepository(session), audit_repository),
        audit_repository=audit_repository,
    )


async def get_scheduling_service(session: AsyncSession = Depends(get_db_session)) -> SchedulingService:
    """Dependency provider for scheduling service."""
    return build_scheduling_service(session)
