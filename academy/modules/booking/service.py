"""Booking business logic layer."""

from __future__ import annotations

import logging
from datetime import date, datetime
from uuid import UUID

from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from academy.core.database import get_db_session
from academy.core.enums import POLICY_ADMIN_ROLES, STAFF_ROLES, RoleEnum
from academy.core.metrics import record_booking_outcome
from academy.modules.audit.repository import AuditRepository
from academy.modules.booking.models import Booking
from academy.modules.booking.repository import BookingRepository
from academy.modules.booking.schemas import BookingCreate, BookingNotesUpdate
from academy.modules.identity.models import User
from academy.modules.policy.calendar import compute_booking_window
from academy.modules.scheduling.service import SchedulingService, build_scheduling_service, validate_slot_range
from academy.shared.exceptions import (
    AlreadyBooked,
    AppException,
    BookingNotFound,
    CannotCancelLinkedBooking,
    Forbidden,
    OverlappingBooking,
    SlotAlreadyBooked,
    SlotNotConfirmed,
    ValidationException,
    WindowClosed,
)
from academy.shared.utils import local_now

logger = logging.getLogger(__name__)


def hours_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open interval overlap: touching ranges do not overlap."""
    return start_a < end_b and end_a > start_b


class BookingService:
    """Booking matcher: books slots, cancels bookings, finds bookings for sessions."""

    def __init__(
        self,
        booking_repository: BookingRepository,
        scheduling_service: SchedulingService,
        audit_repository: AuditRepository,
    ) -> None:
        self.booking_repository = booking_repository
        self.scheduling_service = scheduling_service
        self.audit_repository = audit_repository

    def _resolve_student(self, payload: BookingCreate, actor: User) -> UUID:
        role = actor.role.name
        if role == RoleEnum.STUDENT:
            if payload.student_id is not None and payload.student_id != actor.id:
                raise Forbidden("Students can only book for themselves")
            return actor.id
        if role in STAFF_ROLES:
            if payload.student_id is None:
                raise ValidationException("studentId is required when booking on behalf of a student")
            return payload.student_id
        raise Forbidden("Only students or staff can book slots")

    def _ensure_visible(self, booking: Booking, actor: User) -> None:
        """Hide bookings the actor has no relation to behind a not-found error."""
        role = actor.role.name
        if role in STAFF_ROLES:
            return
        if role == RoleEnum.STUDENT and booking.student_id == actor.id:
            return
        if role == RoleEnum.INSTRUCTOR and booking.slot.instructor_id == actor.id:
            return
        raise BookingNotFound(details={"bookingId": str(booking.id)})

    async def _get_visible_booking(self, booking_id: UUID, actor: User) -> Booking:
        booking = await self.booking_repository.get_booking_by_id(booking_id)
        if booking is None:
            raise BookingNotFound(details={"bookingId": str(booking_id)})
        self._ensure_visible(booking, actor)
        return booking

    async def book(self, payload: BookingCreate, actor: User, now: datetime | None = None) -> Booking:
        """Claim a slot for a student.

        The slot flag flip and the booking insert share the request
        transaction, so a failure after the flip rolls both back.
        """
        try:
            booking = await self._book(payload, actor, now or local_now())
        except AppException as exc:
            record_booking_outcome(exc.code)
            raise
        record_booking_outcome("created")
        return booking

    async def _book(self, payload: BookingCreate, actor: User, now: datetime) -> Booking:
        student_id = self._resolve_student(payload, actor)
        slot = await self.scheduling_service.get_slot(payload.availability_id)
        if not slot.is_confirmed:
            raise SlotNotConfirmed(details={"availabilityId": str(slot.id)})
        if slot.is_booked:
            raise SlotAlreadyBooked(details={"availabilityId": str(slot.id)})

        if actor.role.name not in POLICY_ADMIN_ROLES:
            policy = await self.scheduling_service.policy_service.get_effective_policy()
            window = compute_booking_window(policy, now)
            if not window.is_open(slot.week_start_date):
                raise WindowClosed(
                    details={
                        "weekStartDate": slot.week_start_date.isoformat(),
                        "currentWeekStart": window.current_week_start.isoformat(),
                        "nextWeekOpensAt": window.next_week_opens_at.isoformat(),
                    },
                )

        slot_day = slot.calendar_date
        for existing in await self.booking_repository.list_student_bookings_near(student_id, slot_day):
            other = existing.slot
            if other.calendar_date == slot_day and hours_overlap(
                other.start_hour,
                other.end_hour,
                slot.start_hour,
                slot.end_hour,
            ):
                raise OverlappingBooking(
                    details={"bookingId": str(existing.id), "date": slot_day.isoformat()},
                )

        try:
            await self.scheduling_service.mark_booked(slot.id)
        except AlreadyBooked as exc:
            raise SlotAlreadyBooked(details={"availabilityId": str(slot.id)}) from exc

        try:
            booking = await self.booking_repository.create_booking(
                availability_id=slot.id,
                student_id=student_id,
                track_id=slot.track_id,
                student_notes=payload.student_notes,
            )
        except IntegrityError as exc:
            raise SlotAlreadyBooked(details={"availabilityId": str(slot.id)}) from exc

        await self.audit_repository.record_event(
            actor_id=actor.id,
            aggregate_type="booking",
            aggregate_id=str(booking.id),
            event_type="booking.created",
            payload={
                "booking_id": str(booking.id),
                "availability_id": str(slot.id),
                "student_id": str(student_id),
                "instructor_id": str(slot.instructor_id),
            },
        )
        logger.info("Student %s booked slot %s as booking %s", student_id, slot.id, booking.id)
        return booking

    async def cancel(self, booking_id: UUID, actor: User) -> None:
        """Delete an unlinked booking and return its slot to the catalog."""
        booking = await self._get_visible_booking(booking_id, actor)
        if actor.role.name == RoleEnum.INSTRUCTOR:
            raise Forbidden("Instructors cannot cancel student bookings")

        linked_error = CannotCancelLinkedBooking(
            details={"bookingId": str(booking.id), "sessionId": str(booking.session_id)},
        )
        if booking.session_id is not None:
            raise linked_error
        if not await self.booking_repository.delete_unlinked_booking(booking.id):
            # Attached to a session between the read and the delete.
            raise linked_error

        await self.scheduling_service.release_slot(booking.availability_id)
        await self.audit_repository.record_event(
            actor_id=actor.id,
            aggregate_type="booking",
            aggregate_id=str(booking.id),
            event_type="booking.cancelled",
            payload={
                "booking_id": str(booking.id),
                "availability_id": str(booking.availability_id),
                "student_id": str(booking.student_id),
            },
        )
        record_booking_outcome("cancelled")
        logger.info("Booking %s cancelled by %s", booking.id, actor.id)

    async def find_matching_slots(
        self,
        on_date: date,
        start_hour: int,
        end_hour: int,
        instructor_id: UUID,
    ) -> list[Booking]:
        """Unattached bookings on the instructor's slots overlapping the requested window."""
        validate_slot_range(0, start_hour, end_hour)
        candidates = await self.booking_repository.list_unlinked_bookings_near(instructor_id, on_date)
        return [
            booking
            for booking in candidates
            if booking.session_id is None
            and booking.slot.calendar_date == on_date
            and hours_overlap(booking.slot.start_hour, booking.slot.end_hour, start_hour, end_hour)
        ]

    async def update_notes(self, booking_id: UUID, payload: BookingNotesUpdate, actor: User) -> Booking:
        """Edit notes; allowed on linked bookings as well."""
        booking = await self._get_visible_booking(booking_id, actor)
        role = actor.role.name

        if payload.student_notes is not None:
            if role not in STAFF_ROLES and role != RoleEnum.STUDENT:
                raise Forbidden("Only the student or staff can edit student notes")
            booking.student_notes = payload.student_notes
        if payload.instructor_notes is not None:
            if role not in STAFF_ROLES and role != RoleEnum.INSTRUCTOR:
                raise Forbidden("Only the instructor or staff can edit instructor notes")
            booking.instructor_notes = payload.instructor_notes

        return await self.booking_repository.save(booking)

    async def list_bookings(
        self,
        actor: User,
        limit: int,
        offset: int,
    ) -> tuple[list[Booking], int]:
        """List bookings for actor according to role."""
        return await self.booking_repository.list_bookings(actor.id, actor.role.name, limit, offset)


def build_booking_service(session: AsyncSession) -> BookingService:
    return BookingService(
        booking_repository=BookingRepository(session),
        scheduling_service=build_scheduling_service(session),
        audit_repository=AuditRepository(session),
    )


async def get_booking_service(session: AsyncSession = Depends(get_db_session)) -> BookingService:
    """Dependency provider for booking service."""
    return build_booking_service(session)
