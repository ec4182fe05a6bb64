"""Booking API router."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from academy.core.enums import STAFF_ROLES, RoleEnum
from academy.modules.booking.schemas import BookingCreate, BookingNotesUpdate, BookingRead
from academy.modules.booking.service import BookingService, get_booking_service
from academy.modules.identity.service import get_current_user
from academy.shared.exceptions import Forbidden
from academy.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/booking", tags=["booking"])


@router.post("", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
async def book_slot(
    payload: BookingCreate,
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(get_current_user),
) -> BookingRead:
    """Book an availability slot."""
    booking = await service.book(payload, current_user)
    return BookingRead.model_validate(booking)


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(get_current_user),
) -> Response:
    """Cancel a booking that is not yet attached to a session."""
    await service.cancel(booking_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{booking_id}/notes", response_model=BookingRead)
async def update_booking_notes(
    booking_id: UUID,
    payload: BookingNotesUpdate,
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(get_current_user),
) -> BookingRead:
    """Update student or instructor notes."""
    booking = await service.update_notes(booking_id, payload, current_user)
    return BookingRead.model_validate(booking)


@router.get("/matching", response_model=list[BookingRead])
async def find_matching_bookings(
    on_date: date = Query(alias="date"),
    start_hour: int = Query(alias="startHour"),
    end_hour: int = Query(alias="endHour"),
    instructor_id: UUID | None = Query(default=None, alias="instructorId"),
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(get_current_user),
) -> list[BookingRead]:
    """Find unattached bookings overlapping a session window."""
    role = current_user.role.name
    if role == RoleEnum.INSTRUCTOR:
        instructor_id = current_user.id
    elif role not in STAFF_ROLES:
        raise Forbidden("Only staff or instructors can match bookings")
    elif instructor_id is None:
        raise Forbidden("instructorId is required")
    bookings = await service.find_matching_slots(on_date, start_hour, end_hour, instructor_id)
    return [BookingRead.model_validate(item) for item in bookings]


@router.get("/my", response_model=Page[BookingRead])
async def list_my_bookings(
    pagination=Depends(get_pagination_params),
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(get_current_user),
) -> Page[BookingRead]:
    """List bookings for current user."""
    items, total = await service.list_bookings(current_user, pagination.limit, pagination.offset)
    serialized = [BookingRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)
