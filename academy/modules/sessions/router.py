"""Live session API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from academy.core.enums import SessionStatusEnum
from academy.modules.booking.schemas import BookingRead
from academy.modules.identity.service import get_current_user
from academy.modules.sessions.schemas import (
    JoinInfoRead,
    SessionBookingAttach,
    SessionCreate,
    SessionLinkUpdate,
    SessionRead,
    SessionTransition,
)
from academy.modules.sessions.service import SessionService, get_session_service
from academy.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("", response_model=SessionRead, status_code=status.HTTP_201_CREATED)
async def create_session(
    payload: SessionCreate,
    service: SessionService = Depends(get_session_service),
    current_user=Depends(get_current_user),
) -> SessionRead:
    """Create a live session."""
    live_session = await service.create_session(payload, current_user)
    return SessionRead.model_validate(live_session)


@router.get("", response_model=Page[SessionRead])
async def list_sessions(
    status_filter: SessionStatusEnum | None = Query(default=None, alias="status"),
    pagination=Depends(get_pagination_params),
    service: SessionService = Depends(get_session_service),
    current_user=Depends(get_current_user),
) -> Page[SessionRead]:
    """List sessions visible to current user."""
    items, total = await service.list_sessions(current_user, pagination.limit, pagination.offset, status_filter)
    serialized = [SessionRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/{session_id}", response_model=SessionRead)
async def get_session(
    session_id: UUID,
    service: SessionService = Depends(get_session_service),
    current_user=Depends(get_current_user),
) -> SessionRead:
    live_session = await service.get_session(session_id, current_user)
    return SessionRead.model_validate(live_session)


@router.post("/{session_id}/transition", response_model=SessionRead)
async def transition_session(
    session_id: UUID,
    payload: SessionTransition,
    service: SessionService = Depends(get_session_service),
    current_user=Depends(get_current_user),
) -> SessionRead:
    """Change session status."""
    live_session = await service.transition(session_id, payload, current_user)
    return SessionRead.model_validate(live_session)


@router.put("/{session_id}/link", response_model=SessionRead)
async def set_session_link(
    session_id: UUID,
    payload: SessionLinkUpdate,
    service: SessionService = Depends(get_session_service),
    current_user=Depends(get_current_user),
) -> SessionRead:
    """Set or clear the external meeting link."""
    live_session = await service.set_link(session_id, payload, current_user)
    return SessionRead.model_validate(live_session)


@router.post("/{session_id}/bookings", response_model=BookingRead)
async def attach_booking(
    session_id: UUID,
    payload: SessionBookingAttach,
    service: SessionService = Depends(get_session_service),
    current_user=Depends(get_current_user),
) -> BookingRead:
    """Attach a booking to the session."""
    booking = await service.attach_booking(session_id, payload.booking_id, current_user)
    return BookingRead.model_validate(booking)


@router.get("/{session_id}/join", response_model=JoinInfoRead)
async def get_join_info(
    session_id: UUID,
    service: SessionService = Depends(get_session_service),
    current_user=Depends(get_current_user),
) -> JoinInfoRead:
    return await service.get_join_info(session_id, current_user)
