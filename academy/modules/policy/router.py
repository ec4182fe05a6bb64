"""Schedule policy API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from academy.modules.identity.service import get_current_user
from academy.modules.policy.schemas import BookingWindowRead, PolicyRead, PolicyUpdate
from academy.modules.policy.service import PolicyService, get_policy_service
from academy.shared.utils import local_now

router = APIRouter(prefix="/schedule", tags=["schedule-policy"])


@router.get("/policy", response_model=PolicyRead)
async def get_policy(
    service: PolicyService = Depends(get_policy_service),
    current_user=Depends(get_current_user),
) -> PolicyRead:
    """Return the configured schedule policy."""
    policy = await service.get_policy()
    return PolicyRead.model_validate(policy)


@router.put("/policy", response_model=PolicyRead)
async def update_policy(
    payload: PolicyUpdate,
    service: PolicyService = Depends(get_policy_service),
    current_user=Depends(get_current_user),
) -> PolicyRead:
    """Create or update the schedule policy (owner/manager)."""
    policy = await service.update_policy(payload, current_user)
    return PolicyRead.model_validate(policy)


@router.get("/policy/window", response_model=BookingWindowRead)
async def get_booking_window(
    service: PolicyService = Depends(get_policy_service),
    current_user=Depends(get_current_user),
) -> BookingWindowRead:
    """Return the week buckets currently open for publishing and booking."""
    window = await service.get_booking_window(local_now())
    return BookingWindowRead.model_validate(window)
