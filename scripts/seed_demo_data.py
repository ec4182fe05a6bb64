"""Seed idempotent demo data for local/non-production environments."""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from academy.core.config import get_settings
from academy.core.database import SessionLocal, close_engine
from academy.core.enums import RoleEnum
from academy.core.security import create_access_token
from academy.modules.identity.models import Role, User
from academy.modules.policy.calendar import compute_current_week_start
from academy.modules.policy.schemas import PolicyUpdate
from academy.modules.scheduling.models import AvailabilitySlot
from academy.modules.scheduling.schemas import WeekConfirm, WeekSlot, WeekSlotsCreate
from academy.modules.scheduling.service import build_scheduling_service
from academy.modules.tracks.models import Track
from academy.shared.utils import local_now

DEMO_OWNER_EMAIL = "demo-owner@academy.dev"
DEMO_INSTRUCTOR_EMAIL = "demo-instructor@academy.dev"
DEMO_STUDENT_EMAIL = "demo-student@academy.dev"

DEMO_TRACK_NAME = "Demo Track"

DEMO_SLOT_DAYS = (1, 2, 3, 4)
DEMO_SLOT_START_HOURS = (16, 18)
DEMO_SLOT_DURATION_HOURS = 1


@dataclass(slots=True)
class SeedStats:
    roles_created: int = 0
    users_created: int = 0
    users_updated: int = 0
    track_created: bool = False
    policy_created: bool = False
    slots_created: int = 0
    tokens: dict[str, str] | None = None


async def _ensure_roles(session: AsyncSession) -> int:
    created = 0
    for role_name in RoleEnum:
        existing = await session.scalar(select(Role).where(Role.name == role_name))
        if existing is None:
            session.add(Role(name=role_name))
            created += 1
    await session.flush()
    return created


async def _ensure_user(
    session: AsyncSession,
    *,
    email: str,
    full_name: str,
    role_name: RoleEnum,
) -> tuple[User, bool]:
    role = await session.scalar(select(Role).where(Role.name == role_name))
    if role is None:
        raise RuntimeError(f"Role {role_name} was not found after ensure_roles")

    user = await session.scalar(
        select(User).options(selectinload(User.role)).where(User.email == email),
    )
    created = False
    if user is None:
        user = User(email=email, full_name=full_name, is_active=True, role_id=role.id)
        session.add(user)
        created = True
    else:
        if user.role_id != role.id:
            user.role_id = role.id
        if not user.is_active:
            user.is_active = True

    await session.flush()
    await session.refresh(user, attribute_names=["role"])
    return user, created


async def _ensure_track(session: AsyncSession, instructor: User) -> tuple[Track, bool]:
    track = await session.scalar(select(Track).where(Track.name == DEMO_TRACK_NAME))
    if track is not None:
        track.instructor_id = instructor.id
        track.is_active = True
        await session.flush()
        return track, False

    track = Track(name=DEMO_TRACK_NAME, instructor_id=instructor.id, is_active=True)
    session.add(track)
    await session.flush()
    return track, True


async def _ensure_policy(session: AsyncSession, owner: User) -> bool:
    settings = get_settings()
    policy_service = build_scheduling_service(session).policy_service
    if await policy_service.repository.get_policy() is not None:
        return False
    await policy_service.update_policy(
        PolicyUpdate(
            week_reset_day=settings.default_week_reset_day,
            week_reset_hour=settings.default_week_reset_hour,
            availability_open_hours=settings.default_availability_open_hours,
        ),
        owner,
    )
    return True


async def _ensure_demo_slots(session: AsyncSession, *, owner: User, instructor: User, track: Track) -> int:
    scheduling_service = build_scheduling_service(session)
    policy = await scheduling_service.policy_service.get_effective_policy()
    week_start = compute_current_week_start(policy, local_now())

    existing = await session.scalar(
        select(AvailabilitySlot.id).where(
            AvailabilitySlot.instructor_id == instructor.id,
            AvailabilitySlot.track_id == track.id,
            AvailabilitySlot.week_start_date == week_start,
        ),
    )
    if existing is not None:
        return 0

    slots = [
        WeekSlot(day_of_week=day, start_hour=hour, end_hour=hour + DEMO_SLOT_DURATION_HOURS)
        for day in DEMO_SLOT_DAYS
        for hour in DEMO_SLOT_START_HOURS
    ]
    created = await scheduling_service.publish_week(
        WeekSlotsCreate(
            instructor_id=instructor.id,
            track_id=track.id,
            week_start_date=week_start,
            slots=slots,
        ),
        owner,
    )
    await scheduling_service.confirm_week(
        WeekConfirm(instructor_id=instructor.id, track_id=track.id, week_start_date=week_start),
        owner,
    )
    return len(created)


async def _run_seed(*, allow_production: bool) -> SeedStats:
    settings = get_settings()
    app_env = settings.app_env.strip().lower()
    if app_env in {"production", "prod"} and not allow_production:
        raise RuntimeError(
            "Refusing to seed demo data in production. "
            "Re-run with --allow-production only if you are absolutely sure.",
        )

    stats = SeedStats()

    async with SessionLocal() as session:
        try:
            stats.roles_created = await _ensure_roles(session)

            owner, owner_created = await _ensure_user(
                session,
                email=DEMO_OWNER_EMAIL,
                full_name="Demo Owner",
                role_name=RoleEnum.OWNER,
            )
            instructor, instructor_created = await _ensure_user(
                session,
                email=DEMO_INSTRUCTOR_EMAIL,
                full_name="Demo Instructor",
                role_name=RoleEnum.INSTRUCTOR,
            )
            student, student_created = await _ensure_user(
                session,
                email=DEMO_STUDENT_EMAIL,
                full_name="Demo Student",
                role_name=RoleEnum.STUDENT,
            )

            stats.users_created = sum([owner_created, instructor_created, student_created])
            stats.users_updated = 3 - stats.users_created

            track, stats.track_created = await _ensure_track(session, instructor)
            stats.policy_created = await _ensure_policy(session, owner)
            stats.slots_created = await _ensure_demo_slots(
                session,
                owner=owner,
                instructor=instructor,
                track=track,
            )
            stats.tokens = {
                "owner": create_access_token(str(owner.id)),
                "instructor": create_access_token(str(instructor.id)),
                "student": create_access_token(str(student.id)),
            }

            await session.commit()
        except Exception:
            await session.rollback()
            raise

    return stats


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Seed idempotent demo data for the academy scheduling service "
            "(roles, users, track, schedule policy, current-week slots)."
        ),
    )
    parser.add_argument(
        "--allow-production",
        action="store_true",
        help="Allow seeding even when APP_ENV is production/prod.",
    )
    return parser


def _print_summary(stats: SeedStats) -> None:
    print("Demo seed completed.")
    print(f"- Roles created: {stats.roles_created}")
    print(f"- Users created: {stats.users_created}")
    print(f"- Users updated: {stats.users_updated}")
    print(f"- Track created: {stats.track_created}")
    print(f"- Schedule policy created: {stats.policy_created}")
    print(f"- Slots created: {stats.slots_created}")
    print("")
    print("Demo access tokens (non-production only):")
    for role, token in (stats.tokens or {}).items():
        print(f"- {role}: {token}")


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    try:
        stats = asyncio.run(_run_seed(allow_production=args.allow_production))
    except Exception as exc:
        print(f"Demo seed failed: {exc}")
        return 1
    finally:
        asyncio.run(close_engine())

    _print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
