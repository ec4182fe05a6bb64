"""Week bucket and booking window arithmetic.

Everything here is pure: callers pass the policy snapshot and ``now``
explicitly. Day indexes use Sunday as 0. All dates are taken from ``now`` as
given, so callers must pass the server-local clock (see ``local_now``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any

from academy.shared.utils import day_of_week

logger = logging.getLogger(__name__)

DAYS_IN_WEEK = 7


@dataclass(frozen=True, slots=True)
class PolicySnapshot:
    """Immutable view of the schedule policy used within one request."""

    week_reset_day: int
    week_reset_hour: int
    availability_open_hours: int
    next_open_date: datetime | None = None
    version: int = 0
    is_default: bool = False

    @classmethod
    def from_model(cls, policy: Any) -> "PolicySnapshot":
        return cls(
            week_reset_day=policy.week_reset_day,
            week_reset_hour=policy.week_reset_hour,
            availability_open_hours=policy.availability_open_hours,
            next_open_date=policy.next_open_date,
            version=policy.version,
        )


@dataclass(frozen=True, slots=True)
class BookingWindow:
    """Week buckets that are writable at a given moment."""

    current_week_start: date
    next_week_start: date
    next_reset_at: datetime
    next_week_opens_at: datetime
    next_week_open: bool

    def is_open(self, week_start: date) -> bool:
        if week_start == self.current_week_start:
            return True
        return week_start == self.next_week_start and self.next_week_open


def _align_to(value: datetime, now: datetime) -> datetime:
    """Express ``value`` on the same clock as ``now`` so they compare."""
    if now.tzinfo is None:
        if value.tzinfo is None:
            return value
        return value.astimezone().replace(tzinfo=None)
    if value.tzinfo is None:
        return value.replace(tzinfo=now.tzinfo)
    return value.astimezone(now.tzinfo)


def week_anchor_day(policy: PolicySnapshot) -> int:
    """Return the day index week buckets start on.

    An explicit next-open date is authoritative over ``week_reset_day``.
    """
    if policy.next_open_date is None:
        return policy.week_reset_day

    override_day = day_of_week(policy.next_open_date)
    if override_day != policy.week_reset_day:
        logger.warning(
            "Schedule override %s falls on day %s but week_reset_day is %s; using override day",
            policy.next_open_date.isoformat(),
            override_day,
            policy.week_reset_day,
        )
    return override_day


def compute_next_reset_instant(policy: PolicySnapshot, now: datetime) -> datetime:
    """Return the next moment the weekly availability resets."""
    if policy.next_open_date is not None:
        return _align_to(policy.next_open_date, now)

    days_ahead = (policy.week_reset_day - day_of_week(now)) % DAYS_IN_WEEK
    candidate = datetime.combine(
        now.date() + timedelta(days=days_ahead),
        time(hour=policy.week_reset_hour),
        tzinfo=now.tzinfo,
    )
    if candidate <= now:
        candidate += timedelta(days=DAYS_IN_WEEK)
    return candidate


def compute_current_week_start(policy: PolicySnapshot, now: datetime) -> date:
    """Return the week bucket key containing ``now``."""
    offset = (day_of_week(now) - week_anchor_day(policy) + DAYS_IN_WEEK) % DAYS_IN_WEEK
    return now.date() - timedelta(days=offset)


def _bucket_reset_instant(policy: PolicySnapshot, week_start: date, now: datetime) -> datetime:
    """Return the reset moment that starts the ``week_start`` bucket."""
    if policy.next_open_date is not None:
        override = _align_to(policy.next_open_date, now)
        if override.date() == week_start:
            return override
    return datetime.combine(week_start, time(hour=policy.week_reset_hour), tzinfo=now.tzinfo)


def compute_booking_window(policy: PolicySnapshot, now: datetime) -> BookingWindow:
    """Return the writable buckets at ``now``.

    The next bucket opens ``availability_open_hours`` before its own reset, so
    the window does not move while ``now`` crosses the reset hour on the
    anchor day.
    """
    current_week_start = compute_current_week_start(policy, now)
    next_week_start = current_week_start + timedelta(days=DAYS_IN_WEEK)
    next_reset_at = _bucket_reset_instant(policy, next_week_start, now)
    opens_at = next_reset_at - timedelta(hours=policy.availability_open_hours)
    return BookingWindow(
        current_week_start=current_week_start,
        next_week_start=next_week_start,
        next_reset_at=next_reset_at,
        next_week_opens_at=opens_at,
        next_week_open=now >= opens_at,
    )


def is_week_open(policy: PolicySnapshot, week_start: date, now: datetime) -> bool:
    """Whether slots of ``week_start`` may be published or booked at ``now``."""
    return compute_booking_window(policy, now).is_open(week_start)


def is_week_start(policy: PolicySnapshot, value: date) -> bool:
    return day_of_week(value) == week_anchor_day(policy)


def slot_date(week_start: date, slot_day: int) -> date:
    """Calendar date of a weekly slot inside its week bucket."""
    return week_start + timedelta(days=(slot_day - day_of_week(week_start)) % DAYS_IN_WEEK)
