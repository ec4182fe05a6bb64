"""Shared utility functions."""

from __future__ import annotations

from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Return aware UTC datetime."""
    return datetime.now(timezone.utc)


def local_now() -> datetime:
    """Return aware datetime on the server-local clock.

    Week buckets are derived from the calendar date of this value, so every
    schedule computation must go through it rather than ``utc_now``.
    """
    return datetime.now().astimezone()


def day_of_week(value: date) -> int:
    """Return day index with Sunday as 0 and Saturday as 6."""
    return (value.weekday() + 1) % 7
