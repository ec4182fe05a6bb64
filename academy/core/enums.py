"""Core enums used across modules."""

from enum import StrEnum


class RoleEnum(StrEnum):
    """System roles."""

    OWNER = "owner"
    MANAGER = "manager"
    COORDINATOR = "coordinator"
    INSTRUCTOR = "instructor"
    STUDENT = "student"


# Roles allowed to change global configuration and override the booking window.
POLICY_ADMIN_ROLES = frozenset({RoleEnum.OWNER, RoleEnum.MANAGER})

# Roles that operate sessions and bookings on behalf of others.
STAFF_ROLES = frozenset({RoleEnum.OWNER, RoleEnum.MANAGER, RoleEnum.COORDINATOR})


class BookingStatusEnum(StrEnum):
    """Booking lifecycle status."""

    BOOKED = "booked"
    COMPLETED = "completed"


class SessionStatusEnum(StrEnum):
    """Live session lifecycle status."""

    DRAFT = "DRAFT"
    SCHEDULED = "SCHEDULED"
    READY = "READY"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class AttendanceStatusEnum(StrEnum):
    """Attendance mark for one student in one session."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class OutboxStatusEnum(StrEnum):
    """Outbox event status for integration publishing."""

    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"
