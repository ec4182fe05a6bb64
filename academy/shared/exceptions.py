"""Custom exception hierarchy and handlers."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    status_code = 400
    code = "app_error"
    default_message = "Request failed"

    def __init__(self, message: str | None = None, *, details: dict[str, Any] | None = None) -> None:
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(AppException):
    """Raised when caller input is malformed."""

    status_code = 422
    code = "validation_error"


class NotFoundException(AppException):
    """Raised when entity is not found."""

    status_code = 404
    code = "not_found"
    default_message = "Entity not found"


class ConflictException(AppException):
    """Raised when entity conflicts with current state."""

    status_code = 409
    code = "conflict"


class UnauthorizedException(AppException):
    """Raised when user has no rights for operation."""

    status_code = 403
    code = "forbidden"
    default_message = "Operation not permitted"


class BusinessRuleException(AppException):
    """Raised when business rule validation fails."""

    status_code = 422
    code = "business_rule_violation"


# Validation


class InvalidRange(ValidationException):
    code = "invalid_range"
    default_message = "Invalid time range"


class InvalidPolicy(ValidationException):
    code = "invalid_policy"
    default_message = "Invalid schedule policy"


class InvalidStatus(ValidationException):
    code = "invalid_status"
    default_message = "Invalid attendance status"


class InvalidMeetingLink(ValidationException):
    code = "invalid_meeting_link"
    default_message = "Invalid external meeting link"


# Conflicts: a concurrent request won, the caller should re-read state.


class SlotConflict(ConflictException):
    code = "slot_conflict"
    default_message = "Slot already exists for this instructor, track, week, day and hour"


class SlotAlreadyBooked(ConflictException):
    code = "slot_already_booked"
    default_message = "Slot is already booked"


class AlreadyBooked(ConflictException):
    code = "already_booked"
    default_message = "Slot was already marked as booked"


class OverlappingBooking(ConflictException):
    code = "overlapping_booking"
    default_message = "Student already has a booking overlapping this time"


class BookingAlreadyLinked(ConflictException):
    code = "booking_already_linked"
    default_message = "Booking is already attached to a session"


# State and policy violations


class WindowClosed(BusinessRuleException):
    code = "window_closed"
    default_message = "Availability window for this week is closed"


class IllegalTransition(BusinessRuleException):
    code = "illegal_transition"
    default_message = "Session status transition is not allowed"


class MissingExternalLink(BusinessRuleException):
    code = "missing_external_link"
    default_message = "Cannot start session without a valid external meeting link"


class CannotCancelLinkedBooking(BusinessRuleException):
    code = "cannot_cancel_linked_booking"
    default_message = "Booking is linked to a session and cannot be cancelled"


class WeekAlreadyConfirmed(BusinessRuleException):
    code = "week_already_confirmed"
    default_message = "Availability for this week and track is already confirmed"


class SlotNotConfirmed(BusinessRuleException):
    code = "slot_not_confirmed"
    default_message = "This slot is not yet confirmed by the instructor"


# Not found


class SlotNotFound(NotFoundException):
    code = "slot_not_found"
    default_message = "Availability slot not found"


class NotConfigured(NotFoundException):
    code = "not_configured"
    default_message = "Schedule policy is not configured"


class BookingNotFound(NotFoundException):
    code = "booking_not_found"
    default_message = "Booking not found"


class SessionNotFound(NotFoundException):
    code = "session_not_found"
    default_message = "Session not found"


class TrackNotFound(NotFoundException):
    code = "track_not_found"
    default_message = "Track not found"


# Authorization


class Forbidden(UnauthorizedException):
    default_message = "Operation not permitted for your role"


def _error_body(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    error: dict[str, Any] = {"code": code, "message": message}
    if details:
        error["details"] = details
    return {"error": error}


async def app_exception_handler(_: Request, exc: AppException) -> JSONResponse:
    """Handle custom domain exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.code, exc.message, exc.details),
    )


async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions in unified shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body("http_error", str(exc.detail)),
    )


async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    """Render payload validation failures in unified shape."""
    return JSONResponse(
        status_code=422,
        content=_error_body(
            "validation_error",
            "Request payload is invalid",
            {"errors": [{"loc": list(err["loc"]), "msg": err["msg"]} for err in exc.errors()]},
        ),
    )


async def unhandled_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(
        status_code=500,
        content=_error_body("internal_error", "Internal server error"),
    )


def register_exception_handlers(app) -> None:
    """Register global exception handlers."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
