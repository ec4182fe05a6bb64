"""Session status table and meeting link checks."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

from academy.core.enums import SessionStatusEnum

S = SessionStatusEnum

ALLOWED_TRANSITIONS: dict[SessionStatusEnum, frozenset[SessionStatusEnum]] = {
    S.DRAFT: frozenset({S.SCHEDULED, S.CANCELLED}),
    S.SCHEDULED: frozenset({S.READY, S.ACTIVE, S.CANCELLED}),
    S.READY: frozenset({S.SCHEDULED, S.ACTIVE, S.CANCELLED}),
    S.ACTIVE: frozenset({S.COMPLETED, S.CANCELLED}),
    S.COMPLETED: frozenset(),
    S.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in ALLOWED_TRANSITIONS.items() if not targets)

# Substring of the host -> label shown to participants.
_PLATFORM_HOSTS = (
    ("zoom.us", "zoom"),
    ("zoom.com", "zoom"),
    ("meet.google.com", "google-meet"),
    ("teams.microsoft.com", "teams"),
    ("teams.live.com", "teams"),
)


def is_transition_allowed(current: SessionStatusEnum, target: SessionStatusEnum) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def allowed_targets(current: SessionStatusEnum) -> list[str]:
    return sorted(str(status) for status in ALLOWED_TRANSITIONS[current])


@dataclass(frozen=True, slots=True)
class LinkCheck:
    """Outcome of validating an external meeting link."""

    is_valid: bool
    link: str | None = None
    platform: str | None = None
    error: str | None = None


def detect_platform(host: str) -> str:
    host = host.lower()
    for marker, label in _PLATFORM_HOSTS:
        if marker in host:
            return label
    return "other"


def validate_external_link(url: str | None) -> LinkCheck:
    """Accept any http(s) URL with a host; provider hosts only change the label."""
    if url is None or not url.strip():
        return LinkCheck(is_valid=False, error="External meeting link is required")

    link = url.strip()
    try:
        parts = urlsplit(link)
        host = parts.hostname
    except ValueError:
        return LinkCheck(is_valid=False, error="Malformed URL")

    if parts.scheme not in ("http", "https"):
        return LinkCheck(is_valid=False, error="Meeting link must use http or https")
    if not host:
        return LinkCheck(is_valid=False, error="Meeting link must include a host")
    return LinkCheck(is_valid=True, link=link, platform=detect_platform(host))


def can_start_session(url: str | None) -> bool:
    return validate_external_link(url).is_valid
