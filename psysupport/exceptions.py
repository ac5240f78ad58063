"""
Domain exceptions for the booking and matching core.

NotFound outcomes are not exceptions: services return None / False and the
routers translate that into 404.
"""

from typing import Any


class PsySupportError(Exception):
    """Base exception for the application."""

    code = "PsySupportError"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class SlotUnavailableError(PsySupportError):
    """Raised when the requested time is not among the free slots."""

    code = "SlotUnavailable"

    def __init__(self, psychologist_id: Any, scheduled_at: Any):
        super().__init__(
            message="Slot is not available",
            details={
                "psychologist_id": str(psychologist_id),
                "scheduled_at": str(scheduled_at),
            },
        )


class InvalidSessionTransitionError(PsySupportError):
    """Raised when a session status change is not allowed from its current state."""

    code = "InvalidSessionTransition"

    def __init__(self, session_id: Any, current_status: str, target_status: str):
        super().__init__(
            message=f"Cannot move session from {current_status} to {target_status}",
            details={
                "session_id": str(session_id),
                "current_status": current_status,
                "target_status": target_status,
            },
        )
