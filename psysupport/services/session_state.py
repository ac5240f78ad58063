"""Session status transitions.

    pending   -> confirmed   (psychologist confirms)
    pending   -> cancelled   (either party)
    confirmed -> cancelled   (either party)
    confirmed -> completed   (completion sweep, after the session has ended)

cancelled and completed are terminal.
"""
from psysupport.models.session import SessionStatus

TERMINAL_STATES = frozenset({SessionStatus.CANCELLED, SessionStatus.COMPLETED})

VALID_TRANSITIONS: dict[SessionStatus, frozenset[SessionStatus]] = {
    SessionStatus.PENDING: frozenset({SessionStatus.CONFIRMED, SessionStatus.CANCELLED}),
    SessionStatus.CONFIRMED: frozenset({SessionStatus.CANCELLED, SessionStatus.COMPLETED}),
    SessionStatus.CANCELLED: frozenset(),
    SessionStatus.COMPLETED: frozenset(),
}


def can_transition(current: SessionStatus | str, target: SessionStatus | str) -> bool:
    """Check if a session in `current` may move to `target`."""
    return SessionStatus(target) in VALID_TRANSITIONS.get(SessionStatus(current), frozenset())


def is_terminal(status: SessionStatus | str) -> bool:
    return SessionStatus(status) in TERMINAL_STATES
