# mentorhub/state_machine.py
"""
Status transition tables for booking requests and sessions.

These tables are the only place that decides whether a status change is
legal. Services look transitions up here and never compare status strings
on their own.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional

from .exceptions import AuthorizationError, InvalidStatusTransitionError
from .models import BookingRequestStatus, PaymentStatus, SessionStatus


class SessionAction(str, Enum):
    CONFIRM = "confirm"
    COMPLETE = "complete"
    CANCEL = "cancel"


class SessionRole(str, Enum):
    MENTOR = "mentor"
    STUDENT = "student"


@dataclass(frozen=True)
class SessionTransition:
    allowed_roles: FrozenSet[SessionRole]
    from_statuses: FrozenSet[SessionStatus]
    to_status: SessionStatus
    forbidden_message: str


SESSION_TRANSITIONS: Dict[SessionAction, SessionTransition] = {
    SessionAction.CONFIRM: SessionTransition(
        allowed_roles=frozenset({SessionRole.MENTOR}),
        from_statuses=frozenset({SessionStatus.PENDING}),
        to_status=SessionStatus.CONFIRMED,
        forbidden_message="Only mentors can confirm sessions",
    ),
    SessionAction.COMPLETE: SessionTransition(
        allowed_roles=frozenset({SessionRole.MENTOR}),
        from_statuses=frozenset({SessionStatus.CONFIRMED}),
        to_status=SessionStatus.COMPLETED,
        forbidden_message="Only mentors can mark sessions as complete",
    ),
    SessionAction.CANCEL: SessionTransition(
        allowed_roles=frozenset({SessionRole.MENTOR, SessionRole.STUDENT}),
        from_statuses=frozenset({SessionStatus.PENDING, SessionStatus.CONFIRMED}),
        to_status=SessionStatus.CANCELLED,
        forbidden_message="You are not allowed to cancel this session",
    ),
}

BOOKING_REQUEST_TRANSITIONS: Dict[BookingRequestStatus, FrozenSet[BookingRequestStatus]] = {
    BookingRequestStatus.PENDING: frozenset({BookingRequestStatus.APPROVED, BookingRequestStatus.DECLINED}),
}


def resolve_session_role(mentor_id: int, student_id: int, user_id: int) -> Optional[SessionRole]:
    """Returns the caller's role on a session, or None for outsiders."""
    if mentor_id == user_id:
        return SessionRole.MENTOR
    if student_id == user_id:
        return SessionRole.STUDENT
    return None


def get_session_transition(action: SessionAction, role: SessionRole, current_status: str) -> SessionTransition:
    """Looks up the transition for an action, checking the caller's role and the current status."""
    transition = SESSION_TRANSITIONS.get(action)
    if transition is None:
        raise InvalidStatusTransitionError("Invalid action")
    if role not in transition.allowed_roles:
        raise AuthorizationError(transition.forbidden_message)
    if SessionStatus(current_status) not in transition.from_statuses:
        raise InvalidStatusTransitionError(
            f"Cannot {action.value} a session that is {current_status}"
        )
    return transition


def next_payment_status(
    action: SessionAction,
    role: SessionRole,
    current: str,
    requested: Optional[PaymentStatus] = None,
) -> PaymentStatus:
    """Payment status after an action.

    complete takes the caller's payment status when given; cancel refunds when
    the student cancels or a refund was asked for; everything else keeps the
    current value.
    """
    if action == SessionAction.COMPLETE and requested is not None:
        return requested
    if action == SessionAction.CANCEL and (role == SessionRole.STUDENT or requested == PaymentStatus.REFUNDED):
        return PaymentStatus.REFUNDED
    return PaymentStatus(current)


def ensure_booking_request_transition(current: str, target: BookingRequestStatus) -> None:
    current_status = BookingRequestStatus.parse(current)
    if target not in BOOKING_REQUEST_TRANSITIONS.get(current_status, frozenset()):
        raise InvalidStatusTransitionError(
            f"Request is already {current_status.value}"
        )

