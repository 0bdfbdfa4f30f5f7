"""
Booking lifecycle.

pending_approval → approved → confirmed → in_progress → completed
pending_approval → rejected
any non-terminal → cancelled

completed, rejected and cancelled are terminal. Every transition helper
validates the current status, applies all field changes for the target
status in one step, and leaves committing to the caller.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from ...models_hosting import BookingStatus, HostingBooking, PaymentStatus
from .errors import ForbiddenError, InvalidStateError
from .pricing import stay_length_days

TERMINAL_STATUSES = frozenset(
    {BookingStatus.COMPLETED, BookingStatus.REJECTED, BookingStatus.CANCELLED}
)

VALID_TRANSITIONS = {
    BookingStatus.PENDING_APPROVAL: frozenset(
        {BookingStatus.APPROVED, BookingStatus.REJECTED, BookingStatus.CANCELLED}
    ),
    BookingStatus.APPROVED: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.IN_PROGRESS, BookingStatus.CANCELLED}),
    BookingStatus.IN_PROGRESS: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.REJECTED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

# Dates, instructions and price may only change before confirmation
EDITABLE_STATUSES = frozenset({BookingStatus.PENDING_APPROVAL, BookingStatus.APPROVED})


class Actor(str, Enum):
    OWNER = "owner"
    HOST = "host"


ACTION_ACTORS = {
    "approve": frozenset({Actor.HOST}),
    "reject": frozenset({Actor.HOST}),
    "confirm": frozenset({Actor.OWNER}),
    "start": frozenset({Actor.HOST}),
    "complete": frozenset({Actor.HOST}),
    "update": frozenset({Actor.OWNER, Actor.HOST}),
    "cancel": frozenset({Actor.OWNER, Actor.HOST}),
}

FORBIDDEN_MESSAGES = {
    "approve": "You can only approve bookings for your own host profile",
    "reject": "You can only reject bookings for your own host profile",
    "confirm": "You can only confirm your own bookings",
    "start": "You can only start stays for your own host profile",
    "complete": "You can only complete stays for your own host profile",
    "update": "You can only update your own bookings or bookings for your host profile",
    "cancel": "You can only cancel your own bookings or bookings for your host profile",
}


def _status(booking: HostingBooking) -> BookingStatus:
    return BookingStatus(booking.status)


def allowed_transitions(status: BookingStatus) -> frozenset:
    return VALID_TRANSITIONS[BookingStatus(status)]


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return BookingStatus(target) in allowed_transitions(current)


def is_terminal(status: BookingStatus) -> bool:
    return BookingStatus(status) in TERMINAL_STATUSES


def caller_roles(booking: HostingBooking, host_user_id: str, caller_id: str) -> set:
    roles = set()
    if booking.owner_id == caller_id:
        roles.add(Actor.OWNER)
    if host_user_id == caller_id:
        roles.add(Actor.HOST)
    return roles


def authorize(action: str, booking: HostingBooking, host_user_id: str, caller_id: str) -> None:
    """Raise ForbiddenError unless the caller plays a role allowed to perform ``action``"""
    if not caller_roles(booking, host_user_id, caller_id) & ACTION_ACTORS[action]:
        raise ForbiddenError(FORBIDDEN_MESSAGES[action])


def _transition(booking: HostingBooking, target: BookingStatus, message: Optional[str] = None):
    current = _status(booking)
    if not can_transition(current, target):
        raise InvalidStateError(
            message or f"Cannot move booking from {current.value} to {target.value}"
        )
    booking.status = target.value


def approve(booking: HostingBooking, now: datetime) -> HostingBooking:
    if _status(booking) != BookingStatus.PENDING_APPROVAL:
        raise InvalidStateError(f"Booking is already {booking.status}")
    _transition(booking, BookingStatus.APPROVED)
    booking.approved_at = now
    booking.rejected_at = None
    booking.rejection_reason = None
    return booking


def reject(booking: HostingBooking, reason: Optional[str], now: datetime) -> HostingBooking:
    if _status(booking) != BookingStatus.PENDING_APPROVAL:
        raise InvalidStateError(f"Booking is already {booking.status}")
    if not reason or not reason.strip():
        raise InvalidStateError("Rejection reason is required when rejecting a booking")
    _transition(booking, BookingStatus.REJECTED)
    booking.rejected_at = now
    booking.rejection_reason = reason.strip()
    booking.approved_at = None
    return booking


def confirm(booking: HostingBooking) -> HostingBooking:
    _transition(
        booking,
        BookingStatus.CONFIRMED,
        f"Booking must be approved before confirmation. Current status: {booking.status}",
    )
    booking.payment_status = PaymentStatus.PAID.value
    return booking


def start(booking: HostingBooking, now: datetime) -> HostingBooking:
    _transition(
        booking,
        BookingStatus.IN_PROGRESS,
        f"Only confirmed bookings can be started. Current status: {booking.status}",
    )
    booking.started_at = now
    return booking


def complete(booking: HostingBooking, now: datetime) -> HostingBooking:
    _transition(
        booking,
        BookingStatus.COMPLETED,
        f"Only stays in progress can be completed. Current status: {booking.status}",
    )
    booking.completed_at = now
    return booking


def cancel(booking: HostingBooking, cancelled_by: str, now: datetime) -> HostingBooking:
    _transition(
        booking,
        BookingStatus.CANCELLED,
        f"Cannot cancel booking with status {booking.status}",
    )
    booking.cancelled_at = now
    booking.cancelled_by = cancelled_by
    return booking


def ensure_editable(booking: HostingBooking) -> None:
    if _status(booking) not in EDITABLE_STATUSES:
        raise InvalidStateError(f"Cannot update booking with status {booking.status}")


# ============================================================================
# DERIVED PREDICATES
# ============================================================================


def duration_days(booking: HostingBooking) -> int:
    return stay_length_days(booking.check_in_date, booking.check_out_date)


def is_overdue(booking: HostingBooking, today: date) -> bool:
    """
    Non-terminal on or after the check-out day. Check-out time is not modelled,
    so a stay still open on its check-out date already counts as overdue.
    """
    return not is_terminal(booking.status) and today >= booking.check_out_date


def is_upcoming(booking: HostingBooking, today: date) -> bool:
    return not is_terminal(booking.status) and today < booking.check_in_date


def can_be_reviewed(booking: HostingBooking, has_review: bool) -> bool:
    return _status(booking) == BookingStatus.COMPLETED and not has_review
