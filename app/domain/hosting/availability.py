"""
Availability and conflict checks for hosting requests.

Stay windows are half-open: [check_in, check_out). Two windows [a0, a1) and
[b0, b1) intersect iff a0 < b1 and b0 < a1. The same rule is used for
calendar blocks, host capacity and pet double-booking, and by the SQL filters
in the repository.
"""

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models_hosting import BookingStatus, PetHost
from .errors import BookingValidationError, ConflictError
from .repository import HostingRepository

logger = logging.getLogger(__name__)

# Bookings that occupy one of the host's slots
CAPACITY_STATUSES = (
    BookingStatus.APPROVED,
    BookingStatus.CONFIRMED,
    BookingStatus.IN_PROGRESS,
)

# Bookings that hold the pet for their dates
PET_HOLD_STATUSES = (
    BookingStatus.PENDING_APPROVAL,
    BookingStatus.APPROVED,
    BookingStatus.CONFIRMED,
    BookingStatus.IN_PROGRESS,
)


def intervals_overlap(a_start, a_end, b_start, b_end) -> bool:
    """Half-open interval intersection"""
    return a_start < b_end and b_start < a_end


def validate_stay_dates(
    check_in: date, check_out: date, today: Optional[date] = None
) -> None:
    """
    Check-out must be strictly after check-in. When ``today`` is given the
    check-in may not be in the past (creation time rule).
    """
    if check_out <= check_in:
        raise BookingValidationError("Check-out date must be after check-in date")
    if today is not None and check_in < today:
        raise BookingValidationError("Check-in date cannot be in the past")


def effective_capacity(host_max_pets: int, overrides: list[int]) -> int:
    """
    Capacity for a window: the host's max_pets unless capacity-overriding calendar
    entries overlapping the window override it, in which case the tightest
    override wins.
    """
    if overrides:
        return min(overrides)
    return host_max_pets


class AvailabilityChecker:
    """Runs the host and pet checks that gate booking creation and date edits"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = HostingRepository()

    def check_host_availability(
        self,
        host: PetHost,
        check_in: date,
        check_out: date,
        exclude_booking_id: Optional[str] = None,
    ) -> None:
        """Raise ConflictError if the host is blocked or already full for the window"""
        blocked = self.repo.find_blocked_periods(self.db, host.id, check_in, check_out)
        if blocked:
            logger.warning(
                f"⚠️ Host {host.id} blocked between {check_in} and {check_out} ({len(blocked)} blocks)"
            )
            raise ConflictError("Host is not available during the requested dates")

        overrides = self.repo.find_capacity_overrides(self.db, host.id, check_in, check_out)
        capacity = effective_capacity(host.max_pets, overrides)

        # Counts overlapping bookings, not concurrent pets per day
        occupied = self.repo.count_overlapping_host_bookings(
            self.db,
            host.id,
            check_in,
            check_out,
            statuses=CAPACITY_STATUSES,
            exclude_booking_id=exclude_booking_id,
        )
        if occupied >= capacity:
            logger.warning(
                f"⚠️ Host {host.id} at capacity ({occupied}/{capacity}) between {check_in} and {check_out}"
            )
            raise ConflictError("Host is at full capacity during the requested dates")

    def check_pet_conflicts(
        self,
        pet_id: str,
        check_in: date,
        check_out: date,
        exclude_booking_id: Optional[str] = None,
    ) -> None:
        """Raise ConflictError if the pet already holds a booking for overlapping dates"""
        conflicts = self.repo.find_pet_bookings_overlapping(
            self.db,
            pet_id,
            check_in,
            check_out,
            statuses=PET_HOLD_STATUSES,
            exclude_booking_id=exclude_booking_id,
        )
        if conflicts:
            logger.warning(
                f"⚠️ Pet {pet_id} already booked between {check_in} and {check_out} "
                f"(booking {conflicts[0].id})"
            )
            raise ConflictError("Pet already has a booking during the requested dates")

    def ensure_bookable(
        self,
        host: PetHost,
        pet_id: str,
        check_in: date,
        check_out: date,
        exclude_booking_id: Optional[str] = None,
    ) -> None:
        """Both checks; both must pass before a booking is created or its dates change"""
        self.check_host_availability(host, check_in, check_out, exclude_booking_id)
        self.check_pet_conflicts(pet_id, check_in, check_out, exclude_booking_id)
