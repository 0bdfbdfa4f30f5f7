"""Hosting domain errors.

Each error is an HTTPException so services raise them the same way the other
domains raise HTTPException, while callers (and tests) can still catch the
specific failure kind.
"""

from fastapi import HTTPException


class HostingError(HTTPException):
    """Base class for failures surfaced by the hosting domain"""

    status_code = 400

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)


class NotFoundError(HostingError):
    """Host, pet, booking, user, photo, block or review absent or inactive"""

    status_code = 404


class ForbiddenError(HostingError):
    """Caller does not own the host profile or booking they act on"""

    status_code = 403


class InvalidStateError(HostingError):
    """Transition not allowed from the current status, or a required field is missing"""

    status_code = 400


class ConflictError(HostingError):
    """Blocked host, capacity reached, pet double-booked, or a duplicate record"""

    status_code = 409


class BookingValidationError(HostingError):
    """Malformed date range"""

    status_code = 400
