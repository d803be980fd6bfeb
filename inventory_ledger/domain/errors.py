"""Typed failure taxonomy shared by every ledger service.

All failures are synchronous and recoverable; none of them is retry-eligible
because each one reports a semantic rejection, not an infrastructure fault.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base ledger failure."""

    code = "LEDGER_ERROR"


class InvalidArgumentError(LedgerError):
    """Raised when an input violates identifier, name or numeric bounds."""

    code = "INVALID_ARGUMENT"


class InvalidOccupancyError(InvalidArgumentError):
    """Raised when an occupancy percentage is above 100."""

    code = "INVALID_OCCUPANCY"


class NotFoundError(LedgerError):
    code = "NOT_FOUND"


class RoomCategoryNotFoundError(NotFoundError):
    code = "ROOM_CATEGORY_NOT_FOUND"


class ChannelNotFoundError(NotFoundError):
    code = "CHANNEL_NOT_FOUND"


class AllocationNotFoundError(NotFoundError):
    code = "ALLOCATION_NOT_FOUND"


class CompetitorSetNotFoundError(NotFoundError):
    code = "SET_NOT_FOUND"


class PropertyDataNotFoundError(NotFoundError):
    code = "PROPERTY_DATA_NOT_FOUND"


class CompetitorDataNotFoundError(NotFoundError):
    code = "COMPETITOR_DATA_NOT_FOUND"


class DuplicateKeyError(LedgerError):
    code = "DUPLICATE_KEY"


class UnauthorizedError(LedgerError):
    """Raised when the caller is neither the owner nor the administrator required."""

    code = "UNAUTHORIZED"


class NotOwnerError(UnauthorizedError):
    code = "NOT_OWNER"


class LedgerConflictError(LedgerError):
    """Base for rejections caused by the current ledger state."""

    code = "CONFLICT"


class ChannelInactiveError(LedgerConflictError):
    code = "CHANNEL_INACTIVE"


class CapacityExceededError(LedgerConflictError):
    code = "CAPACITY_EXCEEDED"


class InsufficientAvailabilityError(LedgerConflictError):
    code = "INSUFFICIENT_AVAILABILITY"


class AllocationBelowBookedError(LedgerConflictError):
    code = "ALLOCATION_BELOW_BOOKED"
