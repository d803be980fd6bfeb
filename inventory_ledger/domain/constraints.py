"""Domain-level validation rules for ledger inputs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from inventory_ledger.domain.errors import InvalidArgumentError, InvalidOccupancyError

if TYPE_CHECKING:
    from inventory_ledger.utils.config import Settings


# largest value a SQLite INTEGER column can hold
MAX_SQL_INTEGER = 2**63 - 1


@dataclass(frozen=True)
class InputLimits:
    max_identifier_length: int
    max_name_length: int
    max_identity_length: int


def limits_from_settings(settings: Settings) -> InputLimits:
    return InputLimits(
        max_identifier_length=settings.max_identifier_length,
        max_name_length=settings.max_name_length,
        max_identity_length=settings.max_identity_length,
    )


def _is_ascii(value: str) -> bool:
    return value.isascii() and value.isprintable()


def validate_identifier(field: str, value: object, limits: InputLimits) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidArgumentError(f"{field} must be a non-empty string")
    if not _is_ascii(value):
        raise InvalidArgumentError(f"{field} must contain printable ASCII only")
    if len(value) > limits.max_identifier_length:
        raise InvalidArgumentError(
            f"{field} exceeds {limits.max_identifier_length} characters"
        )
    return value


def validate_name(field: str, value: object, limits: InputLimits) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"{field} must be a non-empty string")
    if not _is_ascii(value):
        raise InvalidArgumentError(f"{field} must contain printable ASCII only")
    if len(value) > limits.max_name_length:
        raise InvalidArgumentError(f"{field} exceeds {limits.max_name_length} characters")
    return value


def validate_identity(field: str, value: object, limits: InputLimits) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidArgumentError(f"{field} must be a non-empty identity token")
    if len(value) > limits.max_identity_length:
        raise InvalidArgumentError(
            f"{field} exceeds {limits.max_identity_length} characters"
        )
    return value


def validate_non_negative(field: str, value: object) -> int:
    # bool is an int subclass; a flag is never a quantity
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"{field} must be an integer")
    if value < 0:
        raise InvalidArgumentError(f"{field} must be >= 0")
    if value > MAX_SQL_INTEGER:
        raise InvalidArgumentError(f"{field} must be <= {MAX_SQL_INTEGER}")
    return value


def validate_positive(field: str, value: object) -> int:
    validate_non_negative(field, value)
    if value == 0:
        raise InvalidArgumentError(f"{field} must be > 0")
    return value  # type: ignore[return-value]


def validate_date(value: object) -> int:
    """Dates are opaque unsigned ordering keys (YYYYMMDD by convention)."""
    return validate_non_negative("date", value)


def validate_occupancy(field: str, value: object) -> int:
    validate_non_negative(field, value)
    if value > 100:  # type: ignore[operator]
        raise InvalidOccupancyError(f"{field} must be between 0 and 100")
    return value  # type: ignore[return-value]
