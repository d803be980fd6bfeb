"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from inventory_ledger.domain.errors import (
    DuplicateKeyError,
    InvalidArgumentError,
    LedgerConflictError,
    LedgerError,
    NotFoundError,
    UnauthorizedError,
)
from inventory_ledger.services.allocation_service import AllocationLedgerService
from inventory_ledger.services.auth_service import AuthService
from inventory_ledger.services.capacity_service import CapacityCatalogService
from inventory_ledger.services.channel_service import ChannelRegistryService
from inventory_ledger.services.performance_service import PerformanceIndexService
from inventory_ledger.utils.config import get_settings
from inventory_ledger.utils.logger import get_logger


logger = get_logger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[LedgerError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (UnauthorizedError, status.HTTP_403_FORBIDDEN),
    (DuplicateKeyError, status.HTTP_409_CONFLICT),
    (LedgerConflictError, status.HTTP_409_CONFLICT),
    (InvalidArgumentError, status.HTTP_400_BAD_REQUEST),
)


def to_http_exception(exc: LedgerError) -> HTTPException:
    status_code = status.HTTP_400_BAD_REQUEST
    for error_type, mapped_status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = mapped_status
            break
    logger.warning("Rejected with %s: %s", exc.code, exc)
    return HTTPException(
        status_code=status_code,
        detail={"code": exc.code, "message": str(exc)},
    )


def _service(request: Request, attribute: str, label: str):
    service = getattr(request.app.state, attribute, None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} service is not initialized",
        )
    return service


def get_auth_service(request: Request) -> AuthService:
    return _service(request, "auth_service", "Auth")


def get_catalog_service(request: Request) -> CapacityCatalogService:
    return _service(request, "catalog_service", "Capacity catalog")


def get_channel_service(request: Request) -> ChannelRegistryService:
    return _service(request, "channel_service", "Channel registry")


def get_allocation_service(request: Request) -> AllocationLedgerService:
    return _service(request, "allocation_service", "Allocation ledger")


def get_performance_service(request: Request) -> PerformanceIndexService:
    return _service(request, "performance_service", "Performance index")


def get_caller_identity(request: Request) -> str:
    """Principal resolved upstream by the authentication layer."""
    settings = getattr(request.app.state, "settings", None) or get_settings()
    header_name = settings.caller_identity_header
    identity = request.headers.get(header_name, "").strip()
    if not identity:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"{header_name} header is required",
        )
    return identity
