"""Controller layer for administrative identity and liveness."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from inventory_ledger.controllers.dependencies import (
    get_auth_service,
    get_caller_identity,
    to_http_exception,
)
from inventory_ledger.domain.errors import LedgerError
from inventory_ledger.services.auth_service import AuthService


router = APIRouter(tags=["admin"])


class TransferAdminRequest(BaseModel):
    new_identity: str = Field(min_length=1)


class AdminResponse(BaseModel):
    admin_identity: str


class HealthResponse(BaseModel):
    status: str = "ok"


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse()


@router.post("/admin/transfer", response_model=AdminResponse)
async def transfer_admin(
    payload: TransferAdminRequest,
    caller: str = Depends(get_caller_identity),
    auth_service: AuthService = Depends(get_auth_service),
) -> AdminResponse:
    try:
        new_admin = auth_service.transfer_admin(payload.new_identity, caller)
    except LedgerError as exc:
        raise to_http_exception(exc) from exc
    return AdminResponse(admin_identity=new_admin)
