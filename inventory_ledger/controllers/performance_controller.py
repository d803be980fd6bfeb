"""HTTP controller layer for revenue facts and competitive indices."""

from __future__ import annotations

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from inventory_ledger.controllers.dependencies import (
    get_caller_identity,
    get_performance_service,
    to_http_exception,
)
from inventory_ledger.domain.constraints import MAX_SQL_INTEGER
from inventory_ledger.domain.errors import LedgerError
from inventory_ledger.services.performance_service import PerformanceIndexService
from inventory_ledger.utils.config import get_settings


settings = get_settings()

router = APIRouter(tags=["performance"])

Identifier = Annotated[str, Field(min_length=1, max_length=settings.max_identifier_length)]
Name = Annotated[str, Field(min_length=1, max_length=settings.max_name_length)]
Quantity = Annotated[int, Field(ge=0, le=MAX_SQL_INTEGER)]


class RecordRevenueRequest(BaseModel):
    property_id: Identifier
    date: Quantity
    room_revenue: Quantity
    other_revenue: Quantity
    # upper bound is enforced by the service so callers get INVALID_OCCUPANCY
    occupancy_percentage: Quantity
    adr: Quantity


class RevenueFactResponse(BaseModel):
    property_id: str
    date: int
    room_revenue: int
    other_revenue: int
    occupancy_percentage: int = Field(ge=0, le=100)
    adr: int
    revpar: int


class CreateCompetitorSetRequest(BaseModel):
    set_id: Identifier
    name: Name


class CompetitorSetResponse(BaseModel):
    set_id: str
    name: str
    owner: str


class MembershipResponse(BaseModel):
    set_id: str
    property_id: str
    is_member: bool


class CompetitorAggregateRequest(BaseModel):
    avg_occupancy: Quantity
    avg_adr: Quantity
    avg_revpar: Quantity
    property_count: Quantity


class CompetitorAggregateResponse(BaseModel):
    set_id: str
    date: int
    avg_occupancy: int
    avg_adr: int
    avg_revpar: int
    property_count: int


class PerformanceComparisonResponse(BaseModel):
    occupancy_index: int = Field(ge=0)
    adr_index: int = Field(ge=0)
    revpar_index: int = Field(ge=0)


@router.post(
    "/revenue",
    response_model=RevenueFactResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_revenue(
    payload: RecordRevenueRequest,
    caller: str = Depends(get_caller_identity),
    service: PerformanceIndexService = Depends(get_performance_service),
) -> RevenueFactResponse:
    try:
        fact = service.record_revenue(
            property_id=payload.property_id,
            date=payload.date,
            room_revenue=payload.room_revenue,
            other_revenue=payload.other_revenue,
            occupancy_percentage=payload.occupancy_percentage,
            adr=payload.adr,
            caller=caller,
        )
    except LedgerError as exc:
        raise to_http_exception(exc) from exc
    return RevenueFactResponse(**asdict(fact))


@router.post(
    "/competitor-sets",
    response_model=CompetitorSetResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_competitor_set(
    payload: CreateCompetitorSetRequest,
    caller: str = Depends(get_caller_identity),
    service: PerformanceIndexService = Depends(get_performance_service),
) -> CompetitorSetResponse:
    try:
        competitor_set = service.create_competitor_set(payload.set_id, payload.name, caller)
    except LedgerError as exc:
        raise to_http_exception(exc) from exc
    return CompetitorSetResponse(**asdict(competitor_set))


@router.post(
    "/competitor-sets/{set_id}/members/{property_id}",
    response_model=MembershipResponse,
)
async def add_property_to_set(
    set_id: str,
    property_id: str,
    caller: str = Depends(get_caller_identity),
    service: PerformanceIndexService = Depends(get_performance_service),
) -> MembershipResponse:
    try:
        service.add_property_to_set(set_id, property_id, caller)
    except LedgerError as exc:
        raise to_http_exception(exc) from exc
    return MembershipResponse(set_id=set_id, property_id=property_id, is_member=True)


@router.delete(
    "/competitor-sets/{set_id}/members/{property_id}",
    response_model=MembershipResponse,
)
async def remove_property_from_set(
    set_id: str,
    property_id: str,
    caller: str = Depends(get_caller_identity),
    service: PerformanceIndexService = Depends(get_performance_service),
) -> MembershipResponse:
    try:
        service.remove_property_from_set(set_id, property_id, caller)
    except LedgerError as exc:
        raise to_http_exception(exc) from exc
    return MembershipResponse(set_id=set_id, property_id=property_id, is_member=False)


@router.put(
    "/competitor-sets/{set_id}/aggregates/{date}",
    response_model=CompetitorAggregateResponse,
)
async def update_competitor_aggregate(
    set_id: str,
    date: int,
    payload: CompetitorAggregateRequest,
    caller: str = Depends(get_caller_identity),
    service: PerformanceIndexService = Depends(get_performance_service),
) -> CompetitorAggregateResponse:
    """External aggregation feed; administrator only."""
    try:
        aggregate = service.update_competitor_aggregate(
            set_id=set_id,
            date=date,
            avg_occupancy=payload.avg_occupancy,
            avg_adr=payload.avg_adr,
            avg_revpar=payload.avg_revpar,
            property_count=payload.property_count,
            caller=caller,
        )
    except LedgerError as exc:
        raise to_http_exception(exc) from exc
    return CompetitorAggregateResponse(**asdict(aggregate))


@router.get("/performance/compare", response_model=PerformanceComparisonResponse)
async def compare_performance(
    property_id: str,
    set_id: str,
    date: int = Query(ge=0, le=MAX_SQL_INTEGER),
    service: PerformanceIndexService = Depends(get_performance_service),
) -> PerformanceComparisonResponse:
    try:
        comparison = service.compare_performance(property_id, set_id, date)
    except LedgerError as exc:
        raise to_http_exception(exc) from exc
    return PerformanceComparisonResponse(**asdict(comparison))
