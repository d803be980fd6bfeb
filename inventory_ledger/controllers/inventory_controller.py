"""HTTP controller layer for capacity, channels, allocations and bookings."""

from __future__ import annotations

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from inventory_ledger.controllers.dependencies import (
    get_allocation_service,
    get_caller_identity,
    get_catalog_service,
    get_channel_service,
    to_http_exception,
)
from inventory_ledger.domain.constraints import MAX_SQL_INTEGER
from inventory_ledger.domain.errors import LedgerError
from inventory_ledger.domain.models import AllocationRecord
from inventory_ledger.services.allocation_service import AllocationLedgerService
from inventory_ledger.services.capacity_service import CapacityCatalogService
from inventory_ledger.services.channel_service import ChannelRegistryService
from inventory_ledger.utils.config import get_settings


settings = get_settings()

router = APIRouter(tags=["inventory"])

Identifier = Annotated[str, Field(min_length=1, max_length=settings.max_identifier_length)]
Name = Annotated[str, Field(min_length=1, max_length=settings.max_name_length)]
Quantity = Annotated[int, Field(ge=0, le=MAX_SQL_INTEGER)]


class CreateRoomCategoryRequest(BaseModel):
    property_id: Identifier
    room_category_id: Identifier
    name: Name
    total_capacity: Quantity


class RoomCategoryResponse(BaseModel):
    property_id: str
    room_category_id: str
    name: str
    total_capacity: Quantity
    owner: str


class CreateChannelRequest(BaseModel):
    channel_id: Identifier
    name: Name
    operator: str | None = None


class UpdateChannelRequest(BaseModel):
    active: bool


class ChannelResponse(BaseModel):
    channel_id: str
    name: str
    active: bool
    operator: str | None = None


class AllocationRequest(BaseModel):
    property_id: Identifier
    room_category_id: Identifier
    channel_id: Identifier
    date: Quantity
    amount: Quantity


class BookingRequest(AllocationRequest):
    amount: int = Field(gt=0, le=MAX_SQL_INTEGER)


class AllocationResponse(BaseModel):
    property_id: str
    room_category_id: str
    channel_id: str
    date: int
    allocated: int = Field(ge=0)
    booked: int = Field(ge=0)
    available: int = Field(ge=0)


class AvailabilityResponse(BaseModel):
    available: int = Field(ge=0)


class InventoryPositionResponse(BaseModel):
    property_id: str
    room_category_id: str
    date: int
    total_capacity: int
    total_allocated: int
    total_booked: int
    unallocated: int
    channels: list[AllocationResponse]


def _allocation_response(record: AllocationRecord) -> AllocationResponse:
    return AllocationResponse(
        property_id=record.property_id,
        room_category_id=record.room_category_id,
        channel_id=record.channel_id,
        date=record.date,
        allocated=record.allocated,
        booked=record.booked,
        available=record.available,
    )


@router.post(
    "/room-categories",
    response_model=RoomCategoryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_room_category(
    payload: CreateRoomCategoryRequest,
    caller: str = Depends(get_caller_identity),
    service: CapacityCatalogService = Depends(get_catalog_service),
) -> RoomCategoryResponse:
    try:
        category = service.create_room_category(
            property_id=payload.property_id,
            room_category_id=payload.room_category_id,
            name=payload.name,
            total_capacity=payload.total_capacity,
            caller=caller,
        )
    except LedgerError as exc:
        raise to_http_exception(exc) from exc
    return RoomCategoryResponse(**asdict(category))


@router.get(
    "/room-categories/{property_id}/{room_category_id}",
    response_model=RoomCategoryResponse,
)
async def get_room_category(
    property_id: str,
    room_category_id: str,
    service: CapacityCatalogService = Depends(get_catalog_service),
) -> RoomCategoryResponse:
    try:
        category = service.get_room_category(property_id, room_category_id)
    except LedgerError as exc:
        raise to_http_exception(exc) from exc
    return RoomCategoryResponse(**asdict(category))


@router.post(
    "/channels",
    response_model=ChannelResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_channel(
    payload: CreateChannelRequest,
    caller: str = Depends(get_caller_identity),
    service: ChannelRegistryService = Depends(get_channel_service),
) -> ChannelResponse:
    try:
        channel = service.create_channel(
            channel_id=payload.channel_id,
            name=payload.name,
            caller=caller,
            operator=payload.operator,
        )
    except LedgerError as exc:
        raise to_http_exception(exc) from exc
    return ChannelResponse(**asdict(channel))


@router.get("/channels", response_model=list[ChannelResponse])
async def list_channels(
    service: ChannelRegistryService = Depends(get_channel_service),
) -> list[ChannelResponse]:
    return [ChannelResponse(**asdict(channel)) for channel in service.list_channels()]


@router.get("/channels/{channel_id}", response_model=ChannelResponse)
async def get_channel(
    channel_id: str,
    service: ChannelRegistryService = Depends(get_channel_service),
) -> ChannelResponse:
    try:
        channel = service.get_channel(channel_id)
    except LedgerError as exc:
        raise to_http_exception(exc) from exc
    return ChannelResponse(**asdict(channel))


@router.patch("/channels/{channel_id}", response_model=ChannelResponse)
async def update_channel(
    channel_id: str,
    payload: UpdateChannelRequest,
    caller: str = Depends(get_caller_identity),
    service: ChannelRegistryService = Depends(get_channel_service),
) -> ChannelResponse:
    try:
        channel = service.set_channel_active(channel_id, payload.active, caller)
    except LedgerError as exc:
        raise to_http_exception(exc) from exc
    return ChannelResponse(**asdict(channel))


@router.post("/allocations", response_model=AllocationResponse)
async def allocate(
    payload: AllocationRequest,
    caller: str = Depends(get_caller_identity),
    service: AllocationLedgerService = Depends(get_allocation_service),
) -> AllocationResponse:
    """Set a channel's committed capacity for one date."""
    try:
        record = service.allocate(
            property_id=payload.property_id,
            room_category_id=payload.room_category_id,
            channel_id=payload.channel_id,
            date=payload.date,
            amount=payload.amount,
            caller=caller,
        )
    except LedgerError as exc:
        raise to_http_exception(exc) from exc
    return _allocation_response(record)


@router.post("/bookings", response_model=AllocationResponse)
async def book(
    payload: BookingRequest,
    caller: str = Depends(get_caller_identity),
    service: AllocationLedgerService = Depends(get_allocation_service),
) -> AllocationResponse:
    try:
        record = service.book(
            property_id=payload.property_id,
            room_category_id=payload.room_category_id,
            channel_id=payload.channel_id,
            date=payload.date,
            amount=payload.amount,
            caller=caller,
        )
    except LedgerError as exc:
        raise to_http_exception(exc) from exc
    return _allocation_response(record)


@router.get("/availability", response_model=AvailabilityResponse)
async def get_availability(
    property_id: str,
    room_category_id: str,
    channel_id: str,
    date: int = Query(ge=0, le=MAX_SQL_INTEGER),
    service: AllocationLedgerService = Depends(get_allocation_service),
) -> AvailabilityResponse:
    try:
        available = service.get_available(property_id, room_category_id, channel_id, date)
    except LedgerError as exc:
        raise to_http_exception(exc) from exc
    return AvailabilityResponse(available=available)


@router.get("/inventory-position", response_model=InventoryPositionResponse)
async def get_inventory_position(
    property_id: str,
    room_category_id: str,
    date: int = Query(ge=0, le=MAX_SQL_INTEGER),
    service: AllocationLedgerService = Depends(get_allocation_service),
) -> InventoryPositionResponse:
    try:
        position = service.get_inventory_position(property_id, room_category_id, date)
    except LedgerError as exc:
        raise to_http_exception(exc) from exc
    return InventoryPositionResponse(
        property_id=position.property_id,
        room_category_id=position.room_category_id,
        date=position.date,
        total_capacity=position.total_capacity,
        total_allocated=position.total_allocated,
        total_booked=position.total_booked,
        unallocated=position.unallocated,
        channels=[_allocation_response(record) for record in position.channels],
    )
