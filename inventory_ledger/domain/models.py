"""Domain models for the room inventory ledger."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RoomCategory:
    property_id: str
    room_category_id: str
    name: str
    total_capacity: int
    owner: str


@dataclass(frozen=True)
class Channel:
    channel_id: str
    name: str
    active: bool
    operator: str | None = None


@dataclass(frozen=True)
class AllocationRecord:
    """Capacity committed to one channel for one date, and how much of it is sold."""

    property_id: str
    room_category_id: str
    channel_id: str
    date: int
    allocated: int
    booked: int

    @property
    def available(self) -> int:
        return self.allocated - self.booked


@dataclass(frozen=True)
class InventoryPosition:
    """Cross-channel view of one (property, category, date) aggregate."""

    property_id: str
    room_category_id: str
    date: int
    total_capacity: int
    total_allocated: int
    total_booked: int
    channels: list[AllocationRecord]

    @property
    def unallocated(self) -> int:
        return self.total_capacity - self.total_allocated


@dataclass(frozen=True)
class RevenueFact:
    property_id: str
    date: int
    room_revenue: int
    other_revenue: int
    occupancy_percentage: int
    adr: int
    revpar: int


@dataclass(frozen=True)
class CompetitorSet:
    set_id: str
    name: str
    owner: str


@dataclass(frozen=True)
class CompetitorAggregate:
    set_id: str
    date: int
    avg_occupancy: int
    avg_adr: int
    avg_revpar: int
    property_count: int


@dataclass(frozen=True)
class PerformanceComparison:
    """Index of 100 is parity with the competitor set; above 100 outperforms it."""

    occupancy_index: int
    adr_index: int
    revpar_index: int


@dataclass(frozen=True)
class DatedComparison:
    date: int
    comparison: PerformanceComparison
