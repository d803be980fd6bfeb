"""Tests for allocation and booking rules of the inventory ledger."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace

import pytest

from inventory_ledger.domain.errors import (
    AllocationBelowBookedError,
    AllocationNotFoundError,
    CapacityExceededError,
    ChannelInactiveError,
    ChannelNotFoundError,
    InsufficientAvailabilityError,
    InvalidArgumentError,
    RoomCategoryNotFoundError,
    UnauthorizedError,
)
from inventory_ledger.repository.data_repository import DataRepository
from inventory_ledger.services.allocation_service import AllocationLedgerService
from inventory_ledger.services.auth_service import AuthService
from inventory_ledger.services.capacity_service import CapacityCatalogService
from inventory_ledger.services.channel_service import ChannelRegistryService
from inventory_ledger.utils.config import get_settings


ADMIN = "ledger-admin"
OWNER = "owner-a"
STRANGER = "owner-b"
DATE = 20230101


@dataclass
class Ledger:
    repository: DataRepository
    catalog: CapacityCatalogService
    channels: ChannelRegistryService
    allocations: AllocationLedgerService


def _build_ledger(tmp_path, **overrides) -> Ledger:
    settings = replace(
        get_settings(),
        database_path=tmp_path / "ledger.db",
        admin_identity=ADMIN,
        **overrides,
    )
    repository = DataRepository(settings)
    repository.initialize_database()
    auth_service = AuthService(repository=repository, settings=settings)
    catalog = CapacityCatalogService(repository=repository, settings=settings)
    channels = ChannelRegistryService(
        repository=repository,
        auth_service=auth_service,
        settings=settings,
    )
    allocations = AllocationLedgerService(
        repository=repository,
        catalog_service=catalog,
        channel_service=channels,
        settings=settings,
    )
    return Ledger(repository, catalog, channels, allocations)


def _seed(ledger: Ledger, capacity: int = 10) -> None:
    ledger.catalog.create_room_category("prop1", "standard", "Standard Room", capacity, OWNER)
    ledger.channels.create_channel("direct", "Direct Booking", ADMIN)
    ledger.channels.create_channel("ota", "Online Agency", ADMIN)


def test_allocate_then_book_until_sold_out(tmp_path):
    ledger = _build_ledger(tmp_path)
    _seed(ledger)
    alloc = ledger.allocations

    record = alloc.allocate("prop1", "standard", "direct", DATE, 5, OWNER)
    assert (record.allocated, record.booked) == (5, 0)
    assert alloc.get_available("prop1", "standard", "direct", DATE) == 5

    alloc.book("prop1", "standard", "direct", DATE, 2, "guest")
    assert alloc.get_available("prop1", "standard", "direct", DATE) == 3

    record = alloc.book("prop1", "standard", "direct", DATE, 3, "guest")
    assert (record.allocated, record.booked) == (5, 5)
    assert alloc.get_available("prop1", "standard", "direct", DATE) == 0

    with pytest.raises(InsufficientAvailabilityError):
        alloc.book("prop1", "standard", "direct", DATE, 1, "guest")
    assert alloc.get_allocation("prop1", "standard", "direct", DATE).booked == 5


def test_book_more_than_available_leaves_record_untouched(tmp_path):
    ledger = _build_ledger(tmp_path)
    _seed(ledger)
    ledger.allocations.allocate("prop1", "standard", "direct", DATE, 5, OWNER)
    ledger.allocations.book("prop1", "standard", "direct", DATE, 3, "guest")

    with pytest.raises(InsufficientAvailabilityError):
        ledger.allocations.book("prop1", "standard", "direct", DATE, 3, "guest")

    record = ledger.allocations.get_allocation("prop1", "standard", "direct", DATE)
    assert (record.allocated, record.booked) == (5, 3)


def test_allocate_without_category_creates_nothing(tmp_path):
    ledger = _build_ledger(tmp_path)
    ledger.channels.create_channel("direct", "Direct Booking", ADMIN)

    with pytest.raises(RoomCategoryNotFoundError):
        ledger.allocations.allocate("prop1", "standard", "direct", DATE, 5, OWNER)

    assert ledger.repository.count_allocations() == 0


def test_only_owner_may_allocate(tmp_path):
    ledger = _build_ledger(tmp_path)
    _seed(ledger)

    with pytest.raises(UnauthorizedError):
        ledger.allocations.allocate("prop1", "standard", "direct", DATE, 5, STRANGER)
    assert ledger.repository.count_allocations() == 0


def test_ownership_is_checked_before_channel_existence(tmp_path):
    ledger = _build_ledger(tmp_path)
    _seed(ledger)

    with pytest.raises(UnauthorizedError):
        ledger.allocations.allocate("prop1", "standard", "missing", DATE, 5, STRANGER)
    with pytest.raises(ChannelNotFoundError):
        ledger.allocations.allocate("prop1", "standard", "missing", DATE, 5, OWNER)


def test_inactive_channel_rejects_allocation_before_capacity_check(tmp_path):
    ledger = _build_ledger(tmp_path)
    _seed(ledger)
    ledger.channels.set_channel_active("ota", False, ADMIN)

    with pytest.raises(ChannelInactiveError):
        ledger.allocations.allocate("prop1", "standard", "ota", DATE, 50, OWNER)


def test_capacity_is_enforced_across_channels(tmp_path):
    ledger = _build_ledger(tmp_path)
    _seed(ledger)
    alloc = ledger.allocations

    alloc.allocate("prop1", "standard", "direct", DATE, 6, OWNER)
    with pytest.raises(CapacityExceededError):
        alloc.allocate("prop1", "standard", "ota", DATE, 5, OWNER)
    assert alloc.get_available("prop1", "standard", "ota", DATE) == 0

    alloc.allocate("prop1", "standard", "ota", DATE, 4, OWNER)
    assert alloc.get_total_allocated("prop1", "standard", DATE) == 10


def test_reallocation_excludes_own_previous_amount(tmp_path):
    ledger = _build_ledger(tmp_path)
    _seed(ledger)
    alloc = ledger.allocations
    alloc.allocate("prop1", "standard", "direct", DATE, 6, OWNER)
    alloc.allocate("prop1", "standard", "ota", DATE, 4, OWNER)

    alloc.allocate("prop1", "standard", "direct", DATE, 6, OWNER)
    alloc.allocate("prop1", "standard", "direct", DATE, 2, OWNER)
    with pytest.raises(CapacityExceededError):
        alloc.allocate("prop1", "standard", "direct", DATE, 7, OWNER)

    assert alloc.get_total_allocated("prop1", "standard", DATE) == 6


def test_capacity_is_tracked_per_date(tmp_path):
    ledger = _build_ledger(tmp_path)
    _seed(ledger)

    ledger.allocations.allocate("prop1", "standard", "direct", DATE, 10, OWNER)
    ledger.allocations.allocate("prop1", "standard", "direct", DATE + 1, 10, OWNER)

    assert ledger.allocations.get_total_allocated("prop1", "standard", DATE + 1) == 10


def test_reallocation_preserves_bookings_by_default(tmp_path):
    ledger = _build_ledger(tmp_path)
    _seed(ledger)
    alloc = ledger.allocations
    alloc.allocate("prop1", "standard", "direct", DATE, 5, OWNER)
    alloc.book("prop1", "standard", "direct", DATE, 3, "guest")

    record = alloc.allocate("prop1", "standard", "direct", DATE, 4, OWNER)
    assert (record.allocated, record.booked) == (4, 3)
    assert alloc.get_available("prop1", "standard", "direct", DATE) == 1

    with pytest.raises(AllocationBelowBookedError):
        alloc.allocate("prop1", "standard", "direct", DATE, 2, OWNER)
    assert alloc.get_allocation("prop1", "standard", "direct", DATE).allocated == 4


def test_reset_policy_clears_bookings_on_reallocation(tmp_path):
    ledger = _build_ledger(tmp_path, allocation_preserve_booked=False)
    _seed(ledger)
    alloc = ledger.allocations
    alloc.allocate("prop1", "standard", "direct", DATE, 5, OWNER)
    alloc.book("prop1", "standard", "direct", DATE, 3, "guest")

    record = alloc.allocate("prop1", "standard", "direct", DATE, 2, OWNER)

    assert (record.allocated, record.booked) == (2, 0)


def test_get_available_on_absent_key_is_zero(tmp_path):
    ledger = _build_ledger(tmp_path)

    assert ledger.allocations.get_available("prop1", "standard", "direct", DATE) == 0


def test_book_without_allocation_raises(tmp_path):
    ledger = _build_ledger(tmp_path)
    _seed(ledger)

    with pytest.raises(AllocationNotFoundError):
        ledger.allocations.book("prop1", "standard", "direct", DATE, 1, "guest")


def test_book_rejects_non_positive_amount(tmp_path):
    ledger = _build_ledger(tmp_path)
    _seed(ledger)
    ledger.allocations.allocate("prop1", "standard", "direct", DATE, 5, OWNER)

    with pytest.raises(InvalidArgumentError):
        ledger.allocations.book("prop1", "standard", "direct", DATE, 0, "guest")
    with pytest.raises(InvalidArgumentError):
        ledger.allocations.allocate("prop1", "standard", "direct", DATE, -1, OWNER)


def test_booking_is_open_to_any_caller_by_default(tmp_path):
    ledger = _build_ledger(tmp_path)
    ledger.catalog.create_room_category("prop1", "standard", "Standard Room", 10, OWNER)
    ledger.channels.create_channel("ota", "Online Agency", ADMIN, operator="ota-operator")
    ledger.allocations.allocate("prop1", "standard", "ota", DATE, 5, OWNER)

    record = ledger.allocations.book("prop1", "standard", "ota", DATE, 1, "anyone")

    assert record.booked == 1


def test_operator_binding_restricts_booking(tmp_path):
    ledger = _build_ledger(tmp_path, booking_requires_channel_operator=True)
    ledger.catalog.create_room_category("prop1", "standard", "Standard Room", 10, OWNER)
    ledger.channels.create_channel("ota", "Online Agency", ADMIN, operator="ota-operator")
    ledger.channels.create_channel("direct", "Direct Booking", ADMIN)
    ledger.allocations.allocate("prop1", "standard", "ota", DATE, 5, OWNER)
    ledger.allocations.allocate("prop1", "standard", "direct", DATE, 5, OWNER)

    with pytest.raises(UnauthorizedError):
        ledger.allocations.book("prop1", "standard", "ota", DATE, 1, "anyone")
    assert ledger.allocations.book("prop1", "standard", "ota", DATE, 1, "ota-operator").booked == 1
    # channels without a registered operator stay open
    assert ledger.allocations.book("prop1", "standard", "direct", DATE, 1, "anyone").booked == 1


def test_inventory_position_summarises_all_channels(tmp_path):
    ledger = _build_ledger(tmp_path)
    _seed(ledger)
    alloc = ledger.allocations
    alloc.allocate("prop1", "standard", "direct", DATE, 3, OWNER)
    alloc.allocate("prop1", "standard", "ota", DATE, 4, OWNER)
    alloc.book("prop1", "standard", "ota", DATE, 2, "guest")

    position = alloc.get_inventory_position("prop1", "standard", DATE)

    assert position.total_capacity == 10
    assert position.total_allocated == 7
    assert position.total_booked == 2
    assert position.unallocated == 3
    assert [record.channel_id for record in position.channels] == ["direct", "ota"]


def test_concurrent_allocations_never_exceed_capacity(tmp_path):
    ledger = _build_ledger(tmp_path)
    ledger.catalog.create_room_category("prop1", "standard", "Standard Room", 10, OWNER)
    channel_ids = [f"channel{index}" for index in range(8)]
    for channel_id in channel_ids:
        ledger.channels.create_channel(channel_id, channel_id, ADMIN)

    def attempt(channel_id: str) -> bool:
        try:
            ledger.allocations.allocate("prop1", "standard", channel_id, DATE, 3, OWNER)
            return True
        except CapacityExceededError:
            return False

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(attempt, channel_ids))

    assert outcomes.count(True) == 3
    assert ledger.allocations.get_total_allocated("prop1", "standard", DATE) == 9


def test_concurrent_bookings_never_exceed_allocation(tmp_path):
    ledger = _build_ledger(tmp_path)
    _seed(ledger)
    ledger.allocations.allocate("prop1", "standard", "direct", DATE, 5, OWNER)

    def attempt(_: int) -> bool:
        try:
            ledger.allocations.book("prop1", "standard", "direct", DATE, 1, "guest")
            return True
        except InsufficientAvailabilityError:
            return False

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(attempt, range(12)))

    assert outcomes.count(True) == 5
    record = ledger.allocations.get_allocation("prop1", "standard", "direct", DATE)
    assert record.booked == record.allocated == 5


def test_dates_beyond_storable_integer_are_rejected(tmp_path):
    ledger = _build_ledger(tmp_path)
    _seed(ledger)

    with pytest.raises(InvalidArgumentError):
        ledger.allocations.get_available("prop1", "standard", "direct", 2**64)
    with pytest.raises(InvalidArgumentError):
        ledger.allocations.allocate("prop1", "standard", "direct", 2**63, 1, OWNER)
    with pytest.raises(InvalidArgumentError):
        ledger.allocations.book("prop1", "standard", "direct", DATE, 2**63, "guest")
    assert ledger.repository.count_allocations() == 0
