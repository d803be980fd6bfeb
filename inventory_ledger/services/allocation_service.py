"""Per-date, per-channel allocation and booking ledger.

Every mutation of an (property, room category, date) aggregate runs inside a
single keyed critical section: the cross-channel allocation sum is read,
compared against physical capacity and written without another writer for
the same aggregate interleaving. Validation always completes before the
first write, so a rejected call leaves no trace.
"""

from __future__ import annotations

from typing import Optional

from inventory_ledger.domain.constraints import (
    limits_from_settings,
    validate_date,
    validate_identifier,
    validate_identity,
    validate_non_negative,
    validate_positive,
)
from inventory_ledger.domain.errors import (
    AllocationBelowBookedError,
    AllocationNotFoundError,
    CapacityExceededError,
    ChannelInactiveError,
    InsufficientAvailabilityError,
    UnauthorizedError,
)
from inventory_ledger.domain.models import AllocationRecord, InventoryPosition
from inventory_ledger.repository.data_repository import DataRepository
from inventory_ledger.services.capacity_service import CapacityCatalogService
from inventory_ledger.services.channel_service import ChannelRegistryService
from inventory_ledger.utils.config import Settings, get_settings
from inventory_ledger.utils.locks import KeyedLock
from inventory_ledger.utils.logger import get_logger


logger = get_logger(__name__)


class AllocationLedgerService:
    """Enforces the no-oversell invariant across channels."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        catalog_service: Optional[CapacityCatalogService] = None,
        channel_service: Optional[ChannelRegistryService] = None,
        settings: Optional[Settings] = None,
        locks: Optional[KeyedLock] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._catalog_service = catalog_service or CapacityCatalogService(
            repository=self._repository,
            settings=self._settings,
        )
        self._channel_service = channel_service or ChannelRegistryService(
            repository=self._repository,
            settings=self._settings,
        )
        self._limits = limits_from_settings(self._settings)
        self._locks = locks or KeyedLock()

    def _validate_key(
        self,
        property_id: str,
        room_category_id: str,
        channel_id: str,
        date: int,
    ) -> None:
        validate_identifier("property_id", property_id, self._limits)
        validate_identifier("room_category_id", room_category_id, self._limits)
        validate_identifier("channel_id", channel_id, self._limits)
        validate_date(date)

    def allocate(
        self,
        property_id: str,
        room_category_id: str,
        channel_id: str,
        date: int,
        amount: int,
        caller: str,
    ) -> AllocationRecord:
        """Commit `amount` rooms of a category to a channel for one date.

        Checks run in a fixed order so the reported failure is deterministic:
        category exists, caller owns it, channel exists, channel is active,
        cross-channel capacity holds, then the re-allocation policy.

        With ``allocation_preserve_booked`` (the default) existing bookings
        survive a re-allocation and the new amount may not drop below them.
        Otherwise the record is reset and ``booked`` returns to zero.
        """
        self._validate_key(property_id, room_category_id, channel_id, date)
        validate_non_negative("amount", amount)
        validate_identity("caller", caller, self._limits)

        with self._locks.hold((property_id, room_category_id, date)):
            category = self._catalog_service.get_room_category(property_id, room_category_id)
            if category.owner != caller:
                raise UnauthorizedError(
                    f"Caller does not own room category {property_id}/{room_category_id}"
                )
            channel = self._channel_service.get_channel(channel_id)
            if not channel.active:
                raise ChannelInactiveError(f"Channel {channel_id} is not active")

            records = self._repository.list_allocations(property_id, room_category_id, date)
            existing = next(
                (record for record in records if record.channel_id == channel_id),
                None,
            )
            other_channels_allocated = sum(
                record.allocated for record in records if record.channel_id != channel_id
            )
            if other_channels_allocated + amount > category.total_capacity:
                raise CapacityExceededError(
                    f"Allocating {amount} would commit "
                    f"{other_channels_allocated + amount} of {category.total_capacity} rooms"
                )

            preserve_booked = self._settings.allocation_preserve_booked
            if preserve_booked and existing is not None and amount < existing.booked:
                raise AllocationBelowBookedError(
                    f"Allocation {amount} is below {existing.booked} already booked"
                )

            record = self._repository.set_allocation(
                property_id=property_id,
                room_category_id=room_category_id,
                channel_id=channel_id,
                date=date,
                allocated=amount,
                reset_booked=not preserve_booked,
            )
        logger.info(
            "Allocated %s of %s/%s to %s for %s",
            amount,
            property_id,
            room_category_id,
            channel_id,
            date,
        )
        return record

    def book(
        self,
        property_id: str,
        room_category_id: str,
        channel_id: str,
        date: int,
        amount: int,
        caller: str,
    ) -> AllocationRecord:
        """Consume allocated capacity; `booked` only ever grows here.

        Booking is open to any caller unless ``booking_requires_channel_operator``
        is set, in which case a channel with a registered operator accepts
        bookings from that operator only.
        """
        self._validate_key(property_id, room_category_id, channel_id, date)
        validate_positive("amount", amount)
        validate_identity("caller", caller, self._limits)

        with self._locks.hold((property_id, room_category_id, date)):
            existing = self._repository.get_allocation(
                property_id, room_category_id, channel_id, date
            )
            if existing is None:
                raise AllocationNotFoundError(
                    f"No allocation for {property_id}/{room_category_id} "
                    f"on {channel_id} for {date}"
                )
            if self._settings.booking_requires_channel_operator:
                channel = self._channel_service.get_channel(channel_id)
                if channel.operator is not None and channel.operator != caller:
                    raise UnauthorizedError(f"Caller is not the operator of {channel_id}")
            if amount > existing.available:
                raise InsufficientAvailabilityError(
                    f"Requested {amount} but only {existing.available} available"
                )
            if not self._repository.increment_booked(
                property_id, room_category_id, channel_id, date, amount
            ):
                raise InsufficientAvailabilityError(
                    f"Requested {amount} but availability changed concurrently"
                )
            record = self._repository.get_allocation(
                property_id, room_category_id, channel_id, date
            )
        logger.info(
            "Booked %s of %s/%s on %s for %s",
            amount,
            property_id,
            room_category_id,
            channel_id,
            date,
        )
        return record  # type: ignore[return-value]

    def get_allocation(
        self,
        property_id: str,
        room_category_id: str,
        channel_id: str,
        date: int,
    ) -> AllocationRecord:
        self._validate_key(property_id, room_category_id, channel_id, date)
        record = self._repository.get_allocation(property_id, room_category_id, channel_id, date)
        if record is None:
            raise AllocationNotFoundError(
                f"No allocation for {property_id}/{room_category_id} on {channel_id} for {date}"
            )
        return record

    def get_available(
        self,
        property_id: str,
        room_category_id: str,
        channel_id: str,
        date: int,
    ) -> int:
        """Unsold allocation for the key; an absent record simply has none."""
        self._validate_key(property_id, room_category_id, channel_id, date)
        record = self._repository.get_allocation(property_id, room_category_id, channel_id, date)
        if record is None:
            return 0
        return record.available

    def get_total_allocated(self, property_id: str, room_category_id: str, date: int) -> int:
        validate_identifier("property_id", property_id, self._limits)
        validate_identifier("room_category_id", room_category_id, self._limits)
        validate_date(date)
        records = self._repository.list_allocations(property_id, room_category_id, date)
        return sum(record.allocated for record in records)

    def get_inventory_position(
        self,
        property_id: str,
        room_category_id: str,
        date: int,
    ) -> InventoryPosition:
        validate_date(date)
        category = self._catalog_service.get_room_category(property_id, room_category_id)
        with self._locks.hold((property_id, room_category_id, date)):
            records = self._repository.list_allocations(property_id, room_category_id, date)
        return InventoryPosition(
            property_id=property_id,
            room_category_id=room_category_id,
            date=date,
            total_capacity=category.total_capacity,
            total_allocated=sum(record.allocated for record in records),
            total_booked=sum(record.booked for record in records),
            channels=records,
        )
