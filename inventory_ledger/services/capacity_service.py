"""Room category catalog: physical capacity and its owning identity."""

from __future__ import annotations

from typing import Optional

from inventory_ledger.domain.constraints import (
    limits_from_settings,
    validate_identifier,
    validate_identity,
    validate_name,
    validate_non_negative,
)
from inventory_ledger.domain.errors import DuplicateKeyError, RoomCategoryNotFoundError
from inventory_ledger.domain.models import RoomCategory
from inventory_ledger.repository.data_repository import DataRepository
from inventory_ledger.utils.config import Settings, get_settings
from inventory_ledger.utils.logger import get_logger


logger = get_logger(__name__)


class CapacityCatalogService:
    """Append-only registry of room categories; no update or delete path exists."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._limits = limits_from_settings(self._settings)

    def create_room_category(
        self,
        property_id: str,
        room_category_id: str,
        name: str,
        total_capacity: int,
        caller: str,
    ) -> RoomCategory:
        category = RoomCategory(
            property_id=validate_identifier("property_id", property_id, self._limits),
            room_category_id=validate_identifier(
                "room_category_id", room_category_id, self._limits
            ),
            name=validate_name("name", name, self._limits),
            total_capacity=validate_non_negative("total_capacity", total_capacity),
            owner=validate_identity("caller", caller, self._limits),
        )
        if not self._repository.insert_room_category(category):
            raise DuplicateKeyError(
                f"Room category {property_id}/{room_category_id} already exists"
            )
        logger.info(
            "Room category %s/%s created with capacity %s",
            property_id,
            room_category_id,
            total_capacity,
        )
        return category

    def get_room_category(self, property_id: str, room_category_id: str) -> RoomCategory:
        validate_identifier("property_id", property_id, self._limits)
        validate_identifier("room_category_id", room_category_id, self._limits)
        category = self._repository.get_room_category(property_id, room_category_id)
        if category is None:
            raise RoomCategoryNotFoundError(
                f"Room category {property_id}/{room_category_id} not found"
            )
        return category

    def list_room_categories(self, property_id: str) -> list[RoomCategory]:
        validate_identifier("property_id", property_id, self._limits)
        return self._repository.list_room_categories(property_id)
