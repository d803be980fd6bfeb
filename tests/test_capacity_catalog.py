from __future__ import annotations

from dataclasses import replace

import pytest

from inventory_ledger.domain.errors import (
    DuplicateKeyError,
    InvalidArgumentError,
    RoomCategoryNotFoundError,
)
from inventory_ledger.repository.data_repository import DataRepository
from inventory_ledger.services.capacity_service import CapacityCatalogService
from inventory_ledger.utils.config import get_settings


def _build_service(tmp_path) -> CapacityCatalogService:
    settings = replace(get_settings(), database_path=tmp_path / "catalog.db")
    repository = DataRepository(settings)
    repository.initialize_database()
    return CapacityCatalogService(repository=repository, settings=settings)


def test_create_room_category_records_owner(tmp_path):
    service = _build_service(tmp_path)

    category = service.create_room_category("prop1", "standard", "Standard Room", 10, "owner-a")

    assert category.owner == "owner-a"
    stored = service.get_room_category("prop1", "standard")
    assert stored.name == "Standard Room"
    assert stored.total_capacity == 10
    assert stored.owner == "owner-a"


def test_duplicate_room_category_is_rejected_and_original_kept(tmp_path):
    service = _build_service(tmp_path)
    service.create_room_category("prop1", "standard", "Standard Room", 10, "owner-a")

    with pytest.raises(DuplicateKeyError):
        service.create_room_category("prop1", "standard", "Hijacked", 99, "owner-b")

    stored = service.get_room_category("prop1", "standard")
    assert stored.owner == "owner-a"
    assert stored.total_capacity == 10


def test_same_category_id_under_another_property_is_distinct(tmp_path):
    service = _build_service(tmp_path)
    service.create_room_category("prop1", "standard", "Standard Room", 10, "owner-a")
    service.create_room_category("prop2", "standard", "Standard Room", 4, "owner-b")

    assert service.get_room_category("prop2", "standard").total_capacity == 4
    assert [c.room_category_id for c in service.list_room_categories("prop1")] == ["standard"]


def test_missing_room_category_raises_not_found(tmp_path):
    service = _build_service(tmp_path)

    with pytest.raises(RoomCategoryNotFoundError):
        service.get_room_category("prop1", "suite")


def test_oversized_identifiers_are_rejected_not_truncated(tmp_path):
    service = _build_service(tmp_path)

    with pytest.raises(InvalidArgumentError):
        service.create_room_category("p" * 33, "standard", "Standard Room", 10, "owner-a")
    with pytest.raises(InvalidArgumentError):
        service.create_room_category("prop1", "standard", "n" * 101, 10, "owner-a")

    assert service.list_room_categories("prop1") == []


def test_negative_capacity_is_rejected(tmp_path):
    service = _build_service(tmp_path)

    with pytest.raises(InvalidArgumentError):
        service.create_room_category("prop1", "standard", "Standard Room", -1, "owner-a")


def test_capacity_beyond_storable_integer_is_rejected(tmp_path):
    service = _build_service(tmp_path)

    with pytest.raises(InvalidArgumentError):
        service.create_room_category("prop1", "standard", "Standard Room", 2**63, "owner-a")
    with pytest.raises(RoomCategoryNotFoundError):
        service.get_room_category("prop1", "standard")
