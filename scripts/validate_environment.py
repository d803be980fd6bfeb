#!/usr/bin/env python3
"""Validate local ledger environment readiness."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from inventory_ledger.domain.errors import InsufficientAvailabilityError
from inventory_ledger.repository.data_repository import DataRepository
from inventory_ledger.services.allocation_service import AllocationLedgerService
from inventory_ledger.services.auth_service import AuthService
from inventory_ledger.services.capacity_service import CapacityCatalogService
from inventory_ledger.services.channel_service import ChannelRegistryService
from inventory_ledger.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def _smoke_ledger(database_path: Path) -> str:
    """Run the allocate/book/oversell scenario against a scratch database."""
    settings = replace(get_settings(), database_path=database_path)
    repository = DataRepository(settings)
    repository.initialize_database()
    auth_service = AuthService(repository=repository, settings=settings)
    catalog = CapacityCatalogService(repository=repository, settings=settings)
    channels = ChannelRegistryService(
        repository=repository,
        auth_service=auth_service,
        settings=settings,
    )
    ledger = AllocationLedgerService(
        repository=repository,
        catalog_service=catalog,
        channel_service=channels,
        settings=settings,
    )

    admin = auth_service.get_admin()
    catalog.create_room_category("prop1", "standard", "Standard Room", 10, "owner-a")
    channels.create_channel("direct", "Direct Booking", admin)
    ledger.allocate("prop1", "standard", "direct", 20230101, 5, "owner-a")
    ledger.book("prop1", "standard", "direct", 20230101, 5, "guest")
    try:
        ledger.book("prop1", "standard", "direct", 20230101, 1, "guest")
    except InsufficientAvailabilityError:
        return " (oversell rejected)"
    raise RuntimeError("booking beyond allocation was accepted")


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="ledger-env-")

    # CHECK 1: Python version >= 3.11
    if sys.version_info >= (3, 11):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.11",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2: Required packages importable
    package_specs = ["fastapi", "uvicorn", "pydantic", "httpx", "pytest"]
    import_errors: list[str] = []
    for module_name in package_specs:
        try:
            importlib.import_module(module_name)
        except ImportError as exc:
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages", True)
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 3: Schema + ledger scenario on a scratch database
    try:
        detail = _smoke_ledger(Path(temp_dir) / "validate.db")
        ok, line = _print_result("Ledger smoke scenario", True, detail)
    except Exception as exc:
        ok, line = _print_result("Ledger smoke scenario", False, str(exc))
    results.append(line)
    all_passed = all_passed and ok

    shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    for line in results:
        print(line)
    print(SEPARATOR_LINE)
    print("READY" if all_passed else "NOT READY")
    return 0 if all_passed else 1


if __name__ == "__main__":
    sys.exit(main())
