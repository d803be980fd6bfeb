"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires the ledger services, registers routers, and runs startup
initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from inventory_ledger.controllers.admin_controller import router as admin_router
from inventory_ledger.controllers.inventory_controller import router as inventory_router
from inventory_ledger.controllers.performance_controller import router as performance_router
from inventory_ledger.repository.data_repository import DataRepository
from inventory_ledger.services.allocation_service import AllocationLedgerService
from inventory_ledger.services.auth_service import AuthService
from inventory_ledger.services.capacity_service import CapacityCatalogService
from inventory_ledger.services.channel_service import ChannelRegistryService
from inventory_ledger.services.performance_service import PerformanceIndexService
from inventory_ledger.utils.config import Settings, get_settings
from inventory_ledger.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Instantiates all services with explicit dependency injection via app.state.
    No global singletons: the administrative identity, the repository and the
    allocation locks are all owned by objects created here.
    """
    settings = settings or get_settings()

    # --- Repository (single SQLite connection factory) ---
    repository = DataRepository(settings)

    # --- Services (ledger rules, no direct DB access) ---
    auth_service = AuthService(repository=repository, settings=settings)
    catalog_service = CapacityCatalogService(repository=repository, settings=settings)
    channel_service = ChannelRegistryService(
        repository=repository,
        auth_service=auth_service,
        settings=settings,
    )
    allocation_service = AllocationLedgerService(
        repository=repository,
        catalog_service=catalog_service,
        channel_service=channel_service,
        settings=settings,
    )
    performance_service = PerformanceIndexService(
        repository=repository,
        auth_service=auth_service,
        settings=settings,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(admin_router)
    app.include_router(inventory_router)
    app.include_router(performance_router)

    # --- Inject services into app.state for dependency resolution ---
    app.state.settings = settings
    app.state.repository = repository
    app.state.auth_service = auth_service
    app.state.catalog_service = catalog_service
    app.state.channel_service = channel_service
    app.state.allocation_service = allocation_service
    app.state.performance_service = performance_service

    return app


def _startup(app: FastAPI) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    Order matters:
      1. Schema must exist before the admin identity is persisted.
      2. The configured admin only seeds an empty ledger; a transferred
         admin already stored wins.
    """
    repository: DataRepository = app.state.repository
    auth_service: AuthService = app.state.auth_service

    logger.info("Startup: initializing database schema")
    repository.initialize_database()

    logger.info("Startup: resolving ledger administrator")
    auth_service.get_admin()

    logger.info("Startup complete, ledger ready")


# Module-level app object for uvicorn
app = create_app()
