"""Runtime settings resolved from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    log_file: Path | None
    database_path: Path
    admin_identity: str
    caller_identity_header: str
    allocation_preserve_booked: bool
    booking_requires_channel_operator: bool
    max_identifier_length: int
    max_name_length: int
    max_identity_length: int


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process; tests derive variants with replace()."""
    return Settings(
        app_name=os.getenv("APP_NAME", "Room Inventory Ledger"),
        app_version=os.getenv("APP_VERSION", "1.0.0"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_file=Path(os.environ["LEDGER_LOG_FILE"]) if os.getenv("LEDGER_LOG_FILE") else None,
        database_path=Path(
            os.getenv("LEDGER_DATABASE_PATH", str(PROJECT_ROOT / "data" / "ledger.db"))
        ),
        admin_identity=os.getenv("ADMIN_IDENTITY", "ledger-admin"),
        caller_identity_header=os.getenv("CALLER_IDENTITY_HEADER", "X-Caller-Identity"),
        allocation_preserve_booked=_env_bool("ALLOCATION_PRESERVE_BOOKED", True),
        booking_requires_channel_operator=_env_bool(
            "BOOKING_REQUIRES_CHANNEL_OPERATOR", False
        ),
        max_identifier_length=32,
        max_name_length=100,
        max_identity_length=128,
    )
