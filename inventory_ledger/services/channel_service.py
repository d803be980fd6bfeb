"""Distribution channel registry, administered by the ledger admin."""

from __future__ import annotations

from typing import Optional

from inventory_ledger.domain.constraints import (
    limits_from_settings,
    validate_identifier,
    validate_identity,
    validate_name,
)
from inventory_ledger.domain.errors import (
    ChannelNotFoundError,
    DuplicateKeyError,
    InvalidArgumentError,
)
from inventory_ledger.domain.models import Channel
from inventory_ledger.repository.data_repository import DataRepository
from inventory_ledger.services.auth_service import AuthService
from inventory_ledger.utils.config import Settings, get_settings
from inventory_ledger.utils.logger import get_logger


logger = get_logger(__name__)


class ChannelRegistryService:
    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        auth_service: Optional[AuthService] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._auth_service = auth_service or AuthService(
            repository=self._repository,
            settings=self._settings,
        )
        self._limits = limits_from_settings(self._settings)

    def create_channel(
        self,
        channel_id: str,
        name: str,
        caller: str,
        operator: str | None = None,
    ) -> Channel:
        """Register an active channel. Only the administrator may do this."""
        channel = Channel(
            channel_id=validate_identifier("channel_id", channel_id, self._limits),
            name=validate_name("name", name, self._limits),
            active=True,
            operator=(
                None
                if operator is None
                else validate_identity("operator", operator, self._limits)
            ),
        )
        validate_identity("caller", caller, self._limits)
        self._auth_service.require_admin(caller)
        if not self._repository.insert_channel(channel):
            raise DuplicateKeyError(f"Channel {channel_id} already exists")
        logger.info("Channel %s created", channel_id)
        return channel

    def get_channel(self, channel_id: str) -> Channel:
        validate_identifier("channel_id", channel_id, self._limits)
        channel = self._repository.get_channel(channel_id)
        if channel is None:
            raise ChannelNotFoundError(f"Channel {channel_id} not found")
        return channel

    def set_channel_active(self, channel_id: str, active: bool, caller: str) -> Channel:
        """Flip only the status flag; name and operator are never rewritten here."""
        validate_identifier("channel_id", channel_id, self._limits)
        validate_identity("caller", caller, self._limits)
        if not isinstance(active, bool):
            raise InvalidArgumentError("active must be a boolean")
        self._auth_service.require_admin(caller)
        if not self._repository.update_channel_active(channel_id, active):
            raise ChannelNotFoundError(f"Channel {channel_id} not found")
        logger.info("Channel %s set %s", channel_id, "active" if active else "inactive")
        return self.get_channel(channel_id)

    def list_channels(self) -> list[Channel]:
        return self._repository.list_channels()
