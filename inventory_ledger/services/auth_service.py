"""Administrative identity management."""

from __future__ import annotations

from threading import RLock
from typing import Optional

from inventory_ledger.domain.constraints import limits_from_settings, validate_identity
from inventory_ledger.domain.errors import UnauthorizedError
from inventory_ledger.repository.data_repository import ADMIN_IDENTITY_KEY, DataRepository
from inventory_ledger.utils.config import Settings, get_settings
from inventory_ledger.utils.logger import get_logger


logger = get_logger(__name__)


class AuthService:
    """Holds the single administrative identity and gates admin-only operations.

    The identity configured at deployment seeds the ledger on first start;
    afterwards the persisted value wins so transfers survive restarts. The
    stored value is re-read on every check, so any number of services sharing
    one database agree on the current administrator.
    """

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._limits = limits_from_settings(self._settings)
        self._lock = RLock()

    def get_admin(self) -> str:
        admin = self._repository.get_state_value(ADMIN_IDENTITY_KEY)
        if admin is not None:
            return admin
        with self._lock:
            seed = validate_identity(
                "admin_identity", self._settings.admin_identity, self._limits
            )
            return self._repository.insert_state_value_if_absent(ADMIN_IDENTITY_KEY, seed)

    def is_admin(self, identity: str) -> bool:
        return identity == self.get_admin()

    def require_admin(self, identity: str) -> None:
        if not self.is_admin(identity):
            raise UnauthorizedError("Caller is not the ledger administrator")

    def transfer_admin(self, new_identity: str, caller: str) -> str:
        validate_identity("caller", caller, self._limits)
        validate_identity("new_identity", new_identity, self._limits)
        with self._lock:
            self.require_admin(caller)
            if not self._repository.replace_state_value(
                ADMIN_IDENTITY_KEY, caller, new_identity
            ):
                raise UnauthorizedError("Caller is no longer the ledger administrator")
        logger.info("Administrator transferred to %s", new_identity)
        return new_identity
