from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from .model import Device


class DeviceRepository(Protocol):
    """Device persistence. Every lookup is scoped to one user."""

    def get_by_id(self, device_pk: int) -> Optional[Device]:
        raise NotImplementedError

    def find_by_device_id(self, user_id: int, device_id: str, *, active_only: bool = False) -> Optional[Device]:
        raise NotImplementedError

    def find_by_compatible_id(self, user_id: int, compatible_id: str, *, active_only: bool = False) -> Optional[Device]:
        raise NotImplementedError

    def find_by_session(self, session_id: str) -> Optional[Device]:
        raise NotImplementedError

    def list_for_user(self, user_id: int) -> Sequence[Device]:
        """Newest activity first."""
        raise NotImplementedError

    def update(self, device_pk: int, changes: dict[str, Any]) -> Optional[Device]:
        raise NotImplementedError

    def register(self, user_id: int, values: dict[str, Any], *, replace_existing: bool) -> Device:
        """Upsert on (user_id, device_id) in one transaction.

        With ``replace_existing`` every other device of the user is deleted first.
        """
        raise NotImplementedError

    def deactivate_session(self, session_id: str) -> int:
        raise NotImplementedError

    def delete_for_user(self, user_id: int) -> int:
        raise NotImplementedError

    def delete_inactive_before(self, cutoff: datetime) -> int:
        raise NotImplementedError

    def counts(self, *, online_since: datetime) -> dict[str, int]:
        """total / active / online device counts."""
        raise NotImplementedError
