from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Services depend on this protocol, never on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_login(self, login: str) -> Optional[User]:
        """Look up by user_name or email."""
        raise NotImplementedError

    def exists_with(self, column: str, value: Any, *, exclude_id: Optional[int] = None) -> bool:
        raise NotImplementedError

    def search(
        self,
        *,
        search: Optional[str] = None,
        role: Optional[Role] = None,
        department_id: Optional[int] = None,
        offset: int = 0,
        limit: int = 30,
    ) -> tuple[Sequence[User], int]:
        """Return (rows for the page, total matching)."""
        raise NotImplementedError

    def list_active_employees(self) -> Sequence[User]:
        raise NotImplementedError

    def create(self, values: dict[str, Any]) -> int:
        raise NotImplementedError

    def update(self, user_id: int, changes: dict[str, Any]) -> Optional[User]:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError

    def count_by(self, column: str, value: Any) -> int:
        raise NotImplementedError
