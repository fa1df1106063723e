"""Port interface for the identity directory.

The directory classifies accounts (role, approval, suspension) and resolves
the membership of the admin role used by admin fan-out.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from domicile.foundation.domain.principal import Principal


@runtime_checkable
class IdentityDirectoryPort(Protocol):
    """Port for account lookup and role membership queries."""

    def get_principal(self, user_id: str) -> Principal | None:
        """Return the account for ``user_id``, or None if unknown."""
        ...

    def get_many(self, user_ids: list[str]) -> dict[str, Principal]:
        """Return the known accounts among ``user_ids`` keyed by ID."""
        ...

    def list_elevated(self) -> list[Principal]:
        """Return every active root admin and every approved, active admin."""
        ...
