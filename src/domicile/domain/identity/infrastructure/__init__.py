"""Identity infrastructure: the users directory repository."""

from domicile.domain.identity.infrastructure.user_directory_repository import (
    UserDirectoryRepository,
    users_table,
)

__all__ = ["UserDirectoryRepository", "users_table"]
