"""Domicile Domain Identity -- account classification and admin membership."""

from domicile.domain.identity.infrastructure import UserDirectoryRepository, users_table

__all__ = ["UserDirectoryRepository", "users_table"]
