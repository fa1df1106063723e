"""Domicile Domain Restoration -- soft deletion and the Token Vault."""

from domicile.domain.restoration.deletion import DeletionResult, DeletionService
from domicile.domain.restoration.infrastructure import VaultRepository, vault_table
from domicile.domain.restoration.restoration import DeletedSort, RestorationService
from domicile.domain.restoration.settings import RestorationSettings, get_restoration_settings
from domicile.domain.restoration.vault import DeletionKind, VaultEntry, listing_summary

__all__ = [
    "DeletedSort",
    "DeletionKind",
    "DeletionResult",
    "DeletionService",
    "RestorationService",
    "RestorationSettings",
    "VaultEntry",
    "VaultRepository",
    "get_restoration_settings",
    "listing_summary",
    "vault_table",
]
