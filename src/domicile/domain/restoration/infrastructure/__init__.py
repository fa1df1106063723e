"""Token Vault persistence."""

from domicile.domain.restoration.infrastructure.vault_repository import (
    VaultRepository,
    vault_table,
)

__all__ = ["VaultRepository", "vault_table"]
