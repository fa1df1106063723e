"""Domicile Infra Auth -- caller resolution dependencies and token generation."""

from domicile.infra.auth.dependencies import (
    CurrentPrincipal,
    ElevatedPrincipal,
    get_current_principal,
    get_identity_directory,
    require_elevated,
)
from domicile.infra.auth.restoration_tokens import SecretsTokenGenerator

__all__ = [
    "CurrentPrincipal",
    "ElevatedPrincipal",
    "SecretsTokenGenerator",
    "get_current_principal",
    "get_identity_directory",
    "require_elevated",
]
