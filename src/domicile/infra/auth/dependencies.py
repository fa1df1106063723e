"""FastAPI dependency functions for caller identification and authorization.

The gateway sets ``X-User-ID``; roles, approval and suspension are always
resolved through the identity directory held on ``app.state``.

Usage:
    from domicile.infra.auth.dependencies import CurrentPrincipal, ElevatedPrincipal

    @router.delete("/listings/{listing_id}")
    async def delete_listing(listing_id: str, principal: CurrentPrincipal):
        ...
"""

from __future__ import annotations

import asyncio
from typing import Annotated

from fastapi import Depends, Request

from domicile.foundation.application.context import get_current_user_id
from domicile.foundation.domain.exceptions import AuthenticationError, AuthorizationError
from domicile.foundation.domain.ports import IdentityDirectoryPort
from domicile.foundation.domain.principal import AccountStatus, Principal


def get_identity_directory(request: Request) -> IdentityDirectoryPort:
    """Return the identity directory registered on the application."""
    return request.app.state.identity_directory


async def get_current_principal(
    directory: Annotated[IdentityDirectoryPort, Depends(get_identity_directory)],
) -> Principal:
    """FastAPI dependency resolving the caller into a Principal.

    Raises:
        AuthenticationError: No identity on the request, or unknown account.
        AuthorizationError: The account is suspended.
    """
    user_id = get_current_user_id()
    if not user_id:
        raise AuthenticationError(
            "Missing caller identity",
            auth_error="invalid_request",
            error_code="MISSING_IDENTITY",
        )

    principal = await asyncio.to_thread(directory.get_principal, user_id)
    if principal is None:
        raise AuthenticationError(
            "Unknown account",
            error_code="UNKNOWN_ACCOUNT",
            context={"user_id": user_id},
        )
    if principal.status == AccountStatus.SUSPENDED:
        raise AuthorizationError("Account is suspended", context={"user_id": user_id})

    return principal


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


def require_elevated(principal: CurrentPrincipal) -> Principal:
    """Dependency that admits only approved admins and root admins.

    Raises:
        AuthorizationError: If the principal is not elevated.
    """
    if not principal.is_elevated:
        raise AuthorizationError(
            "Admin privileges required",
            context={"principal_id": principal.user_id, "role": principal.role.value},
        )
    return principal


ElevatedPrincipal = Annotated[Principal, Depends(require_elevated)]
