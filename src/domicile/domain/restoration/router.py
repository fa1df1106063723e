"""Listing deletion, token restoration and deleted-listing console endpoints."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 -- pydantic resolves the annotation at runtime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from domicile.domain.restoration.deletion import DeletionService
from domicile.domain.restoration.restoration import DeletedSort, RestorationService
from domicile.domain.restoration.vault import DeletionKind
from domicile.foundation.application.context import get_current_user_id
from domicile.infra.auth import CurrentPrincipal, ElevatedPrincipal

router = APIRouter(tags=["restoration"])


def get_deletion_service(request: Request) -> DeletionService:
    return request.app.state.deletion_service


def get_restoration_service(request: Request) -> RestorationService:
    return request.app.state.restoration_service


Deletions = Annotated[DeletionService, Depends(get_deletion_service)]
Restorations = Annotated[RestorationService, Depends(get_restoration_service)]


# -- Request / Response models ------------------------------------------------


class DeleteListingRequest(BaseModel):
    reason: str | None = None


class DeleteListingResponse(BaseModel):
    listing_id: str
    deletion_kind: DeletionKind
    restorable: bool
    token_expiry: datetime | None
    owner_notified_by_email: bool
    message: str


class RestoreRequest(BaseModel):
    confirm: bool = False


class PurgeResponse(BaseModel):
    purged: int


# -- Endpoints ----------------------------------------------------------------


@router.delete("/listings/{listing_id}")
async def delete_listing(
    listing_id: str,
    principal: CurrentPrincipal,
    service: Deletions,
    body: DeleteListingRequest | None = None,
) -> DeleteListingResponse:
    """Delete a listing. Admins deleting another user's listing must give a reason."""
    result = await service.delete(principal, listing_id, body.reason if body else None)
    return DeleteListingResponse(
        listing_id=result.listing_id,
        deletion_kind=result.deletion_kind,
        restorable=result.restorable,
        token_expiry=result.token_expiry,
        owner_notified_by_email=result.owner_notified_by_email,
        message=result.message,
    )


@router.get("/restorations/{token}")
async def verify_token(token: str, service: Restorations) -> dict[str, Any]:
    """Preview a deleted listing. The token is the credential; no login needed."""
    return await service.verify(token)


@router.post("/restorations/{token}")
async def restore_listing(
    token: str, body: RestoreRequest, service: Restorations
) -> dict[str, Any]:
    return await service.restore(token, confirm=body.confirm, actor_id=get_current_user_id())


@router.get("/deleted-listings")
async def list_deleted(
    principal: CurrentPrincipal,
    service: Restorations,
    kind: DeletionKind | None = None,
    search: str | None = None,
    sort: DeletedSort = DeletedSort.DELETED_AT,
    order: Annotated[str, Query(pattern="^(asc|desc)$")] = "desc",
    offset: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> dict[str, Any]:
    return await service.list_deleted(
        principal,
        kind=kind,
        search=search,
        sort=sort,
        descending=order == "desc",
        offset=offset,
        limit=limit,
    )


@router.post("/deleted-listings/purge-expired")
async def purge_expired(principal: ElevatedPrincipal, service: Restorations) -> PurgeResponse:
    return PurgeResponse(purged=await service.purge_expired())


@router.post("/deleted-listings/{record_id}/restore")
async def restore_record(
    record_id: str, principal: CurrentPrincipal, service: Restorations
) -> dict[str, Any]:
    return await service.restore_by_record(principal, record_id)
