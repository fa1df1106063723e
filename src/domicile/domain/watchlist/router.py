"""Watchlist and wishlist endpoints."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from domicile.domain.watchlist.infrastructure import SubscriptionKind
from domicile.domain.watchlist.service import WatchlistService
from domicile.infra.auth import CurrentPrincipal

router = APIRouter(prefix="/watchlist", tags=["watchlist"])


def get_watchlist_service(request: Request) -> WatchlistService:
    return request.app.state.watchlist_service


Service = Annotated[WatchlistService, Depends(get_watchlist_service)]


class SubscribeRequest(BaseModel):
    listing_id: str = Field(min_length=1)
    kind: SubscriptionKind = SubscriptionKind.WATCHLIST


class SubscriptionResponse(BaseModel):
    listing_id: str
    kind: SubscriptionKind
    price_at_add: float | None


class CountResponse(BaseModel):
    listing_id: str
    count: int


@router.get("")
async def list_subscriptions(
    principal: CurrentPrincipal,
    service: Service,
    kind: SubscriptionKind = SubscriptionKind.WATCHLIST,
) -> list[dict[str, Any]]:
    return await service.list_for(principal, kind)


@router.post("", status_code=201)
async def subscribe(
    body: SubscribeRequest, principal: CurrentPrincipal, service: Service
) -> SubscriptionResponse:
    sub = await service.subscribe(principal, body.listing_id, body.kind)
    return SubscriptionResponse(
        listing_id=sub.listing_id, kind=sub.kind, price_at_add=sub.price_at_add
    )


@router.delete("/{listing_id}", status_code=204)
async def unsubscribe(
    listing_id: str,
    principal: CurrentPrincipal,
    service: Service,
    kind: SubscriptionKind = SubscriptionKind.WATCHLIST,
) -> None:
    await service.unsubscribe(principal, listing_id, kind)


@router.get("/{listing_id}/status")
async def subscription_status(
    listing_id: str, principal: CurrentPrincipal, service: Service
) -> dict[str, bool]:
    return await service.status(principal, listing_id)


@router.get("/{listing_id}/count")
async def watcher_count(listing_id: str, service: Service) -> CountResponse:
    """Number of users watching a listing. Public."""
    return CountResponse(listing_id=listing_id, count=await service.count(listing_id))
