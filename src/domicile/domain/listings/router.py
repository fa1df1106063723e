"""Catalog callback: listing updated.

The catalog posts the listing before and after each update; watchers are
alerted for every derived change.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from domicile.domain.watchlist.alerts import ListingAlerts
from domicile.foundation.domain.exceptions import ValidationError
from domicile.infra.auth import ElevatedPrincipal

router = APIRouter(prefix="/listings", tags=["listings"])


def get_listing_alerts(request: Request) -> ListingAlerts:
    return request.app.state.listing_alerts


Alerts = Annotated[ListingAlerts, Depends(get_listing_alerts)]


class ListingUpdatedRequest(BaseModel):
    before: dict[str, Any]
    after: dict[str, Any]


@router.post("/{listing_id}/updated")
async def listing_updated(
    listing_id: str,
    body: ListingUpdatedRequest,
    principal: ElevatedPrincipal,
    alerts: Alerts,
) -> dict[str, Any]:
    for snapshot in (body.before, body.after):
        if snapshot.get("id", listing_id) != listing_id:
            raise ValidationError("id", "snapshot does not belong to this listing")
    return await alerts.on_listing_updated(
        {**body.before, "id": listing_id}, {**body.after, "id": listing_id}
    )
