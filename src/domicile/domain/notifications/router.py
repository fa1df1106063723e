"""Notification inbox and admin messaging endpoints."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field

from domicile.domain.notifications.announcements import AdminMessenger
from domicile.domain.notifications.read_sync import NotificationService
from domicile.infra.auth import CurrentPrincipal, ElevatedPrincipal

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(request: Request) -> NotificationService:
    return request.app.state.notification_service


def get_admin_messenger(request: Request) -> AdminMessenger:
    return request.app.state.admin_messenger


Service = Annotated[NotificationService, Depends(get_notification_service)]
Messenger = Annotated[AdminMessenger, Depends(get_admin_messenger)]


# -- Request / Response models ------------------------------------------------


class AnnouncementRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)


class DirectMessageRequest(AnnouncementRequest):
    recipient_id: str = Field(min_length=1)
    listing_id: str | None = None


class UnreadCountResponse(BaseModel):
    count: int


class MarkedResponse(BaseModel):
    marked: int


class AdminMarkedResponse(BaseModel):
    marked: int
    per_admin: dict[str, int]


class DeletedResponse(BaseModel):
    deleted: int


class SentResponse(BaseModel):
    recipients: int


# -- Endpoints ----------------------------------------------------------------


@router.get("")
async def list_notifications(
    principal: CurrentPrincipal,
    service: Service,
    unread_only: bool = False,
    offset: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> list[dict[str, Any]]:
    """The caller's notifications, newest first."""
    items = await service.list_for(
        principal, unread_only=unread_only, offset=offset, limit=limit
    )
    return [n.to_payload() for n in items]


@router.get("/unread-count")
async def unread_count(principal: CurrentPrincipal, service: Service) -> UnreadCountResponse:
    return UnreadCountResponse(count=await service.unread_count(principal))


@router.post("/read-all")
async def mark_all_read(principal: CurrentPrincipal, service: Service) -> MarkedResponse:
    return MarkedResponse(marked=await service.mark_all_read(principal))


@router.post("/read-all-admins")
async def mark_all_read_for_admins(
    principal: ElevatedPrincipal, service: Service
) -> AdminMarkedResponse:
    """Mark every admin's unread notifications read."""
    counts = await service.mark_all_read_for_admins(principal)
    return AdminMarkedResponse(marked=sum(counts.values()), per_admin=counts)


@router.post("/announcements", status_code=201)
async def announce(
    body: AnnouncementRequest, principal: ElevatedPrincipal, messenger: Messenger
) -> SentResponse:
    created = await messenger.announce(principal, body.title, body.message)
    return SentResponse(recipients=len(created))


@router.post("/direct", status_code=201)
async def send_direct(
    body: DirectMessageRequest, principal: ElevatedPrincipal, messenger: Messenger
) -> SentResponse:
    created = await messenger.send_direct(
        principal, body.recipient_id, body.title, body.message, body.listing_id
    )
    return SentResponse(recipients=0 if created is None else 1)


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: str, principal: CurrentPrincipal, service: Service
) -> dict[str, Any]:
    """Mark one notification read. Marking a read notification is a no-op."""
    notification = await service.mark_read(principal, notification_id)
    return notification.to_payload()


@router.delete("/{notification_id}", status_code=204)
async def delete_notification(
    notification_id: str, principal: CurrentPrincipal, service: Service
) -> None:
    await service.delete(principal, notification_id)


@router.delete("")
async def delete_all(principal: CurrentPrincipal, service: Service) -> DeletedResponse:
    return DeletedResponse(deleted=await service.delete_all(principal))
