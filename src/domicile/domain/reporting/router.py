"""Report submission and the admin report console."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 -- FastAPI resolves the annotation at runtime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from domicile.domain.notifications.report_views import ReportSort, ReportViewService, SortOrder
from domicile.domain.reporting.service import ReportKind, ReportReceipt, ReportService
from domicile.infra.auth import CurrentPrincipal, ElevatedPrincipal

router = APIRouter(prefix="/reports", tags=["reports"])


def get_report_service(request: Request) -> ReportService:
    return request.app.state.report_service


def get_report_views(request: Request) -> ReportViewService:
    return request.app.state.report_views


Reports = Annotated[ReportService, Depends(get_report_service)]
Views = Annotated[ReportViewService, Depends(get_report_views)]


# -- Request / Response models ------------------------------------------------


class MessageReportRequest(BaseModel):
    conversation_id: str
    message_id: str
    reason: str
    details: str | None = Field(default=None, max_length=2000)


class ChatReportRequest(BaseModel):
    conversation_id: str
    reason: str
    details: str | None = Field(default=None, max_length=2000)


class PropertyReportRequest(BaseModel):
    listing_id: str
    category: str
    details: str | None = Field(default=None, max_length=2000)


class ReviewReportRequest(BaseModel):
    review_id: str
    category: str
    reason: str | None = Field(default=None, max_length=2000)


class ReportResponse(BaseModel):
    report_kind: ReportKind
    target_id: str
    admins_notified: int
    message: str = "Report submitted successfully"


def _response(receipt: ReportReceipt) -> ReportResponse:
    return ReportResponse(
        report_kind=receipt.report_kind,
        target_id=receipt.target_id,
        admins_notified=receipt.admins_notified,
    )


# -- Endpoints ----------------------------------------------------------------


@router.post("/messages", status_code=201)
async def report_message(
    body: MessageReportRequest, principal: CurrentPrincipal, service: Reports
) -> ReportResponse:
    receipt = await service.report_message(
        principal, body.conversation_id, body.message_id, body.reason, body.details
    )
    return _response(receipt)


@router.post("/chats", status_code=201)
async def report_chat(
    body: ChatReportRequest, principal: CurrentPrincipal, service: Reports
) -> ReportResponse:
    receipt = await service.report_chat(
        principal, body.conversation_id, body.reason, body.details
    )
    return _response(receipt)


@router.post("/properties", status_code=201)
async def report_property(
    body: PropertyReportRequest, principal: CurrentPrincipal, service: Reports
) -> ReportResponse:
    receipt = await service.report_property(
        principal, body.listing_id, body.category, body.details
    )
    return _response(receipt)


@router.post("/reviews", status_code=201)
async def report_review(
    body: ReviewReportRequest, principal: CurrentPrincipal, service: Reports
) -> ReportResponse:
    receipt = await service.report_review(principal, body.review_id, body.category, body.reason)
    return _response(receipt)


@router.get("")
async def list_reports(
    principal: ElevatedPrincipal,
    views: Views,
    created_from: datetime | None = None,
    created_to: datetime | None = None,
    reporter: str | None = None,
    search: str | None = None,
    sort: ReportSort = ReportSort.DATE,
    order: SortOrder = SortOrder.DESC,
) -> list[dict[str, Any]]:
    """Reports, one item per logical report regardless of admin copies."""
    items = await views.list_reports(
        created_from=created_from,
        created_to=created_to,
        reporter=reporter,
        search=search,
        sort=sort,
        order=order,
    )
    return [item.to_payload() for item in items]
