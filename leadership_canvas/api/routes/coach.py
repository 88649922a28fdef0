"""
Coach endpoints.

Read views require the coach role up front (require_coach). The Padlet
update goes through CoachActions, which performs its own role checks.
"""

import logging
from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Query, Response, status
from pydantic import BaseModel, Field

from ...core.canvas.errors import ValidationFailed
from ...core.canvas.validation import ClientRef, validate
from ..dependencies import AggregatorDep, CoachActionsDep, CoachIdentity
from ..results import ApiError, render_result
from ..schemas import CanvasOut, ClientSummaryOut, DashboardStatsOut, NudgeOut

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class PadletUrlRequest(BaseModel):
    padlet_url: Any = Field(None, description="https:// Padlet board link; empty removes it")


class ClientListResponse(BaseModel):
    clients: list[ClientSummaryOut]
    total: int


class ClientDetailResponse(BaseModel):
    summary: ClientSummaryOut
    canvas: CanvasOut
    recent_nudges: list[NudgeOut]


class NudgeHistoryResponse(BaseModel):
    nudges: list[NudgeOut]
    total: int


def _client_uuid(client_id: str) -> UUID:
    try:
        return validate(ClientRef, client_id=client_id).client_id
    except ValidationFailed as e:
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Validation Error", e.message)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "/dashboard",
    response_model=DashboardStatsOut,
    summary="Dashboard counters",
)
async def get_dashboard(
    coach: CoachIdentity,
    aggregator: AggregatorDep,
) -> DashboardStatsOut:
    return DashboardStatsOut.from_domain(await aggregator.dashboard_stats())


@router.get(
    "/clients",
    response_model=ClientListResponse,
    summary="All clients with summaries",
    description="Ordered by name.",
)
async def list_clients(
    coach: CoachIdentity,
    aggregator: AggregatorDep,
) -> ClientListResponse:
    summaries = await aggregator.all_client_summaries()
    return ClientListResponse(
        clients=[ClientSummaryOut.from_domain(s) for s in summaries],
        total=len(summaries),
    )


@router.get(
    "/clients/{client_id}",
    response_model=ClientDetailResponse,
    summary="One client's summary, canvas and recent nudges",
)
async def get_client(
    client_id: str,
    coach: CoachIdentity,
    aggregator: AggregatorDep,
    nudge_limit: int = Query(10, ge=1, le=100),
) -> ClientDetailResponse:
    client_uuid = _client_uuid(client_id)

    detail = await aggregator.client_detail(client_uuid, nudge_limit)
    if detail is None or detail.summary.user.is_coach:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Not Found", "Client not found")

    return ClientDetailResponse(
        summary=ClientSummaryOut.from_domain(detail.summary),
        canvas=CanvasOut.from_domain(detail.canvas),
        recent_nudges=[NudgeOut.from_domain(n) for n in detail.recent_nudges],
    )


@router.get(
    "/clients/{client_id}/nudges",
    response_model=NudgeHistoryResponse,
    summary="Nudges sent to a client",
    description="Newest first.",
)
async def get_client_nudges(
    client_id: str,
    coach: CoachIdentity,
    aggregator: AggregatorDep,
    limit: Optional[int] = Query(None, ge=1, le=500),
) -> NudgeHistoryResponse:
    nudges = await aggregator.nudges_for_client(_client_uuid(client_id), limit)
    return NudgeHistoryResponse(
        nudges=[NudgeOut.from_domain(n) for n in nudges],
        total=len(nudges),
    )


@router.get(
    "/nudges",
    response_model=NudgeHistoryResponse,
    summary="Nudges I have sent",
    description="Newest first.",
)
async def get_my_nudges(
    coach: CoachIdentity,
    aggregator: AggregatorDep,
    limit: Optional[int] = Query(None, ge=1, le=500),
) -> NudgeHistoryResponse:
    nudges = await aggregator.nudges_by_coach(coach.user_id, limit)
    return NudgeHistoryResponse(
        nudges=[NudgeOut.from_domain(n) for n in nudges],
        total=len(nudges),
    )


@router.put(
    "/clients/{client_id}/padlet",
    summary="Set or remove a client's Padlet link",
)
def update_client_padlet(
    client_id: str,
    request: PadletUrlRequest,
    response: Response,
    actions: CoachActionsDep,
) -> dict[str, Any]:
    result = actions.update_client_padlet_url(client_id, request.padlet_url)
    return render_result(result, response)
