"""
Nudge endpoints.

- POST /api/send-nudge: a signed-in coach nudges a client
- GET /api/weekly-nudges: the scheduler fetches opted-in clients
- POST /api/weekly-nudges/log: the scheduler records a nudge it sent

These keep the JSON contract the delivery automation was built against:
success bodies carry success/message/data, errors carry error/message.
"""

import asyncio
import json
import logging
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Request, status
from pydantic import BaseModel, ConfigDict, Field

from ...core.canvas.coach_actions import NoCoachAvailable
from ..dependencies import AutomationActionsDep, AutomationGrant, CoachActionsDep
from ..results import ApiError

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class SendNudgeRequest(BaseModel):
    """Accepts camelCase (clientId) as well as snake_case keys."""
    model_config = ConfigDict(populate_by_name=True)

    client_id: Any = Field(None, alias="clientId")
    message_text: Any = Field(None, alias="messageText")


class NudgeReceiptData(BaseModel):
    nudge_id: UUID
    sent_at: datetime
    webhook_sent: bool
    webhook_error: Optional[str] = None


class SendNudgeResponse(BaseModel):
    success: bool = True
    message: str
    data: NudgeReceiptData


class WeeklyNudgeClient(BaseModel):
    client_id: UUID
    name: str
    phone: str
    current_theme: Optional[str] = None
    open_actions_count: int
    open_actions: list[str]


class WeeklyNudgesResponse(BaseModel):
    clients: list[WeeklyNudgeClient]
    generated_at: datetime
    total_count: int


class LogNudgeRequest(BaseModel):
    client_id: Any = None
    message_text: Any = None
    coach_id: Any = Field(None, description="Sender to attribute; any coach when omitted")


class LoggedNudgeData(BaseModel):
    nudge_id: UUID
    sent_at: datetime


class LogNudgeResponse(BaseModel):
    success: bool = True
    message: str
    data: LoggedNudgeData


# ---------------------------------------------------------------------------
# Body parsing
# ---------------------------------------------------------------------------

async def read_json_object(request: Request) -> Optional[dict[str, Any]]:
    """
    The request body as a JSON object.

    Bodies are read inside the handler, after authentication has run, so a
    malformed payload never answers before the caller is identified.
    Returns {} for an empty body and None when the body is not a JSON
    object.
    """
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


def _malformed_body() -> ApiError:
    return ApiError(
        status.HTTP_400_BAD_REQUEST,
        "Validation Error",
        "Request body must be a JSON object",
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/send-nudge",
    response_model=SendNudgeResponse,
    status_code=status.HTTP_200_OK,
    summary="Send a nudge to a client",
    description=(
        "Body: {clientId, messageText} (snake_case also accepted). Records the "
        "nudge, then forwards it to the delivery webhook if one is configured. "
        "Webhook failure is reported in data, not as an error."
    ),
)
async def send_nudge(
    request: Request,
    actions: CoachActionsDep,
) -> SendNudgeResponse:
    payload = await read_json_object(request)
    # A malformed body carries no fields; the action still checks the
    # session and role before it reports the missing input.
    body = SendNudgeRequest.model_validate(payload or {})

    result = await actions.send_nudge(body.client_id, body.message_text)
    if not result.success:
        raise ApiError.from_result(result, unexpected_label="Database Error")

    receipt = result.data
    return SendNudgeResponse(
        message="Nudge recorded successfully",
        data=NudgeReceiptData(
            nudge_id=receipt.nudge_id,
            sent_at=receipt.sent_at,
            webhook_sent=receipt.webhook_sent,
            webhook_error=receipt.webhook_error,
        ),
    )


@router.get(
    "/weekly-nudges",
    response_model=WeeklyNudgesResponse,
    summary="Clients due a weekly nudge",
    description="Requires Authorization: Bearer <automation secret>.",
)
def list_weekly_nudges(
    grant: AutomationGrant,
    actions: AutomationActionsDep,
) -> WeeklyNudgesResponse:
    result = actions.list_weekly_nudges(grant)
    if not result.success:
        raise ApiError.from_result(result, unexpected_label="Database Error")

    listing = result.data
    return WeeklyNudgesResponse(
        clients=[
            WeeklyNudgeClient(
                client_id=candidate.client_id,
                name=candidate.name,
                phone=candidate.phone,
                current_theme=candidate.current_theme,
                open_actions_count=candidate.open_actions_count,
                open_actions=candidate.open_actions,
            )
            for candidate in listing.clients
        ],
        generated_at=listing.generated_at,
        total_count=listing.total_count,
    )


@router.post(
    "/weekly-nudges/log",
    response_model=LogNudgeResponse,
    summary="Record an automated weekly nudge",
    description=(
        "Requires Authorization: Bearer <automation secret>. "
        "Body: {client_id, message_text, coach_id?}."
    ),
)
async def log_weekly_nudge(
    request: Request,
    grant: AutomationGrant,
    actions: AutomationActionsDep,
) -> LogNudgeResponse:
    payload = await read_json_object(request)
    if payload is None:
        raise _malformed_body()
    body = LogNudgeRequest.model_validate(payload)

    result = await asyncio.to_thread(
        actions.log_automated_nudge,
        grant,
        body.client_id,
        body.message_text,
        coach_id=body.coach_id,
    )
    if not result.success:
        label = "Configuration Error" if result.error == NoCoachAvailable().message else "Database Error"
        raise ApiError.from_result(result, unexpected_label=label)

    return LogNudgeResponse(
        message="Nudge logged successfully",
        data=LoggedNudgeData(**result.data),
    )
