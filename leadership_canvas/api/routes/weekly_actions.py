"""
Weekly action endpoints (the checkbox list on the home screen).
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Query, Response, status
from pydantic import BaseModel, Field

from ...core.canvas.models import ActionStats
from ..dependencies import AggregatorDep, CanvasActionsDep, CurrentIdentity
from ..results import render_result
from ..schemas import ActionOut, ActionStatsOut

logger = logging.getLogger(__name__)

router = APIRouter()


class ActionTextRequest(BaseModel):
    action_text: Any = Field(None, description="Action (1-500 characters)")


class ActionBatchRequest(BaseModel):
    actions: Any = Field(None, description="1-10 actions to add at once")


class CompletionRequest(BaseModel):
    is_completed: Any = Field(None, description="New completion state")


class WeeklyActionsResponse(BaseModel):
    actions: list[ActionOut]
    stats: ActionStatsOut


@router.get(
    "",
    response_model=WeeklyActionsResponse,
    summary="List my weekly actions",
    description="Newest first. Filter with completed=true|false.",
)
async def list_weekly_actions(
    identity: CurrentIdentity,
    aggregator: AggregatorDep,
    completed: Optional[bool] = Query(None),
) -> WeeklyActionsResponse:
    actions = await aggregator.weekly_actions(identity.user_id, completed)
    return WeeklyActionsResponse(
        actions=[ActionOut.from_domain(action) for action in actions],
        stats=ActionStatsOut.from_domain(ActionStats.from_actions(actions)),
    )


@router.post("", summary="Add a weekly action")
def add_weekly_action(
    request: ActionTextRequest,
    response: Response,
    actions: CanvasActionsDep,
) -> dict[str, Any]:
    result = actions.add_weekly_action(request.action_text)
    return render_result(result, response, success_status=status.HTTP_201_CREATED)


@router.post("/batch", summary="Add several weekly actions")
def save_weekly_actions(
    request: ActionBatchRequest,
    response: Response,
    actions: CanvasActionsDep,
) -> dict[str, Any]:
    result = actions.save_weekly_actions(request.actions)
    return render_result(result, response, success_status=status.HTTP_201_CREATED)


@router.patch("/{action_id}", summary="Edit a weekly action")
def update_weekly_action(
    action_id: str,
    request: ActionTextRequest,
    response: Response,
    actions: CanvasActionsDep,
) -> dict[str, Any]:
    result = actions.update_weekly_action_text(action_id, request.action_text)
    return render_result(result, response)


@router.put("/{action_id}/completion", summary="Mark a weekly action done or not done")
def toggle_action_complete(
    action_id: str,
    request: CompletionRequest,
    response: Response,
    actions: CanvasActionsDep,
) -> dict[str, Any]:
    result = actions.toggle_action_complete(action_id, request.is_completed)
    return render_result(result, response)


@router.delete("/{action_id}", summary="Delete a weekly action")
def delete_weekly_action(
    action_id: str,
    response: Response,
    actions: CanvasActionsDep,
) -> dict[str, Any]:
    return render_result(actions.delete_weekly_action(action_id), response)
