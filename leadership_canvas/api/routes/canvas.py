"""
Canvas endpoints: purpose, themes and hypotheses.

Path identifiers arrive as plain strings so a malformed id is reported as
"Invalid theme ID" by the core rather than as a framework error.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Query, Response, status
from pydantic import BaseModel, Field

from ..dependencies import AggregatorDep, CanvasActionsDep, CurrentIdentity
from ..results import ApiError, render_result
from ..schemas import ActionOut, CanvasOut, ProgressOut, SettingsOut, ThemeOut, UserOut

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class PurposeRequest(BaseModel):
    purpose: Any = Field(None, description="Leadership purpose (up to 500 characters); empty clears it")


class CreateThemeRequest(BaseModel):
    theme_text: Any = Field(None, description="Theme name (1-100 characters)")
    success_description: Any = Field(None, description="What success looks like (up to 2000 characters)")


class ThemeNameRequest(BaseModel):
    theme_text: Any = Field(None, description="New theme name")


class DescriptionRequest(BaseModel):
    description: Any = Field(None, description="New success description; empty clears it")


class HypothesisRequest(BaseModel):
    hypothesis_text: Any = Field(None, description="Hypothesis (1-500 characters)")


class HomeResponse(BaseModel):
    """Everything the client home screen renders."""
    user: UserOut
    current_theme: Optional[ThemeOut] = None
    themes: list[ThemeOut] = []
    progress_entries: list[ProgressOut]
    weekly_actions: list[ActionOut]
    settings: Optional[SettingsOut] = None


# ---------------------------------------------------------------------------
# Read Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "/home",
    response_model=HomeResponse,
    summary="Home screen summary",
    description="Profile, themes newest first (the first is current), progress log, weekly actions and settings.",
)
async def get_home(
    identity: CurrentIdentity,
    aggregator: AggregatorDep,
    progress_limit: Optional[int] = Query(None, ge=1, le=100),
) -> HomeResponse:
    summary = await aggregator.home_summary(identity.user_id, progress_limit)
    if summary is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Not Found", "Profile not found")

    return HomeResponse(
        user=UserOut.from_domain(summary.user),
        current_theme=ThemeOut.from_domain(summary.current_theme),
        themes=[ThemeOut.from_domain(t) for t in summary.themes],
        progress_entries=[ProgressOut.from_domain(p) for p in summary.progress_entries],
        weekly_actions=[ActionOut.from_domain(a) for a in summary.weekly_actions],
        settings=SettingsOut.from_domain(summary.settings),
    )


@router.get(
    "",
    response_model=CanvasOut,
    summary="Canvas summary",
    description="Themes in display order, each with its hypotheses.",
)
async def get_canvas(
    identity: CurrentIdentity,
    aggregator: AggregatorDep,
) -> CanvasOut:
    summary = await aggregator.canvas_summary(identity.user_id)
    if summary is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Not Found", "Profile not found")
    return CanvasOut.from_domain(summary)


# ---------------------------------------------------------------------------
# Mutation Endpoints
# ---------------------------------------------------------------------------

@router.put("/purpose", summary="Update leadership purpose")
def update_purpose(
    request: PurposeRequest,
    response: Response,
    actions: CanvasActionsDep,
) -> dict[str, Any]:
    return render_result(actions.update_leadership_purpose(request.purpose), response)


@router.post("/themes", summary="Create a development theme")
def create_theme(
    request: CreateThemeRequest,
    response: Response,
    actions: CanvasActionsDep,
) -> dict[str, Any]:
    result = actions.create_theme(request.theme_text, request.success_description)
    return render_result(result, response, success_status=status.HTTP_201_CREATED)


@router.patch("/themes/{theme_id}/name", summary="Rename a theme")
def update_theme_name(
    theme_id: str,
    request: ThemeNameRequest,
    response: Response,
    actions: CanvasActionsDep,
) -> dict[str, Any]:
    return render_result(actions.update_theme_name(theme_id, request.theme_text), response)


@router.patch("/themes/{theme_id}/description", summary="Update a theme's success description")
def update_success_description(
    theme_id: str,
    request: DescriptionRequest,
    response: Response,
    actions: CanvasActionsDep,
) -> dict[str, Any]:
    result = actions.update_success_description(theme_id, request.description)
    return render_result(result, response)


@router.delete(
    "/themes/{theme_id}",
    summary="Delete a theme",
    description="Also deletes every hypothesis linked to the theme.",
)
def delete_theme(
    theme_id: str,
    response: Response,
    actions: CanvasActionsDep,
) -> dict[str, Any]:
    return render_result(actions.delete_theme(theme_id), response)


@router.post("/themes/{theme_id}/hypotheses", summary="Add a hypothesis to a theme")
def add_hypothesis(
    theme_id: str,
    request: HypothesisRequest,
    response: Response,
    actions: CanvasActionsDep,
) -> dict[str, Any]:
    result = actions.add_hypothesis(theme_id, request.hypothesis_text)
    return render_result(result, response, success_status=status.HTTP_201_CREATED)


@router.patch("/hypotheses/{hypothesis_id}", summary="Edit a hypothesis")
def update_hypothesis(
    hypothesis_id: str,
    request: HypothesisRequest,
    response: Response,
    actions: CanvasActionsDep,
) -> dict[str, Any]:
    result = actions.update_hypothesis(hypothesis_id, request.hypothesis_text)
    return render_result(result, response)


@router.delete("/hypotheses/{hypothesis_id}", summary="Delete a hypothesis")
def delete_hypothesis(
    hypothesis_id: str,
    response: Response,
    actions: CanvasActionsDep,
) -> dict[str, Any]:
    return render_result(actions.delete_hypothesis(hypothesis_id), response)
