"""
Account endpoints for the signed-in user.

Covers first-time setup, the onboarding form, the progress log and the
weekly nudge preference.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Query, Response, status
from pydantic import BaseModel, Field

from ..dependencies import AggregatorDep, CanvasActionsDep, CurrentIdentity
from ..results import ApiError, render_result
from ..schemas import ProgressOut, SettingsOut, UserOut

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class AccountSetupRequest(BaseModel):
    """Role is not accepted here; every new account is a client."""
    name: Any = Field(None, description="Display name (1-100 characters)")
    phone: Any = Field(None, description="Phone number for SMS nudges")


class ProgressRequest(BaseModel):
    text: Any = Field(None, description="Progress note (up to 2000 characters)")


class NudgePreferenceRequest(BaseModel):
    receive_weekly_nudge: Any = Field(None, description="Opt in to the weekly SMS nudge")


class OnboardingRequest(BaseModel):
    theme_text: Any = Field(None, description="First development theme")
    progress_text: Any = Field(None, description="Optional first progress note")
    actions: Any = Field(None, description="Up to 10 weekly actions")
    receive_weekly_nudge: Any = Field(None, description="Optional nudge opt-in")


class ProfileResponse(BaseModel):
    user: UserOut
    settings: Optional[SettingsOut] = None


class ProgressListResponse(BaseModel):
    entries: list[ProgressOut]
    total: int


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/setup",
    summary="Complete account setup",
    description="Create the caller's profile and default settings. Safe to repeat.",
)
def complete_setup(
    request: AccountSetupRequest,
    response: Response,
    actions: CanvasActionsDep,
) -> dict[str, Any]:
    result = actions.complete_account_setup(request.name, request.phone)
    return render_result(result, response)


@router.get(
    "/me",
    response_model=ProfileResponse,
    summary="Get my profile",
)
async def get_profile(
    identity: CurrentIdentity,
    aggregator: AggregatorDep,
) -> ProfileResponse:
    summary = await aggregator.home_summary(identity.user_id, progress_limit=1)
    if summary is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Not Found", "Profile not found")

    return ProfileResponse(
        user=UserOut.from_domain(summary.user),
        settings=SettingsOut.from_domain(summary.settings),
    )


@router.post(
    "/onboarding",
    summary="Submit the onboarding form",
)
def submit_onboarding(
    request: OnboardingRequest,
    response: Response,
    actions: CanvasActionsDep,
) -> dict[str, Any]:
    result = actions.submit_onboarding(
        request.theme_text,
        progress_text=request.progress_text,
        actions=request.actions,
        receive_weekly_nudge=request.receive_weekly_nudge,
    )
    return render_result(result, response, success_status=status.HTTP_201_CREATED)


@router.post(
    "/progress",
    summary="Add a progress entry",
)
def save_progress(
    request: ProgressRequest,
    response: Response,
    actions: CanvasActionsDep,
) -> dict[str, Any]:
    result = actions.save_progress(request.text)
    return render_result(result, response, success_status=status.HTTP_201_CREATED)


@router.get(
    "/progress",
    response_model=ProgressListResponse,
    summary="List my progress entries",
    description="Newest first. Pass limit to get only the most recent entries.",
)
async def list_progress(
    identity: CurrentIdentity,
    aggregator: AggregatorDep,
    limit: Optional[int] = Query(None, ge=1, le=100),
) -> ProgressListResponse:
    entries = await aggregator.progress(identity.user_id, limit)
    return ProgressListResponse(
        entries=[ProgressOut.from_domain(entry) for entry in entries],
        total=len(entries),
    )


@router.put(
    "/nudge-preference",
    summary="Opt in or out of the weekly nudge",
)
def update_nudge_preference(
    request: NudgePreferenceRequest,
    response: Response,
    actions: CanvasActionsDep,
) -> dict[str, Any]:
    result = actions.update_nudge_preference(request.receive_weekly_nudge)
    return render_result(result, response)
