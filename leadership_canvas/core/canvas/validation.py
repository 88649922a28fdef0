"""
Input schemas for canvas operations.

Every operation validates its arguments against one of these models before
touching identity or storage. Text is trimmed before its length is checked
and the trimmed value is what gets stored. Rejections carry the field name
and a message fit to show next to the form field.
"""

import re
from typing import Annotated, Any, Callable, Optional
from uuid import UUID

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    HttpUrl,
    StrictBool,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from pydantic_core import PydanticCustomError

from .errors import ValidationFailed
from .models import AUTOMATED_NUDGE_PREFIX


UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

MAX_THEME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 2000
MAX_PURPOSE_LENGTH = 500
MAX_ACTION_LENGTH = 500
MAX_PROGRESS_LENGTH = 2000
MAX_NAME_LENGTH = 100
MAX_PHONE_LENGTH = 32
MAX_NUDGE_LENGTH = 320
MAX_AUTOMATED_NUDGE_LENGTH = MAX_NUDGE_LENGTH - len(AUTOMATED_NUDGE_PREFIX)
MAX_URL_LENGTH = 2048
MAX_ACTIONS_PER_BATCH = 10

_http_url = TypeAdapter(HttpUrl)


# ---------------------------------------------------------------------------
# Field validators
# ---------------------------------------------------------------------------

def identifier(message: str) -> Callable[[Any], UUID]:
    """Build a validator accepting only canonical UUID strings."""

    def check(value: Any) -> UUID:
        if isinstance(value, UUID):
            return value
        if not isinstance(value, str) or not UUID_PATTERN.match(value):
            raise PydanticCustomError("invalid_id", message)
        return UUID(value)

    return check


def required_text(
    required_message: str,
    too_long_message: str,
    max_length: int,
) -> Callable[[Any], str]:
    def check(value: Any) -> str:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise PydanticCustomError("required", required_message)
        if not isinstance(value, str):
            raise PydanticCustomError("string_type", "Must be text")
        text = value.strip()
        if len(text) > max_length:
            raise PydanticCustomError("too_long", too_long_message)
        return text

    return check


def optional_text(too_long_message: str, max_length: int) -> Callable[[Any], Optional[str]]:
    """Empty or whitespace-only input clears the field (None)."""

    def check(value: Any) -> Optional[str]:
        if value is None:
            return None
        if not isinstance(value, str):
            raise PydanticCustomError("string_type", "Must be text")
        text = value.strip()
        if len(text) > max_length:
            raise PydanticCustomError("too_long", too_long_message)
        return text or None

    return check


def https_url(value: Any) -> Optional[str]:
    """
    Accept an absolute https URL, or nothing.

    The trimmed input is kept as entered rather than the normalized form
    the parser produces.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise PydanticCustomError("url_type", "Please enter a valid HTTPS URL")
    url = value.strip()
    if not url:
        return None
    if len(url) > MAX_URL_LENGTH:
        raise PydanticCustomError("too_long", "URL is too long (max 2048 characters)")
    try:
        parsed = _http_url.validate_python(url)
    except ValidationError:
        raise PydanticCustomError("url_parsing", "Please enter a valid HTTPS URL")
    if parsed.scheme != "https":
        raise PydanticCustomError("url_scheme", "Please enter a valid HTTPS URL")
    return url


ThemeId = Annotated[UUID, BeforeValidator(identifier("Invalid theme ID"))]
HypothesisId = Annotated[UUID, BeforeValidator(identifier("Invalid hypothesis ID"))]
ActionId = Annotated[UUID, BeforeValidator(identifier("Invalid action ID"))]
ClientId = Annotated[UUID, BeforeValidator(identifier("Invalid client ID"))]
CoachId = Annotated[UUID, BeforeValidator(identifier("Invalid coach ID"))]

ThemeText = Annotated[str, BeforeValidator(required_text(
    "Theme name is required",
    "Theme name must be less than 100 characters",
    MAX_THEME_LENGTH,
))]
HypothesisText = Annotated[str, BeforeValidator(required_text(
    "Hypothesis text is required",
    "Hypothesis must be less than 500 characters",
    MAX_ACTION_LENGTH,
))]
ActionText = Annotated[str, BeforeValidator(required_text(
    "Action text is required",
    "Action must be less than 500 characters",
    MAX_ACTION_LENGTH,
))]
ProgressText = Annotated[str, BeforeValidator(required_text(
    "Progress entry is required",
    "Progress entry must be less than 2000 characters",
    MAX_PROGRESS_LENGTH,
))]


# ---------------------------------------------------------------------------
# Operation schemas
# ---------------------------------------------------------------------------

class CanvasInput(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class LeadershipPurposeInput(CanvasInput):
    purpose: Annotated[Optional[str], BeforeValidator(optional_text(
        "Purpose must be less than 500 characters",
        MAX_PURPOSE_LENGTH,
    ))] = None


class CreateThemeInput(CanvasInput):
    theme_text: ThemeText
    success_description: Annotated[Optional[str], BeforeValidator(optional_text(
        "Success description must be less than 2000 characters",
        MAX_DESCRIPTION_LENGTH,
    ))] = None


class ThemeNameInput(CanvasInput):
    theme_id: ThemeId
    theme_text: ThemeText


class SuccessDescriptionInput(CanvasInput):
    theme_id: ThemeId
    description: Annotated[Optional[str], BeforeValidator(optional_text(
        "Description must be less than 2000 characters",
        MAX_DESCRIPTION_LENGTH,
    ))] = None


class ThemeRef(CanvasInput):
    theme_id: ThemeId


class AddHypothesisInput(CanvasInput):
    theme_id: ThemeId
    hypothesis_text: HypothesisText


class UpdateHypothesisInput(CanvasInput):
    hypothesis_id: HypothesisId
    hypothesis_text: HypothesisText


class HypothesisRef(CanvasInput):
    hypothesis_id: HypothesisId


class WeeklyActionInput(CanvasInput):
    action_text: ActionText


class WeeklyActionBatchInput(CanvasInput):
    actions: list[ActionText]

    @field_validator("actions", mode="before")
    @classmethod
    def check_batch_size(cls, value: Any) -> Any:
        if not isinstance(value, list) or not value:
            raise PydanticCustomError("too_short", "At least one action is required")
        if len(value) > MAX_ACTIONS_PER_BATCH:
            raise PydanticCustomError("too_long", "Maximum 10 actions allowed")
        return value


class UpdateWeeklyActionInput(CanvasInput):
    action_id: ActionId
    action_text: ActionText


class ActionRef(CanvasInput):
    action_id: ActionId


class ToggleActionInput(CanvasInput):
    action_id: ActionId
    is_completed: StrictBool


class ProgressInput(CanvasInput):
    text: ProgressText


class NudgePreferenceInput(CanvasInput):
    receive_weekly_nudge: StrictBool


class AccountSetupInput(CanvasInput):
    name: Annotated[str, BeforeValidator(required_text(
        "Name is required",
        "Name must be less than 100 characters",
        MAX_NAME_LENGTH,
    ))]
    phone: Annotated[Optional[str], BeforeValidator(optional_text(
        "Phone number must be less than 32 characters",
        MAX_PHONE_LENGTH,
    ))] = None


class OnboardingInput(CanvasInput):
    """The first-run form: one theme plus optional extras."""
    theme_text: ThemeText
    progress_text: Annotated[Optional[str], BeforeValidator(optional_text(
        "Progress entry must be less than 2000 characters",
        MAX_PROGRESS_LENGTH,
    ))] = None
    actions: list[ActionText] = Field(default_factory=list)
    receive_weekly_nudge: Optional[StrictBool] = None

    @field_validator("actions", mode="before")
    @classmethod
    def check_action_count(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list) and len(value) > MAX_ACTIONS_PER_BATCH:
            raise PydanticCustomError("too_long", "Maximum 10 actions allowed")
        return value


class ClientRef(CanvasInput):
    client_id: ClientId


class PadletUrlInput(CanvasInput):
    client_id: ClientId
    padlet_url: Annotated[Optional[str], BeforeValidator(https_url)] = None


class SendNudgeInput(CanvasInput):
    client_id: ClientId
    message_text: Annotated[str, BeforeValidator(required_text(
        "Message is required",
        "Message must be less than 320 characters (SMS limit)",
        MAX_NUDGE_LENGTH,
    ))]


class AutomatedNudgeInput(CanvasInput):
    client_id: ClientId
    message_text: Annotated[str, BeforeValidator(required_text(
        "client_id and message_text are required",
        f"Message must be at most {MAX_AUTOMATED_NUDGE_LENGTH} characters",
        MAX_AUTOMATED_NUDGE_LENGTH,
    ))]
    coach_id: Optional[CoachId] = None


def validate(schema: type[BaseModel], **data: Any) -> Any:
    """
    Validate keyword arguments against a schema.

    Raises ValidationFailed for the first offending field.
    """
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        if first["type"] == "missing":
            raise ValidationFailed(field, f"{field} is required")
        raise ValidationFailed(field, first["msg"])
