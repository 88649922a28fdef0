"""
Owner-scoped canvas operations.

Every operation follows the same shape:
1. Validate input (fail fast, field-scoped message)
2. Resolve the caller from the session (fail if anonymous)
3. Issue one storage write filtered on both the target id and the caller
4. Treat zero affected rows as "not found or not authorized"

Missing and foreign rows deliberately produce the same message so a caller
cannot learn whether someone else's row exists.
"""

import logging
from typing import Optional
from uuid import UUID

from .access import require_identity
from .errors import LimitExceeded, NotFoundOrNotAuthorized, action_boundary
from .models import (
    MAX_THEMES_PER_USER,
    DevelopmentTheme,
    Identity,
    ProgressEntry,
    User,
    UserRole,
    UserSettings,
    WeeklyAction,
)
from .ports import OwnerScopedStore, SessionAccessor
from .validation import (
    AccountSetupInput,
    ActionRef,
    AddHypothesisInput,
    CreateThemeInput,
    HypothesisRef,
    LeadershipPurposeInput,
    NudgePreferenceInput,
    OnboardingInput,
    ProgressInput,
    SuccessDescriptionInput,
    ThemeNameInput,
    ThemeRef,
    ToggleActionInput,
    UpdateHypothesisInput,
    UpdateWeeklyActionInput,
    WeeklyActionBatchInput,
    WeeklyActionInput,
    validate,
)


logger = logging.getLogger(__name__)

THEME_NOT_FOUND = "Theme not found or not authorized"
HYPOTHESIS_NOT_FOUND = "Hypothesis not found or not authorized"
ACTION_NOT_FOUND = "Action not found or not authorized"
PROFILE_NOT_FOUND = "Profile not found or not authorized"
SETTINGS_NOT_FOUND = "Settings not found or not authorized"
THEME_LIMIT_MESSAGE = "Maximum of 3 themes allowed"


def _require_rows(affected: int, message: str) -> None:
    if affected == 0:
        raise NotFoundOrNotAuthorized(message)


class CanvasActions:
    """
    Mutations a client performs on their own canvas.

    Stateless apart from its collaborators; build one per request.
    """

    def __init__(self, accessor: SessionAccessor, store: OwnerScopedStore) -> None:
        self._accessor = accessor
        self._store = store

    def _caller(self) -> Identity:
        return require_identity(self._accessor)

    def _next_theme_order(self, owner_id: UUID) -> int:
        existing = self._store.count_themes(owner_id)
        if existing >= MAX_THEMES_PER_USER:
            logger.info("Theme limit reached", extra={"user_id": str(owner_id)})
            raise LimitExceeded(THEME_LIMIT_MESSAGE)
        return existing + 1

    # -----------------------------------------------------------------------
    # Account
    # -----------------------------------------------------------------------

    @action_boundary("Failed to complete account setup")
    def complete_account_setup(self, name: str, phone: Optional[str] = None):
        """
        Create the caller's user row and default settings.

        The role is always client. Coaches are promoted by the role
        migration, never by anything the caller submits. Calling this again
        leaves the existing account untouched.
        """
        data = validate(AccountSetupInput, name=name, phone=phone)
        identity = self._caller()

        user = User(
            id=identity.user_id,
            role=UserRole.CLIENT,
            name=data.name,
            email=identity.email or "",
            phone=data.phone,
        )
        created = self._store.create_account(
            user, UserSettings(user_id=identity.user_id, receive_weekly_nudge=False)
        )

        logger.info(
            "Account setup completed",
            extra={"user_id": str(identity.user_id), "created": created},
        )
        return {"id": identity.user_id, "created": created}

    @action_boundary("Failed to update leadership purpose")
    def update_leadership_purpose(self, purpose: Optional[str]):
        data = validate(LeadershipPurposeInput, purpose=purpose)
        identity = self._caller()

        affected = self._store.update_leadership_purpose(identity.user_id, data.purpose)
        _require_rows(affected, PROFILE_NOT_FOUND)

    @action_boundary("Failed to update nudge preference")
    def update_nudge_preference(self, receive_weekly_nudge: bool):
        data = validate(NudgePreferenceInput, receive_weekly_nudge=receive_weekly_nudge)
        identity = self._caller()

        affected = self._store.update_nudge_preference(
            identity.user_id, data.receive_weekly_nudge
        )
        _require_rows(affected, SETTINGS_NOT_FOUND)

    @action_boundary("Failed to save progress entry")
    def save_progress(self, text: str):
        data = validate(ProgressInput, text=text)
        identity = self._caller()

        entry = ProgressEntry(user_id=identity.user_id, text=data.text)
        self._store.insert_progress(entry)
        return {"id": entry.id}

    @action_boundary("Failed to complete onboarding")
    def submit_onboarding(
        self,
        theme_text: str,
        progress_text: Optional[str] = None,
        actions: Optional[list[str]] = None,
        receive_weekly_nudge: Optional[bool] = None,
    ):
        """
        Save the first-run form in one transaction.

        The theme counts against the three-theme limit like any other.
        """
        data = validate(
            OnboardingInput,
            theme_text=theme_text,
            progress_text=progress_text,
            actions=actions,
            receive_weekly_nudge=receive_weekly_nudge,
        )
        identity = self._caller()
        owner_id = identity.user_id

        theme = DevelopmentTheme(
            user_id=owner_id,
            theme_text=data.theme_text,
            theme_order=self._next_theme_order(owner_id),
        )
        progress = (
            ProgressEntry(user_id=owner_id, text=data.progress_text)
            if data.progress_text else None
        )
        weekly_actions = [
            WeeklyAction(user_id=owner_id, action_text=text) for text in data.actions
        ]

        self._store.apply_onboarding(
            theme, progress, weekly_actions, data.receive_weekly_nudge
        )

        logger.info(
            "Onboarding submitted",
            extra={
                "user_id": str(owner_id),
                "theme_id": str(theme.id),
                "action_count": len(weekly_actions),
            },
        )
        return {"theme_id": theme.id}

    # -----------------------------------------------------------------------
    # Themes
    # -----------------------------------------------------------------------

    @action_boundary("Failed to create theme")
    def create_theme(self, theme_text: str, success_description: Optional[str] = None):
        data = validate(
            CreateThemeInput,
            theme_text=theme_text,
            success_description=success_description,
        )
        identity = self._caller()

        theme = DevelopmentTheme(
            user_id=identity.user_id,
            theme_text=data.theme_text,
            success_description=data.success_description,
            theme_order=self._next_theme_order(identity.user_id),
        )
        self._store.insert_theme(theme)

        logger.info(
            "Theme created",
            extra={
                "user_id": str(identity.user_id),
                "theme_id": str(theme.id),
                "theme_order": theme.theme_order,
            },
        )
        return {"id": theme.id}

    @action_boundary("Failed to update theme")
    def update_theme_name(self, theme_id: str, theme_text: str):
        data = validate(ThemeNameInput, theme_id=theme_id, theme_text=theme_text)
        identity = self._caller()

        affected = self._store.update_theme_text(
            identity.user_id, data.theme_id, data.theme_text
        )
        _require_rows(affected, THEME_NOT_FOUND)

    @action_boundary("Failed to update description")
    def update_success_description(self, theme_id: str, description: Optional[str]):
        data = validate(SuccessDescriptionInput, theme_id=theme_id, description=description)
        identity = self._caller()

        affected = self._store.update_success_description(
            identity.user_id, data.theme_id, data.description
        )
        _require_rows(affected, THEME_NOT_FOUND)

    @action_boundary("Failed to delete theme")
    def delete_theme(self, theme_id: str):
        """Delete a theme. Its hypotheses go with it."""
        data = validate(ThemeRef, theme_id=theme_id)
        identity = self._caller()

        affected = self._store.delete_theme(identity.user_id, data.theme_id)
        _require_rows(affected, THEME_NOT_FOUND)

        logger.info(
            "Theme deleted",
            extra={"user_id": str(identity.user_id), "theme_id": str(data.theme_id)},
        )

    # -----------------------------------------------------------------------
    # Hypotheses
    # -----------------------------------------------------------------------

    @action_boundary("Failed to add hypothesis")
    def add_hypothesis(self, theme_id: str, hypothesis_text: str):
        data = validate(
            AddHypothesisInput, theme_id=theme_id, hypothesis_text=hypothesis_text
        )
        identity = self._caller()

        if not self._store.theme_exists(identity.user_id, data.theme_id):
            raise NotFoundOrNotAuthorized(THEME_NOT_FOUND)

        hypothesis = WeeklyAction(
            user_id=identity.user_id,
            action_text=data.hypothesis_text,
            theme_id=data.theme_id,
            is_completed=False,
        )
        self._store.insert_actions([hypothesis])
        return {"id": hypothesis.id}

    @action_boundary("Failed to update hypothesis")
    def update_hypothesis(self, hypothesis_id: str, hypothesis_text: str):
        data = validate(
            UpdateHypothesisInput,
            hypothesis_id=hypothesis_id,
            hypothesis_text=hypothesis_text,
        )
        identity = self._caller()

        affected = self._store.update_action_text(
            identity.user_id, data.hypothesis_id, data.hypothesis_text
        )
        _require_rows(affected, HYPOTHESIS_NOT_FOUND)

    @action_boundary("Failed to delete hypothesis")
    def delete_hypothesis(self, hypothesis_id: str):
        data = validate(HypothesisRef, hypothesis_id=hypothesis_id)
        identity = self._caller()

        affected = self._store.delete_action(identity.user_id, data.hypothesis_id)
        _require_rows(affected, HYPOTHESIS_NOT_FOUND)

    # -----------------------------------------------------------------------
    # Weekly actions (checkbox flow)
    # -----------------------------------------------------------------------

    @action_boundary("Failed to add action")
    def add_weekly_action(self, action_text: str):
        data = validate(WeeklyActionInput, action_text=action_text)
        identity = self._caller()

        action = WeeklyAction(user_id=identity.user_id, action_text=data.action_text)
        self._store.insert_actions([action])
        return {"id": action.id}

    @action_boundary("Failed to save weekly actions")
    def save_weekly_actions(self, actions: list[str]):
        data = validate(WeeklyActionBatchInput, actions=actions)
        identity = self._caller()

        rows = [
            WeeklyAction(user_id=identity.user_id, action_text=text)
            for text in data.actions
        ]
        self._store.insert_actions(rows)
        return {"ids": [row.id for row in rows]}

    @action_boundary("Failed to update action")
    def update_weekly_action_text(self, action_id: str, action_text: str):
        data = validate(UpdateWeeklyActionInput, action_id=action_id, action_text=action_text)
        identity = self._caller()

        affected = self._store.update_action_text(
            identity.user_id, data.action_id, data.action_text
        )
        _require_rows(affected, ACTION_NOT_FOUND)

    @action_boundary("Failed to update action")
    def toggle_action_complete(self, action_id: str, is_completed: bool):
        """Setting the same value twice is a successful no-op."""
        data = validate(ToggleActionInput, action_id=action_id, is_completed=is_completed)
        identity = self._caller()

        affected = self._store.set_action_completed(
            identity.user_id, data.action_id, data.is_completed
        )
        _require_rows(affected, ACTION_NOT_FOUND)

    @action_boundary("Failed to delete action")
    def delete_weekly_action(self, action_id: str):
        data = validate(ActionRef, action_id=action_id)
        identity = self._caller()

        affected = self._store.delete_action(identity.user_id, data.action_id)
        _require_rows(affected, ACTION_NOT_FOUND)
