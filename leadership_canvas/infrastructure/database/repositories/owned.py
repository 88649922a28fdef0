"""
Owner-scoped repository.

Every statement here carries a user_id filter equal to the caller, on top
of whatever the caller already checked. Writes return the number of rows
they touched so the core can tell "nothing matched" apart from success.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.sql import Executable

from ....core.canvas.models import (
    DevelopmentTheme,
    ProgressEntry,
    User,
    UserSettings,
    WeeklyAction,
)
from ..tables import (
    DevelopmentThemeRow,
    ProgressEntryRow,
    SettingsRow,
    UserRow,
    WeeklyActionRow,
)


logger = logging.getLogger(__name__)


class OwnerScopedRepository:
    """
    Persistence for rows the caller owns.

    Each public write commits on success; on failure it rolls back,
    logs, and re-raises for the action boundary to handle.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def _execute(self, operation: str, owner_id: UUID, statement: Executable) -> int:
        try:
            result = self._session.execute(
                statement, execution_options={"synchronize_session": False}
            )
            self._session.commit()
            return result.rowcount
        except Exception as e:
            self._session.rollback()
            logger.error(
                "Owner-scoped write failed",
                extra={"operation": operation, "user_id": str(owner_id), "error": str(e)},
            )
            raise

    def _add(self, operation: str, owner_id: UUID, rows: list) -> None:
        try:
            self._session.add_all(rows)
            self._session.commit()
        except Exception as e:
            self._session.rollback()
            logger.error(
                "Owner-scoped insert failed",
                extra={"operation": operation, "user_id": str(owner_id), "error": str(e)},
            )
            raise

    # -----------------------------------------------------------------------
    # Profile
    # -----------------------------------------------------------------------

    def get_user(self, owner_id: UUID) -> Optional[User]:
        row = self._session.get(UserRow, owner_id)
        return row.to_domain() if row else None

    def create_account(self, user: User, settings: UserSettings) -> bool:
        """Insert the user and settings rows unless the user already exists."""
        if self._session.get(UserRow, user.id) is not None:
            return False
        try:
            self._session.add(UserRow.from_domain(user))
            self._session.flush()
            self._session.add(SettingsRow(
                user_id=settings.user_id,
                receive_weekly_nudge=settings.receive_weekly_nudge,
            ))
            self._session.commit()
            return True
        except IntegrityError:
            # Lost a race with a concurrent setup for the same user.
            self._session.rollback()
            return False
        except Exception as e:
            self._session.rollback()
            logger.error(
                "Account setup failed",
                extra={"user_id": str(user.id), "error": str(e)},
            )
            raise

    def update_leadership_purpose(self, owner_id: UUID, purpose: Optional[str]) -> int:
        return self._execute(
            "update_leadership_purpose",
            owner_id,
            update(UserRow)
            .where(UserRow.id == owner_id)
            .values(leadership_purpose=purpose),
        )

    def update_nudge_preference(self, owner_id: UUID, receive_weekly_nudge: bool) -> int:
        return self._execute(
            "update_nudge_preference",
            owner_id,
            update(SettingsRow)
            .where(SettingsRow.user_id == owner_id)
            .values(receive_weekly_nudge=receive_weekly_nudge),
        )

    # -----------------------------------------------------------------------
    # Themes
    # -----------------------------------------------------------------------

    def count_themes(self, owner_id: UUID) -> int:
        return self._session.scalar(
            select(func.count())
            .select_from(DevelopmentThemeRow)
            .where(DevelopmentThemeRow.user_id == owner_id)
        ) or 0

    def insert_theme(self, theme: DevelopmentTheme) -> None:
        self._add("insert_theme", theme.user_id, [DevelopmentThemeRow.from_domain(theme)])

    def theme_exists(self, owner_id: UUID, theme_id: UUID) -> bool:
        found = self._session.scalar(
            select(DevelopmentThemeRow.id).where(
                DevelopmentThemeRow.id == theme_id,
                DevelopmentThemeRow.user_id == owner_id,
            )
        )
        return found is not None

    def update_theme_text(self, owner_id: UUID, theme_id: UUID, theme_text: str) -> int:
        return self._execute(
            "update_theme_text",
            owner_id,
            update(DevelopmentThemeRow)
            .where(DevelopmentThemeRow.id == theme_id, DevelopmentThemeRow.user_id == owner_id)
            .values(theme_text=theme_text),
        )

    def update_success_description(
        self, owner_id: UUID, theme_id: UUID, description: Optional[str]
    ) -> int:
        return self._execute(
            "update_success_description",
            owner_id,
            update(DevelopmentThemeRow)
            .where(DevelopmentThemeRow.id == theme_id, DevelopmentThemeRow.user_id == owner_id)
            .values(success_description=description),
        )

    def delete_theme(self, owner_id: UUID, theme_id: UUID) -> int:
        """Hypotheses referencing the theme are removed by ON DELETE CASCADE."""
        return self._execute(
            "delete_theme",
            owner_id,
            delete(DevelopmentThemeRow).where(
                DevelopmentThemeRow.id == theme_id,
                DevelopmentThemeRow.user_id == owner_id,
            ),
        )

    # -----------------------------------------------------------------------
    # Hypotheses and weekly actions
    # -----------------------------------------------------------------------

    def insert_actions(self, actions: list[WeeklyAction]) -> None:
        if not actions:
            return
        self._add(
            "insert_actions",
            actions[0].user_id,
            [WeeklyActionRow.from_domain(action) for action in actions],
        )

    def update_action_text(self, owner_id: UUID, action_id: UUID, action_text: str) -> int:
        return self._execute(
            "update_action_text",
            owner_id,
            update(WeeklyActionRow)
            .where(WeeklyActionRow.id == action_id, WeeklyActionRow.user_id == owner_id)
            .values(action_text=action_text),
        )

    def set_action_completed(self, owner_id: UUID, action_id: UUID, is_completed: bool) -> int:
        # rowcount counts matched rows, so re-applying the same value still reports 1.
        return self._execute(
            "set_action_completed",
            owner_id,
            update(WeeklyActionRow)
            .where(WeeklyActionRow.id == action_id, WeeklyActionRow.user_id == owner_id)
            .values(is_completed=is_completed),
        )

    def delete_action(self, owner_id: UUID, action_id: UUID) -> int:
        return self._execute(
            "delete_action",
            owner_id,
            delete(WeeklyActionRow).where(
                WeeklyActionRow.id == action_id,
                WeeklyActionRow.user_id == owner_id,
            ),
        )

    # -----------------------------------------------------------------------
    # Progress and onboarding
    # -----------------------------------------------------------------------

    def insert_progress(self, entry: ProgressEntry) -> None:
        self._add("insert_progress", entry.user_id, [ProgressEntryRow.from_domain(entry)])

    def apply_onboarding(
        self,
        theme: DevelopmentTheme,
        progress: Optional[ProgressEntry],
        actions: list[WeeklyAction],
        receive_weekly_nudge: Optional[bool],
    ) -> None:
        """Write the whole onboarding form in a single commit."""
        owner_id = theme.user_id
        try:
            self._session.add(DevelopmentThemeRow.from_domain(theme))
            if progress is not None:
                self._session.add(ProgressEntryRow.from_domain(progress))
            self._session.add_all(WeeklyActionRow.from_domain(action) for action in actions)
            if receive_weekly_nudge is not None:
                self._session.merge(SettingsRow(
                    user_id=owner_id,
                    receive_weekly_nudge=receive_weekly_nudge,
                ))
            self._session.commit()
        except Exception as e:
            self._session.rollback()
            logger.error(
                "Onboarding write failed",
                extra={"user_id": str(owner_id), "error": str(e)},
            )
            raise
