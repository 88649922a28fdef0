"""
Read-only queries for the summary screens.

Unlike the other repositories this one holds a session factory rather than
a session: the aggregator calls these methods concurrently from worker
threads, and each call gets a short-lived session of its own.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from ....core.canvas.models import (
    DevelopmentTheme,
    NudgeSent,
    ProgressEntry,
    ThemeOrdering,
    User,
    UserRole,
    UserSettings,
    WeeklyAction,
)
from ..tables import (
    DevelopmentThemeRow,
    NudgeSentRow,
    ProgressEntryRow,
    SettingsRow,
    UserRow,
    WeeklyActionRow,
)


class CanvasReadRepository:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._sessions = session_factory

    def get_user(self, user_id: UUID) -> Optional[User]:
        with self._sessions() as session:
            row = session.get(UserRow, user_id)
            return row.to_domain() if row else None

    def list_themes(self, user_id: UUID, ordering: ThemeOrdering) -> list[DevelopmentTheme]:
        if ordering is ThemeOrdering.RECENT:
            order = (DevelopmentThemeRow.created_at.desc(),)
        else:
            order = (DevelopmentThemeRow.theme_order, DevelopmentThemeRow.created_at)

        with self._sessions() as session:
            rows = session.scalars(
                select(DevelopmentThemeRow)
                .where(DevelopmentThemeRow.user_id == user_id)
                .order_by(*order)
            ).all()
            return [row.to_domain() for row in rows]

    def latest_theme(self, user_id: UUID) -> Optional[DevelopmentTheme]:
        with self._sessions() as session:
            row = session.scalars(
                select(DevelopmentThemeRow)
                .where(DevelopmentThemeRow.user_id == user_id)
                .order_by(DevelopmentThemeRow.created_at.desc())
                .limit(1)
            ).first()
            return row.to_domain() if row else None

    def list_hypotheses(self, user_id: UUID) -> list[WeeklyAction]:
        """Theme-linked actions, oldest first."""
        with self._sessions() as session:
            rows = session.scalars(
                select(WeeklyActionRow)
                .where(
                    WeeklyActionRow.user_id == user_id,
                    WeeklyActionRow.theme_id.is_not(None),
                )
                .order_by(WeeklyActionRow.created_at)
            ).all()
            return [row.to_domain() for row in rows]

    def list_progress(self, user_id: UUID, limit: Optional[int] = None) -> list[ProgressEntry]:
        query = (
            select(ProgressEntryRow)
            .where(ProgressEntryRow.user_id == user_id)
            .order_by(ProgressEntryRow.created_at.desc())
        )
        if limit:
            query = query.limit(limit)

        with self._sessions() as session:
            return [row.to_domain() for row in session.scalars(query).all()]

    def list_weekly_actions(
        self, user_id: UUID, is_completed: Optional[bool] = None
    ) -> list[WeeklyAction]:
        query = (
            select(WeeklyActionRow)
            .where(WeeklyActionRow.user_id == user_id)
            .order_by(WeeklyActionRow.created_at.desc())
        )
        if is_completed is not None:
            query = query.where(WeeklyActionRow.is_completed.is_(is_completed))

        with self._sessions() as session:
            return [row.to_domain() for row in session.scalars(query).all()]

    def get_settings(self, user_id: UUID) -> Optional[UserSettings]:
        with self._sessions() as session:
            row = session.get(SettingsRow, user_id)
            return row.to_domain() if row else None

    def list_clients(self) -> list[User]:
        with self._sessions() as session:
            rows = session.scalars(
                select(UserRow)
                .where(UserRow.role == UserRole.CLIENT.value)
                .order_by(UserRow.name)
            ).all()
            return [row.to_domain() for row in rows]

    def nudges_for_client(self, client_id: UUID, limit: Optional[int] = None) -> list[NudgeSent]:
        return self._nudges(NudgeSentRow.client_id == client_id, limit)

    def nudges_by_coach(self, coach_id: UUID, limit: Optional[int] = None) -> list[NudgeSent]:
        return self._nudges(NudgeSentRow.coach_id == coach_id, limit)

    def _nudges(self, criterion, limit: Optional[int]) -> list[NudgeSent]:
        query = select(NudgeSentRow).where(criterion).order_by(NudgeSentRow.sent_at.desc())
        if limit:
            query = query.limit(limit)

        with self._sessions() as session:
            return [row.to_domain() for row in session.scalars(query).all()]
