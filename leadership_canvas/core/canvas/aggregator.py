"""
Read-side composition of screen summaries.

Each screen needs several independent queries. They run concurrently in
worker threads and are joined before returning. A failing sub-read
degrades to an empty value for that field only; the one exception is the
user lookup, without which there is nothing to summarize.
"""

import asyncio
import logging
from collections import defaultdict
from typing import Any, Callable, Optional, TypeVar
from uuid import UUID

from .models import (
    CanvasSummary,
    ClientDetail,
    ClientSummary,
    DashboardStats,
    HomeSummary,
    NudgeSent,
    ProgressEntry,
    ThemeOrdering,
    ThemeWithHypotheses,
    User,
    WeeklyAction,
)
from .ports import CanvasReader


logger = logging.getLogger(__name__)

T = TypeVar("T")


def group_by_theme(hypotheses: list[WeeklyAction]) -> dict[UUID, list[WeeklyAction]]:
    grouped: dict[UUID, list[WeeklyAction]] = defaultdict(list)
    for hypothesis in hypotheses:
        if hypothesis.theme_id is not None:
            grouped[hypothesis.theme_id].append(hypothesis)
    return grouped


class ClientDataAggregator:
    """Builds the home, canvas and coach dashboard views."""

    def __init__(self, reader: CanvasReader) -> None:
        self._reader = reader

    async def _read(self, name: str, default: T, func: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.to_thread(func, *args)
        except Exception as e:
            logger.warning(
                "Summary sub-read failed, using empty value",
                extra={"read": name, "error": str(e)},
                exc_info=e,
            )
            return default

    async def _user(self, user_id: UUID) -> Optional[User]:
        user = await asyncio.to_thread(self._reader.get_user, user_id)
        if user is None:
            logger.info("Summary requested for unknown user", extra={"user_id": str(user_id)})
        return user

    # -----------------------------------------------------------------------
    # Client screens
    # -----------------------------------------------------------------------

    async def home_summary(
        self,
        user_id: UUID,
        progress_limit: Optional[int] = None,
    ) -> Optional[HomeSummary]:
        """Profile, themes newest first, progress, weekly actions and settings."""
        user = await self._user(user_id)
        if user is None:
            return None

        themes, progress, actions, settings = await asyncio.gather(
            self._read("themes", [], self._reader.list_themes, user_id, ThemeOrdering.RECENT),
            self._read("progress", [], self._reader.list_progress, user_id, progress_limit),
            self._read("weekly_actions", [], self._reader.list_weekly_actions, user_id),
            self._read("settings", None, self._reader.get_settings, user_id),
        )
        return HomeSummary(
            user=user,
            themes=themes,
            progress_entries=progress,
            weekly_actions=actions,
            settings=settings,
        )

    async def canvas_summary(self, user_id: UUID) -> Optional[CanvasSummary]:
        """Themes in theme_order, each with its hypotheses oldest first."""
        user = await self._user(user_id)
        if user is None:
            return None

        themes, hypotheses, settings = await asyncio.gather(
            self._read("themes", [], self._reader.list_themes, user_id, ThemeOrdering.EXPLICIT),
            self._read("hypotheses", [], self._reader.list_hypotheses, user_id),
            self._read("settings", None, self._reader.get_settings, user_id),
        )
        grouped = group_by_theme(hypotheses)
        return CanvasSummary(
            user=user,
            themes=[
                ThemeWithHypotheses(theme=theme, hypotheses=grouped.get(theme.id, []))
                for theme in themes
            ],
            settings=settings,
        )

    async def progress(self, user_id: UUID, limit: Optional[int] = None) -> list[ProgressEntry]:
        return await asyncio.to_thread(self._reader.list_progress, user_id, limit)

    async def weekly_actions(
        self, user_id: UUID, is_completed: Optional[bool] = None
    ) -> list[WeeklyAction]:
        return await asyncio.to_thread(self._reader.list_weekly_actions, user_id, is_completed)

    # -----------------------------------------------------------------------
    # Coach screens
    # -----------------------------------------------------------------------

    async def _summarize(self, user: User) -> ClientSummary:
        current_theme, progress, actions = await asyncio.gather(
            self._read("latest_theme", None, self._reader.latest_theme, user.id),
            self._read("latest_progress", [], self._reader.list_progress, user.id, 1),
            self._read("weekly_actions", [], self._reader.list_weekly_actions, user.id),
        )
        return ClientSummary(
            user=user,
            current_theme=current_theme,
            latest_progress=progress[0] if progress else None,
            weekly_actions=actions,
        )

    async def all_client_summaries(self) -> list[ClientSummary]:
        """One summary per client, ordered by name."""
        clients = await asyncio.to_thread(self._reader.list_clients)
        return list(await asyncio.gather(*(self._summarize(client) for client in clients)))

    async def dashboard_stats(self) -> DashboardStats:
        return DashboardStats.from_summaries(await self.all_client_summaries())

    async def client_detail(
        self, client_id: UUID, nudge_limit: Optional[int] = None
    ) -> Optional[ClientDetail]:
        """
        Summary, canvas and nudge history for one client.

        The user is read once; every other query runs concurrently and
        degrades on its own.
        """
        user = await self._user(client_id)
        if user is None:
            return None

        reader = self._reader
        current_theme, progress, actions, themes, hypotheses, settings, nudges = (
            await asyncio.gather(
                self._read("latest_theme", None, reader.latest_theme, client_id),
                self._read("latest_progress", [], reader.list_progress, client_id, 1),
                self._read("weekly_actions", [], reader.list_weekly_actions, client_id),
                self._read("themes", [], reader.list_themes, client_id, ThemeOrdering.EXPLICIT),
                self._read("hypotheses", [], reader.list_hypotheses, client_id),
                self._read("settings", None, reader.get_settings, client_id),
                self._read("nudges", [], reader.nudges_for_client, client_id, nudge_limit),
            )
        )
        grouped = group_by_theme(hypotheses)
        return ClientDetail(
            summary=ClientSummary(
                user=user,
                current_theme=current_theme,
                latest_progress=progress[0] if progress else None,
                weekly_actions=actions,
            ),
            canvas=CanvasSummary(
                user=user,
                themes=[
                    ThemeWithHypotheses(theme=theme, hypotheses=grouped.get(theme.id, []))
                    for theme in themes
                ],
                settings=settings,
            ),
            recent_nudges=nudges,
        )

    async def nudges_for_client(
        self, client_id: UUID, limit: Optional[int] = None
    ) -> list[NudgeSent]:
        return await asyncio.to_thread(self._reader.nudges_for_client, client_id, limit)

    async def nudges_by_coach(
        self, coach_id: UUID, limit: Optional[int] = None
    ) -> list[NudgeSent]:
        return await asyncio.to_thread(self._reader.nudges_by_coach, coach_id, limit)
