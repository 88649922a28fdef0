"""
Tests for the read aggregator.

The degradation tests wrap the real reader and break one sub-read at a
time; the rest run straight against SQLite.
"""

from uuid import uuid4

import pytest

from leadership_canvas.core.canvas.actions import CanvasActions
from leadership_canvas.core.canvas.aggregator import ClientDataAggregator
from leadership_canvas.core.canvas.models import NudgeSent
from leadership_canvas.infrastructure.database.repositories import OwnerScopedRepository
from leadership_canvas.infrastructure.database.tables import NudgeSentRow


class BrokenRead:
    """Delegates to a real reader except for the named methods, which raise."""

    def __init__(self, reader, *broken: str) -> None:
        self._reader = reader
        self._broken = set(broken)

    def __getattr__(self, name):
        if name in self._broken:
            def fail(*args, **kwargs):
                raise RuntimeError(f"{name} unavailable")
            return fail
        return getattr(self._reader, name)


@pytest.fixture
def canvas_for(session, accessor_for):
    def _canvas_for(user) -> CanvasActions:
        return CanvasActions(accessor_for(user), OwnerScopedRepository(session))

    return _canvas_for


@pytest.fixture
def aggregator(reader) -> ClientDataAggregator:
    return ClientDataAggregator(reader)


class TestHomeSummary:
    @pytest.mark.asyncio
    async def test_unknown_user_has_no_summary(self, aggregator):
        assert await aggregator.home_summary(uuid4()) is None

    @pytest.mark.asyncio
    async def test_collects_every_section(self, aggregator, canvas_for, client_user):
        canvas = canvas_for(client_user)
        canvas.create_theme("Delegation")
        canvas.save_progress("Week one")
        canvas.add_weekly_action("Hand off the agenda")
        canvas.update_nudge_preference(True)

        summary = await aggregator.home_summary(client_user.id)

        assert summary.user.id == client_user.id
        assert summary.current_theme.theme_text == "Delegation"
        assert [p.text for p in summary.progress_entries] == ["Week one"]
        assert [a.action_text for a in summary.weekly_actions] == ["Hand off the agenda"]
        assert summary.settings.receive_weekly_nudge is True

    @pytest.mark.asyncio
    async def test_themes_newest_first(self, aggregator, canvas_for, client_user):
        """The home screen lists themes by recency; the newest is current."""
        canvas = canvas_for(client_user)
        for name in ("Delegation", "Feedback", "Focus"):
            canvas.create_theme(name)

        summary = await aggregator.home_summary(client_user.id)

        assert [t.theme_text for t in summary.themes] == ["Focus", "Feedback", "Delegation"]
        assert summary.current_theme.theme_text == "Focus"

    @pytest.mark.asyncio
    async def test_failed_sub_read_degrades_to_empty(self, reader, canvas_for, client_user):
        """One broken query empties its own field and nothing else."""
        canvas = canvas_for(client_user)
        canvas.create_theme("Delegation")
        canvas.save_progress("Week one")

        aggregator = ClientDataAggregator(BrokenRead(reader, "list_progress"))
        summary = await aggregator.home_summary(client_user.id)

        assert summary.progress_entries == []
        assert summary.current_theme.theme_text == "Delegation"

    @pytest.mark.asyncio
    async def test_user_lookup_failure_is_not_hidden(self, reader, client_user):
        aggregator = ClientDataAggregator(BrokenRead(reader, "get_user"))

        with pytest.raises(RuntimeError):
            await aggregator.home_summary(client_user.id)


class TestCanvasSummary:
    @pytest.mark.asyncio
    async def test_themes_in_order_with_their_hypotheses(self, aggregator, canvas_for, client_user):
        canvas = canvas_for(client_user)
        first = canvas.create_theme("Delegation").data["id"]
        second = canvas.create_theme("Feedback").data["id"]
        canvas.add_hypothesis(str(second), "Ask for feedback weekly")
        canvas.add_hypothesis(str(first), "Hand off one decision")
        canvas.add_weekly_action("Not on the canvas")

        summary = await aggregator.canvas_summary(client_user.id)

        assert [t.theme.theme_text for t in summary.themes] == ["Delegation", "Feedback"]
        assert [h.action_text for h in summary.themes[0].hypotheses] == ["Hand off one decision"]
        assert [h.action_text for h in summary.themes[1].hypotheses] == ["Ask for feedback weekly"]

    @pytest.mark.asyncio
    async def test_broken_hypotheses_read_keeps_themes(self, reader, canvas_for, client_user):
        theme_id = canvas_for(client_user).create_theme("Delegation").data["id"]
        canvas_for(client_user).add_hypothesis(str(theme_id), "Hand off one decision")

        aggregator = ClientDataAggregator(BrokenRead(reader, "list_hypotheses"))
        summary = await aggregator.canvas_summary(client_user.id)

        assert len(summary.themes) == 1
        assert summary.themes[0].hypotheses == []


class TestCoachViews:
    @pytest.mark.asyncio
    async def test_client_list_excludes_coaches_and_is_sorted(
        self, aggregator, make_user, coach_user
    ):
        make_user(name="Zoe")
        make_user(name="Adam")

        summaries = await aggregator.all_client_summaries()

        assert [s.user.name for s in summaries] == ["Adam", "Zoe"]

    @pytest.mark.asyncio
    async def test_dashboard_stats(self, aggregator, canvas_for, client_user, other_client):
        canvas = canvas_for(client_user)
        canvas.create_theme("Delegation")
        done = canvas.add_weekly_action("Done").data["id"]
        canvas.add_weekly_action("Open")
        canvas.toggle_action_complete(str(done), True)
        canvas_for(other_client).add_weekly_action("Also open")

        stats = await aggregator.dashboard_stats()

        assert stats.total_clients == 2
        assert stats.total_open_actions == 2
        assert stats.total_completed_actions == 1
        assert stats.clients_with_no_theme == 1

    @pytest.mark.asyncio
    async def test_client_detail_collects_every_section(
        self, aggregator, canvas_for, client_user, coach_user, session
    ):
        canvas = canvas_for(client_user)
        canvas.save_progress("Only entry")
        theme_id = canvas.create_theme("Delegation").data["id"]
        canvas.add_hypothesis(str(theme_id), "Hand off one decision")
        session.add(NudgeSentRow.from_domain(
            NudgeSent(coach_id=coach_user.id, client_id=client_user.id, message_text="Hi")
        ))
        session.commit()

        detail = await aggregator.client_detail(client_user.id)

        assert detail.summary.latest_progress.text == "Only entry"
        assert detail.summary.current_theme.theme_text == "Delegation"
        assert detail.summary.action_stats.total == 1
        assert [h.action_text for h in detail.canvas.themes[0].hypotheses] == ["Hand off one decision"]
        assert [n.message_text for n in detail.recent_nudges] == ["Hi"]

    @pytest.mark.asyncio
    async def test_client_detail_survives_broken_nudge_history(
        self, reader, canvas_for, client_user
    ):
        canvas_for(client_user).create_theme("Delegation")

        aggregator = ClientDataAggregator(BrokenRead(reader, "nudges_for_client"))
        detail = await aggregator.client_detail(client_user.id)

        assert detail.recent_nudges == []
        assert detail.summary.current_theme.theme_text == "Delegation"
        assert len(detail.canvas.themes) == 1

    @pytest.mark.asyncio
    async def test_client_detail_for_unknown_user(self, aggregator):
        assert await aggregator.client_detail(uuid4()) is None
