"""
Tests for owner-scoped canvas operations against a real SQLite store.
"""

from uuid import uuid4

import pytest

from leadership_canvas.core.canvas.actions import (
    ACTION_NOT_FOUND,
    HYPOTHESIS_NOT_FOUND,
    THEME_LIMIT_MESSAGE,
    THEME_NOT_FOUND,
    CanvasActions,
)
from leadership_canvas.core.canvas.errors import ErrorKind
from leadership_canvas.core.canvas.models import ThemeOrdering, User, UserRole
from leadership_canvas.infrastructure.database.repositories import OwnerScopedRepository


@pytest.fixture
def actions_for(session, accessor_for):
    def _actions_for(user):
        return CanvasActions(accessor_for(user), OwnerScopedRepository(session))

    return _actions_for


@pytest.fixture
def actions(actions_for, client_user) -> CanvasActions:
    return actions_for(client_user)


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------

class TestAccountSetup:
    def test_new_account_is_always_a_client(self, actions_for, reader):
        """Setup never grants the coach role."""
        newcomer = User(id=uuid4(), role=UserRole.COACH, name="Dana", email="dana@example.com")
        result = actions_for(newcomer).complete_account_setup("  Dana  ", "+15550001111")

        assert result.success
        assert result.data["created"] is True
        stored = reader.get_user(newcomer.id)
        assert stored.role is UserRole.CLIENT
        assert stored.name == "Dana"
        assert reader.get_settings(newcomer.id).receive_weekly_nudge is False

    def test_repeat_setup_leaves_account_unchanged(self, actions, client_user, reader):
        result = actions.complete_account_setup("Renamed")

        assert result.success
        assert result.data["created"] is False
        assert reader.get_user(client_user.id).name == client_user.name

    def test_anonymous_caller_is_rejected(self, actions_for):
        result = actions_for(None).complete_account_setup("Dana")

        assert not result.success
        assert result.kind is ErrorKind.UNAUTHENTICATED
        assert result.error == "Not authenticated"

    def test_validation_runs_before_authentication(self, actions_for):
        """An anonymous caller with bad input hears about the input."""
        result = actions_for(None).create_theme("")
        assert result.kind is ErrorKind.VALIDATION_FAILED
        assert result.field == "theme_text"


class TestPurposeAndPreferences:
    def test_purpose_is_trimmed_and_clearable(self, actions, client_user, reader):
        assert actions.update_leadership_purpose("  Lead with curiosity ").success
        assert reader.get_user(client_user.id).leadership_purpose == "Lead with curiosity"

        assert actions.update_leadership_purpose("").success
        assert reader.get_user(client_user.id).leadership_purpose is None

    def test_nudge_preference_round_trip(self, actions, client_user, reader):
        assert actions.update_nudge_preference(True).success
        assert reader.get_settings(client_user.id).receive_weekly_nudge is True

    def test_progress_entries_are_appended(self, actions, client_user, reader):
        actions.save_progress("Delegated the budget review")
        actions.save_progress("Asked before advising")

        entries = reader.list_progress(client_user.id)
        assert {e.text for e in entries} == {"Delegated the budget review", "Asked before advising"}


# ---------------------------------------------------------------------------
# Themes
# ---------------------------------------------------------------------------

class TestThemes:
    def test_create_and_read_back_with_order(self, actions, client_user, reader):
        result = actions.create_theme("Delegation", "Team owns the roadmap")

        assert result.success
        themes = reader.list_themes(client_user.id, ThemeOrdering.EXPLICIT)
        assert len(themes) == 1
        assert themes[0].id == result.data["id"]
        assert themes[0].theme_text == "Delegation"
        assert themes[0].success_description == "Team owns the roadmap"
        assert themes[0].theme_order == 1

    def test_fourth_theme_is_refused_and_nothing_is_stored(self, actions, client_user, reader):
        for name in ("Delegation", "Feedback", "Presence"):
            assert actions.create_theme(name).success

        result = actions.create_theme("Strategy")

        assert not result.success
        assert result.kind is ErrorKind.LIMIT_EXCEEDED
        assert result.error == THEME_LIMIT_MESSAGE
        themes = reader.list_themes(client_user.id, ThemeOrdering.EXPLICIT)
        assert [t.theme_text for t in themes] == ["Delegation", "Feedback", "Presence"]
        assert [t.theme_order for t in themes] == [1, 2, 3]

    def test_limit_is_per_user(self, actions, actions_for, other_client):
        for name in ("Delegation", "Feedback", "Presence"):
            actions.create_theme(name)

        assert actions_for(other_client).create_theme("Delegation").success

    def test_rename_and_describe(self, actions, client_user, reader):
        theme_id = actions.create_theme("Delegaton").data["id"]

        assert actions.update_theme_name(str(theme_id), "Delegation").success
        assert actions.update_success_description(str(theme_id), "Fewer escalations").success

        theme = reader.latest_theme(client_user.id)
        assert theme.theme_text == "Delegation"
        assert theme.success_description == "Fewer escalations"

    def test_foreign_and_missing_themes_look_the_same(self, actions, actions_for, other_client):
        """A caller cannot tell someone else's theme from a nonexistent one."""
        foreign_id = actions_for(other_client).create_theme("Theirs").data["id"]

        foreign = actions.update_theme_name(str(foreign_id), "Mine now")
        missing = actions.update_theme_name(str(uuid4()), "Mine now")

        assert foreign.kind is missing.kind is ErrorKind.NOT_FOUND_OR_NOT_AUTHORIZED
        assert foreign.error == missing.error == THEME_NOT_FOUND

    def test_foreign_theme_is_not_modified(self, actions, actions_for, other_client, reader):
        foreign_id = actions_for(other_client).create_theme("Theirs").data["id"]

        actions.delete_theme(str(foreign_id))

        assert reader.latest_theme(other_client.id).theme_text == "Theirs"

    def test_malformed_id_is_a_validation_error(self, actions):
        result = actions.delete_theme("42")

        assert result.kind is ErrorKind.VALIDATION_FAILED
        assert result.field == "theme_id"
        assert result.error == "Invalid theme ID"

    def test_deleting_a_theme_deletes_its_hypotheses(self, actions, client_user, reader):
        theme_id = str(actions.create_theme("Delegation").data["id"])
        for text in ("Ask first", "Hand off the agenda", "Skip one status meeting"):
            assert actions.add_hypothesis(theme_id, text).success
        assert len(reader.list_hypotheses(client_user.id)) == 3

        assert actions.delete_theme(theme_id).success

        assert reader.list_hypotheses(client_user.id) == []
        assert reader.latest_theme(client_user.id) is None

    def test_deleting_a_theme_frees_a_slot(self, actions):
        ids = [actions.create_theme(name).data["id"] for name in ("A", "B", "C")]

        actions.delete_theme(str(ids[0]))

        assert actions.create_theme("D").success


# ---------------------------------------------------------------------------
# Hypotheses
# ---------------------------------------------------------------------------

class TestHypotheses:
    def test_hypothesis_is_linked_and_never_completed(self, actions, client_user, reader):
        theme_id = actions.create_theme("Delegation").data["id"]

        result = actions.add_hypothesis(str(theme_id), "  Ask before advising ")

        assert result.success
        [hypothesis] = reader.list_hypotheses(client_user.id)
        assert hypothesis.theme_id == theme_id
        assert hypothesis.action_text == "Ask before advising"
        assert hypothesis.is_completed is False

    def test_cannot_attach_to_someone_elses_theme(self, actions, actions_for, other_client, reader):
        foreign_id = actions_for(other_client).create_theme("Theirs").data["id"]

        result = actions.add_hypothesis(str(foreign_id), "Sneaky")

        assert result.error == THEME_NOT_FOUND
        assert reader.list_hypotheses(other_client.id) == []

    def test_update_and_delete_are_owner_scoped(self, actions, actions_for, other_client):
        theirs = actions_for(other_client)
        theme_id = theirs.create_theme("Theirs").data["id"]
        hypothesis_id = str(theirs.add_hypothesis(str(theme_id), "Theirs").data["id"])

        assert actions.update_hypothesis(hypothesis_id, "Mine").error == HYPOTHESIS_NOT_FOUND
        assert actions.delete_hypothesis(hypothesis_id).error == HYPOTHESIS_NOT_FOUND
        assert theirs.delete_hypothesis(hypothesis_id).success


# ---------------------------------------------------------------------------
# Weekly actions
# ---------------------------------------------------------------------------

class TestWeeklyActions:
    def test_batch_insert_returns_ids(self, actions, client_user, reader):
        result = actions.save_weekly_actions(["One", " Two "])

        assert result.success
        assert len(result.data["ids"]) == 2
        texts = {a.action_text for a in reader.list_weekly_actions(client_user.id)}
        assert texts == {"One", "Two"}

    def test_toggle_is_idempotent(self, actions, client_user, reader):
        """Setting the same value twice succeeds both times."""
        action_id = str(actions.add_weekly_action("Block focus time").data["id"])

        assert actions.toggle_action_complete(action_id, True).success
        assert actions.toggle_action_complete(action_id, True).success

        [action] = reader.list_weekly_actions(client_user.id)
        assert action.is_completed is True

    def test_completed_filter(self, actions, client_user, reader):
        done = str(actions.add_weekly_action("Done").data["id"])
        actions.add_weekly_action("Open")
        actions.toggle_action_complete(done, True)

        assert [a.action_text for a in reader.list_weekly_actions(client_user.id, True)] == ["Done"]
        assert [a.action_text for a in reader.list_weekly_actions(client_user.id, False)] == ["Open"]

    def test_toggle_requires_a_real_boolean(self, actions):
        action_id = str(actions.add_weekly_action("Block focus time").data["id"])

        result = actions.toggle_action_complete(action_id, "true")

        assert result.kind is ErrorKind.VALIDATION_FAILED
        assert result.field == "is_completed"

    def test_foreign_action_is_not_found(self, actions, actions_for, other_client):
        foreign_id = str(actions_for(other_client).add_weekly_action("Theirs").data["id"])

        assert actions.toggle_action_complete(foreign_id, True).error == ACTION_NOT_FOUND
        assert actions.update_weekly_action_text(foreign_id, "Mine").error == ACTION_NOT_FOUND
        assert actions.delete_weekly_action(foreign_id).error == ACTION_NOT_FOUND


# ---------------------------------------------------------------------------
# Onboarding
# ---------------------------------------------------------------------------

class TestOnboarding:
    def test_saves_everything_in_one_go(self, actions, client_user, reader):
        result = actions.submit_onboarding(
            "Delegation",
            progress_text="Starting out",
            actions=["Hand off one task"],
            receive_weekly_nudge=True,
        )

        assert result.success
        assert reader.latest_theme(client_user.id).id == result.data["theme_id"]
        assert [p.text for p in reader.list_progress(client_user.id)] == ["Starting out"]
        [action] = reader.list_weekly_actions(client_user.id)
        assert action.theme_id is None
        assert reader.get_settings(client_user.id).receive_weekly_nudge is True

    def test_counts_against_the_theme_limit(self, actions, client_user, reader):
        for name in ("A", "B", "C"):
            actions.create_theme(name)

        result = actions.submit_onboarding("D", actions=["Orphan"])

        assert result.kind is ErrorKind.LIMIT_EXCEEDED
        assert reader.list_weekly_actions(client_user.id) == []
