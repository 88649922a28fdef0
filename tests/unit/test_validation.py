"""
Unit tests for input schemas.

Validation runs before identity or storage, so these need neither.
"""

from uuid import uuid4

import pytest

from leadership_canvas.core.canvas.errors import ValidationFailed
from leadership_canvas.core.canvas.validation import (
    MAX_AUTOMATED_NUDGE_LENGTH,
    AccountSetupInput,
    AutomatedNudgeInput,
    CreateThemeInput,
    OnboardingInput,
    PadletUrlInput,
    SendNudgeInput,
    SuccessDescriptionInput,
    ThemeRef,
    ToggleActionInput,
    WeeklyActionBatchInput,
    validate,
)


def rejection(schema, **data) -> ValidationFailed:
    with pytest.raises(ValidationFailed) as exc_info:
        validate(schema, **data)
    return exc_info.value


class TestIdentifiers:
    @pytest.mark.parametrize("bad_id", ["", "42", "not-a-uuid", None])
    def test_malformed_theme_id_is_rejected(self, bad_id):
        error = rejection(ThemeRef, theme_id=bad_id)
        assert error.field == "theme_id"
        assert error.message == "Invalid theme ID"

    def test_uppercase_uuid_is_accepted(self):
        theme_id = uuid4()
        assert validate(ThemeRef, theme_id=str(theme_id).upper()).theme_id == theme_id


class TestText:
    def test_text_is_trimmed_before_storage(self):
        data = validate(CreateThemeInput, theme_text="  Delegation  ")
        assert data.theme_text == "Delegation"

    def test_length_is_checked_after_trimming(self):
        """Surrounding whitespace does not count against the limit."""
        padded = "   " + "x" * 100 + "   "
        assert validate(CreateThemeInput, theme_text=padded).theme_text == "x" * 100

    def test_too_long_theme_name(self):
        error = rejection(CreateThemeInput, theme_text="x" * 101)
        assert error.field == "theme_text"
        assert error.message == "Theme name must be less than 100 characters"

    def test_whitespace_only_is_required_error(self):
        error = rejection(CreateThemeInput, theme_text="   ")
        assert error.message == "Theme name is required"

    def test_empty_description_clears_it(self):
        data = validate(SuccessDescriptionInput, theme_id=str(uuid4()), description="  ")
        assert data.description is None

    def test_setup_requires_name(self):
        error = rejection(AccountSetupInput, name="")
        assert error.field == "name"
        assert error.message == "Name is required"

    def test_setup_does_not_accept_a_role(self):
        """Role is never caller-supplied."""
        error = rejection(AccountSetupInput, name="Alex", role="coach")
        assert error.field == "role"


class TestBatches:
    def test_empty_batch_is_rejected(self):
        error = rejection(WeeklyActionBatchInput, actions=[])
        assert error.message == "At least one action is required"

    def test_more_than_ten_actions_is_rejected(self):
        error = rejection(WeeklyActionBatchInput, actions=[f"a{i}" for i in range(11)])
        assert error.message == "Maximum 10 actions allowed"

    def test_blank_entry_in_batch_names_its_position(self):
        error = rejection(WeeklyActionBatchInput, actions=["fine", "  "])
        assert error.field == "actions.1"
        assert error.message == "Action text is required"

    def test_onboarding_actions_default_to_empty(self):
        data = validate(OnboardingInput, theme_text="Delegation", actions=None)
        assert data.actions == []


class TestFlags:
    def test_completion_flag_must_be_boolean(self):
        """Strings like "yes" are not booleans."""
        error = rejection(ToggleActionInput, action_id=str(uuid4()), is_completed="yes")
        assert error.field == "is_completed"

    def test_missing_flag_reports_field(self):
        error = rejection(ToggleActionInput, action_id=str(uuid4()))
        assert error.message == "is_completed is required"


class TestPadletUrl:
    @pytest.mark.parametrize("url", ["http://padlet.com/board", "not a url", "ftp://padlet.com/x"])
    def test_non_https_is_rejected(self, url):
        error = rejection(PadletUrlInput, client_id=str(uuid4()), padlet_url=url)
        assert error.field == "padlet_url"
        assert error.message == "Please enter a valid HTTPS URL"

    def test_https_is_kept_as_entered(self):
        url = "https://padlet.com/coach/board-abc"
        data = validate(PadletUrlInput, client_id=str(uuid4()), padlet_url=f"  {url} ")
        assert data.padlet_url == url

    def test_empty_url_removes_the_link(self):
        data = validate(PadletUrlInput, client_id=str(uuid4()), padlet_url="")
        assert data.padlet_url is None

    def test_overlong_url_is_rejected(self):
        url = "https://padlet.com/" + "x" * 2048
        error = rejection(PadletUrlInput, client_id=str(uuid4()), padlet_url=url)
        assert error.message == "URL is too long (max 2048 characters)"


class TestNudgeMessages:
    def test_sms_limit(self):
        error = rejection(SendNudgeInput, client_id=str(uuid4()), message_text="x" * 321)
        assert error.message == "Message must be less than 320 characters (SMS limit)"

    def test_exactly_320_is_allowed(self):
        data = validate(SendNudgeInput, client_id=str(uuid4()), message_text="x" * 320)
        assert len(data.message_text) == 320

    def test_automated_text_leaves_room_for_prefix(self):
        ok = validate(
            AutomatedNudgeInput,
            client_id=str(uuid4()),
            message_text="x" * MAX_AUTOMATED_NUDGE_LENGTH,
        )
        assert len(ok.message_text) == MAX_AUTOMATED_NUDGE_LENGTH

        rejection(
            AutomatedNudgeInput,
            client_id=str(uuid4()),
            message_text="x" * (MAX_AUTOMATED_NUDGE_LENGTH + 1),
        )
