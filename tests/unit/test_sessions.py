"""
Unit tests for session token handling.
"""

from datetime import timedelta
from uuid import uuid4

import jwt
import pytest

from leadership_canvas.infrastructure.auth.sessions import SessionTokenCodec, TokenSessionAccessor

SECRET = "unit-test-secret-with-at-least-32-chars"


def make_codec(**overrides) -> SessionTokenCodec:
    options = {"secret": SECRET, "audience": "authenticated", "expires_minutes": 60}
    options.update(overrides)
    return SessionTokenCodec(**options)


class TestTokenSessionAccessor:
    def test_valid_token_resolves_identity(self):
        codec = make_codec()
        user_id = uuid4()

        accessor = TokenSessionAccessor(codec, codec.issue(user_id, "alex@example.com"))
        identity = accessor.current_identity()

        assert identity.user_id == user_id
        assert identity.email == "alex@example.com"

    def test_missing_token_is_anonymous(self):
        assert TokenSessionAccessor(make_codec(), None).current_identity() is None

    def test_garbage_token_is_anonymous(self):
        assert TokenSessionAccessor(make_codec(), "not.a.jwt").current_identity() is None

    def test_wrong_secret_is_anonymous(self):
        """Never raises, even on a bad signature."""
        token = make_codec(secret="another-secret-that-is-32-chars-long!").issue(uuid4())
        assert TokenSessionAccessor(make_codec(), token).current_identity() is None

    def test_expired_token_is_anonymous(self):
        token = make_codec(expires_minutes=-5).issue(uuid4())
        assert TokenSessionAccessor(make_codec(), token).current_identity() is None

    def test_wrong_audience_is_anonymous(self):
        token = make_codec(audience="someone-else").issue(uuid4())
        assert TokenSessionAccessor(make_codec(), token).current_identity() is None

    def test_non_uuid_subject_is_anonymous(self):
        token = jwt.encode(
            {"sub": "user-42", "aud": "authenticated", "exp": 4102444800},
            SECRET,
            algorithm="HS256",
        )
        assert TokenSessionAccessor(make_codec(), token).current_identity() is None

    def test_unconfigured_secret_rejects_every_token(self):
        """With no secret configured, even a well-formed token is anonymous."""
        token = make_codec().issue(uuid4())
        unconfigured = make_codec(secret="")

        assert unconfigured.has_secret is False
        assert TokenSessionAccessor(unconfigured, token).current_identity() is None
        with pytest.raises(jwt.InvalidTokenError):
            unconfigured.decode(token)


class TestRefresh:
    def test_token_near_expiry_needs_refresh(self):
        codec = make_codec(expires_minutes=5)
        accessor = TokenSessionAccessor(
            codec, codec.issue(uuid4()), refresh_window=timedelta(minutes=10)
        )
        assert accessor.needs_refresh()

    def test_fresh_token_does_not_need_refresh(self):
        codec = make_codec(expires_minutes=60)
        accessor = TokenSessionAccessor(
            codec, codec.issue(uuid4()), refresh_window=timedelta(minutes=10)
        )
        assert not accessor.needs_refresh()

    def test_refreshed_token_keeps_identity(self):
        codec = make_codec(expires_minutes=5)
        user_id = uuid4()
        accessor = TokenSessionAccessor(codec, codec.issue(user_id, "alex@example.com"))

        refreshed = TokenSessionAccessor(make_codec(), accessor.refreshed_token())

        assert refreshed.current_identity().user_id == user_id

    def test_anonymous_session_has_nothing_to_refresh(self):
        accessor = TokenSessionAccessor(make_codec(), None)
        assert not accessor.needs_refresh()
        assert accessor.refreshed_token() is None
