"""
Session tokens.

The hosted auth provider issues HS256 JWTs (sub = user id, email, aud,
exp). We only verify them; sign-in itself happens elsewhere. The codec can
also re-issue a token so a browser session close to expiry is refreshed
transparently on the next request.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import UUID

import jwt

from ...config.settings import Settings
from ...core.canvas.models import Identity


logger = logging.getLogger(__name__)


class SessionTokenCodec:
    """Encode and decode session JWTs with one shared secret."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        audience: Optional[str] = "authenticated",
        expires_minutes: int = 60,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._audience = audience or None
        self._expires = timedelta(minutes=expires_minutes)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SessionTokenCodec":
        return cls(
            secret=settings.session_jwt_secret,
            algorithm=settings.session_jwt_algorithm,
            audience=settings.session_jwt_audience,
            expires_minutes=settings.session_expires_minutes,
        )

    @property
    def has_secret(self) -> bool:
        return bool(self._secret)

    def issue(self, user_id: UUID, email: Optional[str] = None) -> str:
        now = datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + self._expires,
        }
        if email:
            payload["email"] = email
        if self._audience:
            payload["aud"] = self._audience
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def decode(self, token: str) -> dict[str, Any]:
        """
        Verify signature, expiry and audience.

        Raises:
            jwt.InvalidTokenError: If the token fails any check, or no
                secret is configured
        """
        if not self._secret:
            raise jwt.InvalidTokenError("Session secret is not configured")
        options = {"require": ["sub", "exp"]}
        if self._audience is None:
            options["verify_aud"] = False
        return jwt.decode(
            token,
            self._secret,
            algorithms=[self._algorithm],
            audience=self._audience,
            options=options,
        )


class TokenSessionAccessor:
    """
    Resolves the caller from one request's session token.

    Implements the SessionAccessor protocol. Anything wrong with the token
    (absent, malformed, expired, bad signature, no secret configured)
    yields None; this class never raises.
    """

    def __init__(
        self,
        codec: SessionTokenCodec,
        token: Optional[str],
        refresh_window: timedelta = timedelta(minutes=10),
    ) -> None:
        self._codec = codec
        self._token = token
        self._refresh_window = refresh_window
        self._claims: Optional[dict[str, Any]] = None
        self._resolved = False

    def _decoded(self) -> Optional[dict[str, Any]]:
        if not self._resolved:
            self._resolved = True
            self._claims = self._decode()
        return self._claims

    def _decode(self) -> Optional[dict[str, Any]]:
        if not self._token:
            return None
        if not self._codec.has_secret:
            logger.warning("Session secret is not configured, rejecting session")
            return None
        try:
            return self._codec.decode(self._token)
        except jwt.ExpiredSignatureError:
            logger.info("Session token expired")
        except jwt.InvalidTokenError as e:
            logger.warning("Invalid session token", extra={"error": str(e)})
        except Exception as e:
            logger.error("Session token could not be decoded", extra={"error": str(e)})
        return None

    def current_identity(self) -> Optional[Identity]:
        claims = self._decoded()
        if claims is None:
            return None
        try:
            user_id = UUID(str(claims["sub"]))
        except (KeyError, ValueError):
            logger.warning("Session token subject is not a user id")
            return None
        return Identity(user_id=user_id, email=claims.get("email"))

    def needs_refresh(self) -> bool:
        claims = self._decoded()
        if claims is None:
            return False
        expires_at = datetime.fromtimestamp(claims["exp"], tz=timezone.utc)
        return expires_at - datetime.now(timezone.utc) <= self._refresh_window

    def refreshed_token(self) -> Optional[str]:
        """A fresh token for the same identity, or None if there is none."""
        identity = self.current_identity()
        if identity is None:
            return None
        return self._codec.issue(identity.user_id, identity.email)
