"""
Authentication and role gates.

A PrivilegedGrant is the only key the privileged store accepts. Grants can
only be minted here, after the caller's role (or the automation secret) has
been verified, so the cross-user path is unreachable without passing a gate.
"""

import hmac
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from .errors import (
    ActionError,
    BadRequest,
    ErrorKind,
    Forbidden,
    NotFoundOrNotAuthorized,
    Unauthenticated,
)
from .models import Identity, UserRole

if TYPE_CHECKING:
    from .ports import RoleDirectory, SessionAccessor


logger = logging.getLogger(__name__)

_ISSUER = object()


class GrantScope(Enum):
    COACH = "coach"
    AUTOMATION = "automation"


@dataclass(frozen=True)
class PrivilegedGrant:
    """Proof that a role gate was passed. Not constructible outside this module."""
    scope: GrantScope
    actor_id: Optional[UUID] = None
    _issuer: object = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self._issuer is not _ISSUER:
            raise PermissionError("Privileged grants are issued by the access gate only")


class AutomationNotConfigured(ActionError):
    """The scheduled endpoints have no shared secret to compare against."""
    kind = ErrorKind.UNEXPECTED

    def __init__(self) -> None:
        super().__init__("API not configured")


def require_identity(accessor: "SessionAccessor", message: str = "Not authenticated") -> Identity:
    identity = accessor.current_identity()
    if identity is None:
        raise Unauthenticated(message)
    return identity


class RoleGate:
    """
    Role checks backed by the single-column role directory.

    Any failure to resolve a role is a denial.
    """

    def __init__(self, directory: "RoleDirectory") -> None:
        self._directory = directory

    def role_of(self, user_id: UUID) -> Optional[UserRole]:
        try:
            return self._directory.role_of(user_id)
        except Exception as e:
            logger.warning(
                "Role lookup failed, denying",
                extra={"user_id": str(user_id), "error": str(e)},
            )
            return None

    def authorize_coach(self, identity: Identity, message: str) -> PrivilegedGrant:
        if self.role_of(identity.user_id) is not UserRole.COACH:
            logger.info("Coach-only operation refused", extra={"user_id": str(identity.user_id)})
            raise Forbidden(message)
        return PrivilegedGrant(scope=GrantScope.COACH, actor_id=identity.user_id, _issuer=_ISSUER)

    def require_counterpart(
        self,
        target_id: UUID,
        expected: UserRole,
        not_found_message: str,
        mismatch_message: str,
    ) -> None:
        role = self.role_of(target_id)
        if role is None:
            raise NotFoundOrNotAuthorized(not_found_message)
        if role is not expected:
            raise BadRequest(mismatch_message)


def authorize_automation(
    expected_secret: Optional[str],
    authorization_header: Optional[str],
) -> PrivilegedGrant:
    """
    Check a static bearer secret for the scheduled endpoints.

    The comparison is an exact match of the whole secret.
    """
    if not expected_secret:
        logger.error("Automation secret is not configured")
        raise AutomationNotConfigured()
    if not authorization_header or not authorization_header.startswith("Bearer "):
        raise Unauthenticated("Missing authorization header")

    presented = authorization_header[len("Bearer "):]
    if not hmac.compare_digest(presented.encode(), expected_secret.encode()):
        logger.warning("Invalid automation secret presented")
        raise Unauthenticated("Invalid API secret")

    return PrivilegedGrant(scope=GrantScope.AUTOMATION, _issuer=_ISSUER)
