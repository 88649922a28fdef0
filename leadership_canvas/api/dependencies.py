"""
FastAPI dependency injection.

Dependencies provide instances of services, repositories, and
configuration to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be overridden in tests (app.dependency_overrides)
- Resource lifecycle (database sessions) is managed in one place

Each storage capability gets its own provider so a route only ever holds
the narrowest handle it needs.
"""

import logging
from datetime import timedelta
from typing import Annotated, Generator, Optional

from fastapi import Depends, Header, Request, Response, status
from sqlalchemy.orm import Session

from ..config.settings import Settings, get_settings
from ..core.canvas.access import (
    AutomationNotConfigured,
    PrivilegedGrant,
    RoleGate,
    authorize_automation,
)
from ..core.canvas.actions import CanvasActions
from ..core.canvas.aggregator import ClientDataAggregator
from ..core.canvas.coach_actions import AutomationActions, CoachActions
from ..core.canvas.errors import Unauthenticated
from ..core.canvas.models import Identity, UserRole
from ..infrastructure.auth.sessions import SessionTokenCodec, TokenSessionAccessor
from ..infrastructure.database.client import Database
from ..infrastructure.database.repositories import (
    CanvasReadRepository,
    OwnerScopedRepository,
    PrivilegedRepository,
    RoleLookupRepository,
)
from ..infrastructure.webhook.client import NudgeWebhookClient
from .results import ApiError

logger = logging.getLogger(__name__)

# One Database (engine + pool) per URL, shared across requests
_databases: dict[str, Database] = {}


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

def get_database(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Database:
    database = _databases.get(settings.database_url)
    if database is None:
        database = Database.from_settings(settings)
        _databases[settings.database_url] = database
        logger.info("Created database engine for session")
    return database


def get_db_session(
    database: Annotated[Database, Depends(get_database)],
) -> Generator[Session, None, None]:
    """
    Provide a request-scoped SQLAlchemy session.

    This is a generator function so the session is closed after the
    response is sent, even if the handler raised.
    """
    with database.session() as session:
        yield session


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):].strip() or None
    return None


def get_session_accessor(
    request: Request,
    response: Response,
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenSessionAccessor:
    """
    Resolve the session token from the Authorization header or the cookie.

    Cookie sessions close to expiry get a fresh token set on the response,
    so browser clients stay signed in without a round trip to the auth
    provider.
    """
    codec = SessionTokenCodec.from_settings(settings)
    header_token = _bearer_token(request.headers.get("authorization"))
    cookie_token = request.cookies.get(settings.session_cookie_name)

    accessor = TokenSessionAccessor(
        codec,
        header_token or cookie_token,
        refresh_window=timedelta(minutes=settings.session_refresh_window_minutes),
    )

    if header_token is None and cookie_token and accessor.needs_refresh():
        refreshed = accessor.refreshed_token()
        if refreshed:
            response.set_cookie(
                settings.session_cookie_name,
                refreshed,
                max_age=settings.session_expires_minutes * 60,
                httponly=True,
                samesite="lax",
                secure=request.url.scheme == "https",
            )
            logger.debug("Refreshed session cookie")

    return accessor


def require_identity(
    accessor: Annotated[TokenSessionAccessor, Depends(get_session_accessor)],
) -> Identity:
    """For read endpoints. Mutations let the core report authentication."""
    identity = accessor.current_identity()
    if identity is None:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Unauthorized", Unauthenticated().message)
    return identity


def get_role_gate(
    session: Annotated[Session, Depends(get_db_session)],
) -> RoleGate:
    return RoleGate(RoleLookupRepository(session))


def require_coach(
    identity: Annotated[Identity, Depends(require_identity)],
    gate: Annotated[RoleGate, Depends(get_role_gate)],
) -> Identity:
    if gate.role_of(identity.user_id) is not UserRole.COACH:
        logger.info("Coach view refused", extra={"user_id": str(identity.user_id)})
        raise ApiError(status.HTTP_403_FORBIDDEN, "Forbidden", "Only coaches can view client data")
    return identity


def require_automation_grant(
    settings: Annotated[Settings, Depends(get_settings)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> PrivilegedGrant:
    """
    Authenticate the weekly scheduler by its shared bearer secret.

    The secret is read from settings on every call.
    """
    try:
        return authorize_automation(settings.automation_api_secret, authorization)
    except AutomationNotConfigured as e:
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Server Configuration Error", e.message
        )
    except Unauthenticated as e:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Unauthorized", e.message)


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_nudge_delivery(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Optional[NudgeWebhookClient]:
    """The webhook client, or None when no URL is configured (record-only)."""
    if not settings.nudge_webhook_url:
        return None
    return NudgeWebhookClient(
        settings.nudge_webhook_url,
        timeout=settings.nudge_webhook_timeout_seconds,
    )


def get_canvas_actions(
    accessor: Annotated[TokenSessionAccessor, Depends(get_session_accessor)],
    session: Annotated[Session, Depends(get_db_session)],
) -> CanvasActions:
    return CanvasActions(accessor, OwnerScopedRepository(session))


def get_coach_actions(
    accessor: Annotated[TokenSessionAccessor, Depends(get_session_accessor)],
    gate: Annotated[RoleGate, Depends(get_role_gate)],
    session: Annotated[Session, Depends(get_db_session)],
    delivery: Annotated[Optional[NudgeWebhookClient], Depends(get_nudge_delivery)],
) -> CoachActions:
    return CoachActions(accessor, gate, PrivilegedRepository(session), delivery)


def get_automation_actions(
    gate: Annotated[RoleGate, Depends(get_role_gate)],
    session: Annotated[Session, Depends(get_db_session)],
) -> AutomationActions:
    return AutomationActions(gate, PrivilegedRepository(session))


def get_aggregator(
    database: Annotated[Database, Depends(get_database)],
) -> ClientDataAggregator:
    return ClientDataAggregator(CanvasReadRepository(database.session_factory))


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
SettingsDep = Annotated[Settings, Depends(get_settings)]
DatabaseDep = Annotated[Database, Depends(get_database)]
CurrentIdentity = Annotated[Identity, Depends(require_identity)]
CoachIdentity = Annotated[Identity, Depends(require_coach)]
AutomationGrant = Annotated[PrivilegedGrant, Depends(require_automation_grant)]
CanvasActionsDep = Annotated[CanvasActions, Depends(get_canvas_actions)]
CoachActionsDep = Annotated[CoachActions, Depends(get_coach_actions)]
AutomationActionsDep = Annotated[AutomationActions, Depends(get_automation_actions)]
AggregatorDep = Annotated[ClientDataAggregator, Depends(get_aggregator)]
