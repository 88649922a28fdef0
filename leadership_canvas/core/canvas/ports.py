"""
Ports the canvas core depends on.

The core never imports SQLAlchemy, PyJWT or httpx. Infrastructure adapters
satisfy these protocols, and tests can substitute simple fakes.

Storage is split by capability. An owner-scoped store can only touch rows
owned by the caller; the role directory can only read a role; the
privileged store can cross ownership boundaries but refuses to act
without a grant issued by the access gate.
"""

from typing import Any, Optional, Protocol
from uuid import UUID

from .access import PrivilegedGrant
from .models import (
    ClientContact,
    DeliveryOutcome,
    DevelopmentTheme,
    Identity,
    NudgeSent,
    ProgressEntry,
    ThemeOrdering,
    User,
    UserRole,
    UserSettings,
    WeeklyAction,
    WeeklyNudgeCandidate,
)


class SessionAccessor(Protocol):
    def current_identity(self) -> Optional[Identity]:
        """Return the caller, or None. Must never raise."""
        ...


class RoleDirectory(Protocol):
    def role_of(self, user_id: UUID) -> Optional[UserRole]: ...


class OwnerScopedStore(Protocol):
    """Every method filters on the owner; writes return affected row counts."""

    def get_user(self, owner_id: UUID) -> Optional[User]: ...
    def create_account(self, user: User, settings: UserSettings) -> bool: ...
    def update_leadership_purpose(self, owner_id: UUID, purpose: Optional[str]) -> int: ...

    def count_themes(self, owner_id: UUID) -> int: ...
    def insert_theme(self, theme: DevelopmentTheme) -> None: ...
    def theme_exists(self, owner_id: UUID, theme_id: UUID) -> bool: ...
    def update_theme_text(self, owner_id: UUID, theme_id: UUID, theme_text: str) -> int: ...
    def update_success_description(
        self, owner_id: UUID, theme_id: UUID, description: Optional[str]
    ) -> int: ...
    def delete_theme(self, owner_id: UUID, theme_id: UUID) -> int: ...

    def insert_actions(self, actions: list[WeeklyAction]) -> None: ...
    def update_action_text(self, owner_id: UUID, action_id: UUID, action_text: str) -> int: ...
    def set_action_completed(self, owner_id: UUID, action_id: UUID, is_completed: bool) -> int: ...
    def delete_action(self, owner_id: UUID, action_id: UUID) -> int: ...

    def insert_progress(self, entry: ProgressEntry) -> None: ...
    def update_nudge_preference(self, owner_id: UUID, receive_weekly_nudge: bool) -> int: ...

    def apply_onboarding(
        self,
        theme: DevelopmentTheme,
        progress: Optional[ProgressEntry],
        actions: list[WeeklyAction],
        receive_weekly_nudge: Optional[bool],
    ) -> None: ...


class PrivilegedStore(Protocol):
    """Cross-user access. Each call must present a PrivilegedGrant."""

    def get_contact(self, grant: PrivilegedGrant, user_id: UUID) -> Optional[ClientContact]: ...
    def set_padlet_url(self, grant: PrivilegedGrant, client_id: UUID, padlet_url: Optional[str]) -> int: ...
    def insert_nudge(self, grant: PrivilegedGrant, nudge: NudgeSent) -> None: ...
    def first_coach_id(self, grant: PrivilegedGrant) -> Optional[UUID]: ...
    def weekly_nudge_candidates(self, grant: PrivilegedGrant) -> list[WeeklyNudgeCandidate]: ...


class CanvasReader(Protocol):
    """Read-only queries behind the summary screens. Safe to call from threads."""

    def get_user(self, user_id: UUID) -> Optional[User]: ...
    def list_themes(self, user_id: UUID, ordering: ThemeOrdering) -> list[DevelopmentTheme]: ...
    def latest_theme(self, user_id: UUID) -> Optional[DevelopmentTheme]: ...
    def list_hypotheses(self, user_id: UUID) -> list[WeeklyAction]: ...
    def list_progress(self, user_id: UUID, limit: Optional[int] = None) -> list[ProgressEntry]: ...
    def list_weekly_actions(
        self, user_id: UUID, is_completed: Optional[bool] = None
    ) -> list[WeeklyAction]: ...
    def get_settings(self, user_id: UUID) -> Optional[UserSettings]: ...
    def list_clients(self) -> list[User]: ...
    def nudges_for_client(self, client_id: UUID, limit: Optional[int] = None) -> list[NudgeSent]: ...
    def nudges_by_coach(self, coach_id: UUID, limit: Optional[int] = None) -> list[NudgeSent]: ...


class NudgeDelivery(Protocol):
    async def deliver(self, payload: dict[str, Any]) -> DeliveryOutcome:
        """Single attempt. Failures are reported in the outcome, not raised."""
        ...
