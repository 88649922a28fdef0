"""
Domain models for the leadership canvas.

These models represent the core business concepts. They have no dependencies
on external frameworks, databases, or APIs. Repositories translate database
rows into these objects; the API layer translates them into JSON.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4


MAX_THEMES_PER_USER = 3
AUTOMATED_NUDGE_PREFIX = "[Automated Weekly] "


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(Enum):
    """
    The two kinds of account.

    Fixed when the account is created. Nothing a user submits can change it.
    """
    CLIENT = "client"
    COACH = "coach"


class ThemeOrdering(Enum):
    """Home screens show the newest theme first; the canvas uses theme_order."""
    RECENT = "recent"
    EXPLICIT = "explicit"


@dataclass(frozen=True)
class Identity:
    """
    Who is calling, as vouched for by the session token.

    Frozen because an identity is a value: it is resolved once per request
    and never edited.
    """
    user_id: UUID
    email: Optional[str] = None


@dataclass
class User:
    """A client or coach account."""
    id: UUID
    role: UserRole
    name: str
    email: str
    phone: Optional[str] = None
    leadership_purpose: Optional[str] = None
    padlet_url: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    @property
    def is_coach(self) -> bool:
        return self.role is UserRole.COACH

    @property
    def has_phone(self) -> bool:
        return bool(self.phone and self.phone.strip())


@dataclass
class DevelopmentTheme:
    """
    A leadership focus area a client is working on.

    A client holds at most three at once. theme_order is a display hint
    (1..3), not a key.
    """
    user_id: UUID
    theme_text: str
    theme_order: int = 1
    success_description: Optional[str] = None
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        if not self.theme_text.strip():
            raise ValueError("Theme text cannot be empty")
        if not 1 <= self.theme_order <= MAX_THEMES_PER_USER:
            raise ValueError("Theme order must be between 1 and 3")


@dataclass
class WeeklyAction:
    """
    A small experiment the client commits to.

    The canvas flow calls these hypotheses and always links them to a theme.
    Older rows from the weekly-action flow have no theme and use the
    completion checkbox; canvas rows keep is_completed at False.
    """
    user_id: UUID
    action_text: str
    theme_id: Optional[UUID] = None
    is_completed: bool = False
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)

    @property
    def is_hypothesis(self) -> bool:
        return self.theme_id is not None


Hypothesis = WeeklyAction


@dataclass
class ProgressEntry:
    """A free-text progress note. Append-only."""
    user_id: UUID
    text: str
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class UserSettings:
    """Per-user preferences, one row per user."""
    user_id: UUID
    receive_weekly_nudge: bool = False


@dataclass
class NudgeSent:
    """
    An immutable record that a coach nudged a client.

    Owned by neither party. There is no update or delete.
    """
    coach_id: UUID
    client_id: UUID
    message_text: str
    id: UUID = field(default_factory=uuid4)
    sent_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class ClientContact:
    """The slice of a user a coach needs to deliver a nudge."""
    id: UUID
    name: str
    role: UserRole
    phone: Optional[str] = None


# ---------------------------------------------------------------------------
# Read models (screen summaries)
# ---------------------------------------------------------------------------

@dataclass
class ActionStats:
    total: int = 0
    completed: int = 0

    @property
    def open(self) -> int:
        return self.total - self.completed

    @classmethod
    def from_actions(cls, actions: list[WeeklyAction]) -> "ActionStats":
        return cls(
            total=len(actions),
            completed=sum(1 for action in actions if action.is_completed),
        )


@dataclass
class ThemeWithHypotheses:
    theme: DevelopmentTheme
    hypotheses: list[WeeklyAction] = field(default_factory=list)


@dataclass
class HomeSummary:
    """
    Everything the legacy client home screen renders.

    themes are newest first; the current theme is the most recent one.
    """
    user: User
    themes: list[DevelopmentTheme] = field(default_factory=list)
    progress_entries: list[ProgressEntry] = field(default_factory=list)
    weekly_actions: list[WeeklyAction] = field(default_factory=list)
    settings: Optional[UserSettings] = None

    @property
    def current_theme(self) -> Optional[DevelopmentTheme]:
        return self.themes[0] if self.themes else None


@dataclass
class CanvasSummary:
    """Everything the canvas screen renders, themes in explicit order."""
    user: User
    themes: list[ThemeWithHypotheses] = field(default_factory=list)
    settings: Optional[UserSettings] = None


@dataclass
class ClientSummary:
    """One row of the coach dashboard."""
    user: User
    current_theme: Optional[DevelopmentTheme] = None
    latest_progress: Optional[ProgressEntry] = None
    weekly_actions: list[WeeklyAction] = field(default_factory=list)

    @property
    def action_stats(self) -> ActionStats:
        return ActionStats.from_actions(self.weekly_actions)


@dataclass
class ClientDetail:
    """The coach's view of one client: summary, canvas and recent nudges."""
    summary: ClientSummary
    canvas: CanvasSummary
    recent_nudges: list[NudgeSent] = field(default_factory=list)


@dataclass
class DashboardStats:
    total_clients: int = 0
    total_open_actions: int = 0
    total_completed_actions: int = 0
    clients_with_no_theme: int = 0

    @classmethod
    def from_summaries(cls, summaries: list[ClientSummary]) -> "DashboardStats":
        stats = cls(total_clients=len(summaries))
        for summary in summaries:
            action_stats = summary.action_stats
            stats.total_open_actions += action_stats.open
            stats.total_completed_actions += action_stats.completed
            if summary.current_theme is None:
                stats.clients_with_no_theme += 1
        return stats


@dataclass(frozen=True)
class DeliveryOutcome:
    """What happened when a recorded nudge was forwarded."""
    sent: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class NudgeReceipt:
    nudge_id: UUID
    sent_at: datetime
    webhook_sent: bool = False
    webhook_error: Optional[str] = None


@dataclass
class WeeklyNudgeCandidate:
    """A client opted into the weekly nudge, with what to remind them of."""
    client_id: UUID
    name: str
    phone: str
    current_theme: Optional[str] = None
    open_actions: list[str] = field(default_factory=list)

    @property
    def open_actions_count(self) -> int:
        return len(self.open_actions)


@dataclass
class WeeklyNudgeListing:
    clients: list[WeeklyNudgeCandidate] = field(default_factory=list)
    generated_at: datetime = field(default_factory=utcnow)

    @property
    def total_count(self) -> int:
        return len(self.clients)
