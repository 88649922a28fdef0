"""
Response models shared by the read endpoints.

Each model mirrors a domain object and knows how to build itself from
one; routes never serialize dataclasses directly.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from ..core.canvas.models import (
    ActionStats,
    CanvasSummary,
    ClientSummary,
    DashboardStats,
    DevelopmentTheme,
    NudgeSent,
    ProgressEntry,
    User,
    UserSettings,
    WeeklyAction,
)


class UserOut(BaseModel):
    id: UUID
    role: str
    name: str
    email: str
    phone: Optional[str] = None
    leadership_purpose: Optional[str] = None
    padlet_url: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> "UserOut":
        return cls(
            id=user.id,
            role=user.role.value,
            name=user.name,
            email=user.email,
            phone=user.phone,
            leadership_purpose=user.leadership_purpose,
            padlet_url=user.padlet_url,
            created_at=user.created_at,
        )


class SettingsOut(BaseModel):
    receive_weekly_nudge: bool = False

    @classmethod
    def from_domain(cls, settings: Optional[UserSettings]) -> Optional["SettingsOut"]:
        if settings is None:
            return None
        return cls(receive_weekly_nudge=settings.receive_weekly_nudge)


class ThemeOut(BaseModel):
    id: UUID
    theme_text: str
    success_description: Optional[str] = None
    theme_order: int
    created_at: datetime

    @classmethod
    def from_domain(cls, theme: Optional[DevelopmentTheme]) -> Optional["ThemeOut"]:
        if theme is None:
            return None
        return cls(
            id=theme.id,
            theme_text=theme.theme_text,
            success_description=theme.success_description,
            theme_order=theme.theme_order,
            created_at=theme.created_at,
        )


class ActionOut(BaseModel):
    id: UUID
    action_text: str
    theme_id: Optional[UUID] = None
    is_completed: bool = False
    created_at: datetime

    @classmethod
    def from_domain(cls, action: WeeklyAction) -> "ActionOut":
        return cls(
            id=action.id,
            action_text=action.action_text,
            theme_id=action.theme_id,
            is_completed=action.is_completed,
            created_at=action.created_at,
        )


class ProgressOut(BaseModel):
    id: UUID
    text: str
    created_at: datetime

    @classmethod
    def from_domain(cls, entry: Optional[ProgressEntry]) -> Optional["ProgressOut"]:
        if entry is None:
            return None
        return cls(id=entry.id, text=entry.text, created_at=entry.created_at)


class ActionStatsOut(BaseModel):
    total: int = 0
    completed: int = 0
    open: int = 0

    @classmethod
    def from_domain(cls, stats: ActionStats) -> "ActionStatsOut":
        return cls(total=stats.total, completed=stats.completed, open=stats.open)


class NudgeOut(BaseModel):
    id: UUID
    coach_id: UUID
    client_id: UUID
    message_text: str
    sent_at: datetime

    @classmethod
    def from_domain(cls, nudge: NudgeSent) -> "NudgeOut":
        return cls(
            id=nudge.id,
            coach_id=nudge.coach_id,
            client_id=nudge.client_id,
            message_text=nudge.message_text,
            sent_at=nudge.sent_at,
        )


class ThemeWithHypothesesOut(ThemeOut):
    hypotheses: list[ActionOut] = Field(default_factory=list)


class CanvasOut(BaseModel):
    user: UserOut
    themes: list[ThemeWithHypothesesOut]
    settings: Optional[SettingsOut] = None

    @classmethod
    def from_domain(cls, summary: CanvasSummary) -> "CanvasOut":
        return cls(
            user=UserOut.from_domain(summary.user),
            themes=[
                ThemeWithHypothesesOut(
                    **ThemeOut.from_domain(item.theme).model_dump(),
                    hypotheses=[ActionOut.from_domain(h) for h in item.hypotheses],
                )
                for item in summary.themes
            ],
            settings=SettingsOut.from_domain(summary.settings),
        )


class ClientSummaryOut(BaseModel):
    user: UserOut
    current_theme: Optional[ThemeOut] = None
    latest_progress: Optional[ProgressOut] = None
    weekly_actions: list[ActionOut]
    action_stats: ActionStatsOut

    @classmethod
    def from_domain(cls, summary: ClientSummary) -> "ClientSummaryOut":
        return cls(
            user=UserOut.from_domain(summary.user),
            current_theme=ThemeOut.from_domain(summary.current_theme),
            latest_progress=ProgressOut.from_domain(summary.latest_progress),
            weekly_actions=[ActionOut.from_domain(a) for a in summary.weekly_actions],
            action_stats=ActionStatsOut.from_domain(summary.action_stats),
        )


class DashboardStatsOut(BaseModel):
    total_clients: int
    total_open_actions: int
    total_completed_actions: int
    clients_with_no_theme: int

    @classmethod
    def from_domain(cls, stats: DashboardStats) -> "DashboardStatsOut":
        return cls(
            total_clients=stats.total_clients,
            total_open_actions=stats.total_open_actions,
            total_completed_actions=stats.total_completed_actions,
            clients_with_no_theme=stats.clients_with_no_theme,
        )
