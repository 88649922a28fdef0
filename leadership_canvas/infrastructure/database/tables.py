"""
ORM table definitions.

Rows know how to turn themselves into domain models; nothing outside the
infrastructure layer ever sees a row object.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ...core.canvas.models import (
    DevelopmentTheme,
    NudgeSent,
    ProgressEntry,
    User,
    UserRole,
    UserSettings,
    WeeklyAction,
    utcnow,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }


def aware(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything we store is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class UserRow(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('client', 'coach')", name="ck_users_role"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True)
    role: Mapped[str] = mapped_column(String(16), default=UserRole.CLIENT.value)
    name: Mapped[str] = mapped_column(String(100))
    email: Mapped[str] = mapped_column(String(320), index=True)
    phone: Mapped[Optional[str]] = mapped_column(String(32))
    leadership_purpose: Mapped[Optional[str]] = mapped_column(String(500))
    padlet_url: Mapped[Optional[str]] = mapped_column(String(2048))
    created_at: Mapped[datetime] = mapped_column(default=utcnow)

    @classmethod
    def from_domain(cls, user: User) -> "UserRow":
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

    def to_domain(self) -> User:
        return User(
            id=self.id,
            role=UserRole(self.role),
            name=self.name,
            email=self.email,
            phone=self.phone,
            leadership_purpose=self.leadership_purpose,
            padlet_url=self.padlet_url,
            created_at=aware(self.created_at),
        )


class DevelopmentThemeRow(Base):
    __tablename__ = "development_themes"
    __table_args__ = (
        CheckConstraint("theme_order BETWEEN 1 AND 3", name="ck_themes_order"),
    )

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    theme_text: Mapped[str] = mapped_column(String(100))
    success_description: Mapped[Optional[str]] = mapped_column(Text)
    theme_order: Mapped[int] = mapped_column(Integer, default=1)
    created_at: Mapped[datetime] = mapped_column(default=utcnow)

    @classmethod
    def from_domain(cls, theme: DevelopmentTheme) -> "DevelopmentThemeRow":
        return cls(
            id=theme.id,
            user_id=theme.user_id,
            theme_text=theme.theme_text,
            success_description=theme.success_description,
            theme_order=theme.theme_order,
            created_at=theme.created_at,
        )

    def to_domain(self) -> DevelopmentTheme:
        return DevelopmentTheme(
            id=self.id,
            user_id=self.user_id,
            theme_text=self.theme_text,
            success_description=self.success_description,
            theme_order=self.theme_order,
            created_at=aware(self.created_at),
        )


class WeeklyActionRow(Base):
    """Hypotheses (theme_id set) and legacy weekly actions share this table."""
    __tablename__ = "weekly_actions"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    theme_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("development_themes.id", ondelete="CASCADE"), index=True
    )
    action_text: Mapped[str] = mapped_column(String(500))
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow)

    @classmethod
    def from_domain(cls, action: WeeklyAction) -> "WeeklyActionRow":
        return cls(
            id=action.id,
            user_id=action.user_id,
            theme_id=action.theme_id,
            action_text=action.action_text,
            is_completed=action.is_completed,
            created_at=action.created_at,
        )

    def to_domain(self) -> WeeklyAction:
        return WeeklyAction(
            id=self.id,
            user_id=self.user_id,
            theme_id=self.theme_id,
            action_text=self.action_text,
            is_completed=self.is_completed,
            created_at=aware(self.created_at),
        )


class ProgressEntryRow(Base):
    __tablename__ = "progress_entries"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    text: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(default=utcnow)

    @classmethod
    def from_domain(cls, entry: ProgressEntry) -> "ProgressEntryRow":
        return cls(
            id=entry.id,
            user_id=entry.user_id,
            text=entry.text,
            created_at=entry.created_at,
        )

    def to_domain(self) -> ProgressEntry:
        return ProgressEntry(
            id=self.id,
            user_id=self.user_id,
            text=self.text,
            created_at=aware(self.created_at),
        )


class SettingsRow(Base):
    __tablename__ = "settings"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    receive_weekly_nudge: Mapped[bool] = mapped_column(Boolean, default=False)

    def to_domain(self) -> UserSettings:
        return UserSettings(
            user_id=self.user_id,
            receive_weekly_nudge=self.receive_weekly_nudge,
        )


class NudgeSentRow(Base):
    """Append-only. Nothing in the application updates or deletes these."""
    __tablename__ = "nudges_sent"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True)
    coach_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), index=True)
    client_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id"), index=True)
    message_text: Mapped[str] = mapped_column(String(320))
    sent_at: Mapped[datetime] = mapped_column(default=utcnow)

    @classmethod
    def from_domain(cls, nudge: NudgeSent) -> "NudgeSentRow":
        return cls(
            id=nudge.id,
            coach_id=nudge.coach_id,
            client_id=nudge.client_id,
            message_text=nudge.message_text,
            sent_at=nudge.sent_at,
        )

    def to_domain(self) -> NudgeSent:
        return NudgeSent(
            id=self.id,
            coach_id=self.coach_id,
            client_id=self.client_id,
            message_text=self.message_text,
            sent_at=aware(self.sent_at),
        )
