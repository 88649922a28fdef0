"""
Canvas operations.

Contains the domain models, input schemas, access gates, the owner-scoped
and role-scoped mutation services, and the read aggregator.
"""

from .access import GrantScope, PrivilegedGrant, RoleGate, authorize_automation
from .actions import CanvasActions
from .aggregator import ClientDataAggregator
from .coach_actions import AutomationActions, CoachActions
from .errors import ActionError, ActionResult, ErrorKind
from .models import (
    DevelopmentTheme,
    Identity,
    NudgeSent,
    ProgressEntry,
    User,
    UserRole,
    UserSettings,
    WeeklyAction,
)

__all__ = [
    "ActionError",
    "ActionResult",
    "AutomationActions",
    "CanvasActions",
    "ClientDataAggregator",
    "CoachActions",
    "DevelopmentTheme",
    "ErrorKind",
    "GrantScope",
    "Identity",
    "NudgeSent",
    "PrivilegedGrant",
    "ProgressEntry",
    "RoleGate",
    "User",
    "UserRole",
    "UserSettings",
    "WeeklyAction",
    "authorize_automation",
]
