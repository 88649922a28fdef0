"""
Role lookup.

The narrowest capability in the system: read the role column of one user.
Authorization decisions go through this instead of a general-purpose
privileged handle.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ....core.canvas.models import UserRole
from ..tables import UserRow


class RoleLookupRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def role_of(self, user_id: UUID) -> Optional[UserRole]:
        role = self._session.scalar(select(UserRow.role).where(UserRow.id == user_id))
        return UserRole(role) if role is not None else None
