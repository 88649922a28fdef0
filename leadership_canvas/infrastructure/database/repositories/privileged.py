"""
Privileged repository.

Reads and writes across ownership boundaries: a coach updating a client's
Padlet link, recording a nudge, the scheduler listing opted-in clients.
Every method demands a PrivilegedGrant of an accepted scope and refuses
to run otherwise, so this repository is only usable after a role gate.
"""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ....core.canvas.access import GrantScope, PrivilegedGrant
from ....core.canvas.models import (
    ClientContact,
    NudgeSent,
    UserRole,
    WeeklyNudgeCandidate,
)
from ..tables import (
    DevelopmentThemeRow,
    NudgeSentRow,
    SettingsRow,
    UserRow,
    WeeklyActionRow,
)


logger = logging.getLogger(__name__)

ANY_SCOPE = (GrantScope.COACH, GrantScope.AUTOMATION)


def _check_grant(grant: object, *scopes: GrantScope) -> None:
    if not isinstance(grant, PrivilegedGrant) or grant.scope not in scopes:
        logger.error("Privileged access attempted without a valid grant")
        raise PermissionError("Privileged access requires a grant")


class PrivilegedRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def get_contact(self, grant: PrivilegedGrant, user_id: UUID) -> Optional[ClientContact]:
        _check_grant(grant, *ANY_SCOPE)
        row = self._session.execute(
            select(UserRow.id, UserRow.name, UserRow.role, UserRow.phone)
            .where(UserRow.id == user_id)
        ).one_or_none()
        if row is None:
            return None
        return ClientContact(id=row.id, name=row.name, role=UserRole(row.role), phone=row.phone)

    def set_padlet_url(
        self, grant: PrivilegedGrant, client_id: UUID, padlet_url: Optional[str]
    ) -> int:
        _check_grant(grant, GrantScope.COACH)
        try:
            result = self._session.execute(
                update(UserRow)
                .where(UserRow.id == client_id, UserRow.role == UserRole.CLIENT.value)
                .values(padlet_url=padlet_url),
                execution_options={"synchronize_session": False},
            )
            self._session.commit()
            return result.rowcount
        except Exception as e:
            self._session.rollback()
            logger.error(
                "Failed to update Padlet link",
                extra={"client_id": str(client_id), "error": str(e)},
            )
            raise

    def insert_nudge(self, grant: PrivilegedGrant, nudge: NudgeSent) -> None:
        _check_grant(grant, *ANY_SCOPE)
        try:
            self._session.add(NudgeSentRow.from_domain(nudge))
            self._session.commit()
        except Exception as e:
            self._session.rollback()
            logger.error(
                "Failed to record nudge",
                extra={"nudge_id": str(nudge.id), "error": str(e)},
            )
            raise

    def first_coach_id(self, grant: PrivilegedGrant) -> Optional[UUID]:
        _check_grant(grant, GrantScope.AUTOMATION)
        return self._session.scalar(
            select(UserRow.id)
            .where(UserRow.role == UserRole.COACH.value)
            .order_by(UserRow.created_at)
            .limit(1)
        )

    def weekly_nudge_candidates(self, grant: PrivilegedGrant) -> list[WeeklyNudgeCandidate]:
        """
        Clients opted into the weekly nudge who have a phone on file, each
        with their most recent theme and open action texts (newest first).
        """
        _check_grant(grant, GrantScope.AUTOMATION)
        clients = self._session.execute(
            select(UserRow.id, UserRow.name, UserRow.phone)
            .join(SettingsRow, SettingsRow.user_id == UserRow.id)
            .where(
                UserRow.role == UserRole.CLIENT.value,
                SettingsRow.receive_weekly_nudge.is_(True),
                UserRow.phone.is_not(None),
                UserRow.phone != "",
            )
            .order_by(UserRow.name)
        ).all()

        candidates = []
        for client in clients:
            theme_text = self._session.scalar(
                select(DevelopmentThemeRow.theme_text)
                .where(DevelopmentThemeRow.user_id == client.id)
                .order_by(DevelopmentThemeRow.created_at.desc())
                .limit(1)
            )
            open_actions = self._session.scalars(
                select(WeeklyActionRow.action_text)
                .where(
                    WeeklyActionRow.user_id == client.id,
                    WeeklyActionRow.is_completed.is_(False),
                )
                .order_by(WeeklyActionRow.created_at.desc())
            ).all()
            candidates.append(WeeklyNudgeCandidate(
                client_id=client.id,
                name=client.name,
                phone=client.phone,
                current_theme=theme_text,
                open_actions=list(open_actions),
            ))
        return candidates
