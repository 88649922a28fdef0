"""
One-time coach role migration.

Older deployments decided who was a coach by matching the signed-in email
against a hardcoded list. The role column is now the only authority; this
promotes the listed accounts once so that nothing consults emails at
runtime.
"""

import logging

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from ...core.canvas.models import UserRole
from .tables import UserRow


logger = logging.getLogger(__name__)


def promote_seed_coaches(session: Session, emails: list[str], dry_run: bool = False) -> list[str]:
    """
    Set role=coach for users whose email is in the seed list.

    Matching is case-insensitive. Returns the emails that were (or, for a
    dry run, would be) promoted. Users already marked coach are skipped.
    """
    normalized = sorted({email.strip().lower() for email in emails if email.strip()})
    if not normalized:
        return []

    matches = session.scalars(
        select(UserRow.email).where(
            func.lower(UserRow.email).in_(normalized),
            UserRow.role != UserRole.COACH.value,
        )
    ).all()

    if dry_run or not matches:
        return list(matches)

    try:
        session.execute(
            update(UserRow)
            .where(
                func.lower(UserRow.email).in_(normalized),
                UserRow.role != UserRole.COACH.value,
            )
            .values(role=UserRole.COACH.value),
            execution_options={"synchronize_session": False},
        )
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error("Coach role migration failed", extra={"error": str(e)})
        raise

    logger.info("Promoted seed coaches", extra={"count": len(matches)})
    return list(matches)
