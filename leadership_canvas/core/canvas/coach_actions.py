"""
Role-scoped operations: a coach (or the scheduler) acting on a client.

These cannot be owner-filtered because the actor is not the row owner.
Instead, each one verifies the actor's role, verifies the target is a
client, and only then uses the privileged store with the grant the role
gate issued.
"""

import asyncio
import logging
from typing import Optional

from .access import PrivilegedGrant, RoleGate, require_identity
from .errors import (
    ActionError,
    BadRequest,
    ErrorKind,
    NotFoundOrNotAuthorized,
    UpstreamDeliveryFailed,
    action_boundary,
)
from .models import (
    AUTOMATED_NUDGE_PREFIX,
    ClientContact,
    DeliveryOutcome,
    NudgeReceipt,
    NudgeSent,
    UserRole,
    WeeklyNudgeListing,
)
from .ports import NudgeDelivery, PrivilegedStore, SessionAccessor
from .validation import AutomatedNudgeInput, PadletUrlInput, SendNudgeInput, validate


logger = logging.getLogger(__name__)


class NoCoachAvailable(ActionError):
    """An automated nudge needs a sender and no coach account exists."""
    kind = ErrorKind.UNEXPECTED

    def __init__(self) -> None:
        super().__init__("No coach found in system")


class CoachActions:
    """Operations only a signed-in coach may perform."""

    def __init__(
        self,
        accessor: SessionAccessor,
        gate: RoleGate,
        store: PrivilegedStore,
        delivery: Optional[NudgeDelivery] = None,
    ) -> None:
        self._accessor = accessor
        self._gate = gate
        self._store = store
        self._delivery = delivery

    @action_boundary("Failed to update Padlet link")
    def update_client_padlet_url(self, client_id: str, padlet_url: Optional[str]):
        """Set or clear (empty/None) a client's Padlet board link."""
        data = validate(PadletUrlInput, client_id=client_id, padlet_url=padlet_url)
        identity = require_identity(self._accessor)
        grant = self._gate.authorize_coach(
            identity, "Only coaches can update client Padlet links"
        )
        self._gate.require_counterpart(
            data.client_id,
            UserRole.CLIENT,
            not_found_message="Client not found",
            mismatch_message="Can only update Padlet links for clients",
        )

        affected = self._store.set_padlet_url(grant, data.client_id, data.padlet_url)
        if affected == 0:
            raise NotFoundOrNotAuthorized("Client not found")

        logger.info(
            "Padlet link updated",
            extra={
                "coach_id": str(identity.user_id),
                "client_id": str(data.client_id),
                "cleared": data.padlet_url is None,
            },
        )

    @action_boundary("Failed to record nudge")
    async def send_nudge(self, client_id: str, message_text: str):
        """
        Record a nudge, then forward it to the delivery webhook.

        The stored record is the source of truth. Delivery is attempted
        once, after the insert, and its failure only shows up in the
        receipt's webhook fields.
        """
        contact, nudge = await asyncio.to_thread(self._record_nudge, client_id, message_text)
        outcome = await self._deliver(contact, nudge)
        return NudgeReceipt(
            nudge_id=nudge.id,
            sent_at=nudge.sent_at,
            webhook_sent=outcome.sent,
            webhook_error=outcome.error,
        )

    def _record_nudge(self, client_id: str, message_text: str) -> tuple[ClientContact, NudgeSent]:
        """Gate, validate and store. Blocking; runs on a worker thread."""
        identity = require_identity(self._accessor, "You must be logged in")
        grant = self._gate.authorize_coach(identity, "Only coaches can send nudges")
        data = validate(SendNudgeInput, client_id=client_id, message_text=message_text)

        contact = self._store.get_contact(grant, data.client_id)
        if contact is None:
            raise NotFoundOrNotAuthorized("Client not found")
        if contact.role is not UserRole.CLIENT:
            raise BadRequest("Can only send nudges to clients")
        if not (contact.phone and contact.phone.strip()):
            raise BadRequest("Client does not have a phone number")

        nudge = NudgeSent(
            coach_id=identity.user_id,
            client_id=contact.id,
            message_text=data.message_text,
        )
        self._store.insert_nudge(grant, nudge)

        logger.info(
            "Nudge recorded",
            extra={
                "nudge_id": str(nudge.id),
                "coach_id": str(identity.user_id),
                "client_id": str(contact.id),
            },
        )
        return contact, nudge

    async def _deliver(self, contact: ClientContact, nudge: NudgeSent) -> DeliveryOutcome:
        if self._delivery is None:
            logger.info(
                "Nudge webhook not configured, nudge recorded but not sent",
                extra={"nudge_id": str(nudge.id)},
            )
            return DeliveryOutcome(sent=False, error=None)

        payload = {
            "client_id": str(contact.id),
            "client_name": contact.name,
            "phone": contact.phone,
            "message_text": nudge.message_text,
            "nudge_id": str(nudge.id),
            "sent_at": nudge.sent_at.isoformat(),
        }
        try:
            return await self._delivery.deliver(payload)
        except Exception as e:
            failure = UpstreamDeliveryFailed(str(e) or "Unknown webhook error")
            logger.error(
                "Nudge delivery raised",
                extra={"nudge_id": str(nudge.id), "error": failure.message},
                exc_info=e,
            )
            return DeliveryOutcome(sent=False, error=failure.message)


class AutomationActions:
    """
    Operations for the weekly scheduler.

    Callers authenticate with the shared secret, not a user session, so
    every method takes the grant authorize_automation issued.
    """

    def __init__(self, gate: RoleGate, store: PrivilegedStore) -> None:
        self._gate = gate
        self._store = store

    @action_boundary("Failed to fetch clients")
    def list_weekly_nudges(self, grant: PrivilegedGrant):
        """Clients opted into the weekly nudge who have a phone on file."""
        listing = WeeklyNudgeListing(clients=self._store.weekly_nudge_candidates(grant))
        logger.info("Weekly nudge list generated", extra={"total_count": listing.total_count})
        return listing

    @action_boundary("Failed to log nudge")
    def log_automated_nudge(
        self,
        grant: PrivilegedGrant,
        client_id: Optional[str],
        message_text: Optional[str],
        coach_id: Optional[str] = None,
    ):
        """
        Record that the scheduler sent a weekly nudge.

        Attributed to the given coach, or to any coach when none is named.
        """
        if not client_id or not message_text:
            raise BadRequest("client_id and message_text are required")

        data = validate(
            AutomatedNudgeInput,
            client_id=client_id,
            message_text=message_text,
            coach_id=coach_id,
        )

        if data.coach_id is not None:
            self._gate.require_counterpart(
                data.coach_id,
                UserRole.COACH,
                not_found_message="Coach not found",
                mismatch_message="Nudges can only be attributed to coaches",
            )
            sender_id = data.coach_id
        else:
            sender_id = self._store.first_coach_id(grant)
            if sender_id is None:
                raise NoCoachAvailable()

        self._gate.require_counterpart(
            data.client_id,
            UserRole.CLIENT,
            not_found_message="Client not found",
            mismatch_message="Can only send nudges to clients",
        )

        nudge = NudgeSent(
            coach_id=sender_id,
            client_id=data.client_id,
            message_text=f"{AUTOMATED_NUDGE_PREFIX}{data.message_text}",
        )
        self._store.insert_nudge(grant, nudge)

        logger.info(
            "Automated nudge logged",
            extra={"nudge_id": str(nudge.id), "client_id": str(data.client_id)},
        )
        return {"nudge_id": nudge.id, "sent_at": nudge.sent_at}
