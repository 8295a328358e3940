"""Per-appointment confirmation workflow: phone, subscriber, flow trigger."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol

from sync_confirmations.domain.errors import DispatchError, InvalidPhone, SubscriberNotFound
from sync_confirmations.domain.models import (
    REASON_INVALID_PHONE,
    REASON_SUBSCRIBER_NOT_FOUND,
    STATUS_FAILED,
    STATUS_SENT,
    STATUS_SKIPPED,
    Appointment,
    Contact,
    ItemOutcome,
    SyncErrorRecord,
)
from sync_confirmations.utils.logging import get_structured_logger, log_workflow_event

WORKFLOW_STEP = "confirmation_dispatch"


class Messenger(Protocol):
    async def resolve_subscriber(self, phone: str) -> str | None: ...

    async def send_flow(
        self,
        user_ns: str,
        variables: Mapping[str, Any] | None = None,
        *,
        flow_name: str | None = None,
        dry_run: bool | None = None,
    ) -> dict[str, Any]: ...


async def process_appointment(
    appointment: Appointment,
    *,
    messenger: Messenger,
    dry_run: bool,
    logger: logging.Logger | None = None,
) -> ItemOutcome:
    """Run one appointment through the workflow and report a single outcome.

    Nothing raised in here escapes: every failure becomes an outcome so one
    bad record never blocks the rest of the batch.
    """
    logger = logger or get_structured_logger()
    contact = Contact.from_appointment(appointment)
    event = {
        "workflow_step": WORKFLOW_STEP,
        "appointment_id": contact.external_id,
        "patient_name": contact.name,
        "phone": contact.phone,
    }

    try:
        if not contact.phone:
            raise InvalidPhone(appointment.patient_phone)

        user_ns = await messenger.resolve_subscriber(contact.phone)
        if not user_ns:
            raise SubscriberNotFound(contact.phone)

        await messenger.send_flow(user_ns, contact.variables, dry_run=dry_run)
    except InvalidPhone:
        log_workflow_event(logger, **event, status="skipped", message="Skipped: missing or invalid phone")
        return ItemOutcome(contact.external_id, STATUS_SKIPPED, reason=REASON_INVALID_PHONE)
    except SubscriberNotFound as exc:
        log_workflow_event(
            logger,
            **event,
            status="skipped",
            error_code="SUBSCRIBER_NOT_FOUND",
            error_message=str(exc),
            message="Skipped: no subscriber for any phone variant",
            level=logging.WARNING,
        )
        return ItemOutcome(
            contact.external_id,
            STATUS_SKIPPED,
            reason=REASON_SUBSCRIBER_NOT_FOUND,
            error=SyncErrorRecord(contact.external_id, str(exc), phone=exc.phone),
        )
    except DispatchError as exc:
        log_workflow_event(
            logger,
            **event,
            status="failed",
            error_code="DISPATCH_FAILED",
            error_message=str(exc),
            message="Flow trigger failed",
            level=logging.ERROR,
        )
        return ItemOutcome(
            contact.external_id,
            STATUS_FAILED,
            reason="dispatch_error",
            error=SyncErrorRecord(contact.external_id, exc.detail),
        )
    except Exception as exc:  # broad to keep the batch going
        log_workflow_event(
            logger,
            **event,
            status="failed",
            error_code=type(exc).__name__.upper(),
            error_message=str(exc),
            message="Workflow raised exception",
            level=logging.ERROR,
        )
        return ItemOutcome(
            contact.external_id,
            STATUS_FAILED,
            reason=type(exc).__name__,
            error=SyncErrorRecord(contact.external_id, str(exc)),
        )

    log_workflow_event(
        logger,
        **event,
        status="sent",
        message="Dry-run: flow payload logged" if dry_run else "Flow triggered",
    )
    return ItemOutcome(contact.external_id, STATUS_SENT)
