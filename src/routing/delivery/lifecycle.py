"""Delivery Lifecycle Tracker: status updates and delivery queries.

Channel senders (and the in-process dispatcher) report outcomes through
``UpdateDeliveryStatus``. A report of the status a delivery already has is
ignored, so status callbacks can be redelivered safely.
"""

from datetime import datetime

import structlog
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from routing.delivery.delivery import OutboundDelivery
from routing.domain import routing
from routing.shared.clock import utcnow
from routing.shared.enums import DeliveryStatus

logger = structlog.get_logger(__name__)

REPORTABLE_STATUSES = (
    DeliveryStatus.PROCESSING.value,
    DeliveryStatus.DELIVERED.value,
    DeliveryStatus.FAILED.value,
    DeliveryStatus.BOUNCED.value,
)


def apply_status(delivery: OutboundDelivery, status: str, error=None, external_message_id=None, at=None) -> bool:
    """Apply a reported status to ``delivery``. Returns False when it was a no-op."""
    if status not in REPORTABLE_STATUSES:
        raise ValidationError({"status": [f"Cannot report status {status}"]})

    if status == delivery.status:
        logger.debug("Duplicate status report ignored", delivery_id=str(delivery.id), status=status)
        return False

    if status == DeliveryStatus.PROCESSING.value:
        delivery.begin_attempt(started_at=at)
    elif status == DeliveryStatus.DELIVERED.value:
        delivery.mark_delivered(external_message_id=external_message_id, delivered_at=at)
    elif status == DeliveryStatus.FAILED.value:
        delivery.mark_failed(error or "Unknown error", failed_at=at)
    else:
        delivery.mark_bounced(error, bounced_at=at)

    logger.info(
        "Delivery status updated",
        delivery_id=str(delivery.id),
        status=status,
        attempt_count=delivery.attempt_count,
        next_retry_at=str(delivery.next_retry_at) if delivery.next_retry_at else None,
    )
    return True


@routing.command(part_of="OutboundDelivery")
class UpdateDeliveryStatus:
    delivery_id: Identifier(required=True)
    status: String(choices=DeliveryStatus, required=True)
    error: Text(sanitize=False)
    external_message_id: String(max_length=255)
    occurred_at: DateTime()


@routing.command_handler(part_of=OutboundDelivery)
class DeliveryStatusHandler:
    @handle(UpdateDeliveryStatus)
    def update_status(self, command: UpdateDeliveryStatus):
        repo = current_domain.repository_for(OutboundDelivery)
        delivery = repo.get(command.delivery_id)

        changed = apply_status(
            delivery,
            command.status,
            error=command.error,
            external_message_id=command.external_message_id,
            at=command.occurred_at,
        )
        if changed:
            repo.add(delivery)
        return changed


def update_status(delivery_id, status, error=None, external_message_id=None) -> bool:
    """Report a delivery outcome. Unknown ids raise ObjectNotFoundError."""
    return current_domain.process(
        UpdateDeliveryStatus(
            delivery_id=str(delivery_id),
            status=status,
            error=error,
            external_message_id=external_message_id,
        ),
        asynchronous=False,
    )


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------
def _repo():
    return current_domain.repository_for(OutboundDelivery)


def get_pending(limit: int = 100) -> list[OutboundDelivery]:
    return _repo().pending(limit=limit)


def get_due_for_retry(limit: int = 100, as_of: datetime | None = None) -> list[OutboundDelivery]:
    return _repo().due_for_retry(as_of or utcnow(), limit=limit)


def get_by_event(event_id) -> list[OutboundDelivery]:
    return _repo().by_event(event_id)


def get_by_contact(contact_id, date_from=None, date_to=None, limit: int = 100) -> list[OutboundDelivery]:
    return _repo().by_contact(contact_id, date_from=date_from, date_to=date_to, limit=limit)


def get_exhausted(limit: int = 100) -> list[OutboundDelivery]:
    return _repo().exhausted(limit=limit)
