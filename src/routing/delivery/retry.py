"""Retry commands: the due-retry sweep and operator re-queue.

``ProcessDueRetries`` is run periodically (cron or a maintenance
endpoint). It only flags deliveries whose retry time has passed; the
dispatcher performs the attempt when it receives ``DeliveryRetryDue``.
"""

import structlog
from protean.fields import DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from routing.delivery.delivery import OutboundDelivery
from routing.domain import routing
from routing.shared.clock import utcnow

logger = structlog.get_logger(__name__)

SWEEP_LIMIT = 100


@routing.command(part_of="OutboundDelivery")
class ProcessDueRetries:
    as_of: DateTime()  # Defaults to now
    limit: Integer(default=SWEEP_LIMIT)


@routing.command(part_of="OutboundDelivery")
class RequeueDelivery:
    delivery_id: Identifier(required=True)
    requested_by: String(max_length=200)


@routing.command_handler(part_of=OutboundDelivery)
class DeliveryRetryHandler:
    @handle(ProcessDueRetries)
    def process_due_retries(self, command: ProcessDueRetries):
        as_of = command.as_of or utcnow()
        repo = current_domain.repository_for(OutboundDelivery)

        due = repo.due_for_retry(as_of, limit=command.limit or SWEEP_LIMIT)
        for delivery in due:
            delivery.mark_retry_due(as_of)
            repo.add(delivery)

        logger.info("Due retries flagged", count=len(due), as_of=str(as_of))
        return len(due)

    @handle(RequeueDelivery)
    def requeue_delivery(self, command: RequeueDelivery):
        repo = current_domain.repository_for(OutboundDelivery)
        delivery = repo.get(command.delivery_id)
        delivery.requeue(requested_by=command.requested_by)
        repo.add(delivery)
        logger.info(
            "Delivery requeued",
            delivery_id=str(delivery.id),
            attempt_count=delivery.attempt_count,
            requested_by=command.requested_by or "system",
        )
