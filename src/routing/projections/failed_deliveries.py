"""FailedDeliveries: operator queue of deliveries that are currently failed or bounced."""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import Boolean, DateTime, Identifier, Integer, String
from protean.utils.globals import current_domain

from routing.delivery.delivery import OutboundDelivery
from routing.delivery.events import (
    DeliveryAttemptStarted,
    DeliveryBounced,
    DeliveryDelivered,
    DeliveryFailed,
)
from routing.domain import routing


@routing.projection
class FailedDeliveries:
    delivery_id: Identifier(identifier=True, required=True)
    outbound_event_id: Identifier(required=True)
    contact_id: Identifier(required=True)
    channel: String(required=True)
    status: String(required=True)
    error_message: String(max_length=2000, sanitize=False)
    attempt_count: Integer(default=0)
    next_retry_at: DateTime()
    exhausted: Boolean(default=False)
    failed_at: DateTime()


@routing.projector(projector_for=FailedDeliveries, aggregates=[OutboundDelivery])
class FailedDeliveriesProjector:
    def _upsert(self, event, **values):
        repo = current_domain.repository_for(FailedDeliveries)
        try:
            entry = repo.get(event.delivery_id)
            for name, value in values.items():
                setattr(entry, name, value)
        except ObjectNotFoundError:
            entry = FailedDeliveries(
                delivery_id=event.delivery_id,
                outbound_event_id=event.outbound_event_id,
                contact_id=event.contact_id,
                channel=event.channel,
                **values,
            )
        repo.add(entry)

    def _remove(self, delivery_id):
        repo = current_domain.repository_for(FailedDeliveries)
        try:
            repo._dao.delete(repo.get(delivery_id))
        except ObjectNotFoundError:
            pass

    @on(DeliveryFailed)
    def on_delivery_failed(self, event):
        self._upsert(
            event,
            status="Failed",
            error_message=event.error_message,
            attempt_count=event.attempt_count,
            next_retry_at=event.next_retry_at,
            exhausted=bool(event.exhausted),
            failed_at=event.failed_at,
        )

    @on(DeliveryBounced)
    def on_delivery_bounced(self, event):
        self._upsert(
            event,
            status="Bounced",
            error_message=event.reason,
            attempt_count=event.attempt_count,
            next_retry_at=None,
            exhausted=True,
            failed_at=event.bounced_at,
        )

    @on(DeliveryAttemptStarted)
    def on_attempt_started(self, event):
        """An attempt is in flight again; it leaves the queue until it fails again."""
        self._remove(event.delivery_id)

    @on(DeliveryDelivered)
    def on_delivery_delivered(self, event):
        self._remove(event.delivery_id)
