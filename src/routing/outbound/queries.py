"""Read-side queries over the outbound event log."""

from dataclasses import dataclass, field

from protean.utils.globals import current_domain

from routing.delivery.delivery import OutboundDelivery
from routing.outbound.outbound_event import OutboundEvent


@dataclass(frozen=True)
class EventDetail:
    event: OutboundEvent
    deliveries: list = field(default_factory=list)

    @property
    def status_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for delivery in self.deliveries:
            counts[delivery.status] = counts.get(delivery.status, 0) + 1
        return counts


def get_event(event_id) -> EventDetail:
    """An event with its deliveries. Unknown ids raise ObjectNotFoundError."""
    event = current_domain.repository_for(OutboundEvent).get(event_id)
    deliveries = current_domain.repository_for(OutboundDelivery).by_event(event.id)
    return EventDetail(event=event, deliveries=deliveries)


def search_events(**filters) -> list[OutboundEvent]:
    return current_domain.repository_for(OutboundEvent).search(**filters)


def get_unprocessed(limit: int = 100) -> list[OutboundEvent]:
    return current_domain.repository_for(OutboundEvent).unprocessed(limit=limit)


def get_by_correlation(correlation_id: str) -> list[OutboundEvent]:
    return current_domain.repository_for(OutboundEvent).by_correlation(correlation_id)


def get_by_saga(saga_id: str) -> list[OutboundEvent]:
    return current_domain.repository_for(OutboundEvent).by_saga(saga_id)
