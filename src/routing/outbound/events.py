"""Domain events for the OutboundEvent aggregate (the outbound event log)."""

from protean.fields import DateTime, Identifier, Integer, String

from routing.domain import routing


@routing.event(part_of="OutboundEvent")
class OutboundEventReceived:
    """An event was accepted from a producing service and logged."""

    __version__ = 1

    event_id: Identifier(required=True)
    service: String(required=True)
    topic: String(required=True)
    client_id: String()
    severity: String(required=True)
    correlation_id: String()
    created_at: DateTime(required=True)


@routing.event(part_of="OutboundEvent")
class OutboundEventProcessed:
    """Routing finished for an event; its deliveries were created."""

    __version__ = 1

    event_id: Identifier(required=True)
    service: String(required=True)
    topic: String(required=True)
    delivery_count: Integer(default=0)
    processed_at: DateTime(required=True)
