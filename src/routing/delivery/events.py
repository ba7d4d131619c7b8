"""Domain events for the OutboundDelivery aggregate.

``DeliveryRequested``, ``DeliveryRetryDue`` and ``DeliveryRequeued`` are the
delivery-request messages: they are written to the outbox in the same
transaction as the delivery row and picked up by the dispatcher.
"""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from routing.domain import routing


@routing.event(part_of="OutboundDelivery")
class DeliveryRequested:
    __version__ = 1

    delivery_id: Identifier(required=True)
    outbound_event_id: Identifier(required=True)
    routing_policy_id: Identifier()
    contact_id: Identifier(required=True)
    channel: String(required=True)
    role: String(required=True)
    created_at: DateTime(required=True)


@routing.event(part_of="OutboundDelivery")
class DeliveryAttemptStarted:
    __version__ = 1

    delivery_id: Identifier(required=True)
    channel: String(required=True)
    attempt_count: Integer(required=True)
    started_at: DateTime(required=True)


@routing.event(part_of="OutboundDelivery")
class DeliveryDelivered:
    __version__ = 1

    delivery_id: Identifier(required=True)
    outbound_event_id: Identifier(required=True)
    channel: String(required=True)
    attempt_count: Integer(required=True)
    external_message_id: String()
    delivered_at: DateTime(required=True)


@routing.event(part_of="OutboundDelivery")
class DeliveryFailed:
    """An attempt failed. ``exhausted`` is set when no automatic retry remains."""

    __version__ = 1

    delivery_id: Identifier(required=True)
    outbound_event_id: Identifier(required=True)
    contact_id: Identifier(required=True)
    channel: String(required=True)
    error_message: String(max_length=2000, sanitize=False)
    attempt_count: Integer(required=True)
    next_retry_at: DateTime()
    exhausted: Boolean(default=False)
    failed_at: DateTime(required=True)


@routing.event(part_of="OutboundDelivery")
class DeliveryBounced:
    """The channel rejected the recipient permanently. Never retried."""

    __version__ = 1

    delivery_id: Identifier(required=True)
    outbound_event_id: Identifier(required=True)
    contact_id: Identifier(required=True)
    channel: String(required=True)
    reason: String(max_length=2000, sanitize=False)
    attempt_count: Integer(required=True)
    bounced_at: DateTime(required=True)


@routing.event(part_of="OutboundDelivery")
class DeliveryRetryDue:
    __version__ = 1

    delivery_id: Identifier(required=True)
    channel: String(required=True)
    attempt_count: Integer(required=True)
    due_at: DateTime()


@routing.event(part_of="OutboundDelivery")
class DeliveryRequeued:
    """An operator asked for another attempt, regardless of the retry budget."""

    __version__ = 1

    delivery_id: Identifier(required=True)
    channel: String(required=True)
    attempt_count: Integer(required=True)
    requested_by: String()
    requeued_at: DateTime(required=True)
