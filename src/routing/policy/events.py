"""Domain events for the RoutingPolicy aggregate."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from routing.domain import routing


@routing.event(part_of="RoutingPolicy")
class RoutingPolicyCreated:
    __version__ = 1

    policy_id: Identifier(required=True)
    service: String(required=True)
    topic: String(required=True)
    client_id: String()
    min_severity: String()
    channel: String(required=True)
    recipient_group_id: Identifier(required=True)
    role: String(required=True)
    priority: Integer(default=0)
    created_at: DateTime(required=True)


@routing.event(part_of="RoutingPolicy")
class RoutingPolicyUpdated:
    __version__ = 1

    policy_id: Identifier(required=True)
    updated_by: String()
    updated_at: DateTime(required=True)


@routing.event(part_of="RoutingPolicy")
class RoutingPolicyToggled:
    __version__ = 1

    policy_id: Identifier(required=True)
    is_enabled: Boolean()
    updated_by: String()
    toggled_at: DateTime(required=True)
