"""RoutingPolicy aggregate: who hears about which (service, topic) events.

A policy connects an event kind to a recipient group on one channel with a
delivery role. Policies with a ``client_id`` apply to that client only and
fully shadow the default (client-less) policies for it. ``min_severity``
filters out events below the given severity.
"""

from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from routing.domain import routing
from routing.policy.events import RoutingPolicyCreated, RoutingPolicyToggled, RoutingPolicyUpdated
from routing.shared.enums import Channel, DeliveryRole, Severity, SourceService, Topic, meets_threshold

_UNSET = object()


@routing.aggregate
class RoutingPolicy:
    service: String(choices=SourceService, required=True)
    topic: String(choices=Topic, required=True)
    client_id: String(max_length=100)  # empty means default policy
    min_severity: String(choices=Severity)  # empty means every severity
    channel: String(choices=Channel, required=True)
    recipient_group_id: Identifier(required=True)
    role: String(choices=DeliveryRole, default=DeliveryRole.TO.value)
    priority: Integer(default=0)
    is_enabled: Boolean(default=True)

    created_at: DateTime()
    updated_at: DateTime()
    updated_by: String(max_length=200)

    @classmethod
    def create(
        cls,
        service,
        topic,
        channel,
        recipient_group_id,
        role=DeliveryRole.TO.value,
        client_id=None,
        min_severity=None,
        priority=0,
        is_enabled=True,
        updated_by=None,
    ):
        now = datetime.now(UTC)
        policy = cls(
            service=service,
            topic=topic,
            client_id=client_id or None,
            min_severity=min_severity,
            channel=channel,
            recipient_group_id=str(recipient_group_id),
            role=role,
            priority=priority or 0,
            is_enabled=is_enabled,
            created_at=now,
            updated_at=now,
            updated_by=updated_by,
        )
        policy.raise_(
            RoutingPolicyCreated(
                policy_id=str(policy.id),
                service=service,
                topic=topic,
                client_id=policy.client_id,
                min_severity=min_severity,
                channel=channel,
                recipient_group_id=str(recipient_group_id),
                role=role,
                priority=policy.priority,
                created_at=now,
            )
        )
        return policy

    @property
    def is_default(self) -> bool:
        return not self.client_id

    def applies_to(self, severity) -> bool:
        """True when an event of ``severity`` passes this policy's threshold."""
        return meets_threshold(severity, self.min_severity)

    def update(
        self,
        updated_by=None,
        min_severity=_UNSET,
        channel=_UNSET,
        recipient_group_id=_UNSET,
        role=_UNSET,
        priority=_UNSET,
    ):
        if min_severity is not _UNSET:
            self.min_severity = min_severity
        if channel is not _UNSET:
            self.channel = channel
        if recipient_group_id is not _UNSET:
            self.recipient_group_id = str(recipient_group_id)
        if role is not _UNSET:
            self.role = role
        if priority is not _UNSET:
            self.priority = priority

        now = datetime.now(UTC)
        self.updated_at = now
        self.updated_by = updated_by
        self.raise_(RoutingPolicyUpdated(policy_id=str(self.id), updated_by=updated_by, updated_at=now))

    def toggle(self, updated_by=None):
        now = datetime.now(UTC)
        self.is_enabled = not self.is_enabled
        self.updated_at = now
        self.updated_by = updated_by
        self.raise_(
            RoutingPolicyToggled(
                policy_id=str(self.id),
                is_enabled=self.is_enabled,
                updated_by=updated_by,
                toggled_at=now,
            )
        )
