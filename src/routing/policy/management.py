"""Routing policy administration commands + handler."""

import structlog
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from routing.directory.group import RecipientGroup
from routing.domain import routing
from routing.policy.policy import RoutingPolicy
from routing.shared.enums import Channel, DeliveryRole, Severity, SourceService, Topic

logger = structlog.get_logger(__name__)


@routing.command(part_of="RoutingPolicy")
class CreateRoutingPolicy:
    service: String(choices=SourceService, required=True)
    topic: String(choices=Topic, required=True)
    client_id: String(max_length=100)
    min_severity: String(choices=Severity)
    channel: String(choices=Channel, required=True)
    recipient_group_id: Identifier(required=True)
    role: String(choices=DeliveryRole, default=DeliveryRole.TO.value)
    priority: Integer(default=0)
    updated_by: String(max_length=200)


@routing.command(part_of="RoutingPolicy")
class UpdateRoutingPolicy:
    """Change how a policy delivers. Fields left as None are unchanged."""

    policy_id: Identifier(required=True)
    min_severity: String(choices=Severity)
    channel: String(choices=Channel)
    recipient_group_id: Identifier()
    role: String(choices=DeliveryRole)
    priority: Integer()
    updated_by: String(max_length=200)


@routing.command(part_of="RoutingPolicy")
class ToggleRoutingPolicy:
    policy_id: Identifier(required=True)
    updated_by: String(max_length=200)


@routing.command(part_of="RoutingPolicy")
class DeleteRoutingPolicy:
    policy_id: Identifier(required=True)


@routing.command_handler(part_of=RoutingPolicy)
class RoutingPolicyManagementHandler:
    @handle(CreateRoutingPolicy)
    def create_policy(self, command: CreateRoutingPolicy):
        # The target group must exist; raises ObjectNotFoundError otherwise
        group = current_domain.repository_for(RecipientGroup).get(command.recipient_group_id)

        policy = RoutingPolicy.create(
            service=command.service,
            topic=command.topic,
            client_id=command.client_id,
            min_severity=command.min_severity,
            channel=command.channel,
            recipient_group_id=command.recipient_group_id,
            role=command.role,
            priority=command.priority,
            updated_by=command.updated_by,
        )
        current_domain.repository_for(RoutingPolicy).add(policy)
        logger.info(
            "Routing policy created",
            policy_id=str(policy.id),
            service=policy.service,
            topic=policy.topic,
            client_id=policy.client_id or "(default)",
            group=group.name,
            role=policy.role,
        )
        return str(policy.id)

    @handle(UpdateRoutingPolicy)
    def update_policy(self, command: UpdateRoutingPolicy):
        repo = current_domain.repository_for(RoutingPolicy)
        policy = repo.get(command.policy_id)

        changes = {
            field: getattr(command, field)
            for field in ("min_severity", "channel", "recipient_group_id", "role", "priority")
            if getattr(command, field) is not None
        }
        if "recipient_group_id" in changes:
            current_domain.repository_for(RecipientGroup).get(changes["recipient_group_id"])

        policy.update(updated_by=command.updated_by, **changes)
        repo.add(policy)
        logger.info("Routing policy updated", policy_id=str(policy.id))

    @handle(ToggleRoutingPolicy)
    def toggle_policy(self, command: ToggleRoutingPolicy):
        repo = current_domain.repository_for(RoutingPolicy)
        policy = repo.get(command.policy_id)
        policy.toggle(updated_by=command.updated_by)
        repo.add(policy)
        logger.info("Routing policy toggled", policy_id=str(policy.id), is_enabled=policy.is_enabled)
        return policy.is_enabled

    @handle(DeleteRoutingPolicy)
    def delete_policy(self, command: DeleteRoutingPolicy):
        repo = current_domain.repository_for(RoutingPolicy)
        policy = repo.get(command.policy_id)
        repo._dao.delete(policy)
        logger.info("Routing policy deleted", policy_id=str(command.policy_id))
