"""Recipient group administration commands + handler.

Covers group CRUD and membership. Name uniqueness within a client scope
needs a repository lookup, so it is checked here rather than on the
aggregate.
"""

import json

import structlog
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from routing.directory.contact import Contact
from routing.directory.group import RecipientGroup
from routing.domain import routing
from routing.shared.enums import GroupPurpose

logger = structlog.get_logger(__name__)


@routing.command(part_of="RecipientGroup")
class CreateRecipientGroup:
    name: String(required=True, max_length=200)
    client_id: String(max_length=100)
    description: String(max_length=1000)
    purpose: String(choices=GroupPurpose, default=GroupPurpose.PRODUCTION.value)
    tags: Text(sanitize=False)  # JSON list of strings


@routing.command(part_of="RecipientGroup")
class UpdateRecipientGroup:
    group_id: Identifier(required=True)
    name: String(max_length=200)
    description: String(max_length=1000)
    purpose: String(choices=GroupPurpose)
    tags: Text(sanitize=False)  # JSON list of strings


@routing.command(part_of="RecipientGroup")
class SetRecipientGroupActive:
    group_id: Identifier(required=True)
    is_active: Boolean(default=True)


@routing.command(part_of="RecipientGroup")
class DeleteRecipientGroup:
    group_id: Identifier(required=True)


@routing.command(part_of="RecipientGroup")
class AddGroupMember:
    group_id: Identifier(required=True)
    contact_id: Identifier(required=True)
    added_by: String(max_length=200)


@routing.command(part_of="RecipientGroup")
class RemoveGroupMember:
    group_id: Identifier(required=True)
    contact_id: Identifier(required=True)


def _scope_label(client_id):
    return client_id or "(global)"


@routing.command_handler(part_of=RecipientGroup)
class RecipientGroupManagementHandler:
    @handle(CreateRecipientGroup)
    def create_group(self, command: CreateRecipientGroup):
        repo = current_domain.repository_for(RecipientGroup)
        if repo.find_by_name(command.name, command.client_id) is not None:
            raise ValidationError(
                {
                    "name": [
                        f"Recipient group '{command.name}' already exists "
                        f"for client '{_scope_label(command.client_id)}'"
                    ]
                }
            )

        group = RecipientGroup.create(
            name=command.name,
            client_id=command.client_id,
            description=command.description,
            purpose=command.purpose,
            tags=json.loads(command.tags) if command.tags else [],
        )
        repo.add(group)
        logger.info(
            "Recipient group created",
            group_id=str(group.id),
            name=group.name,
            client_id=_scope_label(group.client_id),
        )
        return str(group.id)

    @handle(UpdateRecipientGroup)
    def update_group(self, command: UpdateRecipientGroup):
        repo = current_domain.repository_for(RecipientGroup)
        group = repo.get(command.group_id)

        if command.name is not None and command.name != group.name:
            clash = repo.find_by_name(command.name, group.client_id)
            if clash is not None and str(clash.id) != str(group.id):
                raise ValidationError(
                    {
                        "name": [
                            f"Recipient group '{command.name}' already exists "
                            f"for client '{_scope_label(group.client_id)}'"
                        ]
                    }
                )

        changes = {}
        if command.name is not None:
            changes["name"] = command.name
        if command.description is not None:
            changes["description"] = command.description
        if command.purpose is not None:
            changes["purpose"] = command.purpose
        if command.tags is not None:
            changes["tags"] = json.loads(command.tags)

        group.update_details(**changes)
        repo.add(group)

    @handle(SetRecipientGroupActive)
    def set_group_active(self, command: SetRecipientGroupActive):
        repo = current_domain.repository_for(RecipientGroup)
        group = repo.get(command.group_id)
        group.set_active(bool(command.is_active))
        repo.add(group)
        logger.info("Recipient group activation changed", group_id=str(group.id), is_active=group.is_active)

    @handle(DeleteRecipientGroup)
    def delete_group(self, command: DeleteRecipientGroup):
        from routing.policy.policy import RoutingPolicy

        repo = current_domain.repository_for(RecipientGroup)
        group = repo.get(command.group_id)

        in_use = current_domain.repository_for(RoutingPolicy).using_group(group.id)
        if in_use:
            raise ValidationError(
                {"group_id": [f"Recipient group is used by {len(in_use)} routing policies and cannot be deleted"]}
            )

        group.clear_members()
        repo.add(group)
        repo._dao.delete(group)
        logger.info("Recipient group deleted", group_id=str(command.group_id))

    @handle(AddGroupMember)
    def add_member(self, command: AddGroupMember):
        repo = current_domain.repository_for(RecipientGroup)
        group = repo.get(command.group_id)
        # Unknown contacts raise ObjectNotFoundError
        current_domain.repository_for(Contact).get(command.contact_id)

        group.add_member(command.contact_id, added_by=command.added_by)
        repo.add(group)
        logger.info(
            "Contact added to group",
            group_id=str(group.id),
            contact_id=str(command.contact_id),
            added_by=command.added_by or "system",
        )

    @handle(RemoveGroupMember)
    def remove_member(self, command: RemoveGroupMember):
        repo = current_domain.repository_for(RecipientGroup)
        group = repo.get(command.group_id)
        group.remove_member(command.contact_id)
        repo.add(group)
        logger.info("Contact removed from group", group_id=str(group.id), contact_id=str(command.contact_id))
