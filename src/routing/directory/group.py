"""RecipientGroup aggregate with its GroupMembership entities.

A group is the unit routing policies target. Groups are scoped either to a
single client (``client_id``) or global (``client_id`` empty); the name is
unique within that scope. ``purpose`` decides whether the group may be used
for test sends.
"""

import json
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, HasMany, Identifier, String, Text

from routing.directory.events import (
    GroupMemberAdded,
    GroupMemberRemoved,
    RecipientGroupActivationChanged,
    RecipientGroupCreated,
    RecipientGroupUpdated,
)
from routing.domain import routing
from routing.shared.enums import GroupPurpose

_UNSET = object()


@routing.entity(part_of="RecipientGroup")
class GroupMembership:
    contact_id: Identifier(required=True)
    added_at: DateTime()
    added_by: String(max_length=200)


@routing.aggregate
class RecipientGroup:
    name: String(required=True, max_length=200)
    client_id: String(max_length=100)  # empty means global
    description: String(max_length=1000)
    purpose: String(choices=GroupPurpose, default=GroupPurpose.PRODUCTION.value)
    tags: Text(sanitize=False)  # JSON list of strings
    is_active: Boolean(default=True)
    memberships: HasMany(GroupMembership)

    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def contact_is_member_once(self):
        contact_ids = [str(m.contact_id) for m in self.memberships]
        if len(contact_ids) != len(set(contact_ids)):
            raise ValidationError({"memberships": ["A contact can only be a member of a group once"]})

    @classmethod
    def create(cls, name, client_id=None, description=None, purpose=None, tags=None):
        now = datetime.now(UTC)
        group = cls(
            name=name,
            client_id=client_id or None,
            description=description,
            purpose=purpose or GroupPurpose.PRODUCTION.value,
            tags=json.dumps(list(tags or [])),
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        group.raise_(
            RecipientGroupCreated(
                group_id=str(group.id),
                name=name,
                client_id=group.client_id,
                purpose=group.purpose,
                created_at=now,
            )
        )
        return group

    @property
    def tag_list(self) -> list[str]:
        return json.loads(self.tags) if self.tags else []

    @property
    def member_ids(self) -> list[str]:
        return [str(m.contact_id) for m in self.memberships]

    @property
    def allows_test_sends(self) -> bool:
        return self.purpose in (GroupPurpose.TEST_ONLY.value, GroupPurpose.BOTH.value)

    def update_details(self, name=_UNSET, description=_UNSET, purpose=_UNSET, tags=_UNSET):
        if name is not _UNSET:
            self.name = name
        if description is not _UNSET:
            self.description = description
        if purpose is not _UNSET:
            self.purpose = purpose
        if tags is not _UNSET:
            self.tags = json.dumps(list(tags or []))

        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(RecipientGroupUpdated(group_id=str(self.id), name=self.name, updated_at=now))

    def set_active(self, is_active: bool):
        if bool(self.is_active) == is_active:
            state = "active" if is_active else "inactive"
            raise ValidationError({"is_active": [f"Group is already {state}"]})

        now = datetime.now(UTC)
        self.is_active = is_active
        self.updated_at = now
        self.raise_(RecipientGroupActivationChanged(group_id=str(self.id), is_active=is_active, changed_at=now))

    def has_member(self, contact_id) -> bool:
        return str(contact_id) in self.member_ids

    def add_member(self, contact_id, added_by=None):
        if self.has_member(contact_id):
            raise ValidationError({"contact_id": [f"Contact {contact_id} is already a member of this group"]})

        now = datetime.now(UTC)
        self.add_memberships(
            GroupMembership(
                contact_id=str(contact_id),
                added_at=now,
                added_by=added_by or "system",
            )
        )
        self.updated_at = now
        self.raise_(
            GroupMemberAdded(
                group_id=str(self.id),
                contact_id=str(contact_id),
                added_by=added_by or "system",
                added_at=now,
            )
        )

    def remove_member(self, contact_id):
        membership = next((m for m in self.memberships if str(m.contact_id) == str(contact_id)), None)
        if membership is None:
            raise ValidationError({"contact_id": [f"Contact {contact_id} is not a member of this group"]})

        now = datetime.now(UTC)
        self.remove_memberships(membership)
        self.updated_at = now
        self.raise_(GroupMemberRemoved(group_id=str(self.id), contact_id=str(contact_id), removed_at=now))

    def clear_members(self):
        for membership in list(self.memberships):
            self.remove_memberships(membership)
