"""Domain events for the Contact and RecipientGroup aggregates."""

from protean.fields import Boolean, DateTime, Identifier, String

from routing.domain import routing


@routing.event(part_of="Contact")
class ContactCreated:
    __version__ = 1

    contact_id: Identifier(required=True)
    name: String(required=True)
    email: String()
    created_at: DateTime(required=True)


@routing.event(part_of="Contact")
class ContactUpdated:
    __version__ = 1

    contact_id: Identifier(required=True)
    updated_at: DateTime(required=True)


@routing.event(part_of="Contact")
class ContactDeactivated:
    """A contact stopped receiving deliveries (soft delete)."""

    __version__ = 1

    contact_id: Identifier(required=True)
    deactivated_at: DateTime(required=True)


@routing.event(part_of="Contact")
class ContactReactivated:
    __version__ = 1

    contact_id: Identifier(required=True)
    reactivated_at: DateTime(required=True)


@routing.event(part_of="RecipientGroup")
class RecipientGroupCreated:
    __version__ = 1

    group_id: Identifier(required=True)
    name: String(required=True)
    client_id: String()
    purpose: String(required=True)
    created_at: DateTime(required=True)


@routing.event(part_of="RecipientGroup")
class RecipientGroupUpdated:
    __version__ = 1

    group_id: Identifier(required=True)
    name: String(required=True)
    updated_at: DateTime(required=True)


@routing.event(part_of="RecipientGroup")
class RecipientGroupActivationChanged:
    """A group was switched on or off for routing."""

    __version__ = 1

    group_id: Identifier(required=True)
    is_active: Boolean()
    changed_at: DateTime(required=True)


@routing.event(part_of="RecipientGroup")
class GroupMemberAdded:
    __version__ = 1

    group_id: Identifier(required=True)
    contact_id: Identifier(required=True)
    added_by: String()
    added_at: DateTime(required=True)


@routing.event(part_of="RecipientGroup")
class GroupMemberRemoved:
    __version__ = 1

    group_id: Identifier(required=True)
    contact_id: Identifier(required=True)
    removed_at: DateTime(required=True)
