"""Read-side helpers for the directory."""

from protean.utils.globals import current_domain

from routing.directory.contact import Contact
from routing.directory.group import RecipientGroup


def get_members(group_id, include_inactive: bool = True) -> list[Contact]:
    """Contacts belonging to a group, in membership order."""
    group = current_domain.repository_for(RecipientGroup).get(group_id)
    contacts = current_domain.repository_for(Contact).get_many(group.member_ids)
    members = [contacts[cid] for cid in group.member_ids if cid in contacts]
    if not include_inactive:
        members = [c for c in members if c.is_active]
    return members


def get_groups_for_contact(contact_id) -> list[RecipientGroup]:
    current_domain.repository_for(Contact).get(contact_id)
    return current_domain.repository_for(RecipientGroup).groups_for_contact(contact_id)
