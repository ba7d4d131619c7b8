"""Application tests for contact and recipient group management commands."""

import json

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

from routing.directory.contact import Contact
from routing.directory.contact_management import (
    CreateContact,
    DeactivateContact,
    ReactivateContact,
    UpdateContact,
)
from routing.directory.group import RecipientGroup
from routing.directory.group_management import (
    AddGroupMember,
    CreateRecipientGroup,
    DeleteRecipientGroup,
    RemoveGroupMember,
    SetRecipientGroupActive,
    UpdateRecipientGroup,
)
from routing.directory.queries import get_groups_for_contact, get_members


def _process(command):
    return current_domain.process(command, asynchronous=False)


class TestContactCommands:
    def test_create_returns_id(self):
        contact_id = _process(CreateContact(name="Sam", email="sam@example.com", phone="+15550101"))
        contact = current_domain.repository_for(Contact).get(contact_id)
        assert contact.email == "sam@example.com"
        assert contact.phone == "+15550101"

    def test_duplicate_email_is_rejected(self):
        _process(CreateContact(name="Sam", email="sam@example.com"))
        with pytest.raises(ValidationError):
            _process(CreateContact(name="Other Sam", email="sam@example.com"))

    def test_contacts_without_email_do_not_clash(self):
        _process(CreateContact(name="Pager A", phone="+15550001"))
        _process(CreateContact(name="Pager B", phone="+15550002"))
        assert len(current_domain.repository_for(Contact).list_contacts()) == 2

    def test_update_keeps_unspecified_fields(self):
        contact_id = _process(CreateContact(name="Sam", email="sam@example.com", phone="+15550101"))
        _process(UpdateContact(contact_id=contact_id, organization="Acme"))
        contact = current_domain.repository_for(Contact).get(contact_id)
        assert contact.organization == "Acme"
        assert contact.phone == "+15550101"

    def test_update_to_taken_email_is_rejected(self):
        _process(CreateContact(name="Sam", email="sam@example.com"))
        other = _process(CreateContact(name="Ari", email="ari@example.com"))
        with pytest.raises(ValidationError):
            _process(UpdateContact(contact_id=other, email="sam@example.com"))

    def test_deactivate_hides_from_default_listing(self):
        contact_id = _process(CreateContact(name="Sam", email="sam@example.com"))
        _process(DeactivateContact(contact_id=contact_id))

        repo = current_domain.repository_for(Contact)
        assert repo.list_contacts() == []
        assert [str(c.id) for c in repo.list_contacts(include_inactive=True)] == [contact_id]

        _process(ReactivateContact(contact_id=contact_id))
        assert len(repo.list_contacts()) == 1

    def test_search_matches_name_and_email(self):
        _process(CreateContact(name="Sam Rivera", email="sam@example.com"))
        _process(CreateContact(name="Ari", email="ari@acme.test"))
        repo = current_domain.repository_for(Contact)
        assert [c.name for c in repo.search("rivera")] == ["Sam Rivera"]
        assert [c.name for c in repo.search("acme")] == ["Ari"]


class TestGroupCommands:
    def test_create_group(self):
        group_id = _process(CreateRecipientGroup(name="Payroll Ops", purpose="Both", tags=json.dumps(["payroll"])))
        group = current_domain.repository_for(RecipientGroup).get(group_id)
        assert group.purpose == "Both"
        assert group.tag_list == ["payroll"]

    def test_name_unique_within_client_scope(self):
        _process(CreateRecipientGroup(name="Ops"))
        with pytest.raises(ValidationError):
            _process(CreateRecipientGroup(name="Ops"))

    def test_same_name_allowed_for_different_clients(self):
        _process(CreateRecipientGroup(name="Ops"))
        _process(CreateRecipientGroup(name="Ops", client_id="acme"))
        _process(CreateRecipientGroup(name="Ops", client_id="globex"))

    def test_rename_to_existing_name_is_rejected(self):
        _process(CreateRecipientGroup(name="Ops"))
        other = _process(CreateRecipientGroup(name="Finance"))
        with pytest.raises(ValidationError):
            _process(UpdateRecipientGroup(group_id=other, name="Ops"))

    def test_membership_commands(self, make_contact):
        contact = make_contact()
        group_id = _process(CreateRecipientGroup(name="Ops"))

        _process(AddGroupMember(group_id=group_id, contact_id=str(contact.id), added_by="ops"))
        assert [str(c.id) for c in get_members(group_id)] == [str(contact.id)]
        assert [str(g.id) for g in get_groups_for_contact(contact.id)] == [group_id]

        _process(RemoveGroupMember(group_id=group_id, contact_id=str(contact.id)))
        assert get_members(group_id) == []

    def test_adding_unknown_contact_is_rejected(self):
        group_id = _process(CreateRecipientGroup(name="Ops"))
        with pytest.raises(ObjectNotFoundError):
            _process(AddGroupMember(group_id=group_id, contact_id="missing"))

    def test_get_members_can_exclude_inactive(self, make_contact, make_group):
        active = make_contact(name="On", email="on@example.com")
        inactive = make_contact(name="Off", email="off@example.com", active=False)
        group = make_group(members=[active, inactive])

        assert len(get_members(group.id)) == 2
        assert [c.name for c in get_members(group.id, include_inactive=False)] == ["On"]

    def test_deactivate_group(self):
        group_id = _process(CreateRecipientGroup(name="Ops"))
        _process(SetRecipientGroupActive(group_id=group_id, is_active=False))
        repo = current_domain.repository_for(RecipientGroup)
        assert repo.list_groups() == []
        assert len(repo.list_groups(include_inactive=True)) == 1

    def test_delete_unused_group(self):
        group_id = _process(CreateRecipientGroup(name="Ops"))
        _process(DeleteRecipientGroup(group_id=group_id))
        with pytest.raises(ObjectNotFoundError):
            current_domain.repository_for(RecipientGroup).get(group_id)

    def test_group_used_by_policy_cannot_be_deleted(self, make_group, make_policy):
        group = make_group()
        make_policy(group)
        with pytest.raises(ValidationError):
            _process(DeleteRecipientGroup(group_id=str(group.id)))
