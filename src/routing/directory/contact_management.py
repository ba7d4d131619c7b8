"""Contact administration commands + handler."""

import structlog
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from routing.directory.contact import Contact
from routing.domain import routing

logger = structlog.get_logger(__name__)


@routing.command(part_of="Contact")
class CreateContact:
    name: String(required=True, max_length=200)
    email: String(max_length=254)
    phone: String(max_length=50)
    organization: String(max_length=200)
    user_id: String(max_length=100)
    notes: Text()


@routing.command(part_of="Contact")
class UpdateContact:
    """Partial update: fields left as None keep their current value."""

    contact_id: Identifier(required=True)
    name: String(max_length=200)
    email: String(max_length=254)
    phone: String(max_length=50)
    organization: String(max_length=200)
    user_id: String(max_length=100)
    notes: Text()


@routing.command(part_of="Contact")
class DeactivateContact:
    contact_id: Identifier(required=True)


@routing.command(part_of="Contact")
class ReactivateContact:
    contact_id: Identifier(required=True)


def _assert_email_available(repo, email, contact_id=None):
    existing = repo.find_by_email(email)
    if existing is not None and str(existing.id) != str(contact_id):
        raise ValidationError({"email": [f"Contact with email '{email}' already exists"]})


@routing.command_handler(part_of=Contact)
class ContactManagementHandler:
    @handle(CreateContact)
    def create_contact(self, command: CreateContact):
        repo = current_domain.repository_for(Contact)
        _assert_email_available(repo, command.email)

        contact = Contact.create(
            name=command.name,
            email=command.email or "",
            phone=command.phone,
            organization=command.organization,
            user_id=command.user_id,
            notes=command.notes,
        )
        repo.add(contact)
        logger.info("Contact created", contact_id=str(contact.id), email=contact.email)
        return str(contact.id)

    @handle(UpdateContact)
    def update_contact(self, command: UpdateContact):
        repo = current_domain.repository_for(Contact)
        contact = repo.get(command.contact_id)

        changes = {
            field: getattr(command, field)
            for field in ("name", "email", "phone", "organization", "user_id", "notes")
            if getattr(command, field) is not None
        }
        if "email" in changes:
            _assert_email_available(repo, changes["email"], contact_id=contact.id)

        contact.update_details(**changes)
        repo.add(contact)

    @handle(DeactivateContact)
    def deactivate_contact(self, command: DeactivateContact):
        repo = current_domain.repository_for(Contact)
        contact = repo.get(command.contact_id)
        contact.deactivate()
        repo.add(contact)
        logger.info("Contact deactivated", contact_id=str(contact.id))

    @handle(ReactivateContact)
    def reactivate_contact(self, command: ReactivateContact):
        repo = current_domain.repository_for(Contact)
        contact = repo.get(command.contact_id)
        contact.reactivate()
        repo.add(contact)
