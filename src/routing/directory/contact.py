"""Contact aggregate: a person who can receive deliveries.

Contacts are never hard-deleted; deactivation keeps the row (and its
delivery history) while removing the contact from fan-out.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, String, Text

from routing.directory.events import (
    ContactCreated,
    ContactDeactivated,
    ContactReactivated,
    ContactUpdated,
)
from routing.domain import routing
from routing.shared.enums import Channel

_UNSET = object()


@routing.aggregate
class Contact:
    name: String(required=True, max_length=200)
    email: String(max_length=254, default="")
    phone: String(max_length=50)
    organization: String(max_length=200)
    user_id: String(max_length=100)  # in-app identity, when the contact has one
    notes: Text()
    is_active: Boolean(default=True)

    created_at: DateTime()
    updated_at: DateTime()
    deactivated_at: DateTime()

    @classmethod
    def create(cls, name, email="", phone=None, organization=None, user_id=None, notes=None):
        now = datetime.now(UTC)
        contact = cls(
            name=name,
            email=(email or "").strip(),
            phone=phone,
            organization=organization,
            user_id=user_id,
            notes=notes,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        contact.raise_(
            ContactCreated(
                contact_id=str(contact.id),
                name=name,
                email=contact.email,
                created_at=now,
            )
        )
        return contact

    def update_details(
        self,
        name=_UNSET,
        email=_UNSET,
        phone=_UNSET,
        organization=_UNSET,
        user_id=_UNSET,
        notes=_UNSET,
    ):
        """Partial update; arguments left out keep their current value."""
        if name is not _UNSET:
            self.name = name
        if email is not _UNSET:
            self.email = (email or "").strip()
        if phone is not _UNSET:
            self.phone = phone
        if organization is not _UNSET:
            self.organization = organization
        if user_id is not _UNSET:
            self.user_id = user_id
        if notes is not _UNSET:
            self.notes = notes

        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(ContactUpdated(contact_id=str(self.id), updated_at=now))

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"is_active": ["Contact is already inactive"]})

        now = datetime.now(UTC)
        self.is_active = False
        self.deactivated_at = now
        self.updated_at = now
        self.raise_(ContactDeactivated(contact_id=str(self.id), deactivated_at=now))

    def reactivate(self):
        if self.is_active:
            raise ValidationError({"is_active": ["Contact is already active"]})

        now = datetime.now(UTC)
        self.is_active = True
        self.deactivated_at = None
        self.updated_at = now
        self.raise_(ContactReactivated(contact_id=str(self.id), reactivated_at=now))

    def address_for(self, channel: str) -> str | None:
        """The address a channel should send to, or None when the contact lacks it.

        Email needs an email address and SMS a phone number. In-app falls back
        to the contact id and Slack to the contact's email, then name.
        """
        if channel == Channel.EMAIL.value:
            return self.email or None
        if channel == Channel.SMS.value:
            return self.phone or None
        if channel == Channel.IN_APP.value:
            return self.user_id or str(self.id)
        if channel == Channel.SLACK.value:
            return self.email or self.name
        return None

    def can_receive(self, channel: str) -> bool:
        return self.address_for(channel) is not None
