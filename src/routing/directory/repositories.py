"""Repositories for the directory aggregates (contacts and recipient groups)."""

from routing.directory.contact import Contact
from routing.directory.group import RecipientGroup
from routing.domain import routing
from routing.shared.precedence import same_scope
from routing.shared.queries import all_items


@routing.repository(part_of=Contact)
class ContactRepository:
    def find_by_email(self, email: str) -> Contact | None:
        if not email:
            return None
        matches = all_items(self._dao.query.filter(email=email.strip()))
        return matches[0] if matches else None

    def list_contacts(self, include_inactive: bool = False) -> list[Contact]:
        query = self._dao.query if include_inactive else self._dao.query.filter(is_active=True)
        return sorted(all_items(query), key=lambda c: (c.name or "").lower())

    def search(self, term: str, include_inactive: bool = False) -> list[Contact]:
        """Case-insensitive match on name, email or organization."""
        needle = (term or "").strip().lower()
        found = []
        for contact in self.list_contacts(include_inactive=include_inactive):
            haystack = " ".join(filter(None, [contact.name, contact.email, contact.organization])).lower()
            if needle in haystack:
                found.append(contact)
        return found

    def get_many(self, contact_ids) -> dict[str, Contact]:
        """Load contacts by id; unknown ids are left out of the result."""
        wanted = {str(cid) for cid in contact_ids}
        if not wanted:
            return {}
        return {str(c.id): c for c in all_items(self._dao.query.filter(id__in=list(wanted)))}


@routing.repository(part_of=RecipientGroup)
class RecipientGroupRepository:
    def find_by_name(self, name: str, client_id: str | None) -> RecipientGroup | None:
        for group in all_items(self._dao.query.filter(name=name)):
            if same_scope(group.client_id, client_id):
                return group
        return None

    def by_client(self, client_id: str | None) -> list[RecipientGroup]:
        groups = [g for g in all_items(self._dao.query) if same_scope(g.client_id, client_id)]
        return sorted(groups, key=lambda g: g.name.lower())

    def list_groups(self, include_inactive: bool = False) -> list[RecipientGroup]:
        query = self._dao.query if include_inactive else self._dao.query.filter(is_active=True)
        return sorted(all_items(query), key=lambda g: g.name.lower())

    def groups_for_contact(self, contact_id) -> list[RecipientGroup]:
        return [g for g in self.list_groups(include_inactive=True) if g.has_member(contact_id)]
