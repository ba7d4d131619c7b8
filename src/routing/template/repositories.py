"""Repositories for message templates and topic-to-template mappings."""

from routing.domain import routing
from routing.shared.precedence import same_scope
from routing.shared.queries import all_items
from routing.template.mapping import TopicTemplateMapping
from routing.template.template import MessageTemplate


@routing.repository(part_of=MessageTemplate)
class MessageTemplateRepository:
    def find_by_name(self, name: str) -> MessageTemplate | None:
        matches = all_items(self._dao.query.filter(name=name))
        return matches[0] if matches else None

    def list_templates(self, include_inactive: bool = False) -> list[MessageTemplate]:
        query = self._dao.query if include_inactive else self._dao.query.filter(is_active=True)
        return sorted(all_items(query), key=lambda t: t.name.lower())


@routing.repository(part_of=TopicTemplateMapping)
class TopicTemplateMappingRepository:
    def enabled_for(self, service: str, topic: str, client_id: str | None) -> list[TopicTemplateMapping]:
        """Enabled mappings at exactly ``client_id``'s scope, highest priority first."""
        candidates = all_items(self._dao.query.filter(service=service, topic=topic, is_enabled=True))
        return sorted(
            (m for m in candidates if same_scope(m.client_id, client_id)),
            key=lambda m: m.priority or 0,
            reverse=True,
        )

    def by_service_and_topic(self, service: str, topic: str) -> list[TopicTemplateMapping]:
        return sorted(
            all_items(self._dao.query.filter(service=service, topic=topic)),
            key=lambda m: m.priority or 0,
            reverse=True,
        )

    def using_template(self, template_id) -> list[TopicTemplateMapping]:
        return all_items(self._dao.query.filter(template_id=str(template_id)))
