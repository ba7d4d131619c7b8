"""TopicTemplateMapping aggregate: default template for a (service, topic, client)."""

from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from routing.domain import routing
from routing.shared.enums import SourceService, Topic
from routing.template.events import TopicTemplateMappingCreated, TopicTemplateMappingUpdated

_UNSET = object()


@routing.aggregate
class TopicTemplateMapping:
    service: String(choices=SourceService, required=True)
    topic: String(choices=Topic, required=True)
    client_id: String(max_length=100)  # empty means default mapping
    template_id: Identifier(required=True)
    priority: Integer(default=0)
    is_enabled: Boolean(default=True)

    created_at: DateTime()
    updated_at: DateTime()
    updated_by: String(max_length=200)

    @classmethod
    def create(cls, service, topic, template_id, client_id=None, priority=0, updated_by=None):
        now = datetime.now(UTC)
        mapping = cls(
            service=service,
            topic=topic,
            client_id=client_id or None,
            template_id=str(template_id),
            priority=priority or 0,
            is_enabled=True,
            created_at=now,
            updated_at=now,
            updated_by=updated_by,
        )
        mapping.raise_(
            TopicTemplateMappingCreated(
                mapping_id=str(mapping.id),
                service=service,
                topic=topic,
                client_id=mapping.client_id,
                template_id=str(template_id),
                priority=mapping.priority,
                created_at=now,
            )
        )
        return mapping

    def update(self, updated_by=None, template_id=_UNSET, priority=_UNSET, is_enabled=_UNSET):
        if template_id is not _UNSET:
            self.template_id = str(template_id)
        if priority is not _UNSET:
            self.priority = priority
        if is_enabled is not _UNSET:
            self.is_enabled = is_enabled

        now = datetime.now(UTC)
        self.updated_at = now
        self.updated_by = updated_by
        self.raise_(
            TopicTemplateMappingUpdated(
                mapping_id=str(self.id),
                template_id=str(self.template_id),
                priority=self.priority,
                is_enabled=self.is_enabled,
                updated_by=updated_by,
                updated_at=now,
            )
        )
