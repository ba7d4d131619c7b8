"""Template and topic-mapping administration commands + handlers."""

import json

import structlog
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from routing.domain import routing
from routing.shared.enums import SourceService, Topic
from routing.template.mapping import TopicTemplateMapping
from routing.template.template import MessageTemplate

logger = structlog.get_logger(__name__)


@routing.command(part_of="MessageTemplate")
class CreateMessageTemplate:
    name: String(required=True, max_length=200)
    subject: String(required=True, max_length=500, sanitize=False)
    html_content: Text(sanitize=False)
    text_content: Text(sanitize=False)
    description: String(max_length=1000)
    template_type: String(max_length=50, default="notification")
    test_data: Text(sanitize=False)  # JSON object


@routing.command(part_of="MessageTemplate")
class UpdateMessageTemplate:
    template_id: Identifier(required=True)
    subject: String(max_length=500, sanitize=False)
    html_content: Text(sanitize=False)
    text_content: Text(sanitize=False)
    description: String(max_length=1000)
    template_type: String(max_length=50)
    test_data: Text(sanitize=False)  # JSON object


@routing.command(part_of="MessageTemplate")
class SetMessageTemplateActive:
    template_id: Identifier(required=True)
    is_active: Boolean(default=True)


@routing.command(part_of="TopicTemplateMapping")
class CreateTopicTemplateMapping:
    service: String(choices=SourceService, required=True)
    topic: String(choices=Topic, required=True)
    client_id: String(max_length=100)
    template_id: Identifier(required=True)
    priority: Integer(default=0)
    updated_by: String(max_length=200)


@routing.command(part_of="TopicTemplateMapping")
class UpdateTopicTemplateMapping:
    mapping_id: Identifier(required=True)
    template_id: Identifier()
    priority: Integer()
    is_enabled: Boolean()
    updated_by: String(max_length=200)


@routing.command(part_of="TopicTemplateMapping")
class DeleteTopicTemplateMapping:
    mapping_id: Identifier(required=True)


def _parse_json_object(raw, field):
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except ValueError as exc:
        raise ValidationError({field: ["Must be a JSON object"]}) from exc
    if not isinstance(value, dict):
        raise ValidationError({field: ["Must be a JSON object"]})
    return value


@routing.command_handler(part_of=MessageTemplate)
class MessageTemplateManagementHandler:
    @handle(CreateMessageTemplate)
    def create_template(self, command: CreateMessageTemplate):
        repo = current_domain.repository_for(MessageTemplate)
        if repo.find_by_name(command.name) is not None:
            raise ValidationError({"name": [f"Template '{command.name}' already exists"]})

        template = MessageTemplate.create(
            name=command.name,
            subject=command.subject,
            html_content=command.html_content,
            text_content=command.text_content,
            description=command.description,
            template_type=command.template_type,
            test_data=_parse_json_object(command.test_data, "test_data"),
        )
        repo.add(template)
        logger.info("Message template created", template_id=str(template.id), name=template.name)
        return str(template.id)

    @handle(UpdateMessageTemplate)
    def update_template(self, command: UpdateMessageTemplate):
        repo = current_domain.repository_for(MessageTemplate)
        template = repo.get(command.template_id)

        changes = {
            field: getattr(command, field)
            for field in ("subject", "html_content", "text_content", "description", "template_type")
            if getattr(command, field) is not None
        }
        if command.test_data is not None:
            changes["test_data"] = _parse_json_object(command.test_data, "test_data")

        template.update_content(**changes)
        repo.add(template)

    @handle(SetMessageTemplateActive)
    def set_template_active(self, command: SetMessageTemplateActive):
        repo = current_domain.repository_for(MessageTemplate)
        template = repo.get(command.template_id)
        template.set_active(bool(command.is_active))
        repo.add(template)
        logger.info("Message template activation changed", template_id=str(template.id), is_active=template.is_active)


@routing.command_handler(part_of=TopicTemplateMapping)
class TopicTemplateMappingHandler:
    @handle(CreateTopicTemplateMapping)
    def create_mapping(self, command: CreateTopicTemplateMapping):
        current_domain.repository_for(MessageTemplate).get(command.template_id)

        mapping = TopicTemplateMapping.create(
            service=command.service,
            topic=command.topic,
            template_id=command.template_id,
            client_id=command.client_id,
            priority=command.priority,
            updated_by=command.updated_by,
        )
        current_domain.repository_for(TopicTemplateMapping).add(mapping)
        logger.info(
            "Topic template mapping created",
            mapping_id=str(mapping.id),
            service=mapping.service,
            topic=mapping.topic,
            client_id=mapping.client_id or "(default)",
            template_id=str(mapping.template_id),
        )
        return str(mapping.id)

    @handle(UpdateTopicTemplateMapping)
    def update_mapping(self, command: UpdateTopicTemplateMapping):
        repo = current_domain.repository_for(TopicTemplateMapping)
        mapping = repo.get(command.mapping_id)

        changes = {
            field: getattr(command, field)
            for field in ("template_id", "priority", "is_enabled")
            if getattr(command, field) is not None
        }
        if "template_id" in changes:
            current_domain.repository_for(MessageTemplate).get(changes["template_id"])

        mapping.update(updated_by=command.updated_by, **changes)
        repo.add(mapping)

    @handle(DeleteTopicTemplateMapping)
    def delete_mapping(self, command: DeleteTopicTemplateMapping):
        repo = current_domain.repository_for(TopicTemplateMapping)
        mapping = repo.get(command.mapping_id)
        repo._dao.delete(mapping)
        logger.info("Topic template mapping deleted", mapping_id=str(command.mapping_id))
