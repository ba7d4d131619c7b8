"""Domain events for message templates and topic-to-template mappings."""

from protean.fields import Boolean, DateTime, Identifier, Integer, String

from routing.domain import routing


@routing.event(part_of="MessageTemplate")
class MessageTemplateCreated:
    __version__ = 1

    template_id: Identifier(required=True)
    name: String(required=True)
    created_at: DateTime(required=True)


@routing.event(part_of="MessageTemplate")
class MessageTemplateUpdated:
    __version__ = 1

    template_id: Identifier(required=True)
    updated_at: DateTime(required=True)


@routing.event(part_of="MessageTemplate")
class MessageTemplateActivationChanged:
    __version__ = 1

    template_id: Identifier(required=True)
    is_active: Boolean()
    changed_at: DateTime(required=True)


@routing.event(part_of="TopicTemplateMapping")
class TopicTemplateMappingCreated:
    __version__ = 1

    mapping_id: Identifier(required=True)
    service: String(required=True)
    topic: String(required=True)
    client_id: String()
    template_id: Identifier(required=True)
    priority: Integer(default=0)
    created_at: DateTime(required=True)


@routing.event(part_of="TopicTemplateMapping")
class TopicTemplateMappingUpdated:
    __version__ = 1

    mapping_id: Identifier(required=True)
    template_id: Identifier(required=True)
    priority: Integer(default=0)
    is_enabled: Boolean()
    updated_by: String()
    updated_at: DateTime(required=True)


@routing.event(part_of="SampleSend")
class SampleSendRecorded:
    """A template was sent to a test group outside normal routing."""

    __version__ = 1

    sample_send_id: Identifier(required=True)
    group_id: Identifier(required=True)
    template_id: Identifier(required=True)
    recipient_count: Integer(default=0)
    success: Boolean()
    sent_at: DateTime(required=True)
