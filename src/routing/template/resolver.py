"""Template Resolver: the subject and bodies a delivery should carry.

Resolution order for an outbound event:

1. an explicit ``template_id`` on the event, when it is a template identity
   (hard error when the template is missing or inactive); any other value
   is ignored;
2. the highest-priority enabled topic mapping for the event's client,
   then the default mapping;
3. the event's own subject/body, verbatim.
"""

from dataclasses import dataclass
from uuid import UUID

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from routing.shared.precedence import ClientScopedLookup
from routing.template.mapping import TopicTemplateMapping
from routing.template.template import MessageTemplate

logger = structlog.get_logger(__name__)

FALLBACK_SUBJECT = "Notification"


@dataclass(frozen=True)
class ResolvedContent:
    subject: str
    html_body: str | None = None
    plain_text_body: str | None = None
    template_id: str | None = None  # None when the event's own content was used


def template_reference(raw) -> str | None:
    """Canonical template id for ``raw``, or None when it is not a UUID."""
    if raw is None:
        return None
    try:
        return str(UUID(str(raw).strip()))
    except ValueError:
        return None


class TemplateResolver:
    def resolve(self, event) -> ResolvedContent:
        explicit_id = template_reference(event.template_id)
        if explicit_id:
            logger.debug("Using explicit template", template_id=explicit_id, event_id=str(event.id))
            return self.render_template(explicit_id, event.payload_data)
        if (event.template_id or "").strip():
            logger.debug(
                "Ignoring template id that is not a template identity",
                template_id=event.template_id,
                event_id=str(event.id),
            )

        mapping = self.find_mapping(event.service, event.topic, event.client_id)
        if mapping is not None:
            logger.debug(
                "Template mapping found",
                service=event.service,
                topic=event.topic,
                client_id=event.client_id or "(default)",
                template_id=str(mapping.template_id),
            )
            return self.render_template(mapping.template_id, event.payload_data)

        logger.debug(
            "No template mapping, using event subject/body",
            service=event.service,
            topic=event.topic,
        )
        return ResolvedContent(
            subject=event.subject or FALLBACK_SUBJECT,
            html_body=event.body,
            plain_text_body=None,
            template_id=None,
        )

    def find_mapping(self, service, topic, client_id) -> TopicTemplateMapping | None:
        repo = current_domain.repository_for(TopicTemplateMapping)
        result = ClientScopedLookup(lambda scope: repo.enabled_for(service, topic, scope)).resolve(client_id)
        return result.items[0] if result.items else None

    def has_mapping(self, service, topic, client_id) -> bool:
        return self.find_mapping(service, topic, client_id) is not None

    def render_template(self, template_id, data: dict | None) -> ResolvedContent:
        # Missing templates raise ObjectNotFoundError from the repository
        template = current_domain.repository_for(MessageTemplate).get(str(template_id))
        if not template.is_active:
            raise ValidationError({"template_id": [f"Template {template_id} ({template.name}) is not active"]})

        rendered = template.render(data or {})
        logger.info("Rendered template", template_id=str(template.id), template_name=template.name)
        return ResolvedContent(
            subject=rendered["subject"],
            html_body=rendered["html_body"],
            plain_text_body=rendered["plain_text_body"],
            template_id=str(template.id),
        )


def preview_template(template_id, data: dict | None = None) -> ResolvedContent:
    """Render a template against ``data`` or, when omitted, its stored test data."""
    template = current_domain.repository_for(MessageTemplate).get(str(template_id))
    rendered = template.render(data if data is not None else template.sample_data)
    return ResolvedContent(
        subject=rendered["subject"],
        html_body=rendered["html_body"],
        plain_text_body=rendered["plain_text_body"],
        template_id=str(template.id),
    )
