"""MessageTemplate aggregate: named, Jinja2-templated message content."""

import json
from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, String, Text

from routing.domain import routing
from routing.template import renderer
from routing.template.events import (
    MessageTemplateActivationChanged,
    MessageTemplateCreated,
    MessageTemplateUpdated,
)

_UNSET = object()


@routing.aggregate
class MessageTemplate:
    """Subject plus HTML and/or plain-text bodies rendered against an event payload."""

    name: String(required=True, max_length=200, unique=True)
    description: String(max_length=1000)
    template_type: String(max_length=50, default="notification")
    subject: String(required=True, max_length=500, sanitize=False)
    html_content: Text(sanitize=False)
    text_content: Text(sanitize=False)
    test_data: Text(sanitize=False)  # JSON object used for previews and test sends
    is_active: Boolean(default=True)

    created_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def create(
        cls,
        name,
        subject,
        html_content=None,
        text_content=None,
        description=None,
        template_type="notification",
        test_data=None,
    ):
        for text in (subject, html_content, text_content):
            renderer.validate(text)

        now = datetime.now(UTC)
        template = cls(
            name=name,
            subject=subject,
            html_content=html_content,
            text_content=text_content,
            description=description,
            template_type=template_type or "notification",
            test_data=json.dumps(test_data) if test_data is not None else None,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        template.raise_(MessageTemplateCreated(template_id=str(template.id), name=name, created_at=now))
        return template

    @property
    def variables(self) -> set[str]:
        """Every top-level variable referenced by the subject and bodies."""
        found = set()
        for text in (self.subject, self.html_content, self.text_content):
            found |= renderer.extract_variables(text)
        return found

    @property
    def sample_data(self) -> dict:
        return json.loads(self.test_data) if self.test_data else {}

    def render(self, data: dict | None) -> dict:
        """Render subject and bodies. Bodies without content render to None."""
        return {
            "subject": renderer.render(self.subject, data),
            "html_body": renderer.render(self.html_content, data, html=True) if self.html_content else None,
            "plain_text_body": renderer.render(self.text_content, data) if self.text_content else None,
        }

    def update_content(
        self,
        subject=_UNSET,
        html_content=_UNSET,
        text_content=_UNSET,
        description=_UNSET,
        template_type=_UNSET,
        test_data=_UNSET,
    ):
        if subject is not _UNSET:
            renderer.validate(subject)
            self.subject = subject
        if html_content is not _UNSET:
            renderer.validate(html_content)
            self.html_content = html_content
        if text_content is not _UNSET:
            renderer.validate(text_content)
            self.text_content = text_content
        if description is not _UNSET:
            self.description = description
        if template_type is not _UNSET:
            self.template_type = template_type
        if test_data is not _UNSET:
            self.test_data = json.dumps(test_data) if test_data is not None else None

        now = datetime.now(UTC)
        self.updated_at = now
        self.raise_(MessageTemplateUpdated(template_id=str(self.id), updated_at=now))

    def set_active(self, is_active: bool):
        now = datetime.now(UTC)
        self.is_active = is_active
        self.updated_at = now
        self.raise_(
            MessageTemplateActivationChanged(
                template_id=str(self.id),
                is_active=is_active,
                changed_at=now,
            )
        )
