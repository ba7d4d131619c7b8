"""Sample sends: email a rendered template to a test recipient group.

Only groups whose purpose is TestOnly or Both may receive sample sends;
Production groups are refused. Each send is recorded for audit.
"""

import json

import structlog
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from routing.channel import get_channel
from routing.directory.group import RecipientGroup
from routing.directory.queries import get_members
from routing.domain import routing
from routing.shared.clock import utcnow
from routing.shared.enums import Channel
from routing.template.events import SampleSendRecorded
from routing.template.resolver import preview_template

logger = structlog.get_logger(__name__)


@routing.aggregate
class SampleSend:
    group_id: Identifier(required=True)
    template_id: Identifier(required=True)
    subject: String(max_length=500, sanitize=False)
    recipients: Text(sanitize=False)  # JSON list of email addresses
    reason: String(max_length=500)
    initiated_by: String(max_length=200)
    success: Boolean(default=False)
    error_message: String(max_length=2000, sanitize=False)
    message_ids: Text(sanitize=False)  # JSON list
    sent_at: DateTime()

    @classmethod
    def record(cls, group_id, template_id, subject, recipients, results, reason=None, initiated_by=None):
        now = utcnow()
        errors = [r.get("error") or "Delivery failed" for r in results if r.get("status") != "sent"]
        send = cls(
            group_id=str(group_id),
            template_id=str(template_id),
            subject=subject,
            recipients=json.dumps(recipients),
            reason=reason,
            initiated_by=initiated_by or "system",
            success=not errors,
            error_message="; ".join(errors)[:2000] if errors else None,
            message_ids=json.dumps([r.get("message_id") for r in results if r.get("message_id")]),
            sent_at=now,
        )
        send.raise_(
            SampleSendRecorded(
                sample_send_id=str(send.id),
                group_id=str(group_id),
                template_id=str(template_id),
                recipient_count=len(recipients),
                success=send.success,
                sent_at=now,
            )
        )
        return send

    @property
    def recipient_list(self) -> list[str]:
        return json.loads(self.recipients) if self.recipients else []


@routing.command(part_of="SampleSend")
class SendSampleMessage:
    group_id: Identifier(required=True)
    template_id: Identifier(required=True)
    data: Text(sanitize=False)  # JSON object; defaults to the template's test data
    reason: String(max_length=500)
    initiated_by: String(max_length=200)


@routing.command_handler(part_of=SampleSend)
class SampleSendHandler:
    @handle(SendSampleMessage)
    def send_sample(self, command: SendSampleMessage):
        group = current_domain.repository_for(RecipientGroup).get(command.group_id)
        if not group.allows_test_sends:
            raise ValidationError(
                {
                    "group_id": [
                        f"Group '{group.name}' is marked as Production-only and cannot receive test messages"
                    ]
                }
            )

        recipients = [c.email for c in get_members(group.id, include_inactive=False) if c.email]
        if not recipients:
            raise ValidationError({"group_id": [f"Group '{group.name}' has no active members with an email address"]})

        data = json.loads(command.data) if command.data else None
        content = preview_template(command.template_id, data)

        adapter = get_channel(Channel.EMAIL.value)
        results = [
            adapter.send(
                to=[address],
                subject=f"[TEST] {content.subject}",
                body=content.plain_text_body,
                html_body=content.html_body,
            )
            for address in recipients
        ]

        send = SampleSend.record(
            group_id=group.id,
            template_id=command.template_id,
            subject=content.subject,
            recipients=recipients,
            results=results,
            reason=command.reason,
            initiated_by=command.initiated_by,
        )
        current_domain.repository_for(SampleSend).add(send)
        logger.info(
            "Sample send recorded",
            sample_send_id=str(send.id),
            group_id=str(group.id),
            recipients=len(recipients),
            success=send.success,
        )
        return str(send.id)


def sample_send_groups() -> list[RecipientGroup]:
    """Active groups that may receive sample sends."""
    groups = current_domain.repository_for(RecipientGroup).list_groups()
    return [g for g in groups if g.allows_test_sends]
