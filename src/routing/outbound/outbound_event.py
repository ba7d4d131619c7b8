"""OutboundEvent aggregate: the append-only log of events offered for routing.

Events are never deleted. ``processed_at`` is set exactly once, when
routing has created the event's deliveries.
"""

import json

from protean.exceptions import ValidationError
from protean.fields import DateTime, String, Text

from routing.domain import routing
from routing.outbound.events import OutboundEventProcessed, OutboundEventReceived
from routing.shared.clock import utcnow
from routing.shared.enums import Severity, SourceService, Topic


@routing.aggregate
class OutboundEvent:
    service: String(choices=SourceService, required=True)
    topic: String(choices=Topic, required=True)
    client_id: String(max_length=100)
    severity: String(choices=Severity, default=Severity.INFO.value)

    # Content: either a template reference or literal subject/body
    template_id: String(max_length=100)
    subject: String(max_length=500, sanitize=False)
    body: Text(sanitize=False)
    payload: Text(sanitize=False)  # JSON object, the template variables

    # Correlation with the producing workflow
    saga_id: String(max_length=100)
    correlation_id: String(max_length=100)

    created_at: DateTime()
    processed_at: DateTime()

    @classmethod
    def create(
        cls,
        service,
        topic,
        severity=Severity.INFO.value,
        client_id=None,
        template_id=None,
        subject=None,
        body=None,
        payload=None,
        saga_id=None,
        correlation_id=None,
    ):
        if not (template_id or subject or body):
            raise ValidationError({"content": ["Either template_id or subject/body is required"]})
        if payload is not None and not isinstance(payload, dict):
            raise ValidationError({"payload": ["Payload must be a JSON object"]})

        now = utcnow()
        event = cls(
            service=service,
            topic=topic,
            severity=severity or Severity.INFO.value,
            client_id=client_id or None,
            template_id=str(template_id) if template_id else None,
            subject=subject,
            body=body,
            payload=json.dumps(payload or {}),
            saga_id=saga_id,
            correlation_id=correlation_id,
            created_at=now,
        )
        event.raise_(
            OutboundEventReceived(
                event_id=str(event.id),
                service=service,
                topic=topic,
                client_id=event.client_id,
                severity=event.severity,
                correlation_id=correlation_id,
                created_at=now,
            )
        )
        return event

    @property
    def payload_data(self) -> dict:
        return json.loads(self.payload) if self.payload else {}

    @property
    def is_processed(self) -> bool:
        return self.processed_at is not None

    def mark_processed(self, delivery_count: int = 0):
        if self.processed_at is not None:
            raise ValidationError({"processed_at": ["Outbound event has already been processed"]})

        now = utcnow()
        self.processed_at = now
        self.raise_(
            OutboundEventProcessed(
                event_id=str(self.id),
                service=self.service,
                topic=self.topic,
                delivery_count=delivery_count,
                processed_at=now,
            )
        )
