"""Publishing: log an outbound event, route it, fan it out, in one transaction.

``publish`` is the in-process entry point for producing services;
``PublishOutboundEvent`` is the same operation as a command (used by the
HTTP API). ``RouteOutboundEvent`` and ``RouteUnprocessedEvents`` re-drive
events whose routing never completed.

Routing an event that is already processed returns its existing
deliveries and creates nothing new.
"""

import json
from dataclasses import dataclass, field

import structlog
from protean import UnitOfWork
from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from routing.delivery.delivery import OutboundDelivery
from routing.delivery.fan_out import fan_out
from routing.domain import routing
from routing.outbound.outbound_event import OutboundEvent
from routing.policy.resolver import PolicyResolver
from routing.shared.enums import Severity, SourceService, Topic
from routing.shared.errors import PublishCancelled

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PublishResult:
    event_id: str
    delivery_ids: list[str] = field(default_factory=list)
    already_processed: bool = False

    @property
    def delivery_count(self) -> int:
        return len(self.delivery_ids)


def route_event(event: OutboundEvent, cancellation=None) -> PublishResult:
    """Resolve policies and fan out deliveries for a logged event.

    Must run inside a unit of work: the deliveries and the processed marker
    are committed together.
    """
    delivery_repo = current_domain.repository_for(OutboundDelivery)

    if event.is_processed:
        existing = delivery_repo.by_event(event.id)
        logger.info("Outbound event already processed", event_id=str(event.id), deliveries=len(existing))
        return PublishResult(
            event_id=str(event.id),
            delivery_ids=[str(d.id) for d in existing],
            already_processed=True,
        )

    policies = PolicyResolver().resolve(event.service, event.topic, event.client_id, event.severity)
    deliveries = fan_out(event, policies, cancellation=cancellation)

    for delivery in deliveries:
        delivery_repo.add(delivery)

    event.mark_processed(delivery_count=len(deliveries))
    current_domain.repository_for(OutboundEvent).add(event)

    if not deliveries:
        logger.warning(
            "Outbound event produced no deliveries",
            event_id=str(event.id),
            service=event.service,
            topic=event.topic,
            client_id=event.client_id,
            policies=len(policies),
        )
    else:
        logger.info(
            "Outbound event routed",
            event_id=str(event.id),
            policies=len(policies),
            deliveries=len(deliveries),
        )

    return PublishResult(event_id=str(event.id), delivery_ids=[str(d.id) for d in deliveries])


def _log_and_route(cancellation=None, **event_fields) -> PublishResult:
    event = OutboundEvent.create(**event_fields)
    current_domain.repository_for(OutboundEvent).add(event)
    logger.info(
        "Outbound event received",
        event_id=str(event.id),
        service=event.service,
        topic=event.topic,
        client_id=event.client_id,
        severity=event.severity,
    )
    return route_event(event, cancellation=cancellation)


def publish(
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
    cancellation=None,
) -> PublishResult:
    """Log, route and fan out an event atomically.

    ``cancellation`` is an optional ``threading.Event``. When it is set before
    the unit of work commits, ``PublishCancelled`` is raised and nothing is
    stored. Once committed the publish can no longer be cancelled.
    """
    with UnitOfWork():
        result = _log_and_route(
            cancellation=cancellation,
            service=service,
            topic=topic,
            severity=severity,
            client_id=client_id,
            template_id=template_id,
            subject=subject,
            body=body,
            payload=payload,
            saga_id=saga_id,
            correlation_id=correlation_id,
        )
        if cancellation is not None and cancellation.is_set():
            logger.info("Publish cancelled before commit", event_id=result.event_id)
            raise PublishCancelled()

    return result


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@routing.command(part_of="OutboundEvent")
class PublishOutboundEvent:
    service: String(choices=SourceService, required=True)
    topic: String(choices=Topic, required=True)
    severity: String(choices=Severity, default=Severity.INFO.value)
    client_id: String(max_length=100)
    template_id: String(max_length=100)
    subject: String(max_length=500, sanitize=False)
    body: Text(sanitize=False)
    payload_json: Text(sanitize=False)  # JSON object
    saga_id: String(max_length=100)
    correlation_id: String(max_length=100)


@routing.command(part_of="OutboundEvent")
class RouteOutboundEvent:
    event_id: Identifier(required=True)


@routing.command(part_of="OutboundEvent")
class RouteUnprocessedEvents:
    """Re-drive events that were logged but never routed (sweep)."""

    limit: Integer(default=100)


def _parse_payload(raw):
    if not raw:
        return {}
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise ValidationError({"payload": ["Payload must be a JSON object"]}) from exc
    if not isinstance(payload, dict):
        raise ValidationError({"payload": ["Payload must be a JSON object"]})
    return payload


@routing.command_handler(part_of=OutboundEvent)
class OutboundEventHandler:
    @handle(PublishOutboundEvent)
    def publish_event(self, command: PublishOutboundEvent):
        result = _log_and_route(
            service=command.service,
            topic=command.topic,
            severity=command.severity,
            client_id=command.client_id,
            template_id=command.template_id,
            subject=command.subject,
            body=command.body,
            payload=_parse_payload(command.payload_json),
            saga_id=command.saga_id,
            correlation_id=command.correlation_id,
        )
        return result

    @handle(RouteOutboundEvent)
    def route_logged_event(self, command: RouteOutboundEvent):
        event = current_domain.repository_for(OutboundEvent).get(command.event_id)
        return route_event(event)

    @handle(RouteUnprocessedEvents)
    def route_unprocessed(self, command: RouteUnprocessedEvents):
        events = current_domain.repository_for(OutboundEvent).unprocessed(limit=command.limit or 100)
        routed = 0
        for event in events:
            route_event(event)
            routed += 1

        logger.info("Unprocessed outbound events routed", routed=routed)
        return routed
