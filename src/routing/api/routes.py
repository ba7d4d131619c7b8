"""FastAPI routes for event publishing, delivery tracking and channel health.

Thin adapters that translate HTTP requests into domain commands and
queries; they hold no business logic.
"""

import json
from datetime import datetime

from fastapi import APIRouter
from protean.utils.globals import current_domain

from routing.api.schemas import (
    ChannelHealthResponse,
    CountResponse,
    DeliveryResponse,
    DeliveryStatusRequest,
    EventDetailResponse,
    EventListResponse,
    EventResponse,
    FailedDeliveryResponse,
    ProcessRetriesRequest,
    PublishEventRequest,
    PublishEventResponse,
    RequeueRequest,
    RouteUnprocessedRequest,
    StatusResponse,
)
from routing.delivery.lifecycle import UpdateDeliveryStatus, get_by_contact
from routing.delivery.retry import ProcessDueRetries, RequeueDelivery
from routing.health.monitor import ChannelHealthMonitor
from routing.outbound.publishing import PublishOutboundEvent, RouteOutboundEvent, RouteUnprocessedEvents
from routing.outbound.queries import get_by_correlation, get_by_saga, get_event, get_unprocessed, search_events
from routing.projections import dashboard
from routing.projections.failed_deliveries import FailedDeliveries
from routing.shared.queries import QUERY_LIMIT
from routing.utils.logging import bind_context

router = APIRouter(prefix="/routing", tags=["routing"])


def _delivery_response(d) -> DeliveryResponse:
    return DeliveryResponse(
        delivery_id=str(d.id),
        outbound_event_id=str(d.outbound_event_id),
        contact_id=str(d.contact_id),
        channel=d.channel,
        role=d.role,
        status=d.status,
        attempt_count=d.attempt_count or 0,
        created_at=d.created_at,
        delivered_at=d.delivered_at,
        failed_at=d.failed_at,
        next_retry_at=d.next_retry_at,
        error_message=d.error_message,
        external_message_id=d.external_message_id,
    )


def _event_fields(e) -> dict:
    return {
        "event_id": str(e.id),
        "service": e.service,
        "topic": e.topic,
        "client_id": e.client_id,
        "severity": e.severity,
        "template_id": e.template_id,
        "subject": e.subject,
        "payload": e.payload_data,
        "saga_id": e.saga_id,
        "correlation_id": e.correlation_id,
        "created_at": e.created_at,
        "processed_at": e.processed_at,
    }


def _health_response(snapshot) -> ChannelHealthResponse:
    return ChannelHealthResponse(
        channel=snapshot.channel,
        status=snapshot.status,
        last_successful_delivery_at=snapshot.last_successful_delivery_at,
        error_count_24h=snapshot.error_count_24h,
        total_24h=snapshot.total_24h,
        delivered_24h=snapshot.delivered_24h,
        success_rate=snapshot.success_rate,
    )


# ---------------------------------------------------------------------------
# Outbound events
# ---------------------------------------------------------------------------
@router.post("/events", status_code=201, response_model=PublishEventResponse)
async def publish_event(body: PublishEventRequest) -> PublishEventResponse:
    """Log an event from a producing service and route it."""
    if body.correlation_id:
        bind_context(correlation_id=body.correlation_id)
    command = PublishOutboundEvent(
        service=body.service,
        topic=body.topic,
        severity=body.severity,
        client_id=body.client_id,
        template_id=body.template_id,
        subject=body.subject,
        body=body.body,
        payload_json=json.dumps(body.payload),
        saga_id=body.saga_id,
        correlation_id=body.correlation_id,
    )
    result = current_domain.process(command, asynchronous=False)
    return PublishEventResponse(
        event_id=result.event_id,
        delivery_ids=result.delivery_ids,
        already_processed=result.already_processed,
    )


@router.get("/events", response_model=EventListResponse)
async def list_events(
    service: str | None = None,
    topic: str | None = None,
    client_id: str | None = None,
    severity: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    limit: int = 100,
) -> EventListResponse:
    events = search_events(
        service=service,
        topic=topic,
        client_id=client_id,
        severity=severity,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
    )
    return EventListResponse(events=[EventResponse(**_event_fields(e)) for e in events])


@router.get("/events/unprocessed", response_model=EventListResponse)
async def list_unprocessed_events(limit: int = 100) -> EventListResponse:
    return EventListResponse(events=[EventResponse(**_event_fields(e)) for e in get_unprocessed(limit)])


@router.get("/events/saga/{saga_id}", response_model=EventListResponse)
async def list_saga_events(saga_id: str) -> EventListResponse:
    """Every event raised within one saga, oldest first."""
    return EventListResponse(events=[EventResponse(**_event_fields(e)) for e in get_by_saga(saga_id)])


@router.get("/events/correlation/{correlation_id}", response_model=EventListResponse)
async def list_correlated_events(correlation_id: str) -> EventListResponse:
    return EventListResponse(events=[EventResponse(**_event_fields(e)) for e in get_by_correlation(correlation_id)])


@router.get("/events/{event_id}", response_model=EventDetailResponse)
async def get_event_detail(event_id: str) -> EventDetailResponse:
    detail = get_event(event_id)
    return EventDetailResponse(
        **_event_fields(detail.event),
        deliveries=[_delivery_response(d) for d in detail.deliveries],
        status_counts=detail.status_counts,
    )


@router.post("/events/{event_id}/route", response_model=PublishEventResponse)
async def route_event(event_id: str) -> PublishEventResponse:
    """Route a logged event whose routing never completed. Idempotent."""
    result = current_domain.process(RouteOutboundEvent(event_id=event_id), asynchronous=False)
    return PublishEventResponse(
        event_id=result.event_id,
        delivery_ids=result.delivery_ids,
        already_processed=result.already_processed,
    )


# ---------------------------------------------------------------------------
# Deliveries
# ---------------------------------------------------------------------------
@router.post("/deliveries/{delivery_id}/status", response_model=StatusResponse)
async def report_delivery_status(delivery_id: str, body: DeliveryStatusRequest) -> StatusResponse:
    """Status callback for channel senders."""
    command = UpdateDeliveryStatus(
        delivery_id=delivery_id,
        status=body.status,
        error=body.error,
        external_message_id=body.external_message_id,
        occurred_at=body.occurred_at,
    )
    changed = current_domain.process(command, asynchronous=False)
    return StatusResponse(status="ok" if changed else "unchanged")


@router.post("/deliveries/{delivery_id}/requeue", status_code=201, response_model=StatusResponse)
async def requeue_delivery(delivery_id: str, body: RequeueRequest | None = None) -> StatusResponse:
    command = RequeueDelivery(delivery_id=delivery_id, requested_by=body.requested_by if body else None)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@router.get("/deliveries/failed", response_model=list[FailedDeliveryResponse])
async def list_failed_deliveries(exhausted_only: bool = False) -> list[FailedDeliveryResponse]:
    """The operator queue of failed and bounced deliveries."""
    query = current_domain.repository_for(FailedDeliveries)._dao.query
    if exhausted_only:
        query = query.filter(exhausted=True)
    entries = query.order_by("-failed_at").limit(QUERY_LIMIT).all().items
    return [
        FailedDeliveryResponse(
            delivery_id=str(f.delivery_id),
            outbound_event_id=str(f.outbound_event_id),
            contact_id=str(f.contact_id),
            channel=f.channel,
            status=f.status,
            error_message=f.error_message,
            attempt_count=f.attempt_count or 0,
            exhausted=bool(f.exhausted),
            failed_at=f.failed_at,
            next_retry_at=f.next_retry_at,
        )
        for f in entries
    ]


@router.get("/contacts/{contact_id}/deliveries", response_model=list[DeliveryResponse])
async def list_contact_deliveries(
    contact_id: str,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> list[DeliveryResponse]:
    return [_delivery_response(d) for d in get_by_contact(contact_id, date_from, date_to)]


# ---------------------------------------------------------------------------
# Channel health & dashboard
# ---------------------------------------------------------------------------
@router.get("/channels/health", response_model=list[ChannelHealthResponse])
async def all_channel_health() -> list[ChannelHealthResponse]:
    return [_health_response(s) for s in ChannelHealthMonitor().health_all()]


@router.get("/channels/{channel}/health", response_model=ChannelHealthResponse)
async def channel_health(channel: str) -> ChannelHealthResponse:
    return _health_response(ChannelHealthMonitor().health(channel))


@router.get("/dashboard")
async def routing_dashboard() -> dict:
    data = dashboard.summary()
    return {
        "as_of": data["as_of"].isoformat(),
        "events_24h": data["events_24h"],
        "unprocessed_events": data["unprocessed_events"],
        "deliveries_by_status": data["deliveries_by_status"],
        "failed_queue": data["failed_queue"],
        "exhausted": data["exhausted"],
        "channels": [_health_response(s).model_dump(mode="json") for s in data["channels"]],
        "today": [
            {
                "channel": s.channel,
                "requested": s.requested or 0,
                "delivered": s.delivered or 0,
                "failed": s.failed or 0,
                "bounced": s.bounced or 0,
            }
            for s in data["today"]
        ],
    }


# ---------------------------------------------------------------------------
# Maintenance: periodic background job endpoints
# ---------------------------------------------------------------------------
@router.post("/maintenance/process-retries", response_model=CountResponse)
async def process_due_retries(body: ProcessRetriesRequest | None = None) -> CountResponse:
    """Flag deliveries whose retry time has passed; the dispatcher sends them."""
    body = body or ProcessRetriesRequest()
    count = current_domain.process(ProcessDueRetries(as_of=body.as_of, limit=body.limit), asynchronous=False)
    return CountResponse(count=count or 0)


@router.post("/maintenance/route-unprocessed", response_model=CountResponse)
async def route_unprocessed_events(body: RouteUnprocessedRequest | None = None) -> CountResponse:
    body = body or RouteUnprocessedRequest()
    count = current_domain.process(RouteUnprocessedEvents(limit=body.limit), asynchronous=False)
    return CountResponse(count=count or 0)
