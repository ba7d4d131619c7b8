"""Delivery dispatcher: sends deliveries through the channel adapters.

Consumes the delivery-request events relayed from the outbox
(``DeliveryRequested``, ``DeliveryRetryDue``, ``DeliveryRequeued``),
starts an attempt, resolves the content, sends via the channel adapter and
records the outcome through the status contract. Adapter failures become
Failed deliveries; nothing is raised back to the router.

Email deliveries of one outbound event travel together: the first request
sends a single message addressed by delivery role (To, Cc, Bcc) to every
Email delivery of that event still waiting for the same attempt, and each
delivery records the shared outcome. Such a message needs at least one To
recipient. A lone Email delivery is addressed To its contact whatever its
role. Requeued deliveries are always sent on their own.

Relayed messages may arrive more than once. A retry or requeue message is
acted on only while the delivery is still at the attempt it was raised
for, so a duplicate never spends another attempt early.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from routing.channel import get_channel
from routing.delivery.delivery import OutboundDelivery
from routing.delivery.events import DeliveryRequested, DeliveryRequeued, DeliveryRetryDue
from routing.delivery.lifecycle import apply_status
from routing.directory.contact import Contact
from routing.domain import routing
from routing.outbound.outbound_event import OutboundEvent
from routing.shared.clock import as_utc, utcnow
from routing.shared.enums import Channel, DeliveryRole, DeliveryStatus
from routing.template.resolver import TemplateResolver

logger = structlog.get_logger(__name__)

_ADAPTER_STATUS = {
    "sent": DeliveryStatus.DELIVERED.value,
    "bounced": DeliveryStatus.BOUNCED.value,
}

NO_TO_RECIPIENT = "Email requires at least one To recipient"


@routing.event_handler(part_of=OutboundDelivery)
class DeliveryDispatcher:
    @handle(DeliveryRequested)
    def on_delivery_requested(self, event: DeliveryRequested) -> None:
        def awaiting_first_attempt(delivery):
            return delivery.status == DeliveryStatus.PENDING.value

        dispatch_delivery(event.delivery_id, awaiting_first_attempt, sibling_ready=awaiting_first_attempt)

    @handle(DeliveryRetryDue)
    def on_retry_due(self, event: DeliveryRetryDue) -> None:
        as_of = max(as_utc(event.due_at), utcnow()) if event.due_at else utcnow()

        def retry_due(delivery):
            return delivery.is_due_for_retry(as_of)

        def flagged_retry_due(delivery):
            return delivery.attempt_count == event.attempt_count and retry_due(delivery)

        dispatch_delivery(event.delivery_id, flagged_retry_due, sibling_ready=retry_due)

    @handle(DeliveryRequeued)
    def on_requeued(self, event: DeliveryRequeued) -> None:
        def requeued(delivery):
            return delivery.status == DeliveryStatus.FAILED.value and delivery.attempt_count == event.attempt_count

        dispatch_delivery(event.delivery_id, requeued)


def dispatch_delivery(delivery_id, ready, sibling_ready=None) -> OutboundDelivery | None:
    """Run one send attempt for a delivery if ``ready(delivery)`` still holds.

    For Email deliveries, ``sibling_ready`` selects the other deliveries of
    the same event that go out in the same message. Without it the delivery
    is sent on its own.
    """
    repo = current_domain.repository_for(OutboundDelivery)

    try:
        delivery = repo.get(delivery_id)
    except ObjectNotFoundError:
        logger.error("Delivery not found for dispatch", delivery_id=str(delivery_id))
        return None

    if not ready(delivery):
        logger.info(
            "Delivery not awaiting this attempt, skipping dispatch",
            delivery_id=str(delivery.id),
            status=delivery.status,
            attempt_count=delivery.attempt_count,
        )
        return delivery

    batch = [delivery]
    if sibling_ready is not None and delivery.channel == Channel.EMAIL.value:
        batch += [
            d
            for d in repo.by_event(delivery.outbound_event_id)
            if d.channel == Channel.EMAIL.value and str(d.id) != str(delivery.id) and sibling_ready(d)
        ]

    started_at = utcnow()
    for d in batch:
        apply_status(d, DeliveryStatus.PROCESSING.value, at=started_at)

    try:
        outbound_event = current_domain.repository_for(OutboundEvent).get(delivery.outbound_event_id)
        content = TemplateResolver().resolve(outbound_event)
        if delivery.channel == Channel.EMAIL.value:
            outcomes = _send_email(get_channel(delivery.channel), batch, content, outbound_event)
        else:
            contact = current_domain.repository_for(Contact).get(delivery.contact_id)
            outcomes = {
                str(delivery.id): _send_via_channel(get_channel(delivery.channel), delivery, contact, content, outbound_event)
            }
    except Exception as exc:
        logger.error(
            "Delivery dispatch failed",
            delivery_id=str(delivery.id),
            channel=delivery.channel,
            batch_size=len(batch),
            error=str(exc),
        )
        outcomes = {str(d.id): {"status": "failed", "error": str(exc)} for d in batch}

    finished_at = utcnow()
    for d in batch:
        result = outcomes.get(str(d.id)) or {"status": "failed", "error": "No result returned from dispatcher"}
        status = _ADAPTER_STATUS.get(result.get("status"), DeliveryStatus.FAILED.value)
        apply_status(
            d,
            status,
            error=result.get("error") or ("Unknown dispatch error" if status != DeliveryStatus.DELIVERED.value else None),
            external_message_id=result.get("message_id"),
            at=finished_at,
        )
        repo.add(d)

    return delivery


def _send_email(adapter, batch: list[OutboundDelivery], content, outbound_event) -> dict[str, dict]:
    """Send one email for ``batch`` and return each delivery's outcome by id."""
    contacts = current_domain.repository_for(Contact).get_many(d.contact_id for d in batch)

    outcomes: dict[str, dict] = {}
    addressed: list[tuple[OutboundDelivery, str]] = []
    for delivery in batch:
        contact = contacts.get(str(delivery.contact_id))
        address = contact.address_for(Channel.EMAIL.value) if contact else None
        if address is None:
            outcomes[str(delivery.id)] = {
                "status": "failed",
                "error": f"Contact {delivery.contact_id} has no email address",
            }
        else:
            addressed.append((delivery, address))

    if not addressed:
        return outcomes

    recipients: dict[str, list[str]] = {role.value: [] for role in DeliveryRole}
    for delivery, address in addressed:
        role = DeliveryRole.TO.value if len(addressed) == 1 else (delivery.role or DeliveryRole.TO.value)
        if address not in recipients[role]:
            recipients[role].append(address)

    to = recipients[DeliveryRole.TO.value]
    cc = recipients[DeliveryRole.CC.value]
    bcc = recipients[DeliveryRole.BCC.value]

    if not to:
        logger.warning(
            "Email has no To recipient",
            event_id=str(outbound_event.id),
            cc=len(cc),
            bcc=len(bcc),
        )
        result = {"status": "failed", "error": NO_TO_RECIPIENT}
    else:
        result = adapter.send(
            to=to,
            subject=content.subject,
            body=content.plain_text_body,
            html_body=content.html_body,
            cc=cc or None,
            bcc=bcc or None,
        )
        logger.info(
            "Email sent for outbound event",
            event_id=str(outbound_event.id),
            status=result.get("status"),
            message_id=result.get("message_id"),
            to=len(to),
            cc=len(cc),
            bcc=len(bcc),
        )

    for delivery, _ in addressed:
        outcomes[str(delivery.id)] = result
    return outcomes


def _send_via_channel(adapter, delivery: OutboundDelivery, contact: Contact, content, outbound_event) -> dict:
    """Call the adapter method matching a non-email delivery's channel."""
    channel = delivery.channel
    address = contact.address_for(channel)
    if address is None:
        return {"status": "failed", "error": f"Contact has no address for channel {channel}"}

    text_body = content.plain_text_body or content.html_body or ""

    if channel == Channel.SMS.value:
        return adapter.send(to=address, body=f"{content.subject}: {text_body}" if text_body else content.subject)
    elif channel == Channel.SLACK.value:
        return adapter.send(recipient=address, message=text_body, title=content.subject)
    elif channel == Channel.IN_APP.value:
        return adapter.send(
            user_id=address,
            title=content.subject,
            body=text_body,
            severity=outbound_event.severity,
        )
    else:
        return {"status": "failed", "error": f"Unknown channel: {channel}"}
