"""Delivery Fan-out Engine: turn (event, policies) into Pending deliveries.

For every policy, every active member of the policy's recipient group
gets one delivery on the policy's channel with the policy's role. Members
without the contact data the channel needs are skipped. The caller persists
the deliveries, in the same unit of work that marks the event processed.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from routing.delivery.delivery import OutboundDelivery
from routing.directory.contact import Contact
from routing.directory.group import RecipientGroup
from routing.shared.errors import PublishCancelled

logger = structlog.get_logger(__name__)


def _check_cancelled(cancellation):
    if cancellation is not None and cancellation.is_set():
        raise PublishCancelled()


def fan_out(event, policies, cancellation=None) -> list[OutboundDelivery]:
    """Build the deliveries for ``event``. Nothing is persisted here."""
    group_repo = current_domain.repository_for(RecipientGroup)
    contact_repo = current_domain.repository_for(Contact)

    deliveries = []
    for policy in policies:
        _check_cancelled(cancellation)

        try:
            group = group_repo.get(policy.recipient_group_id)
        except ObjectNotFoundError:
            logger.warning(
                "Recipient group not found for policy",
                policy_id=str(policy.id),
                group_id=str(policy.recipient_group_id),
            )
            continue

        if not group.is_active:
            logger.info("Recipient group inactive, policy skipped", policy_id=str(policy.id), group_id=str(group.id))
            continue

        contacts = contact_repo.get_many(group.member_ids)
        created = 0
        skipped = 0
        for contact_id in group.member_ids:
            contact = contacts.get(contact_id)
            if contact is None or not contact.is_active:
                continue
            if not contact.can_receive(policy.channel):
                skipped += 1
                continue

            deliveries.append(
                OutboundDelivery.create(
                    outbound_event_id=event.id,
                    contact_id=contact.id,
                    channel=policy.channel,
                    role=policy.role,
                    routing_policy_id=policy.id,
                )
            )
            created += 1

        if skipped:
            logger.info(
                "Contacts skipped for missing channel data",
                policy_id=str(policy.id),
                channel=policy.channel,
                skipped=skipped,
            )
        if created == 0:
            logger.warning(
                "Policy produced no deliveries",
                policy_id=str(policy.id),
                channel=policy.channel,
                group_id=str(group.id),
                skipped=skipped,
            )

    _check_cancelled(cancellation)
    return deliveries
