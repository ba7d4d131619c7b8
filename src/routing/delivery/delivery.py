"""OutboundDelivery aggregate: one message to one contact on one channel.

Fan-out creates one delivery per (policy, eligible group member). Each
delivery is tracked and retried on its own.

State Machine (5 states):
    PENDING → PROCESSING → DELIVERED
    PENDING → PROCESSING → BOUNCED
    PENDING → PROCESSING → FAILED → (retry due / requeue) → PROCESSING
    FAILED → BOUNCED (late channel feedback)

A failed attempt schedules the next one ``2 ** attempt_count`` minutes
later while ``attempt_count < MAX_ATTEMPTS``; after that the failure is
terminal unless an operator requeues it. Deliveries are never deleted.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String

from routing.delivery.events import (
    DeliveryAttemptStarted,
    DeliveryBounced,
    DeliveryDelivered,
    DeliveryFailed,
    DeliveryRequested,
    DeliveryRequeued,
    DeliveryRetryDue,
)
from routing.domain import routing
from routing.shared.clock import as_utc, utcnow
from routing.shared.enums import Channel, DeliveryRole, DeliveryStatus

MAX_ATTEMPTS = 3
RETRY_BASE_MINUTES = 2


def retry_delay(attempt_count: int) -> timedelta:
    """Backoff after the ``attempt_count``-th failed attempt: 2, 4, 8... minutes."""
    return timedelta(minutes=RETRY_BASE_MINUTES**attempt_count)


# ---------------------------------------------------------------------------
# State Machine
# ---------------------------------------------------------------------------
_VALID_TRANSITIONS = {
    DeliveryStatus.PENDING: {DeliveryStatus.PROCESSING},
    DeliveryStatus.PROCESSING: {
        DeliveryStatus.DELIVERED,
        DeliveryStatus.FAILED,
        DeliveryStatus.BOUNCED,
    },
    DeliveryStatus.FAILED: {
        DeliveryStatus.PROCESSING,  # Via retry or requeue
        DeliveryStatus.BOUNCED,
    },
    DeliveryStatus.DELIVERED: set(),  # Terminal
    DeliveryStatus.BOUNCED: set(),  # Terminal
}


@dataclass(frozen=True)
class RetryState:
    """Where a delivery stands with respect to retries.

    ``kind`` is one of: pending, in_flight, delivered, bounced,
    retry_scheduled (``next_retry_at`` set) or exhausted.
    """

    kind: str
    next_retry_at: datetime | None = None
    attempts_left: int = 0


@routing.aggregate
class OutboundDelivery:
    outbound_event_id: Identifier(required=True)
    routing_policy_id: Identifier()
    contact_id: Identifier(required=True)
    channel: String(choices=Channel, required=True)
    role: String(choices=DeliveryRole, default=DeliveryRole.TO.value)

    status: String(choices=DeliveryStatus, default=DeliveryStatus.PENDING.value)
    attempt_count: Integer(default=0, min_value=0)
    next_retry_at: DateTime()

    created_at: DateTime()
    sent_at: DateTime()
    delivered_at: DateTime()
    failed_at: DateTime()
    error_message: String(max_length=2000, sanitize=False)
    external_message_id: String(max_length=255)

    # -------------------------------------------------------------------
    # Invariants
    # -------------------------------------------------------------------
    @invariant.post
    def retry_only_scheduled_for_retriable_failures(self):
        if self.next_retry_at is None:
            return
        if self.status != DeliveryStatus.FAILED.value or (self.attempt_count or 0) >= MAX_ATTEMPTS:
            raise ValidationError({"next_retry_at": ["A retry can only be scheduled for a failed delivery with attempts left"]})

    @invariant.post
    def delivered_has_timestamp(self):
        if self.status == DeliveryStatus.DELIVERED.value and self.delivered_at is None:
            raise ValidationError({"delivered_at": ["A delivered delivery must record when it was delivered"]})

    @invariant.post
    def attempted_states_have_attempts(self):
        if self.status != DeliveryStatus.PENDING.value and (self.attempt_count or 0) < 1:
            raise ValidationError({"attempt_count": [f"A {self.status} delivery must have at least one attempt"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, outbound_event_id, contact_id, channel, role=DeliveryRole.TO.value, routing_policy_id=None):
        """Create a new delivery in PENDING status and request its dispatch."""
        now = utcnow()
        delivery = cls(
            outbound_event_id=str(outbound_event_id),
            routing_policy_id=str(routing_policy_id) if routing_policy_id else None,
            contact_id=str(contact_id),
            channel=channel,
            role=role,
            status=DeliveryStatus.PENDING.value,
            attempt_count=0,
            created_at=now,
        )
        delivery.raise_(
            DeliveryRequested(
                delivery_id=str(delivery.id),
                outbound_event_id=str(outbound_event_id),
                routing_policy_id=delivery.routing_policy_id,
                contact_id=str(contact_id),
                channel=channel,
                role=role,
                created_at=now,
            )
        )
        return delivery

    # -------------------------------------------------------------------
    # Queries on state
    # -------------------------------------------------------------------
    @property
    def is_terminal(self) -> bool:
        """Delivered, bounced, or failed with no automatic retry left."""
        return self.retry_state.kind in ("delivered", "bounced", "exhausted")

    @property
    def retry_state(self) -> RetryState:
        status = DeliveryStatus(self.status)
        attempts_left = max(MAX_ATTEMPTS - (self.attempt_count or 0), 0)
        if status == DeliveryStatus.PENDING:
            return RetryState("pending", attempts_left=attempts_left)
        if status == DeliveryStatus.PROCESSING:
            return RetryState("in_flight", attempts_left=attempts_left)
        if status == DeliveryStatus.DELIVERED:
            return RetryState("delivered")
        if status == DeliveryStatus.BOUNCED:
            return RetryState("bounced")
        if self.next_retry_at is not None:
            return RetryState("retry_scheduled", as_utc(self.next_retry_at), attempts_left)
        return RetryState("exhausted")

    def is_due_for_retry(self, as_of: datetime) -> bool:
        state = self.retry_state
        return state.kind == "retry_scheduled" and state.next_retry_at <= as_utc(as_of)

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        current = DeliveryStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def begin_attempt(self, started_at=None):
        """Start a send attempt. The only way out of PENDING and FAILED."""
        self._assert_can_transition(DeliveryStatus.PROCESSING)

        now = started_at or utcnow()
        with atomic_change(self):
            self.status = DeliveryStatus.PROCESSING.value
            self.attempt_count = (self.attempt_count or 0) + 1
            self.next_retry_at = None

        self.raise_(
            DeliveryAttemptStarted(
                delivery_id=str(self.id),
                channel=self.channel,
                attempt_count=self.attempt_count,
                started_at=now,
            )
        )

    def mark_delivered(self, external_message_id=None, delivered_at=None):
        self._assert_can_transition(DeliveryStatus.DELIVERED)

        now = delivered_at or utcnow()
        with atomic_change(self):
            self.status = DeliveryStatus.DELIVERED.value
            self.delivered_at = now
            if self.sent_at is None:
                self.sent_at = now
            if external_message_id:
                self.external_message_id = external_message_id
            self.next_retry_at = None

        self.raise_(
            DeliveryDelivered(
                delivery_id=str(self.id),
                outbound_event_id=str(self.outbound_event_id),
                channel=self.channel,
                attempt_count=self.attempt_count,
                external_message_id=self.external_message_id,
                delivered_at=now,
            )
        )

    def mark_failed(self, error_message, failed_at=None):
        """Record a failed attempt and schedule the next one if attempts remain."""
        self._assert_can_transition(DeliveryStatus.FAILED)

        now = failed_at or utcnow()
        exhausted = (self.attempt_count or 0) >= MAX_ATTEMPTS
        with atomic_change(self):
            self.status = DeliveryStatus.FAILED.value
            self.failed_at = now
            self.error_message = (error_message or "Unknown error")[:2000]
            self.next_retry_at = None if exhausted else now + retry_delay(self.attempt_count)

        self.raise_(
            DeliveryFailed(
                delivery_id=str(self.id),
                outbound_event_id=str(self.outbound_event_id),
                contact_id=str(self.contact_id),
                channel=self.channel,
                error_message=self.error_message,
                attempt_count=self.attempt_count,
                next_retry_at=self.next_retry_at,
                exhausted=exhausted,
                failed_at=now,
            )
        )

    def mark_bounced(self, reason=None, bounced_at=None):
        """Permanent rejection by the channel (e.g. hard email bounce)."""
        self._assert_can_transition(DeliveryStatus.BOUNCED)

        now = bounced_at or utcnow()
        with atomic_change(self):
            self.status = DeliveryStatus.BOUNCED.value
            self.failed_at = now
            self.error_message = (reason or "Bounced")[:2000]
            self.next_retry_at = None

        self.raise_(
            DeliveryBounced(
                delivery_id=str(self.id),
                outbound_event_id=str(self.outbound_event_id),
                contact_id=str(self.contact_id),
                channel=self.channel,
                reason=self.error_message,
                attempt_count=self.attempt_count,
                bounced_at=now,
            )
        )

    def mark_retry_due(self, as_of=None):
        """Signal that the scheduled retry time has passed. Status is unchanged."""
        as_of = as_of or utcnow()
        if not self.is_due_for_retry(as_of):
            raise ValidationError({"next_retry_at": ["Delivery is not due for retry"]})

        self.raise_(
            DeliveryRetryDue(
                delivery_id=str(self.id),
                channel=self.channel,
                attempt_count=self.attempt_count,
                due_at=as_utc(self.next_retry_at),
            )
        )

    def requeue(self, requested_by=None):
        """Ask for one more attempt of a failed delivery, even past the retry budget."""
        if DeliveryStatus(self.status) != DeliveryStatus.FAILED:
            raise ValidationError({"status": ["Only failed deliveries can be requeued"]})

        now = utcnow()
        self.next_retry_at = None
        self.raise_(
            DeliveryRequeued(
                delivery_id=str(self.id),
                channel=self.channel,
                attempt_count=self.attempt_count,
                requested_by=requested_by or "system",
                requeued_at=now,
            )
        )
