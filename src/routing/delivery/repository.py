"""OutboundDelivery repository: the lifecycle tracker's queries."""

from datetime import datetime

from routing.delivery.delivery import MAX_ATTEMPTS, OutboundDelivery
from routing.domain import routing
from routing.shared.clock import as_utc
from routing.shared.enums import DeliveryStatus
from routing.shared.queries import QUERY_LIMIT

_ERROR_STATUSES = [DeliveryStatus.FAILED.value, DeliveryStatus.BOUNCED.value]


@routing.repository(part_of=OutboundDelivery)
class OutboundDeliveryRepository:
    def pending(self, limit: int = 100) -> list[OutboundDelivery]:
        """Oldest pending deliveries first."""
        query = self._dao.query.filter(status=DeliveryStatus.PENDING.value).order_by("created_at")
        return list(query.limit(limit).all().items)

    def due_for_retry(self, as_of: datetime, limit: int = 100) -> list[OutboundDelivery]:
        """Failed deliveries whose retry time has passed, earliest due first."""
        query = self._dao.query.filter(
            status=DeliveryStatus.FAILED.value,
            attempt_count__lt=MAX_ATTEMPTS,
            next_retry_at__lte=as_utc(as_of),
        ).order_by("next_retry_at")
        return list(query.limit(limit).all().items)

    def exhausted(self, limit: int = 100) -> list[OutboundDelivery]:
        """Failed deliveries with no automatic retry left, most recent failure first."""
        query = self._dao.query.filter(
            status=DeliveryStatus.FAILED.value,
            next_retry_at__isnull=True,
        ).order_by("-failed_at")
        return list(query.limit(limit).all().items)

    def by_event(self, event_id) -> list[OutboundDelivery]:
        query = self._dao.query.filter(outbound_event_id=str(event_id)).order_by("created_at")
        return list(query.limit(QUERY_LIMIT).all().items)

    def by_contact(
        self,
        contact_id,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        limit: int = 100,
    ) -> list[OutboundDelivery]:
        """A contact's deliveries created within [date_from, date_to], newest first."""
        criteria = {"contact_id": str(contact_id)}
        if date_from is not None:
            criteria["created_at__gte"] = as_utc(date_from)
        if date_to is not None:
            criteria["created_at__lte"] = as_utc(date_to)
        query = self._dao.query.filter(**criteria).order_by("-created_at")
        return list(query.limit(limit).all().items)

    def channel_counts(self, channel: str, since: datetime, until: datetime) -> tuple[int, int, int]:
        """(total, delivered, errors) for deliveries on ``channel`` created in [since, until]."""
        window = self._dao.query.filter(
            channel=channel,
            created_at__gte=as_utc(since),
            created_at__lte=as_utc(until),
        )
        return (
            window.count(),
            window.filter(status=DeliveryStatus.DELIVERED.value).count(),
            window.filter(status__in=_ERROR_STATUSES).count(),
        )

    def last_delivered_at(self, channel: str) -> datetime | None:
        query = self._dao.query.filter(channel=channel, delivered_at__isnull=False).order_by("-delivered_at")
        latest = query.limit(1).all().items
        return as_utc(latest[0].delivered_at) if latest else None

    def by_status(self, status: str, limit: int = 100) -> list[OutboundDelivery]:
        query = self._dao.query.filter(status=status).order_by("-created_at")
        return list(query.limit(limit).all().items)

    def count_by_status(self, status: str) -> int:
        return self._dao.query.filter(status=status).count()
