"""OutboundEvent repository: the event log's queries."""

from datetime import datetime

from routing.domain import routing
from routing.outbound.outbound_event import OutboundEvent
from routing.shared.clock import as_utc
from routing.shared.queries import QUERY_LIMIT


@routing.repository(part_of=OutboundEvent)
class OutboundEventRepository:
    def unprocessed(self, limit: int = 100) -> list[OutboundEvent]:
        """Logged events routing never finished, oldest first."""
        query = self._dao.query.filter(processed_at__isnull=True).order_by("created_at")
        return list(query.limit(limit).all().items)

    def count_unprocessed(self) -> int:
        return self._dao.query.filter(processed_at__isnull=True).count()

    def _search_query(self, service, topic, client_id, severity, date_from, date_to):
        criteria = {}
        if service:
            criteria["service"] = service
        if topic:
            criteria["topic"] = topic
        if client_id:
            criteria["client_id"] = client_id
        if severity:
            criteria["severity"] = severity
        if date_from is not None:
            criteria["created_at__gte"] = as_utc(date_from)
        if date_to is not None:
            criteria["created_at__lte"] = as_utc(date_to)
        return self._dao.query.filter(**criteria) if criteria else self._dao.query

    def search(
        self,
        service: str | None = None,
        topic: str | None = None,
        client_id: str | None = None,
        severity: str | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        limit: int = 100,
    ) -> list[OutboundEvent]:
        """Filter the log; ``None`` filters are ignored. Newest first."""
        query = self._search_query(service, topic, client_id, severity, date_from, date_to)
        return list(query.order_by("-created_at").limit(limit).all().items)

    def count(self, date_from: datetime | None = None, date_to: datetime | None = None) -> int:
        query = self._search_query(None, None, None, None, date_from, date_to)
        return query.count()

    def by_correlation(self, correlation_id: str) -> list[OutboundEvent]:
        query = self._dao.query.filter(correlation_id=correlation_id).order_by("created_at")
        return list(query.limit(QUERY_LIMIT).all().items)

    def by_saga(self, saga_id: str) -> list[OutboundEvent]:
        """Events raised within one saga, oldest first."""
        query = self._dao.query.filter(saga_id=saga_id).order_by("created_at")
        return list(query.limit(QUERY_LIMIT).all().items)
