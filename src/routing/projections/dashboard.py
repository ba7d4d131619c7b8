"""Routing dashboard: a summary built from the read models and health monitor."""

from datetime import datetime, timedelta

from protean.utils.globals import current_domain

from routing.delivery.delivery import OutboundDelivery
from routing.health.monitor import ChannelHealthMonitor
from routing.outbound.outbound_event import OutboundEvent
from routing.projections.daily_delivery_stats import DailyDeliveryStats
from routing.projections.failed_deliveries import FailedDeliveries
from routing.shared.clock import utcnow
from routing.shared.enums import DeliveryStatus
from routing.shared.queries import QUERY_LIMIT


def daily_stats(date_from: datetime, date_to: datetime) -> list[DailyDeliveryStats]:
    """Counters for each day in [date_from, date_to], ordered by date then channel."""
    query = current_domain.repository_for(DailyDeliveryStats)._dao.query.filter(
        date__gte=date_from.strftime("%Y-%m-%d"),
        date__lte=date_to.strftime("%Y-%m-%d"),
    )
    return list(query.order_by(["date", "channel"]).limit(QUERY_LIMIT).all().items)


def summary(as_of: datetime | None = None) -> dict:
    as_of = as_of or utcnow()
    event_repo = current_domain.repository_for(OutboundEvent)
    delivery_repo = current_domain.repository_for(OutboundDelivery)
    failed_queue = current_domain.repository_for(FailedDeliveries)._dao.query

    return {
        "as_of": as_of,
        "events_24h": event_repo.count(date_from=as_of - timedelta(hours=24), date_to=as_of),
        "unprocessed_events": event_repo.count_unprocessed(),
        "deliveries_by_status": {status.value: delivery_repo.count_by_status(status.value) for status in DeliveryStatus},
        "failed_queue": failed_queue.count(),
        "exhausted": failed_queue.filter(exhausted=True).count(),
        "channels": ChannelHealthMonitor().health_all(as_of=as_of),
        "today": daily_stats(as_of, as_of),
    }
