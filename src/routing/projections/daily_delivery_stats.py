"""DailyDeliveryStats: per-day, per-channel delivery counters for the dashboard."""

from protean.core.projector import on
from protean.exceptions import ObjectNotFoundError
from protean.fields import DateTime, Integer, String
from protean.utils.globals import current_domain

from routing.delivery.delivery import OutboundDelivery
from routing.delivery.events import (
    DeliveryBounced,
    DeliveryDelivered,
    DeliveryFailed,
    DeliveryRequested,
)
from routing.domain import routing


@routing.projection
class DailyDeliveryStats:
    stat_key: String(identifier=True, required=True)  # "YYYY-MM-DD:channel"
    date: String(required=True, max_length=10)
    channel: String(required=True)
    requested: Integer(default=0)
    delivered: Integer(default=0)
    failed: Integer(default=0)
    bounced: Integer(default=0)
    updated_at: DateTime()


def _bump(channel, occurred_at, counter):
    repo = current_domain.repository_for(DailyDeliveryStats)
    date_str = occurred_at.strftime("%Y-%m-%d") if occurred_at else "unknown"
    stat_key = f"{date_str}:{channel}"

    try:
        stat = repo.get(stat_key)
    except ObjectNotFoundError:
        stat = DailyDeliveryStats(stat_key=stat_key, date=date_str, channel=channel)

    setattr(stat, counter, (getattr(stat, counter) or 0) + 1)
    stat.updated_at = occurred_at
    repo.add(stat)


@routing.projector(projector_for=DailyDeliveryStats, aggregates=[OutboundDelivery])
class DailyDeliveryStatsProjector:
    @on(DeliveryRequested)
    def on_delivery_requested(self, event):
        _bump(event.channel, event.created_at, "requested")

    @on(DeliveryDelivered)
    def on_delivery_delivered(self, event):
        _bump(event.channel, event.delivered_at, "delivered")

    @on(DeliveryFailed)
    def on_delivery_failed(self, event):
        _bump(event.channel, event.failed_at, "failed")

    @on(DeliveryBounced)
    def on_delivery_bounced(self, event):
        _bump(event.channel, event.bounced_at, "bounced")
