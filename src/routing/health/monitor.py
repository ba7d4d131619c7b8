"""Channel Health Monitor: channel status derived from recent deliveries.

Stateless: every call reads the delivery history.

* No deliveries in the last 24 hours: Healthy when something was delivered
  in the last 48 hours, Degraded when anything was ever delivered,
  otherwise Unhealthy.
* Otherwise by success rate (delivered / total): above 95% Healthy,
  above 70% Degraded, else Unhealthy.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from protean.utils.globals import current_domain

from routing.delivery.delivery import OutboundDelivery
from routing.shared.clock import as_utc, utcnow
from routing.shared.enums import Channel, HealthStatus

WINDOW = timedelta(hours=24)
RECENT_SUCCESS_WINDOW = timedelta(hours=48)
HEALTHY_RATE = 0.95
DEGRADED_RATE = 0.70


@dataclass(frozen=True)
class ChannelHealthSnapshot:
    channel: str
    status: str
    last_successful_delivery_at: datetime | None
    error_count_24h: int
    total_24h: int
    delivered_24h: int

    @property
    def success_rate(self) -> float | None:
        if not self.total_24h:
            return None
        return self.delivered_24h / self.total_24h


def classify(total: int, delivered: int, last_success: datetime | None, as_of: datetime) -> str:
    if total == 0:
        if last_success is not None and as_utc(last_success) >= as_of - RECENT_SUCCESS_WINDOW:
            return HealthStatus.HEALTHY.value
        if last_success is not None:
            return HealthStatus.DEGRADED.value
        return HealthStatus.UNHEALTHY.value

    rate = delivered / total
    if rate > HEALTHY_RATE:
        return HealthStatus.HEALTHY.value
    if rate > DEGRADED_RATE:
        return HealthStatus.DEGRADED.value
    return HealthStatus.UNHEALTHY.value


class ChannelHealthMonitor:
    def health(self, channel: str, as_of: datetime | None = None) -> ChannelHealthSnapshot:
        if channel not in {c.value for c in Channel}:
            raise ValueError(f"Unknown channel type: {channel}")

        as_of = as_utc(as_of) if as_of else utcnow()
        repo = current_domain.repository_for(OutboundDelivery)

        total, delivered, errors = repo.channel_counts(channel, as_of - WINDOW, as_of)
        last_success = repo.last_delivered_at(channel)

        return ChannelHealthSnapshot(
            channel=channel,
            status=classify(total, delivered, last_success, as_of),
            last_successful_delivery_at=last_success,
            error_count_24h=errors,
            total_24h=total,
            delivered_24h=delivered,
        )

    def health_all(self, as_of: datetime | None = None) -> list[ChannelHealthSnapshot]:
        return [self.health(channel.value, as_of=as_of) for channel in Channel]


def get_channel_health(channel: str, as_of: datetime | None = None) -> ChannelHealthSnapshot:
    return ChannelHealthMonitor().health(channel, as_of=as_of)
