"""Application tests for channel health classification."""

from datetime import UTC, datetime, timedelta

import pytest
from protean import current_domain

from routing.delivery.delivery import OutboundDelivery
from routing.health.monitor import ChannelHealthMonitor, classify, get_channel_health

NOW = datetime(2026, 5, 4, 12, 0, tzinfo=UTC)


def _store(channel, status, created_at, count=1):
    """Persist deliveries in a final state without going through dispatch."""
    repo = current_domain.repository_for(OutboundDelivery)
    for _ in range(count):
        d = OutboundDelivery(
            outbound_event_id="evt-health",
            contact_id="contact-health",
            channel=channel,
            role="To",
            status="Pending",
            attempt_count=0,
            created_at=created_at,
        )
        if status != "Pending":
            d.begin_attempt(started_at=created_at)
        if status == "Delivered":
            d.mark_delivered(delivered_at=created_at)
        elif status == "Failed":
            d.mark_failed("boom", failed_at=created_at)
        elif status == "Bounced":
            d.mark_bounced("gone", bounced_at=created_at)
        d._events.clear()
        repo.add(d)


class TestClassify:
    @pytest.mark.parametrize(
        "total, delivered, expected",
        [
            (100, 100, "Healthy"),
            (100, 96, "Healthy"),
            (100, 95, "Degraded"),
            (100, 71, "Degraded"),
            (100, 70, "Unhealthy"),
            (10, 0, "Unhealthy"),
        ],
    )
    def test_success_rate_thresholds(self, total, delivered, expected):
        assert classify(total, delivered, NOW, NOW) == expected

    def test_no_traffic_with_recent_success_is_healthy(self):
        assert classify(0, 0, NOW - timedelta(hours=47), NOW) == "Healthy"

    def test_no_traffic_with_old_success_is_degraded(self):
        assert classify(0, 0, NOW - timedelta(days=5), NOW) == "Degraded"

    def test_never_delivered_is_unhealthy(self):
        assert classify(0, 0, None, NOW) == "Unhealthy"


class TestMonitor:
    def test_counts_only_the_last_24_hours(self):
        _store("Email", "Delivered", NOW - timedelta(hours=2), count=19)
        _store("Email", "Failed", NOW - timedelta(hours=3), count=1)
        _store("Email", "Failed", NOW - timedelta(hours=30), count=10)

        snapshot = get_channel_health("Email", as_of=NOW)
        assert snapshot.total_24h == 20
        assert snapshot.delivered_24h == 19
        assert snapshot.error_count_24h == 1
        assert snapshot.success_rate == pytest.approx(0.95)
        assert snapshot.status == "Degraded"

    def test_bounces_count_as_errors(self):
        _store("SMS", "Delivered", NOW - timedelta(hours=1), count=2)
        _store("SMS", "Bounced", NOW - timedelta(hours=1), count=1)

        snapshot = get_channel_health("SMS", as_of=NOW)
        assert snapshot.error_count_24h == 1
        assert snapshot.status == "Unhealthy"

    def test_quiet_channel_with_recent_success(self):
        _store("Slack", "Delivered", NOW - timedelta(hours=36))
        snapshot = get_channel_health("Slack", as_of=NOW)
        assert snapshot.total_24h == 0
        assert snapshot.success_rate is None
        assert snapshot.status == "Healthy"
        assert snapshot.last_successful_delivery_at == NOW - timedelta(hours=36)

    def test_counts_are_not_capped_by_page_size(self):
        _store("Email", "Failed", NOW - timedelta(days=3), count=120)
        _store("Email", "Delivered", NOW - timedelta(hours=1), count=130)

        snapshot = get_channel_health("Email", as_of=NOW)
        assert snapshot.total_24h == 130
        assert snapshot.delivered_24h == 130
        assert snapshot.error_count_24h == 0
        assert snapshot.status == "Healthy"

    def test_last_success_is_the_newest_delivery(self):
        _store("InApp", "Delivered", NOW - timedelta(days=4))
        _store("InApp", "Delivered", NOW - timedelta(hours=40))
        _store("InApp", "Delivered", NOW - timedelta(days=2, hours=1))

        snapshot = get_channel_health("InApp", as_of=NOW)
        assert snapshot.last_successful_delivery_at == NOW - timedelta(hours=40)

    def test_deliveries_after_as_of_are_ignored(self):
        _store("Slack", "Failed", NOW + timedelta(hours=2), count=3)
        assert get_channel_health("Slack", as_of=NOW).total_24h == 0

    def test_channels_are_independent(self):
        _store("Email", "Failed", NOW - timedelta(hours=1), count=5)
        assert get_channel_health("InApp", as_of=NOW).status == "Unhealthy"
        assert get_channel_health("Email", as_of=NOW).error_count_24h == 5

    def test_health_all_reports_every_channel(self):
        snapshots = ChannelHealthMonitor().health_all(as_of=NOW)
        assert {s.channel for s in snapshots} == {"Email", "SMS", "Slack", "InApp"}

    def test_unknown_channel(self):
        with pytest.raises(ValueError):
            get_channel_health("Fax")
