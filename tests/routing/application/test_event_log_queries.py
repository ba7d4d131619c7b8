"""Application tests for event-log queries: ordering, windows and limits."""

from datetime import UTC, datetime, timedelta

from protean import current_domain

from routing.outbound.outbound_event import OutboundEvent
from routing.outbound.publishing import publish
from routing.outbound.queries import get_by_correlation, get_by_saga, get_unprocessed, search_events

NOW = datetime(2026, 5, 4, 12, 0, tzinfo=UTC)


def _log(created_at, processed=True, **fields):
    """Persist an event directly in the log with a fixed creation time."""
    values = {"service": "ImportProcessor", "topic": "DailyImportFailure", "subject": "Logged"}
    values.update(fields)
    event = OutboundEvent.create(**values)
    event.created_at = created_at
    if processed:
        event.mark_processed()
    event._events.clear()
    current_domain.repository_for(OutboundEvent).add(event)
    return event


class TestUnprocessed:
    def test_oldest_unprocessed_is_found_behind_many_processed(self):
        for minutes in range(150):
            _log(NOW - timedelta(minutes=minutes))
        stuck = _log(NOW - timedelta(days=3), processed=False)
        newer = _log(NOW - timedelta(hours=1), processed=False)

        assert [str(e.id) for e in get_unprocessed(limit=1)] == [str(stuck.id)]
        assert [str(e.id) for e in get_unprocessed()] == [str(stuck.id), str(newer.id)]
        assert current_domain.repository_for(OutboundEvent).count_unprocessed() == 2


class TestSearch:
    def test_newest_first_within_window(self):
        old = _log(NOW - timedelta(days=2))
        first = _log(NOW - timedelta(hours=5))
        second = _log(NOW - timedelta(hours=1))

        found = search_events(date_from=NOW - timedelta(days=1), date_to=NOW)
        assert [str(e.id) for e in found] == [str(second.id), str(first.id)]
        assert str(old.id) not in {str(e.id) for e in search_events(date_from=NOW - timedelta(days=1))}

    def test_limit_keeps_the_newest(self):
        for hours in range(5):
            _log(NOW - timedelta(hours=hours), subject=f"Run {hours}")

        found = search_events(limit=2)
        assert [e.subject for e in found] == ["Run 0", "Run 1"]

    def test_client_and_severity_filters(self):
        _log(NOW, client_id="acme", severity="Urgent")
        _log(NOW, client_id="globex", severity="Urgent")
        _log(NOW, client_id="acme", severity="Info")

        found = search_events(client_id="acme", severity="Urgent")
        assert [(e.client_id, e.severity) for e in found] == [("acme", "Urgent")]

    def test_window_count(self):
        _log(NOW - timedelta(hours=2))
        _log(NOW - timedelta(hours=30))
        repo = current_domain.repository_for(OutboundEvent)
        assert repo.count(date_from=NOW - timedelta(hours=24), date_to=NOW) == 1


class TestWorkflowLookups:
    def test_events_of_a_saga_oldest_first(self):
        second = _log(NOW - timedelta(hours=1), saga_id="saga-7")
        first = _log(NOW - timedelta(hours=3), saga_id="saga-7")
        _log(NOW, saga_id="saga-8")

        assert [str(e.id) for e in get_by_saga("saga-7")] == [str(first.id), str(second.id)]
        assert get_by_saga("saga-unknown") == []

    def test_published_events_are_found_by_saga(self):
        result = publish(
            service="ImportProcessor",
            topic="DailyImportFailure",
            subject="Step failed",
            saga_id="import-run-42",
            correlation_id="corr-42",
        )

        [event] = get_by_saga("import-run-42")
        assert str(event.id) == result.event_id
        assert [str(e.id) for e in get_by_correlation("corr-42")] == [result.event_id]
