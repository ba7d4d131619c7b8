"""Shared BDD fixtures and step definitions for the routing domain."""

import pytest
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

from routing.delivery.delivery import OutboundDelivery


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


def _new_delivery():
    d = OutboundDelivery.create(outbound_event_id="evt-bdd", contact_id="contact-bdd", channel="Email")
    d._events.clear()
    return d


# ---------------------------------------------------------------------------
# Given steps: deliveries
# ---------------------------------------------------------------------------
@given("a pending email delivery", target_fixture="delivery")
def pending_delivery():
    return _new_delivery()


@given("a delivered email delivery", target_fixture="delivery")
def delivered_delivery():
    d = _new_delivery()
    d.begin_attempt()
    d.mark_delivered()
    d._events.clear()
    return d


@given(parsers.cfparse("an email delivery that has failed {times:d} times"), target_fixture="delivery")
def failed_delivery(times):
    d = _new_delivery()
    for _ in range(times):
        d.begin_attempt()
        d.mark_failed("Delivery failed")
    d._events.clear()
    return d


# ---------------------------------------------------------------------------
# Then steps: deliveries
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the delivery status is "{status}"'))
def delivery_status_is(delivery, status):
    assert delivery.status == status


@then(parsers.cfparse("the delivery has {count:d} attempt"))
@then(parsers.cfparse("the delivery has {count:d} attempts"))
def delivery_attempts(delivery, count):
    assert delivery.attempt_count == count


@then("the status change is rejected")
def status_change_rejected(error):
    assert isinstance(error["exc"], ValidationError)
