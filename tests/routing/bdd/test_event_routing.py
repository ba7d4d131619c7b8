"""BDD tests for routing outbound events to recipient groups."""

import pytest
from protean import current_domain
from pytest_bdd import given, parsers, scenarios, then, when

from routing.channel import get_channel
from routing.directory.contact import Contact
from routing.outbound.outbound_event import OutboundEvent
from routing.outbound.publishing import publish

scenarios("features/event_routing.feature")


@pytest.fixture()
def contacts():
    return {}


@pytest.fixture()
def groups():
    return {}


# ---------------------------------------------------------------------------
# Given steps: directory and policies
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a contact "{name}" with email "{email}"'))
def a_contact(contacts, make_contact, name, email):
    contacts[name] = make_contact(name=name, email=email)


@given(parsers.cfparse('a recipient group "{group_name}" containing "{first}" and "{second}"'))
def a_group_of_two(groups, contacts, make_group, group_name, first, second):
    groups[group_name] = make_group(name=group_name, members=[contacts[first], contacts[second]])


@given(parsers.cfparse('a recipient group "{group_name}" containing only "{member}"'))
def a_group_of_one(groups, contacts, make_group, group_name, member):
    groups[group_name] = make_group(name=group_name, members=[contacts[member]])


@given(parsers.cfparse('an email policy from severity "{severity}" for "{service}" "{topic}" targeting "{group_name}"'))
def a_thresholded_policy(groups, make_policy, service, topic, group_name, severity):
    make_policy(groups[group_name], service=service, topic=topic, min_severity=severity)


@given(parsers.cfparse('an email policy for client "{client_id}" on "{service}" "{topic}" targeting "{group_name}"'))
def a_client_policy(groups, make_policy, client_id, service, topic, group_name):
    make_policy(groups[group_name], service=service, topic=topic, client_id=client_id)


@given(parsers.cfparse('an email policy for "{service}" "{topic}" targeting "{group_name}"'))
def a_policy(groups, make_policy, service, topic, group_name):
    make_policy(groups[group_name], service=service, topic=topic)


@given(parsers.cfparse('the contact "{name}" is deactivated'))
def deactivate_contact(contacts, name):
    repo = current_domain.repository_for(Contact)
    contact = repo.get(contacts[name].id)
    contact.deactivate()
    repo.add(contact)


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(
    parsers.cfparse('"{service}" publishes "{topic}" with severity "{severity}"'),
    target_fixture="result",
)
def publish_with_severity(service, topic, severity):
    return publish(service=service, topic=topic, severity=severity, subject=f"{topic} alert")


@when(
    parsers.cfparse('"{service}" publishes "{topic}" for client "{client_id}"'),
    target_fixture="result",
)
def publish_for_client(service, topic, client_id):
    return publish(service=service, topic=topic, client_id=client_id, subject=f"{topic} alert")


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse("{count:d} deliveries are created"))
def deliveries_created(result, count):
    assert result.delivery_count == count


@then(parsers.cfparse('an email is sent to "{address}"'))
def email_sent_to(address):
    assert any(address in m["to"] + m["cc"] + m["bcc"] for m in get_channel("Email").sent)


@then("the event is recorded as processed")
def event_processed(result):
    assert current_domain.repository_for(OutboundEvent).get(result.event_id).is_processed
