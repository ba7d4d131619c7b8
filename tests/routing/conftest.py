import pytest
from protean.integrations.pytest import DomainFixture

from routing.channel import reset_channels


@pytest.fixture(scope="session")
def routing_bed():
    from routing.domain import routing

    bed = DomainFixture(routing)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(routing_bed):
    with routing_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def _channels():
    reset_channels()
    yield
    reset_channels()


# ---------------------------------------------------------------------------
# Directory / policy / template builders
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_contact():
    from protean import current_domain

    from routing.directory.contact import Contact

    def _make(name="Dana Ops", email="dana@example.com", active=True, **fields):
        contact = Contact.create(name=name, email=email, **fields)
        if not active:
            contact.deactivate()
        current_domain.repository_for(Contact).add(contact)
        return contact

    return _make


@pytest.fixture()
def make_group():
    from protean import current_domain

    from routing.directory.group import RecipientGroup

    def _make(name="Import Ops", members=(), client_id=None, purpose="Production", active=True):
        group = RecipientGroup.create(name=name, client_id=client_id, purpose=purpose)
        for contact in members:
            group.add_member(contact.id)
        if not active:
            group.set_active(False)
        current_domain.repository_for(RecipientGroup).add(group)
        return group

    return _make


@pytest.fixture()
def make_policy():
    from protean import current_domain

    from routing.policy.policy import RoutingPolicy

    def _make(
        group,
        service="ImportProcessor",
        topic="DailyImportFailure",
        channel="Email",
        role="To",
        client_id=None,
        min_severity=None,
        priority=0,
        is_enabled=True,
    ):
        policy = RoutingPolicy.create(
            service=service,
            topic=topic,
            channel=channel,
            recipient_group_id=group.id,
            role=role,
            client_id=client_id,
            min_severity=min_severity,
            priority=priority,
            is_enabled=is_enabled,
        )
        current_domain.repository_for(RoutingPolicy).add(policy)
        return policy

    return _make


@pytest.fixture()
def make_template():
    from protean import current_domain

    from routing.template.template import MessageTemplate

    def _make(name="import-failure", subject="Import failed for {{ client_name }}", **fields):
        fields.setdefault("html_content", "<p>{{ file_count }} files failed</p>")
        template = MessageTemplate.create(name=name, subject=subject, **fields)
        current_domain.repository_for(MessageTemplate).add(template)
        return template

    return _make
