"""Application tests for the template fallback chain and previews."""

from uuid import uuid4

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

from routing.channel import get_channel
from routing.outbound.outbound_event import OutboundEvent
from routing.outbound.publishing import publish
from routing.template.management import (
    CreateMessageTemplate,
    CreateTopicTemplateMapping,
    SetMessageTemplateActive,
    UpdateTopicTemplateMapping,
)
from routing.template.resolver import TemplateResolver, preview_template


def _event(**overrides):
    fields = {
        "service": "ImportProcessor",
        "topic": "DailyImportFailure",
        "subject": "Raw subject",
        "body": "<p>raw body</p>",
        "payload": {"client_name": "Acme", "file_count": 3},
    }
    fields.update(overrides)
    return OutboundEvent.create(**fields)


def _map(template, client_id=None, priority=0, topic="DailyImportFailure"):
    return current_domain.process(
        CreateTopicTemplateMapping(
            service="ImportProcessor",
            topic=topic,
            template_id=str(template.id),
            client_id=client_id,
            priority=priority,
        ),
        asynchronous=False,
    )


class TestFallbackChain:
    def test_explicit_template_wins(self, make_template):
        explicit = make_template(name="explicit", subject="Explicit for {{ client_name }}")
        mapped = make_template(name="mapped", subject="Mapped")
        _map(mapped)

        content = TemplateResolver().resolve(_event(template_id=str(explicit.id)))
        assert content.subject == "Explicit for Acme"
        assert content.template_id == str(explicit.id)

    def test_mapping_used_when_no_explicit_template(self, make_template):
        template = make_template()
        _map(template)

        content = TemplateResolver().resolve(_event())
        assert content.subject == "Import failed for Acme"
        assert content.html_body == "<p>3 files failed</p>"
        assert content.template_id == str(template.id)

    def test_event_content_used_without_mapping(self):
        content = TemplateResolver().resolve(_event())
        assert content.subject == "Raw subject"
        assert content.html_body == "<p>raw body</p>"
        assert content.template_id is None

    def test_blank_template_id_is_ignored(self):
        content = TemplateResolver().resolve(_event(template_id="  "))
        assert content.subject == "Raw subject"

    def test_non_uuid_template_id_falls_through_to_mapping(self, make_template):
        template = make_template()
        _map(template)

        content = TemplateResolver().resolve(_event(template_id="legacy-42"))
        assert content.subject == "Import failed for Acme"
        assert content.template_id == str(template.id)

    def test_explicit_template_id_is_normalised(self, make_template):
        template = make_template()
        content = TemplateResolver().resolve(_event(template_id=f" {str(template.id).upper()} "))
        assert content.template_id == str(template.id)

    def test_event_content_is_kept_verbatim(self):
        event = _event(
            subject="Q1 & Q2 <urgent>",
            body="<p>Import <b>failed</b> for Smith & Co</p>",
            payload={"client_name": "Smith & Co"},
        )
        content = TemplateResolver().resolve(event)

        assert event.payload_data == {"client_name": "Smith & Co"}
        assert content.subject == "Q1 & Q2 <urgent>"
        assert content.html_body == "<p>Import <b>failed</b> for Smith & Co</p>"

    def test_fallback_subject_when_event_has_none(self):
        content = TemplateResolver().resolve(_event(subject=None))
        assert content.subject == "Notification"

    def test_client_mapping_overrides_default(self, make_template):
        default = make_template(name="default", subject="Default")
        client = make_template(name="client", subject="For Acme")
        _map(default, priority=10)
        _map(client, client_id="acme")

        assert TemplateResolver().resolve(_event(client_id="acme")).subject == "For Acme"
        assert TemplateResolver().resolve(_event(client_id="globex")).subject == "Default"

    def test_highest_priority_mapping_wins(self, make_template):
        low = make_template(name="low", subject="Low")
        high = make_template(name="high", subject="High")
        _map(low, priority=1)
        _map(high, priority=5)

        assert TemplateResolver().resolve(_event()).subject == "High"

    def test_disabled_mapping_is_skipped(self, make_template):
        template = make_template()
        mapping_id = _map(template)
        current_domain.process(UpdateTopicTemplateMapping(mapping_id=mapping_id, is_enabled=False), asynchronous=False)

        assert not TemplateResolver().has_mapping("ImportProcessor", "DailyImportFailure", None)
        assert TemplateResolver().resolve(_event()).subject == "Raw subject"


class TestTemplateErrors:
    def test_missing_explicit_template(self):
        with pytest.raises(ObjectNotFoundError):
            TemplateResolver().resolve(_event(template_id=str(uuid4())))

    def test_inactive_explicit_template(self, make_template):
        template = make_template()
        current_domain.process(
            SetMessageTemplateActive(template_id=str(template.id), is_active=False),
            asynchronous=False,
        )
        with pytest.raises(ValidationError) as exc:
            TemplateResolver().resolve(_event(template_id=str(template.id)))
        assert "is not active" in str(exc.value.messages)

    def test_mapping_to_unknown_template_is_rejected(self):
        with pytest.raises(ObjectNotFoundError):
            current_domain.process(
                CreateTopicTemplateMapping(service="ImportProcessor", topic="Custom", template_id="missing"),
                asynchronous=False,
            )


class TestTemplateCommands:
    def test_duplicate_name_is_rejected(self, make_template):
        make_template(name="weekly")
        with pytest.raises(ValidationError):
            current_domain.process(CreateMessageTemplate(name="weekly", subject="Weekly"), asynchronous=False)

    def test_test_data_must_be_an_object(self):
        with pytest.raises(ValidationError):
            current_domain.process(
                CreateMessageTemplate(name="bad", subject="Bad", test_data="[1]"),
                asynchronous=False,
            )


class TestPreview:
    def test_preview_uses_stored_test_data(self, make_template):
        template = make_template(test_data={"client_name": "Sample Co", "file_count": 1})
        content = preview_template(template.id)
        assert content.subject == "Import failed for Sample Co"

    def test_preview_with_explicit_data(self, make_template):
        template = make_template(test_data={"client_name": "Sample Co"})
        assert preview_template(template.id, {"client_name": "Live"}).subject == "Import failed for Live"


def test_mapped_template_reaches_the_channel(make_contact, make_group, make_policy, make_template):
    make_policy(make_group(members=[make_contact(email="ops@example.com")]))
    _map(make_template())

    publish(
        service="ImportProcessor",
        topic="DailyImportFailure",
        subject="ignored",
        payload={"client_name": "Acme", "file_count": 4},
    )

    [message] = get_channel("Email").sent
    assert message["subject"] == "Import failed for Acme"
    assert message["html_body"] == "<p>4 files failed</p>"


def test_event_content_reaches_the_channel_verbatim(make_contact, make_group, make_policy):
    make_policy(make_group(members=[make_contact(email="ops@example.com")]))

    result = publish(
        service="ImportProcessor",
        topic="DailyImportFailure",
        subject="Q1 & Q2 <urgent>",
        body="<p>Import <b>failed</b></p>",
        payload={"client_name": "Smith & Co"},
    )

    event = current_domain.repository_for(OutboundEvent).get(result.event_id)
    assert event.subject == "Q1 & Q2 <urgent>"
    assert event.body == "<p>Import <b>failed</b></p>"
    assert event.payload_data == {"client_name": "Smith & Co"}

    [message] = get_channel("Email").sent
    assert message["subject"] == "Q1 & Q2 <urgent>"
    assert message["html_body"] == "<p>Import <b>failed</b></p>"


def test_stored_template_markup_is_rendered_once(make_template):
    template = make_template(subject="Report for {{ client_name }}", html_content="<p>{{ client_name }}</p>")
    stored = current_domain.repository_for(type(template)).get(template.id)
    assert stored.html_content == "<p>{{ client_name }}</p>"

    content = TemplateResolver().resolve(_event(template_id=str(template.id), payload={"client_name": "Smith & Co"}))
    assert content.subject == "Report for Smith & Co"
    assert content.html_body == "<p>Smith &amp; Co</p>"
