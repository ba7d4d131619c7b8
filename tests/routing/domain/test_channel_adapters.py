"""Tests for the channel adapter registry and the fake adapters."""

import pytest

from routing.channel import get_channel, register_channel, reset_channels
from routing.channel.fakes import FakeEmailAdapter, FakeInAppAdapter, FakeSlackAdapter, FakeSMSAdapter
from routing.channel.ports import EmailPort


class TestRegistry:
    @pytest.mark.parametrize(
        "channel, adapter_cls",
        [("Email", FakeEmailAdapter), ("SMS", FakeSMSAdapter), ("Slack", FakeSlackAdapter), ("InApp", FakeInAppAdapter)],
    )
    def test_default_adapters(self, channel, adapter_cls):
        assert isinstance(get_channel(channel), adapter_cls)

    def test_adapter_is_cached(self):
        assert get_channel("Email") is get_channel("Email")

    def test_unknown_channel(self):
        with pytest.raises(ValueError):
            get_channel("Fax")

    def test_registered_factory_replaces_default(self):
        class RecordingEmail(FakeEmailAdapter):
            pass

        register_channel("Email", RecordingEmail)
        assert isinstance(get_channel("Email"), RecordingEmail)

        reset_channels()
        assert type(get_channel("Email")) is FakeEmailAdapter


class TestFakeAdapters:
    def test_email_send_is_recorded(self):
        adapter = FakeEmailAdapter()
        result = adapter.send(to=["a@example.com"], subject="Hi", body="text", html_body="<p>hi</p>", cc=["b@example.com"])
        assert result["status"] == "sent"
        assert result["message_id"].startswith("email-")
        assert adapter.sent[0]["to"] == ["a@example.com"]
        assert adapter.sent[0]["cc"] == ["b@example.com"]
        assert adapter.sent[0]["bcc"] == []
        assert isinstance(adapter, EmailPort)

    def test_configured_failure(self):
        adapter = FakeSMSAdapter()
        adapter.configure(should_succeed=False, failure_reason="No signal")
        assert adapter.send(to="+15550100", body="x") == {"message_id": None, "status": "failed", "error": "No signal"}
        assert adapter.sent == []

    def test_bounce_outcome(self):
        adapter = FakeSlackAdapter()
        adapter.configure(outcome="bounced")
        assert adapter.send(recipient="#ops", message="x")["status"] == "bounced"

    def test_fail_times_then_recover(self):
        adapter = FakeInAppAdapter()
        adapter.configure(fail_times=2)
        outcomes = [adapter.send(user_id="u1", title="t", body="b")["status"] for _ in range(3)]
        assert outcomes == ["failed", "failed", "sent"]
        assert adapter.attempts == 3

    def test_reset(self):
        adapter = FakeEmailAdapter()
        adapter.configure(should_succeed=False)
        adapter.send(to=["a@example.com"], subject="s", body="b")
        adapter.reset()
        assert adapter.attempts == 0
        assert adapter.send(to=["a@example.com"], subject="s", body="b")["status"] == "sent"
