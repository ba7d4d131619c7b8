"""Fake channel adapters: record messages in memory for tests and local runs."""

from uuid import uuid4

from routing.channel.ports import EmailPort, InAppPort, SlackPort, SMSPort


class _RecordingAdapter:
    """Shared outcome control for the fakes.

    ``configure(outcome="failed")`` makes every send fail (``"bounced"``
    reports a permanent rejection). ``fail_times`` fails only the next N
    sends and then succeeds again.
    """

    prefix = "msg"
    default_error = "Delivery failed"

    def __init__(self):
        self.sent: list[dict] = []
        self.attempts = 0
        self.reset()

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str | None = None,
        outcome: str | None = None,
        fail_times: int | None = None,
    ):
        self.outcome = outcome or ("sent" if should_succeed else "failed")
        self.failure_reason = failure_reason or self.default_error
        self.fail_times = fail_times

    def reset(self):
        self.sent.clear()
        self.attempts = 0
        self.outcome = "sent"
        self.failure_reason = self.default_error
        self.fail_times = None

    def _deliver(self, **record) -> dict:
        self.attempts += 1

        outcome = self.outcome
        if self.fail_times is not None:
            outcome = "failed" if self.fail_times > 0 else "sent"
            self.fail_times = max(self.fail_times - 1, 0)

        if outcome != "sent":
            return {"message_id": None, "status": outcome, "error": self.failure_reason}

        message_id = f"{self.prefix}-{uuid4().hex[:12]}"
        self.sent.append({"message_id": message_id, **record})
        return {"message_id": message_id, "status": "sent"}


class FakeEmailAdapter(_RecordingAdapter, EmailPort):
    prefix = "email"
    default_error = "Email delivery failed"

    def send(self, to, subject, body, html_body=None, cc=None, bcc=None) -> dict:
        return self._deliver(
            to=list(to),
            cc=list(cc or []),
            bcc=list(bcc or []),
            subject=subject,
            body=body,
            html_body=html_body,
        )


class FakeSMSAdapter(_RecordingAdapter, SMSPort):
    prefix = "sms"
    default_error = "SMS delivery failed"

    def send(self, to, body) -> dict:
        return self._deliver(to=to, body=body)


class FakeSlackAdapter(_RecordingAdapter, SlackPort):
    prefix = "slack"
    default_error = "Slack delivery failed"

    def send(self, recipient, message, title=None) -> dict:
        return self._deliver(recipient=recipient, message=message, title=title)


class FakeInAppAdapter(_RecordingAdapter, InAppPort):
    prefix = "inapp"
    default_error = "In-app delivery failed"

    def send(self, user_id, title, body, severity=None) -> dict:
        return self._deliver(user_id=user_id, title=title, body=body, severity=severity)
