"""Channel ports: the interfaces the dispatcher sends through.

Every ``send`` returns a dict with keys ``message_id``, ``status``
(``"sent"``, ``"failed"`` or ``"bounced"``) and ``error`` (optional).
Adapters report failures in that dict instead of raising.
"""

from abc import ABC, abstractmethod


class EmailPort(ABC):
    """One message to a To list, with optional Cc and Bcc lists."""

    @abstractmethod
    def send(
        self,
        to: list[str],
        subject: str,
        body: str | None,
        html_body: str | None = None,
        cc: list[str] | None = None,
        bcc: list[str] | None = None,
    ) -> dict: ...


class SMSPort(ABC):
    @abstractmethod
    def send(self, to: str, body: str) -> dict: ...


class SlackPort(ABC):
    @abstractmethod
    def send(self, recipient: str, message: str, title: str | None = None) -> dict: ...


class InAppPort(ABC):
    @abstractmethod
    def send(self, user_id: str, title: str, body: str, severity: str | None = None) -> dict: ...
