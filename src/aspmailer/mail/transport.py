"""Transport abstraction used by ``Mailer`` for each delivery attempt.

A transport delivers one :class:`~aspmailer.mail.models.OutboundMail` to one
host. ``Mailer`` builds a fresh transport per host entry through a
:data:`TransportFactory`, which lets tests and callers substitute their own
delivery backend.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from aspmailer.mail.models import HostEntry, OutboundMail


class MailTransport(ABC):
    """Deliver composed messages to a single host."""

    @abstractmethod
    def send(self, mail: OutboundMail) -> None:
        """Send *mail* once.

        Raises:
            MailTransportError: If the host does not accept the message.
        """


@dataclass(frozen=True, slots=True)
class TransportOptions:
    """Per-attempt settings shared by every host of one send.

    Attributes:
        timeout: Connection and command timeout in seconds.
        smtp_log: File receiving the SMTP conversation, if any.
        ignore_recipient_errors: Accept a delivery even when the server
            refused some of the recipients.
    """

    timeout: float = 30.0
    smtp_log: str | None = None
    ignore_recipient_errors: bool = True


TransportFactory = Callable[[HostEntry, TransportOptions], MailTransport]


__all__ = [
    "MailTransport",
    "TransportFactory",
    "TransportOptions",
]
