"""Data models for the aspmailer.mail package.

- MailAddress: Display name and address pair stored in recipient lists
- HostEntry: One SMTP relay parsed from the remote host string
- Priority: Legacy priority codes (1, 3, 5)
- DeliveryNotification: Flags for SMTP delivery status notifications
- MailerState: Frozen snapshot of a Mailer taken at send time
- OutboundMail: Composed message ready to hand to a transport
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Flag, IntEnum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from email.message import EmailMessage

#: Port used when a host entry has no explicit ``:port``.
DEFAULT_SMTP_PORT = 25


class Priority(IntEnum):
    """Legacy priority codes accepted by ``Mailer.priority``."""

    HIGH = 1
    NORMAL = 3
    LOW = 5


class DeliveryNotification(Flag):
    """Delivery status notifications requested from the SMTP server."""

    NONE = 0
    SUCCESS = auto()
    FAILURE = auto()
    DELAY = auto()


@dataclass(frozen=True, slots=True)
class MailAddress:
    """A recipient entry.

    Attributes:
        name: Display name, may be empty.
        address: Email address as given by the caller.
    """

    name: str | None
    address: str


@dataclass(frozen=True, slots=True)
class HostEntry:
    """One SMTP relay from the remote host list.

    Examples:
        >>> HostEntry("mail.example.com")
        HostEntry(host='mail.example.com', port=25)
    """

    host: str
    port: int = DEFAULT_SMTP_PORT

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True, slots=True)
class MailerState:
    """Snapshot of every ``Mailer`` setting and collection.

    A snapshot is taken once per send so that composition works on values
    that cannot change underneath it.
    """

    from_name: str | None = None
    from_address: str | None = None
    subject: str | None = None
    body_text: str | None = None
    content_type: str | None = None
    charset: int = 1
    custom_charset: str | None = None
    date_time: str | None = None
    organization: str | None = None
    reply_to: str | None = None
    priority: int = Priority.NORMAL
    confirm_read: bool = False
    return_receipt: bool = False
    recipients: tuple[MailAddress, ...] = ()
    ccs: tuple[MailAddress, ...] = ()
    bccs: tuple[MailAddress, ...] = ()
    attachments: tuple[str, ...] = ()
    extra_headers: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class OutboundMail:
    """A composed message plus the envelope options the transport needs."""

    message: EmailMessage
    delivery_notification: DeliveryNotification = DeliveryNotification.NONE


__all__ = [
    "DEFAULT_SMTP_PORT",
    "DeliveryNotification",
    "HostEntry",
    "MailAddress",
    "MailerState",
    "OutboundMail",
    "Priority",
]
