"""Message composition and delivery used by ``Mailer``.

Examples:
    Compose a snapshot and send it to one relay::

        from aspmailer.mail import MailerState, MailAddress, compose
        from aspmailer.mail.transports import SMTPTransport

        state = MailerState(
            from_address="app@example.com",
            recipients=(MailAddress("Ops", "ops@example.com"),),
            subject="Nightly report",
            body_text="All jobs finished.",
        )
        SMTPTransport("smtp.example.com").send(compose(state))
"""

from aspmailer.mail.composer import compose, resolve_charset
from aspmailer.mail.encryption import launch_encryption_helper
from aspmailer.mail.headers import encode_header, parse_extra_header
from aspmailer.mail.hosts import parse_host_entry, parse_remote_hosts, split_remote_hosts
from aspmailer.mail.models import (
    DEFAULT_SMTP_PORT,
    DeliveryNotification,
    HostEntry,
    MailAddress,
    MailerState,
    OutboundMail,
    Priority,
)
from aspmailer.mail.transport import MailTransport, TransportFactory, TransportOptions

__all__ = [
    "DEFAULT_SMTP_PORT",
    "DeliveryNotification",
    "HostEntry",
    "MailAddress",
    "MailTransport",
    "MailerState",
    "OutboundMail",
    "Priority",
    "TransportFactory",
    "TransportOptions",
    "compose",
    "encode_header",
    "launch_encryption_helper",
    "parse_extra_header",
    "parse_host_entry",
    "parse_remote_hosts",
    "resolve_charset",
    "split_remote_hosts",
]
