"""SMTP transport built on :mod:`smtplib`.

Each :class:`SMTPTransport` targets one relay. The connection is opened for a
single message and closed right after, matching the one-attempt-per-host
fallback done by ``Mailer``.

When an SMTP log file is configured, or TRACE logging is enabled, the
``smtplib`` debug output is captured from stderr, appended to the log file
and mirrored to the logger.

Examples:
    >>> from aspmailer.mail.transports import SMTPTransport
    >>> transport = SMTPTransport("smtp.example.com", 2525, timeout=10)
    >>> transport.send(outbound)  # doctest: +SKIP
"""

from __future__ import annotations

import contextlib
import io
import logging
import smtplib
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from aspmailer.exceptions import MailConfigurationError, MailTransportError
from aspmailer.logging import TRACE_LEVEL
from aspmailer.mail.models import DEFAULT_SMTP_PORT, DeliveryNotification
from aspmailer.mail.transport import MailTransport

if TYPE_CHECKING:
    from aspmailer.mail.models import HostEntry, OutboundMail
    from aspmailer.mail.transport import TransportOptions


__all__ = ["SMTPTransport"]

log = logging.getLogger(__name__)

_DSN_KEYWORDS: tuple[tuple[DeliveryNotification, str], ...] = (
    (DeliveryNotification.SUCCESS, "SUCCESS"),
    (DeliveryNotification.FAILURE, "FAILURE"),
    (DeliveryNotification.DELAY, "DELAY"),
)


@contextlib.contextmanager
def _capture_smtp_debug() -> Iterator[io.StringIO]:
    """Redirect stderr to a buffer while ``smtplib`` debug output is on."""
    buffer = io.StringIO()
    with contextlib.redirect_stderr(buffer):
        yield buffer


def _log_smtp_debug_output(buffer: io.StringIO) -> None:
    """Mirror captured ``smtplib`` debug lines to the logger at TRACE level."""
    if not log.isEnabledFor(TRACE_LEVEL):
        return
    for raw_line in buffer.getvalue().splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith("send:"):
            log.log(TRACE_LEVEL, "[SMTP] >>> %s", line[len("send:") :].strip())
        elif line.startswith("reply:"):
            log.log(TRACE_LEVEL, "[SMTP] <<< %s", line[len("reply:") :].strip())
        else:
            log.log(TRACE_LEVEL, "[SMTP] %s", line)


def _append_smtp_log(path: str, target: str, output: str) -> None:
    """Append one attempt's conversation to the SMTP log file.

    Failing to write the log never fails the delivery.
    """
    stamp = datetime.now().astimezone().isoformat(timespec="seconds")
    try:
        with Path(path).open("a", encoding="utf-8") as handle:
            handle.write(f"=== {stamp} {target} ===\n")
            handle.write(output)
            if output and not output.endswith("\n"):
                handle.write("\n")
    except OSError as e:
        log.warning("Cannot write SMTP log '%s': %s", path, e)


def _rcpt_options(client: smtplib.SMTP, notification: DeliveryNotification) -> list[str]:
    """Return the DSN ``NOTIFY`` option when requested and supported."""
    if notification == DeliveryNotification.NONE:
        return []
    if not client.has_extn("dsn"):
        log.debug("Server does not advertise DSN, delivery notifications not requested")
        return []
    keywords = [keyword for flag, keyword in _DSN_KEYWORDS if flag in notification]
    return [f"NOTIFY={','.join(keywords)}"]


class SMTPTransport(MailTransport):
    """Deliver messages to one SMTP relay.

    Args:
        host: Relay host name or address.
        port: Relay port (default 25).
        timeout: Socket timeout in seconds for the whole attempt.
        smtp_log: Optional file the SMTP conversation is appended to.
        ignore_recipient_errors: When False, any recipient refused by the
            server fails the delivery.

    Raises:
        MailConfigurationError: If *host* is empty or *timeout* is not
            positive.
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_SMTP_PORT,
        *,
        timeout: float = 30.0,
        smtp_log: str | None = None,
        ignore_recipient_errors: bool = True,
    ) -> None:
        if not host:
            raise MailConfigurationError("SMTP host is required")
        if timeout <= 0:
            raise MailConfigurationError("Timeout must be greater than 0")
        self._host = host
        self._port = port
        self._timeout = timeout
        self._smtp_log = smtp_log
        self._ignore_recipient_errors = ignore_recipient_errors

    @classmethod
    def for_host(cls, entry: HostEntry, options: TransportOptions) -> SMTPTransport:
        """Build a transport for one host entry; usable as a ``TransportFactory``."""
        return cls(
            entry.host,
            entry.port,
            timeout=options.timeout,
            smtp_log=options.smtp_log,
            ignore_recipient_errors=options.ignore_recipient_errors,
        )

    @property
    def host(self) -> str:
        """Relay host name."""
        return self._host

    @property
    def port(self) -> int:
        """Relay port."""
        return self._port

    def send(self, mail: OutboundMail) -> None:
        """Send *mail* over a fresh SMTP connection.

        Raises:
            MailTransportError: On connection failure, timeout, protocol
                error or refused recipients.
        """
        target = f"{self._host}:{self._port}"
        trace_enabled = log.isEnabledFor(TRACE_LEVEL)
        capture = trace_enabled or self._smtp_log is not None
        message = mail.message

        if trace_enabled:
            log.log(TRACE_LEVEL, "[SMTP] Connecting to %s (timeout=%ss)", target, self._timeout)
            log.log(TRACE_LEVEL, "[SMTP] MAIL FROM: %s", message.get("Sender") or message.get("From"))
            log.log(
                TRACE_LEVEL,
                "[SMTP] RCPT TO: %s",
                ", ".join(str(message.get(field)) for field in ("To", "Cc", "Bcc") if message.get(field)),
            )

        buffer: io.StringIO | None = None
        try:
            if capture:
                with _capture_smtp_debug() as buffer:
                    self._deliver(mail, debug=True)
            else:
                self._deliver(mail, debug=False)
        except smtplib.SMTPException as e:
            raise MailTransportError(f"{target}: {e}", host=self._host) from e
        except OSError as e:
            raise MailTransportError(f"Cannot reach {target}: {e}", host=self._host) from e
        finally:
            if buffer is not None:
                if self._smtp_log is not None:
                    _append_smtp_log(self._smtp_log, target, buffer.getvalue())
                _log_smtp_debug_output(buffer)

        log.debug("Message accepted by %s", target)
        if trace_enabled:
            log.log(TRACE_LEVEL, "[SMTP] Message sent successfully via %s", target)

    def _deliver(self, mail: OutboundMail, *, debug: bool) -> None:
        with smtplib.SMTP(host=self._host, port=self._port, timeout=self._timeout) as client:
            if debug:
                client.set_debuglevel(1)
            client.ehlo()
            rcpt_options = _rcpt_options(client, mail.delivery_notification)
            refused = client.send_message(mail.message, rcpt_options=rcpt_options)

        if refused:
            rejected = ", ".join(f"{addr} ({code} {reply!r})" for addr, (code, reply) in refused.items())
            if not self._ignore_recipient_errors:
                raise MailTransportError(f"Recipients refused by {self._host}: {rejected}", host=self._host)
            log.warning("Ignoring recipients refused by %s: %s", self._host, rejected)


