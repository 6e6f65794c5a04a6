"""ASPMail-compatible mailer.

:class:`Mailer` keeps the legacy "set properties, then call ``SendMail``"
model of the ServerObjects ASPMail component. Configuration lives in plain
attributes, recipients, attachments and extra headers in ordered
collections, and :meth:`Mailer.send_mail` composes a message from a snapshot
of that state and hands it to each configured SMTP relay in turn until one
accepts it.

Send failures never raise: ``send_mail`` returns False and the error text is
readable from :attr:`Mailer.response`. The only setter that raises is
``priority``.

Examples:
    >>> mailer = Mailer()
    >>> mailer.from_address = "app@example.com"
    >>> mailer.remote_host = "smtp1.example.com;smtp2.example.com:2525"
    >>> mailer.add_recipient("Ops", "ops@example.com")
    True
    >>> mailer.add_recipient("Nobody", "not-an-address")
    False
    >>> mailer.send_mail()  # doctest: +SKIP
    True
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from aspmailer.config import get_config, load_config
from aspmailer.exceptions import (
    AspMailerError,
    CharsetError,
    ConfigFormatError,
    ConfigNotLoadedError,
    InvalidPriorityError,
    MailConfigurationError,
    MailTransportError,
)
from aspmailer.mail.composer import compose, resolve_charset
from aspmailer.mail.encryption import launch_encryption_helper
from aspmailer.mail.headers import encode_header
from aspmailer.mail.hosts import parse_host_entry, split_remote_hosts
from aspmailer.mail.models import HostEntry, MailAddress, MailerState
from aspmailer.mail.models import Priority as MailPriority
from aspmailer.mail.transport import TransportFactory, TransportOptions
from aspmailer.mail.transports.smtp import SMTPTransport
from aspmailer.meta import LEGACY_COMPONENT_VERSION

log = logging.getLogger(__name__)

VALID_PRIORITIES = frozenset(int(p) for p in MailPriority)

#: Settings that ``Mailer.from_config`` accepts in the ``mailer`` section.
CONFIGURABLE_FIELDS = frozenset(
    {
        "from_name",
        "from_address",
        "subject",
        "body_text",
        "content_type",
        "charset",
        "custom_charset",
        "encoding",
        "date_time",
        "priority",
        "remote_host",
        "reply_to",
        "timeout",
        "confirm_read",
        "return_receipt",
        "ignore_malformed_address",
        "ignore_recipient_errors",
        "live",
        "urgent",
        "use_ms_mail_headers",
        "suppress_msg_body",
        "word_wrap",
        "word_wrap_len",
        "organization",
        "pgp_path",
        "pgp_params",
        "smtp_log",
    }
)


def _legacy_property(name: str, *, read_only: bool = False) -> property:
    """Expose attribute *name* under its legacy PascalCase name."""

    def fget(self: Mailer) -> Any:
        return getattr(self, name)

    def fset(self: Mailer, value: Any) -> None:
        setattr(self, name, value)

    return property(fget, None if read_only else fset, doc=f"Legacy alias of ``{name}``.")


class Mailer:
    """Legacy ASPMail mail component.

    A single instance is not safe to share between threads: adding to or
    clearing a collection while another thread is inside :meth:`send_mail`
    races with the snapshot taken there. Use one instance per sender or
    guard it with a lock.

    Args:
        transport_factory: Builds the transport used for one host entry.
            Defaults to :meth:`SMTPTransport.for_host`.

    Attributes:
        from_name: Sender display name.
        from_address: Sender address, required to send.
        subject: Message subject.
        body_text: Message body.
        content_type: ``"text/html"`` for an HTML body, anything else is
            plain text.
        charset: Legacy charset code, 1 US-ASCII, 2 ISO-8859-1.
        custom_charset: Charset name overriding ``charset``.
        encoding: Legacy transfer encoding code, accepted and unused.
        date_time: Verbatim ``Date`` header; the current time when unset.
        remote_host: Relays as ``host[:port]`` separated by ``;``.
        reply_to: ``Reply-To`` address.
        timeout: Per-host timeout in seconds.
        confirm_read: Request a read receipt
            (``Disposition-Notification-To``).
        return_receipt: Request SMTP delivery status notifications.
        ignore_malformed_address: Accept recipients without ``@``.
        ignore_recipient_errors: Accept deliveries with refused recipients.
        organization: ``Organization`` header.
        pgp_path: External encryption helper started before each send.
        pgp_params: Arguments for ``pgp_path``.
        smtp_log: File the SMTP conversation is appended to.
        live, urgent, use_ms_mail_headers, suppress_msg_body, word_wrap,
        word_wrap_len: Legacy switches kept for compatibility, no effect.
    """

    def __init__(self, *, transport_factory: TransportFactory | None = None) -> None:
        self.from_name: str | None = None
        self.from_address: str | None = None
        self.subject: str | None = None
        self.body_text: str | None = None
        self.content_type: str | None = None
        self.charset: int = 1
        self.custom_charset: str | None = None
        self.encoding: int = 0
        self.date_time: str | None = None
        self.remote_host: str | None = None
        self.reply_to: str | None = None
        self.timeout: float = 30
        self.confirm_read = False
        self.return_receipt = False
        self.ignore_malformed_address = False
        self.ignore_recipient_errors = True
        self.live = True
        self.urgent = False
        self.use_ms_mail_headers = False
        self.suppress_msg_body = True
        self.word_wrap = False
        self.word_wrap_len = 70
        self.organization: str | None = None
        self.pgp_path: str | None = None
        self.pgp_params: str | None = None
        self.smtp_log: str | None = None

        self._priority = int(MailPriority.NORMAL)
        self._response = ""
        self._last_host: HostEntry | None = None
        self._recipients: list[MailAddress] = []
        self._ccs: list[MailAddress] = []
        self._bccs: list[MailAddress] = []
        self._attachments: list[str] = []
        self._extra_headers: list[str] = []
        self._transport_factory: TransportFactory = transport_factory or SMTPTransport.for_host

    @classmethod
    def from_config(
        cls,
        config: Mapping[str, Any] | None = None,
        *,
        transport_factory: TransportFactory | None = None,
    ) -> Mailer:
        """Create a mailer preset from the ``mailer`` configuration section.

        Args:
            config: Full configuration mapping. Defaults to the loaded
                configuration, loading it first if needed.
            transport_factory: Passed through to the constructor.

        Raises:
            ConfigFormatError: If the section contains unknown settings.
            InvalidPriorityError: If the configured priority is invalid.
        """
        if config is None:
            try:
                config = get_config()
            except ConfigNotLoadedError:
                config = load_config()

        section = config.get("mailer") or {}
        unknown = sorted(set(section) - CONFIGURABLE_FIELDS)
        if unknown:
            raise ConfigFormatError(f"Unknown mailer settings: {', '.join(unknown)}")

        mailer = cls(transport_factory=transport_factory)
        for key, value in section.items():
            setattr(mailer, key, value)
        return mailer

    # ------------------------------------------------------------------
    # Validated and read-only properties
    # ------------------------------------------------------------------

    @property
    def priority(self) -> int:
        """Priority code: 1 high, 3 normal, 5 low."""
        return self._priority

    @priority.setter
    def priority(self, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value not in VALID_PRIORITIES:
            raise InvalidPriorityError(value)
        self._priority = int(value)

    @property
    def version(self) -> str:
        """Component version reported to legacy callers."""
        return LEGACY_COMPONENT_VERSION

    @property
    def expires(self) -> datetime:
        """Licence expiry of the legacy component; this one never expires."""
        return datetime.max

    @property
    def response(self) -> str:
        """Error text of the last failed operation, empty after a success."""
        return self._response

    @property
    def last_host(self) -> HostEntry | None:
        """Host that accepted the last successful send."""
        return self._last_host

    @property
    def recipients(self) -> tuple[MailAddress, ...]:
        return tuple(self._recipients)

    @property
    def ccs(self) -> tuple[MailAddress, ...]:
        return tuple(self._ccs)

    @property
    def bccs(self) -> tuple[MailAddress, ...]:
        return tuple(self._bccs)

    @property
    def attachments(self) -> tuple[str, ...]:
        return tuple(self._attachments)

    @property
    def extra_headers(self) -> tuple[str, ...]:
        return tuple(self._extra_headers)

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def _accepts(self, address: str | None) -> bool:
        if not address:
            return False
        return self.ignore_malformed_address or "@" in address

    def _add_address(self, target: list[MailAddress], kind: str, name: str | None, address: str | None) -> bool:
        if not self._accepts(address):
            log.debug("Rejected %s address %r", kind, address)
            return False
        target.append(MailAddress(name, address))  # type: ignore[arg-type]
        return True

    def add_recipient(self, name: str | None, address: str | None) -> bool:
        """Add a ``To`` recipient; False when the address is rejected."""
        return self._add_address(self._recipients, "To", name, address)

    def add_cc(self, name: str | None, address: str | None) -> bool:
        """Add a ``Cc`` recipient; False when the address is rejected."""
        return self._add_address(self._ccs, "Cc", name, address)

    def add_bcc(self, name: str | None, address: str | None) -> bool:
        """Add a ``Bcc`` recipient; False when the address is rejected."""
        return self._add_address(self._bccs, "Bcc", name, address)

    def clear_recipients(self) -> None:
        self._recipients.clear()

    def clear_ccs(self) -> None:
        self._ccs.clear()

    def clear_bccs(self) -> None:
        self._bccs.clear()

    def clear_all_recipients(self) -> None:
        """Empty the To, Cc and Bcc lists."""
        self.clear_recipients()
        self.clear_ccs()
        self.clear_bccs()

    def add_attachment(self, path: str | os.PathLike[str]) -> None:
        """Queue a file to attach; it is read when the message is sent."""
        self._attachments.append(os.fspath(path))

    def clear_attachments(self) -> None:
        self._attachments.clear()

    def add_extra_header(self, header: str) -> bool:
        """Queue a raw ``Name: Value`` header line.

        The line is only checked when the message is composed, so this
        always returns True.
        """
        self._extra_headers.append(header)
        return True

    def clear_extra_headers(self) -> None:
        self._extra_headers.clear()

    def clear_body_text(self) -> None:
        self.body_text = None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def get_body_text_from_file(
        self,
        path: str | os.PathLike[str],
        delete_after: bool = False,
        show_window: bool = False,  # pylint: disable=unused-argument
    ) -> bool:
        """Load the whole file at *path* into ``body_text``.

        The file is decoded with the configured body charset and its line
        endings are kept as they are.

        Args:
            path: File to read.
            delete_after: Remove the file once it has been read.
            show_window: Accepted for compatibility, ignored.

        Returns:
            True on success. On failure ``response`` holds the reason and
            ``body_text`` is left unchanged (unless only the deletion failed).
        """
        try:
            charset = resolve_charset(self.charset, self.custom_charset)
            with open(path, encoding=charset, newline="") as handle:
                text = handle.read()
        except (OSError, UnicodeDecodeError, LookupError, CharsetError) as e:
            self._response = f"Cannot read body text from '{os.fspath(path)}': {e}"
            log.warning("Cannot read body text from '%s': %s", path, e)
            return False

        self.body_text = text
        if delete_after:
            try:
                os.remove(path)
            except OSError as e:
                self._response = f"Cannot delete '{os.fspath(path)}': {e}"
                log.warning("Cannot delete '%s': %s", path, e)
                return False
        return True

    def encode_header(self, text: str) -> str:
        """Return *text* unchanged (see :func:`aspmailer.mail.headers.encode_header`)."""
        return encode_header(text)

    def get_temp_path(self) -> str:
        """Return the ``TMP`` environment variable, or the platform temp dir."""
        return os.environ.get("TMP") or tempfile.gettempdir()

    def snapshot(self) -> MailerState:
        """Freeze the current settings and collections."""
        return MailerState(
            from_name=self.from_name,
            from_address=self.from_address,
            subject=self.subject,
            body_text=self.body_text,
            content_type=self.content_type,
            charset=self.charset,
            custom_charset=self.custom_charset,
            date_time=self.date_time,
            organization=self.organization,
            reply_to=self.reply_to,
            priority=self._priority,
            confirm_read=self.confirm_read,
            return_receipt=self.return_receipt,
            recipients=tuple(self._recipients),
            ccs=tuple(self._ccs),
            bccs=tuple(self._bccs),
            attachments=tuple(self._attachments),
            extra_headers=tuple(self._extra_headers),
        )

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    def send_mail(self) -> bool:
        """Compose the message and deliver it to the first relay that accepts it.

        Relays from ``remote_host`` are tried once each, in order, with no
        delay between attempts. A composition error, an empty host list or an
        invalid timeout stops the send before any relay is contacted. An
        entry with an invalid port only fails its own attempt.

        Returns:
            True when a relay accepted the message. False otherwise, with the
            last error text in ``response``.
        """
        state = self.snapshot()
        try:
            if self.pgp_path:
                launch_encryption_helper(self.pgp_path, self.pgp_params)
            outbound = compose(state)
            items = split_remote_hosts(self.remote_host)
            options = self._transport_options()
        except AspMailerError as e:
            self._response = str(e)
            log.error("Message not sent: %s", e)
            return False

        log.info("Sending '%s' via %d host(s)", state.subject or "", len(items))

        for item in items:
            try:
                entry = parse_host_entry(item)
                transport = self._transport_factory(entry, options)
                transport.send(outbound)
            except (MailTransportError, MailConfigurationError) as e:
                self._response = str(e)
                log.warning("Delivery via %s failed: %s", item, e)
                continue

            self._response = ""
            self._last_host = entry
            log.info("Message accepted by %s", entry)
            return True

        log.error("Message not sent, all %d host(s) failed: %s", len(items), self._response)
        return False

    def _transport_options(self) -> TransportOptions:
        try:
            timeout = float(self.timeout)
        except (TypeError, ValueError) as e:
            raise MailConfigurationError(f"Invalid timeout {self.timeout!r}") from e
        if isinstance(self.timeout, bool) or not 0 < timeout < float("inf"):
            raise MailConfigurationError(f"Timeout must be a positive number of seconds (got {self.timeout!r})")
        return TransportOptions(
            timeout=timeout,
            smtp_log=self.smtp_log,
            ignore_recipient_errors=self.ignore_recipient_errors,
        )

    # ------------------------------------------------------------------
    # Legacy ASPMail names
    # ------------------------------------------------------------------

    SendMail = send_mail
    AddRecipient = add_recipient
    AddCC = add_cc
    AddBCC = add_bcc
    ClearRecipients = clear_recipients
    ClearCCs = clear_ccs
    ClearBCCs = clear_bccs
    ClearAllRecipients = clear_all_recipients
    AddAttachment = add_attachment
    ClearAttachments = clear_attachments
    AddExtraHeader = add_extra_header
    ClearExtraHeaders = clear_extra_headers
    ClearBodyText = clear_body_text
    GetBodyTextFromFile = get_body_text_from_file
    EncodeHeader = encode_header
    GetTempPath = get_temp_path

    FromName = _legacy_property("from_name")
    FromAddress = _legacy_property("from_address")
    Subject = _legacy_property("subject")
    BodyText = _legacy_property("body_text")
    ContentType = _legacy_property("content_type")
    CharSet = _legacy_property("charset")
    CustomCharSet = _legacy_property("custom_charset")
    Encoding = _legacy_property("encoding")
    DateTime = _legacy_property("date_time")
    Priority = _legacy_property("priority")
    RemoteHost = _legacy_property("remote_host")
    ReplyTo = _legacy_property("reply_to")
    TimeOut = _legacy_property("timeout")
    ConfirmRead = _legacy_property("confirm_read")
    ReturnReceipt = _legacy_property("return_receipt")
    IgnoreMalformedAddress = _legacy_property("ignore_malformed_address")
    IgnoreRecipientErrors = _legacy_property("ignore_recipient_errors")
    Live = _legacy_property("live")
    Urgent = _legacy_property("urgent")
    UseMSMailHeaders = _legacy_property("use_ms_mail_headers")
    SuppressMsgBody = _legacy_property("suppress_msg_body")
    WordWrap = _legacy_property("word_wrap")
    WordWrapLen = _legacy_property("word_wrap_len")
    Organization = _legacy_property("organization")
    PGPPath = _legacy_property("pgp_path")
    PGPParams = _legacy_property("pgp_params")
    SMTPLog = _legacy_property("smtp_log")
    Version = _legacy_property("version", read_only=True)
    Expires = _legacy_property("expires", read_only=True)
    Response = _legacy_property("response", read_only=True)


__all__ = ["CONFIGURABLE_FIELDS", "Mailer", "VALID_PRIORITIES"]
