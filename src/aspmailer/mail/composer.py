"""Message composition from a ``MailerState`` snapshot.

:func:`compose` turns the legacy property values into an
:class:`email.message.EmailMessage`, applying the ASPMail mapping rules for
character sets, priority codes, receipts and caller-supplied headers.
Composition is deterministic for a given snapshot, apart from the ``Date``
header stamped when no explicit date is configured.
"""

from __future__ import annotations

import codecs
import logging
import mimetypes
import os
from email.errors import HeaderParseError
from email.headerregistry import Address
from email.message import EmailMessage
from email.utils import formatdate, parseaddr
from pathlib import Path

from aspmailer.exceptions import (
    AddressFormatError,
    AttachmentError,
    CharsetError,
    MailCompositionError,
    MalformedHeaderError,
)
from aspmailer.logging import TRACE_LEVEL
from aspmailer.mail.headers import parse_extra_header
from aspmailer.mail.models import DeliveryNotification, MailAddress, MailerState, OutboundMail, Priority

log = logging.getLogger(__name__)

#: Legacy ``CharSet`` codes and the charsets they select.
CHARSET_CODES: dict[int, str] = {
    1: "us-ascii",
    2: "iso-8859-1",
}
DEFAULT_CHARSET = "us-ascii"

HTML_CONTENT_TYPE = "text/html"

#: Headers emitted for non-normal priorities.
PRIORITY_HEADERS: dict[int, tuple[tuple[str, str], ...]] = {
    Priority.HIGH: (("X-Priority", "1"), ("Priority", "urgent"), ("Importance", "high")),
    Priority.NORMAL: (),
    Priority.LOW: (("X-Priority", "5"), ("Priority", "non-urgent"), ("Importance", "low")),
}

RETURN_RECEIPT_NOTIFICATIONS = DeliveryNotification.SUCCESS | DeliveryNotification.FAILURE | DeliveryNotification.DELAY


def resolve_charset(charset: int, custom_charset: str | None = None) -> str:
    """Return the body charset name for the legacy settings.

    Args:
        charset: Legacy code, 1 for US-ASCII and 2 for ISO-8859-1. Other
            codes fall back to US-ASCII.
        custom_charset: Explicit charset name, takes precedence when set.

    Raises:
        CharsetError: If *custom_charset* is not a known text encoding.

    Examples:
        >>> resolve_charset(2)
        'iso-8859-1'
        >>> resolve_charset(7)
        'us-ascii'
    """
    if custom_charset:
        try:
            codec = codecs.lookup(custom_charset)
        except LookupError as e:
            raise CharsetError(f"Unknown character set {custom_charset!r}") from e
        # base64, rot13, hex... are codecs but not text encodings
        if not getattr(codec, "_is_text_encoding", True):
            raise CharsetError(f"{custom_charset!r} is not a text encoding")
        return custom_charset
    return CHARSET_CODES.get(charset, DEFAULT_CHARSET)


def _build_address(field: str, name: str | None, address: str | None, *, strict: bool) -> Address:
    if not address:
        raise AddressFormatError(field, address, "address is required")
    try:
        parsed = Address(display_name=name or "", addr_spec=address.strip())
    except (ValueError, IndexError, HeaderParseError) as e:
        raise AddressFormatError(field, address, str(e) or type(e).__name__) from e
    if strict and (not parsed.username or not parsed.domain):
        raise AddressFormatError(field, address, "expected local-part@domain")
    return parsed


def _set_header(message: EmailMessage, name: str, value: object) -> None:
    try:
        message[name] = value
    except ValueError as e:
        raise MailCompositionError(f"Invalid {name} header: {e}") from e


def _recipient_list(field: str, entries: tuple[MailAddress, ...]) -> list[Address]:
    return [_build_address(field, entry.name, entry.address, strict=False) for entry in entries]


def _parse_reply_to(value: str) -> Address:
    """Accept ``Name <addr>`` or a bare address, like the legacy parser did."""
    name, addr = parseaddr(value)
    if not addr:
        raise AddressFormatError("Reply-To", value, "cannot parse address")
    return _build_address("Reply-To", name, addr, strict=True)


def _encodable_body(text: str, charset: str) -> str:
    """Replace characters *charset* cannot represent with ``?``."""
    return text.encode(charset, errors="replace").decode(charset)


def _attach_file(message: EmailMessage, path: str) -> None:
    """Attach *path* with RFC 2183 date parameters taken from the filesystem."""
    file_path = Path(path)
    try:
        data = file_path.read_bytes()
        stat = os.stat(file_path)
    except OSError as e:
        raise AttachmentError(path, e.strerror or str(e)) from e

    mime_type, _ = mimetypes.guess_type(file_path.name)
    maintype, _, subtype = (mime_type or "application/octet-stream").partition("/")
    message.add_attachment(data, maintype=maintype, subtype=subtype, filename=file_path.name)

    part = message.get_payload()[-1]
    created = getattr(stat, "st_birthtime", stat.st_ctime)
    part.set_param("creation-date", formatdate(created, localtime=True), header="Content-Disposition")
    part.set_param("modification-date", formatdate(stat.st_mtime, localtime=True), header="Content-Disposition")
    part.set_param("read-date", formatdate(stat.st_atime, localtime=True), header="Content-Disposition")


def compose(state: MailerState) -> OutboundMail:
    """Build the outbound message for *state*.

    Args:
        state: Snapshot of the mailer settings and collections.

    Returns:
        The composed message and its delivery notification options.

    Raises:
        AddressFormatError: If the sender, reply-to or a recipient address
            cannot be parsed.
        AttachmentError: If an attachment cannot be read.
        MalformedHeaderError: If an extra header is not ``Name: Value`` or
            the message refuses it.
        CharsetError: If the custom charset is unknown.
    """
    charset = resolve_charset(state.charset, state.custom_charset)
    message = EmailMessage()

    if state.confirm_read:
        _set_header(message, "Disposition-Notification-To", f"<{state.from_address or ''}>")
    _set_header(message, "Date", state.date_time if state.date_time is not None else formatdate(localtime=True))
    if state.organization is not None:
        _set_header(message, "Organization", state.organization)

    sender = _build_address("From", state.from_name, state.from_address, strict=True)
    _set_header(message, "Sender", sender)
    _set_header(message, "From", sender)

    for field, entries in (("To", state.recipients), ("Cc", state.ccs), ("Bcc", state.bccs)):
        if entries:
            _set_header(message, field, _recipient_list(field, entries))

    subtype = "html" if state.content_type == HTML_CONTENT_TYPE else "plain"
    try:
        message.set_content(_encodable_body(state.body_text or "", charset), subtype=subtype, charset=charset)
    except (LookupError, UnicodeError) as e:
        raise CharsetError(f"Cannot encode body as {charset!r}: {e}") from e

    for path in state.attachments:
        _attach_file(message, path)

    for raw in state.extra_headers:
        name, value = parse_extra_header(raw)
        try:
            message[name] = value
        except ValueError as e:
            raise MalformedHeaderError(raw, str(e)) from e

    for name, value in PRIORITY_HEADERS[state.priority]:
        _set_header(message, name, value)

    if state.reply_to is not None:
        _set_header(message, "Reply-To", _parse_reply_to(state.reply_to))

    if state.subject is not None:
        _set_header(message, "Subject", state.subject)

    notification = RETURN_RECEIPT_NOTIFICATIONS if state.return_receipt else DeliveryNotification.NONE

    if log.isEnabledFor(TRACE_LEVEL):
        log.log(
            TRACE_LEVEL,
            "Composed message: From=%s, To=%s, Subject=%s, attachments=%d, charset=%s",
            message["From"],
            message.get("To"),
            message.get("Subject"),
            len(state.attachments),
            charset,
        )
    return OutboundMail(message=message, delivery_notification=notification)


__all__ = [
    "CHARSET_CODES",
    "DEFAULT_CHARSET",
    "HTML_CONTENT_TYPE",
    "PRIORITY_HEADERS",
    "compose",
    "resolve_charset",
]
