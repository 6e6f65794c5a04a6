"""Tests for the SMTP transport backend."""

from __future__ import annotations

import io
import logging
import sys
from email.message import EmailMessage
from pathlib import Path
from smtplib import SMTPException, SMTPRecipientsRefused, SMTPServerDisconnected
from typing import Any, ClassVar

import pytest

from aspmailer.exceptions import MailConfigurationError, MailTransportError
from aspmailer.logging import TRACE_LEVEL
from aspmailer.mail.models import DeliveryNotification, HostEntry, OutboundMail
from aspmailer.mail.transport import TransportOptions
from aspmailer.mail.transports.smtp import (
    SMTPTransport,
    _append_smtp_log,
    _capture_smtp_debug,
    _log_smtp_debug_output,
)

# pylint: disable=redefined-outer-name

SMTP_TARGET = "aspmailer.mail.transports.smtp.smtplib.SMTP"
LOGGER_NAME = "aspmailer.mail.transports.smtp"


class DummySMTP:
    """Minimal SMTP client capturing invocations."""

    created: ClassVar[list[DummySMTP]] = []
    extensions: ClassVar[set[str]] = set()
    refused: ClassVar[dict[str, tuple[int, bytes]]] = {}

    def __init__(self, **kwargs: Any) -> None:
        """Capture constructor kwargs and initialise tracking state."""
        self.kwargs = kwargs
        self.ehlo_called = 0
        self.debug_level = 0
        self.sent: list[tuple[EmailMessage, list[str]]] = []
        self.closed = False
        DummySMTP.created.append(self)

    def __enter__(self) -> DummySMTP:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.closed = True

    def ehlo(self) -> None:
        """Record EHLO invocations."""
        self.ehlo_called += 1
        if self.debug_level:
            print("send: 'ehlo client.example.com\\r\\n'", file=sys.stderr)
            print("reply: b'250-mail.example.com'", file=sys.stderr)

    def has_extn(self, name: str) -> bool:
        """Report advertised SMTP extensions."""
        return name.lower() in self.extensions

    def set_debuglevel(self, level: int) -> None:
        """Accept debug level setting."""
        self.debug_level = level

    def send_message(self, message: EmailMessage, rcpt_options: Any = ()) -> dict[str, tuple[int, bytes]]:
        """Collect outgoing messages for later inspection."""
        self.sent.append((message, list(rcpt_options)))
        return dict(self.refused)


@pytest.fixture(autouse=True)
def _reset_dummy() -> None:
    DummySMTP.created = []
    DummySMTP.extensions = set()
    DummySMTP.refused = {}


@pytest.fixture
def outbound() -> OutboundMail:
    """Simple composed message."""
    message = EmailMessage()
    message["From"] = "sender@example.com"
    message["To"] = "user@example.com"
    message["Subject"] = "Hello"
    message.set_content("Body")
    return OutboundMail(message)


def test_sends_message_with_host_port_and_timeout(monkeypatch: pytest.MonkeyPatch, outbound: OutboundMail) -> None:
    """The client is built from the transport settings and closed afterwards."""
    monkeypatch.setattr(SMTP_TARGET, DummySMTP)

    SMTPTransport("smtp.example.com", 2525, timeout=12.5).send(outbound)

    client = DummySMTP.created[-1]
    assert client.kwargs == {"host": "smtp.example.com", "port": 2525, "timeout": 12.5}
    assert client.ehlo_called == 1
    assert client.sent == [(outbound.message, [])]
    assert client.closed


def test_for_host_uses_entry_and_options(monkeypatch: pytest.MonkeyPatch, outbound: OutboundMail) -> None:
    """The factory classmethod applies the shared options."""
    monkeypatch.setattr(SMTP_TARGET, DummySMTP)
    transport = SMTPTransport.for_host(HostEntry("relay.example.com", 587), TransportOptions(timeout=5.0))

    assert (transport.host, transport.port) == ("relay.example.com", 587)
    transport.send(outbound)
    assert DummySMTP.created[-1].kwargs["timeout"] == 5.0


@pytest.mark.parametrize(("host", "timeout"), [("", 30.0), ("smtp.example.com", 0), ("smtp.example.com", -1)])
def test_rejects_invalid_settings(host: str, timeout: float) -> None:
    """An empty host or non-positive timeout is a configuration error."""
    with pytest.raises(MailConfigurationError):
        SMTPTransport(host, timeout=timeout)


def test_wraps_smtplib_errors(monkeypatch: pytest.MonkeyPatch, outbound: OutboundMail) -> None:
    """Protocol errors surface as MailTransportError naming the target."""

    class ExplodingSMTP(DummySMTP):
        def send_message(self, message: EmailMessage, rcpt_options: Any = ()) -> dict[str, tuple[int, bytes]]:
            raise SMTPException("boom")

    monkeypatch.setattr(SMTP_TARGET, ExplodingSMTP)

    with pytest.raises(MailTransportError, match=r"smtp\.example\.com:25: boom") as exc_info:
        SMTPTransport("smtp.example.com").send(outbound)

    assert exc_info.value.host == "smtp.example.com"
    assert isinstance(exc_info.value.__cause__, SMTPException)


def test_wraps_connection_errors(monkeypatch: pytest.MonkeyPatch, outbound: OutboundMail) -> None:
    """Socket errors and timeouts are reported as unreachable hosts."""

    def refuse(**_: Any) -> DummySMTP:
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(SMTP_TARGET, refuse)

    with pytest.raises(MailTransportError, match="Cannot reach down.example.com:25"):
        SMTPTransport("down.example.com").send(outbound)


def test_wraps_timeouts(monkeypatch: pytest.MonkeyPatch, outbound: OutboundMail) -> None:
    """A timeout is an OSError and fails only this attempt."""

    def slow(**_: Any) -> DummySMTP:
        raise TimeoutError("timed out")

    monkeypatch.setattr(SMTP_TARGET, slow)

    with pytest.raises(MailTransportError, match="timed out"):
        SMTPTransport("slow.example.com", timeout=1).send(outbound)


def test_wraps_disconnects(monkeypatch: pytest.MonkeyPatch, outbound: OutboundMail) -> None:
    """A server hanging up mid-session fails the attempt."""

    class HangingUpSMTP(DummySMTP):
        def ehlo(self) -> None:
            raise SMTPServerDisconnected("Connection unexpectedly closed")

    monkeypatch.setattr(SMTP_TARGET, HangingUpSMTP)

    with pytest.raises(MailTransportError, match="unexpectedly closed"):
        SMTPTransport("smtp.example.com").send(outbound)


def test_all_recipients_refused(monkeypatch: pytest.MonkeyPatch, outbound: OutboundMail) -> None:
    """smtplib raises when nobody is accepted, whatever the ignore flag."""

    class RefusingSMTP(DummySMTP):
        def send_message(self, message: EmailMessage, rcpt_options: Any = ()) -> dict[str, tuple[int, bytes]]:
            raise SMTPRecipientsRefused({"user@example.com": (550, b"No such user")})

    monkeypatch.setattr(SMTP_TARGET, RefusingSMTP)

    with pytest.raises(MailTransportError):
        SMTPTransport("smtp.example.com", ignore_recipient_errors=True).send(outbound)


class TestPartiallyRefusedRecipients:
    """Some recipients refused while others were accepted."""

    def test_ignored_by_default(
        self,
        monkeypatch: pytest.MonkeyPatch,
        outbound: OutboundMail,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """The delivery succeeds and the refusal is logged."""
        monkeypatch.setattr(SMTP_TARGET, DummySMTP)
        DummySMTP.refused = {"bad@example.com": (550, b"No such user")}

        with caplog.at_level(logging.WARNING, logger=LOGGER_NAME):
            SMTPTransport("smtp.example.com").send(outbound)

        assert any("bad@example.com" in r.message for r in caplog.records)

    def test_fails_when_not_ignored(self, monkeypatch: pytest.MonkeyPatch, outbound: OutboundMail) -> None:
        """Refusals fail the attempt when recipient errors matter."""
        monkeypatch.setattr(SMTP_TARGET, DummySMTP)
        DummySMTP.refused = {"bad@example.com": (550, b"No such user")}

        with pytest.raises(MailTransportError, match="bad@example.com"):
            SMTPTransport("smtp.example.com", ignore_recipient_errors=False).send(outbound)


class TestDeliveryNotification:
    """DSN options passed with RCPT TO."""

    def test_requested_when_server_supports_dsn(self, monkeypatch: pytest.MonkeyPatch, outbound: OutboundMail) -> None:
        """All requested notification kinds are listed."""
        monkeypatch.setattr(SMTP_TARGET, DummySMTP)
        DummySMTP.extensions = {"dsn"}
        mail = OutboundMail(
            outbound.message,
            DeliveryNotification.SUCCESS | DeliveryNotification.FAILURE | DeliveryNotification.DELAY,
        )

        SMTPTransport("smtp.example.com").send(mail)

        assert DummySMTP.created[-1].sent[0][1] == ["NOTIFY=SUCCESS,FAILURE,DELAY"]

    def test_skipped_without_server_support(self, monkeypatch: pytest.MonkeyPatch, outbound: OutboundMail) -> None:
        """Servers without DSN get a plain RCPT TO."""
        monkeypatch.setattr(SMTP_TARGET, DummySMTP)
        mail = OutboundMail(outbound.message, DeliveryNotification.SUCCESS)

        SMTPTransport("smtp.example.com").send(mail)

        assert DummySMTP.created[-1].sent[0][1] == []

    def test_not_requested(self, monkeypatch: pytest.MonkeyPatch, outbound: OutboundMail) -> None:
        """No options when no receipt was asked for."""
        monkeypatch.setattr(SMTP_TARGET, DummySMTP)
        DummySMTP.extensions = {"dsn"}

        SMTPTransport("smtp.example.com").send(outbound)

        assert DummySMTP.created[-1].sent[0][1] == []


class TestSmtpLog:
    """SMTP conversation log file."""

    def test_appends_conversation(self, monkeypatch: pytest.MonkeyPatch, outbound: OutboundMail, tmp_path: Path) -> None:
        """Each attempt adds a header line and the debug output."""
        monkeypatch.setattr(SMTP_TARGET, DummySMTP)
        log_file = tmp_path / "smtp.log"
        transport = SMTPTransport("smtp.example.com", 2525, smtp_log=str(log_file))

        transport.send(outbound)
        transport.send(outbound)

        content = log_file.read_text(encoding="utf-8")
        assert content.count("smtp.example.com:2525 ===") == 2
        assert "ehlo client.example.com" in content
        assert DummySMTP.created[-1].debug_level == 1

    def test_written_on_failure(self, monkeypatch: pytest.MonkeyPatch, outbound: OutboundMail, tmp_path: Path) -> None:
        """Failed attempts are logged too."""

        class ExplodingSMTP(DummySMTP):
            def send_message(self, message: EmailMessage, rcpt_options: Any = ()) -> dict[str, tuple[int, bytes]]:
                raise SMTPException("boom")

        monkeypatch.setattr(SMTP_TARGET, ExplodingSMTP)
        log_file = tmp_path / "smtp.log"

        with pytest.raises(MailTransportError):
            SMTPTransport("smtp.example.com", smtp_log=str(log_file)).send(outbound)

        assert "smtp.example.com:25 ===" in log_file.read_text(encoding="utf-8")

    def test_no_debug_without_log_or_trace(
        self,
        monkeypatch: pytest.MonkeyPatch,
        outbound: OutboundMail,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Debug output stays off by default."""
        monkeypatch.setattr(SMTP_TARGET, DummySMTP)

        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            SMTPTransport("smtp.example.com").send(outbound)

        assert DummySMTP.created[-1].debug_level == 0

    def test_unwritable_log_does_not_fail(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        """A log file that cannot be opened only produces a warning."""
        target = tmp_path / "missing-dir" / "smtp.log"

        with caplog.at_level(logging.WARNING, logger=LOGGER_NAME):
            _append_smtp_log(str(target), "smtp.example.com:25", "output")

        assert not target.exists()
        assert any("Cannot write SMTP log" in r.message for r in caplog.records)


def test_send_with_trace_logs_envelope(
    monkeypatch: pytest.MonkeyPatch,
    outbound: OutboundMail,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """TRACE logging shows the envelope and the mirrored conversation."""
    monkeypatch.setattr(SMTP_TARGET, DummySMTP)

    with caplog.at_level(TRACE_LEVEL, logger=LOGGER_NAME):
        SMTPTransport("smtp.example.com").send(outbound)

    messages = [r.message for r in caplog.records]
    assert any("[SMTP] Connecting to smtp.example.com:25" in m for m in messages)
    assert any("[SMTP] MAIL FROM: sender@example.com" in m for m in messages)
    assert any("[SMTP] RCPT TO: user@example.com" in m for m in messages)
    assert any("[SMTP] >>>" in m and "ehlo" in m for m in messages)
    assert any("[SMTP] <<<" in m for m in messages)
    assert any("Message sent successfully" in m for m in messages)


def test_capture_smtp_debug_captures_stderr() -> None:
    """Output written to stderr inside the block lands in the buffer."""
    with _capture_smtp_debug() as buffer:
        print("send: 'NOOP'", file=sys.stderr)

    assert "send: 'NOOP'" in buffer.getvalue()


def test_capture_smtp_debug_restores_stderr() -> None:
    """stderr is restored after the block."""
    original = sys.stderr
    with _capture_smtp_debug():
        assert sys.stderr is not original
    assert sys.stderr is original


def test_log_smtp_debug_output_skips_if_trace_disabled(caplog: pytest.LogCaptureFixture) -> None:
    """Nothing is mirrored unless TRACE is enabled."""
    buffer = io.StringIO("send: 'EHLO example.com'\n")
    with caplog.at_level(logging.WARNING, logger=LOGGER_NAME):
        _log_smtp_debug_output(buffer)
    assert len(caplog.records) == 0


def test_log_smtp_debug_output_classifies_lines(caplog: pytest.LogCaptureFixture) -> None:
    """send, reply and other lines are tagged differently; blanks are dropped."""
    buffer = io.StringIO("send: 'EHLO example.com'\nreply: b'250 OK'\n\nconnect: ('smtp', 25)\n")
    with caplog.at_level(TRACE_LEVEL, logger=LOGGER_NAME):
        _log_smtp_debug_output(buffer)

    assert [r.message for r in caplog.records] == [
        "[SMTP] >>> 'EHLO example.com'",
        "[SMTP] <<< b'250 OK'",
        "[SMTP] connect: ('smtp', 25)",
    ]
