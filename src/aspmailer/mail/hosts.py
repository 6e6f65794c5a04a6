"""Parsing of the semicolon-delimited remote host string."""

from __future__ import annotations

from aspmailer.exceptions import MailConfigurationError
from aspmailer.mail.models import DEFAULT_SMTP_PORT, HostEntry

MAX_PORT = 65535


def split_remote_hosts(remote_host: str | None) -> list[str]:
    """Return the non-blank ``;`` separated entries of *remote_host*.

    Raises:
        MailConfigurationError: If no entry is left.
    """
    items = [raw.strip() for raw in (remote_host or "").split(";")]
    items = [item for item in items if item]
    if not items:
        raise MailConfigurationError("No remote host configured")
    return items


def parse_host_entry(item: str, *, default_port: int = DEFAULT_SMTP_PORT) -> HostEntry:
    """Parse one ``host[:port]`` entry; the port follows the last ``:``.

    Raises:
        MailConfigurationError: If the host is missing or the port is not a
            number between 1 and 65535.
    """
    host, sep, port_text = item.strip().rpartition(":")
    if not sep:
        return HostEntry(item.strip(), default_port)

    host = host.strip()
    port_text = port_text.strip()
    if not host:
        raise MailConfigurationError(f"Missing host name in remote host entry {item!r}")
    if not (port_text.isascii() and port_text.isdigit()) or not 0 < int(port_text) <= MAX_PORT:
        raise MailConfigurationError(f"Invalid port in remote host entry {item!r}")
    return HostEntry(host, int(port_text))


def parse_remote_hosts(remote_host: str | None, *, default_port: int = DEFAULT_SMTP_PORT) -> list[HostEntry]:
    """Split a remote host string into ordered host entries.

    Entries are separated by ``;``. An explicit port follows the last ``:``
    of an entry. Blank entries are skipped.

    Args:
        remote_host: String such as ``"a.example.com;b.example.com:2525"``.
        default_port: Port for entries without an explicit one.

    Returns:
        Host entries in the order they were given.

    Raises:
        MailConfigurationError: If no host is configured or a port is not a
            number between 1 and 65535.

    Examples:
        >>> parse_remote_hosts("a.example.com;b.example.com:2525")
        [HostEntry(host='a.example.com', port=25), HostEntry(host='b.example.com', port=2525)]
    """
    return [parse_host_entry(item, default_port=default_port) for item in split_remote_hosts(remote_host)]


__all__ = ["parse_host_entry", "parse_remote_hosts", "split_remote_hosts"]
