"""Helpers for caller-supplied header lines."""

from __future__ import annotations

import re

from aspmailer.exceptions import MalformedHeaderError

HEADER_SEPARATOR = ": "

#: RFC 5322 field-name: printable US-ASCII except colon.
HEADER_NAME_PATTERN = re.compile(r"^[\x21-\x39\x3b-\x7e]+\Z")


def parse_extra_header(raw: str) -> tuple[str, str]:
    """Split a raw ``Name: Value`` line on its first separator.

    Args:
        raw: Header line as passed to ``Mailer.add_extra_header``.

    Returns:
        A ``(name, value)`` tuple. The value may itself contain ``": "``.

    Raises:
        MalformedHeaderError: If the separator is missing, or the name is
            empty or not a valid field name (spaces, control characters).

    Examples:
        >>> parse_extra_header("X-Test: value")
        ('X-Test', 'value')
        >>> parse_extra_header("X-Url: http: //x")
        ('X-Url', 'http: //x')
    """
    name, sep, value = raw.partition(HEADER_SEPARATOR)
    if not sep:
        raise MalformedHeaderError(raw)
    if not name.strip():
        raise MalformedHeaderError(raw, "header name is empty")
    if not HEADER_NAME_PATTERN.match(name):
        raise MalformedHeaderError(raw, "header name contains invalid characters")
    return name, value


def encode_header(text: str) -> str:
    """Return *text* unchanged.

    The legacy component documented RFC 2047 encoded-word output here but
    always returned its input. Callers rely on that passthrough, so no
    encoding is applied; the ``email`` package encodes non-ASCII header
    values itself when the message is serialized.
    """
    return text


__all__ = ["HEADER_NAME_PATTERN", "HEADER_SEPARATOR", "encode_header", "parse_extra_header"]
