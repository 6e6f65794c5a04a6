"""Specialized exceptions raised by aspmailer.

Exception hierarchy::

    AspMailerError
        MailerValidationError (setter rejected a value, also ValueError)
            InvalidPriorityError
        MailCompositionError (message could not be built)
            AddressFormatError
            AttachmentError
            MalformedHeaderError
            CharsetError
            EncryptionHelperError
        MailConfigurationError (host list or transport setup invalid)
        MailTransportError (delivery to one host failed)
        ConfigError
            ConfigFileNotFoundError
            ConfigFormatError
            ConfigNotLoadedError
"""

from __future__ import annotations

from typing import Any


class AspMailerError(Exception):
    """Base exception for all aspmailer errors."""


class MailerValidationError(AspMailerError, ValueError):
    """A property setter rejected the value it was given."""


class InvalidPriorityError(MailerValidationError):
    """Raised when the priority is not one of the legacy codes 1, 3 or 5.

    Attributes:
        value: The rejected priority value.

    Examples:
        >>> raise InvalidPriorityError(2)
        Traceback (most recent call last):
        ...
        aspmailer.exceptions.InvalidPriorityError: Priority must be 1, 3 or 5 (got 2)
    """

    def __init__(self, value: Any) -> None:
        """Initialize InvalidPriorityError.

        Args:
            value: The rejected priority value.
        """
        super().__init__(f"Priority must be 1, 3 or 5 (got {value!r})")
        self.value = value


class MailCompositionError(AspMailerError):
    """The outbound message could not be composed from the current state.

    Composition errors abort a send before any host is contacted.
    """


class AddressFormatError(MailCompositionError):
    """Raised when a sender, reply-to or recipient address cannot be parsed.

    Attributes:
        field: Which address was being parsed (``From``, ``Reply-To``...).
        address: The offending address string.
    """

    def __init__(self, field: str, address: str | None, reason: str) -> None:
        """Initialize AddressFormatError.

        Args:
            field: Which address was being parsed.
            address: The offending address string.
            reason: Why the address was rejected.
        """
        super().__init__(f"Invalid {field} address {address!r}: {reason}")
        self.field = field
        self.address = address


class AttachmentError(MailCompositionError):
    """Raised when an attachment file cannot be read at send time.

    Attributes:
        path: Path of the attachment.
    """

    def __init__(self, path: str, reason: str) -> None:
        """Initialize AttachmentError.

        Args:
            path: Path of the attachment.
            reason: Underlying error description.
        """
        super().__init__(f"Cannot attach '{path}': {reason}")
        self.path = path


class MalformedHeaderError(MailCompositionError):
    """Raised when an extra header is not of the form ``Name: Value``.

    Attributes:
        header: The raw header line.

    Examples:
        >>> raise MalformedHeaderError("NoSeparatorHere")
        Traceback (most recent call last):
        ...
        aspmailer.exceptions.MalformedHeaderError: Malformed extra header 'NoSeparatorHere': expected 'Name: Value'
    """

    def __init__(self, header: str, reason: str = "expected 'Name: Value'") -> None:
        """Initialize MalformedHeaderError.

        Args:
            header: The raw header line.
            reason: Why the header was rejected.
        """
        super().__init__(f"Malformed extra header {header!r}: {reason}")
        self.header = header


class CharsetError(MailCompositionError):
    """Raised when the configured custom character set is unknown."""


class EncryptionHelperError(MailCompositionError):
    """Raised when the external encryption helper cannot be started."""


class MailConfigurationError(AspMailerError):
    """The remote host list or transport configuration is invalid."""


class MailTransportError(AspMailerError):
    """Delivery to a single host failed.

    Attributes:
        host: Host the delivery was attempted against, when known.
    """

    def __init__(self, message: str, *, host: str | None = None) -> None:
        """Initialize MailTransportError.

        Args:
            message: Human-readable error message.
            host: Host the delivery was attempted against.
        """
        super().__init__(message)
        self.host = host


class ConfigError(AspMailerError):
    """Base exception for configuration file errors."""


class ConfigFileNotFoundError(ConfigError, FileNotFoundError):
    """An explicitly requested configuration file does not exist."""


class ConfigFormatError(ConfigError, ValueError):
    """A configuration file could not be parsed or has unexpected content."""


class ConfigNotLoadedError(ConfigError):
    """``get_config()`` was called before ``load_config()``."""


__all__ = [
    "AddressFormatError",
    "AspMailerError",
    "AttachmentError",
    "CharsetError",
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigNotLoadedError",
    "EncryptionHelperError",
    "InvalidPriorityError",
    "MailCompositionError",
    "MailConfigurationError",
    "MailTransportError",
    "MailerValidationError",
    "MalformedHeaderError",
]
