"""aspmailer - ASPMail-compatible mail component for Python.

Examples:
    >>> from aspmailer import Mailer
    >>> mailer = Mailer()
    >>> mailer.FromAddress = "app@example.com"
    >>> mailer.RemoteHost = "smtp.example.com"
    >>> mailer.AddRecipient("Ops", "ops@example.com")
    True
    >>> mailer.SendMail()  # doctest: +SKIP
    True
"""

from aspmailer.config import clear_config, get_config, load_config
from aspmailer.exceptions import (
    AddressFormatError,
    AspMailerError,
    AttachmentError,
    InvalidPriorityError,
    MailCompositionError,
    MailConfigurationError,
    MailTransportError,
    MalformedHeaderError,
)
from aspmailer.logging import TRACE_LEVEL, get_logger, init_logging
from aspmailer.mailer import Mailer
from aspmailer.meta import __version__

__all__ = [
    "TRACE_LEVEL",
    "AddressFormatError",
    "AspMailerError",
    "AttachmentError",
    "InvalidPriorityError",
    "MailCompositionError",
    "MailConfigurationError",
    "MailTransportError",
    "Mailer",
    "MalformedHeaderError",
    "__version__",
    "clear_config",
    "get_config",
    "get_logger",
    "init_logging",
    "load_config",
]
