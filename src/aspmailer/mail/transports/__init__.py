"""Transport implementations for mail delivery.

Available transports:
    - SMTPTransport: Standard SMTP protocol via smtplib (sync)
"""

from aspmailer.mail.transports.smtp import SMTPTransport

__all__ = ["SMTPTransport"]
