"""
smtpsend
========

Send a single email message over SMTP from the command line, with STARTTLS
and PLAIN authentication where the server offers them.

Built on aiosmtplib.
"""

from .api import send
from .auth import Credentials, resolve_credentials
from .config import Config, ServerAddress, load_config
from .email import Address, compose_message, parse_address_list
from .errors import (
    AddressParseError,
    AuthError,
    ConnectError,
    InjectionError,
    MissingFieldError,
    ProtocolError,
    SessionError,
    SessionStateError,
    SMTPSendError,
    TLSError,
    UsageError,
)
from .session import MailSession, SessionState


__title__ = "smtpsend"
__version__ = "1.0.0"
__license__ = "MIT"
__all__ = (
    "send",
    "load_config",
    "parse_address_list",
    "compose_message",
    "resolve_credentials",
    "Address",
    "Config",
    "Credentials",
    "MailSession",
    "ServerAddress",
    "SessionState",
    "AddressParseError",
    "AuthError",
    "ConnectError",
    "InjectionError",
    "MissingFieldError",
    "ProtocolError",
    "SessionError",
    "SessionStateError",
    "SMTPSendError",
    "TLSError",
    "UsageError",
)
