from typing import Optional


__all__ = (
    "AddressParseError",
    "AuthError",
    "ConnectError",
    "InjectionError",
    "MissingFieldError",
    "ProtocolError",
    "SMTPSendError",
    "SessionError",
    "SessionStateError",
    "TLSError",
    "UsageError",
)


class SMTPSendError(Exception):
    """
    Base class for all smtpsend exceptions.
    """

    def __init__(self, message: str, /) -> None:
        self.message = message
        self.args = (message,)

    def __str__(self) -> str:
        return self.message


class UsageError(SMTPSendError):
    """
    Command line flags are missing or malformed.
    """


class MissingFieldError(UsageError):
    """
    A required field was left blank.
    """

    def __init__(self, field: str, /) -> None:
        self.field = field
        self.message = f"{field} must not be blank"
        self.args = (field,)


class InjectionError(SMTPSendError):
    """
    A header or envelope value contains a CR or LF character.
    """

    def __init__(self, field: str, /) -> None:
        self.field = field
        self.message = f"{field} must not contain CR or LF"
        self.args = (field,)


class AddressParseError(SMTPSendError):
    """
    An address list could not be parsed as RFC 5322 mailboxes.
    """

    def __init__(self, message: str, field: str, /) -> None:
        self.field = field
        self.message = f'{message}: error parsing "{field}" list'
        self.args = (message, field)


class SessionError(SMTPSendError):
    """
    Base class for failures talking to the SMTP server.
    """

    def __init__(self, message: str, /, cause: Optional[BaseException] = None) -> None:
        self.cause = cause
        self.message = f"{cause}: {message}" if cause is not None else message
        self.args = (message,)


class ConnectError(SessionError):
    """
    The connection to the SMTP server could not be established.
    """


class TLSError(SessionError):
    """
    The STARTTLS upgrade failed.
    """


class AuthError(SessionError):
    """
    The server refused our credentials, or they could not be sent safely.
    """


class ProtocolError(SessionError):
    """
    The server refused a MAIL, RCPT or DATA step.
    """

    def __init__(
        self, step: str, message: str, /, cause: Optional[BaseException] = None
    ) -> None:
        super().__init__(message, cause=cause)
        self.step = step
        self.args = (step, message)


class SessionStateError(SMTPSendError):
    """
    A session operation was called out of order.
    """
