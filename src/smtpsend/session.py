"""
SMTP session wrapper.

Drives a single :class:`aiosmtplib.SMTP` client through one mail transaction,
refusing calls made out of order.
"""

import enum
import logging
from types import TracebackType
from typing import Optional

from aiosmtplib import SMTP, SMTPException, SMTPHeloError, SMTPResponse

from .auth import is_loopback_host
from .errors import (
    AuthError,
    ConnectError,
    ProtocolError,
    SessionStateError,
    TLSError,
)


__all__ = ("DEFAULT_TIMEOUT", "MailSession", "SessionState")

DEFAULT_TIMEOUT = 60

logger = logging.getLogger(__name__)


@enum.unique
class SessionState(enum.Enum):
    UNCONNECTED = "unconnected"
    CONNECTED = "connected"
    TLS_NEGOTIATED = "tls negotiated"
    AUTHENTICATED = "authenticated"
    SENDER_SET = "sender set"
    RECIPIENTS_SET = "recipients set"
    DATA_WRITTEN = "data written"
    CLOSED = "closed"


_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.UNCONNECTED: frozenset((SessionState.CONNECTED,)),
    SessionState.CONNECTED: frozenset(
        (
            SessionState.TLS_NEGOTIATED,
            SessionState.AUTHENTICATED,
            SessionState.SENDER_SET,
        )
    ),
    SessionState.TLS_NEGOTIATED: frozenset(
        (SessionState.AUTHENTICATED, SessionState.SENDER_SET)
    ),
    SessionState.AUTHENTICATED: frozenset((SessionState.SENDER_SET,)),
    SessionState.SENDER_SET: frozenset((SessionState.RECIPIENTS_SET,)),
    SessionState.RECIPIENTS_SET: frozenset(
        (SessionState.RECIPIENTS_SET, SessionState.DATA_WRITTEN)
    ),
    SessionState.DATA_WRITTEN: frozenset(),
    SessionState.CLOSED: frozenset(),
}


class MailSession:
    """
    One connection, one message.

    Basic usage:

        >>> async with MailSession("127.0.0.1", 1025) as session:
        ...     await session.mail_from("root@localhost")
        ...     await session.rcpt_to("somebody@localhost")
        ...     await session.data(b"Subject: Hi\\r\\n\\r\\nHello")

    Entering the context connects; leaving it always releases the connection,
    with QUIT where the connection is still usable.
    """

    def __init__(
        self,
        hostname: str,
        port: int,
        *,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        client: Optional[SMTP] = None,
    ) -> None:
        self.hostname = hostname
        self.port = port
        if client is None:
            client = SMTP(
                hostname=hostname, port=port, timeout=timeout, start_tls=False
            )
        self.client = client
        self.state = SessionState.UNCONNECTED
        self.tls_negotiated = False

    async def __aenter__(self) -> "MailSession":
        await self.connect()

        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        if self.state is SessionState.CLOSED:
            return

        if not self.client.is_connected or _is_connection_failure(exc):
            self.close()
            return

        try:
            await self.quit()
        except ProtocolError as quit_exc:
            logger.warning("%s", quit_exc)

    def _advance(self, target: SessionState, /) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise SessionStateError(
                f"Cannot move session from {self.state.value} to {target.value}"
            )

    def _require_connection(self) -> None:
        if self.state in (SessionState.UNCONNECTED, SessionState.CLOSED):
            raise SessionStateError(f"Session is {self.state.value}")

    async def _ehlo_or_helo(self) -> None:
        try:
            await self.client.ehlo()
        except SMTPHeloError:
            await self.client.helo()

    async def connect(self) -> SMTPResponse:
        """
        Connect and greet the server, so that its extensions are known.

        :raises ConnectError: connection refused, timed out, or greeting rejected
        """
        self._advance(SessionState.CONNECTED)
        logger.debug("Connecting to %s:%s", self.hostname, self.port)

        try:
            response = await self.client.connect()
            await self._ehlo_or_helo()
        except SMTPException as exc:
            self.close()
            raise ConnectError(
                f"error connecting to {self.hostname}:{self.port}", cause=exc
            ) from exc

        self.state = SessionState.CONNECTED

        return response

    def supports_extension(self, extension: str, /) -> bool:
        """
        Tests if the server advertised the ESMTP service extension given.
        """
        self._require_connection()

        return self.client.supports_extension(extension)

    async def starttls(self) -> SMTPResponse:
        """
        Upgrade the connection, then greet the server again; extensions
        advertised before the upgrade are discarded.

        :raises TLSError: upgrade refused or handshake failed
        """
        self._advance(SessionState.TLS_NEGOTIATED)
        logger.debug("Starting TLS with %s", self.hostname)

        try:
            response = await self.client.starttls()
            await self._ehlo_or_helo()
        except (SMTPException, OSError) as exc:
            raise TLSError("error starting TLS", cause=exc) from exc

        self.tls_negotiated = True
        self.state = SessionState.TLS_NEGOTIATED

        return response

    async def authenticate(
        self, mechanism: str, username: str, password: str, host: str
    ) -> SMTPResponse:
        """
        Authenticate with the mechanism given. Only PLAIN is supported.

        Credentials are only sent over TLS, or to a loopback host, and only
        to the host we are connected to.

        :raises AuthError: unsupported mechanism, unsafe connection, or the
            server refused the credentials
        """
        self._advance(SessionState.AUTHENTICATED)

        if mechanism.upper() != "PLAIN":
            raise AuthError(f"unsupported authentication mechanism {mechanism}")
        if host != self.hostname:
            raise AuthError(f"wrong host name {host!r}, connected to {self.hostname!r}")
        if not self.tls_negotiated and not is_loopback_host(host):
            raise AuthError("refusing to send credentials over unencrypted connection")

        logger.debug("Authenticating %r with %s", username, mechanism)
        try:
            response = await self.client.auth_plain(username, password)
        except SMTPException as exc:
            raise AuthError(f"error authenticating '{username}'", cause=exc) from exc

        self.state = SessionState.AUTHENTICATED

        return response

    async def mail_from(self, sender: str, /) -> SMTPResponse:
        """
        :raises ProtocolError: sender refused, or not encodable as ASCII
        """
        self._advance(SessionState.SENDER_SET)
        logger.debug("MAIL FROM %s", sender)

        try:
            response = await self.client.mail(sender)
        except (SMTPException, UnicodeEncodeError) as exc:
            raise ProtocolError("MAIL", "error specifying mail from", cause=exc) from exc

        self.state = SessionState.SENDER_SET

        return response

    async def rcpt_to(self, recipient: str, /) -> SMTPResponse:
        """
        Called once per recipient, blind copies included.

        :raises ProtocolError: recipient refused, or not encodable as ASCII
        """
        self._advance(SessionState.RECIPIENTS_SET)
        logger.debug("RCPT TO %s", recipient)

        try:
            response = await self.client.rcpt(recipient)
        except (SMTPException, UnicodeEncodeError) as exc:
            raise ProtocolError(
                "RCPT", f"error specifying recipient {recipient}", cause=exc
            ) from exc

        self.state = SessionState.RECIPIENTS_SET

        return response

    async def data(self, message: bytes, /) -> SMTPResponse:
        """
        :raises ProtocolError: message refused, or connection lost
        """
        self._advance(SessionState.DATA_WRITTEN)
        logger.debug("DATA (%d bytes)", len(message))

        try:
            response = await self.client.data(message)
        except SMTPException as exc:
            raise ProtocolError("DATA", "error outputting data", cause=exc) from exc

        self.state = SessionState.DATA_WRITTEN

        return response

    async def quit(self) -> SMTPResponse:
        """
        Send QUIT and close the connection. The session is closed afterwards
        whether or not the server answered.

        :raises ProtocolError: QUIT failed
        """
        self._require_connection()

        try:
            response = await self.client.quit()
        except SMTPException as exc:
            self.close()
            raise ProtocolError("QUIT", "error during quit", cause=exc) from exc

        self.state = SessionState.CLOSED

        return response

    def close(self) -> None:
        """
        Drop the connection without QUIT.
        """
        self.client.close()
        self.state = SessionState.CLOSED


def _is_connection_failure(exc: Optional[BaseException]) -> bool:
    if exc is None:
        return False

    cause = getattr(exc, "cause", None)
    return isinstance(exc, (ConnectionError, TimeoutError)) or isinstance(
        cause, (ConnectionError, TimeoutError)
    )
