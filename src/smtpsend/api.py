"""
Main public API.
"""

import logging
from typing import Optional

from aiosmtplib import SMTP, SMTPResponse

from .config import Config
from .email import compose_message, extract_recipients
from .session import MailSession


__all__ = ("send",)

logger = logging.getLogger(__name__)


async def send(
    config: Config, body: bytes, /, *, client: Optional[SMTP] = None
) -> SMTPResponse:
    """
    Send one message. On await, connects to the SMTP server given in
    ``config``, upgrades to TLS and authenticates where the server offers it
    (and the config allows it), sends the message, then disconnects.

    Blind copy recipients are sent a RCPT command but never appear in the
    message headers.

    :param config: validated configuration
    :param body: raw message body, copied verbatim after the headers
    :keyword client: an unconnected :class:`aiosmtplib.SMTP` to use, instead of
        one built from ``config``

    :returns: the server response to DATA
    :raises SessionError: any connection, TLS, auth or protocol step failed
    """
    recipients = extract_recipients(config.to, config.cc, config.bcc)
    message = compose_message(
        config.sender, config.to, config.cc, config.subject, body
    )

    async with MailSession(
        config.server.hostname,
        config.server.port,
        timeout=config.timeout,
        client=client,
    ) as session:
        if not config.use_tls:
            logger.debug("STARTTLS disabled")
        elif session.supports_extension("starttls"):
            await session.starttls()
        else:
            logger.debug("Server %s does not offer STARTTLS", config.server)

        await _maybe_authenticate(session, config)

        await session.mail_from(config.sender.email)
        for recipient in recipients:
            await session.rcpt_to(recipient)

        return await session.data(message)


async def _maybe_authenticate(session: MailSession, config: Config) -> None:
    credentials = config.credentials

    if not config.use_auth:
        logger.debug("Authentication disabled")
    elif session.supports_extension("auth"):
        if credentials:
            await session.authenticate(
                "PLAIN",
                credentials.username,
                credentials.password,
                config.server.hostname,
            )
        else:
            logger.warning(
                "server supports authentication but no credentials were supplied"
            )
    elif credentials:
        logger.warning(
            "credentials supplied but server does not support authentication"
        )
