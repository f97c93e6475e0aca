"""
Authentication related functions.
"""

import os
from collections.abc import Mapping
from typing import NamedTuple, Optional


__all__ = (
    "AUTH_PASSWORD_ENV",
    "AUTH_USERNAME_ENV",
    "LEGACY_PASSWORD_ENV",
    "LEGACY_USERNAME_ENV",
    "LOOPBACK_HOSTS",
    "Credentials",
    "is_loopback_host",
    "resolve_credentials",
)

AUTH_USERNAME_ENV = "SMTPSEND_USER"
AUTH_PASSWORD_ENV = "SMTPSEND_PASS"
LEGACY_USERNAME_ENV = "GOMAIL_USER"
LEGACY_PASSWORD_ENV = "GOMAIL_PASS"
LOOPBACK_HOSTS = frozenset(("localhost", "127.0.0.1", "::1"))


class Credentials(NamedTuple):
    username: str
    password: str

    def __bool__(self) -> bool:
        return bool(self.username or self.password)

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***')"


def resolve_credentials(
    username: str,
    password: str,
    /,
    environ: Optional[Mapping[str, str]] = None,
) -> Credentials:
    """
    Resolve the username and password used for SMTP AUTH.

    An explicit, non-empty value always wins. A blank one falls back to the
    ``SMTPSEND_USER`` / ``SMTPSEND_PASS`` environment variables, then to
    the older ``GOMAIL_USER`` / ``GOMAIL_PASS`` names, all of which may be
    unset. Each field is resolved independently.
    """
    if environ is None:
        environ = os.environ

    resolved_username = (
        username
        or environ.get(AUTH_USERNAME_ENV)
        or environ.get(LEGACY_USERNAME_ENV, "")
    )
    resolved_password = (
        password
        or environ.get(AUTH_PASSWORD_ENV)
        or environ.get(LEGACY_PASSWORD_ENV, "")
    )

    return Credentials(resolved_username, resolved_password)


def is_loopback_host(host: str, /) -> bool:
    return host.lower() in LOOPBACK_HOSTS
