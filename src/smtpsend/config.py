"""
Command line flags and the immutable configuration built from them.
"""

import argparse
import dataclasses
from collections.abc import Mapping, Sequence
from typing import NamedTuple, Optional

from aiosmtplib.smtp import SMTP_STARTTLS_PORT

from .auth import AUTH_PASSWORD_ENV, AUTH_USERNAME_ENV, Credentials, resolve_credentials
from .email import Address, parse_address_list
from .errors import UsageError
from .session import DEFAULT_TIMEOUT
from .validate import reject_control_chars, require_non_blank


__all__ = (
    "DEFAULT_SERVER",
    "Config",
    "ServerAddress",
    "build_parser",
    "config_from_args",
    "load_config",
    "parse_bool",
    "parse_server_address",
)

DEFAULT_SERVER = "smtp.gmail.com:587"
TRUE_VALUES = frozenset(("1", "true", "t", "yes", "y", "on"))
FALSE_VALUES = frozenset(("0", "false", "f", "no", "n", "off"))


class ServerAddress(NamedTuple):
    hostname: str
    port: int

    def __str__(self) -> str:
        if ":" in self.hostname:
            return f"[{self.hostname}]:{self.port}"
        return f"{self.hostname}:{self.port}"


@dataclasses.dataclass(frozen=True)
class Config:
    """Everything needed to send one message."""

    sender: Address
    to: tuple[Address, ...]
    cc: tuple[Address, ...]
    bcc: tuple[Address, ...]
    server: ServerAddress
    subject: str = ""
    message: str = ""
    use_tls: bool = True
    use_auth: bool = True
    credentials: Credentials = Credentials("", "")
    timeout: float = DEFAULT_TIMEOUT
    verbose: bool = False


def parse_bool(value: str) -> bool:
    """
    Accept the usual spellings of a boolean flag value.
    """
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False

    raise argparse.ArgumentTypeError(f"invalid boolean value: {value!r}")


def parse_server_address(value: str, /) -> ServerAddress:
    """
    Parse ``host:port``. IPv6 literals must be bracketed, e.g. ``[::1]:25``.
    The port defaults to 587 when omitted.

    :raises UsageError: malformed address or port
    """
    value = value.strip()

    if value.startswith("["):
        hostname, bracket, rest = value[1:].partition("]")
        if not bracket or (rest and not rest.startswith(":")):
            raise UsageError(f"invalid server address {value!r}")
        port_str = rest[1:]
    else:
        hostname, sep, port_str = value.rpartition(":")
        if not sep:
            hostname, port_str = value, ""
        if ":" in hostname:
            raise UsageError(f"IPv6 server address must be bracketed: {value!r}")

    if not hostname:
        raise UsageError(f"missing host in server address {value!r}")

    if not port_str:
        return ServerAddress(hostname, SMTP_STARTTLS_PORT)

    try:
        port = int(port_str)
    except ValueError as exc:
        raise UsageError(f"invalid port in server address {value!r}") from exc

    if not 0 < port < 65536:
        raise UsageError(f"port out of range in server address {value!r}")

    return ServerAddress(hostname, port)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smtpsend",
        usage="%(prog)s -f=<email> [options]",
        description="Send a single email message over SMTP.",
    )
    parser.add_argument("-f", dest="sender", default="", help="from address")
    parser.add_argument(
        "-t", dest="to", default="", help="to address list (comma separated)"
    )
    parser.add_argument(
        "-cc", dest="cc", default="", help="CC address list (comma separated)"
    )
    parser.add_argument(
        "-bcc", dest="bcc", default="", help="BCC address list (comma separated)"
    )
    parser.add_argument(
        "-s",
        dest="server",
        default=DEFAULT_SERVER,
        help="SMTP server host:port (default: %(default)s)",
    )
    parser.add_argument(
        "-m", dest="message", default="", help="message body (uses stdin if blank)"
    )
    parser.add_argument("-u", dest="subject", default="", help="subject")
    parser.add_argument(
        "-l",
        dest="use_tls",
        type=parse_bool,
        nargs="?",
        const=True,
        default=True,
        metavar="BOOL",
        help="use STARTTLS if offered (default: true)",
    )
    parser.add_argument(
        "-a",
        dest="use_auth",
        type=parse_bool,
        nargs="?",
        const=True,
        default=True,
        metavar="BOOL",
        help="use SMTP authentication if offered (default: true)",
    )
    parser.add_argument(
        "-xu",
        dest="username",
        default="",
        help=f"username for SMTP authentication (env var {AUTH_USERNAME_ENV} if blank)",
    )
    parser.add_argument(
        "-xp",
        dest="password",
        default="",
        help=f"password for SMTP authentication (env var {AUTH_PASSWORD_ENV} if blank)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="network timeout in seconds (default: %(default)s)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="log each SMTP step"
    )

    return parser


def config_from_args(
    args: argparse.Namespace, /, environ: Optional[Mapping[str, str]] = None
) -> Config:
    """
    Validate parsed flags and build the configuration.

    :raises UsageError: missing sender or server, not exactly one sender,
        no recipients, bad server address or timeout
    :raises InjectionError: CR or LF in an address or the subject
    :raises AddressParseError: malformed address list
    """
    for field, value in (
        ("from", args.sender),
        ("to", args.to),
        ("cc", args.cc),
        ("bcc", args.bcc),
        ("subject", args.subject),
    ):
        reject_control_chars(value, field)

    require_non_blank(args.sender, "from address")
    require_non_blank(args.server, "server address")

    senders = parse_address_list(args.sender, "from")
    if len(senders) != 1:
        raise UsageError("Only one from address allowed")

    to = parse_address_list(args.to, "to")
    cc = parse_address_list(args.cc, "cc")
    bcc = parse_address_list(args.bcc, "bcc")
    if not (to or cc or bcc):
        raise UsageError("At least one to, cc or bcc address is required")

    if args.timeout <= 0:
        raise UsageError(f"timeout must be positive, got {args.timeout}")

    return Config(
        sender=senders[0],
        to=tuple(to),
        cc=tuple(cc),
        bcc=tuple(bcc),
        server=parse_server_address(args.server),
        subject=args.subject,
        message=args.message,
        use_tls=args.use_tls,
        use_auth=args.use_auth,
        credentials=resolve_credentials(args.username, args.password, environ=environ),
        timeout=args.timeout,
        verbose=args.verbose,
    )


def load_config(
    argv: Optional[Sequence[str]] = None,
    /,
    environ: Optional[Mapping[str, str]] = None,
) -> Config:
    """
    Parse ``argv`` (``sys.argv[1:]`` by default) into a :class:`Config`.
    """
    args = build_parser().parse_args(argv)

    return config_from_args(args, environ=environ)
