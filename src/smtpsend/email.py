"""
Email address parsing and message composition functions.
"""

import email.errors
import email.headerregistry
import email.utils
from collections.abc import Iterable
from typing import BinaryIO, NamedTuple

from .errors import AddressParseError


__all__ = (
    "CRLF",
    "Address",
    "compose_message",
    "extract_recipients",
    "format_address",
    "parse_address_list",
    "read_body",
)

CRLF = "\r\n"

_header_factory = email.headerregistry.HeaderRegistry()


class Address(NamedTuple):
    """
    A single mailbox, as parsed from an address list.
    """

    display_name: str
    email: str

    def __str__(self) -> str:
        return format_address(self)


def format_address(address: Address, /) -> str:
    """
    Render an address for use in a header line; a bare address when there is
    no display name, RFC 2047 encoding non-ASCII names.
    """
    return email.utils.formataddr((address.display_name, address.email))


def parse_address_list(raw: str, /, field: str = "address") -> list[Address]:
    """
    Parse a comma separated list of RFC 5322 mailboxes, preserving order.

    An empty (or whitespace only) string gives an empty list. Group syntax is
    flattened into its member mailboxes.

    :raises AddressParseError: any entry is malformed, empty, or has a
        non-ASCII address (SMTPUTF8 is not supported)
    """
    stripped = raw.strip()
    if not stripped:
        return []
    # The header parser drops a bare leading or trailing comma silently.
    if stripped.startswith(",") or stripped.endswith(","):
        raise AddressParseError("address-list entry with no content", field)

    try:
        header = _header_factory("To", raw)
    except (email.errors.HeaderParseError, ValueError) as exc:
        raise AddressParseError(str(exc), field) from exc

    if header.defects:
        raise AddressParseError(str(header.defects[0]), field)

    addresses: list[Address] = []
    for group in header.groups:
        for mailbox in group.addresses:
            if not mailbox.username or not mailbox.domain:
                raise AddressParseError(
                    f"missing local part or domain in {mailbox.addr_spec!r}", field
                )
            if not mailbox.addr_spec.isascii():
                raise AddressParseError(
                    f"non-ASCII characters in {mailbox.addr_spec!r}", field
                )
            addresses.append(Address(mailbox.display_name, mailbox.addr_spec))

    return addresses


def extract_recipients(*address_lists: Iterable[Address]) -> list[str]:
    """
    Flatten address lists into raw email addresses, suitable for use in
    low level SMTP commands.
    """
    return [address.email for addresses in address_lists for address in addresses]


def compose_message(
    sender: Address,
    to: Iterable[Address],
    cc: Iterable[Address],
    subject: str,
    body: bytes,
) -> bytes:
    """
    Serialize the header block and body.

    Headers are written in a fixed order: From, one To line per recipient,
    one CC line per copy recipient, then Subject if given. BCC recipients
    are never written.
    """
    header_lines = [f"From: {format_address(sender)}"]
    header_lines.extend(f"To: {format_address(address)}" for address in to)
    header_lines.extend(f"CC: {format_address(address)}" for address in cc)
    if subject:
        header_lines.append(f"Subject: {subject}")

    headers = "".join(line + CRLF for line in header_lines) + CRLF

    return headers.encode("utf-8") + body


def read_body(message: str, stream: BinaryIO, /) -> bytes:
    """
    Return the inline message if one was given, otherwise read ``stream``
    until end of input.
    """
    if message:
        return message.encode("utf-8")

    return stream.read()
