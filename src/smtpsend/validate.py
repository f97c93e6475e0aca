"""
Input checks applied to command line values before any network I/O.
"""

from .errors import InjectionError, MissingFieldError


__all__ = ("reject_control_chars", "require_non_blank")


CONTROL_CHARS = frozenset("\r\n")


def reject_control_chars(value: str, field: str, /) -> None:
    """
    Fail if ``value`` contains a carriage return or line feed anywhere,
    the first character included.

    Such values would let a caller inject extra headers into the message,
    or extra commands into the SMTP session.

    :raises InjectionError: CR or LF found
    """
    if not CONTROL_CHARS.isdisjoint(value):
        raise InjectionError(field)


def require_non_blank(value: str, field: str, /) -> None:
    """
    :raises MissingFieldError: ``value`` is empty or whitespace only
    """
    if not value.strip():
        raise MissingFieldError(field)
