"""
Basic record content checks.

Only format-level checks are done here; whether a value makes sense for a
zone is left to the provider.
"""

from __future__ import annotations

import ipaddress
import re
from typing import TYPE_CHECKING

from dns_hub.exceptions import ContentValidationError

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Final


_HOSTNAME_LABEL: Final[re.Pattern[str]] = re.compile(
    r"^(?!-)[A-Za-z0-9_-]{1,63}(?<!-)$",
)
_CAA_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?P<flags>\d{1,3})\s+(?P<tag>[A-Za-z0-9]+)\s+(?P<value>.+)$",
)


def _is_hostname(value: str) -> bool:
    name = value.rstrip(".")
    if not name or len(name) > 253:  # noqa: PLR2004
        return False
    return all(_HOSTNAME_LABEL.match(label) for label in name.split("."))


def _check_ipv4(content: str) -> str | None:
    try:
        ipaddress.IPv4Address(content)
    except ValueError:
        return "not a valid IPv4 address"
    return None


def _check_ipv6(content: str) -> str | None:
    try:
        ipaddress.IPv6Address(content)
    except ValueError:
        return "not a valid IPv6 address"
    return None


def _check_hostname(content: str) -> str | None:
    if content == "@" or _is_hostname(content):
        return None
    return "not a valid hostname"


def _check_srv(content: str) -> str | None:
    # "weight port target" or "priority weight port target"
    parts = content.split()
    if len(parts) not in {3, 4}:
        return "expected '[priority] weight port target'"
    *numbers, target = parts
    if not all(n.isdigit() and int(n) <= 65535 for n in numbers):  # noqa: PLR2004
        return "priority, weight and port must be integers between 0 and 65535"
    if target != "." and not _is_hostname(target):
        return "target is not a valid hostname"
    return None


def _check_caa(content: str) -> str | None:
    match = _CAA_PATTERN.match(content.strip())
    if match is None:
        return "expected 'flags tag value'"
    if int(match.group("flags")) > 255:  # noqa: PLR2004
        return "flags must be between 0 and 255"
    return None


_CHECKS: Final[dict[str, Callable[[str], str | None]]] = {
    "A": _check_ipv4,
    "AAAA": _check_ipv6,
    "CNAME": _check_hostname,
    "NS": _check_hostname,
    "PTR": _check_hostname,
    "MX": _check_hostname,
    "SRV": _check_srv,
    "CAA": _check_caa,
}


def validate_content(record_type: str, content: str | None) -> None:
    """
    Check record content against its type's format.

    Parameters
    ----------
    record_type : str
        Record type (e.g. "A", "MX").
    content : str | None
        Record value.

    Raises
    ------
    ContentValidationError
        If the content is empty or malformed for its type. Types without a
        specific check only need non-empty content.
    """
    value = (content or "").strip()
    if not value:
        raise ContentValidationError(record_type, content or "", "content is required")

    check = _CHECKS.get(record_type.upper())
    if check is None:
        return
    reason = check(value)
    if reason is not None:
        raise ContentValidationError(record_type, value, reason)
