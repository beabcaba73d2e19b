"""
Capability-gated field filter.

Decides which optional record fields are legal for the active provider,
strips the rest from drafts before submission, and derives the legal
record-type and TTL choices. Apart from ``ensure_allowed`` nothing here
raises: every function degrades to a safe default instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dns_hub.credentials import normalize_provider
from dns_hub.exceptions import CapabilityViolation
from dns_hub.models import ProviderType, RecordDraft, TtlOption

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from typing import Any, Final

    from dns_hub.models import DnsLine, ProviderCapabilities


# Cloudflare's "automatic" TTL
AUTO_TTL: Final[int] = 1

TTL_OPTIONS: Final[tuple[TtlOption, ...]] = (
    TtlOption(value=AUTO_TTL, label="Auto"),
    TtlOption(value=60, label="1 minute"),
    TtlOption(value=300, label="5 minutes"),
    TtlOption(value=600, label="10 minutes"),
    TtlOption(value=900, label="15 minutes"),
    TtlOption(value=1800, label="30 minutes"),
    TtlOption(value=3600, label="1 hour"),
    TtlOption(value=7200, label="2 hours"),
    TtlOption(value=18000, label="5 hours"),
    TtlOption(value=43200, label="12 hours"),
    TtlOption(value=86400, label="1 day"),
)

BASE_FIELDS: Final[frozenset[str]] = frozenset({"type", "name", "content", "ttl"})
PRIORITY_TYPES: Final[frozenset[str]] = frozenset({"MX", "SRV"})

# Group key for lines without a parent category
OTHER_LINES: Final[str] = "other"


def _is_cloudflare(provider: ProviderType | str | None) -> bool:
    return provider is not None and normalize_provider(provider) == ProviderType.CLOUDFLARE


def allowed_fields(
    capabilities: ProviderCapabilities,
    provider: ProviderType | str | None,
    record_type: str | None,
    lines: Sequence[DnsLine] = (),
) -> frozenset[str]:
    """
    Compute the set of draft fields legal to submit.

    Parameters
    ----------
    capabilities : ProviderCapabilities
        Descriptor of the active provider.
    provider : ProviderType | str | None
        Active provider identifier.
    record_type : str | None
        Currently selected record type.
    lines : Sequence[DnsLine], optional
        Line options of the zone.

    Returns
    -------
    frozenset[str]
        Canonical field names.
    """
    fields = set(BASE_FIELDS)
    if record_type in PRIORITY_TYPES:
        fields.add("priority")
    if _is_cloudflare(provider):
        fields.add("proxied")
    if capabilities.supports_weight:
        fields.add("weight")
    if capabilities.supports_line and len(lines) > 0:
        fields.add("line")
    if capabilities.supports_remark:
        fields.add("remark")
    return frozenset(fields)


def filter_draft(
    draft: RecordDraft,
    capabilities: ProviderCapabilities,
    provider: ProviderType | str | None,
    lines: Sequence[DnsLine] = (),
) -> RecordDraft:
    """
    Strip every field the active provider does not accept.

    Parameters
    ----------
    draft : RecordDraft
        The draft as edited by the user.
    capabilities : ProviderCapabilities
        Descriptor of the active provider.
    provider : ProviderType | str | None
        Active provider identifier.
    lines : Sequence[DnsLine], optional
        Line options of the zone.

    Returns
    -------
    RecordDraft
        A new draft holding only legal fields. Unset optional fields stay
        unset; ``line`` and ``remark`` are also dropped when empty.
    """
    allowed = allowed_fields(capabilities, provider, draft.type, lines)
    kept: dict[str, Any] = {
        "type": draft.type,
        "name": draft.name,
        "content": draft.content,
        "ttl": draft.ttl,
    }
    if "priority" in allowed and draft.priority is not None:
        kept["priority"] = draft.priority
    if "proxied" in allowed and draft.proxied is not None:
        kept["proxied"] = draft.proxied
    if "weight" in allowed and draft.weight is not None:
        kept["weight"] = draft.weight
    if "line" in allowed and draft.line:
        kept["line"] = draft.line
    if "remark" in allowed and draft.remark:
        kept["remark"] = draft.remark
    return RecordDraft(**kept)


def ensure_allowed(
    payload: Mapping[str, Any],
    capabilities: ProviderCapabilities,
    provider: ProviderType | str | None,
    lines: Sequence[DnsLine] = (),
) -> None:
    """
    Guard an outbound payload against unsupported fields.

    Parameters
    ----------
    payload : Mapping[str, Any]
        Native payload about to be sent (``value`` stands for ``content``).
    capabilities : ProviderCapabilities
        Descriptor of the active provider.
    provider : ProviderType | str | None
        Active provider identifier.
    lines : Sequence[DnsLine], optional
        Line options of the zone. Without them, ``line`` is checked against
        the capability flag only.

    Raises
    ------
    CapabilityViolation
        If the payload carries a gated field.
    """
    allowed = set(allowed_fields(capabilities, provider, payload.get("type"), lines))
    allowed.add("value")
    if capabilities.supports_line and not lines:
        allowed.add("line")
    if payload.get("type") is None:
        # Updates may leave the type unchanged
        allowed.add("priority")
    offending = tuple(sorted(k for k in payload if k not in allowed))
    if offending:
        raise CapabilityViolation(str(provider) if provider else None, offending)


def effective_record_type(
    capabilities: ProviderCapabilities,
    current: str | None,
) -> str:
    """
    Return the record type to use given the provider's record types.

    Parameters
    ----------
    capabilities : ProviderCapabilities
        Descriptor of the active provider.
    current : str | None
        Currently selected type.

    Returns
    -------
    str
        ``current`` when the provider supports it, else its first type.
    """
    if current and current in capabilities.record_types:
        return current
    return capabilities.record_types[0]


def ttl_options(
    provider: ProviderType | str | None,
    min_ttl: int | None = None,
) -> list[TtlOption]:
    """
    Filter the TTL master list for a provider/zone.

    The automatic sentinel is offered only on Cloudflare, where it stays
    offered regardless of ``min_ttl``. A positive ``min_ttl`` removes every
    other option below it. If nothing is left, a single synthetic option
    equal to ``min_ttl`` is returned, or, without a known minimum, the
    master list minus the automatic sentinel for non-Cloudflare providers.

    Parameters
    ----------
    provider : ProviderType | str | None
        Active provider identifier.
    min_ttl : int | None, optional
        Minimum TTL reported by the provider/zone.

    Returns
    -------
    list[TtlOption]
        Legal options, never empty.
    """
    cloudflare = _is_cloudflare(provider)
    has_min = min_ttl is not None and min_ttl > 0

    options: list[TtlOption] = []
    for option in TTL_OPTIONS:
        if option.value == AUTO_TTL:
            if cloudflare:
                options.append(option)
            continue
        if has_min and option.value < min_ttl:  # type: ignore[operator]
            continue
        options.append(option)

    if options:
        return options
    if has_min:
        return [TtlOption(value=min_ttl, label=f"{min_ttl} seconds")]  # type: ignore[arg-type]
    return [o for o in TTL_OPTIONS if cloudflare or o.value != AUTO_TTL]


def effective_ttl(current: int | None, options: Sequence[TtlOption]) -> int:
    """
    Return ``current`` when it is a legal option, else the first legal option.

    Parameters
    ----------
    current : int | None
        Currently selected TTL.
    options : Sequence[TtlOption]
        Legal options (as returned by ``ttl_options``).

    Returns
    -------
    int
        The TTL to use.
    """
    if current is not None and any(o.value == current for o in options):
        return current
    if options:
        return options[0].value
    return TTL_OPTIONS[0].value


def group_lines(lines: Iterable[DnsLine]) -> dict[str, list[DnsLine]]:
    """
    Group lines by parent category, preserving order.

    Parameters
    ----------
    lines : Iterable[DnsLine]
        Lines of the zone.

    Returns
    -------
    dict[str, list[DnsLine]]
        Parent code -> lines. Lines without a parent land under
        ``OTHER_LINES``.
    """
    groups: dict[str, list[DnsLine]] = {}
    for line in lines:
        groups.setdefault(line.parent_code or OTHER_LINES, []).append(line)
    return groups


def has_line_categories(lines: Iterable[DnsLine]) -> bool:
    """Check whether any line carries a parent category."""
    return any(line.parent_code for line in lines)


def can_toggle_status(capabilities: ProviderCapabilities) -> bool:
    """Check whether records of this provider can be enabled/disabled."""
    return capabilities.supports_status
