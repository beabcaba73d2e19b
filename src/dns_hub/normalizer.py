"""
Record normalizer.

Bidirectional mapping between the backend's native record/zone shapes and
the canonical shapes used above the normalization boundary. The native
``value`` field is called ``content`` canonically; everything else keeps
its name.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from dns_hub.models import DnsRecord, NativeRecord, NativeZone, Zone

if TYPE_CHECKING:
    from collections.abc import Iterable

    from dns_hub.models import (
        CredentialSelection,
        DnsLine,
        ProviderCapabilities,
        RecordDraft,
    )


def derive_enabled(native: NativeRecord) -> bool | None:
    """
    Derive the tri-state enabled flag of a native record.

    Parameters
    ----------
    native : NativeRecord
        The native record.

    Returns
    -------
    bool | None
        ``native.enabled`` when it is a boolean; otherwise True for status
        ``"1"``, False for status ``"0"``; otherwise None.
    """
    if isinstance(native.enabled, bool):
        return native.enabled
    if native.status == "1":
        return True
    if native.status == "0":
        return False
    return None


def normalize_record(
    native: NativeRecord | dict[str, Any],
    capabilities: ProviderCapabilities | None = None,
) -> DnsRecord:
    """
    Convert a native record to canonical form.

    Parameters
    ----------
    native : NativeRecord | dict[str, Any]
        The native record (raw dicts are validated first).
    capabilities : ProviderCapabilities | None, optional
        When given, optional fields the provider does not support are
        dropped.

    Returns
    -------
    DnsRecord
        The canonical record.
    """
    if not isinstance(native, NativeRecord):
        native = NativeRecord.model_validate(native)

    record = DnsRecord(
        id=native.id,
        type=native.type,
        zone_name=native.zone_name,
        name=native.name,
        content=native.value,
        ttl=native.ttl or 0,
        proxied=native.proxied,
        priority=native.priority,
        weight=native.weight,
        line=native.line,
        line_name=native.line_name,
        remark=native.remark,
        enabled=derive_enabled(native),
    )

    if capabilities is not None:
        if not capabilities.supports_weight:
            record.weight = None
        if not capabilities.supports_line:
            record.line = None
            record.line_name = None
        if not capabilities.supports_remark:
            record.remark = None
        if not capabilities.supports_status:
            record.enabled = None

    return record


def denormalize_record(record: DnsRecord) -> NativeRecord:
    """Convert a canonical record back to the native shape."""
    return NativeRecord(
        id=record.id,
        type=record.type,
        zone_name=record.zone_name,
        name=record.name,
        value=record.content,
        ttl=record.ttl,
        proxied=record.proxied,
        priority=record.priority,
        weight=record.weight,
        line=record.line,
        line_name=record.line_name,
        remark=record.remark,
        enabled=record.enabled,
    )


def draft_to_payload(draft: RecordDraft) -> dict[str, Any]:
    """
    Build the outbound create/update payload from a canonical draft.

    Only fields present in the draft are included: None means absent (and on
    update "do not change"), while False and 0 are sent as-is.

    Parameters
    ----------
    draft : RecordDraft
        The canonical draft.

    Returns
    -------
    dict[str, Any]
        Native payload with ``content`` renamed to ``value``.
    """
    payload = draft.model_dump(exclude_none=True)
    if "content" in payload:
        payload["value"] = payload.pop("content")
    return payload


def normalize_written_record(
    data: dict[str, Any] | None,
    capabilities: ProviderCapabilities | None = None,
) -> DnsRecord | None:
    """
    Normalize the record echoed back by a create/update call.

    Parameters
    ----------
    data : dict[str, Any] | None
        The response's ``data`` payload.
    capabilities : ProviderCapabilities | None, optional
        Passed through to ``normalize_record``.

    Returns
    -------
    DnsRecord | None
        The canonical record, or None when the backend returned no record
        body (callers then rely on a listing refresh).
    """
    raw = (data or {}).get("record")
    if not raw:
        return None
    return normalize_record(raw, capabilities)


def normalize_zone(
    native: NativeZone | dict[str, Any],
    credential: CredentialSelection | None = None,
) -> Zone:
    """
    Convert a native zone to canonical form.

    Parameters
    ----------
    native : NativeZone | dict[str, Any]
        The native zone (raw dicts are validated first).
    credential : CredentialSelection | None, optional
        The active credential selection. Its id is attached only when it is
        a concrete integer id, never for "all".

    Returns
    -------
    Zone
        The canonical zone.
    """
    if not isinstance(native, NativeZone):
        native = NativeZone.model_validate(native)

    credential_id = (
        credential
        if isinstance(credential, int) and not isinstance(credential, bool)
        else None
    )
    return Zone(
        id=native.id,
        name=native.name,
        status=native.status,
        record_count=native.record_count,
        updated_at=native.updated_at,
        credential_id=credential_id,
    )


def _normalize_fqdn(value: str | None) -> str:
    return (value or "").strip().rstrip(".").lower()


def is_apex_ns(record: DnsRecord) -> bool:
    """
    Check whether a record is one of the zone's own NS records.

    Parameters
    ----------
    record : DnsRecord
        The record.

    Returns
    -------
    bool
        True for NS records at the zone apex ("", "@" or the zone name).
        NS records of unknown zones are never treated as apex records.
    """
    if record.type != "NS":
        return False
    zone = _normalize_fqdn(record.zone_name)
    if not zone:
        return False
    name = _normalize_fqdn(record.name)
    return not name or name == "@" or name == zone


def visible_records(records: Iterable[DnsRecord]) -> list[DnsRecord]:
    """Filter out apex NS records, which are managed by the provider."""
    return [r for r in records if not is_apex_ns(r)]


def line_display_name(code: str | None, lines: Iterable[DnsLine]) -> str | None:
    """
    Resolve a line code to its display name.

    Parameters
    ----------
    code : str | None
        Line code.
    lines : Iterable[DnsLine]
        Known lines of the zone.

    Returns
    -------
    str | None
        The line's name, the code itself when unknown, or None without code.
    """
    if not code:
        return None
    for line in lines:
        if line.code == code:
            return line.name
    return code
