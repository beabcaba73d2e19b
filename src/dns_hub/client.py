"""
Backend API client.

Wraps every backend endpoint the core consumes. Listings are drained
through the pagination aggregator and normalized to canonical form; writes
convert canonical drafts to native payloads and normalize the echoed record.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeVar
from urllib.parse import quote

from pydantic import BaseModel, ValidationError

from dns_hub.exceptions import TransportError
from dns_hub.field_filter import ensure_allowed
from dns_hub.models import (
    DnsCredential,
    DnsLine,
    ListingCapabilities,
    NativeRecord,
    NativeZone,
    ProviderConfig,
    RecordListing,
    ZoneListing,
)
from dns_hub.normalizer import (
    draft_to_payload,
    normalize_record,
    normalize_written_record,
    normalize_zone,
)
from dns_hub.pagination import (
    MAX_PAGES,
    RECORDS_PAGE_SIZE,
    ZONES_PAGE_SIZE,
    Page,
    drain_pages,
)
from dns_hub.validators import validate_content

if TYPE_CHECKING:
    from collections.abc import Sequence
    from typing import Any

    from dns_hub.models import (
        ApiEnvelope,
        DnsRecord,
        ProviderCapabilities,
        ProviderType,
        RecordDraft,
        Zone,
    )
    from dns_hub.transport import BaseTransport


logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _scope(credential_id: int | None) -> dict[str, Any]:
    return {"credentialId": credential_id} if credential_id is not None else {}


def _segment(value: str) -> str:
    return quote(str(value), safe="")


def _validate_items(model: type[M], raw: Any, what: str) -> list[M]:
    """
    Validate a list of wire objects.

    Raises
    ------
    TransportError
        If the payload is not a list or an item is malformed.
    """
    if raw is None:
        return []
    if not isinstance(raw, list):
        msg = f"Malformed {what} list from backend"
        raise TransportError(msg, details=raw)
    try:
        return [model.model_validate(item) for item in raw]
    except ValidationError as e:
        msg = f"Malformed {what} from backend: {e.error_count()} validation error(s)"
        raise TransportError(msg, details=e.errors()) from e


def _total(data: dict[str, Any]) -> int | None:
    total = data.get("total")
    if isinstance(total, int) and not isinstance(total, bool):
        return total
    return None


class DnsApiClient:
    """
    Client for the multi-provider DNS backend.

    Parameters
    ----------
    transport : BaseTransport
        The request primitive.
    records_page_size : int, optional
        Page size used when draining record listings.
    zones_page_size : int, optional
        Page size used when draining zone listings.
    max_pages : int, optional
        Page ceiling for both listings.
    """

    def __init__(
        self,
        transport: BaseTransport,
        *,
        records_page_size: int = RECORDS_PAGE_SIZE,
        zones_page_size: int = ZONES_PAGE_SIZE,
        max_pages: int = MAX_PAGES,
    ) -> None:
        self.transport = transport
        self.records_page_size = records_page_size
        self.zones_page_size = zones_page_size
        self.max_pages = max_pages

    # ========== Providers & credentials ==========

    async def list_providers(self) -> list[ProviderConfig]:
        """List the providers the backend supports."""
        envelope = await self.transport.request("GET", "/dns-credentials/providers")
        return _validate_items(
            ProviderConfig,
            (envelope.data or {}).get("providers"),
            "provider",
        )

    async def list_credentials(self) -> list[DnsCredential]:
        """List the configured credentials."""
        envelope = await self.transport.request("GET", "/dns-credentials")
        return _validate_items(
            DnsCredential,
            (envelope.data or {}).get("credentials"),
            "credential",
        )

    # ========== Zones ==========

    async def list_zones(self, credential_id: int | None = None) -> ZoneListing:
        """
        List every zone of one credential (or of the backend's default scope).

        Parameters
        ----------
        credential_id : int | None, optional
            Credential scope; None lets the backend aggregate.

        Returns
        -------
        ZoneListing
            All zones across all pages, each tagged with ``credential_id``.
        """

        async def fetch_page(page: int, page_size: int) -> Page[NativeZone]:
            envelope = await self.transport.request(
                "GET",
                "/dns-records/zones",
                params={**_scope(credential_id), "page": page, "pageSize": page_size},
            )
            data = envelope.data or {}
            return Page(
                items=_validate_items(NativeZone, data.get("zones"), "zone"),
                total=_total(data),
                envelope=envelope,
            )

        drained = await drain_pages(
            fetch_page,
            self.zones_page_size,
            max_pages=self.max_pages,
        )
        zones = [normalize_zone(z, credential_id) for z in drained.items]
        return ZoneListing(
            envelope=drained.envelope,
            zones=zones,
            total=drained.total,
            truncated=drained.truncated,
        )

    async def get_zone(self, zone_id: str, credential_id: int | None = None) -> Zone | None:
        """Fetch one zone; None when the backend returns no zone body."""
        envelope = await self.transport.request(
            "GET",
            f"/dns-records/zones/{_segment(zone_id)}",
            params=_scope(credential_id),
        )
        raw = (envelope.data or {}).get("zone")
        if not raw:
            return None
        try:
            return normalize_zone(raw, credential_id)
        except ValidationError as e:
            msg = "Malformed zone from backend"
            raise TransportError(msg, details=e.errors()) from e

    async def refresh_zones(self, credential_id: int | None = None) -> ApiEnvelope:
        """Ask the backend to drop its zone cache."""
        return await self.transport.request(
            "POST",
            "/dns-records/refresh",
            params=_scope(credential_id),
            json={},
        )

    # ========== Records ==========

    async def list_records(
        self,
        zone_id: str,
        credential_id: int | None = None,
        capabilities: ProviderCapabilities | None = None,
    ) -> RecordListing:
        """
        List every record of a zone.

        Parameters
        ----------
        zone_id : str
            Provider zone id.
        credential_id : int | None, optional
            Credential scope.
        capabilities : ProviderCapabilities | None, optional
            When given, unsupported optional fields are dropped.

        Returns
        -------
        RecordListing
            All records across all pages plus the first page's capability
            hints and envelope.
        """
        path = f"/dns-records/zones/{_segment(zone_id)}/records"

        async def fetch_page(page: int, page_size: int) -> Page[NativeRecord]:
            envelope = await self.transport.request(
                "GET",
                path,
                params={**_scope(credential_id), "page": page, "pageSize": page_size},
            )
            data = envelope.data or {}
            return Page(
                items=_validate_items(NativeRecord, data.get("records"), "record"),
                total=_total(data),
                envelope=envelope,
            )

        drained = await drain_pages(
            fetch_page,
            self.records_page_size,
            max_pages=self.max_pages,
        )

        hints: ListingCapabilities | None = None
        first_data = drained.envelope.data if drained.envelope is not None else None
        raw_hints = (first_data or {}).get("capabilities")
        if isinstance(raw_hints, dict):
            hints = ListingCapabilities.model_validate(raw_hints)

        return RecordListing(
            envelope=drained.envelope,
            records=[normalize_record(r, capabilities) for r in drained.items],
            capabilities=hints,
            total=drained.total,
            truncated=drained.truncated,
        )

    async def list_lines(self, zone_id: str, credential_id: int | None = None) -> list[DnsLine]:
        """List the resolution lines available for a zone."""
        envelope = await self.transport.request(
            "GET",
            f"/dns-records/zones/{_segment(zone_id)}/lines",
            params=_scope(credential_id),
        )
        return _validate_items(DnsLine, (envelope.data or {}).get("lines"), "line")

    async def get_min_ttl(self, zone_id: str, credential_id: int | None = None) -> int | None:
        """Return the zone's minimum TTL, or None when the backend reports none."""
        envelope = await self.transport.request(
            "GET",
            f"/dns-records/zones/{_segment(zone_id)}/min-ttl",
            params=_scope(credential_id),
        )
        value = (envelope.data or {}).get("minTTL")
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return None

    async def create_record(
        self,
        zone_id: str,
        draft: RecordDraft,
        credential_id: int | None = None,
        *,
        capabilities: ProviderCapabilities | None = None,
        provider: ProviderType | str | None = None,
        lines: Sequence[DnsLine] = (),
    ) -> DnsRecord | None:
        """
        Create a record.

        Parameters
        ----------
        zone_id : str
            Provider zone id.
        draft : RecordDraft
            Canonical draft, already passed through the field filter.
        credential_id : int | None, optional
            Credential scope.
        capabilities : ProviderCapabilities | None, optional
            When given, the payload is checked against it before sending.
        provider : ProviderType | str | None, optional
            Active provider, for the capability check.
        lines : Sequence[DnsLine], optional
            Zone lines, for the capability check.

        Returns
        -------
        DnsRecord | None
            The created record, or None when the backend echoes no record.

        Raises
        ------
        ContentValidationError
            If the content is malformed for the record type.
        CapabilityViolation
            If the payload carries a field the provider does not support.
        TransportError
            If the request fails.
        """
        validate_content(draft.type or "", draft.content)
        payload = draft_to_payload(draft)
        if capabilities is not None:
            ensure_allowed(payload, capabilities, provider, lines)

        logger.info(
            "[create] zone=%s name=%s type=%s value=%s",
            zone_id,
            draft.name,
            draft.type,
            draft.content,
        )
        envelope = await self.transport.request(
            "POST",
            f"/dns-records/zones/{_segment(zone_id)}/records",
            params=_scope(credential_id),
            json=payload,
        )
        return normalize_written_record(envelope.data, capabilities)

    async def update_record(
        self,
        zone_id: str,
        record_id: str,
        draft: RecordDraft,
        credential_id: int | None = None,
        *,
        capabilities: ProviderCapabilities | None = None,
        provider: ProviderType | str | None = None,
        lines: Sequence[DnsLine] = (),
    ) -> DnsRecord | None:
        """
        Update a record. Fields absent from the draft are left unchanged.

        Returns
        -------
        DnsRecord | None
            The updated record, or None when the backend echoes no record.
        """
        if draft.type is not None and draft.content is not None:
            validate_content(draft.type, draft.content)
        payload = draft_to_payload(draft)
        if capabilities is not None:
            ensure_allowed(payload, capabilities, provider, lines)

        logger.info(
            "[update] zone=%s record=%s fields=%s",
            zone_id,
            record_id,
            ",".join(sorted(payload)),
        )
        envelope = await self.transport.request(
            "PUT",
            f"/dns-records/zones/{_segment(zone_id)}/records/{_segment(record_id)}",
            params=_scope(credential_id),
            json=payload,
        )
        return normalize_written_record(envelope.data, capabilities)

    async def set_record_status(
        self,
        zone_id: str,
        record_id: str,
        enabled: bool,  # noqa: FBT001
        credential_id: int | None = None,
    ) -> ApiEnvelope:
        """Enable or disable a record."""
        logger.info("[status] zone=%s record=%s enabled=%s", zone_id, record_id, enabled)
        return await self.transport.request(
            "PUT",
            f"/dns-records/zones/{_segment(zone_id)}/records/{_segment(record_id)}/status",
            params=_scope(credential_id),
            json={"enabled": enabled},
        )

    async def delete_record(
        self,
        zone_id: str,
        record_id: str,
        credential_id: int | None = None,
    ) -> ApiEnvelope:
        """Delete a record."""
        logger.info("[delete] zone=%s record=%s", zone_id, record_id)
        return await self.transport.request(
            "DELETE",
            f"/dns-records/zones/{_segment(zone_id)}/records/{_segment(record_id)}",
            params=_scope(credential_id),
        )
