"""
Session orchestration.

A ``Session`` ties the API client, the selection state machine and the
preference store together and exposes the user-level actions: choosing a
provider/credential, listing zones, and working inside one zone through a
``ZoneView``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from dns_hub.credentials import normalize_provider
from dns_hub.exceptions import CapabilityViolation
from dns_hub.field_filter import (
    allowed_fields,
    can_toggle_status,
    effective_record_type,
    effective_ttl,
    filter_draft,
    group_lines,
    has_line_categories,
    ttl_options,
)
from dns_hub.models import ZoneListing
from dns_hub.normalizer import line_display_name, visible_records
from dns_hub.preferences import MIN_PAGE_SIZE
from dns_hub.selection import SelectionState, SelectionStateMachine

if TYPE_CHECKING:
    from typing import Self

    from dns_hub.client import DnsApiClient
    from dns_hub.models import (
        CredentialSelection,
        DnsCredential,
        DnsLine,
        DnsRecord,
        ListingCapabilities,
        ProviderCapabilities,
        ProviderType,
        RecordDraft,
        TtlOption,
        Zone,
    )
    from dns_hub.preferences import PreferenceStore


logger = logging.getLogger(__name__)


class Session:
    """
    One user's working session against the backend.

    Parameters
    ----------
    client : DnsApiClient
        Backend API client.
    store : PreferenceStore
        Where selection and page-size preferences are persisted.
    default_page_size : int, optional
        Table page size used until the user picks one.
    """

    def __init__(
        self,
        client: DnsApiClient,
        store: PreferenceStore,
        *,
        default_page_size: int = MIN_PAGE_SIZE,
    ) -> None:
        self.client = client
        self.store = store
        self.default_page_size = default_page_size
        self.selection = SelectionStateMachine(client, store)

    async def __aenter__(self) -> Self:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.client.transport.aclose()

    # ========== Selection ==========

    async def start(self) -> SelectionState:
        """Load the catalogue and restore the persisted selection."""
        await self.selection.load()
        return self.selection.state

    async def reload(self) -> SelectionState:
        """Reload the credential directory (e.g. after credentials changed)."""
        await self.selection.refresh()
        return self.selection.state

    def select_provider(self, provider: ProviderType | str | None) -> None:
        """Select a provider; see ``SelectionStateMachine.select_provider``."""
        self.selection.select_provider(provider)

    def select_credential(self, credential: CredentialSelection | str) -> None:
        """Select a credential; see ``SelectionStateMachine.select_credential``."""
        self.selection.select_credential(credential)

    @property
    def capabilities(self) -> ProviderCapabilities:
        """Capability descriptor of the selected provider."""
        return self.selection.current_capabilities

    @property
    def page_size(self) -> int:
        """Persisted table page size."""
        return self.store.get_page_size(self.default_page_size)

    def set_page_size(self, page_size: int) -> None:
        self.store.set_page_size(page_size)

    # ========== Zones ==========

    def _scoped_credentials(self) -> list[DnsCredential]:
        provider = self.selection.provider
        if provider is None:
            return []
        credentials = self.selection.directory.list_by_provider(provider)
        scope = self.selection.credential_scope()
        if scope is None:
            return credentials
        return [c for c in credentials if c.id == scope]

    async def list_zones(self) -> ZoneListing:
        """
        List the zones of the current selection.

        With a concrete credential this is a single drained listing. In
        "all" scope, every credential of the selected provider is listed
        concurrently; failed credentials are skipped and logged, and every
        zone is tagged with its credential's id and name.

        Returns
        -------
        ZoneListing
            The zones in credential order. Empty when no provider is selected.
        """
        scope = self.selection.credential_scope()
        if scope is not None:
            listing = await self.client.list_zones(scope)
            credential = self.selection.directory.get(scope)
            if credential is not None:
                for zone in listing.zones:
                    zone.credential_name = credential.name
            return listing

        credentials = self._scoped_credentials()
        if not credentials:
            return ZoneListing()

        results = await asyncio.gather(
            *(self.client.list_zones(c.id) for c in credentials),
            return_exceptions=True,
        )

        merged = ZoneListing()
        for credential, result in zip(credentials, results, strict=True):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(
                    "[zones] Skipping zones of credential %s (%s): '%s'",
                    credential.id,
                    credential.name,
                    result,
                )
                continue
            for zone in result.zones:
                zone.credential_id = credential.id
                zone.credential_name = credential.name
            merged.zones.extend(result.zones)
            merged.total += result.total
            merged.truncated = merged.truncated or result.truncated
            if merged.envelope is None:
                merged.envelope = result.envelope
        return merged

    async def refresh_zones(self) -> ZoneListing:
        """
        Drop the backend's zone cache for the current scope and list again.

        In "all" scope the cache of every credential of the selected provider
        is refreshed.
        """
        scope = self.selection.credential_scope()
        if scope is not None:
            await self.client.refresh_zones(scope)
        else:
            await asyncio.gather(
                *(self.client.refresh_zones(c.id) for c in self._scoped_credentials()),
            )
        return await self.list_zones()

    def open_zone(self, zone_id: str, credential_id: int | None = None) -> ZoneView:
        """
        Open a zone for record work.

        Parameters
        ----------
        zone_id : str
            Provider zone id.
        credential_id : int | None, optional
            Owning credential. Defaults to the selected concrete credential;
            required in "all" scope to address the right account.

        Returns
        -------
        ZoneView
            A view bound to this session.
        """
        if credential_id is None:
            credential_id = self.selection.credential_scope()
        return ZoneView(self, zone_id, credential_id)


class ZoneView:
    """
    Records, lines and TTL bounds of one zone.

    Every fetch is keyed by ``(zone_id, credential_id)``; a result that
    arrives after the view was re-pointed at another zone or credential is
    discarded instead of overwriting the newer state.

    Parameters
    ----------
    session : Session
        Owning session.
    zone_id : str
        Provider zone id.
    credential_id : int | None
        Owning credential, or None for the backend's default scope.
    """

    def __init__(self, session: Session, zone_id: str, credential_id: int | None) -> None:
        self.session = session
        self.zone_id = zone_id
        self.credential_id = credential_id

        self.records: list[DnsRecord] = []
        self.hints: ListingCapabilities | None = None
        self.lines: list[DnsLine] = []
        self.min_ttl: int | None = None
        self.total = 0
        self.truncated = False

    @property
    def key(self) -> tuple[str, int | None]:
        return (self.zone_id, self.credential_id)

    @property
    def provider(self) -> ProviderType | str | None:
        """
        Provider that owns the zone.

        Taken from the owning credential, so a zone opened under another
        provider than the selected one is still gated by its own rules.
        Without a known credential the selected provider is used.
        """
        if self.credential_id is not None:
            credential = self.session.selection.directory.get(self.credential_id)
            if credential is not None:
                return normalize_provider(credential.provider)
        return self.session.selection.provider

    @property
    def capabilities(self) -> ProviderCapabilities:
        return self.session.selection.registry.capabilities_of(self.provider)

    def point_to(self, zone_id: str, credential_id: int | None) -> None:
        """Re-point the view; in-flight results for the old key are dropped."""
        if (zone_id, credential_id) == self.key:
            return
        self.zone_id = zone_id
        self.credential_id = credential_id
        self.records = []
        self.hints = None
        self.lines = []
        self.min_ttl = None
        self.total = 0
        self.truncated = False

    def visible_records(self) -> list[DnsRecord]:
        """Records to display (apex NS records hidden)."""
        return visible_records(self.records)

    def page(self, number: int) -> list[DnsRecord]:
        """
        One table page of the visible records.

        Parameters
        ----------
        number : int
            1-based page number; pages past the end are empty.

        Returns
        -------
        list[DnsRecord]
            At most ``session.page_size`` records.
        """
        size = self.session.page_size
        start = max(number - 1, 0) * size
        return self.visible_records()[start : start + size]

    # ========== Fetching ==========

    async def fetch_records(self) -> bool:
        """
        Fetch the full record listing.

        Returns
        -------
        bool
            False when the result was discarded as stale.
        """
        key = self.key
        listing = await self.session.client.list_records(
            self.zone_id,
            self.credential_id,
            self.capabilities,
        )
        if key != self.key:
            logger.debug("Discarding stale record listing for %s.", key)
            return False
        self.records = listing.records
        self.hints = listing.capabilities
        self.total = listing.total
        self.truncated = listing.truncated
        return True

    async def fetch_lines(self) -> bool:
        """Fetch line options; a no-op returning True without line support."""
        if not self.capabilities.supports_line:
            self.lines = []
            return True
        key = self.key
        lines = await self.session.client.list_lines(self.zone_id, self.credential_id)
        if key != self.key:
            logger.debug("Discarding stale lines for %s.", key)
            return False
        self.lines = lines
        return True

    async def fetch_min_ttl(self) -> bool:
        """Fetch the zone's minimum TTL."""
        key = self.key
        min_ttl = await self.session.client.get_min_ttl(self.zone_id, self.credential_id)
        if key != self.key:
            logger.debug("Discarding stale min TTL for %s.", key)
            return False
        self.min_ttl = min_ttl
        return True

    async def refresh(self) -> None:
        """
        Refetch records, lines and the minimum TTL concurrently.

        Completes once every request has settled. The first failure is
        re-raised after the others finished.

        Records without a line name get one from the zone's lines.
        """
        results = await asyncio.gather(
            self.fetch_records(),
            self.fetch_lines(),
            self.fetch_min_ttl(),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        if self.lines:
            for record in self.records:
                if record.line and not record.line_name:
                    record.line_name = line_display_name(record.line, self.lines)

    async def fetch_zone(self) -> Zone | None:
        """Fetch the zone itself (name, status, record count)."""
        return await self.session.client.get_zone(self.zone_id, self.credential_id)

    # ========== Choices ==========

    def line_groups(self) -> dict[str, list[DnsLine]] | None:
        """Lines grouped by category, or None when no line has a category."""
        if not has_line_categories(self.lines):
            return None
        return group_lines(self.lines)

    def ttl_options(self) -> list[TtlOption]:
        """Legal TTL choices for this zone."""
        return ttl_options(self.provider, self.min_ttl)

    def effective_ttl(self, current: int | None) -> int:
        """``current`` if legal for this zone, else the first legal TTL."""
        return effective_ttl(current, self.ttl_options())

    def effective_record_type(self, current: str | None) -> str:
        """``current`` if the provider supports it, else its first type."""
        return effective_record_type(self.capabilities, current)

    def prepare(self, draft: RecordDraft) -> RecordDraft:
        """Strip the fields the provider does not accept."""
        return filter_draft(draft, self.capabilities, self.provider, self.lines)

    # ========== Mutations ==========

    async def create_record(self, draft: RecordDraft) -> DnsRecord | None:
        """
        Create a record, then refetch the listing.

        Parameters
        ----------
        draft : RecordDraft
            The record as entered; unsupported fields are stripped first.
            Where the proxy flag applies and is unset, the record is created
            unproxied.

        Returns
        -------
        DnsRecord | None
            The created record when echoed by the backend.
        """
        if draft.proxied is None and "proxied" in allowed_fields(self.capabilities, self.provider, draft.type):
            draft = draft.model_copy(update={"proxied": False})
        record = await self.session.client.create_record(
            self.zone_id,
            self.prepare(draft),
            self.credential_id,
            capabilities=self.capabilities,
            provider=self.provider,
            lines=self.lines,
        )
        await self.fetch_records()
        return record

    async def update_record(self, record_id: str, draft: RecordDraft) -> DnsRecord | None:
        """
        Update a record, then refetch the listing.

        Unset fields are left unchanged on the backend. An unset type is
        taken from the loaded record so that a type-gated priority survives
        filtering.
        """
        current = next((r for r in self.records if r.id == record_id), None)
        if current is not None and draft.type is None:
            draft = draft.model_copy(update={"type": current.type})
        record = await self.session.client.update_record(
            self.zone_id,
            record_id,
            self.prepare(draft),
            self.credential_id,
            capabilities=self.capabilities,
            provider=self.provider,
            lines=self.lines,
        )
        await self.fetch_records()
        return record

    async def delete_record(self, record_id: str) -> None:
        """Delete a record, then refetch the listing."""
        await self.session.client.delete_record(self.zone_id, record_id, self.credential_id)
        await self.fetch_records()

    async def set_record_status(self, record_id: str, enabled: bool) -> None:  # noqa: FBT001
        """
        Enable or disable a record, then refetch the listing.

        Raises
        ------
        CapabilityViolation
            If the provider has no enable/disable concept.
        """
        if not can_toggle_status(self.capabilities):
            provider = str(self.provider) if self.provider else None
            raise CapabilityViolation(provider, ("enabled",))
        await self.session.client.set_record_status(
            self.zone_id,
            record_id,
            enabled,
            self.credential_id,
        )
        await self.fetch_records()
