"""
Provider/credential selection state machine.

Owns the currently selected provider and credential, keeps them consistent
with the live credential directory, and persists them to a preference store
so a new session resumes where the last one stopped.
"""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum
from typing import TYPE_CHECKING

from dns_hub.capabilities import CapabilityRegistry, display_rank
from dns_hub.credentials import CredentialDirectory, normalize_provider
from dns_hub.exceptions import DnsHubError, StateInconsistency
from dns_hub.models import ALL_CREDENTIALS
from dns_hub.preferences import KEY_CREDENTIAL, KEY_PROVIDER

if TYPE_CHECKING:
    from dns_hub.client import DnsApiClient
    from dns_hub.models import (
        CredentialSelection,
        ProviderCapabilities,
        ProviderConfig,
        ProviderType,
    )
    from dns_hub.preferences import PreferenceStore


logger = logging.getLogger(__name__)


class SelectionState(StrEnum):
    """Lifecycle state of the selection."""

    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


def parse_credential(value: CredentialSelection | str | None) -> CredentialSelection | None:
    """
    Coerce a credential selection from user or storage input.

    Parameters
    ----------
    value : CredentialSelection | str | None
        ``"all"``, an integer id, or a numeric string.

    Returns
    -------
    CredentialSelection | None
        The parsed selection, or None when ``value`` is empty or malformed.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = value.strip()
    if text == ALL_CREDENTIALS:
        return ALL_CREDENTIALS
    try:
        return int(text)
    except ValueError:
        return None


class SelectionStateMachine:
    """
    Provider and credential selection bound to a preference store.

    Parameters
    ----------
    client : DnsApiClient
        Used to load the provider catalogue and the credential directory.
    store : PreferenceStore
        Where the selection is persisted.
    """

    def __init__(self, client: DnsApiClient, store: PreferenceStore) -> None:
        self.client = client
        self.store = store

        self.state = SelectionState.UNINITIALIZED
        self.error: str | None = None
        self.registry = CapabilityRegistry()
        self.directory = CredentialDirectory()

        self._provider: ProviderType | str | None = None
        self._credential: CredentialSelection | None = None

    # ========== Properties ==========

    @property
    def provider(self) -> ProviderType | str | None:
        """Selected logical provider."""
        return self._provider

    @property
    def credential(self) -> CredentialSelection | None:
        """Selected credential: an id, ``"all"``, or None."""
        return self._credential

    @property
    def current_capabilities(self) -> ProviderCapabilities:
        """Capability descriptor of the selected provider."""
        return self.registry.capabilities_of(self._provider)

    @property
    def current_provider_config(self) -> ProviderConfig | None:
        """Catalogue entry of the selected provider."""
        return self.registry.get(self._provider)

    def credential_scope(self) -> int | None:
        """Return the concrete credential id, or None for "all" or no selection."""
        if isinstance(self._credential, int):
            return self._credential
        return None

    # ========== Loading ==========

    async def load(self) -> None:
        """
        Load providers and credentials, then compute the initial selection.

        On failure the machine enters ERROR with the message and keeps the
        previous directory. The error is not re-raised.
        """
        self.state = SelectionState.LOADING
        self.error = None
        try:
            providers, credentials = await asyncio.gather(
                self.client.list_providers(),
                self.client.list_credentials(),
            )
        except DnsHubError as e:
            self.state = SelectionState.ERROR
            self.error = str(e)
            logger.error("[selection] Failed to load providers and credentials: '%s'", e)  # noqa: TRY400
            return

        self.registry = CapabilityRegistry(providers)
        self.directory = CredentialDirectory(credentials)
        logger.info(
            "Loaded %d providers and %d credentials.",
            len(providers),
            len(self.directory),
        )
        self._restore()
        self.state = SelectionState.READY

    async def refresh(self) -> None:
        """Reload the directory and re-validate the current selection."""
        await self.load()

    def _restore(self) -> None:
        if len(self.directory) == 0:
            self._provider = None
            self._credential = None
            return

        stored_provider = self.store.get(KEY_PROVIDER)
        stored_credential = self.store.get(KEY_CREDENTIAL)

        provider: ProviderType | str | None = None
        if stored_provider and self.directory.count_by_provider(stored_provider) > 0:
            provider = normalize_provider(stored_provider)
        else:
            if stored_provider:
                self._note_inconsistency(f"stored provider {stored_provider!r} has no credentials")
            provider = self._first_provider_with_credentials()

        if provider is None:
            self._provider = None
            self._credential = None
            return

        credential = parse_credential(stored_credential)
        keep_all = credential == ALL_CREDENTIALS and self.directory.count_by_provider(provider) != 1
        if keep_all or (
            isinstance(credential, int) and self.directory.belongs_to(credential, provider)
        ):
            self._set(provider, credential)
            return

        if stored_credential is not None:
            self._note_inconsistency(
                f"stored credential {stored_credential!r} does not belong to {provider}",
            )
        self._set(provider, self._default_credential(provider))

    def _first_provider_with_credentials(self) -> ProviderType | str | None:
        candidates = self.directory.providers_with_credentials()
        if not candidates:
            return None
        return min(candidates, key=display_rank)

    def _default_credential(self, provider: ProviderType | str) -> CredentialSelection:
        credentials = self.directory.list_by_provider(provider)
        if len(credentials) == 1:
            return credentials[0].id
        return ALL_CREDENTIALS

    @staticmethod
    def _note_inconsistency(message: str) -> None:
        logger.debug("Corrected persisted selection: %s", StateInconsistency(message))

    # ========== Transitions ==========

    def select_provider(self, provider: ProviderType | str | None) -> None:
        """
        Select a provider.

        The credential is recomputed from the provider's credentials: the sole
        id when there is exactly one, ``"all"`` otherwise. Selecting None
        clears both the selection and its persisted keys.

        Parameters
        ----------
        provider : ProviderType | str | None
            Provider identifier (either alias is accepted).
        """
        if provider is None:
            self._provider = None
            self._credential = None
            self.store.remove(KEY_PROVIDER)
            self.store.remove(KEY_CREDENTIAL)
            logger.info("Cleared provider selection.")
            return

        normalized = normalize_provider(provider)
        self._set(normalized, self._default_credential(normalized))
        logger.info("Selected provider %s (credential %s).", normalized, self._credential)

    def select_credential(self, credential: CredentialSelection | str) -> None:
        """
        Select a credential of the current provider.

        Parameters
        ----------
        credential : CredentialSelection | str
            ``"all"``, an integer id, or a numeric string.

        Raises
        ------
        ValueError
            If ``credential`` cannot be parsed or is an id that does not
            belong to the selected provider.
        """
        parsed = parse_credential(credential)
        if parsed is None:
            msg = f"Invalid credential selection: {credential!r}"
            raise ValueError(msg)
        if isinstance(parsed, int) and (
            self._provider is None or not self.directory.belongs_to(parsed, self._provider)
        ):
            msg = f"Credential {parsed} does not belong to provider {self._provider}"
            raise ValueError(msg)
        self._set(self._provider, parsed)
        logger.info("Selected credential %s.", parsed)

    def _set(
        self,
        provider: ProviderType | str | None,
        credential: CredentialSelection | None,
    ) -> None:
        self._provider = provider
        self._credential = credential
        if provider is not None:
            self.store.set(KEY_PROVIDER, str(provider))
        if credential is not None:
            self.store.set(KEY_CREDENTIAL, str(credential))
