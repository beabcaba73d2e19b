"""
Credential (account) directory.

A read-only view over the credentials configured on the backend, with
lookup and grouping by provider. Legacy provider identifiers are folded
into their canonical counterpart before every comparison so accounts
stored under either identifier are treated as one logical provider.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dns_hub.models import ProviderType

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from typing import Final

    from dns_hub.models import DnsCredential


# Legacy identifier -> canonical identifier
PROVIDER_ALIASES: Final[dict[ProviderType, ProviderType]] = {
    ProviderType.DNSPOD_TOKEN: ProviderType.DNSPOD,
}


def normalize_provider(provider: ProviderType | str) -> ProviderType | str:
    """
    Fold a legacy provider identifier into its canonical counterpart.

    Parameters
    ----------
    provider : ProviderType | str
        Raw provider identifier.

    Returns
    -------
    ProviderType | str
        The canonical identifier. Unknown strings are returned unchanged.
    """
    try:
        member = ProviderType(provider)
    except ValueError:
        return provider
    return PROVIDER_ALIASES.get(member, member)


class CredentialDirectory:
    """
    Snapshot of the configured credentials.

    The directory never mutates; a refresh replaces it with a new instance.
    """

    def __init__(self, credentials: Iterable[DnsCredential] = ()) -> None:
        self._credentials: tuple[DnsCredential, ...] = tuple(credentials)

    def __len__(self) -> int:
        return len(self._credentials)

    def __iter__(self) -> Iterator[DnsCredential]:
        return iter(self._credentials)

    def get(self, credential_id: int) -> DnsCredential | None:
        """Return the credential with the given id, or None."""
        for credential in self._credentials:
            if credential.id == credential_id:
                return credential
        return None

    def list_by_provider(self, provider: ProviderType | str) -> list[DnsCredential]:
        """
        List credentials of one logical provider, in directory order.

        Parameters
        ----------
        provider : ProviderType | str
            Provider identifier (either alias is accepted).

        Returns
        -------
        list[DnsCredential]
            Credentials whose normalized provider equals the normalized
            ``provider``.
        """
        target = normalize_provider(provider)
        return [c for c in self._credentials if normalize_provider(c.provider) == target]

    def count_by_provider(self, provider: ProviderType | str) -> int:
        """Return the number of credentials of one logical provider."""
        return len(self.list_by_provider(provider))

    def belongs_to(self, credential_id: int, provider: ProviderType | str) -> bool:
        """Check whether a credential id belongs to the given provider."""
        return any(c.id == credential_id for c in self.list_by_provider(provider))

    def providers_with_credentials(self) -> list[ProviderType | str]:
        """
        Distinct normalized providers that own at least one credential.

        Returns
        -------
        list[ProviderType | str]
            Providers in order of first appearance.
        """
        seen: list[ProviderType | str] = []
        for credential in self._credentials:
            provider = normalize_provider(credential.provider)
            if provider not in seen:
                seen.append(provider)
        return seen
