"""
Capability registry.

Maps provider identifiers to capability descriptors for the duration of a
session. The provider list is loaded once from the backend; lookups fail
closed to a minimal descriptor so callers degrade gracefully on providers
the backend does not describe.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from dns_hub.credentials import normalize_provider
from dns_hub.models import (
    DEFAULT_RECORD_TYPES,
    PagingMode,
    ProviderCapabilities,
    ProviderType,
    RemarkMode,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from typing import Final

    from dns_hub.models import ProviderConfig


logger = logging.getLogger(__name__)


# Descriptor used for unknown providers and providers without capabilities
DEFAULT_CAPABILITIES: Final[ProviderCapabilities] = ProviderCapabilities(
    supports_weight=False,
    supports_line=False,
    supports_status=False,
    supports_remark=False,
    supports_url_forward=False,
    supports_logs=False,
    remark_mode=RemarkMode.UNSUPPORTED,
    paging=PagingMode.CLIENT,
    requires_domain_id=False,
    record_types=DEFAULT_RECORD_TYPES,
)

# Fixed display order of the logical providers
PROVIDER_ORDER: Final[tuple[ProviderType, ...]] = (
    ProviderType.CLOUDFLARE,
    ProviderType.ALIYUN,
    ProviderType.DNSPOD,
    ProviderType.HUAWEI,
    ProviderType.BAIDU,
    ProviderType.WEST,
    ProviderType.HUOSHAN,
    ProviderType.JDCLOUD,
    ProviderType.DNSLA,
    ProviderType.NAMESILO,
    ProviderType.POWERDNS,
    ProviderType.SPACESHIP,
)


def display_rank(provider: ProviderType | str) -> int:
    """
    Position of a provider in the fixed display order.

    Parameters
    ----------
    provider : ProviderType | str
        Provider identifier (aliases are folded).

    Returns
    -------
    int
        Index in ``PROVIDER_ORDER``; unknown providers sort last.
    """
    normalized = normalize_provider(provider)
    try:
        return PROVIDER_ORDER.index(normalized)  # type: ignore[arg-type]
    except ValueError:
        return len(PROVIDER_ORDER)


class CapabilityRegistry:
    """
    Static-per-session provider catalogue.

    Parameters
    ----------
    providers : Iterable[ProviderConfig]
        Providers as listed by the backend. When two raw identifiers fold
        into one logical provider, the canonical identifier's entry wins.
    """

    def __init__(self, providers: Iterable[ProviderConfig] = ()) -> None:
        self._providers: dict[ProviderType | str, ProviderConfig] = {}
        for config in providers:
            key = normalize_provider(config.type)
            if key in self._providers and config.type != key:
                continue
            self._providers[key] = config

    def __contains__(self, provider: object) -> bool:
        if not isinstance(provider, str):
            return False
        return normalize_provider(provider) in self._providers

    def get(self, provider: ProviderType | str | None) -> ProviderConfig | None:
        """Return the provider entry, or None when unknown."""
        if provider is None:
            return None
        return self._providers.get(normalize_provider(provider))

    def capabilities_of(self, provider: ProviderType | str | None) -> ProviderCapabilities:
        """
        Look up the capability descriptor of a provider.

        Parameters
        ----------
        provider : ProviderType | str | None
            Provider identifier (either alias is accepted).

        Returns
        -------
        ProviderCapabilities
            The provider's descriptor, or ``DEFAULT_CAPABILITIES`` when the
            provider is unknown or publishes no capabilities.
        """
        config = self.get(provider)
        if config is None or config.capabilities is None:
            if provider is not None:
                logger.debug(
                    "No capabilities published for provider %s, using defaults.",
                    provider,
                )
            return DEFAULT_CAPABILITIES
        return config.capabilities

    def display_name(self, provider: ProviderType | str) -> str:
        """Return the provider's display name (its identifier when unknown)."""
        config = self.get(provider)
        return config.name if config is not None else str(normalize_provider(provider))

    def sorted_providers(self) -> list[ProviderConfig]:
        """Return the known providers in fixed display order."""
        return sorted(self._providers.values(), key=lambda c: display_rank(c.type))
