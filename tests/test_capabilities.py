"""Tests for the capability registry."""

from __future__ import annotations

from conftest import ALIYUN_CAPS, DNSPOD_CAPS, make_provider

from dns_hub.capabilities import (
    DEFAULT_CAPABILITIES,
    PROVIDER_ORDER,
    CapabilityRegistry,
    display_rank,
)
from dns_hub.models import ProviderCapabilities, ProviderType


class TestDisplayRank:
    """Tests for display_rank."""

    def test_fixed_order(self):
        assert PROVIDER_ORDER[0] == ProviderType.CLOUDFLARE
        assert display_rank(ProviderType.CLOUDFLARE) < display_rank(ProviderType.ALIYUN)
        assert display_rank(ProviderType.ALIYUN) < display_rank(ProviderType.DNSPOD)
        assert display_rank(ProviderType.POWERDNS) < display_rank(ProviderType.SPACESHIP)

    def test_alias_ranks_as_canonical(self):
        assert display_rank(ProviderType.DNSPOD_TOKEN) == display_rank(ProviderType.DNSPOD)

    def test_unknown_sorts_last(self):
        assert display_rank("route53") == len(PROVIDER_ORDER)


class TestCapabilityRegistry:
    """Tests for CapabilityRegistry."""

    def test_known_provider(self):
        registry = CapabilityRegistry([make_provider(ProviderType.ALIYUN, "Aliyun", ALIYUN_CAPS)])
        assert registry.capabilities_of(ProviderType.ALIYUN) == ALIYUN_CAPS
        assert registry.capabilities_of("aliyun").supports_line is True

    def test_unknown_provider_fails_closed(self):
        registry = CapabilityRegistry([make_provider(ProviderType.ALIYUN, "Aliyun", ALIYUN_CAPS)])
        caps = registry.capabilities_of("route53")
        assert caps == DEFAULT_CAPABILITIES
        assert caps.supports_weight is False
        assert caps.supports_line is False
        assert caps.supports_status is False
        assert caps.supports_remark is False

    def test_provider_without_capabilities(self):
        registry = CapabilityRegistry([make_provider(ProviderType.HUAWEI, "Huawei")])
        assert registry.capabilities_of(ProviderType.HUAWEI) == DEFAULT_CAPABILITIES

    def test_none_provider(self):
        assert CapabilityRegistry().capabilities_of(None) == DEFAULT_CAPABILITIES

    def test_alias_lookup(self):
        registry = CapabilityRegistry([make_provider(ProviderType.DNSPOD, "DNSPod", DNSPOD_CAPS)])
        assert registry.capabilities_of(ProviderType.DNSPOD_TOKEN) == DNSPOD_CAPS
        assert ProviderType.DNSPOD_TOKEN in registry
        assert "dnspod_token" in registry

    def test_canonical_entry_wins_over_alias(self):
        legacy = ProviderCapabilities(record_types=("A",))
        registry = CapabilityRegistry(
            [
                make_provider(ProviderType.DNSPOD, "DNSPod", DNSPOD_CAPS),
                make_provider(ProviderType.DNSPOD_TOKEN, "DNSPod (Token)", legacy),
            ],
        )
        assert registry.capabilities_of(ProviderType.DNSPOD) == DNSPOD_CAPS
        assert registry.display_name(ProviderType.DNSPOD_TOKEN) == "DNSPod"

    def test_alias_only_entry_is_served_under_canonical(self):
        registry = CapabilityRegistry(
            [make_provider(ProviderType.DNSPOD_TOKEN, "DNSPod (Token)", DNSPOD_CAPS)],
        )
        assert registry.get(ProviderType.DNSPOD) is not None
        assert len(registry.sorted_providers()) == 1

    def test_contains(self):
        registry = CapabilityRegistry([make_provider(ProviderType.ALIYUN, "Aliyun")])
        assert "aliyun" in registry
        assert "cloudflare" not in registry
        assert 42 not in registry

    def test_display_name_fallback(self):
        assert CapabilityRegistry().display_name(ProviderType.WEST) == "west"

    def test_sorted_providers(self):
        registry = CapabilityRegistry(
            [
                make_provider(ProviderType.SPACESHIP, "Spaceship"),
                make_provider(ProviderType.ALIYUN, "Aliyun"),
                make_provider(ProviderType.CLOUDFLARE, "Cloudflare"),
            ],
        )
        assert [p.type for p in registry.sorted_providers()] == [
            ProviderType.CLOUDFLARE,
            ProviderType.ALIYUN,
            ProviderType.SPACESHIP,
        ]
