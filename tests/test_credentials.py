"""Tests for the credential directory."""

from __future__ import annotations

import pytest
from conftest import make_credential

from dns_hub.credentials import CredentialDirectory, normalize_provider
from dns_hub.models import ProviderType


class TestNormalizeProvider:
    """Tests for normalize_provider."""

    def test_alias_folded(self):
        assert normalize_provider(ProviderType.DNSPOD_TOKEN) == ProviderType.DNSPOD
        assert normalize_provider("dnspod_token") == ProviderType.DNSPOD

    def test_canonical_unchanged(self):
        assert normalize_provider("cloudflare") == ProviderType.CLOUDFLARE

    def test_unknown_returned_as_is(self):
        assert normalize_provider("route53") == "route53"


class TestCredentialDirectory:
    """Tests for CredentialDirectory."""

    @pytest.fixture
    def directory(self) -> CredentialDirectory:
        return CredentialDirectory(
            [
                make_credential(1, ProviderType.DNSPOD_TOKEN, "legacy"),
                make_credential(2, ProviderType.CLOUDFLARE, "cf"),
                make_credential(3, ProviderType.DNSPOD, "modern"),
            ],
        )

    def test_len_and_iter(self, directory: CredentialDirectory):
        assert len(directory) == 3
        assert [c.id for c in directory] == [1, 2, 3]

    def test_get(self, directory: CredentialDirectory):
        credential = directory.get(2)
        assert credential is not None
        assert credential.name == "cf"
        assert directory.get(99) is None

    def test_list_by_provider_merges_aliases(self, directory: CredentialDirectory):
        assert [c.id for c in directory.list_by_provider(ProviderType.DNSPOD)] == [1, 3]
        assert [c.id for c in directory.list_by_provider("dnspod_token")] == [1, 3]

    def test_count_by_provider(self, directory: CredentialDirectory):
        assert directory.count_by_provider("dnspod") == 2
        assert directory.count_by_provider("aliyun") == 0

    def test_belongs_to(self, directory: CredentialDirectory):
        assert directory.belongs_to(1, ProviderType.DNSPOD)
        assert not directory.belongs_to(2, ProviderType.DNSPOD)

    def test_providers_with_credentials(self, directory: CredentialDirectory):
        assert directory.providers_with_credentials() == [
            ProviderType.DNSPOD,
            ProviderType.CLOUDFLARE,
        ]

    def test_empty(self):
        directory = CredentialDirectory()
        assert len(directory) == 0
        assert directory.providers_with_credentials() == []
