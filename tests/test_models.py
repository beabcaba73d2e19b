"""Tests for data models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from dns_hub.models import (
    DEFAULT_RECORD_TYPES,
    ApiEnvelope,
    DnsCredential,
    ListingCapabilities,
    NativeRecord,
    NativeZone,
    PagingMode,
    ProviderCapabilities,
    ProviderConfig,
    ProviderType,
    RecordDraft,
    RemarkMode,
)


class TestProviderType:
    """Tests for ProviderType enum."""

    def test_provider_values(self):
        assert ProviderType.CLOUDFLARE == "cloudflare"
        assert ProviderType.DNSPOD == "dnspod"
        assert ProviderType.DNSPOD_TOKEN == "dnspod_token"

    def test_provider_from_string(self):
        assert ProviderType("aliyun") == ProviderType.ALIYUN
        with pytest.raises(ValueError):
            ProviderType("route53")


class TestProviderCapabilities:
    """Tests for ProviderCapabilities model."""

    def test_defaults(self):
        caps = ProviderCapabilities()
        assert caps.supports_weight is False
        assert caps.remark_mode == RemarkMode.UNSUPPORTED
        assert caps.paging == PagingMode.CLIENT
        assert caps.record_types == DEFAULT_RECORD_TYPES

    def test_from_camel_case(self):
        caps = ProviderCapabilities.model_validate(
            {
                "supportsWeight": True,
                "supportsLine": True,
                "remarkMode": "separate",
                "paging": "server",
                "requiresDomainId": True,
                "recordTypes": ["A", "TXT"],
                "somethingNew": 1,
            },
        )
        assert caps.supports_weight is True
        assert caps.supports_line is True
        assert caps.remark_mode == RemarkMode.SEPARATE
        assert caps.requires_domain_id is True
        assert caps.record_types == ("A", "TXT")

    def test_empty_record_types_rejected(self):
        with pytest.raises(ValidationError):
            ProviderCapabilities(record_types=())

    def test_frozen(self):
        caps = ProviderCapabilities()
        with pytest.raises(ValidationError):
            caps.supports_weight = True


class TestProviderConfig:
    """Tests for ProviderConfig model."""

    def test_wire_shape(self):
        config = ProviderConfig.model_validate(
            {
                "type": "huawei",
                "name": "Huawei Cloud",
                "authFields": [
                    {"key": "accessKeyId", "label": "AK", "type": "text", "required": True},
                    {"key": "secretAccessKey", "label": "SK", "type": "password", "helpText": "x"},
                ],
            },
        )
        assert config.type == ProviderType.HUAWEI
        assert config.capabilities is None
        assert [f.key for f in config.auth_fields] == ["accessKeyId", "secretAccessKey"]
        assert config.auth_fields[1].help_text == "x"

    def test_unknown_provider_kept_as_string(self):
        config = ProviderConfig.model_validate({"type": "godaddy", "name": "GoDaddy"})
        assert config.type == "godaddy"
        assert not isinstance(config.type, ProviderType)
        assert isinstance(ProviderConfig.model_validate({"type": "aliyun", "name": "Aliyun"}).type, ProviderType)


class TestDnsCredential:
    """Tests for DnsCredential model."""

    def test_wire_shape(self):
        credential = DnsCredential.model_validate(
            {
                "id": 5,
                "name": "main",
                "provider": "dnspod_token",
                "providerName": "DNSPod",
                "isDefault": True,
                "createdAt": "2024-01-02T03:04:05Z",
            },
        )
        assert credential.provider == ProviderType.DNSPOD_TOKEN
        assert credential.is_default is True
        assert credential.created_at is not None
        assert credential.created_at.year == 2024

    def test_unknown_provider_kept_as_string(self):
        credential = DnsCredential.model_validate({"id": 8, "name": "gd", "provider": "godaddy"})
        assert credential.provider == "godaddy"


class TestNativeRecord:
    """Tests for NativeRecord coercions."""

    def test_numeric_ids_become_strings(self):
        record = NativeRecord.model_validate({"id": 123, "type": "A", "value": "1.2.3.4"})
        assert record.id == "123"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(1, True), (0, False), ("yes", True), ("", False), (None, False), (True, True)],
    )
    def test_proxied_truthiness(self, raw, expected):
        record = NativeRecord.model_validate({"id": "r", "type": "A", "proxied": raw})
        assert record.proxied is expected

    @pytest.mark.parametrize(("raw", "expected"), [(True, True), (False, False), (1, None), ("true", None)])
    def test_enabled_only_real_bools(self, raw, expected):
        record = NativeRecord.model_validate({"id": "r", "type": "A", "enabled": raw})
        assert record.enabled is expected

    @pytest.mark.parametrize(("raw", "expected"), [("1", "1"), ("ENABLE", "ENABLE"), (1, None)])
    def test_status_only_strings(self, raw, expected):
        record = NativeRecord.model_validate({"id": "r", "type": "A", "status": raw})
        assert record.status == expected

    def test_unknown_fields_dropped(self):
        record = NativeRecord.model_validate({"id": "r", "type": "A", "vendorBlob": {"x": 1}})
        assert not hasattr(record, "vendorBlob")
        assert "vendorBlob" not in record.model_dump(by_alias=True)

    def test_missing_id_rejected(self):
        with pytest.raises(ValidationError):
            NativeRecord.model_validate({"type": "A"})


class TestNativeZone:
    """Tests for NativeZone model."""

    def test_camel_case_and_coercion(self):
        zone = NativeZone.model_validate({"id": 42, "name": "example.com", "recordCount": 7})
        assert zone.id == "42"
        assert zone.record_count == 7
        assert zone.status == ""


class TestRecordDraft:
    """Tests for RecordDraft model."""

    def test_all_optional(self):
        draft = RecordDraft()
        assert draft.model_dump(exclude_none=True) == {}

    def test_populate_by_alias_or_name(self):
        assert RecordDraft(type="A").type == "A"
        assert RecordDraft.model_validate({"lineName": "x", "ttl": 600}).ttl == 600


class TestApiEnvelope:
    """Tests for ApiEnvelope model."""

    def test_defaults(self):
        envelope = ApiEnvelope()
        assert envelope.success is True
        assert envelope.data is None

    def test_extra_fields_kept(self):
        envelope = ApiEnvelope.model_validate({"success": True, "data": {}, "code": 0})
        assert envelope.model_extra == {"code": 0}


class TestListingCapabilities:
    """Tests for ListingCapabilities model."""

    def test_partial_hints(self):
        hints = ListingCapabilities.model_validate({"supportsLine": True})
        assert hints.supports_line is True
        assert hints.supports_weight is None
