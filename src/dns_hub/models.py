"""
Data models for DNS Hub.

This module defines the core data structures used throughout the package:
enumerations for providers and capability modes, the provider/credential
catalogue, the provider-native ("wire") record and zone shapes returned by
the backend, and the canonical shapes used by everything above the
normalization boundary.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any, Final, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ProviderType(StrEnum):
    """
    Raw DNS provider identifiers as stored by the backend.

    Attributes
    ----------
    CLOUDFLARE : str
        Cloudflare DNS.
    ALIYUN : str
        Alibaba Cloud DNS (alidns).
    DNSPOD : str
        Tencent Cloud DNSPod (API 3.0 keys).
    DNSPOD_TOKEN : str
        Tencent Cloud DNSPod (legacy token). Folded into ``DNSPOD``.
    HUAWEI : str
        Huawei Cloud DNS.
    BAIDU : str
        Baidu Cloud DNS.
    WEST : str
        West.cn DNS.
    HUOSHAN : str
        Volcengine (Huoshan) DNS.
    JDCLOUD : str
        JD Cloud DNS.
    DNSLA : str
        DNS.LA.
    NAMESILO : str
        NameSilo.
    POWERDNS : str
        Self-hosted PowerDNS.
    SPACESHIP : str
        Spaceship.
    """

    CLOUDFLARE = "cloudflare"
    ALIYUN = "aliyun"
    DNSPOD = "dnspod"
    DNSPOD_TOKEN = "dnspod_token"
    HUAWEI = "huawei"
    BAIDU = "baidu"
    WEST = "west"
    HUOSHAN = "huoshan"
    JDCLOUD = "jdcloud"
    DNSLA = "dnsla"
    NAMESILO = "namesilo"
    POWERDNS = "powerdns"
    SPACESHIP = "spaceship"


class RemarkMode(StrEnum):
    """How a provider stores record remarks."""

    INLINE = "inline"
    SEPARATE = "separate"
    UNSUPPORTED = "unsupported"


class PagingMode(StrEnum):
    """Whether a provider pages listings server side or client side."""

    SERVER = "server"
    CLIENT = "client"


# Sentinel for "every credential of the selected provider"
ALL_CREDENTIALS: Final = "all"

CredentialSelection = int | Literal["all"]

DEFAULT_RECORD_TYPES: Final[tuple[str, ...]] = (
    "A",
    "AAAA",
    "CNAME",
    "MX",
    "TXT",
    "SRV",
    "CAA",
    "NS",
)


class WireModel(BaseModel):
    """Base model for shapes exchanged with the backend (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class AuthField(WireModel):
    """
    One authentication field a provider asks for.

    Attributes
    ----------
    key : str
        Secret key name (e.g. "accessKeyId").
    label : str
        Human-readable label.
    type : Literal["text", "password", "url"]
        Input type.
    required : bool
        Whether the field must be filled.
    placeholder : str | None
        Optional placeholder text.
    help_text : str | None
        Optional help text.
    """

    key: str
    label: str
    type: Literal["text", "password", "url"] = "text"
    required: bool = True
    placeholder: str | None = None
    help_text: str | None = None


class ProviderCapabilities(WireModel):
    """
    Feature-support profile of a provider.

    Attributes
    ----------
    supports_weight : bool
        Weighted records.
    supports_line : bool
        Line (ISP / region) based routing.
    supports_status : bool
        Record enable/disable toggle.
    supports_remark : bool
        Free-text record remarks.
    supports_url_forward : bool
        URL forwarding record types.
    supports_logs : bool
        Provider-side operation logs.
    remark_mode : RemarkMode
        How remarks are written (inline, separate call, unsupported).
    paging : PagingMode
        Server or client side paging.
    requires_domain_id : bool
        Whether record calls need the provider's domain id.
    record_types : tuple[str, ...]
        Ordered, non-empty set of supported record types.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    supports_weight: bool = False
    supports_line: bool = False
    supports_status: bool = False
    supports_remark: bool = False
    supports_url_forward: bool = False
    supports_logs: bool = False
    remark_mode: RemarkMode = RemarkMode.UNSUPPORTED
    paging: PagingMode = PagingMode.CLIENT
    requires_domain_id: bool = False
    record_types: tuple[str, ...] = Field(default=DEFAULT_RECORD_TYPES, min_length=1)


class ProviderConfig(WireModel):
    """
    A provider as listed by the backend.

    Attributes
    ----------
    type : ProviderType | str
        Raw provider identifier. Identifiers outside ``ProviderType`` are
        kept as plain strings.
    name : str
        Display name.
    auth_fields : list[AuthField]
        Ordered authentication fields.
    capabilities : ProviderCapabilities | None
        Capability descriptor, when the backend publishes one.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    type: ProviderType | str = Field(union_mode="left_to_right")
    name: str
    auth_fields: list[AuthField] = Field(default_factory=list)
    capabilities: ProviderCapabilities | None = None


class DnsCredential(WireModel):
    """
    One configured account for one provider.

    Attributes
    ----------
    id : int
        Credential id.
    name : str
        Display name.
    provider : ProviderType | str
        Raw provider identifier (may be a legacy alias or an identifier
        outside ``ProviderType``).
    provider_name : str | None
        Provider display name, when the backend includes it.
    account_id : str | None
        Optional external account id.
    is_default : bool
        Whether this is the user's default credential.
    created_at : datetime | None
        Creation timestamp.
    updated_at : datetime | None
        Last update timestamp.
    """

    id: int
    name: str
    provider: ProviderType | str = Field(union_mode="left_to_right")
    provider_name: str | None = None
    account_id: str | None = None
    is_default: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DnsLine(WireModel):
    """
    A resolution line (ISP / region routing target).

    Attributes
    ----------
    code : str
        Line code sent to the backend.
    name : str
        Display name.
    parent_code : str | None
        Category code used to group lines.
    """

    code: str
    name: str
    parent_code: str | None = None


class NativeZone(WireModel):
    """Zone as returned by the backend."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    id: str
    name: str
    status: str = ""
    record_count: int | None = None
    updated_at: str | None = None


class Zone(WireModel):
    """
    Canonical zone (domain).

    Attributes
    ----------
    id : str
        Provider zone id.
    name : str
        Domain name.
    status : str
        Provider status string.
    record_count : int | None
        Number of records, when known.
    updated_at : str | None
        Last update timestamp as reported by the provider.
    credential_id : int | None
        Owning credential (only for concrete, single-credential listings).
    credential_name : str | None
        Owning credential name (set when listing across all credentials).
    """

    id: str
    name: str
    status: str = ""
    record_count: int | None = None
    updated_at: str | None = None
    credential_id: int | None = None
    credential_name: str | None = None


class NativeRecord(WireModel):
    """
    DNS record as returned by the backend.

    Unknown fields are dropped. ``enabled`` is kept only when it is a real
    boolean and ``status`` only when it is a string; any other value falls
    back to None. ``proxied`` is reduced to its truthiness.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    id: str
    type: str
    zone_name: str | None = None
    name: str = ""
    value: str = ""
    ttl: int | None = None
    proxied: bool = False
    priority: int | None = None
    weight: int | None = None
    line: str | None = None
    line_name: str | None = None
    remark: str | None = None
    enabled: bool | None = None
    status: str | None = None

    @field_validator("proxied", mode="before")
    @classmethod
    def _proxied_truthiness(cls, value: Any) -> bool:
        return bool(value)

    @field_validator("enabled", mode="before")
    @classmethod
    def _enabled_real_bool(cls, value: Any) -> bool | None:
        return value if isinstance(value, bool) else None

    @field_validator("status", mode="before")
    @classmethod
    def _status_string_only(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None


class DnsRecord(WireModel):
    """
    Canonical DNS record.

    Attributes
    ----------
    id : str
        Record id.
    type : str
        Record type (from the provider's record types).
    zone_name : str | None
        Zone the record belongs to.
    name : str
        Host record (e.g. "www", "@").
    content : str
        Record value.
    ttl : int
        Time to live in seconds (1 means "automatic" on Cloudflare).
    proxied : bool
        Cloudflare proxy flag.
    priority : int | None
        MX/SRV priority.
    weight : int | None
        Routing weight (weighted providers only).
    line : str | None
        Line code (line-routing providers only).
    line_name : str | None
        Line display name.
    remark : str | None
        Free-text remark.
    enabled : bool | None
        True/False, or None when the provider has no enable/disable concept.
    """

    id: str
    type: str
    zone_name: str | None = None
    name: str
    content: str
    ttl: int = 0
    proxied: bool = False
    priority: int | None = None
    weight: int | None = None
    line: str | None = None
    line_name: str | None = None
    remark: str | None = None
    enabled: bool | None = None


class RecordDraft(WireModel):
    """
    Canonical record draft for create/update.

    Every field is optional. A field left as None is absent from the
    outbound payload, which on update means "do not change".
    """

    type: str | None = None
    name: str | None = None
    content: str | None = None
    ttl: int | None = None
    proxied: bool | None = None
    priority: int | None = None
    weight: int | None = None
    line: str | None = None
    remark: str | None = None


class TtlOption(BaseModel):
    """
    One selectable TTL.

    Attributes
    ----------
    value : int
        TTL in seconds (1 is the Cloudflare "automatic" sentinel).
    label : str
        Human-readable label.
    """

    model_config = ConfigDict(frozen=True)

    value: int
    label: str


class ListingCapabilities(WireModel):
    """Capability hints a record listing may carry alongside its records."""

    supports_weight: bool | None = None
    supports_line: bool | None = None
    supports_status: bool | None = None
    supports_remark: bool | None = None


class ApiEnvelope(BaseModel):
    """
    Top-level backend response wrapper.

    Attributes
    ----------
    success : bool
        Whether the backend reports success.
    message : str
        Backend message.
    data : dict[str, Any] | None
        Response payload.
    """

    model_config = ConfigDict(extra="allow")

    success: bool = True
    message: str = ""
    data: dict[str, Any] | None = None


class RecordListing(BaseModel):
    """
    Fully drained record listing.

    Attributes
    ----------
    envelope : ApiEnvelope | None
        First page's envelope.
    records : list[DnsRecord]
        Every record across all pages.
    capabilities : ListingCapabilities | None
        Capability hints from the first page.
    total : int
        Last total reported by the backend.
    truncated : bool
        Whether the page ceiling cut the listing short.
    """

    envelope: ApiEnvelope | None = None
    records: list[DnsRecord] = Field(default_factory=list)
    capabilities: ListingCapabilities | None = None
    total: int = 0
    truncated: bool = False


class ZoneListing(BaseModel):
    """
    Fully drained zone listing.

    Attributes
    ----------
    envelope : ApiEnvelope | None
        First page's envelope.
    zones : list[Zone]
        Every zone across all pages.
    total : int
        Last total reported by the backend.
    truncated : bool
        Whether the page ceiling cut the listing short.
    """

    envelope: ApiEnvelope | None = None
    zones: list[Zone] = Field(default_factory=list)
    total: int = 0
    truncated: bool = False
