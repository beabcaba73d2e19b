"""Shared fixtures for DNS Hub tests."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import pytest
import respx

from dns_hub.exceptions import TransportError
from dns_hub.models import (
    ApiEnvelope,
    DnsCredential,
    PagingMode,
    ProviderCapabilities,
    ProviderConfig,
    ProviderType,
    RemarkMode,
)
from dns_hub.preferences import MemoryPreferenceStore
from dns_hub.transport import BaseTransport

if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import Any


BASE_URL = "http://backend.test/api"

CLOUDFLARE_CAPS = ProviderCapabilities(
    supports_remark=True,
    remark_mode=RemarkMode.INLINE,
    paging=PagingMode.SERVER,
    record_types=("A", "AAAA", "CNAME", "MX", "TXT", "SRV", "CAA", "NS"),
)
ALIYUN_CAPS = ProviderCapabilities(
    supports_weight=True,
    supports_line=True,
    supports_status=True,
    supports_remark=True,
    remark_mode=RemarkMode.SEPARATE,
    paging=PagingMode.SERVER,
    record_types=("A", "AAAA", "CNAME", "MX", "TXT", "SRV", "CAA", "NS"),
)
DNSPOD_CAPS = ProviderCapabilities(
    supports_weight=True,
    supports_line=True,
    supports_status=True,
    supports_remark=True,
    remark_mode=RemarkMode.SEPARATE,
    paging=PagingMode.SERVER,
    record_types=("A", "AAAA", "CNAME", "MX", "TXT", "NS", "SRV", "CAA"),
)
WEIGHT_ONLY_CAPS = ProviderCapabilities(
    supports_weight=True,
    record_types=("A", "CNAME", "TXT"),
)


def make_provider(
    provider: ProviderType,
    name: str,
    capabilities: ProviderCapabilities | None = None,
) -> ProviderConfig:
    return ProviderConfig(type=provider, name=name, capabilities=capabilities)


def make_credential(credential_id: int, provider: ProviderType, name: str | None = None) -> DnsCredential:
    return DnsCredential(id=credential_id, name=name or f"account-{credential_id}", provider=provider)


@pytest.fixture
def providers() -> list[ProviderConfig]:
    return [
        make_provider(ProviderType.ALIYUN, "Aliyun", ALIYUN_CAPS),
        make_provider(ProviderType.CLOUDFLARE, "Cloudflare", CLOUDFLARE_CAPS),
        make_provider(ProviderType.DNSPOD, "DNSPod", DNSPOD_CAPS),
        make_provider(ProviderType.HUAWEI, "Huawei Cloud"),
    ]


@pytest.fixture
def credentials() -> list[DnsCredential]:
    return [
        make_credential(1, ProviderType.CLOUDFLARE, "cf-main"),
        make_credential(2, ProviderType.CLOUDFLARE, "cf-side"),
        make_credential(3, ProviderType.CLOUDFLARE, "cf-lab"),
        make_credential(7, ProviderType.ALIYUN, "ali-prod"),
    ]


@pytest.fixture(autouse=True)
def _restore_loggers() -> Iterator[None]:
    """Undo ``setup_logging`` side effects so caplog keeps working."""
    saved = {}
    for name in ("dns_hub", "dns_hub.config", "httpx"):
        logger = logging.getLogger(name)
        saved[name] = (logger.level, logger.propagate, list(logger.handlers))
    yield
    for name, (level, propagate, handlers) in saved.items():
        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.propagate = propagate
        logger.handlers[:] = handlers


@pytest.fixture
def store() -> MemoryPreferenceStore:
    return MemoryPreferenceStore()


@dataclass
class Call:
    method: str
    path: str
    params: dict[str, Any]
    json: dict[str, Any] | None


@dataclass
class FakeTransport(BaseTransport):
    """
    In-memory transport routing ``(method, path)`` to canned responses.

    A route may be an envelope, a ``data`` dict, an exception to raise, or a
    callable receiving the ``Call`` and returning any of those.
    """

    routes: dict[tuple[str, str], Any] = field(default_factory=dict)
    calls: list[Call] = field(default_factory=list)
    closed: bool = False

    def add(self, method: str, path: str, route: Any) -> None:
        self.routes[(method, path)] = route

    def calls_to(self, method: str, path: str) -> list[Call]:
        return [c for c in self.calls if c.method == method and c.path == path]

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> ApiEnvelope:
        call = Call(method, path, dict(params or {}), json)
        self.calls.append(call)
        route = self.routes.get((method, path))
        if route is None:
            msg = f"No route for {method} {path}"
            raise TransportError(msg, 404)
        result = route(call) if callable(route) else route
        if isinstance(result, Exception):
            raise result
        if isinstance(result, dict):
            return ApiEnvelope(data=result)
        return result

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def catalogue(
    transport: FakeTransport,
    providers: list[ProviderConfig],
    credentials: list[DnsCredential],
) -> FakeTransport:
    """Transport serving the provider and credential listings."""
    transport.add(
        "GET",
        "/dns-credentials/providers",
        {"providers": [p.model_dump(mode="json", by_alias=True) for p in providers]},
    )
    transport.add(
        "GET",
        "/dns-credentials",
        {"credentials": [c.model_dump(mode="json", by_alias=True) for c in credentials]},
    )
    return transport


@pytest.fixture
def mock_http() -> Iterator[respx.MockRouter]:
    """
    Yields a respx router intercepting every httpx request to the backend.

    No real network traffic is allowed during tests.
    """
    with respx.mock(base_url=BASE_URL, assert_all_called=False) as router:
        yield router
