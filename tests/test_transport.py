"""Tests for the httpx transport."""

from __future__ import annotations

import httpx
import pytest
from conftest import BASE_URL

from dns_hub.exceptions import TransportError
from dns_hub.transport import HttpxTransport, parse_envelope


class TestParseEnvelope:
    """Tests for parse_envelope."""

    def test_success(self):
        envelope = parse_envelope({"success": True, "data": {"zones": []}})
        assert envelope.data == {"zones": []}

    def test_failure_uses_backend_message(self):
        with pytest.raises(TransportError, match="Credential not found") as exc_info:
            parse_envelope({"success": False, "message": "Credential not found"}, 200)
        assert exc_info.value.status_code == 200

    def test_failure_without_message(self):
        with pytest.raises(TransportError, match="Backend reported failure"):
            parse_envelope({"success": False})

    @pytest.mark.parametrize("payload", [None, [1, 2], "ok"])
    def test_malformed(self, payload):
        with pytest.raises(TransportError, match="Malformed response"):
            parse_envelope(payload)


class TestHttpxTransport:
    """Tests for HttpxTransport."""

    @pytest.mark.asyncio
    async def test_request_sends_token_and_params(self, mock_http):
        route = mock_http.get("/dns-records/zones").mock(
            return_value=httpx.Response(200, json={"success": True, "data": {"zones": []}}),
        )
        async with HttpxTransport(BASE_URL, token="secret-token") as transport:
            envelope = await transport.request(
                "GET",
                "/dns-records/zones",
                params={"credentialId": 3, "page": 1},
            )

        assert envelope.success is True
        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer secret-token"
        assert request.url.params["credentialId"] == "3"
        assert request.url.params["page"] == "1"

    @pytest.mark.asyncio
    async def test_json_body(self, mock_http):
        route = mock_http.post("/dns-records/refresh").mock(
            return_value=httpx.Response(200, json={"success": True, "data": None}),
        )
        async with HttpxTransport(BASE_URL) as transport:
            await transport.request("POST", "/dns-records/refresh", json={})

        request = route.calls.last.request
        assert request.content == b"{}"
        assert "Authorization" not in request.headers

    @pytest.mark.asyncio
    async def test_envelope_failure(self, mock_http):
        mock_http.get("/dns-credentials").mock(
            return_value=httpx.Response(200, json={"success": False, "message": "Session expired"}),
        )
        async with HttpxTransport(BASE_URL) as transport:
            with pytest.raises(TransportError, match="Session expired"):
                await transport.request("GET", "/dns-credentials")

    @pytest.mark.asyncio
    async def test_http_error_uses_payload_message(self, mock_http):
        mock_http.get("/dns-credentials").mock(
            return_value=httpx.Response(500, json={"success": False, "message": "Provider API error"}),
        )
        async with HttpxTransport(BASE_URL) as transport:
            with pytest.raises(TransportError, match="Provider API error") as exc_info:
                await transport.request("GET", "/dns-credentials")
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_http_error_without_body(self, mock_http):
        mock_http.get("/dns-credentials").mock(return_value=httpx.Response(502, text="bad gateway"))
        async with HttpxTransport(BASE_URL) as transport:
            with pytest.raises(TransportError) as exc_info:
                await transport.request("GET", "/dns-credentials")
        assert exc_info.value.status_code == 502
        assert exc_info.value.message == "Bad Gateway"

    @pytest.mark.asyncio
    async def test_network_error(self, mock_http):
        mock_http.get("/dns-credentials").mock(side_effect=httpx.ConnectError("refused"))
        async with HttpxTransport(BASE_URL) as transport:
            with pytest.raises(TransportError, match="Network request failed") as exc_info:
                await transport.request("GET", "/dns-credentials")
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_non_json_success_body(self, mock_http):
        mock_http.get("/dns-credentials").mock(return_value=httpx.Response(200, text="<html>"))
        async with HttpxTransport(BASE_URL) as transport:
            with pytest.raises(TransportError, match="Malformed response"):
                await transport.request("GET", "/dns-credentials")

    @pytest.mark.asyncio
    async def test_external_client_not_closed(self, mock_http):
        mock_http.get("/dns-credentials").mock(
            return_value=httpx.Response(200, json={"success": True, "data": {"credentials": []}}),
        )
        async with httpx.AsyncClient(base_url=BASE_URL) as client:
            transport = HttpxTransport(BASE_URL, token="abc", client=client)
            await transport.request("GET", "/dns-credentials")
            await transport.aclose()
            assert not client.is_closed
            assert client.headers["Authorization"] == "Bearer abc"
