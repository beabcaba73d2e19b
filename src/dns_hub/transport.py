"""
Transport boundary.

The core only needs one primitive: send a request to the backend and get
the JSON envelope back. ``BaseTransport`` defines it; ``HttpxTransport`` is
a thin adapter over ``httpx`` that adds the base URL and bearer token.
Retries and signing are not handled here.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from dns_hub.exceptions import TransportError
from dns_hub.models import ApiEnvelope

if TYPE_CHECKING:
    from types import TracebackType
    from typing import Any, Final, Self


# HTTP timeout in seconds
HTTP_TIMEOUT: Final[float] = 30.0


logger = logging.getLogger(__name__)


class BaseTransport(ABC):
    """
    Abstract "send request, get JSON envelope back" primitive.

    Implementations must raise ``TransportError`` on network failures,
    HTTP errors and envelopes with ``success: false``.
    """

    @abstractmethod
    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> ApiEnvelope:
        """
        Send one request to the backend.

        Parameters
        ----------
        method : str
            HTTP method.
        path : str
            Path relative to the backend base URL.
        params : dict[str, Any] | None, optional
            Query parameters.
        json : dict[str, Any] | None, optional
            JSON body.

        Returns
        -------
        ApiEnvelope
            The parsed response envelope.
        """
        ...

    async def aclose(self) -> None:  # noqa: B027
        """Release resources held by the transport."""

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


def parse_envelope(payload: Any, status_code: int | None = None) -> ApiEnvelope:
    """
    Validate a decoded JSON body as a backend envelope.

    Parameters
    ----------
    payload : Any
        Decoded JSON body.
    status_code : int | None, optional
        HTTP status code, for error reporting.

    Returns
    -------
    ApiEnvelope
        The envelope.

    Raises
    ------
    TransportError
        If the body is not an envelope or reports ``success: false``.
    """
    try:
        envelope = ApiEnvelope.model_validate(payload)
    except ValidationError as e:
        msg = "Malformed response from backend"
        raise TransportError(msg, status_code, payload) from e
    if not envelope.success:
        raise TransportError(
            envelope.message or "Backend reported failure",
            status_code,
            envelope.data,
        )
    return envelope


class HttpxTransport(BaseTransport):
    """
    ``httpx`` based transport.

    Parameters
    ----------
    base_url : str
        Backend API base URL (e.g. "http://localhost:3000/api").
    token : str | None, optional
        Bearer token for the backend session.
    timeout : float, optional
        Request timeout in seconds.
    client : httpx.AsyncClient | None, optional
        Pre-built client; when given, the transport does not close it.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = HTTP_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
        )
        if client is not None:
            self._client.headers.update(headers)

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> ApiEnvelope:
        try:
            response = await self._client.request(method, path, params=params, json=json)
        except httpx.RequestError as e:
            logger.error("[transport] %s %s failed: '%s'", method, path, e)  # noqa: TRY400
            msg = f"Network request failed: {e}"
            raise TransportError(msg) from e

        logger.debug(
            "[transport] %s %s params=%s -> %d",
            method,
            path,
            params,
            response.status_code,
        )

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.is_error:
            message = response.reason_phrase or "HTTP error"
            if isinstance(payload, dict) and payload.get("message"):
                message = str(payload["message"])
            logger.warning(
                "[transport] %s %s -> %d: %s",
                method,
                path,
                response.status_code,
                message,
            )
            raise TransportError(message, response.status_code, payload)

        return parse_envelope(payload, response.status_code)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
