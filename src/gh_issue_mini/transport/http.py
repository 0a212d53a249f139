"""HTTP transport used by the request executor.

The executor only needs one operation from the network layer:

    send(method, url, headers, content) -> RawResponse

``HttpxTransport`` implements it on top of ``httpx.AsyncClient``. Connection,
timeout and protocol faults surface as ``TransportError``; HTTP error
statuses are returned as ordinary responses for the executor to classify.

Example:
    ```python
    import httpx

    from gh_issue_mini.transport.http import HttpxTransport

    # Production
    transport = HttpxTransport(timeout=30.0)

    # Tests
    transport = HttpxTransport(transport=httpx.MockTransport(handler))
    ```
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

import httpx

from gh_issue_mini.errors.exceptions import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawResponse:
    """Status, body text and headers of one HTTP exchange."""

    status_code: int
    text: str
    content_type: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)


class Transport(Protocol):
    """Sends one HTTP request and returns the raw response."""

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        content: bytes | None = None,
    ) -> RawResponse: ...


class HttpxTransport:
    """Transport backed by ``httpx.AsyncClient``.

    Args:
        client: Existing client to send through. The caller keeps ownership.
        timeout: Request timeout in seconds for a client created here.
        transport: Low-level httpx transport for a client created here
            (e.g. ``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        content: bytes | None = None,
    ) -> RawResponse:
        """Send a request, converting network faults to TransportError.

        Args:
            method: HTTP method
            url: Absolute URL
            headers: Complete request headers
            content: Pre-rendered request body

        Returns:
            RawResponse for any HTTP status

        Raises:
            TransportError: If no usable HTTP response was received
        """
        try:
            response = await self._client.request(method, url, headers=dict(headers), content=content)
        except httpx.RequestError as e:
            # RequestError also covers undecodable bodies and redirect loops
            raise TransportError(f"Request {method} {url} failed: {e!r}", cause=e) from e

        return RawResponse(
            status_code=response.status_code,
            text=response.text,
            content_type=response.headers.get("content-type", ""),
            headers=dict(response.headers),
        )
