"""Channels the tracker reads job progress from.

The tracker only depends on the ``Transport`` protocol; ``HttpxTransport`` is
the production implementation over a streaming HTTP GET.
"""
from __future__ import annotations

import logging
from typing import AsyncIterator, Dict, Optional, Protocol, Union
from urllib.parse import quote, urlencode

import httpx

from .errors import TransportError
from .sse import iter_sse_messages

logger = logging.getLogger(__name__)

SSE_HEADERS = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}


class Channel(Protocol):
    """An open server-push channel. Iterating yields each message's data."""

    def __aiter__(self) -> AsyncIterator[str]: ...


class Transport(Protocol):
    async def open(self, url: str) -> Channel: ...

    async def close(self, channel: Channel) -> None: ...


def build_job_url(
    subject_id: Union[int, str],
    target_reference: str,
    *,
    prefix: str = "/api",
    resource: str = "uploaded-resumes",
    param: str = "jobUrl",
) -> str:
    subject = quote(str(subject_id), safe="")
    return f"{prefix}/{resource}/{subject}/optimize?{urlencode({param: target_reference})}"


class HttpxChannel:
    def __init__(self, response: httpx.Response):
        self.response = response
        self._messages = self._read()

    def __aiter__(self) -> AsyncIterator[str]:
        return self._messages

    async def _read(self) -> AsyncIterator[str]:
        try:
            async for message in iter_sse_messages(self.response.aiter_lines()):
                if not message.is_default:
                    logger.debug(f"Skipping named event '{message.event}' on job stream")
                    continue
                yield message.data
        except (httpx.HTTPError, httpx.StreamError) as e:
            raise TransportError(f"Job stream dropped: {e}") from e

    async def aclose(self) -> None:
        await self._messages.aclose()
        await self.response.aclose()


class HttpxTransport:
    """Opens job streams with ``httpx.AsyncClient.stream``-style requests.

    Credentials are ambient: whatever cookies and headers the client carries
    are sent with every open. Pass ``client`` to share an existing client; it
    is then left open by ``aclose``.
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        client: Optional[httpx.AsyncClient] = None,
        cookies: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[httpx.Timeout] = None,
    ):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=base_url,
            cookies=cookies,
            headers=headers,
            # Reads block until the server has something to say
            timeout=timeout or httpx.Timeout(10.0, read=None),
        )

    async def open(self, url: str) -> HttpxChannel:
        request = self.client.build_request("GET", url, headers=SSE_HEADERS)
        try:
            response = await self.client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise TransportError(f"Could not open job stream {url}: {e}") from e

        content_type = response.headers.get("content-type", "")
        if response.status_code != 200 or not content_type.startswith("text/event-stream"):
            await response.aclose()
            raise TransportError(
                f"Job stream {url} answered HTTP {response.status_code} "
                f"({content_type or 'no content type'})"
            )
        logger.debug(f"Opened job stream {url}")
        return HttpxChannel(response)

    async def close(self, channel: HttpxChannel) -> None:
        await channel.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "HttpxTransport":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
        return False
