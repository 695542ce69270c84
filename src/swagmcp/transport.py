"""
Name: HTTP transport.
Description: Thin wrapper over httpx.AsyncClient performing exactly one request per call. A response with a failure status raises TransportResponseError carrying the response; network, DNS and timeout failures propagate as httpx.RequestError.
"""

import logging
from typing import Any, Dict, List, Optional, Union

import httpx
from pydantic import BaseModel, Field

from .constants import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

QueryParams = Dict[str, Union[str, List[str]]]


class HttpResponse(BaseModel):
    """Status, headers and decoded body of an upstream response."""

    status: int
    status_text: str = ""
    headers: Dict[str, str] = Field(default_factory=dict)
    data: Any = None

    @classmethod
    def from_httpx(cls, response: httpx.Response) -> "HttpResponse":
        if response.content:
            try:
                data = response.json()
            except ValueError:
                data = response.text
        else:
            data = ""

        return cls(
            status=response.status_code,
            status_text=response.reason_phrase,
            headers=dict(response.headers.items()),
            data=data,
        )

    def to_result(self, error: bool = False) -> Dict[str, Any]:
        """Shape the response for a tool result."""
        result = {
            "status": self.status,
            "statusText": self.status_text,
            "headers": self.headers,
            "data": self.data,
        }
        if error:
            result["error"] = True
        return result


class TransportResponseError(Exception):
    """The server answered with a failure status."""

    def __init__(self, response: HttpResponse):
        super().__init__(f"HTTP {response.status} {response.status_text}".strip())
        self.response = response


class HttpTransport:
    """Executes single HTTP requests.

    Every call opens and closes its own client, so nothing is shared
    between concurrent calls.

    Args:
        timeout: Request timeout in seconds
        transport: Optional httpx transport, e.g. httpx.MockTransport in tests
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self._transport = transport

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[QueryParams] = None,
        content: Optional[Union[str, bytes]] = None,
    ) -> HttpResponse:
        """Send one request.

        Args:
            method: HTTP method
            url: Absolute URL, possibly with a query string
            headers: Request headers
            params: Query parameters merged into the URL's query string
            content: Serialized request body

        Returns:
            The decoded response

        Raises:
            TransportResponseError: If the response status is not 2xx
            httpx.RequestError: If no response was received
        """
        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            response = await client.request(
                method,
                url,
                params=params or None,
                headers=headers,
                content=content,
            )

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError:
            logger.debug(f"{method} {url} answered {response.status_code}")
            raise TransportResponseError(HttpResponse.from_httpx(response))

        return HttpResponse.from_httpx(response)
