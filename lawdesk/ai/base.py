"""
Base Service Client
===================

Shared async HTTP client for the external AI and enrichment services.
Transport failures, timeouts and non-2xx responses surface as
ExternalServiceError.
"""

import httpx
import logging
from typing import Optional

from ..errors import ExternalServiceError

logger = logging.getLogger(__name__)


class BaseServiceClient:
    """
    Base async client for an external HTTP API.

    The underlying httpx.AsyncClient is created on first use and reused
    until close() is called.
    """

    service_name = "external service"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: int = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self):
        """Close the HTTP client"""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _headers(self) -> dict:
        if self.api_key:
            return {"Authorization": f"Bearer {self.api_key}"}
        return {}

    async def request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Send a request; raises ExternalServiceError on any failure."""
        headers = {**self._headers(), **kwargs.pop("headers", {})}
        try:
            client = await self._get_client()
            response = await client.request(method, path, headers=headers, **kwargs)
            response.raise_for_status()
            return response
        except httpx.TimeoutException:
            logger.error(f"{self.service_name} timed out: {method} {path}")
            raise ExternalServiceError(f"{self.service_name} timed out")
        except httpx.HTTPStatusError as e:
            logger.error(f"{self.service_name} error: {e.response.status_code} on {method} {path}")
            raise ExternalServiceError(f"{self.service_name} returned HTTP {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error(f"{self.service_name} request failed: {e.__class__.__name__}")
            raise ExternalServiceError(f"{self.service_name} request failed")

    def json_body(self, response: httpx.Response):
        """Decoded JSON body; an unparsable body is an ExternalServiceError."""
        try:
            return response.json()
        except ValueError:
            logger.error(f"{self.service_name} returned invalid JSON ({len(response.content)} bytes)")
            raise ExternalServiceError(f"{self.service_name} returned an unexpected payload")
