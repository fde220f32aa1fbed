"""
Promodata product catalog API client.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ..config import settings
from ..errors import NotFoundError, UpstreamError
from ..upstream import error_message

logger = logging.getLogger(__name__)


class PromodataClient:
    """
    Async HTTP client for the Promodata catalog.

    Only product lookup by code is needed for syncing.
    """

    AUTH_HEADER = "x-auth-token"

    def __init__(
        self,
        token: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Promodata client.

        Args:
            token: Promodata API token
            base_url: API root, defaults to the configured Promodata URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = (base_url or settings.promodata_base_url).rstrip("/")
        self.token = token
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout, connect=10.0),
                headers={
                    "Accept": "application/json",
                    self.AUTH_HEADER: self.token,
                },
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def fetch_product(self, code: str) -> Dict[str, Any]:
        """
        Look up a single product by its catalog code.

        Args:
            code: Promodata product code

        Returns:
            The first item of the lookup result

        Raises:
            NotFoundError: If the catalog returns no items
            UpstreamError: On a non-2xx response or transport failure
        """
        url = f"{self.base_url}/products"

        try:
            client = await self._get_client()
            response = await client.get(url, params={"code": code})
        except (httpx.RequestError, httpx.InvalidURL) as e:
            raise UpstreamError(f"Promodata request failed: {e}") from e

        if not response.is_success:
            message = error_message(response, "Promodata")
            logger.warning(f"Promodata lookup for {code} failed: {message}")
            raise UpstreamError(message, upstream_status=response.status_code)

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamError(
                f"Promodata returned invalid JSON for {code}",
                upstream_status=response.status_code,
            ) from e

        items = body.get("items") if isinstance(body, dict) else None
        if not items:
            raise NotFoundError(f"Product {code} not found in Promodata")

        return items[0]

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
