"""
WooCommerce REST API client.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..errors import UpstreamError
from ..upstream import error_message

logger = logging.getLogger(__name__)


class WooCommerceClient:
    """
    Async HTTP client for the WooCommerce REST API (wc/v3).

    Authenticates with consumer key/secret over HTTP Basic auth.
    """

    def __init__(
        self,
        url: str,
        key: str,
        secret: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize WooCommerce client.

        Args:
            url: Store URL (e.g., "https://shop.example.com")
            key: REST API consumer key (ck_...)
            secret: REST API consumer secret (cs_...)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.store_url = url.rstrip("/")
        self.api_url = f"{self.store_url}{settings.woo_api_path}"
        self._auth = httpx.BasicAuth(key, secret)
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.api_url,
                auth=self._auth,
                timeout=httpx.Timeout(self.timeout, connect=10.0),
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
        decode: bool = True,
    ) -> Any:
        """
        Send a request and return the decoded JSON body.

        With decode=False only the status is checked and None is returned.

        Raises:
            UpstreamError: On a non-2xx or undecodable response (upstream_status
                set) or a transport failure (upstream_status None)
        """
        try:
            client = await self._get_client()
            response = await client.request(method, path, params=params, json=json)
        except (httpx.RequestError, httpx.InvalidURL) as e:
            raise UpstreamError(str(e) or e.__class__.__name__) from e

        if not response.is_success:
            message = error_message(response, "WooCommerce")
            logger.warning(f"WooCommerce {method} {path} failed ({response.status_code}): {message}")
            raise UpstreamError(message, upstream_status=response.status_code)

        if not decode or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                f"WooCommerce returned invalid JSON for {method} {path}",
                upstream_status=response.status_code,
            ) from e

    async def test_connection(self) -> None:
        """Minimal authenticated read. Any 2xx counts as reachable."""
        await self.request("GET", "/products", params={"per_page": 1}, decode=False)

    async def create_product(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a product.

        Args:
            payload: WooCommerce product resource

        Returns:
            The created product (includes its "id")
        """
        product = await self.request("POST", "/products", json=payload)
        if not isinstance(product, dict) or product.get("id") is None:
            raise UpstreamError("WooCommerce did not return a product id")
        return product

    async def batch_create_variations(
        self,
        product_id: Any,
        variations: List[Dict[str, Any]],
    ) -> Dict[str, Any]:
        """
        Create variations under a variable product in one batch call.

        Args:
            product_id: Parent product id returned by create_product
            variations: Variation resources

        Returns:
            Batch response ({"create": [...]})
        """
        result = await self.request(
            "POST",
            f"/products/{product_id}/variations/batch",
            json={"create": variations},
        )
        result = result or {}

        # Batch calls answer 200 even when single entries are rejected
        errors = [
            item["error"].get("message", str(item["error"]))
            for item in result.get("create", [])
            if isinstance(item, dict) and isinstance(item.get("error"), dict)
        ]
        if errors:
            raise UpstreamError(f"Variation create failed: {'; '.join(errors)}")
        return result

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
