"""AdPulse — Meta API Client.

Handles authentication, retry logic, rate limiting, and pagination.
"""

import asyncio
from typing import Any, Dict, List, Optional

import httpx

from adpulse.core.logging import get_logger

logger = get_logger("meta.client")

DEFAULT_GRAPH_URL = "https://graph.facebook.com/v19.0"
RETRY_BASE_DELAY = 2  # seconds
MAX_PAGES = 200


class MetaAPIError(Exception):
    """Raised when Meta API returns an error."""

    def __init__(self, message: str, status_code: int = 0, error_code: int = 0):
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class MetaClient:
    """Async HTTP client for Meta Marketing API."""

    def __init__(
        self,
        access_token: Optional[str] = None,
        graph_url: str = DEFAULT_GRAPH_URL,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_base_delay: float = RETRY_BASE_DELAY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.access_token = access_token
        self.graph_url = graph_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_base_delay = retry_base_delay
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self) -> "MetaClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def url(self, path: str) -> str:
        return f"{self.graph_url}/{path.lstrip('/')}"

    # ── Core Request Method ──

    async def _request(
        self,
        method: str,
        url: str,
        params: Dict[str, Any] | None = None,
        authenticated: bool = True,
    ) -> Dict[str, Any]:
        """Make a request with retry + rate-limit handling."""
        params = dict(params or {})
        if authenticated:
            params["access_token"] = self.access_token

        client = await self._get_client()

        for attempt in range(1, self.max_retries + 1):
            try:
                resp = await client.request(method, url, params=params)

                # Rate limited
                if resp.status_code == 429 and attempt < self.max_retries:
                    wait = self.retry_base_delay * (2 ** (attempt - 1))
                    logger.warning(
                        f"Rate limited (429). Retrying in {wait}s (attempt {attempt}/{self.max_retries})"
                    )
                    await asyncio.sleep(wait)
                    continue

                resp.raise_for_status()
                try:
                    return resp.json()
                except ValueError as e:
                    raise MetaAPIError(
                        f"Non-JSON response from {url} ({resp.status_code})",
                        resp.status_code,
                    ) from e

            except httpx.HTTPStatusError as e:
                body = (
                    e.response.json()
                    if e.response.headers.get("content-type", "").startswith(
                        "application/json"
                    )
                    else {}
                )
                error = body.get("error", {}) if isinstance(body, dict) else {}
                error_msg = error.get("message", str(e))
                error_code = error.get("code", 0)

                if attempt < self.max_retries and e.response.status_code >= 500:
                    wait = self.retry_base_delay * (2 ** (attempt - 1))
                    logger.warning(
                        f"Server error {e.response.status_code}. Retrying in {wait}s"
                    )
                    await asyncio.sleep(wait)
                    continue

                raise MetaAPIError(error_msg, e.response.status_code, error_code) from e

            except httpx.RequestError as e:
                if attempt < self.max_retries:
                    wait = self.retry_base_delay * (2 ** (attempt - 1))
                    logger.warning(f"Request error: {e}. Retrying in {wait}s")
                    await asyncio.sleep(wait)
                    continue
                raise MetaAPIError(
                    f"Connection failed after {self.max_retries} attempts: {e}"
                ) from e

        raise MetaAPIError("Max retries exhausted")

    # ── Pagination ──

    async def _paginated_get(
        self,
        url: str,
        params: Dict[str, Any] | None = None,
        max_pages: int = MAX_PAGES,
    ) -> List[Dict[str, Any]]:
        """Fetch all pages of a paginated endpoint."""
        all_data: List[Dict[str, Any]] = []
        params = params or {}
        current_url = url

        for page in range(max_pages):
            # paging.next already carries the query string
            result = await self._request(
                "GET", current_url, params if page == 0 else None
            )
            data = result.get("data")
            if not isinstance(data, list):
                raise MetaAPIError(f"Malformed response from {url}: missing 'data' list")
            all_data.extend(data)

            paging = result.get("paging") or {}
            next_url = paging.get("next")
            if not next_url:
                break
            current_url = next_url
        else:
            logger.warning(f"Stopped after {max_pages} pages for {url}")

        logger.debug(f"Fetched {len(all_data)} records from {url}")
        return all_data

    # ── Token Exchange ──

    async def exchange_token(
        self, app_id: str, app_secret: str, short_lived_token: str
    ) -> str:
        """Upgrade a short-lived user token to a long-lived one."""
        params = {
            "grant_type": "fb_exchange_token",
            "client_id": app_id,
            "client_secret": app_secret,
            "fb_exchange_token": short_lived_token,
        }
        result = await self._request(
            "GET", self.url("oauth/access_token"), params, authenticated=False
        )
        long_lived = result.get("access_token")
        if not long_lived:
            raise MetaAPIError("Token exchange response had no access_token")
        return long_lived

    # ── Token Validation ──

    async def validate_token(self) -> Dict[str, Any]:
        """Check if the access token is valid and return metadata."""
        params = {"input_token": self.access_token}
        result = await self._request("GET", self.url("debug_token"), params)
        token_data = result.get("data", {})
        return {
            "valid": token_data.get("is_valid", False),
            "expires_at": token_data.get("expires_at", 0),
            "scopes": token_data.get("scopes", []),
            "app_id": token_data.get("app_id", ""),
        }
