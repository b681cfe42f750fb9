"""ADFUNNEL — Meta API Client.

Signs Graph API requests, retries throttled and failed calls, and walks the
cursor pagination of the ``/insights`` edge. Pages come back as typed
``MetaInsightPage`` models; reading the funnel out of them belongs to
adfunnel.parsers.
"""

import asyncio
from typing import Any, AsyncIterator, Dict, Optional, Tuple

import httpx

from adfunnel.config import settings
from adfunnel.core.logging import get_logger
from adfunnel.core.numbers import safe_count
from adfunnel.models.raw_models import MetaInsightPage

logger = get_logger("meta.client")

META_BASE = f"{settings.meta_base_url}/{settings.meta_api_version}"
MAX_RETRIES = 3
RETRY_BASE_DELAY = 2  # seconds
MAX_PAGES = 50

# Graph API throttling codes, sent with HTTP 400/403 rather than 429
THROTTLE_ERROR_CODES = {4, 17, 32, 613, 80004}


class MetaAPIError(Exception):
    """Raised when the Graph API returns an error or cannot be reached."""

    def __init__(self, message: str, status_code: int = 0, error_code: int = 0):
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


def _error_details(response: httpx.Response) -> Tuple[str, int]:
    """Pull (message, code) out of a Graph API error body."""
    try:
        body = response.json()
    except ValueError:
        body = {}
    error = body.get("error") if isinstance(body, dict) else None
    if not isinstance(error, dict):
        return f"HTTP {response.status_code}", 0
    message = error.get("message") or f"HTTP {response.status_code}"
    return str(message), safe_count(error.get("code"))


class MetaClient:
    """Async client for the Meta Marketing API insights edge."""

    def __init__(
        self,
        access_token: str | None = None,
        ad_account_id: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_base_delay: float = RETRY_BASE_DELAY,
    ):
        self.access_token = access_token or settings.meta_access_token
        self.ad_account_id = ad_account_id or settings.meta_ad_account_id
        self.retry_base_delay = retry_base_delay
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=30.0, transport=self._transport)
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    def _signed_url(self, url: str, params: Dict[str, Any] | None = None) -> httpx.URL:
        """Merge ``params`` into the URL's own query and add the token once.

        ``paging.next`` links already carry the cursor and the token, so the
        query is extended rather than replaced.
        """
        target = httpx.URL(url)
        if params:
            target = target.copy_merge_params(params)
        if "access_token" not in target.params:
            target = target.copy_merge_params({"access_token": self.access_token})
        return target

    def _backoff(self, attempt: int) -> float:
        return self.retry_base_delay * (2 ** (attempt - 1))

    async def get_json(self, url: httpx.URL) -> Dict[str, Any]:
        """GET a signed URL, retrying throttling, 5xx and network errors."""
        client = await self._get_client()
        endpoint = f"{url.scheme}://{url.host}{url.path}"

        for attempt in range(1, MAX_RETRIES + 1):
            try:
                resp = await client.get(url)
            except httpx.RequestError as e:
                if attempt == MAX_RETRIES:
                    raise MetaAPIError(
                        f"Connection failed after {MAX_RETRIES} attempts: {e}"
                    ) from e
                wait = self._backoff(attempt)
                logger.warning(f"Request error: {e}. Retrying in {wait}s")
                await asyncio.sleep(wait)
                continue

            if resp.is_success:
                try:
                    body = resp.json()
                except ValueError as e:
                    raise MetaAPIError("Response is not JSON", resp.status_code) from e
                if not isinstance(body, dict):
                    raise MetaAPIError("Unexpected response shape", resp.status_code)
                return body

            message, code = _error_details(resp)
            throttled = resp.status_code == 429 or code in THROTTLE_ERROR_CODES
            if not (throttled or resp.status_code >= 500):
                raise MetaAPIError(message, resp.status_code, code)
            if attempt == MAX_RETRIES:
                if resp.status_code == 429:
                    message = "Rate limited (429)"
                raise MetaAPIError(message, resp.status_code, code)

            wait = self._backoff(attempt)
            reason = "Rate limited" if throttled else "Server error"
            logger.warning(
                f"{reason} ({resp.status_code}). Retrying in {wait}s "
                f"(attempt {attempt}/{MAX_RETRIES})",
                extra={"endpoint": endpoint, "status_code": resp.status_code},
            )
            await asyncio.sleep(wait)

        raise MetaAPIError("Max retries exhausted")

    async def iter_insight_pages(
        self,
        url: str,
        params: Dict[str, Any] | None = None,
        max_pages: int = MAX_PAGES,
    ) -> AsyncIterator[MetaInsightPage]:
        """Yield insight pages, following ``paging.next`` until it runs out.

        Stops early if Meta hands back a link it already served, so a stuck
        cursor can never repeat rows.
        """
        target = self._signed_url(url, params)
        visited = set()

        for _ in range(max_pages):
            visited.add(str(target))
            page = MetaInsightPage.model_validate(await self.get_json(target))
            yield page

            if not page.next_url:
                return
            target = self._signed_url(page.next_url)
            if str(target) in visited:
                logger.warning(
                    "Meta returned an already fetched page link; stopping pagination",
                    extra={"endpoint": url},
                )
                return

        logger.warning(
            f"Stopped after {max_pages} pages; results may be incomplete",
            extra={"endpoint": url},
        )
