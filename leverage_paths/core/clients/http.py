import time
from typing import Any

import httpx
from loguru import logger

from leverage_paths.core.constants.base import DEFAULT_HTTP_TIMEOUT
from leverage_paths.core.utils.retry import is_retryable_http_error, retry_async


class JsonHttpClient:
    """Small JSON-over-HTTP base shared by the quote adapters and data clients.

    Pass ``client`` to share one ``httpx.AsyncClient`` (or a mock transport in
    tests); otherwise one is created and owned by this instance.
    """

    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        headers: dict[str, str] | None = None,
        max_retries: int = 3,
    ):
        self.base_url = str(base_url).rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(DEFAULT_HTTP_TIMEOUT)
        )
        self.headers = {"Content-Type": "application/json", **(headers or {})}
        self.max_retries = max_retries

    def url(self, path: str) -> str:
        if not path:
            return self.base_url
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = self.url(path)

        async def _once() -> httpx.Response:
            logger.debug(f"Making {method} request to {url}")
            start_time = time.time()
            resp = await self.client.request(method, url, headers=self.headers, **kwargs)
            elapsed = time.time() - start_time
            if resp.status_code >= 400:
                logger.warning(
                    f"HTTP {resp.status_code} response for {method} {url} after {elapsed:.2f}s"
                )
            resp.raise_for_status()
            return resp

        def _on_retry(attempt: int, exc: Exception, delay_s: float) -> None:
            logger.warning(
                "Request to {} failed (attempt {}/{}): {}; retrying in {:.2f}s",
                url,
                attempt + 1,
                self.max_retries,
                type(exc).__name__,
                delay_s,
            )

        return await retry_async(
            _once,
            max_retries=self.max_retries,
            should_retry=is_retryable_http_error,
            on_retry=_on_retry,
        )

    async def get_json(self, path: str, params: Any = None) -> Any:
        resp = await self._request("GET", path, params=params)
        return resp.json()

    async def post_json(self, path: str, payload: Any) -> Any:
        resp = await self._request("POST", path, json=payload)
        return resp.json()

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()
