"""HTTP transport collaborator built on httpx.

Owns headers, timeouts, proxy passthrough and the per-request delay.
Non-2xx responses become FetchError so the retry executor can classify them.
"""

import logging
import random
from types import TracebackType
from typing import Any

import httpx

from src.browser.actions import random_sleep
from src.core.config import HttpConfig
from src.core.errors import FetchError

logger = logging.getLogger(__name__)

# One is picked at random for each request.
USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.4 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
)

DEFAULT_HEADERS: dict[str, str] = {
    "Accept": "application/json, text/plain, */*",
    "Accept-Language": "fr-FR,fr;q=0.9,en-US;q=0.8",
}

HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"

# Jitter added on top of request_delay_ms, as a fraction of the delay.
DELAY_JITTER_RATIO = 0.25


class HttpClient:
    """Async HTTP client with request counting.

    Usage::

        async with HttpClient(config, request_delay_ms=250) as http:
            body = await http.get_json("https://www.apec.fr/...")
    """

    def __init__(
        self,
        config: HttpConfig,
        *,
        request_delay_ms: int = 0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._delay_s = request_delay_ms / 1000
        self._request_count = 0
        kwargs: dict[str, Any] = {
            "base_url": config.base_url,
            "headers": DEFAULT_HEADERS,
            "timeout": config.timeout_s,
            "follow_redirects": True,
        }
        if transport is not None:
            kwargs["transport"] = transport
        elif config.proxy_url:
            kwargs["proxy"] = config.proxy_url
        self._client = httpx.AsyncClient(**kwargs)

    @property
    def base_url(self) -> str:
        return self._config.base_url

    @property
    def request_count(self) -> int:
        """Remote calls issued so far, including failed ones."""
        return self._request_count

    async def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        response = await self._send("GET", url, params=params)
        return response.json()

    async def post_json(self, url: str, payload: dict[str, Any]) -> Any:
        response = await self._send("POST", url, json=payload)
        return response.json()

    async def get_text(self, url: str, params: dict[str, Any] | None = None) -> str:
        response = await self._send("GET", url, params=params, headers={"Accept": HTML_ACCEPT})
        return response.text

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if self._delay_s > 0:
            await random_sleep(self._delay_s, self._delay_s * (1 + DELAY_JITTER_RATIO))
        self._request_count += 1
        headers = {"User-Agent": random.choice(USER_AGENTS), **kwargs.pop("headers", {})}
        logger.debug("%s %s", method, url)
        response = await self._client.request(method, url, headers=headers, **kwargs)
        if not response.is_success:
            raise FetchError(response.status_code, str(response.url))
        return response

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()
