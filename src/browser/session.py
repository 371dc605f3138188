"""Browser session used as an opaque page renderer for the SPA fallback.

Only started when ``browser.render_fallback`` is enabled. One browser
context and one page per run; renders are serialized on that page.
"""

import asyncio
import json
import logging
from pathlib import Path
from types import TracebackType
from typing import Any

from patchright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from src.browser.actions import scroll_until_stable
from src.core.config import BrowserConfig

logger = logging.getLogger(__name__)


class BrowserSession:
    """Async context manager that owns one patchright browser + context + page.

    Usage::

        async with BrowserSession(config, item_selectors=("article",)) as session:
            html = await session.render("https://...")
    """

    def __init__(self, config: BrowserConfig, *, item_selectors: tuple[str, ...] = ()) -> None:
        self._config = config
        self._item_selectors = item_selectors
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None
        self._lock = asyncio.Lock()

    @property
    def page(self) -> Page:
        """The single page for this session. Raises if not entered."""
        if self._page is None:
            msg = "BrowserSession not entered, use 'async with'"
            raise RuntimeError(msg)
        return self._page

    async def render(self, url: str) -> str:
        """Load ``url``, let lazy content settle, and return the rendered markup."""
        async with self._lock:
            page = self.page
            logger.info("Rendering %s in browser", url)
            await page.goto(url)
            if self._item_selectors:
                await scroll_until_stable(page, item_selectors=self._item_selectors)
            return await page.content()

    async def __aenter__(self) -> "BrowserSession":
        pw = await async_playwright().start()
        self._playwright = pw
        self._browser = await pw.chromium.launch(headless=self._config.headless)

        self._context = await self._browser.new_context(locale="fr-FR")
        cookies = _load_cookies(self._config.cookies_path)
        if cookies:
            await self._context.add_cookies(cookies)
            logger.info("Loaded %d cookies from %s", len(cookies), self._config.cookies_path)

        self._context.set_default_timeout(self._config.timeout_ms)
        self._page = await self._context.new_page()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._context is not None:
            await self._context.close()
        if self._browser is not None:
            await self._browser.close()
        if self._playwright is not None:
            await self._playwright.stop()


def _load_cookies(path: str | None) -> list[Any]:
    """Load cookies from a JSON file. Returns empty list on any failure."""
    if not path:
        return []
    cookie_path = Path(path)
    if not cookie_path.exists():
        logger.debug("Cookie file not found: %s", path)
        return []
    try:
        data = json.loads(cookie_path.read_text())
        if isinstance(data, list):
            return data
        logger.warning("Cookie file is not a JSON array: %s", path)
        return []
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to load cookies from %s: %s", path, e)
        return []
