"""Tests for the browser session: cookie loading, config and rendering."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from src.browser.session import BrowserSession, _load_cookies
from src.core.config import BrowserConfig

# ---------------------------------------------------------------------------
# TestLoadCookies
# ---------------------------------------------------------------------------


class TestLoadCookies:
    """Cookie file loading: success and failure paths."""

    def test_valid_cookie_file(self, tmp_path: Path) -> None:
        cookie_file = tmp_path / "cookies.json"
        cookies = [
            {"name": "tarteaucitron", "value": "!analytics=false", "domain": ".apec.fr", "path": "/"},
        ]
        cookie_file.write_text(json.dumps(cookies))
        result = _load_cookies(str(cookie_file))
        assert len(result) == 1
        assert result[0]["name"] == "tarteaucitron"

    def test_none_path_returns_empty(self) -> None:
        assert _load_cookies(None) == []

    def test_missing_file_returns_empty(self) -> None:
        assert _load_cookies("/nonexistent/path/cookies.json") == []

    def test_not_array_returns_empty(self, tmp_path: Path) -> None:
        cookie_file = tmp_path / "cookies.json"
        cookie_file.write_text('{"key": "value"}')
        assert _load_cookies(str(cookie_file)) == []

    def test_invalid_json_returns_empty(self, tmp_path: Path) -> None:
        cookie_file = tmp_path / "cookies.json"
        cookie_file.write_text("not-json{{{")
        assert _load_cookies(str(cookie_file)) == []


# ---------------------------------------------------------------------------
# TestBrowserConfig
# ---------------------------------------------------------------------------


class TestBrowserSessionConfig:
    def test_default_config(self) -> None:
        config = BrowserConfig()
        assert config.render_fallback is False
        assert config.headless is True
        assert config.cookies_path is None
        assert config.timeout_ms == 30000

    def test_timeout_minimum(self) -> None:
        with pytest.raises(ValueError, match="greater than or equal to 1000"):
            BrowserConfig(timeout_ms=500)


# ---------------------------------------------------------------------------
# TestRender
# ---------------------------------------------------------------------------


class TestRender:
    def test_page_before_enter_raises(self) -> None:
        session = BrowserSession(BrowserConfig())
        with pytest.raises(RuntimeError, match="not entered"):
            _ = session.page

    async def test_render_returns_content(self) -> None:
        session = BrowserSession(BrowserConfig(), item_selectors=("article.card-offre",))
        page = AsyncMock()
        page.content = AsyncMock(return_value="<html>rendered</html>")
        session._page = page

        with patch("src.browser.session.scroll_until_stable", new_callable=AsyncMock) as mock_scroll:
            html = await session.render("https://www.apec.fr/candidat/recherche-emploi.html/emploi")

        assert html == "<html>rendered</html>"
        page.goto.assert_awaited_once_with("https://www.apec.fr/candidat/recherche-emploi.html/emploi")
        mock_scroll.assert_awaited_once()

    async def test_render_without_selectors_skips_scroll(self) -> None:
        session = BrowserSession(BrowserConfig())
        page = AsyncMock()
        page.content = AsyncMock(return_value="<html></html>")
        session._page = page

        with patch("src.browser.session.scroll_until_stable", new_callable=AsyncMock) as mock_scroll:
            await session.render("https://www.apec.fr/")

        mock_scroll.assert_not_awaited()
