"""Shared fixtures: an HttpClient answered by httpx.MockTransport."""

from collections.abc import Callable

import httpx
import pytest

from src.core.config import HttpConfig
from src.net.http import HttpClient

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture()
def make_http() -> Callable[[Handler], HttpClient]:
    """Factory for HttpClients whose requests are answered by ``handler``."""

    def _make(handler: Handler) -> HttpClient:
        return HttpClient(HttpConfig(), transport=httpx.MockTransport(handler))

    return _make
