"""
共通フィクスチャ: Playwright Page の代わりに使うモック
"""
import os
import sys
from unittest.mock import AsyncMock, Mock

import pytest

# プロジェクトルートをPythonパスに追加
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from analytics_runner.actions import DATA_LAYER_SCRIPT


class FakeRoute:
    """Route double: the interception handler decides abort/continue on it."""

    def __init__(self, url):
        self.request = Mock(url=url)
        self.abort = AsyncMock()
        self.continue_ = AsyncMock()

    @property
    def aborted(self):
        return self.abort.await_count > 0

    @property
    def continued(self):
        return self.continue_.await_count > 0


def make_page(network=None, data_layer=None):
    """Build a page mock.

    ``network`` maps a URL passed to goto (or a selector passed to click) to
    the request URLs the page fires as a side effect. ``data_layer`` is what
    reading the event layer returns.
    """
    network = network or {}
    page = AsyncMock()
    page.handlers = []
    page.routes = []

    async def route(pattern, handler):
        page.handlers.append(handler)

    async def fire(url):
        r = FakeRoute(url)
        page.routes.append(r)
        for handler in page.handlers:
            await handler(r)
        return r

    async def goto(url, **kwargs):
        for request_url in network.get(url, []):
            await fire(request_url)

    async def evaluate(script, *args):
        if script == DATA_LAYER_SCRIPT:
            return data_layer
        if args and args[0] in network:
            for request_url in network[args[0]]:
                await fire(request_url)
        return None

    page.route.side_effect = route
    page.goto.side_effect = goto
    page.evaluate.side_effect = evaluate
    page.fire = fire
    return page


@pytest.fixture
def page_factory():
    return make_page
