"""
オーケストレーターのテスト（async_playwright をモック化）
"""
import os
import sys
from unittest.mock import AsyncMock, patch

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from analytics_runner.errors import NavigationError
from analytics_runner.models import GotoStep, RequestMatchRegex, RunOptions, TestDefinition, TestStep, TrackerConfig
from analytics_runner.runner import TestRunner, run_test

from conftest import make_page

GA = TrackerConfig("GA", "/collect", abort_on_match=True)
TEST = TestDefinition("scenario", (
    GotoStep("https://x"),
    TestStep(RequestMatchRegex(id="1", name="cart", tracker="GA", key="ea", pattern="add_to_cart", match_any=True)),
))


@pytest.fixture
def mock_playwright():
    """Playwrightのモックフィクスチャ"""
    with patch('analytics_runner.runner.async_playwright') as mock:
        playwright = AsyncMock()
        browser = AsyncMock()
        context = AsyncMock()
        page = make_page({"https://x": ["https://www.google-analytics.com/collect?ea=add_to_cart"]})

        mock.return_value.start = AsyncMock(return_value=playwright)
        playwright.chromium.launch.return_value = browser
        browser.new_context.return_value = context
        context.new_page.return_value = page

        yield {
            'playwright': playwright,
            'browser': browser,
            'context': context,
            'page': page,
        }


def assert_closed_once(mocks):
    mocks['page'].close.assert_awaited_once()
    mocks['context'].close.assert_awaited_once()
    mocks['browser'].close.assert_awaited_once()
    mocks['playwright'].stop.assert_awaited_once()


class TestRunTest:

    @pytest.mark.asyncio
    async def test_successful_run(self, mock_playwright):
        results = await run_test(TEST, RunOptions(headless=True, trackers=(GA,)))

        assert [r.outcome for r in results] == ["PASS"]
        mock_playwright['playwright'].chromium.launch.assert_awaited_once_with(headless=True)
        assert mock_playwright['page'].routes[0].aborted
        assert_closed_once(mock_playwright)

    @pytest.mark.asyncio
    async def test_capture_attached_before_navigation(self, mock_playwright):
        await run_test(TEST, RunOptions(trackers=(GA,)))

        names = [c[0] for c in mock_playwright['page'].mock_calls if c[0] in ("route", "goto")]
        assert names == ["route", "goto"]

    @pytest.mark.asyncio
    async def test_no_trackers_no_interception(self, mock_playwright):
        """トラッカー未設定ならリクエストを横取りしない"""
        results = await run_test(TEST, RunOptions())

        mock_playwright['page'].route.assert_not_awaited()
        assert [r.outcome for r in results] == ["ERROR"]

    @pytest.mark.asyncio
    async def test_teardown_on_step_failure(self, mock_playwright):
        mock_playwright['page'].goto.side_effect = PlaywrightTimeoutError("Timeout 30000ms exceeded")

        with pytest.raises(NavigationError):
            await run_test(TEST, RunOptions(trackers=(GA,)))
        assert_closed_once(mock_playwright)

    @pytest.mark.asyncio
    async def test_teardown_on_launch_failure(self, mock_playwright):
        mock_playwright['playwright'].chromium.launch.side_effect = RuntimeError("no chromium")

        with pytest.raises(RuntimeError):
            await run_test(TEST, RunOptions())
        mock_playwright['playwright'].stop.assert_awaited_once()
        mock_playwright['browser'].close.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cleanup_runs_once(self, mock_playwright):
        async with TestRunner(RunOptions()) as runner:
            await runner.cleanup()
        assert_closed_once(mock_playwright)

    @pytest.mark.asyncio
    async def test_close_error_does_not_skip_rest(self, mock_playwright):
        mock_playwright['page'].close.side_effect = RuntimeError("target closed")

        await run_test(TEST, RunOptions(trackers=(GA,)))
        mock_playwright['browser'].close.assert_awaited_once()
        mock_playwright['playwright'].stop.assert_awaited_once()
