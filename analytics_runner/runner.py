# runner.py
"""
テスト実行オーケストレーター

ブラウザセッションを起動し、リクエストキャプチャを接続してからステップを実行する。
どの経路で終了してもセッションは一度だけ確実に閉じられる。
"""
import json
import logging
from typing import List, Optional

from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from .capture import RequestCapture
from .interpreter import StepInterpreter
from .models import AssertionResult, RunOptions, TestDefinition, results_to_json

logger = logging.getLogger(__name__)


class TestRunner:
    __test__ = False

    def __init__(self, options: Optional[RunOptions] = None):
        self.options = options or RunOptions()
        self.playwright = None
        self.browser: Browser | None = None
        self.context: BrowserContext | None = None
        self.page: Page | None = None
        self.capture = RequestCapture(self.options.trackers)
        self._closed = False

    async def __aenter__(self):
        try:
            await self.initialize()
        except BaseException:
            await self.cleanup()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.cleanup()

    async def initialize(self):
        self.playwright = await async_playwright().start()
        self.browser = await self.playwright.chromium.launch(headless=self.options.headless)
        self.context = await self.browser.new_context()
        self.page = await self.context.new_page()

        # リクエストはナビゲーション前に捕捉を開始する
        if self.options.trackers:
            await self.capture.attach(self.page)

    async def cleanup(self):
        if self._closed:
            return
        self._closed = True

        # 各リソースを個別に閉じ、失敗しても残りの解放は続ける
        for name, resource, close in (
            ("page", self.page, "close"),
            ("context", self.context, "close"),
            ("browser", self.browser, "close"),
            ("playwright", self.playwright, "stop"),
        ):
            if resource is None:
                continue
            try:
                await getattr(resource, close)()
            except Exception as e:
                logger.warning(f"Failed to close {name}: {e}")
        logger.info("Browser session closed")

    async def run(self, test: TestDefinition) -> List[AssertionResult]:
        interpreter = StepInterpreter(self.page, self.capture, self.options)
        try:
            results = await interpreter.run(test)
        except Exception as e:
            logger.error(f"Test '{test.name}' aborted: {e}")
            raise
        logger.info(f"Results for '{test.name}': {json.dumps(results_to_json(results), ensure_ascii=False)}")
        return results


async def run_test(test: TestDefinition, options: Optional[RunOptions] = None) -> List[AssertionResult]:
    """Run one test definition in a fresh browser session."""
    async with TestRunner(options) as runner:
        return await runner.run(test)
