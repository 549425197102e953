# actions.py
"""Browser-control operations used by the step interpreter.

Playwright failures are translated into NavigationError / ElementNotFound so
callers only need to know about the runner's own exceptions.
"""
from typing import Any, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, TimeoutError as PlaywrightTimeoutError

from .constants import DEFAULT_TIMEOUT_MS, NAVIGATION_WAIT_UNTIL, TYPE_DELAY_MS
from .errors import AssertionEvaluationError, ElementNotFound, NavigationError, StepExecutionError

CLICK_SCRIPT = "(selector) => { document.querySelector(selector).click(); }"
CLEAR_SCRIPT = "(selector) => { document.querySelector(selector).value = ''; }"

# Entries are flattened to their primitive fields. GTM pushes DOM elements
# (gtm.element) which cannot be serialized.
DATA_LAYER_SCRIPT = """
(name) => {
    const layer = window[name];
    if (!Array.isArray(layer)) {
        return null;
    }
    return layer.map(entry => {
        if (entry === null || typeof entry !== 'object') {
            return null;
        }
        const flat = {};
        for (const [key, value] of Object.entries(entry)) {
            if (value === undefined) {
                continue;
            }
            // Nested objects and DOM nodes are kept only as a placeholder
            flat[key] = value === null || ['string', 'number', 'boolean'].includes(typeof value) ? value : {};
        }
        return flat;
    });
}
"""


async def goto(page: Page, url: str, timeout_ms: int = DEFAULT_TIMEOUT_MS):
    try:
        await page.goto(url, wait_until=NAVIGATION_WAIT_UNTIL, timeout=timeout_ms)
    except PlaywrightError as e:
        raise NavigationError(f"Navigation to {url} failed: {e}") from e


async def wait_for_element(page: Page, selector: str, timeout_ms: int = DEFAULT_TIMEOUT_MS):
    # 'attached' = present in the DOM, visible or not
    try:
        await page.wait_for_selector(selector, state="attached", timeout=timeout_ms)
    except PlaywrightTimeoutError as e:
        raise ElementNotFound(selector, f"not attached after {timeout_ms}ms") from e
    except PlaywrightError as e:
        raise ElementNotFound(selector, str(e)) from e


async def click(page: Page, selector: str, timeout_ms: int = DEFAULT_TIMEOUT_MS):
    await wait_for_element(page, selector, timeout_ms)
    try:
        await page.evaluate(CLICK_SCRIPT, selector)
    except PlaywrightError as e:
        raise ElementNotFound(selector, f"click failed: {e}") from e


async def clear_value(page: Page, selector: str):
    try:
        await page.evaluate(CLEAR_SCRIPT, selector)
    except PlaywrightError as e:
        raise ElementNotFound(selector, f"clear failed: {e}") from e


async def type_text(
    page: Page,
    selector: str,
    text: str,
    clear_first: bool = False,
    delay_ms: int = TYPE_DELAY_MS,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
):
    await wait_for_element(page, selector, timeout_ms)
    if clear_first:
        await clear_value(page, selector)
    try:
        await page.type(selector, text, delay=delay_ms, timeout=timeout_ms)
    except PlaywrightError as e:
        raise ElementNotFound(selector, f"typing failed: {e}") from e


async def pause(page: Page, ms: float):
    await page.wait_for_timeout(ms)


async def read_data_layer(page: Page, name: str) -> Optional[Any]:
    """Current contents of the page-global event layer, or None if absent."""
    try:
        return await page.evaluate(DATA_LAYER_SCRIPT, name)
    except PlaywrightError as e:
        if "has been closed" in str(e):
            raise StepExecutionError(f"Page closed while reading event layer '{name}': {e}") from e
        raise AssertionEvaluationError(f"Reading event layer '{name}' failed: {e}") from e
