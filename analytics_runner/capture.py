# capture.py
import asyncio
import logging
from typing import Dict, Iterable, List

from playwright.async_api import Page, Route

from .constants import WAIT_FOR_REQUESTS_COUNT, WAIT_FOR_REQUESTS_TIMEOUT_MS
from .decoder import decode_request_params
from .errors import CaptureTimeout, DecodeError, UnknownTracker
from .models import TrackerConfig

logger = logging.getLogger(__name__)


class RequestCapture:
    """Records outbound requests that match configured trackers.

    Every request of the page passes through ``handle_route`` before it is
    sent. A request is appended to the list of each tracker whose substring
    occurs in its URL, and is aborted if any of those trackers asks for it.
    """

    def __init__(self, trackers: Iterable[TrackerConfig]):
        self.trackers: List[TrackerConfig] = list(trackers)
        self._store: Dict[str, List[Dict[str, str]]] = {t.name: [] for t in self.trackers}
        self._changed = asyncio.Condition()

    async def attach(self, page: Page):
        # Must run before the first navigation
        await page.route("**/*", self.handle_route)
        logger.info(f"Request capture enabled for trackers: {', '.join(self._store) or '(none)'}")

    async def handle_route(self, route: Route):
        url = route.request.url
        matched = [t for t in self.trackers if t.url_substring in url]
        if not matched:
            await route.continue_()
            return

        try:
            params = decode_request_params(url)
        except DecodeError as e:
            logger.warning(f"Captured request could not be decoded: {e}")
            params = {}

        async with self._changed:
            for tracker in matched:
                self._store[tracker.name].append(dict(params))
                logger.debug(f"Captured {tracker.name} request #{len(self._store[tracker.name])}: {params}")
            self._changed.notify_all()

        if any(t.abort_on_match for t in matched):
            await route.abort()
        else:
            await route.continue_()

    def requests(self, tracker: str) -> List[Dict[str, str]]:
        """Snapshot of the decoded requests captured so far for ``tracker``."""
        if tracker not in self._store:
            raise UnknownTracker(tracker)
        return list(self._store[tracker])

    def count(self, tracker: str) -> int:
        if tracker not in self._store:
            raise UnknownTracker(tracker)
        return len(self._store[tracker])

    async def wait_for_requests(
        self,
        tracker: str,
        count: int = WAIT_FOR_REQUESTS_COUNT,
        timeout_ms: int = WAIT_FOR_REQUESTS_TIMEOUT_MS,
    ) -> int:
        """Block until ``tracker`` has captured at least ``count`` requests."""
        if tracker not in self._store:
            raise UnknownTracker(tracker)

        captured = self._store[tracker]
        async with self._changed:
            try:
                await asyncio.wait_for(
                    self._changed.wait_for(lambda: len(captured) >= count),
                    timeout_ms / 1000,
                )
            except asyncio.TimeoutError:
                raise CaptureTimeout(tracker, count, len(captured), timeout_ms) from None
        return len(captured)
