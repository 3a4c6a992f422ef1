"""Browser session — a single Playwright page driving the example harness."""

from __future__ import annotations

import asyncio
import logging

from playwright.async_api import Browser, Error as PlaywrightError, Page, Playwright, async_playwright

from src.errors import RenderError, SessionError, SessionInitError
from src.models.config import FrameworkConfig
from src.models.snapshot import Example, RenderBox

logger = logging.getLogger(__name__)

# Resolves once the harness has rendered the example and the browser painted it.
_RENDER_SCRIPT = """
([harness, description]) => new Promise((resolve) => {
    window[harness].renderExample(description, (result) => {
        requestAnimationFrame(() => resolve(result));
    });
})
"""


class BrowserSession:
    """Owns one browser page. Calls must not overlap: there is one DOM,
    one viewport and one active render at a time."""

    def __init__(self, config: FrameworkConfig):
        self.config = config
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._page: Page | None = None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("Browser session has not been started")
        return self._page

    async def start(self) -> None:
        logger.debug("Launching %s (headless=%s)", self.config.browser, self.config.headless)
        try:
            self._playwright = await async_playwright().start()
            launcher = getattr(self._playwright, self.config.browser)
            self._browser = await launcher.launch(headless=self.config.headless)
            viewport = self.config.default_viewport
            self._page = await self._browser.new_page(
                viewport={"width": viewport.width, "height": viewport.height},
            )
        except PlaywrightError as e:
            raise SessionInitError(f"Could not start {self.config.browser}: {e}") from e

    async def load_test_page(self) -> None:
        url = self.config.test_page_url
        logger.info("Loading test page %s", url)
        try:
            await self.page.goto(url)
        except PlaywrightError as e:
            raise SessionInitError(f"Could not load {url}: {e}") from e

    async def get_initialization_errors(self) -> list[str]:
        errors = await self._query_harness("errors || []")
        return [str(e) for e in errors]

    async def get_all_examples(self) -> list[Example]:
        payload = await self._query_harness("getAllExamples()")
        return [Example.from_harness(item) for item in payload or []]

    async def resize_viewport(self, width: int, height: int) -> None:
        try:
            await asyncio.wait_for(
                self.page.set_viewport_size({"width": width, "height": height}),
                timeout=self.config.script_timeout_seconds,
            )
        except asyncio.TimeoutError:
            raise SessionError(f"Resizing the viewport to {width}x{height} timed out") from None
        except PlaywrightError as e:
            raise SessionError(f"Could not resize the viewport to {width}x{height}: {e}") from e

    async def render(self, description: str) -> RenderBox:
        """Render one example and return its bounding box."""
        try:
            result = await self._evaluate(_RENDER_SCRIPT, [self.config.harness_global, description])
        except asyncio.TimeoutError:
            raise RenderError(
                description, f"Script timed out after {self.config.script_timeout_seconds}s"
            ) from None
        except PlaywrightError as e:
            raise RenderError(description, str(e)) from e
        if not result or result.get("error"):
            raise RenderError(description, (result or {}).get("error") or "no result returned")
        return RenderBox.from_harness(result)

    async def take_screenshot(self, description: str) -> bytes:
        try:
            return await self.page.screenshot(type="png")
        except PlaywrightError as e:
            raise RenderError(description, f"Screenshot failed: {e}") from e

    async def close(self) -> None:
        """Release the browser. Safe to call after a failed ``start``."""
        try:
            if self._browser is not None:
                await self._browser.close()
        except PlaywrightError as e:
            logger.warning("Failed to close browser cleanly: %s", e)
        finally:
            self._browser = None
            self._page = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None

    async def _query_harness(self, expression: str):
        script = f"() => window.{self.config.harness_global}.{expression}"
        try:
            return await self._evaluate(script)
        except asyncio.TimeoutError:
            raise SessionInitError(f"Harness did not answer `{expression}` in time") from None
        except PlaywrightError as e:
            raise SessionInitError(f"Harness call `{expression}` failed: {e}") from e

    async def _evaluate(self, script: str, arg=None):
        """Evaluate in the page with a hard ceiling on script duration."""
        return await asyncio.wait_for(
            self.page.evaluate(script, arg),
            timeout=self.config.script_timeout_seconds,
        )
