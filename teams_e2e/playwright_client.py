"""
Direct Playwright client for the team E2E suite.

Launches the browser in-process and hands out isolated contexts, one per
scenario, each bound to the application's base URL so scenarios navigate
with relative paths.

Usage:
    async with PlaywrightClient() as client:
        context = await client.new_context()
        page = await context.new_page()
        await page.goto("/teams")
"""
import logging
from typing import Optional

from playwright.async_api import Browser, BrowserContext, Playwright, async_playwright

from teams_e2e.config import settings

logger = logging.getLogger(__name__)


class PlaywrightClient:
    """Owns one Playwright driver and one browser process per worker."""

    def __init__(
        self,
        browser_type: Optional[str] = None,
        headless: Optional[bool] = None,
        timeout: Optional[int] = None,
        navigation_timeout: Optional[int] = None,
        base_url: Optional[str] = None,
    ):
        """
        Args:
            browser_type: chromium, firefox or webkit; defaults to E2E_BROWSER
            headless: None means PLAYWRIGHT_HEADLESS
            timeout: action timeout (ms) applied to every context
            navigation_timeout: navigation timeout (ms) applied to every context
            base_url: what relative paths resolve against in every context
        """
        self.browser_type = browser_type or settings.browser_type
        self.headless = settings.playwright_headless if headless is None else headless
        self.timeout = timeout or settings.action_timeout_ms
        self.navigation_timeout = navigation_timeout or settings.navigation_timeout_ms
        self.base_url = base_url or settings.base_url

        self._driver: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def connect(self):
        self._driver = await async_playwright().start()
        launcher = getattr(self._driver, self.browser_type)
        self._browser = await launcher.launch(headless=self.headless)
        logger.debug("Launched %s (headless=%s)", self.browser_type, self.headless)

    async def new_context(self, **options) -> BrowserContext:
        """A fresh context: own cookies, own headers, client timeouts applied."""
        if self._browser is None:
            raise RuntimeError("PlaywrightClient is not connected; use 'async with' or call connect()")

        options.setdefault("base_url", self.base_url)
        context = await self._browser.new_context(**options)
        context.set_default_timeout(self.timeout)
        context.set_default_navigation_timeout(self.navigation_timeout)
        return context

    async def close(self):
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._driver is not None:
            await self._driver.stop()
            self._driver = None
