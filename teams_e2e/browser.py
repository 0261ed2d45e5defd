"""Thin wrapper around a Playwright page for scenario steps."""
from __future__ import annotations

import re
from typing import Any, Dict, Pattern, Union

from playwright.async_api import BrowserContext, Error as PlaywrightError, Locator, Page

from teams_e2e.errors import ToolError

UrlMatcher = Union[str, Pattern[str]]


class Browser:
    """Convenience wrapper over a Playwright page.

    Actions raise ToolError naming the action and its arguments, so a failed
    step says what it was trying to do. Locators are returned unwrapped for use
    with Playwright's `expect`.
    """

    def __init__(self, page: Page) -> None:
        self._page = page

    @property
    def page(self) -> Page:
        return self._page

    @property
    def context(self) -> BrowserContext:
        return self._page.context

    @property
    def current_url(self) -> str:
        return self._page.url

    # ---- navigation ------------------------------------------------------------
    async def goto(self, path: str, wait_until: str = "load") -> int | None:
        """Navigate to a path (relative to the context's base URL) and return the status."""
        try:
            response = await self._page.goto(path, wait_until=wait_until)
        except PlaywrightError as exc:
            raise ToolError(name="goto", payload={"path": path, "wait_until": wait_until}, message=str(exc))
        return response.status if response else None

    async def wait_for_url(self, url: UrlMatcher) -> str:
        try:
            await self._page.wait_for_url(url)
        except PlaywrightError as exc:
            raise ToolError(name="wait_for_url", payload={"url": _describe(url)}, message=str(exc))
        return self._page.url

    async def wait_for_path(self, path: str) -> str:
        """Wait until the URL's path (query string ignored) equals `path`."""
        pattern = re.compile(rf"^[a-z]+://[^/]+{re.escape(path)}(?:[?#].*)?$")
        return await self.wait_for_url(pattern)

    async def wait_for_state(self, state: str = "load") -> None:
        try:
            await self._page.wait_for_load_state(state)
        except PlaywrightError as exc:
            raise ToolError(name="wait_for_state", payload={"state": state}, message=str(exc))

    async def wait_for_selector(self, selector: str, state: str = "visible") -> None:
        try:
            await self._page.wait_for_selector(selector, state=state)
        except PlaywrightError as exc:
            raise ToolError(name="wait_for_selector", payload={"selector": selector, "state": state}, message=str(exc))

    # ---- element lookup --------------------------------------------------------
    def locator(self, selector: str) -> Locator:
        return self._page.locator(selector)

    def by_test_id(self, test_id: str) -> Locator:
        return self._page.get_by_test_id(test_id)

    def by_text(self, text: str, exact: bool = False) -> Locator:
        return self._page.get_by_text(text, exact=exact)

    def by_role(self, role: str, name: str | None = None) -> Locator:
        return self._page.get_by_role(role, name=name)  # type: ignore[arg-type]

    def by_placeholder(self, text: str) -> Locator:
        return self._page.get_by_placeholder(text)

    # ---- actions ---------------------------------------------------------------
    async def click(self, target: Union[str, Locator]) -> None:
        locator = self.locator(target) if isinstance(target, str) else target
        try:
            await locator.click()
        except PlaywrightError as exc:
            raise ToolError(name="click", payload={"target": str(target)}, message=str(exc))

    async def fill(self, target: Union[str, Locator], value: str) -> None:
        locator = self.locator(target) if isinstance(target, str) else target
        try:
            await locator.fill(value)
        except PlaywrightError as exc:
            raise ToolError(name="fill", payload={"target": str(target), "value": value}, message=str(exc))

    async def press(self, selector: str, key: str) -> None:
        try:
            await self._page.press(selector, key)
        except PlaywrightError as exc:
            raise ToolError(name="press", payload={"selector": selector, "key": key}, message=str(exc))

    async def select(self, selector: str, value: str) -> None:
        try:
            await self._page.select_option(selector, value)
        except PlaywrightError as exc:
            raise ToolError(name="select", payload={"selector": selector, "value": value}, message=str(exc))

    async def count(self, target: Union[str, Locator]) -> int:
        locator = self.locator(target) if isinstance(target, str) else target
        return await locator.count()

    async def text(self, target: Union[str, Locator]) -> str:
        locator = self.locator(target) if isinstance(target, str) else target
        try:
            return (await locator.text_content()) or ""
        except PlaywrightError as exc:
            raise ToolError(name="text", payload={"target": str(target)}, message=str(exc))

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        try:
            return await self._page.evaluate(script, arg)
        except PlaywrightError as exc:
            raise ToolError(name="evaluate", payload={"script": script}, message=str(exc))

    # ---- context-level switches -----------------------------------------------
    async def set_extra_headers(self, headers: Dict[str, str]) -> None:
        await self._page.set_extra_http_headers(headers)


def _describe(url: UrlMatcher) -> str:
    return url if isinstance(url, str) else url.pattern
