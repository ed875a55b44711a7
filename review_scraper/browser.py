"""
Browser-backed page driver for JavaScript-heavy review sites using Playwright.
"""

import asyncio
import logging
from typing import Optional

from playwright.async_api import async_playwright, Browser, Page

from .pages import location_of
from .tree import HtmlTree

logger = logging.getLogger(__name__)


class BrowserPage:
    """Drives one live browser tab; the tree is a snapshot of its current DOM."""

    def __init__(
        self,
        url: str,
        headless: bool = True,
        wait_for: Optional[str] = None,
        wait_time: int = 5000,
        click_timeout: int = 5000,
    ):
        self.url = url
        self.headless = headless
        self.wait_for = wait_for
        self.wait_time = wait_time
        self.click_timeout = click_timeout
        self.browser: Optional[Browser] = None
        self.page: Optional[Page] = None
        self.playwright = None
        self._tree = HtmlTree("")

    async def __aenter__(self):
        """Context manager entry."""
        self.playwright = await async_playwright().start()
        self.browser = await self.playwright.chromium.launch(headless=self.headless)
        self.page = await self.browser.new_page()
        await self._load(self.url)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        if self.page:
            await self.page.close()
        if self.browser:
            await self.browser.close()
        if self.playwright:
            await self.playwright.stop()

    @property
    def tree(self) -> HtmlTree:
        return self._tree

    @property
    def location(self) -> str:
        return location_of(self.page.url if self.page else self.url)

    async def _load(self, url: str) -> None:
        await self.page.goto(url, wait_until="networkidle", timeout=30000)

        # Wait for specific element if provided
        if self.wait_for:
            try:
                await self.page.wait_for_selector(self.wait_for, timeout=self.wait_time)
            except Exception as e:
                logger.warning("Timeout waiting for selector %r: %s", self.wait_for, e)
        else:
            await self.page.wait_for_load_state("domcontentloaded")
            await asyncio.sleep(1)  # Additional wait for dynamic content

        await self.sync()

    async def sync(self) -> None:
        if not self.page:
            raise RuntimeError("Browser not initialized. Use async with context manager.")
        self._tree = HtmlTree(await self.page.content())

    async def click(self, selector: str) -> None:
        if not self.page:
            raise RuntimeError("Browser not initialized.")
        await self.page.locator(selector).first.click(timeout=self.click_timeout)
