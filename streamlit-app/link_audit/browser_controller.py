"""
Browser Controller for the Link Audit
Python implementation using Playwright.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional, List, AsyncIterator

from playwright.async_api import (
    async_playwright, Browser, BrowserContext, Page,
    TimeoutError as PlaywrightTimeoutError,
)

from .harvester import SectionHarvest, harvest_links_from_html
from .schemas import PageSnapshot

logger = logging.getLogger(__name__)


class PageRenderingContext:
    """One isolated browser context holding a single loaded page."""

    def __init__(self, context: BrowserContext, page: Page):
        self._context = context
        self._page = page
        self.status_code: Optional[int] = None

    async def goto(self, url: str, timeout: float) -> None:
        try:
            response = await self._page.goto(url, wait_until='load', timeout=timeout * 1000)
        except PlaywrightTimeoutError as e:
            raise asyncio.TimeoutError(f"Timeout while loading {url}") from e
        self.status_code = response.status if response else None

    async def snapshot(self) -> PageSnapshot:
        state = await self._page.evaluate('''() => ({
            title: document.title || '',
            bodyText: document.body ? document.body.textContent : null,
        })''')
        html = await self._page.content()
        return PageSnapshot(
            url=self._page.url,
            html=html,
            title=state['title'],
            body_text=state['bodyText'],
            status_code=self.status_code,
        )

    async def close(self) -> None:
        await self._context.close()


class BrowserController:
    """Controls a headless browser that opens one context per checked page."""

    def __init__(self, width: int = 1280, height: int = 900, headless: bool = True):
        self.width = width
        self.height = height
        self.headless = headless

        self._playwright = None
        self._browser: Optional[Browser] = None

    async def launch(self) -> None:
        """Launch the browser."""
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.headless,
            args=['--no-sandbox', '--disable-setuid-sandbox']
        )
        logger.info("Browser launched (headless=%s)", self.headless)

    async def close(self) -> None:
        """Close the browser."""
        if self._browser:
            await self._browser.close()
        if self._playwright:
            await self._playwright.stop()
        self._browser = None
        self._playwright = None

    async def __aenter__(self) -> "BrowserController":
        await self.launch()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _new_context(self) -> PageRenderingContext:
        if not self._browser:
            raise RuntimeError("Browser not launched")
        context = await self._browser.new_context(
            viewport={'width': self.width, 'height': self.height},
        )
        try:
            page = await context.new_page()
        except Exception:
            await context.close()
            raise
        return PageRenderingContext(context, page)

    @asynccontextmanager
    async def open(self, url: str, timeout: float) -> AsyncIterator[PageRenderingContext]:
        """Load `url` in a fresh browser context, closing it on every exit path."""
        rendering = await self._new_context()
        try:
            await rendering.goto(url, timeout)
            yield rendering
        finally:
            try:
                await rendering.close()
            except Exception as e:
                logger.debug("Closing context for %s failed: %s", url, e)

    async def harvest_links(self, page_url: str, current_host: str, timeout: float = 30.0) -> List[SectionHarvest]:
        """Load the audited page and harvest the links of its content region."""
        async with self.open(page_url, timeout) as rendering:
            await asyncio.sleep(1.0)
            snapshot = await rendering.snapshot()
        return harvest_links_from_html(snapshot.html, current_host)
