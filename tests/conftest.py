"""Shared fixtures for the link audit tests."""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

import pytest

from link_audit.config import AuditConfig
from link_audit.harvester import harvest_links_from_html
from link_audit.schemas import PageSnapshot

ORIGIN = "https://www.example-travel.com"
HOST = "www.example-travel.com"

FILLER = (
    "Discover glaciers, black sand beaches and the northern lights with our "
    "hand-picked itineraries and local guides across the whole island."
)


def page_html(content: str = "", title: str = "Example Travel") -> str:
    """A page whose body is long enough to count as rendered."""
    return f"<html><head><title>{title}</title></head><body>{content}<p>{FILLER}</p></body></html>"


@dataclass
class FakePage:
    """Scripted page: one snapshot per poll, the last one repeated."""
    snapshots: List[str] = field(default_factory=lambda: [page_html()])
    status_code: Optional[int] = 200
    error: Optional[BaseException] = None


class FakeContext:
    def __init__(self, url: str, page: FakePage):
        self.url = url
        self.page = page
        self.status_code = page.status_code
        self._polls = 0

    async def snapshot(self) -> PageSnapshot:
        html = self.page.snapshots[min(self._polls, len(self.page.snapshots) - 1)]
        self._polls += 1
        return PageSnapshot.from_html(self.url, html, self.status_code)


class FakeLoader:
    """PageLoader double that records opens, closes and concurrency."""

    def __init__(self, pages: Optional[Dict[str, Union[FakePage, List[FakePage]]]] = None, delay: float = 0.0):
        self.pages = pages or {}
        self.delay = delay
        self.opened: List[str] = []
        self.closed = 0
        self.in_flight = 0
        self.max_in_flight = 0

    def _page_for(self, url: str) -> FakePage:
        page = self.pages.get(url)
        if page is None:
            return FakePage(snapshots=[page_html("Not found")], status_code=404)
        if isinstance(page, list):
            opens = self.opened.count(url)
            return page[min(opens - 1, len(page) - 1)]
        return page

    @asynccontextmanager
    async def open(self, url: str, timeout: float):
        self.opened.append(url)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            page = self._page_for(url)
            if self.delay:
                await asyncio.sleep(self.delay)
            if page.error is not None:
                raise page.error
            yield FakeContext(url, page)
        finally:
            self.in_flight -= 1
            self.closed += 1


@pytest.fixture()
def config():
    """Audit config for the Iceland page with every delay set to zero."""
    return AuditConfig(
        origin=ORIGIN,
        page_path="/iceland",
        retry_delay=0,
        settle_delay=0,
        second_look_delay=0,
        cruise_initial_wait=0,
        cruise_poll_interval=0,
        cruise_timeout=1.0,
        confirmed=True,
    )


@pytest.fixture()
def loader():
    return FakeLoader()


AUDITED_PAGE = """
<html><body><div class="al-main">
  <div class="al-sec-four">
    <a href="/iceland/vik"><h3>Vik</h3></a>
    <a href="/iceland/land-tours"><h3>Land tours</h3></a>
    <a href="https://partner.example.org/">Partner</a>
  </div>
</div></body></html>
"""


class FakeBrowser(FakeLoader):
    """Loader that also harvests the audited page."""

    def __init__(self, pages=None, html=AUDITED_PAGE):
        super().__init__(pages)
        self.html = html
        self.harvested = []

    async def harvest_links(self, page_url, current_host):
        self.harvested.append((page_url, current_host))
        return harvest_links_from_html(self.html, current_host)
