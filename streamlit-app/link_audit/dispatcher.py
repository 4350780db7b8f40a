"""
Availability checker: runs the verifiers over a batch of links with a
bounded number of page loads in flight.
"""

import asyncio
import logging
import re
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, List, Optional, Sequence

from .config import AuditConfig
from .loader import PageLoader
from .patterns import PatternTag, is_true_destination
from .schemas import CheckResult, CheckedLink, Link
from .verifiers import ActivityVerifier, CruiseShipVerifier, CruiseVerifier, TourVerifier

logger = logging.getLogger(__name__)

TABLE_SECTION = 'Table'

# Minimum completed items before an ETA is shown
ETA_MIN_COMPLETED = 5

_ROOT_CRUISE_RE = re.compile(r'^/cruises/\d+')
_CRUISE_ID_RE = re.compile(r'cruises/\d+')
_TOUR_ID_RE = re.compile(r'/tours/\d+')


@dataclass(frozen=True)
class ProgressStatus:
    completed: int
    total: int
    elapsed: float
    remaining: Optional[float]  # None until enough items completed

    @property
    def percentage(self) -> int:
        return int(self.completed / self.total * 100) if self.total else 100

    def __str__(self) -> str:
        eta = f"~{_format_duration(self.remaining)}" if self.remaining is not None else "calculating..."
        return (
            f"Checking links: {self.completed}/{self.total} ({self.percentage}%) | "
            f"Time elapsed: {_format_duration(self.elapsed)} | Est. remaining: {eta}"
        )


def _format_duration(seconds: float) -> str:
    seconds = int(seconds)
    return f"{seconds // 60}m {seconds % 60}s"


def skipped_result(link: Link, reason: str, special_page_type: Optional[str] = None) -> CheckResult:
    return CheckResult(
        url=link.href,
        original_title=link.text,
        available=None,
        error=reason,
        skipped=True,
        special_page_type=special_page_type,
    )


class AvailabilityChecker:
    """Routes each link to its verifier and keeps at most N checks in flight."""

    def __init__(
        self,
        loader: PageLoader,
        config: AuditConfig,
        on_status: Optional[Callable[[str], None]] = None,
        on_progress: Optional[Callable[[ProgressStatus], None]] = None,
    ):
        self.config = config
        self.on_status = on_status or (lambda msg: None)
        self.on_progress = on_progress or (lambda status: None)

        self.tours = TourVerifier(loader, config)
        self.cruises = CruiseVerifier(loader, config)
        self.cruise_ships = CruiseShipVerifier(loader, config)
        self.activities = ActivityVerifier(loader, config)

    async def check_link(self, link: Link) -> CheckResult:
        """Check one link according to its pattern."""
        tag = link.url_pattern.tag

        if tag is PatternTag.DESTINATION_SPECIAL_PAGE:
            return skipped_result(
                link,
                'Special destination page - automatically skipped',
                special_page_type=link.href.rstrip('/').split('/')[-1],
            )

        url = self.config.absolute_url(link.href)

        if tag is PatternTag.TOUR_WITH_ID:
            return await self.tours.check(url, link.text)
        if tag is PatternTag.CRUISE_SHIP:
            return await self.cruise_ships.check(url, link.text)
        if tag is PatternTag.CRUISE_WITH_ID:
            return await self.cruises.check(url, link.text)
        if tag is PatternTag.TOUR_ACTIVITY:
            return await self.activities.check(url, link.text, link.url_pattern)
        if link.url_pattern.is_destination and is_true_destination(link.href, link.url_pattern):
            return await self.activities.check(url, link.text, link.url_pattern)

        if link.section == TABLE_SECTION:
            return await self._check_table_link(link, url)

        return skipped_result(link, 'Not a checkable link pattern')

    async def _check_table_link(self, link: Link, url: str) -> CheckResult:
        """Table links are checked even when their pattern is not, by href shape."""
        href = link.href
        if _ROOT_CRUISE_RE.search(href) or ('/cruises/' in href and _CRUISE_ID_RE.search(href)):
            if link.url_pattern.tag is PatternTag.CRUISE_SHIP:
                return await self.cruise_ships.check(url, link.text)
            return await self.cruises.check(url, link.text)
        if '/tours/' in href and _TOUR_ID_RE.search(href):
            return await self.tours.check(url, link.text)
        return await self.activities.check(url, link.text, link.url_pattern)

    async def check_all(self, links: Sequence[Link], max_concurrent: Optional[int] = None) -> List[CheckedLink]:
        """Check every link, with at most max_concurrent checks in flight.

        Each finished slot immediately takes the next queued link. Results
        come back in completion order.
        """
        if max_concurrent is None:
            max_concurrent = self.config.max_concurrent
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")

        queue: Deque[Link] = deque(links)
        in_progress: List[Link] = []
        results: List[CheckedLink] = []
        total = len(queue)
        completed = 0
        start_time = time.monotonic()

        def report_progress() -> None:
            elapsed = time.monotonic() - start_time
            remaining = None
            if completed > ETA_MIN_COMPLETED:
                remaining = elapsed / completed * (total - completed)
            status = ProgressStatus(completed=completed, total=total, elapsed=elapsed, remaining=remaining)
            self.on_progress(status)
            self.on_status(str(status))
            logger.info("%s", status)

        async def worker() -> None:
            nonlocal completed
            while queue:
                link = queue.popleft()
                in_progress.append(link)
                try:
                    result = await self.check_link(link)
                except Exception as e:
                    logger.exception("Checking %s failed", link.href)
                    result = CheckResult(url=link.href, original_title=link.text, available=False, error=str(e))
                results.append(CheckedLink(link=link, result=result))
                in_progress.remove(link)
                completed += 1
                report_progress()

        report_progress()
        await asyncio.gather(*(worker() for _ in range(min(max_concurrent, total))))
        assert not queue and not in_progress
        return results
