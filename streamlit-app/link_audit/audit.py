"""
Audit runner: harvest the page, count what would be checked, and check it
once the user has confirmed.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .browser_controller import BrowserController
from .config import AuditConfig
from .dispatcher import AvailabilityChecker, ProgressStatus
from .loader import PageLoader
from .patterns import classify, is_true_destination
from .report import (
    CheckCounts, all_links, attach_availability, build_report,
    count_links_to_check, select_links_to_check,
)
from .schemas import CheckResult, Link, Report
from .verifiers import ActivityVerifier

logger = logging.getLogger(__name__)


@dataclass
class HarvestOutcome:
    """A harvested page, before any availability check."""
    report: Report
    links_to_check: List[Link] = field(default_factory=list)

    @property
    def counts(self) -> CheckCounts:
        return count_links_to_check(self.links_to_check)


async def harvest_page(browser: BrowserController, config: AuditConfig) -> HarvestOutcome:
    page_url = config.absolute_url(config.page_path)
    harvests = await browser.harvest_links(page_url, config.current_host)
    report = build_report(harvests)
    links_to_check = select_links_to_check(all_links(harvests))
    logger.info(
        "Harvested %d links from %s, %d to check",
        report.summary.total_links, page_url, len(links_to_check),
    )
    return HarvestOutcome(report=report, links_to_check=links_to_check)


async def check_harvest(
    loader: PageLoader,
    config: AuditConfig,
    outcome: HarvestOutcome,
    on_status: Optional[Callable[[str], None]] = None,
    on_progress: Optional[Callable[[ProgressStatus], None]] = None,
) -> Report:
    """Check the selected links and attach the availability summary.

    Raises:
        PermissionError: when the config carries no user confirmation.
    """
    if not config.confirmed:
        raise PermissionError("Availability check not confirmed")
    if not outcome.links_to_check:
        logger.info("No links found to check.")
        return outcome.report

    checker = AvailabilityChecker(loader, config, on_status=on_status, on_progress=on_progress)
    checked = await checker.check_all(outcome.links_to_check)
    return attach_availability(outcome.report, checked)


async def run_audit(
    config: AuditConfig,
    on_status: Optional[Callable[[str], None]] = None,
    on_progress: Optional[Callable[[ProgressStatus], None]] = None,
    browser: Optional[BrowserController] = None,
) -> Report:
    """
    Harvest the configured page and, if confirmed, check its links.

    Without confirmation the harvested report is returned unchecked.
    A browser is launched for the run unless one is passed in.
    """
    if browser is None:
        async with BrowserController(headless=config.headless) as owned:
            return await run_audit(config, on_status, on_progress, browser=owned)

    status = on_status or (lambda msg: None)
    status(f"Harvesting links from {config.absolute_url(config.page_path)}")
    outcome = await harvest_page(browser, config)

    counts = outcome.counts
    status(f"Found {outcome.report.summary.total_links} links, {counts.total} to check")
    if not config.confirmed:
        logger.info("Availability check not confirmed, returning harvested report")
        return outcome.report

    return await check_harvest(browser, config, outcome, on_status, on_progress)


async def probe_url(
    loader: PageLoader,
    config: AuditConfig,
    url: str,
    expected_title: str,
) -> Optional[CheckResult]:
    """Check a single destination URL against an expected title.

    Returns None when the URL is not a true destination.
    """
    url_pattern = classify(url, config.current_host)
    logger.info("Probing %s (pattern %s, expected title %r)", url, url_pattern, expected_title)

    if not is_true_destination(url, url_pattern):
        logger.info("Not recognized as a destination URL: %s", url)
        return None

    result = await ActivityVerifier(loader, config).check(config.absolute_url(url), expected_title, url_pattern)
    logger.info(
        "Probe result for %s: available=%s status=%s method=%s user_tools_info=%r page_title=%r error=%s",
        url, result.available, result.page_status, result.check_method,
        result.user_tools_info, result.page_title, result.error,
    )
    return result
