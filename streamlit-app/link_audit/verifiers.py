"""
Availability Verifiers

Each verifier owns the rule for "is this entity still live":

- Tours: a price element exists and its amount is greater than zero
- Cruises: same price rule, after polling until the page has rendered
- Cruise ships: the ship is listed in the ship filter of the page's /tours listing
- Activities: the activity appears in the experience/activity option lists
- Destinations: the page's user-tools label matches the link, with permissive
  fallbacks (page title match, then "the page has a title at all")

Every verifier resolves to a CheckResult; load errors, timeouts and
exceptions while reading the page become failure-shaped results.
"""

import asyncio
import logging
import re
from dataclasses import replace
from typing import Callable, List, Optional, Tuple

from .config import AuditConfig
from .loader import PageLoader
from .page_state import detect_page_status, MIN_BODY_TEXT_LENGTH, MAINTENANCE_STATUS_CODES
from .patterns import PatternTag, UrlPattern, title_case_slug, url_path_to_readable_text
from .retry import retry_with_maintenance_detection
from .schemas import (
    CheckResult, PageSnapshot,
    STATUS_LOADED, STATUS_LOADING_ERROR, STATUS_TIMEOUT,
)
from .text_match import texts_match, contains_either_way

logger = logging.getLogger(__name__)


TOUR_PRICE_SELECTORS = [
    '.al-price-summary .al-amount',
    '.al-price-summary .al-price-min .al-amount',
    '.al-price-summary .al-price .al-amount',
    '.al-price-min .al-amount',
    '.al-price .al-amount',
    '[class*="price"] .al-amount',
    '.al-amount',
]

CRUISE_PRICE_SELECTORS = [
    '.al-price-summary .al-amount',
    '.al-price .al-amount',
    '.al-price-min .al-amount',
    '[class*="price"] .al-amount',
    '.al-amount',
    '.cruise-price',
    '.price-value',
]

# A cruise page is considered rendered once one of these shows up
CRUISE_READY_PRICE_SELECTOR = '.al-price-summary .al-amount'
CRUISE_MAIN_CONTENT_SELECTORS = ['.al-main', 'h1', '.al-contactbar']

SHIP_LIST_SELECTOR = '.al-il-fields-ship ul'

USER_TOOLS_SELECTORS = [
    '.al-user-tools-info > div:first-child span',
    '.al-user-tools-info span',
    '.al-user-tools-info div span',
    '.al-user-tools-info > div:first-child',
    '.al-user-tools-info',
]

EXPERIENCE_LIST_SELECTORS = [
    '.al-il-fields-experience ul',
    '.al-il-fields-experience',
    '[class*="experience"] ul',
    '.experience-list ul',
]

ACTIVITY_LIST_SELECTORS = [
    '.al-il-fields-activity ul',
    '.al-il-fields-activity',
    '[class*="activity"] ul',
    '.activity-list ul',
]

OPTION_LABEL_SELECTOR = 'li label, li, label'

CHECK_METHOD_USER_TOOLS = 'user-tools-info'
CHECK_METHOD_ACTIVITY = 'activity-check'

_PRICE_RE = re.compile(r'[\d,]+')
_TOUR_ID_RE = re.compile(r'/tours/(\d+)')
_CRUISE_ID_RE = re.compile(r'/cruises/(\d+)')
_SHIP_SLUG_RE = re.compile(r'/cruises/\d+/([^/]+)')
_ACTIVITY_SLUG_RE = re.compile(r'/tours/([^/]+)/?$')


def parse_price(price_text: Optional[str]) -> Optional[float]:
    """First numeric run of a price label, commas stripped ('$1,299' -> 1299.0)."""
    if not price_text:
        return None
    match = _PRICE_RE.search(price_text)
    if not match:
        return None
    digits = match.group(0).replace(',', '')
    return float(digits) if digits else None


def find_price(snapshot: PageSnapshot, selectors: List[str]) -> Tuple[Optional[float], Optional[str], str]:
    """Return (price, price_text, selector) for the first selector that matches."""
    for selector in selectors:
        element = snapshot.select_one(selector)
        if element is not None:
            price_text = element.get_text().strip()
            return parse_price(price_text), price_text, selector
    return None, None, ''


def collect_options(snapshot: PageSnapshot, list_selectors: List[str]) -> List[str]:
    """Labels of the first option list found by list_selectors.

    Nested markup (`<li><label>`) matches more than once; labels are deduplicated
    in page order.
    """
    for selector in list_selectors:
        container = snapshot.select_one(selector)
        if container is not None:
            texts = (el.get_text().strip() for el in container.select(OPTION_LABEL_SELECTOR))
            return list(dict.fromkeys(t for t in texts if t))
    return []


def _match_group(pattern: re.Pattern, url: str) -> Optional[str]:
    match = pattern.search(url)
    return match.group(1) if match else None


class PageVerifier:
    """Shared loading and failure handling for the verifiers."""

    kind = "page"

    def __init__(self, loader: PageLoader, config: AuditConfig):
        self.loader = loader
        self.config = config

    async def _load_settled(self, url: str, timeout: float) -> PageSnapshot:
        """Load url, wait for client-side rendering, and snapshot it."""
        async with self.loader.open(url, timeout) as context:
            await asyncio.sleep(self.config.settle_delay)
            snapshot = await context.snapshot()
            if not snapshot.has_body or len(snapshot.body_text.strip()) < MIN_BODY_TEXT_LENGTH:
                await asyncio.sleep(self.config.second_look_delay)
                snapshot = await context.snapshot()
            return snapshot

    async def _attempt(
        self,
        url: str,
        timeout: float,
        attempt: int,
        base: CheckResult,
        inspect: Callable[[PageSnapshot], CheckResult],
    ) -> CheckResult:
        """One load-and-inspect attempt; never raises."""
        def failure(status: str, message: str) -> CheckResult:
            return replace(base, available=False, page_status=status, error=f"Attempt {attempt}: {message}")

        try:
            snapshot = await asyncio.wait_for(self._load_settled(url, timeout), timeout)
        except asyncio.TimeoutError:
            return failure(STATUS_TIMEOUT, "Timeout while loading page")
        except Exception as e:
            return failure(STATUS_LOADING_ERROR, f"Error loading page ({e})")

        state = detect_page_status(snapshot, snapshot.status_code)
        if state.status != STATUS_LOADED:
            logger.debug("%s: page status %s - %s", url, state.status, state.message)
            return failure(state.status, state.message)

        try:
            return inspect(snapshot)
        except Exception as e:
            logger.debug("Inspecting %s failed: %s", url, e, exc_info=True)
            return failure(STATUS_LOADING_ERROR, str(e))

    async def _with_retries(self, url: str, check) -> CheckResult:
        return await retry_with_maintenance_detection(
            check,
            max_retries=self.config.max_retries,
            retry_delay=self.config.retry_delay,
            url=url,
        )


class TourVerifier(PageVerifier):
    kind = "tour"

    async def check(self, url: str, original_title: str) -> CheckResult:
        base = CheckResult(
            url=url,
            original_title=original_title,
            url_as_text=url_path_to_readable_text(url),
            tour_id=_match_group(_TOUR_ID_RE, url),
        )

        def inspect(snapshot: PageSnapshot) -> CheckResult:
            price, price_text, selector = find_price(snapshot, TOUR_PRICE_SELECTORS)
            available = price is not None and price > 0
            page_title = snapshot.heading_or_title()
            if not available:
                logger.info(
                    "Unavailable tour: %s | title=%r | tour_id=%s | price_text=%r | page_title=%r",
                    url, original_title, base.tour_id, price_text or 'NOT FOUND', page_title or 'NOT FOUND',
                )
            return replace(
                base,
                available=available,
                page_status=STATUS_LOADED,
                price=price,
                price_text=price_text,
                price_selector=selector,
                page_title=page_title,
                departure_info=snapshot.text_of('.al-tour-departure'),
                duration_info=snapshot.text_of('.al-tour-duration'),
                error=None,
            )

        async def attempt(n: int) -> CheckResult:
            return await self._attempt(url, self.config.tour_timeout, n, base, inspect)

        return await self._with_retries(url, attempt)


class CruiseVerifier(PageVerifier):
    """Price check for destination cruises; polls instead of retrying."""

    kind = "cruise"

    async def _wait_until_rendered(self, url: str, base: CheckResult) -> CheckResult:
        async with self.loader.open(url, self.config.cruise_timeout) as context:
            status_code = context.status_code
            if status_code == 404 or status_code in MAINTENANCE_STATUS_CODES:
                state = detect_page_status(None, status_code)
                return replace(base, available=False, page_status=state.status, error=state.message)

            await asyncio.sleep(self.config.cruise_initial_wait)
            while True:
                snapshot = await context.snapshot()
                if snapshot.has_body and self._is_rendered(snapshot):
                    break
                await asyncio.sleep(self.config.cruise_poll_interval)

        return self._inspect(url, base, snapshot)

    @staticmethod
    def _is_rendered(snapshot: PageSnapshot) -> bool:
        if snapshot.select_one(CRUISE_READY_PRICE_SELECTOR) is not None:
            return True
        return any(snapshot.select_one(s) is not None for s in CRUISE_MAIN_CONTENT_SELECTORS)

    def _inspect(self, url: str, base: CheckResult, snapshot: PageSnapshot) -> CheckResult:
        price, price_text, selector = find_price(snapshot, CRUISE_PRICE_SELECTORS)
        available = price is not None and price > 0
        page_title = snapshot.heading_or_title()
        if not available:
            logger.info(
                "Unavailable cruise: %s | title=%r | cruise_id=%s | price_text=%r | page_title=%r",
                url, base.original_title, base.cruise_id, price_text or 'NOT FOUND', page_title or 'NOT FOUND',
            )
        return replace(
            base,
            available=available,
            page_status=STATUS_LOADED,
            price=price,
            price_text=price_text,
            price_selector=selector,
            page_title=page_title,
            departure_info=snapshot.text_of('.al-cruise-departure'),
            duration_info=snapshot.text_of('.al-cruise-duration'),
            error=None,
        )

    async def check(self, url: str, original_title: str) -> CheckResult:
        base = CheckResult(
            url=url,
            original_title=original_title,
            url_as_text=url_path_to_readable_text(url),
            cruise_id=_match_group(_CRUISE_ID_RE, url),
        )
        try:
            return await asyncio.wait_for(self._wait_until_rendered(url, base), self.config.cruise_timeout)
        except asyncio.TimeoutError:
            return replace(base, available=False, page_status=STATUS_TIMEOUT, error='Timeout while loading page')
        except Exception as e:
            return replace(base, available=False, page_status=STATUS_LOADING_ERROR, error=f'Error checking page: {e}')


class CruiseShipVerifier(PageVerifier):
    """Checks a ship against the ship filter of the audited page's tours listing."""

    kind = "cruise-ship"

    async def check(self, url: str, original_title: str) -> CheckResult:
        slug = _match_group(_SHIP_SLUG_RE, url)
        tours_url = self.config.tours_url
        base = CheckResult(
            url=url,
            original_title=original_title,
            ship_name=title_case_slug(slug) if slug else None,
            tours_url=tours_url,
        )
        ship_name = base.ship_name

        def inspect(snapshot: PageSnapshot) -> CheckResult:
            ship_options = []
            container = snapshot.select_one(SHIP_LIST_SELECTOR)
            if container is not None:
                texts = (label.get_text().strip() for label in container.select('li label'))
                ship_options = [t for t in texts if t]

            available = bool(ship_name and ship_options) and any(
                contains_either_way(option, ship_name) or contains_either_way(option, original_title)
                for option in ship_options
            )
            if not available:
                logger.info(
                    "Unavailable cruise ship: %s | title=%r | ship=%r | ships_found=%d | tours_url=%s",
                    url, original_title, ship_name or 'NOT EXTRACTED', len(ship_options), tours_url,
                )
            return replace(
                base,
                available=available,
                page_status=STATUS_LOADED,
                page_title=snapshot.heading_or_title(),
                ship_options=ship_options,
                error=None,
            )

        async def attempt(n: int) -> CheckResult:
            return await self._attempt(tours_url, self.config.cruise_ship_timeout, n, base, inspect)

        return await self._with_retries(url, attempt)


class ActivityVerifier(PageVerifier):
    """Activities and destinations; the rule depends on the link's pattern."""

    kind = "activity"

    @staticmethod
    def _destination_level(url_pattern: Optional[UrlPattern]) -> int:
        if url_pattern is not None and url_pattern.tag is PatternTag.DESTINATION and url_pattern.level:
            return url_pattern.level
        return 1

    @staticmethod
    def _activity_available(activity_text: str, experience_options: List[str],
                            activity_options: List[str]) -> bool:
        in_experience = any(texts_match(option, activity_text) for option in experience_options)
        in_activity = any(contains_either_way(option, activity_text) for option in activity_options)
        return in_experience or in_activity

    @staticmethod
    def _destination_available(user_tools_info: Optional[str], original_title: str, url_as_text: str,
                               page_title: Optional[str], match_details: List[str]) -> bool:
        available = False

        if user_tools_info:
            available = any([
                bool(original_title) and texts_match(user_tools_info, original_title),
                texts_match(user_tools_info, url_as_text),
                bool(page_title) and texts_match(user_tools_info, page_title),
            ])
            match_details.append(f"User tools info check: {available}")

        if not available and page_title:
            available = (
                (bool(original_title) and texts_match(page_title, original_title))
                or texts_match(page_title, url_as_text)
            )
            if available:
                match_details.append("Page title fallback: True")

        # Last resort: a loaded page with a title is probably fine
        if not available:
            available = bool(page_title)
            if available:
                match_details.append("Basic page load fallback: True")

        return available

    async def check(self, url: str, original_title: str, url_pattern: Optional[UrlPattern] = None) -> CheckResult:
        slug = _match_group(_ACTIVITY_SLUG_RE, url)
        activity_text = title_case_slug(slug) if slug else None
        url_as_text = url_path_to_readable_text(url)
        is_destination = url_pattern is not None and url_pattern.is_destination
        base = CheckResult(
            url=url,
            original_title=original_title,
            url_as_text=url_as_text,
            activity_text=activity_text,
            destination_level=self._destination_level(url_pattern),
        )

        def inspect(snapshot: PageSnapshot) -> CheckResult:
            user_tools_info = None
            if is_destination:
                for selector in USER_TOOLS_SELECTORS:
                    element = snapshot.select_one(selector)
                    if element is not None:
                        user_tools_info = element.get_text().strip()
                        break

            experience_options = collect_options(snapshot, EXPERIENCE_LIST_SELECTORS)
            activity_options = collect_options(snapshot, ACTIVITY_LIST_SELECTORS)
            page_title = snapshot.heading_or_title()

            available = False
            match_details: List[str] = []
            if activity_text and (experience_options or activity_options):
                available = self._activity_available(activity_text, experience_options, activity_options)
                match_details.append(f"Activity check: {available}")
            elif is_destination:
                available = self._destination_available(
                    user_tools_info, original_title, url_as_text, page_title, match_details,
                )

            if not available:
                logger.info(
                    "Unavailable: %s | title=%r | pattern=%s | user_tools=%r | page_title=%r | matches=%s",
                    url, original_title, url_pattern, user_tools_info or 'NOT FOUND',
                    page_title or 'NOT FOUND', ', '.join(match_details) or 'None',
                )

            return replace(
                base,
                available=available,
                page_status=STATUS_LOADED,
                user_tools_info=user_tools_info,
                page_title=page_title,
                experience_options=experience_options,
                activity_options=activity_options,
                check_method=CHECK_METHOD_USER_TOOLS if is_destination else CHECK_METHOD_ACTIVITY,
                match_details=match_details,
                error=None,
            )

        async def attempt(n: int) -> CheckResult:
            return await self._attempt(url, self.config.activity_timeout, n, base, inspect)

        return await self._with_retries(url, attempt)
