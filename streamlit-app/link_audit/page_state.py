"""
Page-state detection: tells a loaded page apart from a 404, a maintenance
page, or a page that did not finish rendering.
"""

import logging
from typing import Optional

from .schemas import (
    PageSnapshot, PageState,
    STATUS_LOADED, STATUS_BROKEN_404, STATUS_MAINTENANCE, STATUS_LOADING_ERROR,
)

logger = logging.getLogger(__name__)

MAINTENANCE_STATUS_CODES = (502, 503, 504)

MAINTENANCE_KEYWORDS = [
    'under maintenance',
    'temporarily unavailable',
    'maintenance mode',
    'service temporarily unavailable',
    'site maintenance',
    'under construction',
    'temporarily down',
    'service unavailable',
    '503 service unavailable',
    'maintenance in progress',
]

# Bodies shorter than this are treated as not fully rendered
MIN_BODY_TEXT_LENGTH = 100


def detect_page_status(snapshot: Optional[PageSnapshot], transport_status: Optional[int] = None) -> PageState:
    """Classify a loaded page as loaded, broken (404), under maintenance or a loading error."""
    try:
        if transport_status == 404:
            return PageState(STATUS_BROKEN_404, 'Broken Link 404 - Page not found')

        if transport_status in MAINTENANCE_STATUS_CODES:
            return PageState(STATUS_MAINTENANCE, f'Server error {transport_status} - Under maintenance')

        if snapshot is None or not snapshot.has_body:
            return PageState(STATUS_LOADING_ERROR, 'Page content not loaded')

        body_text = snapshot.body_text.lower()
        title_text = (snapshot.title or '').lower()

        for keyword in MAINTENANCE_KEYWORDS:
            if keyword in body_text or keyword in title_text:
                return PageState(STATUS_MAINTENANCE, f'Under maintenance - Found: "{keyword}"')

        if len(body_text.strip()) < MIN_BODY_TEXT_LENGTH:
            return PageState(STATUS_LOADING_ERROR, 'Page appears to be empty or not fully loaded')

        return PageState(STATUS_LOADED, 'Page loaded successfully')

    except Exception as e:
        logger.debug("Page status detection failed: %s", e)
        return PageState(STATUS_LOADING_ERROR, f'Error detecting page status: {e}')
