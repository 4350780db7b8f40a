"""
URL Pattern Classification

Maps a link's href to a closed set of pattern tags and decides which tags
represent inventory worth checking ("true destinations").

The order of the checks in classify() is a tie-break: a numeric ID and a
free-text slug can occupy the same path position, so ID-bearing patterns are
checked before name-bearing ones, and named content before special endings.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import urlparse


class PatternTag(str, Enum):
    CRUISE_SHIP = "cruise-ship"
    CRUISE_WITH_ID = "cruise-with-id"
    TOUR_WITH_ID = "tour-with-id"
    OPERATOR_WITH_ID = "operator-with-id"
    TOUR_ACTIVITY = "tour-activity"
    DESTINATION_SPECIAL_PAGE = "destination-special-page"
    TOURS_CATEGORY = "tours-category"
    CRUISES_CATEGORY = "cruises-category"
    DESTINATION = "multi-level/destination"
    ARTICLES = "multi-level/articles"
    ARTICLE = "multi-level/articles/article-name"
    STORIES = "multi-level/stories"
    STORY = "multi-level/stories/story-name"
    TOURS_ACTIVITY = "multi-level/tours/activity"
    ROOT_TOURS_CATEGORY = "multi-level/tours-category"
    ROOT_CRUISES_CATEGORY = "multi-level/cruises-category"
    DEALS = "multi-level/deals"
    # Legacy tags, accepted from older harvests but never produced by classify()
    LEGACY_DESTINATION = "destination"
    LEGACY_SUBDESTINATION = "destination/subdestination"
    EXTERNAL = "external"
    OTHER = "other"


_DESTINATION_PREFIX = PatternTag.DESTINATION.value + "-"


@dataclass(frozen=True)
class UrlPattern:
    """A pattern tag, plus the path depth for multi-level destinations."""
    tag: PatternTag
    level: Optional[int] = None

    def __str__(self) -> str:
        if self.tag is PatternTag.DESTINATION:
            return f"{_DESTINATION_PREFIX}{self.level}"
        return self.tag.value

    @property
    def is_destination(self) -> bool:
        return self.tag in (
            PatternTag.DESTINATION,
            PatternTag.LEGACY_DESTINATION,
            PatternTag.LEGACY_SUBDESTINATION,
        )

    @classmethod
    def parse(cls, value: str) -> "UrlPattern":
        """Parse a rendered tag string back into a UrlPattern ("other" if unknown)."""
        if value.startswith(_DESTINATION_PREFIX):
            level = value[len(_DESTINATION_PREFIX):]
            if level.isdigit() and int(level) >= 1:
                return cls(PatternTag.DESTINATION, int(level))
            return cls(PatternTag.OTHER)
        try:
            tag = PatternTag(value)
        except ValueError:
            return cls(PatternTag.OTHER)
        if tag is PatternTag.DESTINATION:
            return cls(PatternTag.OTHER)
        return cls(tag)


def pattern(tag: PatternTag) -> UrlPattern:
    return UrlPattern(tag)


def destination(level: int) -> UrlPattern:
    return UrlPattern(PatternTag.DESTINATION, level)


# ID-bearing patterns, matched against the path (first match wins)
_ROOT_CRUISE_SHIP_RE = re.compile(r'^cruises/\d+')
_CRUISE_WITH_ID_RE = re.compile(r'/cruises/\d+')
_TOUR_WITH_ID_RE = re.compile(r'tours/\d+')
_OPERATOR_WITH_ID_RE = re.compile(r'operators/\d+')
_TOUR_ACTIVITY_RE = re.compile(r'tours/[^/\d]+$')
_NUMERIC_RE = re.compile(r'^\d+$')

# Endings that are special pages at any depth
ALWAYS_SPECIAL_ENDINGS = ('land-tours', 'ships', 'videos', 'myTrips')

# Endings that are special pages only below a destination
DESTINATION_SPECIAL_ENDINGS = ('cruises', 'tours', 'hotels', 'deals', 'info', 'articles')

ROOT_CATEGORY_PAGES = {
    'articles': PatternTag.ARTICLES,
    'stories': PatternTag.STORIES,
    'tours': PatternTag.ROOT_TOURS_CATEGORY,
    'cruises': PatternTag.ROOT_CRUISES_CATEGORY,
    'deals': PatternTag.DEALS,
}

# Segments that disqualify a path from being a multi-level destination
RESERVED_SEGMENTS = ('articles', 'stories', 'deals', 'tours', 'cruises', 'operators')

# Segments that mark a legacy destination path as editorial
NON_DESTINATION_SEGMENTS = (
    'articles', 'stories', 'deals', 'guides', 'contact',
    'about', 'faq', 'reviews', 'news', 'gallery', 'photos',
    'blog', 'privacy', 'terms', 'careers', 'events',
)


def _same_host(hostname: str, current_host: str) -> bool:
    return (
        hostname == current_host
        or hostname == f"www.{current_host}"
        or current_host == f"www.{hostname}"
    )


def _resolve_path(href: str, current_host: str) -> Optional[str]:
    """Return the site-relative path for href, or None when it is off-site."""
    if not href.startswith('http'):
        return href
    try:
        parsed = urlparse(href)
        hostname = parsed.hostname
    except ValueError:
        return None
    if not hostname or not _same_host(hostname, (current_host or '').lower()):
        return None
    return parsed.path


def classify(href: str, current_host: str) -> UrlPattern:
    """Classify an href (absolute or relative) into a UrlPattern. Never raises."""
    path = _resolve_path(href or '', current_host)
    if path is None:
        return pattern(PatternTag.EXTERNAL)

    if path.startswith('/'):
        path = path[1:]

    if _ROOT_CRUISE_SHIP_RE.search(path):
        return pattern(PatternTag.CRUISE_SHIP)
    if _CRUISE_WITH_ID_RE.search(path):
        return pattern(PatternTag.CRUISE_WITH_ID)
    if _TOUR_WITH_ID_RE.search(path):
        return pattern(PatternTag.TOUR_WITH_ID)
    if _OPERATOR_WITH_ID_RE.search(path):
        return pattern(PatternTag.OPERATOR_WITH_ID)
    if _TOUR_ACTIVITY_RE.search(path):
        return pattern(PatternTag.TOUR_ACTIVITY)

    segments = [s for s in path.split('/') if s]

    # Named content comes before special endings: "x/articles/name" is an article
    if len(segments) >= 3:
        second_to_last, last = segments[-2], segments[-1]
        if second_to_last == 'articles':
            return pattern(PatternTag.ARTICLE)
        if second_to_last == 'stories':
            return pattern(PatternTag.STORY)
        if second_to_last == 'tours' and not _NUMERIC_RE.match(last):
            return pattern(PatternTag.TOURS_ACTIVITY)

    last_segment = segments[-1] if segments else None

    if last_segment in ALWAYS_SPECIAL_ENDINGS:
        return pattern(PatternTag.DESTINATION_SPECIAL_PAGE)

    # A lone "cruises" or "tours" is the root category page itself
    if last_segment in DESTINATION_SPECIAL_ENDINGS and len(segments) > 1:
        return pattern(PatternTag.DESTINATION_SPECIAL_PAGE)

    if len(segments) == 1 and segments[0] in ROOT_CATEGORY_PAGES:
        return pattern(ROOT_CATEGORY_PAGES[segments[0]])

    if re.search(r'/tours$', path):
        return pattern(PatternTag.TOURS_CATEGORY)
    if re.search(r'/cruises$', path):
        return pattern(PatternTag.CRUISES_CATEGORY)

    if segments and not any(s in RESERVED_SEGMENTS for s in segments):
        return destination(len(segments))

    return pattern(PatternTag.OTHER)


# Tags checked as entities even though they are not destinations
CHECKABLE_ENTITY_TAGS = frozenset({
    PatternTag.TOUR_WITH_ID,
    PatternTag.CRUISE_WITH_ID,
    PatternTag.TOUR_ACTIVITY,
    PatternTag.TOURS_CATEGORY,
    PatternTag.CRUISES_CATEGORY,
    PatternTag.OPERATOR_WITH_ID,
})

# Editorial and content tags (an /articles, /stories, /deals, /tours or /cruises qualifier)
CONTENT_TAGS = frozenset({
    PatternTag.ARTICLES,
    PatternTag.ARTICLE,
    PatternTag.STORIES,
    PatternTag.STORY,
    PatternTag.DEALS,
    PatternTag.TOURS_ACTIVITY,
    PatternTag.ROOT_TOURS_CATEGORY,
    PatternTag.ROOT_CRUISES_CATEGORY,
})

LEGACY_DESTINATION_TAGS = frozenset({
    PatternTag.LEGACY_DESTINATION,
    PatternTag.LEGACY_SUBDESTINATION,
})

# Never inventory
NEVER_DESTINATION_TAGS = frozenset({
    PatternTag.DESTINATION_SPECIAL_PAGE,
    PatternTag.CRUISE_SHIP,
    PatternTag.EXTERNAL,
    PatternTag.OTHER,
})


def is_true_destination(path: str, url_pattern: UrlPattern) -> bool:
    """Decide whether a classified link is an inventory item worth checking."""
    tag = url_pattern.tag
    if path.startswith('/'):
        path = path[1:]

    if tag is PatternTag.DESTINATION_SPECIAL_PAGE:
        return False
    if tag in CHECKABLE_ENTITY_TAGS:
        return True
    if tag in CONTENT_TAGS:
        return False
    if tag is PatternTag.DESTINATION:
        return True
    if tag in LEGACY_DESTINATION_TAGS:
        return not any(s in NON_DESTINATION_SEGMENTS for s in path.split('/'))
    if tag in NEVER_DESTINATION_TAGS:
        return False
    raise AssertionError(f"Unhandled pattern tag: {tag!r}")


_READABLE_TYPES = {
    PatternTag.TOUR_WITH_ID: 'Tour',
    PatternTag.CRUISE_SHIP: 'Cruise Ship',
    PatternTag.CRUISE_WITH_ID: 'Cruise',
    PatternTag.OPERATOR_WITH_ID: 'Operator',
    PatternTag.TOUR_ACTIVITY: 'Activity',
    PatternTag.TOURS_CATEGORY: 'Tours',
    PatternTag.CRUISES_CATEGORY: 'Cruises',
    PatternTag.DESTINATION_SPECIAL_PAGE: 'Special Destination Page',
    PatternTag.ARTICLES: 'Article',
    PatternTag.ARTICLE: 'Article',
    PatternTag.STORIES: 'Story',
    PatternTag.STORY: 'Story',
    PatternTag.DEALS: 'Deal',
}


def readable_link_type(url_pattern: UrlPattern) -> str:
    """Human readable name of a pattern, for tables and exports."""
    if url_pattern.tag is PatternTag.DESTINATION:
        return 'Destination' if url_pattern.level == 1 else 'Subdestination'
    if url_pattern.tag in _READABLE_TYPES:
        return _READABLE_TYPES[url_pattern.tag]
    return str(url_pattern).split('/')[-1] or 'Unknown'


def title_case_slug(slug: str) -> str:
    """'oasis-of-the-seas' -> 'Oasis Of The Seas'"""
    return ' '.join(word[:1].upper() + word[1:] for word in slug.replace('-', ' ').split(' '))


def url_path_to_readable_text(url: str) -> str:
    """Turn the meaningful segment of a URL path into a title-cased label."""
    path = url
    if path.startswith('http'):
        try:
            path = urlparse(path).path
        except ValueError:
            return ''
    if path.startswith('/'):
        path = path[1:]

    segments = path.split('/')
    if len(segments) > 1:
        text_segment = segments[-1]
        # IDs and listing endings say nothing; use the segment before them
        if _NUMERIC_RE.match(text_segment) or text_segment.startswith(('tours', 'cruises')):
            text_segment = segments[-2]
    else:
        text_segment = segments[0]

    return title_case_slug(text_segment)
