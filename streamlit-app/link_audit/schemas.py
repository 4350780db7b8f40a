"""
Data schemas for the Link Audit.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, List, Dict, Any

from bs4 import BeautifulSoup

from .patterns import UrlPattern


# Page statuses
STATUS_LOADED = "loaded"
STATUS_BROKEN_404 = "broken_link_404"
STATUS_MAINTENANCE = "under_maintenance"
STATUS_LOADING_ERROR = "loading_error"
STATUS_TIMEOUT = "timeout"

# Statuses that end the retry loop right away
TERMINAL_STATUSES = (STATUS_LOADED, STATUS_BROKEN_404)


@dataclass(frozen=True)
class Link:
    text: str
    href: str
    url_pattern: UrlPattern
    is_external: bool = False
    has_description: bool = False
    section: str = ""
    section_title: str = ""


@dataclass
class PageSnapshot:
    """The rendered state of a page at one point in time."""
    url: str
    html: str = ""
    title: str = ""
    body_text: Optional[str] = None  # None when the document has no body
    status_code: Optional[int] = None
    _soup: Optional[BeautifulSoup] = field(default=None, repr=False, compare=False)

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            self._soup = BeautifulSoup(self.html or "", "html.parser")
        return self._soup

    @property
    def has_body(self) -> bool:
        return self.body_text is not None

    def select_one(self, selector: str):
        return self.soup.select_one(selector)

    def select(self, selector: str) -> list:
        return self.soup.select(selector)

    def text_of(self, selector: str) -> Optional[str]:
        """Stripped text of the first match, or None when missing or empty."""
        element = self.select_one(selector)
        if element is None:
            return None
        return element.get_text().strip() or None

    def heading_or_title(self) -> Optional[str]:
        return self.text_of('h1') or self.title or None

    @classmethod
    def from_html(cls, url: str, html: str, status_code: Optional[int] = None) -> "PageSnapshot":
        """Build a snapshot from raw markup (used by tests and static loaders)."""
        soup = BeautifulSoup(html or "", "html.parser")
        title_el = soup.find('title')
        body = soup.find('body')
        return cls(
            url=url,
            html=html,
            title=title_el.get_text().strip() if title_el else "",
            body_text=body.get_text() if body is not None else None,
            status_code=status_code,
            _soup=soup,
        )


@dataclass(frozen=True)
class PageState:
    status: str
    message: str


@dataclass
class CheckResult:
    url: str
    original_title: str = ""
    available: Optional[bool] = False
    page_status: Optional[str] = None
    error: Optional[str] = None
    final_status: Optional[str] = None
    retry_attempts: Optional[int] = None
    skipped: bool = False
    special_page_type: Optional[str] = None
    check_method: Optional[str] = None
    page_title: Optional[str] = None
    url_as_text: Optional[str] = None

    # Tours and cruises
    tour_id: Optional[str] = None
    cruise_id: Optional[str] = None
    price: Optional[float] = None
    price_text: Optional[str] = None
    price_selector: Optional[str] = None
    departure_info: Optional[str] = None
    duration_info: Optional[str] = None

    # Cruise ships
    ship_name: Optional[str] = None
    ship_options: List[str] = field(default_factory=list)
    tours_url: Optional[str] = None

    # Activities and destinations
    activity_text: Optional[str] = None
    user_tools_info: Optional[str] = None
    experience_options: List[str] = field(default_factory=list)
    activity_options: List[str] = field(default_factory=list)
    destination_level: Optional[int] = None
    match_details: List[str] = field(default_factory=list)

    def with_retry_outcome(self, final_status: str, attempts: int) -> "CheckResult":
        return replace(self, final_status=final_status, retry_attempts=attempts)


@dataclass(frozen=True)
class CheckedLink:
    link: Link
    result: CheckResult


@dataclass
class SectionLinks:
    title: str
    links: List[Link] = field(default_factory=list)


@dataclass
class PatternEntry:
    section: str
    section_title: str
    text: str
    href: str


@dataclass
class ReportSummary:
    total_links: int = 0
    section_types: Dict[str, int] = field(default_factory=dict)
    url_patterns: Dict[str, int] = field(default_factory=dict)


@dataclass
class AvailabilitySummary:
    checked_links: int = 0
    available: int = 0
    unavailable: int = 0
    unknown: int = 0
    details: List[CheckedLink] = field(default_factory=list)


@dataclass
class Report:
    summary: ReportSummary = field(default_factory=ReportSummary)
    sections: Dict[str, List[SectionLinks]] = field(default_factory=dict)
    url_patterns: Dict[str, List[PatternEntry]] = field(default_factory=dict)
    availability: Optional[AvailabilitySummary] = None


def link_to_dict(link: Link) -> Dict[str, Any]:
    return {
        'text': link.text,
        'href': link.href,
        'urlPattern': str(link.url_pattern),
        'isExternal': link.is_external,
        'hasDescription': link.has_description,
        'section': link.section,
        'sectionTitle': link.section_title,
    }


def result_to_dict(result: CheckResult) -> Dict[str, Any]:
    return {
        'url': result.url,
        'originalTitle': result.original_title,
        'available': result.available,
        'pageStatus': result.page_status,
        'error': result.error,
        'finalStatus': result.final_status,
        'retryAttempts': result.retry_attempts,
        'skipped': result.skipped,
        'specialPageType': result.special_page_type,
        'checkMethod': result.check_method,
        'pageTitle': result.page_title,
        'urlAsText': result.url_as_text,
        'tourId': result.tour_id,
        'cruiseId': result.cruise_id,
        'price': result.price,
        'priceText': result.price_text,
        'priceSelector': result.price_selector,
        'departureInfo': result.departure_info,
        'durationInfo': result.duration_info,
        'shipName': result.ship_name,
        'shipOptions': list(result.ship_options),
        'toursUrl': result.tours_url,
        'activityText': result.activity_text,
        'userToolsInfo': result.user_tools_info,
        'experienceOptions': list(result.experience_options),
        'activityOptions': list(result.activity_options),
        'destinationLevel': result.destination_level,
        'matchDetails': list(result.match_details),
    }


def report_to_dict(report: Report) -> Dict[str, Any]:
    """Convert a Report to a dictionary for JSON serialization."""
    data: Dict[str, Any] = {
        'summary': {
            'totalLinks': report.summary.total_links,
            'sectionTypes': dict(report.summary.section_types),
            'urlPatterns': dict(report.summary.url_patterns),
        },
        'sections': {
            section_type: [
                {'title': s.title, 'links': [link_to_dict(l) for l in s.links]}
                for s in groups
            ]
            for section_type, groups in report.sections.items()
        },
        'urlPatterns': {
            pattern: [
                {'section': e.section, 'sectionTitle': e.section_title, 'text': e.text, 'href': e.href}
                for e in entries
            ]
            for pattern, entries in report.url_patterns.items()
        },
    }
    if report.availability is not None:
        availability = report.availability
        data['availability'] = {
            'checkedLinks': availability.checked_links,
            'available': availability.available,
            'unavailable': availability.unavailable,
            'unknown': availability.unknown,
            'details': [
                {**link_to_dict(c.link), 'checkResult': result_to_dict(c.result)}
                for c in availability.details
            ],
        }
    return data
