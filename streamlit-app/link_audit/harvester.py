"""
Link harvesting from the content region of an audited page.

Links are read from the sections of the `.al-main` region; each section
carries an `al-sec-<type>` class and optionally a `.al-sec-title h2` heading.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from .patterns import classify
from .schemas import Link


CONTENT_REGION_SELECTOR = '.al-main, [id="al-main"]'
SECTION_SELECTOR = '[class*="al-sec-"]'
SECTION_CLASS_PREFIX = 'al-sec-'
NON_SECTION_CLASSES = ('al-sec-title', 'al-sec-content')

# Where each section type keeps a link's description
DESCRIPTION_SELECTORS = {
    'four': '.al-lnk-details',
    'sumtiles': '.al-lnk-details',
    'articles': '.al-lnk-details',
    'table': '.al-lp-table-summary',
}

MAX_LABEL_LENGTH = 100


class ContentRegionNotFound(LookupError):
    """The page has no .al-main content region."""


@dataclass
class SectionHarvest:
    section_type: str
    title: str
    links: List[Link] = field(default_factory=list)


def _section_type(section: Tag) -> Optional[str]:
    for class_name in section.get('class', []):
        if class_name.startswith(SECTION_CLASS_PREFIX) and class_name not in NON_SECTION_CLASSES:
            return class_name[len(SECTION_CLASS_PREFIX):]
    return None


def _link_label(anchor: Tag, href: str) -> str:
    """Pick the best human label for an anchor."""
    title_element = anchor.select_one('.al-lnk-title h3') or anchor.find(['h1', 'h2', 'h3', 'h4', 'h5', 'h6'])
    if title_element is not None:
        text = title_element.get_text().strip()
        if text:
            return text

    text = re.sub(r'\s+', ' ', anchor.get_text()).strip()
    if len(text) > MAX_LABEL_LENGTH:
        # Too long to be a label; probably a whole tile
        text = (
            anchor.get('title')
            or re.sub(r'[-_]', ' ', href.split('/')[-1]).strip()
            or '[No text label]'
        )

    if not text:
        img = anchor.find('img')
        if img is not None:
            text = img.get('alt') or img.get('title') or ''

    return text or anchor.get('title') or '[No text]'


def _has_description(anchor: Tag, section_type: str) -> bool:
    selector = DESCRIPTION_SELECTORS.get(section_type.lower())
    if not selector:
        return False
    element = anchor.select_one(selector)
    return element is not None and len(element.get_text().strip()) > 0


def extract_links_from_element(element: Tag, current_host: str, section_type: str = "",
                               section: str = "", section_title: str = "") -> List[Link]:
    """Extract the checkable anchors of one element."""
    links = []
    for anchor in element.select('a[href]'):
        href = anchor.get('href') or ''
        if not href or href == '#' or href.startswith('javascript:'):
            continue

        links.append(Link(
            text=_link_label(anchor, href),
            href=href,
            url_pattern=classify(href, current_host),
            is_external=href.startswith('http') and current_host not in href,
            has_description=_has_description(anchor, section_type) if section_type else False,
            section=section,
            section_title=section_title,
        ))
    return links


def harvest_links_from_html(html: str, current_host: str) -> List[SectionHarvest]:
    """Harvest links section by section from rendered page markup.

    Raises:
        ContentRegionNotFound: when the page has no `.al-main` element.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    main = soup.select_one(CONTENT_REGION_SELECTOR)
    if main is None:
        raise ContentRegionNotFound("Cannot find .al-main element on this page")

    harvests = []
    for section in main.select(SECTION_SELECTOR):
        section_type = _section_type(section)
        if not section_type:
            continue

        readable_type = section_type[:1].upper() + section_type[1:]
        title_element = section.select_one('.al-sec-title h2')
        section_title = title_element.get_text().strip() if title_element else ""
        section_title = section_title or f"{readable_type} Section"

        links = extract_links_from_element(section, current_host, section_type, readable_type, section_title)
        harvests.append(SectionHarvest(section_type=readable_type, title=section_title, links=links))
    return harvests
