"""
JSON and CSV exports of an audit report.
"""

import csv
import io
import json
from typing import Dict, List, Sequence

from .patterns import PatternTag, readable_link_type
from .schemas import (
    CheckedLink, Report, report_to_dict,
    STATUS_BROKEN_404, STATUS_MAINTENANCE, STATUS_TIMEOUT,
)

CSV_COLUMNS = ['Link Type', 'Text', 'URL', 'Section', 'Available', 'Check Method', 'Level', 'Details']

JSON_FILE_NAME = 'link_extraction_data.json'
CSV_FILE_NAME = 'link_extraction_data.csv'

# href ending -> label, first match wins
SPECIAL_PAGE_LABELS = [
    ('land-tours', 'Land Tours'),
    ('ships', 'Ships'),
    ('videos', 'Videos'),
    ('myTrips', 'My Trips'),
    ('articles', 'Articles'),
    ('cruises', 'Cruises'),
    ('tours', 'Tours'),
    ('hotels', 'Hotels'),
    ('deals', 'Deals'),
    ('info', 'Info'),
]


def availability_label(checked: CheckedLink) -> str:
    result = checked.result
    if result.final_status == STATUS_BROKEN_404:
        return 'Broken 404'
    if result.final_status == STATUS_MAINTENANCE:
        return 'Maintenance'
    if result.final_status == STATUS_TIMEOUT:
        return 'Timeout'
    if result.available is True:
        return 'Yes'
    if result.available is False:
        return 'No'
    if checked.link.url_pattern.tag is PatternTag.DESTINATION_SPECIAL_PAGE:
        return 'Skipped (Special)'
    return 'Unknown'


def special_page_label(href: str) -> str:
    for ending, label in SPECIAL_PAGE_LABELS:
        if href.endswith(ending):
            return label
    return 'Unknown'


def details_text(checked: CheckedLink) -> str:
    """One-line description of what the check found."""
    link, result = checked.link, checked.result
    tag = link.url_pattern.tag

    if tag is PatternTag.DESTINATION_SPECIAL_PAGE:
        return f"Special destination page ({special_page_label(link.href)}) - automatically skipped"
    if result.final_status == STATUS_BROKEN_404:
        return 'Broken Link 404 - Page not found'
    if result.final_status == STATUS_MAINTENANCE:
        return f"Under maintenance (tried {result.retry_attempts or 1} times)"
    if result.final_status == STATUS_TIMEOUT:
        return f"Timeout after {result.retry_attempts or 1} attempts"
    if tag is PatternTag.TOUR_WITH_ID:
        return f"Tour ID: {result.tour_id or '-'}, Price: {result.price_text or 'Not found'}"
    if tag is PatternTag.CRUISE_SHIP:
        return f"Ship: {result.ship_name or '-'}, Ships Available: {len(result.ship_options)}"
    if tag is PatternTag.CRUISE_WITH_ID:
        return f"Cruise ID: {result.cruise_id or '-'}, Price: {result.price_text or 'Not found'}"
    if tag in (PatternTag.TOUR_ACTIVITY, PatternTag.TOURS_ACTIVITY):
        return f"Activity: {result.activity_text or '-'}"
    return f"User Tools Info: {result.user_tools_info or 'Not found'}"


def checked_link_row(checked: CheckedLink) -> Dict[str, str]:
    link, result = checked.link, checked.result
    return {
        'Link Type': readable_link_type(link.url_pattern),
        'Text': link.text or '',
        'URL': link.href,
        'Section': link.section or '',
        'Available': availability_label(checked),
        'Check Method': result.check_method or 'user-tools-info',
        'Level': str(result.destination_level or 1),
        'Details': details_text(checked),
    }


def report_rows(report: Report) -> List[Dict[str, str]]:
    if report.availability is None:
        return []
    return [checked_link_row(c) for c in report.availability.details]


def report_to_json(report: Report) -> str:
    return json.dumps(report_to_dict(report), indent=2, ensure_ascii=False)


def report_to_csv(report: Report) -> str:
    """Render the checked links as CSV, every field quoted."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, quoting=csv.QUOTE_ALL, lineterminator='\n')
    writer.writeheader()
    writer.writerows(report_rows(report))
    return buffer.getvalue()


def counts_by_status(checked: Sequence[CheckedLink]) -> Dict[str, int]:
    """Outcome counts in the categories shown to users."""
    counts: Dict[str, int] = {}
    for c in checked:
        label = availability_label(c)
        counts[label] = counts.get(label, 0) + 1
    return counts
