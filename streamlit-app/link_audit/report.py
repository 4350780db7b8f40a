"""
Report building: link inventory counts, check selection, confirmation
counts and the availability summary.
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence

from .dispatcher import TABLE_SECTION
from .harvester import SectionHarvest
from .patterns import PatternTag, CHECKABLE_ENTITY_TAGS, CONTENT_TAGS, is_true_destination
from .schemas import (
    AvailabilitySummary, CheckedLink, Link, PatternEntry, Report, SectionLinks,
)

# Editorial pages are sent through the checker only to be reported as skipped
REPORTED_CONTENT_TAGS = CONTENT_TAGS - {
    PatternTag.TOURS_ACTIVITY, PatternTag.ROOT_TOURS_CATEGORY, PatternTag.ROOT_CRUISES_CATEGORY,
}


def all_links(harvests: Iterable[SectionHarvest]) -> List[Link]:
    return [link for harvest in harvests for link in harvest.links]


def build_report(harvests: Sequence[SectionHarvest]) -> Report:
    """Aggregate harvested sections into counts by section type and pattern."""
    report = Report()
    for harvest in harvests:
        section_type = harvest.section_type
        if section_type not in report.sections:
            report.sections[section_type] = []
            report.summary.section_types[section_type] = 0

        if not harvest.links:
            continue

        report.sections[section_type].append(SectionLinks(title=harvest.title, links=list(harvest.links)))
        report.summary.total_links += len(harvest.links)
        report.summary.section_types[section_type] += len(harvest.links)

        for link in harvest.links:
            pattern_key = str(link.url_pattern)
            report.summary.url_patterns[pattern_key] = report.summary.url_patterns.get(pattern_key, 0) + 1
            report.url_patterns.setdefault(pattern_key, []).append(PatternEntry(
                section=link.section,
                section_title=link.section_title,
                text=link.text,
                href=link.href,
            ))
    return report


def should_check(link: Link) -> bool:
    """Whether a harvested link enters the availability checker.

    Special pages and content pages are included so they are reported as
    skipped with a reason.
    """
    tag = link.url_pattern.tag
    if link.section == TABLE_SECTION:
        return True
    if tag is PatternTag.DESTINATION_SPECIAL_PAGE or tag is PatternTag.CRUISE_SHIP:
        return True
    if tag in CHECKABLE_ENTITY_TAGS:
        return True
    if link.url_pattern.is_destination:
        return is_true_destination(link.href, link.url_pattern)
    return tag in REPORTED_CONTENT_TAGS


def select_links_to_check(links: Iterable[Link]) -> List[Link]:
    return [link for link in links if should_check(link)]


@dataclass(frozen=True)
class CheckCounts:
    """Per-kind counts shown before the user confirms a check run."""
    total: int
    destinations: int
    tours: int
    cruise_ships: int
    cruises: int
    activities: int
    table: int
    special_pages: int

    def as_lines(self) -> List[str]:
        return [
            f"{self.destinations} destination links (all levels - user-tools-info check)",
            f"{self.tours} tour links",
            f"{self.cruise_ships} cruise ship links (ship list check)",
            f"{self.cruises} cruise links (price check)",
            f"{self.activities} activity links",
            f"{self.table} table links",
            f"{self.special_pages} special destination pages (will be skipped)",
        ]


def count_links_to_check(links_to_check: Sequence[Link]) -> CheckCounts:
    def count(predicate) -> int:
        return sum(1 for link in links_to_check if predicate(link))

    return CheckCounts(
        total=len(links_to_check),
        destinations=count(lambda l: l.url_pattern.is_destination and is_true_destination(l.href, l.url_pattern)),
        tours=count(lambda l: l.url_pattern.tag is PatternTag.TOUR_WITH_ID or '/tours/' in l.href),
        cruise_ships=count(lambda l: l.url_pattern.tag is PatternTag.CRUISE_SHIP),
        cruises=count(lambda l: l.url_pattern.tag is PatternTag.CRUISE_WITH_ID),
        activities=count(lambda l: l.url_pattern.tag is PatternTag.TOUR_ACTIVITY),
        table=count(lambda l: l.section == TABLE_SECTION),
        special_pages=count(lambda l: l.url_pattern.tag is PatternTag.DESTINATION_SPECIAL_PAGE),
    )


def summarize_availability(checked: Sequence[CheckedLink]) -> AvailabilitySummary:
    return AvailabilitySummary(
        checked_links=len(checked),
        available=sum(1 for c in checked if c.result.available is True),
        unavailable=sum(1 for c in checked if c.result.available is False),
        unknown=sum(1 for c in checked if c.result.available is None),
        details=list(checked),
    )


def attach_availability(report: Report, checked: Sequence[CheckedLink]) -> Report:
    report.availability = summarize_availability(checked)
    return report

