"""Report building, check selection and confirmation count tests."""

from conftest import HOST

from link_audit.harvester import SectionHarvest
from link_audit.patterns import classify
from link_audit.report import (
    all_links, attach_availability, build_report, count_links_to_check, select_links_to_check,
)
from link_audit.schemas import CheckResult, CheckedLink, Link, report_to_dict


def make_link(href: str, section: str = "Four") -> Link:
    return Link(text=href.rsplit("/", 1)[-1] or "root", href=href, url_pattern=classify(href, HOST),
                section=section, section_title=f"{section} Section")


HARVESTS = [
    SectionHarvest("Four", "Four Section", [
        make_link("/iceland/vik"),
        make_link("/iceland/reykjavik"),
        make_link("/iceland/land-tours"),
        make_link("/caribbean/tours/789"),
    ]),
    SectionHarvest("Articles", "Articles Section", [
        make_link("/iceland/articles/best-hikes", "Articles"),
        make_link("/tours", "Articles"),
        make_link("https://partner.example.org/deal", "Articles"),
    ]),
    SectionHarvest("Table", "Table Section", [
        make_link("/iceland/deals/summer", "Table"),
        make_link("/cruises/123/oasis-of-the-seas", "Table"),
        make_link("/caribbean/cruises/456/western", "Table"),
    ]),
    SectionHarvest("Empty", "Empty Section", []),
]


def test_build_report_counts_by_section_and_pattern():
    report = build_report(HARVESTS)

    assert report.summary.total_links == 10
    assert report.summary.section_types == {"Four": 4, "Articles": 3, "Table": 3, "Empty": 0}
    assert report.summary.url_patterns["multi-level/destination-2"] == 2
    assert report.summary.url_patterns["destination-special-page"] == 1
    assert report.sections["Empty"] == []
    assert [e.href for e in report.url_patterns["multi-level/destination-2"]] == ["/iceland/vik", "/iceland/reykjavik"]
    assert report.availability is None


def test_select_links_to_check():
    selected = [l.href for l in select_links_to_check(all_links(HARVESTS))]
    assert selected == [
        "/iceland/vik",
        "/iceland/reykjavik",
        "/iceland/land-tours",
        "/caribbean/tours/789",
        "/iceland/articles/best-hikes",
        "/iceland/deals/summer",
        "/cruises/123/oasis-of-the-seas",
        "/caribbean/cruises/456/western",
    ]


def test_confirmation_counts():
    counts = count_links_to_check(select_links_to_check(all_links(HARVESTS)))
    assert counts.total == 8
    assert counts.destinations == 2
    assert counts.tours == 1
    assert counts.cruise_ships == 1
    assert counts.cruises == 1
    assert counts.activities == 0
    assert counts.table == 3
    assert counts.special_pages == 1
    assert counts.as_lines()[0] == "2 destination links (all levels - user-tools-info check)"


def test_attach_availability_counts_outcomes():
    links = all_links(HARVESTS)
    checked = [
        CheckedLink(links[0], CheckResult(url=links[0].href, available=True)),
        CheckedLink(links[1], CheckResult(url=links[1].href, available=False)),
        CheckedLink(links[2], CheckResult(url=links[2].href, available=None, skipped=True)),
    ]
    report = attach_availability(build_report(HARVESTS), checked)

    assert report.availability.checked_links == 3
    assert report.availability.available == 1
    assert report.availability.unavailable == 1
    assert report.availability.unknown == 1

    data = report_to_dict(report)
    assert data["availability"]["details"][0]["checkResult"]["available"] is True
    assert data["availability"]["details"][0]["urlPattern"] == "multi-level/destination-2"
    assert data["summary"]["totalLinks"] == 10
