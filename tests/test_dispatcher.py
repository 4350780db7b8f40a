"""Availability checker routing and concurrency tests."""

import asyncio

import pytest

from conftest import HOST, ORIGIN, FakeLoader, FakePage, page_html

from link_audit.dispatcher import AvailabilityChecker, ProgressStatus
from link_audit.patterns import classify
from link_audit.schemas import Link


def make_link(href: str, text: str = "Link", section: str = "Four") -> Link:
    return Link(text=text, href=href, url_pattern=classify(href, HOST), section=section)


def destination_pages(count: int):
    return {f"{ORIGIN}/iceland/place-{i}": FakePage([page_html(f"<h1>Place {i}</h1>")]) for i in range(count)}


def test_never_more_than_max_concurrent_in_flight(config):
    loader = FakeLoader(destination_pages(10), delay=0.01)
    links = [make_link(f"/iceland/place-{i}", f"Place {i}") for i in range(10)]
    checker = AvailabilityChecker(loader, config)

    results = asyncio.run(checker.check_all(links, max_concurrent=3))

    assert loader.max_in_flight == 3
    assert len(results) == 10
    assert sorted(r.link.href for r in results) == sorted(l.href for l in links)
    assert all(r.result.available for r in results)
    assert loader.closed == len(loader.opened) == 10


def test_fewer_links_than_slots(config):
    loader = FakeLoader(destination_pages(2), delay=0.01)
    links = [make_link(f"/iceland/place-{i}") for i in range(2)]
    results = asyncio.run(AvailabilityChecker(loader, config).check_all(links, max_concurrent=5))
    assert len(results) == 2
    assert loader.max_in_flight == 2


def test_no_links(config, loader):
    assert asyncio.run(AvailabilityChecker(loader, config).check_all([])) == []


def test_max_concurrent_must_be_positive(config, loader):
    with pytest.raises(ValueError):
        asyncio.run(AvailabilityChecker(loader, config).check_all([make_link("/iceland")], max_concurrent=0))


def test_special_pages_are_skipped_without_loading(config, loader):
    result = asyncio.run(AvailabilityChecker(loader, config).check_link(make_link("/iceland/land-tours")))
    assert result.skipped is True
    assert result.available is None
    assert result.special_page_type == "land-tours"
    assert loader.opened == []


def test_content_pages_are_not_checkable(config, loader):
    result = asyncio.run(AvailabilityChecker(loader, config).check_link(make_link("/iceland/articles/best-hikes")))
    assert result.skipped is True
    assert result.available is None
    assert result.error == "Not a checkable link pattern"
    assert loader.opened == []


def test_routes_by_pattern(config):
    checker = AvailabilityChecker(FakeLoader(), config)
    calls = []

    def recorder(name):
        async def check(url, original_title, url_pattern=None):
            calls.append((name, url))
            return None
        return check

    checker.tours.check = recorder("tour")
    checker.cruises.check = recorder("cruise")
    checker.cruise_ships.check = recorder("ship")
    checker.activities.check = recorder("activity")

    for href in ["/caribbean/tours/789", "/caribbean/cruises/456/x", "/cruises/123/oasis-of-the-seas",
                 "/caribbean/tours/snorkeling", "/iceland/vik"]:
        asyncio.run(checker.check_link(make_link(href)))

    assert calls == [
        ("tour", f"{ORIGIN}/caribbean/tours/789"),
        ("cruise", f"{ORIGIN}/caribbean/cruises/456/x"),
        ("ship", f"{ORIGIN}/cruises/123/oasis-of-the-seas"),
        ("activity", f"{ORIGIN}/caribbean/tours/snorkeling"),
        ("activity", f"{ORIGIN}/iceland/vik"),
    ]


def test_table_links_are_checked_whatever_their_pattern(config, loader):
    link = make_link("/iceland/deals/summer", section="Table")
    result = asyncio.run(AvailabilityChecker(loader, config).check_link(link))
    assert result.skipped is False
    assert result.available is False
    assert loader.opened == [f"{ORIGIN}/iceland/deals/summer"]


def test_unexpected_errors_do_not_abort_the_batch(config):
    loader = FakeLoader(destination_pages(1))
    checker = AvailabilityChecker(loader, config)

    async def boom(url, original_title):
        raise RuntimeError("verifier crashed")

    checker.tours.check = boom
    links = [make_link("/caribbean/tours/789"), make_link("/iceland/place-0")]
    results = {r.link.href: r.result for r in asyncio.run(checker.check_all(links))}

    assert results["/caribbean/tours/789"].available is False
    assert results["/caribbean/tours/789"].error == "verifier crashed"
    assert results["/iceland/place-0"].available is True


def test_progress_is_reported(config):
    statuses, messages = [], []
    loader = FakeLoader(destination_pages(2))
    checker = AvailabilityChecker(loader, config, on_status=messages.append, on_progress=statuses.append)
    asyncio.run(checker.check_all([make_link(f"/iceland/place-{i}") for i in range(2)]))

    assert [s.completed for s in statuses] == [0, 1, 2]
    assert statuses[-1].percentage == 100
    assert messages[0].startswith("Checking links: 0/2 (0%)")
    assert messages[-1].endswith("Est. remaining: calculating...")


def test_progress_status_text():
    status = ProgressStatus(completed=6, total=12, elapsed=90, remaining=90)
    assert str(status) == (
        "Checking links: 6/12 (50%) | Time elapsed: 1m 30s | Est. remaining: ~1m 30s"
    )
