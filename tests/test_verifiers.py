"""Kind-specific verifier tests against a scripted page loader."""

import asyncio
from dataclasses import replace

from conftest import ORIGIN, FakeLoader, FakePage, page_html

from link_audit.patterns import PatternTag, destination, pattern
from link_audit.schemas import (
    STATUS_BROKEN_404, STATUS_LOADED, STATUS_LOADING_ERROR, STATUS_MAINTENANCE, STATUS_TIMEOUT,
)
from link_audit.verifiers import (
    CHECK_METHOD_ACTIVITY, CHECK_METHOD_USER_TOOLS, TOUR_PRICE_SELECTORS,
    ActivityVerifier, CruiseShipVerifier, CruiseVerifier, TourVerifier, parse_price,
)

TOUR_URL = f"{ORIGIN}/caribbean/tours/789"
CRUISE_URL = f"{ORIGIN}/caribbean/cruises/456/western-caribbean"
SHIP_URL = f"{ORIGIN}/cruises/123/oasis-of-the-seas"
ACTIVITY_URL = f"{ORIGIN}/iceland/tours/whale-watching"
DESTINATION_URL = f"{ORIGIN}/iceland/vik"


def price_block(amount: str) -> str:
    return f'<div class="al-price-summary"><span class="al-amount">{amount}</span></div>'


def test_parse_price():
    assert parse_price("$1,299") == 1299.0
    assert parse_price("From EUR 45 pp") == 45.0
    assert parse_price("Sold out") is None
    assert parse_price(None) is None


def test_tour_with_price_is_available(config):
    loader = FakeLoader({TOUR_URL: FakePage([page_html(f"<h1>Caribbean Explorer</h1>{price_block('$1,299')}")])})
    result = asyncio.run(TourVerifier(loader, config).check(TOUR_URL, "Caribbean Explorer"))

    assert result.available is True
    assert result.price == 1299
    assert result.price_text == "$1,299"
    assert result.price_selector == TOUR_PRICE_SELECTORS[0]
    assert result.tour_id == "789"
    assert result.page_title == "Caribbean Explorer"
    assert result.page_status == STATUS_LOADED
    assert result.retry_attempts == 1
    assert loader.closed == len(loader.opened) == 1


def test_tour_without_price_is_unavailable(config):
    loader = FakeLoader({TOUR_URL: FakePage([page_html(price_block("$0"))])})
    result = asyncio.run(TourVerifier(loader, config).check(TOUR_URL, "Caribbean Explorer"))
    assert result.available is False
    assert result.price == 0


def test_tour_returning_503_ends_under_maintenance(config):
    loader = FakeLoader({TOUR_URL: FakePage([page_html()], status_code=503)})
    result = asyncio.run(TourVerifier(loader, config).check(TOUR_URL, "Caribbean Explorer"))

    assert result.available is False
    assert result.final_status == STATUS_MAINTENANCE
    assert result.retry_attempts == 3
    assert len(loader.opened) == 3
    assert loader.closed == 3


def test_tour_404_is_not_retried(config):
    loader = FakeLoader()
    result = asyncio.run(TourVerifier(loader, config).check(TOUR_URL, "Caribbean Explorer"))
    assert result.page_status == STATUS_BROKEN_404
    assert result.available is False
    assert len(loader.opened) == 1


def test_load_errors_become_results_and_close_the_context(config):
    loader = FakeLoader({TOUR_URL: FakePage(error=ConnectionError("reset"))})
    result = asyncio.run(TourVerifier(loader, config).check(TOUR_URL, "Caribbean Explorer"))
    assert result.available is False
    assert result.final_status == STATUS_TIMEOUT
    assert result.page_status == STATUS_LOADING_ERROR
    assert result.error.startswith("Attempt 3:")
    assert loader.closed == 3


def test_transient_failure_then_success(config):
    loader = FakeLoader({TOUR_URL: [
        FakePage([page_html("Site is under maintenance")]),
        FakePage([page_html(price_block("$99"))]),
    ]})
    result = asyncio.run(TourVerifier(loader, config).check(TOUR_URL, "Caribbean Explorer"))
    assert result.available is True
    assert result.retry_attempts == 2


def test_slow_render_gets_a_second_look(config):
    loader = FakeLoader({TOUR_URL: FakePage([
        "<html><body>Loading...</body></html>",
        page_html(price_block("$450")),
    ])})
    result = asyncio.run(TourVerifier(loader, config).check(TOUR_URL, "Caribbean Explorer"))
    assert result.available is True
    assert result.price == 450


def test_cruise_polls_until_rendered(config):
    loader = FakeLoader({CRUISE_URL: FakePage([
        "<html><body></body></html>",
        "<html><body><div>spinner</div></body></html>",
        page_html(f"<h1>Western Caribbean</h1>{price_block('$2,100')}"),
    ])})
    result = asyncio.run(CruiseVerifier(loader, config).check(CRUISE_URL, "Western Caribbean"))

    assert result.available is True
    assert result.price == 2100
    assert result.cruise_id == "456"
    assert result.retry_attempts is None
    assert len(loader.opened) == 1


def test_cruise_that_never_renders_times_out(config):
    loader = FakeLoader({CRUISE_URL: FakePage(["<html><body><div>spinner</div></body></html>"])})
    config = replace(config, cruise_timeout=0.2)
    result = asyncio.run(CruiseVerifier(loader, config).check(CRUISE_URL, "Western Caribbean"))

    assert result.available is False
    assert result.page_status == STATUS_TIMEOUT
    assert result.error == "Timeout while loading page"
    assert loader.closed == 1


def test_cruise_404_returns_without_polling(config):
    loader = FakeLoader()
    result = asyncio.run(CruiseVerifier(loader, config).check(CRUISE_URL, "Western Caribbean"))
    assert result.page_status == STATUS_BROKEN_404
    assert result.available is False


def ship_list(*names: str) -> str:
    items = "".join(f"<li><label>{name}</label></li>" for name in names)
    return f'<div class="al-il-fields-ship"><ul>{items}</ul></div>'


def test_cruise_ship_listed_on_tours_page(config):
    loader = FakeLoader({config.tours_url: FakePage([page_html(ship_list("Allure of the Seas", "Oasis of the Seas"))])})
    result = asyncio.run(CruiseShipVerifier(loader, config).check(SHIP_URL, "Oasis"))

    assert loader.opened == [f"{ORIGIN}/iceland/tours"]
    assert result.ship_name == "Oasis Of The Seas"
    assert result.ship_options == ["Allure of the Seas", "Oasis of the Seas"]
    assert result.available is True


def test_cruise_ship_missing_from_tours_page(config):
    loader = FakeLoader({config.tours_url: FakePage([page_html(ship_list("Allure of the Seas"))])})
    result = asyncio.run(CruiseShipVerifier(loader, config).check(SHIP_URL, "Oasis"))
    assert result.available is False
    assert result.tours_url == config.tours_url


def option_lists(experiences=(), activities=()) -> str:
    exp = "".join(f"<li><label>{e}</label></li>" for e in experiences)
    act = "".join(f"<li><label>{a}</label></li>" for a in activities)
    return (
        f'<div class="al-il-fields-experience"><ul>{exp}</ul></div>'
        f'<div class="al-il-fields-activity"><ul>{act}</ul></div>'
    )


def test_activity_found_in_option_lists(config):
    html = page_html(option_lists(experiences=["Whale watching tours", "Hiking"]))
    loader = FakeLoader({ACTIVITY_URL: FakePage([html])})
    result = asyncio.run(ActivityVerifier(loader, config).check(
        ACTIVITY_URL, "Whale Watching", pattern(PatternTag.TOUR_ACTIVITY)))

    assert result.activity_text == "Whale Watching"
    assert result.experience_options == ["Whale watching tours", "Hiking"]
    assert result.available is True
    assert result.check_method == CHECK_METHOD_ACTIVITY
    assert result.user_tools_info is None


def test_activity_not_offered(config):
    html = page_html(option_lists(experiences=["Hiking"], activities=["Kayaking"]))
    loader = FakeLoader({ACTIVITY_URL: FakePage([html])})
    result = asyncio.run(ActivityVerifier(loader, config).check(
        ACTIVITY_URL, "Whale Watching", pattern(PatternTag.TOUR_ACTIVITY)))
    assert result.available is False


def user_tools(label: str) -> str:
    return f'<div class="al-user-tools-info"><div><span>{label}</span></div></div>'


def test_destination_matches_user_tools_label(config):
    loader = FakeLoader({DESTINATION_URL: FakePage([page_html(user_tools("Vik, Iceland"))])})
    result = asyncio.run(ActivityVerifier(loader, config).check(DESTINATION_URL, "Vik", destination(2)))

    assert result.available is True
    assert result.user_tools_info == "Vik, Iceland"
    assert result.check_method == CHECK_METHOD_USER_TOOLS
    assert result.destination_level == 2
    assert result.match_details == ["User tools info check: True"]


def test_destination_falls_back_to_page_title(config):
    html = page_html(f"<h1>Vik</h1>{user_tools('Somewhere Else')}")
    loader = FakeLoader({DESTINATION_URL: FakePage([html])})
    result = asyncio.run(ActivityVerifier(loader, config).check(DESTINATION_URL, "Vik", destination(2)))

    assert result.available is True
    assert result.match_details == ["User tools info check: False", "Page title fallback: True"]


def test_destination_with_any_title_counts_as_live(config):
    html = page_html(title="Example Travel")
    loader = FakeLoader({DESTINATION_URL: FakePage([html])})
    result = asyncio.run(ActivityVerifier(loader, config).check(DESTINATION_URL, "Vik", destination(2)))

    assert result.available is True
    assert result.match_details == ["Basic page load fallback: True"]


def test_destination_without_title_is_unavailable(config):
    html = page_html(title="")
    loader = FakeLoader({DESTINATION_URL: FakePage([html])})
    result = asyncio.run(ActivityVerifier(loader, config).check(DESTINATION_URL, "Vik", destination(2)))
    assert result.available is False
