"""
Scraping provider tests with a fake browser session.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from shipment_tracker.app.core.exceptions import ProviderTimeoutError
from shipment_tracker.app.core.reliability import call_with_timeout
from shipment_tracker.app.models.tracking_enums import EventType, ShipmentStatus
from shipment_tracker.app.schemas.tracking import ResolveOptions
from shipment_tracker.app.services.classifier import classify
from shipment_tracker.app.services.providers.scraping import (
    SCRAPE_TARGETS,
    ScrapingProvider,
    parse_tracking_page,
)

MSC_PAGE = """
<div class="msc-tracking-details">
  <span class="msc-tracking-number">MSCU9876543</span>
  <span class="msc-status-text">Discharged</span>
  <span class="msc-origin-port">Busan</span>
  <span class="msc-destination-port">Los Angeles</span>
  <span class="msc-eta-date">15/03/2024</span>
  <span class="msc-last-location">Los Angeles</span>
  <div class="msc-event-item">
    <span class="event-location">Busan</span>
    <span class="event-status">Vessel Departure</span>
    <span class="event-date">01/03/2024</span>
    <span class="event-time">06:00</span>
    <span class="event-description">Loaded on MSC OSCAR</span>
  </div>
  <div class="msc-event-item">
    <span class="event-location">Los Angeles</span>
    <span class="event-status">Vessel Arrival</span>
    <span class="event-date">15/03/2024</span>
    <span class="event-time">12:00</span>
  </div>
</div>
"""

MAERSK_PAGE = """
<section>
  <h2 data-testid="container-number">MAEU1234567</h2>
  <p class="shipment-status">In Transit</p>
  <span data-testid="origin-port">Shanghai</span>
  <span data-testid="destination-port">Rotterdam</span>
  <div class="event-item">
    <span class="event-location">Shanghai</span>
    <span class="event-status">Gate in</span>
    <span class="event-date">02/01/2024</span>
  </div>
</section>
"""


class FakePage:
    def __init__(self, html="", error=None, hang=False):
        self.html = html
        self.error = error
        self.hang = hang
        self.url = None
        self.closed = False

    async def goto(self, url, wait_until=None):
        self.url = url
        if self.hang:
            await asyncio.sleep(3600)

    async def wait_for_selector(self, selector, timeout=None):
        if self.error is not None:
            raise self.error

    async def content(self):
        return self.html

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, page):
        self.page = page
        self.closed = False

    async def new_page(self):
        return self.page


def _provider(browser):
    @asynccontextmanager
    async def factory():
        try:
            yield browser
        finally:
            browser.closed = True

    return ScrapingProvider(browser_factory=factory)


@pytest.mark.asyncio
async def test_scrapes_msc_page():
    browser = FakeBrowser(FakePage(MSC_PAGE))

    result = await _provider(browser).resolve(classify("MSCU9876543"), ResolveOptions())

    assert result.success is True
    assert result.source == "scraping"
    assert result.scraped_at is not None
    data = result.data
    assert data.status == ShipmentStatus.AT_DESTINATION
    assert data.carrier == "MSC"
    assert data.eta == datetime(2024, 3, 15, tzinfo=timezone.utc)
    assert [group.location for group in data.timeline] == ["Busan", "Los Angeles"]
    assert data.timeline[0].events[0].type == EventType.VESSEL_DEPARTURE
    assert data.timeline[0].events[0].timestamp == datetime(2024, 3, 1, 6, 0, tzinfo=timezone.utc)
    assert browser.page.url.endswith("searchNumber=MSCU9876543")
    assert browser.closed and browser.page.closed


@pytest.mark.asyncio
async def test_request_carrier_hint_selects_target():
    browser = FakeBrowser(FakePage(MAERSK_PAGE))

    result = await _provider(browser).resolve(classify("1234567890"), ResolveOptions(carrier_hint="Maersk"))

    assert result.success is True
    assert browser.page.url == "https://www.maersk.com/tracking/1234567890"


@pytest.mark.asyncio
async def test_page_timeout_closes_browser():
    browser = FakeBrowser(FakePage(error=PlaywrightTimeoutError("selector not found")))

    result = await _provider(browser).resolve(classify("MSCU9876543"), ResolveOptions())

    assert result.success is False
    assert result.error == "scraping timed out"
    assert browser.closed and browser.page.closed


@pytest.mark.asyncio
async def test_cancellation_closes_browser():
    browser = FakeBrowser(FakePage(hang=True))
    provider = _provider(browser)

    with pytest.raises(ProviderTimeoutError):
        await call_with_timeout(provider.resolve(classify("MSCU9876543"), ResolveOptions()), 0.05, provider.name)

    assert browser.closed and browser.page.closed


@pytest.mark.asyncio
async def test_unsupported_carrier_never_opens_browser():
    browser = FakeBrowser(FakePage(MSC_PAGE))

    result = await _provider(browser).resolve(classify("1234567890"), ResolveOptions())

    assert result.success is False
    assert "not supported" in result.error
    assert browser.page.url is None


@pytest.mark.asyncio
async def test_empty_page_is_no_data():
    browser = FakeBrowser(FakePage("<div class='msc-tracking-details'></div>"))

    result = await _provider(browser).resolve(classify("MSCU9876543"), ResolveOptions())

    assert result.success is False
    assert "No tracking information" in result.error


def test_parse_page_attribute_selectors():
    raw = parse_tracking_page(MAERSK_PAGE, SCRAPE_TARGETS["maersk"], classify("MAEU1234567"))

    assert raw["shipment_number"] == "MAEU1234567"
    assert raw["status"] == "In Transit"
    assert raw["origin"] == "Shanghai"
    assert raw["eta"] is None
    assert raw["events"] == [{
        "location": "Shanghai",
        "timestamp": "02/01/2024",
        "status": "Gate in",
        "description": None,
    }]


def test_disabled_scraper_is_unavailable():
    assert not ScrapingProvider(enabled=False).is_configured()
