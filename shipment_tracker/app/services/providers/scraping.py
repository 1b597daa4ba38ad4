"""
Web scraping provider.

Loads the carrier's public tracking page in headless Chromium (Playwright)
and parses the rendered HTML with BeautifulSoup. One browser session is
opened per call and closed on every exit path, cancellation included.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import partial
from typing import Any, AsyncContextManager, AsyncIterator, Callable, Dict, Optional

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from shipment_tracker.app.core.exceptions import ProviderDataError, ProviderError, ProviderTimeoutError
from shipment_tracker.app.models.tracking_enums import ProviderKind
from shipment_tracker.app.schemas.tracking import ResolveOptions, TrackingIdentifier, TrackingResult
from shipment_tracker.app.services.classifier import MIN_PLAUSIBLE_LENGTH
from shipment_tracker.app.services.normalizer import normalize
from shipment_tracker.app.services.providers.base import TrackingProvider

logger = logging.getLogger(__name__)

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-first-run",
]


@dataclass(frozen=True)
class ScrapeTarget:
    carrier_name: str
    url_template: str
    ready_selector: str
    number_selector: str
    status_selector: str
    origin_selector: str
    destination_selector: str
    eta_selector: str
    last_location_selector: str
    event_selector: str


# Event rows share the same inner selectors on every carrier page
EVENT_FIELDS = {
    "location": ".event-location",
    "status": ".event-status",
    "date": ".event-date",
    "time": ".event-time",
    "description": ".event-description",
}

SCRAPE_TARGETS: Dict[str, ScrapeTarget] = {
    "maersk": ScrapeTarget(
        "Maersk",
        "https://www.maersk.com/tracking/{number}",
        '[data-testid="container-number"]',
        '[data-testid="container-number"]',
        ".shipment-status",
        '[data-testid="origin-port"]',
        '[data-testid="destination-port"]',
        '[data-testid="eta-date"]',
        '[data-testid="current-location"]',
        ".event-item",
    ),
    "msc": ScrapeTarget(
        "MSC",
        "https://www.msc.com/track-a-shipment?agencyPath=msc&searchType=container&searchNumber={number}",
        ".msc-tracking-details",
        ".msc-tracking-number",
        ".msc-status-text",
        ".msc-origin-port",
        ".msc-destination-port",
        ".msc-eta-date",
        ".msc-last-location",
        ".msc-event-item",
    ),
    "cma-cgm": ScrapeTarget(
        "CMA CGM",
        "https://www.cma-cgm.com/ebusiness/tracking/search?number={number}",
        ".tracking-results-container",
        ".tracking-number-display",
        ".shipment-status-value",
        ".origin-port-name",
        ".destination-port-name",
        ".eta-date-value",
        ".last-event-location",
        ".event-timeline-item",
    ),
    "hapag-lloyd": ScrapeTarget(
        "Hapag-Lloyd",
        "https://www.hapag-lloyd.com/en/online-business/track/track-by-container-solution.html?container={number}",
        ".hl-tracking-results",
        ".hl-tracking-number",
        ".hl-status-text",
        ".hl-origin-port",
        ".hl-destination-port",
        ".hl-eta-date",
        ".hl-last-location",
        ".hl-event-row",
    ),
    "cosco": ScrapeTarget(
        "COSCO Shipping",
        "https://elines.coscoshipping.com/ebusiness/cargoTracking?trackingType=CONTAINER&number={number}",
        ".cosco-tracking-info",
        ".cosco-shipment-number",
        ".cosco-status",
        ".cosco-origin",
        ".cosco-destination",
        ".cosco-eta",
        ".cosco-last-location",
        ".cosco-event-item",
    ),
    "evergreen": ScrapeTarget(
        "Evergreen Line",
        "https://www.evergreen-line.com/emodal/stpb/stpb_show.do?lang=en&f_cmd=track&f_container_no={number}",
        ".evergreen-tracking-table",
        ".evergreen-shipment-number",
        ".evergreen-status",
        ".evergreen-origin",
        ".evergreen-destination",
        ".evergreen-eta",
        ".evergreen-last-location",
        ".evergreen-event-row",
    ),
}


@asynccontextmanager
async def chromium_browser(headless: bool = True) -> AsyncIterator[Any]:
    async with async_playwright() as playwright:
        browser = await playwright.chromium.launch(headless=headless, args=BROWSER_ARGS)
        try:
            yield browser
        finally:
            await browser.close()


def _select_text(node, selector: str) -> Optional[str]:
    element = node.select_one(selector)
    if element is None:
        return None
    return element.get_text(strip=True) or None


def parse_tracking_page(html: str, target: ScrapeTarget, identifier: TrackingIdentifier) -> Dict[str, Any]:
    """Extract a raw shipment mapping from a rendered tracking page."""
    soup = BeautifulSoup(html, "html.parser")

    events = []
    for row in soup.select(target.event_selector):
        fields = {name: _select_text(row, selector) for name, selector in EVENT_FIELDS.items()}
        timestamp = " ".join(part for part in (fields["date"], fields["time"]) if part)
        events.append({
            "location": fields["location"],
            "timestamp": timestamp or None,
            "status": fields["status"],
            "description": fields["description"],
        })

    return {
        "shipment_number": _select_text(soup, target.number_selector) or identifier.normalized,
        "status": _select_text(soup, target.status_selector),
        "carrier": target.carrier_name,
        "origin": _select_text(soup, target.origin_selector),
        "destination": _select_text(soup, target.destination_selector),
        "eta": _select_text(soup, target.eta_selector),
        "last_location": _select_text(soup, target.last_location_selector),
        "events": events,
    }


class ScrapingProvider(TrackingProvider):
    name = "scraping"
    kind = ProviderKind.SCRAPING
    priority = 100

    def __init__(
        self,
        enabled: bool = True,
        headless: bool = True,
        priority: Optional[int] = None,
        timeout: Optional[float] = None,
        browser_factory: Optional[Callable[[], AsyncContextManager[Any]]] = None,
        selector_timeout_ms: int = 15000,
    ):
        self.enabled = enabled
        if priority is not None:
            self.priority = priority
        if timeout is not None:
            self.timeout = timeout
        self.browser_factory = browser_factory or partial(chromium_browser, headless=headless)
        self.selector_timeout_ms = selector_timeout_ms

    def is_configured(self) -> bool:
        return self.enabled

    def can_handle(self, identifier: TrackingIdentifier) -> bool:
        return len(identifier.normalized) >= MIN_PLAUSIBLE_LENGTH

    def target_for(self, identifier: TrackingIdentifier, options: ResolveOptions) -> Optional[str]:
        for carrier in (options.carrier_hint, identifier.carrier_hint):
            if carrier and carrier.strip().lower() in SCRAPE_TARGETS:
                return carrier.strip().lower()
        return None

    async def fetch(self, identifier: TrackingIdentifier, options: ResolveOptions) -> TrackingResult:
        carrier = self.target_for(identifier, options)
        if carrier is None:
            raise ProviderDataError(self.name, "Web scraping is not supported for this carrier")

        target = SCRAPE_TARGETS[carrier]
        url = target.url_template.format(number=identifier.normalized)
        logger.info(f"Scraping {target.carrier_name} tracking page", extra={"provider": self.name, "carrier": carrier})

        async with self.browser_factory() as browser:
            page = await browser.new_page()
            try:
                await page.goto(url, wait_until="networkidle")
                await page.wait_for_selector(target.ready_selector, timeout=self.selector_timeout_ms)
                html = await page.content()
            except PlaywrightTimeoutError as e:
                raise ProviderTimeoutError(self.name) from e
            except PlaywrightError as e:
                raise ProviderError(self.name, f"Browser error while scraping {target.carrier_name}") from e
            finally:
                await page.close()

        raw = parse_tracking_page(html, target, identifier)
        if not raw["events"] and not raw["status"]:
            raise ProviderDataError(self.name, f"No tracking information found on {target.carrier_name} website")

        raw["details"] = {"sourceUrl": url}
        return self.success(
            normalize(raw, identifier.type, provider="scraping"),
            scraped_at=datetime.now(timezone.utc),
        )
