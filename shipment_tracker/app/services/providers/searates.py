"""SeaRates aggregator adapter (API-key tracking API)."""

from typing import Any, Dict, Mapping, Optional

import httpx

from shipment_tracker.app.core.exceptions import ProviderAuthError, ProviderDataError
from shipment_tracker.app.models.tracking_enums import IdentifierType, ProviderKind
from shipment_tracker.app.schemas.tracking import ResolveOptions, TrackingIdentifier, TrackingResult
from shipment_tracker.app.services.classifier import MIN_PLAUSIBLE_LENGTH
from shipment_tracker.app.services.normalizer import normalize, parse_timestamp
from shipment_tracker.app.services.providers.base import HttpTrackingProvider

NUMBER_TYPES = {
    IdentifierType.CONTAINER: "CT",
    IdentifierType.BL: "BL",
    IdentifierType.BOOKING: "BL",
    IdentifierType.AWB: "AWB",
}

MODES = {"CT": "ocean", "BL": "ocean", "AWB": "air"}


def _name(value: Any) -> Optional[str]:
    if isinstance(value, Mapping):
        return value.get("name")
    return value


def to_raw_shipment(item: Mapping[str, Any], identifier: TrackingIdentifier) -> Dict[str, Any]:
    mode = MODES.get(item.get("type"))
    events = []
    for event in item.get("events") or []:
        if not isinstance(event, Mapping):
            continue
        events.append({
            "location": _name(event.get("location")),
            "timestamp": event.get("date"),
            "status": event.get("status"),
            "description": event.get("description"),
            "vessel": event.get("vessel_name"),
            "voyage": event.get("voyage"),
            "mode": mode,
        })

    return {
        "shipment_number": item.get("number") or identifier.normalized,
        "status": item.get("status"),
        "carrier": item.get("sealine"),
        "pol": _name(item.get("pol")),
        "pod": _name(item.get("pod")),
        "eta": item.get("eta"),
        "last_location": _name(item.get("current_location")),
        "events": events,
        "details": {
            "containerNumber": item.get("container_number"),
            "blNumber": item.get("bl_number") or item.get("awb_number"),
            "vessel": item.get("vessel_name"),
            "voyage": item.get("voyage"),
            "trackingLink": item.get("tracking_link"),
        },
    }


class SeaRatesProvider(HttpTrackingProvider):
    name = "searates"
    kind = ProviderKind.AGGREGATOR
    priority = 30

    def __init__(self, api_url: str, api_key: Optional[str], client: Optional[httpx.AsyncClient] = None):
        super().__init__(client)
        self.api_url = api_url
        self.api_key = api_key

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def can_handle(self, identifier: TrackingIdentifier) -> bool:
        return len(identifier.normalized) >= MIN_PLAUSIBLE_LENGTH

    async def fetch(self, identifier: TrackingIdentifier, options: ResolveOptions) -> TrackingResult:
        if not self.is_configured():
            raise ProviderAuthError(self.name, "SeaRates API key not configured")

        params = {"api_key": self.api_key, "number": identifier.normalized}
        if identifier.type in NUMBER_TYPES:
            params["type"] = NUMBER_TYPES[identifier.type]
        sealine = options.carrier_hint or identifier.carrier_hint
        if sealine:
            params["sealine"] = sealine

        response = await self.client.get(self.api_url, params=params)
        self.check_response(response)

        trackings = response.json().get("tracking") or []
        if not trackings:
            raise ProviderDataError(self.name, "No tracking information found from SeaRates")

        item = trackings[0]
        raw = to_raw_shipment(item, identifier)
        return self.success(
            normalize(raw, identifier.type, provider="searates"),
            scraped_at=parse_timestamp(item.get("updated_at")),
        )
