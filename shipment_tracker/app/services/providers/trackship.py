"""TrackShip parcel aggregator adapter (bearer API key)."""

from typing import Any, Dict, Mapping, Optional

import httpx

from shipment_tracker.app.core.exceptions import ProviderAuthError, ProviderDataError
from shipment_tracker.app.models.tracking_enums import IdentifierType, ProviderKind
from shipment_tracker.app.schemas.tracking import ResolveOptions, TrackingIdentifier, TrackingResult
from shipment_tracker.app.services.normalizer import normalize
from shipment_tracker.app.services.providers.base import HttpTrackingProvider

AUTO_DETECT = "auto-detect"
USER_AGENT = "shipment-tracker/0.1"


def _carrier_name(value: Any) -> Optional[str]:
    if isinstance(value, Mapping):
        return value.get("name")
    return value


def to_raw_shipment(item: Mapping[str, Any], identifier: TrackingIdentifier) -> Dict[str, Any]:
    events = []
    for event in item.get("events") or []:
        if not isinstance(event, Mapping):
            continue
        events.append({
            "location": event.get("location"),
            "timestamp": event.get("timestamp"),
            "status": event.get("status"),
            "description": event.get("description") or event.get("status"),
            "mode": "parcel",
        })

    info = item.get("shipment_info")
    info = info if isinstance(info, Mapping) else item
    return {
        "shipment_number": item.get("tracking_number") or identifier.normalized,
        "status": item.get("status"),
        "carrier": _carrier_name(item.get("carrier")),
        "origin": info.get("origin"),
        "destination": info.get("destination"),
        "eta": item.get("estimated_delivery"),
        "last_location": item.get("location"),
        "events": events,
        "details": {
            "statusDetail": item.get("status_detail"),
            "serviceType": info.get("service_type") or "Standard",
            "weight": info.get("weight"),
            "dimensions": info.get("dimensions"),
        },
    }


class TrackShipProvider(HttpTrackingProvider):
    name = "trackship"
    kind = ProviderKind.AGGREGATOR
    priority = 25

    def __init__(self, api_url: str, api_key: Optional[str], client: Optional[httpx.AsyncClient] = None):
        super().__init__(client)
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def can_handle(self, identifier: TrackingIdentifier) -> bool:
        return identifier.type == IdentifierType.PARCEL

    async def fetch(self, identifier: TrackingIdentifier, options: ResolveOptions) -> TrackingResult:
        if not self.is_configured():
            raise ProviderAuthError(self.name, "TrackShip API key not configured")

        response = await self.client.post(
            f"{self.api_url}/track",
            json={
                "tracking_number": identifier.normalized,
                "carrier": options.carrier_hint or identifier.carrier_hint or AUTO_DETECT,
            },
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "User-Agent": USER_AGENT,
            },
        )
        self.check_response(response)

        body = response.json()
        if not isinstance(body, Mapping):
            raise ProviderDataError(self.name, "Invalid response from TrackShip")
        item = body.get("data", body)
        if body.get("success") is False or not isinstance(item, Mapping) or not item:
            raise ProviderDataError(self.name, "No tracking information found from TrackShip")

        raw = to_raw_shipment(item, identifier)
        return self.success(normalize(raw, identifier.type, provider="trackship"))
