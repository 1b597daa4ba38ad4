"""
GoComet aggregator adapter.

E-mail/password login returns a token; the live-tracking endpoint takes the
token and the tracking number as query parameters.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from shipment_tracker.app.core.exceptions import ProviderAuthError, ProviderDataError
from shipment_tracker.app.models.tracking_enums import ProviderKind
from shipment_tracker.app.schemas.tracking import ResolveOptions, TrackingIdentifier, TrackingResult
from shipment_tracker.app.services.cache import TTLCache
from shipment_tracker.app.services.classifier import MIN_PLAUSIBLE_LENGTH
from shipment_tracker.app.services.normalizer import normalize
from shipment_tracker.app.services.providers.base import HttpTrackingProvider

logger = logging.getLogger(__name__)


def _event_datetime(date_value: Optional[str], datetime_value: Optional[str]) -> Optional[str]:
    """GoComet sends ``DD/MM/YYYY`` dates with the time in a separate field."""
    if not date_value:
        return None
    if datetime_value and " " in datetime_value:
        return f"{date_value} {datetime_value.split(' ', 1)[1]}"
    return date_value


def _find_event(events: List[Mapping[str, Any]], code: str, display: str) -> Optional[Mapping[str, Any]]:
    for event in events:
        if event.get("event") == code or event.get("display_event") == display:
            return event
    return None


def to_raw_shipment(item: Mapping[str, Any], identifier: TrackingIdentifier) -> Dict[str, Any]:
    events = [event for event in item.get("events") or [] if isinstance(event, Mapping)]

    timeline = []
    for event in events:
        vessel = event.get("vessel_details") or {}
        timeline.append({
            "location": event.get("location"),
            "timestamp": (
                _event_datetime(event.get("actual_date"), event.get("actual_datetime"))
                or _event_datetime(event.get("planned_date"), event.get("planned_datetime"))
            ),
            "status": event.get("display_event") or event.get("event"),
            "description": event.get("remarks"),
            "vessel": vessel.get("vessel_name"),
            "voyage": vessel.get("voyage_num"),
            "mode": event.get("mode"),
        })

    arrival = _find_event(events, "arrival", "Arrival") or {}
    departure = _find_event(events, "origin_departure", "Origin Departure") or {}
    other = item.get("other_data") or {}
    demurrage = (item.get("stats") or {}).get("demurrage") or {}

    return {
        "shipment_number": item.get("tracking_number") or identifier.normalized,
        "status": item.get("status"),
        "carrier": item.get("carrier_name"),
        "pol": item.get("pol_name"),
        "pod": item.get("pod_name"),
        "eta": arrival.get("planned_date"),
        "etd": departure.get("actual_date") or departure.get("planned_date"),
        "events": timeline,
        "details": {
            "containerNumber": item.get("container_number"),
            "containerType": item.get("container_type"),
            "weight": other.get("weight"),
            "packages": other.get("packages"),
            "shipmentType": (item.get("mode") or "").lower() or None,
            "freeDaysBeforeDemurrage": demurrage.get("days_left"),
        },
    }


class GoCometProvider(HttpTrackingProvider):
    name = "gocomet"
    kind = ProviderKind.AGGREGATOR
    priority = 20

    def __init__(
        self,
        auth_url: str,
        tracking_url: str,
        email: Optional[str],
        password: Optional[str],
        token_cache: TTLCache,
        token_ttl_seconds: int = 3300,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(client)
        self.auth_url = auth_url
        self.tracking_url = tracking_url
        self.email = email
        self.password = password
        self.token_cache = token_cache
        self.token_ttl_seconds = token_ttl_seconds

    @property
    def token_key(self) -> str:
        return f"token:{self.name}:{self.email}"

    def is_configured(self) -> bool:
        return bool(self.email and self.password)

    def can_handle(self, identifier: TrackingIdentifier) -> bool:
        return len(identifier.normalized) >= MIN_PLAUSIBLE_LENGTH

    async def access_token(self) -> str:
        token = await self.token_cache.get(self.token_key)
        if token:
            return token

        response = await self.client.post(
            self.auth_url,
            json={"email": self.email, "password": self.password},
        )
        if response.status_code in (400, 401, 403):
            raise ProviderAuthError(self.name, f"GoComet authentication failed ({response.status_code})")
        response.raise_for_status()

        token = response.json().get("token")
        if not token:
            raise ProviderAuthError(self.name, "GoComet authentication returned no token")
        await self.token_cache.set(self.token_key, token, ttl_seconds=self.token_ttl_seconds)
        return token

    async def fetch(self, identifier: TrackingIdentifier, options: ResolveOptions) -> TrackingResult:
        if not self.is_configured():
            raise ProviderAuthError(self.name, "GoComet credentials are not configured")

        token = await self.access_token()
        response = await self.client.get(
            self.tracking_url,
            params={"tracking_numbers[]": identifier.normalized, "token": token},
        )
        if response.status_code == 401:
            await self.token_cache.delete(self.token_key)
        self.check_response(response)

        trackings = response.json().get("updated_trackings") or []
        if not trackings:
            raise ProviderDataError(self.name, "No tracking information found from GoComet")

        raw = to_raw_shipment(trackings[0], identifier)
        return self.success(normalize(raw, identifier.type, provider="gocomet"))
