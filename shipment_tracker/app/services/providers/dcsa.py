"""
DCSA track-and-trace support shared by the direct carrier adapters.

Maersk and MSC both publish the DCSA events API: a flat list of shipment,
transport and equipment events, each classified as actual (ACT), estimated
(EST) or planned (PLN).
"""

from abc import abstractmethod
from typing import Any, Dict, List, Mapping, Optional

import httpx

from shipment_tracker.app.core.exceptions import ProviderAuthError, ProviderDataError
from shipment_tracker.app.models.tracking_enums import EventType, IdentifierType, ProviderKind
from shipment_tracker.app.schemas.tracking import ResolveOptions, TrackingIdentifier, TrackingResult
from shipment_tracker.app.services.normalizer import normalize
from shipment_tracker.app.services.providers.base import HttpTrackingProvider

# Event code → (status text, canonical tag hint)
EVENT_LABELS = {
    "DEPA": ("Vessel departure", None),
    "ARRI": ("Vessel arrival", None),
    "LOAD": ("Loaded on vessel", None),
    "DISC": ("Discharged", None),
    "GTIN": ("Gate in", None),
    "GTOT": ("Gate out", None),
    "STUF": ("Stuffed", None),
    "STRP": ("Stripped", None),
    "PICK": ("Picked up", EventType.PICKUP),
    "DROP": ("Dropped off", None),
    "RECE": ("Cargo received", EventType.CARGO_RECEIVED),
    "CONF": ("Booking confirmed", None),
    "RELS": ("Released", None),
    "INSP": ("Inspected", None),
}

QUERY_PARAMS = {
    IdentifierType.CONTAINER: "equipmentReference",
    IdentifierType.BL: "transportDocumentReference",
    IdentifierType.BOOKING: "carrierBookingReference",
}


def event_code(event: Mapping[str, Any]) -> Optional[str]:
    return (
        event.get("transportEventTypeCode")
        or event.get("equipmentEventTypeCode")
        or event.get("shipmentEventTypeCode")
    )


def event_location(event: Mapping[str, Any]) -> Optional[str]:
    location = event.get("eventLocation")
    if not location:
        transport_call = event.get("transportCall")
        if not isinstance(transport_call, Mapping):
            return None
        location = transport_call.get("location") or {
            "UNLocationCode": transport_call.get("UNLocationCode")
        }
    if isinstance(location, str):
        return location.strip() or None
    if not isinstance(location, Mapping):
        return None
    return location.get("locationName") or location.get("UNLocationCode")


def to_raw_shipment(payload: Any, identifier: TrackingIdentifier, carrier_name: str) -> Dict[str, Any]:
    """
    Convert a DCSA events payload into a raw shipment mapping.

    Only actual events enter the timeline; estimated and planned vessel
    movements supply ETD/ETA.

    Raises:
        ProviderDataError: if the payload has no events
    """
    events = payload.get("events") if isinstance(payload, Mapping) else payload
    if not events:
        raise ProviderDataError(carrier_name)

    timeline: List[Dict[str, Any]] = []
    pol = pod = eta = etd = None
    document_reference = None

    for event in events:
        if not isinstance(event, Mapping):
            continue
        code = event_code(event)
        classifier = (event.get("eventClassifierCode") or "ACT").upper()
        location = event_location(event)
        when = event.get("eventDateTime")
        transport_call = event.get("transportCall")
        if not isinstance(transport_call, Mapping):
            transport_call = {}
        document_reference = document_reference or event.get("transportDocumentReference")

        if code == "DEPA":
            pol = pol or location
            etd = etd or when
        elif code == "ARRI":
            pod = location or pod
            if classifier in ("EST", "PLN"):
                eta = when

        if classifier != "ACT":
            continue

        label, hint = EVENT_LABELS.get(code, ((event.get("eventType") or "Event").title(), None))
        timeline.append({
            "location": location,
            "timestamp": when,
            "status": label,
            "description": f"{label} at {location}" if location else label,
            "type": hint,
            "vessel": (transport_call.get("vessel") or {}).get("vesselName"),
            "voyage": transport_call.get("exportVoyageNumber") or transport_call.get("carrierVoyageNumber"),
            "mode": transport_call.get("modeOfTransport"),
        })

    return {
        "shipment_number": identifier.normalized,
        "carrier": carrier_name,
        "pol": pol,
        "pod": pod,
        "eta": eta,
        "etd": etd,
        "events": timeline,
        "details": {
            "transportDocumentReference": document_reference,
            "eventCount": len(events),
        },
    }


class DcsaEventsProvider(HttpTrackingProvider):
    """Direct carrier adapter for a DCSA events endpoint."""

    kind = ProviderKind.DIRECT_CARRIER
    priority = 10
    carrier_name = ""
    events_path = "/events"

    def __init__(self, api_url: str, client: Optional[httpx.AsyncClient] = None):
        super().__init__(client)
        self.api_url = api_url.rstrip("/")

    def can_handle(self, identifier: TrackingIdentifier) -> bool:
        return identifier.carrier_hint == self.carrier

    @abstractmethod
    async def request_options(self) -> Dict[str, Any]:
        """Keyword arguments (headers, auth) for the events request."""

    async def invalidate_credentials(self):
        return None

    async def fetch(self, identifier: TrackingIdentifier, options: ResolveOptions) -> TrackingResult:
        if not self.is_configured():
            raise ProviderAuthError(self.name, f"{self.carrier_name} credentials are not configured")

        param = QUERY_PARAMS.get(identifier.type, "equipmentReference")
        response = await self.client.get(
            f"{self.api_url}{self.events_path}",
            params={param: identifier.normalized},
            **await self.request_options()
        )
        if response.status_code == 401:
            await self.invalidate_credentials()
        self.check_response(response)

        raw = to_raw_shipment(response.json(), identifier, self.carrier_name)
        return self.success(normalize(raw, identifier.type, provider="dcsa"))
