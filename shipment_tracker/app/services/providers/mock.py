"""
Mock provider serving in-memory demo shipments.

Results are never marked as live data.
"""

from typing import Any, Dict, Mapping, Optional

from shipment_tracker.app.core.exceptions import ProviderDataError
from shipment_tracker.app.models.tracking_enums import ProviderKind
from shipment_tracker.app.schemas.tracking import ResolveOptions, TrackingIdentifier, TrackingResult
from shipment_tracker.app.services.normalizer import normalize
from shipment_tracker.app.services.providers.base import TrackingProvider

DEFAULT_FIXTURES: Dict[str, Dict[str, Any]] = {
    "MAEU1234567": {
        "shipment_number": "MAEU1234567",
        "status": "In Transit",
        "carrier": "Maersk",
        "pol": "Shanghai",
        "pod": "Rotterdam",
        "etd": "2024-01-05T10:00:00Z",
        "eta": "2024-02-10T08:00:00Z",
        "events": [
            {"location": "Shanghai", "timestamp": "2024-01-02T09:00:00Z", "status": "Gate in",
             "description": "Container received at terminal"},
            {"location": "Shanghai", "timestamp": "2024-01-05T10:00:00Z", "status": "Vessel departure",
             "description": "Departed on MAERSK ESSEN", "vessel": "MAERSK ESSEN", "voyage": "402W"},
            {"location": "Singapore", "timestamp": "2024-01-12T14:30:00Z", "status": "Transshipment",
             "description": "Transshipment at Singapore"},
        ],
    },
    "MSCU9876543": {
        "shipment_number": "MSCU9876543",
        "status": "Customs Cleared",
        "carrier": "MSC",
        "pol": "Busan",
        "pod": "Los Angeles",
        "etd": "2024-03-01T06:00:00Z",
        "eta": "2024-03-15T12:00:00Z",
        "events": [
            {"location": "Busan", "timestamp": "2024-03-01T06:00:00Z", "status": "Vessel departure",
             "description": "Departed on MSC OSCAR", "vessel": "MSC OSCAR", "voyage": "FE410"},
            {"location": "Los Angeles", "timestamp": "2024-03-15T12:00:00Z", "status": "Vessel arrival",
             "description": "Arrived at Los Angeles"},
            {"location": "Los Angeles", "timestamp": "2024-03-17T09:00:00Z", "status": "Customs Cleared",
             "description": "Released by US customs"},
        ],
    },
}


class MockProvider(TrackingProvider):
    name = "mock"
    kind = ProviderKind.MOCK
    priority = 90
    is_live = False

    def __init__(self, fixtures: Optional[Mapping[str, Mapping[str, Any]]] = None):
        self.fixtures = dict(DEFAULT_FIXTURES if fixtures is None else fixtures)

    def can_handle(self, identifier: TrackingIdentifier) -> bool:
        return identifier.normalized in self.fixtures

    async def fetch(self, identifier: TrackingIdentifier, options: ResolveOptions) -> TrackingResult:
        raw = self.fixtures.get(identifier.normalized)
        if raw is None:
            raise ProviderDataError(self.name)
        return self.success(normalize(raw, identifier.type, provider=self.name))
