"""
Tracking Pydantic schemas.

Defines the canonical tracking data model plus the request and response
models of the tracking API. Fields are serialized with camelCase aliases.
"""

from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Optional, List, Dict, Any
from shipment_tracker.app.models.tracking_enums import (
    IdentifierType,
    ShipmentStatus,
    EventType,
    ProviderKind,
)


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class TrackingIdentifier(CamelModel):
    """A classified tracking number. Never mutated after construction."""
    raw: str
    normalized: str
    type: IdentifierType = IdentifierType.UNKNOWN
    carrier_hint: Optional[str] = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True


class ResolveOptions(CamelModel):
    """Per-request options for the orchestrator."""
    carrier_hint: Optional[str] = None
    prefer_scraping: bool = False
    enable_fallback: bool = True

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True


class TrackingEvent(CamelModel):
    timestamp: datetime
    status: str
    description: str = ""
    type: EventType = EventType.EVENT
    location: Optional[str] = None
    vessel: Optional[str] = None
    voyage: Optional[str] = None
    mode: Optional[str] = None


class LocationGroup(CamelModel):
    location: str
    events: List[TrackingEvent] = Field(default_factory=list)


class TrackingDocument(CamelModel):
    type: str
    url: Optional[str] = None
    description: Optional[str] = None


class TrackingData(CamelModel):
    """Canonical shipment data, identical in shape for every provider."""
    shipment_number: str
    status: ShipmentStatus = ShipmentStatus.PENDING
    status_text: Optional[str] = None
    carrier: Optional[str] = None
    origin: str = "Unknown"
    destination: str = "Unknown"
    pol: Optional[str] = None
    pod: Optional[str] = None
    eta: Optional[datetime] = None
    etd: Optional[datetime] = None
    last_location: Optional[str] = None
    timeline: List[LocationGroup] = Field(default_factory=list)
    documents: List[TrackingDocument] = Field(default_factory=list)
    details: Dict[str, Any] = Field(default_factory=dict)


class FallbackOptions(CamelModel):
    """Deep link to the carrier's own tracking page."""
    carrier: str
    carrier_code: str
    tracking_url: str
    message: str = "Live tracking is unavailable. Check the carrier website for the latest status."


class TrackingResult(CamelModel):
    """
    Outcome of one resolution attempt.

    Exactly one of ``data`` (on success) or ``error`` (on failure) is set.
    """
    success: bool
    data: Optional[TrackingData] = None
    error: Optional[str] = None
    source: Optional[str] = None
    is_live_data: bool = False
    scraped_at: Optional[datetime] = None
    fallback_options: Optional[FallbackOptions] = None

    @model_validator(mode="after")
    def check_outcome(self) -> "TrackingResult":
        if self.success and (self.data is None or self.error is not None):
            raise ValueError("a successful result carries data and no error")
        if not self.success and (self.error is None or self.data is not None):
            raise ValueError("a failed result carries an error and no data")
        return self


class CarrierInfo(CamelModel):
    name: str
    tracking_url: str
    api_supported: bool = False


class TrackingRequest(CamelModel):
    """Schema for a tracking request. Length rules are enforced by the classifier."""
    tracking_number: Optional[str] = Field(None, description="Container, BL, booking, AWB or parcel number")
    carrier_hint: Optional[str] = Field(None, max_length=50, description="Carrier code used to order providers")
    prefer_scraping: bool = False
    enable_fallback: bool = True


class TrackingResponse(CamelModel):
    """Schema for the tracking API response."""
    success: bool
    data: Optional[TrackingData] = None
    source: Optional[str] = None
    is_live_data: Optional[bool] = None
    scraped_at: Optional[datetime] = None
    error: Optional[str] = None
    carrier_info: Optional[CarrierInfo] = None
    fallback_options: Optional[FallbackOptions] = None


class IdentifierResponse(CamelModel):
    identifier: TrackingIdentifier
    carrier_info: Optional[CarrierInfo] = None


class ProviderStatus(CamelModel):
    name: str
    kind: ProviderKind
    priority: int
    available: bool
    carrier: Optional[str] = None
    is_live: bool = True


class ProviderStatusList(CamelModel):
    providers: List[ProviderStatus]
    total_providers: int
    available_providers: int
