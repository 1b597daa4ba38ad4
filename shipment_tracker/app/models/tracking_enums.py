"""
Tracking enumerations.

Canonical vocabularies shared by every provider adapter.
"""

import enum


class IdentifierType(str, enum.Enum):
    """Kind of shipment reference a tracking number was classified as."""
    CONTAINER = "container"
    BL = "bl"
    BOOKING = "booking"
    AWB = "awb"
    PARCEL = "parcel"
    UNKNOWN = "unknown"


class ShipmentStatus(str, enum.Enum):
    """
    Canonical shipment status.

    Status flow:
        PENDING → AT_ORIGIN → CARGO_DEPARTED → IN_TRANSIT → CARGO_ARRIVED
        → AT_DESTINATION → CUSTOMS_CLEARED → OUT_FOR_DELIVERY → DELIVERED
        Any status can transition to EXCEPTION
    """
    PENDING = "pending"
    AT_ORIGIN = "at-origin"
    CARGO_DEPARTED = "cargo-departed"
    IN_TRANSIT = "in-transit"
    CARGO_ARRIVED = "cargo-arrived"
    AT_DESTINATION = "at-destination"
    CUSTOMS_CLEARED = "customs-cleared"
    OUT_FOR_DELIVERY = "out-for-delivery"
    DELIVERED = "delivered"
    EXCEPTION = "exception"


class EventType(str, enum.Enum):
    """Canonical tag attached to each timeline event."""
    CARGO_RECEIVED = "cargo-received"
    VESSEL_DEPARTURE = "vessel-departure"
    VESSEL_ARRIVAL = "vessel-arrival"
    GATE = "gate"
    LOAD = "load"
    PICKUP = "pickup"
    CUSTOMS_CLEARED = "customs-cleared"
    OUT_FOR_DELIVERY = "out-for-delivery"
    EVENT = "event"


class ProviderKind(str, enum.Enum):
    """Behavioral class of a tracking data source."""
    DIRECT_CARRIER = "direct-carrier"
    AGGREGATOR = "aggregator"
    SCRAPING = "scraping"
    MOCK = "mock"


class ResolutionState(str, enum.Enum):
    """
    Per-request escalation state.

    NOT_ATTEMPTED → API_ATTEMPTED → SCRAPING_ATTEMPTED → RESOLVED | EXHAUSTED
    """
    NOT_ATTEMPTED = "not-attempted"
    API_ATTEMPTED = "api-attempted"
    SCRAPING_ATTEMPTED = "scraping-attempted"
    RESOLVED = "resolved"
    EXHAUSTED = "exhausted"
