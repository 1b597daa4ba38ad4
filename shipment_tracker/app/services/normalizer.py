"""
Normalization of provider responses into the canonical tracking model.

Adapters hand over a provider-neutral mapping ("raw shipment"):

    {
        "shipment_number": str, "status": str, "carrier": str,
        "origin": str, "destination": str, "pol": str, "pod": str,
        "eta": str | datetime, "etd": str | datetime,
        "events": [{"location", "timestamp", "status", "description",
                    "type", "vessel", "voyage", "mode"}, ...],
        "documents": [{"type", "url", "description"}, ...],
        "details": {...},
    }

Normalization never raises; malformed records degrade to defaults.
"""

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from dateutil import parser as date_parser

from shipment_tracker.app.models.tracking_enums import EventType, IdentifierType, ShipmentStatus
from shipment_tracker.app.schemas.tracking import (
    LocationGroup,
    TrackingData,
    TrackingDocument,
    TrackingEvent,
)

logger = logging.getLogger(__name__)

UNKNOWN_LOCATION = "Unknown Location"

# Source vocabulary → canonical status. Keys are lower-case; matched exactly,
# then by longest prefix.
COMMON_STATUS_TABLE: Dict[str, str] = {
    "booked": "pending",
    "booking confirmed": "pending",
    "planned": "pending",
    "not started": "pending",
    "empty to shipper": "at-origin",
    "gate out empty": "at-origin",
    "gate in": "at-origin",
    "cargo received": "at-origin",
    "received": "at-origin",
    "stuffed": "at-origin",
    "at origin": "at-origin",
    "loaded": "cargo-departed",
    "loaded on vessel": "cargo-departed",
    "vessel departure": "cargo-departed",
    "vessel departed": "cargo-departed",
    "departed": "cargo-departed",
    "sailed": "cargo-departed",
    "in transit": "in-transit",
    "on board": "in-transit",
    "transshipment": "in-transit",
    "transhipment": "in-transit",
    "vessel arrival": "cargo-arrived",
    "vessel arrived": "cargo-arrived",
    "arrived": "cargo-arrived",
    "discharged": "at-destination",
    "at destination": "at-destination",
    "gate out": "at-destination",
    "stripped": "at-destination",
    "customs": "in-transit",
    "customs cleared": "customs-cleared",
    "customs released": "customs-cleared",
    "released": "customs-cleared",
    "customs hold": "exception",
    "out for delivery": "out-for-delivery",
    "delivered": "delivered",
    "empty returned": "delivered",
    "empty container returned": "delivered",
    "completed": "delivered",
    "delayed": "exception",
    "on hold": "exception",
}

PROVIDER_STATUS_TABLES: Dict[str, Dict[str, str]] = {
    "dcsa": {
        "gate in": "at-origin",
        "gate out": "at-destination",
    },
    "gocomet": {
        "not_started": "pending",
        "origin_departure": "cargo-departed",
        "in_transit": "in-transit",
        "transhipment_arrival": "in-transit",
        "transhipment_departure": "in-transit",
        "arrival": "cargo-arrived",
        "arrived_at_pod": "at-destination",
        "completed": "delivered",
    },
    "searates": {
        "planned": "pending",
        "in_transit": "in-transit",
        "delivered": "delivered",
        "unknown": "pending",
    },
    "trackship": {
        "pre_transit": "pending",
        "in_transit": "in-transit",
        "available_for_pickup": "out-for-delivery",
        "out_for_delivery": "out-for-delivery",
        "delivered": "delivered",
        "failure": "exception",
        "return_to_sender": "exception",
    },
    "scraping": {
        "on board vessel": "in-transit",
        "import to consignee": "out-for-delivery",
    },
}

# Checked in order; the first rule whose keyword occurs in the status text wins.
EVENT_TYPE_RULES: Tuple[Tuple[Tuple[str, ...], EventType], ...] = (
    (("departure", "departed", "sailed"), EventType.VESSEL_DEPARTURE),
    (("arrival", "arrived"), EventType.VESSEL_ARRIVAL),
    (("gate",), EventType.GATE),
    (("load",), EventType.LOAD),
    (("customs",), EventType.CUSTOMS_CLEARED),
)

DAY_FIRST_FORMATS = (
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y",
    "%d-%m-%Y %H:%M",
    "%d %b %Y %H:%M",
    "%d-%b-%Y %H:%M",
    "%d %b %Y",
)


class StatusMapper:
    """Per-provider status lookup, compiled and validated once."""

    def __init__(self, common: Mapping[str, str], provider_tables: Mapping[str, Mapping[str, str]]):
        self._default = self._compile(common)
        self._tables = {
            name: self._compile(common, table)
            for name, table in provider_tables.items()
        }

    @staticmethod
    def _compile(*tables: Mapping[str, str]) -> Tuple[Dict[str, ShipmentStatus], Tuple[Tuple[str, ShipmentStatus], ...]]:
        # Canonical values map to themselves so normalized data re-normalizes unchanged.
        exact: Dict[str, ShipmentStatus] = {status.value: status for status in ShipmentStatus}
        for table in tables:
            for key, value in table.items():
                if key != key.strip().lower() or not key:
                    raise ValueError(f"Status table key {key!r} must be lower-case and trimmed")
                exact[key] = ShipmentStatus(value)
        prefixes = tuple(sorted(exact.items(), key=lambda item: len(item[0]), reverse=True))
        return exact, prefixes

    @property
    def providers(self) -> List[str]:
        return sorted(self._tables)

    def map(self, text: Any, provider: Optional[str] = None) -> ShipmentStatus:
        if isinstance(text, ShipmentStatus):
            return text
        if text is None:
            return ShipmentStatus.PENDING
        key = str(text).strip().lower()
        if not key:
            return ShipmentStatus.PENDING

        exact, prefixes = self._tables.get(provider, self._default)
        if key in exact:
            return exact[key]
        for prefix, status in prefixes:
            if key.startswith(prefix):
                return status
        return ShipmentStatus.PENDING


STATUS_MAPPER = StatusMapper(COMMON_STATUS_TABLE, PROVIDER_STATUS_TABLES)


def classify_event_type(status_text: Optional[str], hint: Any = None) -> EventType:
    """
    Canonical event tag from the event's status text.

    A provider-supplied tag is kept only when no keyword rule matches.
    """
    text = (status_text or "").lower()
    for keywords, event_type in EVENT_TYPE_RULES:
        if any(keyword in text for keyword in keywords):
            return event_type

    if hint is not None:
        try:
            return EventType(hint)
        except ValueError:
            pass
    return EventType.EVENT


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Best-effort date parsing; returns None when the value is unusable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        # Epoch seconds, or milliseconds for large values
        seconds = value / 1000 if value > 1e11 else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    text = str(value).strip()
    if not text:
        return None

    try:
        return _as_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass

    for fmt in DAY_FIRST_FORMATS:
        try:
            return _as_utc(datetime.strptime(text, fmt))
        except ValueError:
            continue

    try:
        return _as_utc(date_parser.parse(text))
    except (ValueError, OverflowError, TypeError):
        return None


def timestamp_or_now(value: Any, now: datetime) -> datetime:
    return parse_timestamp(value) or now


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.upper() == "N/A":
        return None
    return text


def _optional_timestamp(value: Any, now: datetime) -> Optional[datetime]:
    if _text(value) is None and not isinstance(value, (datetime, date)):
        return None
    return timestamp_or_now(value, now)


def _normalize_event(item: Any, now: datetime) -> TrackingEvent:
    if not isinstance(item, Mapping):
        raise TypeError(f"event must be a mapping, got {type(item).__name__}")
    status_text = _text(item.get("status")) or "Unknown"
    return TrackingEvent(
        timestamp=timestamp_or_now(item.get("timestamp"), now),
        status=status_text,
        description=_text(item.get("description")) or "",
        type=classify_event_type(status_text, item.get("type")),
        location=_text(item.get("location")) or UNKNOWN_LOCATION,
        vessel=_text(item.get("vessel")),
        voyage=_text(item.get("voyage")),
        mode=_text(item.get("mode")),
    )


def normalize_events(items: Any, now: datetime) -> List[TrackingEvent]:
    if not isinstance(items, Sequence) or isinstance(items, (str, bytes)):
        return []

    events = []
    for index, item in enumerate(items):
        try:
            events.append(_normalize_event(item, now))
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning("Skipping malformed tracking event", extra={"index": index, "reason": str(e)})
    return events


def group_by_location(events: Sequence[TrackingEvent]) -> List[LocationGroup]:
    """Group events by location in first-seen order, each group sorted by time."""
    groups: Dict[str, List[TrackingEvent]] = {}
    for event in events:
        groups.setdefault(event.location or UNKNOWN_LOCATION, []).append(event)

    return [
        LocationGroup(location=location, events=sorted(group, key=lambda e: e.timestamp))
        for location, group in groups.items()
    ]


def _normalize_documents(items: Any) -> List[TrackingDocument]:
    if not isinstance(items, Sequence) or isinstance(items, (str, bytes)):
        return []
    documents = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        doc_type = _text(item.get("type")) or _text(item.get("name"))
        if doc_type is None:
            continue
        documents.append(TrackingDocument(
            type=doc_type,
            url=_text(item.get("url")),
            description=_text(item.get("description")),
        ))
    return documents


def flatten(data: TrackingData) -> Dict[str, Any]:
    """Turn canonical data back into a raw shipment mapping."""
    return {
        "shipment_number": data.shipment_number,
        "status": data.status_text or data.status.value,
        "canonical_status": data.status,
        "carrier": data.carrier,
        "origin": data.origin,
        "destination": data.destination,
        "pol": data.pol,
        "pod": data.pod,
        "eta": data.eta,
        "etd": data.etd,
        "events": [
            {
                "location": group.location,
                "timestamp": event.timestamp,
                "status": event.status,
                "description": event.description,
                "type": event.type.value,
                "vessel": event.vessel,
                "voyage": event.voyage,
                "mode": event.mode,
            }
            for group in data.timeline
            for event in group.events
        ],
        "documents": [doc.model_dump() for doc in data.documents],
        "details": dict(data.details),
    }


def normalize(
    raw: Union[Mapping[str, Any], TrackingData, None],
    identifier_type: IdentifierType = IdentifierType.UNKNOWN,
    provider: Optional[str] = None,
    now: Optional[datetime] = None,
) -> TrackingData:
    """
    Map a raw provider response onto TrackingData.

    Args:
        raw: Raw shipment mapping, or TrackingData to re-normalize (its canonical status is kept)
        identifier_type: Classified type of the tracked number
        provider: Status table to use (falls back to the common table)
        now: Clock value used for unparsable dates

    Returns:
        Canonical tracking data
    """
    now = now or datetime.now(timezone.utc)
    if isinstance(raw, TrackingData):
        raw = flatten(raw)
    if not isinstance(raw, Mapping):
        logger.warning("Provider response is not a mapping", extra={"provider": provider})
        raw = {}

    events = normalize_events(raw.get("events"), now)
    chronological = sorted(events, key=lambda e: e.timestamp)
    earliest = chronological[0] if chronological else None
    latest = chronological[-1] if chronological else None

    status_text = _text(raw.get("status")) or (latest.status if latest else None)
    status = raw.get("canonical_status")
    if not isinstance(status, ShipmentStatus):
        status = STATUS_MAPPER.map(status_text, provider)
    pol = _text(raw.get("pol"))
    pod = _text(raw.get("pod"))
    origin = _text(raw.get("origin")) or pol or (earliest.location if earliest else None)
    destination = _text(raw.get("destination")) or pod or (latest.location if latest else None)

    details = raw.get("details")
    details = dict(details) if isinstance(details, Mapping) else {}
    details.setdefault("identifierType", identifier_type.value)

    return TrackingData(
        shipment_number=_text(raw.get("shipment_number")) or "",
        status=status,
        status_text=status_text,
        carrier=_text(raw.get("carrier")),
        origin=origin or "Unknown",
        destination=destination or "Unknown",
        pol=pol,
        pod=pod,
        eta=_optional_timestamp(raw.get("eta"), now),
        etd=_optional_timestamp(raw.get("etd"), now),
        last_location=_text(raw.get("last_location")) or (latest.location if latest else None),
        timeline=group_by_location(events),
        documents=_normalize_documents(raw.get("documents")),
        details=details,
    )
