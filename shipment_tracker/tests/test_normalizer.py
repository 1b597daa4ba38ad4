"""
Normalizer tests: status tables, event types, timeline grouping, dates.
"""

from datetime import datetime, timezone

import pytest

from shipment_tracker.app.models.tracking_enums import EventType, IdentifierType, ShipmentStatus
from shipment_tracker.app.services.normalizer import (
    STATUS_MAPPER,
    StatusMapper,
    classify_event_type,
    normalize,
    parse_timestamp,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _raw(**overrides):
    raw = {
        "shipment_number": "MAEU1234567",
        "status": "In Transit",
        "carrier": "Maersk",
        "events": [
            {"location": "Shanghai", "timestamp": "2024-01-05T10:00:00Z", "status": "Vessel Departed"},
            {"location": "Singapore", "timestamp": "2024-01-12T14:30:00Z", "status": "Transshipment"},
            {"location": "Shanghai", "timestamp": "2024-01-02T09:00:00Z", "status": "Gate In"},
            {"location": "Rotterdam", "timestamp": "2024-02-10T08:00:00Z", "status": "Vessel Arrived"},
        ],
    }
    raw.update(overrides)
    return raw


class TestStatusMapping:

    def test_exact_match(self):
        assert STATUS_MAPPER.map("In Transit") == ShipmentStatus.IN_TRANSIT
        assert STATUS_MAPPER.map("Customs Cleared") == ShipmentStatus.CUSTOMS_CLEARED

    def test_longest_prefix_wins(self):
        assert STATUS_MAPPER.map("Delivered to consignee") == ShipmentStatus.DELIVERED
        assert STATUS_MAPPER.map("Gate out empty at depot") == ShipmentStatus.AT_ORIGIN
        assert STATUS_MAPPER.map("Gate out full") == ShipmentStatus.AT_DESTINATION

    def test_provider_table_overlays_common(self):
        assert STATUS_MAPPER.map("origin_departure", provider="gocomet") == ShipmentStatus.CARGO_DEPARTED
        assert STATUS_MAPPER.map("origin_departure") == ShipmentStatus.PENDING

    def test_customs_activity_is_not_clearance(self):
        assert STATUS_MAPPER.map("Customs inspection") == ShipmentStatus.IN_TRANSIT
        assert STATUS_MAPPER.map("Customs examination ordered") == ShipmentStatus.IN_TRANSIT
        assert STATUS_MAPPER.map("Customs released at Rotterdam") == ShipmentStatus.CUSTOMS_CLEARED
        assert STATUS_MAPPER.map("Customs hold") == ShipmentStatus.EXCEPTION

    def test_unmapped_and_missing_are_pending(self):
        assert STATUS_MAPPER.map("Teleported") == ShipmentStatus.PENDING
        assert STATUS_MAPPER.map(None) == ShipmentStatus.PENDING
        assert STATUS_MAPPER.map("  ") == ShipmentStatus.PENDING

    def test_canonical_values_map_to_themselves(self):
        for status in ShipmentStatus:
            assert STATUS_MAPPER.map(status.value, provider="searates") == status

    def test_tables_are_validated(self):
        with pytest.raises(ValueError):
            StatusMapper({"in transit": "moving"}, {})
        with pytest.raises(ValueError):
            StatusMapper({"In Transit": "in-transit"}, {})


@pytest.mark.parametrize("text, hint, expected", [
    ("Vessel Departed", None, EventType.VESSEL_DEPARTURE),
    ("Sailed from port", None, EventType.VESSEL_DEPARTURE),
    ("Arrived at customs", None, EventType.VESSEL_ARRIVAL),
    ("Gate In", None, EventType.GATE),
    ("Loaded on vessel", None, EventType.LOAD),
    ("Customs Released", None, EventType.CUSTOMS_CLEARED),
    ("Discharged", None, EventType.EVENT),
    ("Cargo received", "cargo-received", EventType.CARGO_RECEIVED),
    ("Cargo received", "not-a-tag", EventType.EVENT),
])
def test_event_type_rules(text, hint, expected):
    assert classify_event_type(text, hint) == expected


class TestTimestamps:

    def test_iso_with_zulu(self):
        assert parse_timestamp("2024-01-05T10:00:00Z") == datetime(2024, 1, 5, 10, 0, tzinfo=timezone.utc)

    def test_day_first(self):
        assert parse_timestamp("05/08/2024 14:30") == datetime(2024, 8, 5, 14, 30, tzinfo=timezone.utc)
        assert parse_timestamp("05/08/2024") == datetime(2024, 8, 5, tzinfo=timezone.utc)

    def test_lenient_fallback(self):
        assert parse_timestamp("March 3, 2024 10:15") == datetime(2024, 3, 3, 10, 15, tzinfo=timezone.utc)

    def test_offsets_converted_to_utc(self):
        parsed = parse_timestamp("2024-01-05T12:00:00+02:00")
        assert parsed == datetime(2024, 1, 5, 10, 0, tzinfo=timezone.utc)

    def test_unparsable(self):
        assert parse_timestamp("not a date") is None
        assert parse_timestamp("") is None
        assert parse_timestamp(None) is None


class TestNormalize:

    def test_timeline_grouped_in_first_seen_order(self):
        data = normalize(_raw(), IdentifierType.CONTAINER, now=NOW)

        assert [group.location for group in data.timeline] == ["Shanghai", "Singapore", "Rotterdam"]
        shanghai = data.timeline[0]
        assert [event.status for event in shanghai.events] == ["Gate In", "Vessel Departed"]

    def test_events_within_group_are_time_ordered(self):
        data = normalize(_raw(), now=NOW)
        for group in data.timeline:
            timestamps = [event.timestamp for event in group.events]
            assert timestamps == sorted(timestamps)

    def test_origin_and_destination_from_events(self):
        data = normalize(_raw(), now=NOW)

        assert data.origin == "Shanghai"
        assert data.destination == "Rotterdam"
        assert data.last_location == "Rotterdam"

    def test_explicit_ports_take_precedence(self):
        data = normalize(_raw(pol="Ningbo", pod="Hamburg"), now=NOW)

        assert data.origin == "Ningbo"
        assert data.destination == "Hamburg"

    def test_status_text_is_preserved(self):
        data = normalize(_raw(status="Customs Cleared"), now=NOW)

        assert data.status == ShipmentStatus.CUSTOMS_CLEARED
        assert data.status_text == "Customs Cleared"

    def test_status_derived_from_latest_event(self):
        data = normalize(_raw(status=None), now=NOW)

        assert data.status == ShipmentStatus.CARGO_ARRIVED
        assert data.status_text == "Vessel Arrived"

    def test_unparsable_dates_use_clock(self):
        raw = _raw(eta="sometime soon", events=[{"location": "Busan", "timestamp": "??", "status": "Gate In"}])
        data = normalize(raw, now=NOW)

        assert data.eta == NOW
        assert data.timeline[0].events[0].timestamp == NOW

    def test_malformed_events_are_skipped(self):
        raw = _raw(events=[None, "garbage", {"status": "Gate In", "timestamp": "2024-01-01"}])
        data = normalize(raw, now=NOW)

        assert len(data.timeline) == 1
        assert data.timeline[0].location == "Unknown Location"

    def test_non_mapping_degrades_to_defaults(self):
        data = normalize(None, now=NOW)

        assert data.status == ShipmentStatus.PENDING
        assert data.origin == "Unknown"
        assert data.timeline == []

    def test_renormalizing_is_stable(self):
        once = normalize(_raw(), IdentifierType.CONTAINER, now=NOW)
        twice = normalize(once, IdentifierType.CONTAINER, now=NOW)

        assert twice.status == once.status
        assert twice.timeline == once.timeline
        assert [e.type for g in twice.timeline for e in g.events] == [e.type for g in once.timeline for e in g.events]
        assert twice.details == once.details

    def test_renormalizing_keeps_provider_status(self):
        raw = _raw(status="origin_departure", events=[])
        once = normalize(raw, IdentifierType.CONTAINER, provider="gocomet", now=NOW)
        twice = normalize(once, IdentifierType.CONTAINER, now=NOW)

        assert once.status == ShipmentStatus.CARGO_DEPARTED
        assert twice.status == ShipmentStatus.CARGO_DEPARTED
        assert twice.status_text == "origin_departure"
