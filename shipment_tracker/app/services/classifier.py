"""
Identifier classification.

Turns a raw tracking number into a typed TrackingIdentifier:
1. Normalize (trim, upper-case, drop whitespace and hyphens)
2. Look up the 4-letter owner prefix in the carrier directory
3. Match the ordered shape patterns (container, BL, booking)

An optional detector is consulted first and wins only when it recognizes
the number; a caller-supplied carrier hint never changes classification.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import NamedTuple, Optional, Pattern, Tuple

from shipment_tracker.app.core.exceptions import InvalidTrackingNumberError
from shipment_tracker.app.models.tracking_enums import IdentifierType
from shipment_tracker.app.schemas.tracking import TrackingIdentifier
from shipment_tracker.app.services.carriers import AIRLINE_PREFIXES, carrier_for_prefix

logger = logging.getLogger(__name__)

MAX_TRACKING_NUMBER_LENGTH = 50
MIN_PLAUSIBLE_LENGTH = 6

_STRIP_PATTERN = re.compile(r"[\s-]+")
_ALPHA_PREFIX = re.compile(r"^[A-Z]{4}")

# First match wins; order matters.
SHAPE_PATTERNS: Tuple[Tuple[IdentifierType, Tuple[Pattern, ...]], ...] = (
    (IdentifierType.CONTAINER, (
        re.compile(r"^[A-Z]{4}\d{6,7}\d?$"),
    )),
    (IdentifierType.BL, (
        re.compile(r"^[A-Z]{4}\d{9,12}$"),
        re.compile(r"^[A-Z]{2,4}\d{8,15}$"),
        re.compile(r"^\d{10,15}$"),
        re.compile(r"^[A-Z]{3}\d{8,12}$"),
    )),
    (IdentifierType.BOOKING, (
        re.compile(r"^[A-Z0-9]{6,12}$"),
        re.compile(r"^[A-Z]{2,3}\d{6,10}$"),
    )),
)

BASE_CONFIDENCE = {
    IdentifierType.CONTAINER: 0.90,
    IdentifierType.BL: 0.75,
    IdentifierType.BOOKING: 0.60,
    IdentifierType.UNKNOWN: 0.30,
}
KNOWN_PREFIX_BONUS = 0.05

# ISO 6346 letter values skip multiples of 11
_LETTER_VALUES = {}
_value = 10
for _letter in "ABCDEFGHIJKLMNOPQRSTUVWXYZ":
    if _value % 11 == 0:
        _value += 1
    _LETTER_VALUES[_letter] = _value
    _value += 1


def normalize_tracking_number(raw: Optional[str]) -> str:
    return _STRIP_PATTERN.sub("", (raw or "").strip().upper())


def carrier_hint_for(normalized: str) -> Optional[str]:
    """Carrier code from the leading 4-letter owner prefix, if any."""
    match = _ALPHA_PREFIX.match(normalized)
    if not match:
        return None
    return carrier_for_prefix(match.group(0))


def container_check_digit(number: str) -> Optional[int]:
    """ISO 6346 check digit for the first 10 characters of a container number."""
    if len(number) < 10:
        return None
    total = 0
    for position, char in enumerate(number[:10]):
        if char.isdigit():
            value = int(char)
        elif char in _LETTER_VALUES:
            value = _LETTER_VALUES[char]
        else:
            return None
        total += value * (2 ** position)
    return total % 11 % 10


def matches_shape(identifier_type: IdentifierType, normalized: str) -> bool:
    for shape_type, patterns in SHAPE_PATTERNS:
        if shape_type == identifier_type:
            return any(pattern.match(normalized) for pattern in patterns)
    return False


def has_valid_check_digit(number: str) -> bool:
    if not re.fullmatch(r"[A-Z]{4}\d{7}", number):
        return False
    return container_check_digit(number) == int(number[-1])


class Detection(NamedTuple):
    type: IdentifierType
    carrier_hint: Optional[str] = None
    confidence: float = 0.0


class TrackingNumberDetector(ABC):
    """Third-party style detector consulted before the local patterns."""

    @abstractmethod
    def detect(self, normalized: str) -> Detection:
        """Return a Detection; type UNKNOWN means 'no opinion'."""


class CarrierDirectoryDetector(TrackingNumberDetector):
    """
    Detector backed by the carrier directory.

    Recognizes air waybills by IATA airline prefix, parcel numbers by courier
    shape, and ocean references only when the owner prefix is a known carrier.
    """

    AWB_PATTERN = re.compile(r"^(\d{3})(\d{8})$")
    PARCEL_PATTERNS = (
        (re.compile(r"^1Z[A-Z0-9]{16}$"), "ups", 0.90),
        (re.compile(r"^JD\d{18}$"), "dhl", 0.85),
        (re.compile(r"^9\d{19}(\d{2})?$"), "usps", 0.80),
    )

    def detect(self, normalized: str) -> Detection:
        awb = self.AWB_PATTERN.match(normalized)
        if awb and awb.group(1) in AIRLINE_PREFIXES:
            return Detection(IdentifierType.AWB, AIRLINE_PREFIXES[awb.group(1)], 0.90)

        for pattern, courier, confidence in self.PARCEL_PATTERNS:
            if pattern.match(normalized):
                return Detection(IdentifierType.PARCEL, courier, confidence)

        carrier = carrier_hint_for(normalized)
        if carrier is None:
            return Detection(IdentifierType.UNKNOWN)

        if matches_shape(IdentifierType.CONTAINER, normalized):
            confidence = 1.0 if has_valid_check_digit(normalized) else 0.95
            return Detection(IdentifierType.CONTAINER, carrier, confidence)
        if matches_shape(IdentifierType.BL, normalized):
            return Detection(IdentifierType.BL, carrier, 0.80)
        return Detection(IdentifierType.UNKNOWN, carrier)


def classify_local(normalized: str) -> Detection:
    """Pattern-only classification in the fixed container → BL → booking order."""
    carrier = carrier_hint_for(normalized)
    bonus = KNOWN_PREFIX_BONUS if carrier else 0.0

    for identifier_type, patterns in SHAPE_PATTERNS:
        if any(pattern.match(normalized) for pattern in patterns):
            confidence = BASE_CONFIDENCE[identifier_type] + bonus
            if identifier_type == IdentifierType.CONTAINER and has_valid_check_digit(normalized):
                confidence = 1.0
            return Detection(identifier_type, carrier, round(confidence, 2))

    if len(normalized) >= MIN_PLAUSIBLE_LENGTH:
        return Detection(IdentifierType.UNKNOWN, carrier, round(BASE_CONFIDENCE[IdentifierType.UNKNOWN] + bonus, 2))
    return Detection(IdentifierType.UNKNOWN, carrier, 0.0)


class IdentifierClassifier:
    """Classifies tracking numbers, optionally deferring to a detector."""

    def __init__(self, detector: Optional[TrackingNumberDetector] = None):
        self.detector = detector

    def validate(self, raw: Optional[str]) -> str:
        """
        Check request-level rules and return the normalized number.

        Raises:
            InvalidTrackingNumberError: empty after normalization, or longer
                than 50 characters after trimming
        """
        normalized = normalize_tracking_number(raw)
        if not normalized:
            raise InvalidTrackingNumberError("Tracking number is required")
        if len((raw or "").strip()) > MAX_TRACKING_NUMBER_LENGTH:
            raise InvalidTrackingNumberError(
                f"Tracking number must be at most {MAX_TRACKING_NUMBER_LENGTH} characters"
            )
        return normalized

    def classify(self, raw: Optional[str]) -> TrackingIdentifier:
        raw = raw or ""
        normalized = normalize_tracking_number(raw)
        result = classify_local(normalized)

        if self.detector is not None and normalized:
            try:
                detection = self.detector.detect(normalized)
            except Exception:
                logger.warning("Tracking number detector failed; using local patterns", exc_info=True)
                detection = None
            if detection is not None and detection.type != IdentifierType.UNKNOWN:
                result = Detection(
                    detection.type,
                    detection.carrier_hint or result.carrier_hint,
                    detection.confidence,
                )

        return TrackingIdentifier(
            raw=raw,
            normalized=normalized,
            type=result.type,
            carrier_hint=result.carrier_hint,
            confidence=result.confidence,
        )

    def classify_request(self, raw: Optional[str]) -> TrackingIdentifier:
        self.validate(raw)
        return self.classify(raw)


_default_classifier = IdentifierClassifier()


def classify(raw: Optional[str]) -> TrackingIdentifier:
    """Classify with local patterns only."""
    return _default_classifier.classify(raw)
