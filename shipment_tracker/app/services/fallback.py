"""
Fallback / escalation policy.

Per-request state machine deciding when scraping candidates are tried
relative to API candidates:

    NOT_ATTEMPTED → API_ATTEMPTED → SCRAPING_ATTEMPTED → RESOLVED | EXHAUSTED

With ``prefer_scraping`` scraping runs first; with ``enable_fallback`` it
runs after every API candidate has failed; otherwise it is not tried.
"""

from typing import List, Optional

from shipment_tracker.app.models.tracking_enums import ProviderKind, ResolutionState
from shipment_tracker.app.schemas.tracking import FallbackOptions, ResolveOptions, TrackingIdentifier
from shipment_tracker.app.services.carriers import get_carrier
from shipment_tracker.app.services.providers.base import TrackingProvider

TERMINAL_STATES = (ResolutionState.RESOLVED, ResolutionState.EXHAUSTED)


class EscalationPolicy:

    def __init__(self, options: ResolveOptions):
        self.options = options
        self.state = ResolutionState.NOT_ATTEMPTED

    def order(self, candidates: List[TrackingProvider]) -> List[TrackingProvider]:
        """Arrange registry candidates into the attempt sequence."""
        api = [provider for provider in candidates if provider.kind != ProviderKind.SCRAPING]
        scraping = [provider for provider in candidates if provider.kind == ProviderKind.SCRAPING]

        if self.options.prefer_scraping:
            return scraping + api
        if self.options.enable_fallback:
            return api + scraping
        return api

    def _check_open(self):
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f"Resolution already finished ({self.state.value})")

    def record_attempt(self, provider: TrackingProvider):
        self._check_open()
        if provider.kind == ProviderKind.SCRAPING:
            self.state = ResolutionState.SCRAPING_ATTEMPTED
        elif self.state == ResolutionState.NOT_ATTEMPTED:
            self.state = ResolutionState.API_ATTEMPTED

    def resolve(self):
        self._check_open()
        if self.state == ResolutionState.NOT_ATTEMPTED:
            raise RuntimeError("Cannot resolve before any provider was attempted")
        self.state = ResolutionState.RESOLVED

    def exhaust(self):
        self._check_open()
        self.state = ResolutionState.EXHAUSTED


def build_fallback_options(identifier: TrackingIdentifier) -> Optional[FallbackOptions]:
    """Deep link to the carrier's own tracking page, if the carrier is known."""
    carrier = get_carrier(identifier.carrier_hint)
    if carrier is None:
        return None
    return FallbackOptions(
        carrier=carrier.name,
        carrier_code=carrier.code,
        tracking_url=carrier.url_for(identifier.normalized, identifier.type),
    )
