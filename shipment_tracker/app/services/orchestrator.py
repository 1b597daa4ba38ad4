"""
Tracking orchestrator.

Classifies the identifier, asks the registry for candidates, lets the
escalation policy order them and tries them one at a time, each within its
own timeout. The first success wins. The orchestrator never raises; every
outcome is a TrackingResult.
"""

import logging
import time
from typing import Optional

from shipment_tracker.app.core.exceptions import InvalidTrackingNumberError, ProviderTimeoutError
from shipment_tracker.app.core.reliability import call_with_timeout
from shipment_tracker.app.schemas.tracking import ResolveOptions, TrackingIdentifier, TrackingResult
from shipment_tracker.app.services.classifier import IdentifierClassifier
from shipment_tracker.app.services.fallback import EscalationPolicy, build_fallback_options
from shipment_tracker.app.services.registry import ProviderRegistry

logger = logging.getLogger(__name__)

EXHAUSTED_MESSAGE = "all providers exhausted"
NO_PROVIDER_MESSAGE = "No tracking provider available for this identifier"


class TrackingOrchestrator:

    def __init__(
        self,
        registry: ProviderRegistry,
        classifier: Optional[IdentifierClassifier] = None,
        timeout_seconds: float = 20.0,
    ):
        self.registry = registry
        self.classifier = classifier or IdentifierClassifier()
        self.timeout_seconds = timeout_seconds

    def identify(self, tracking_number: Optional[str]) -> TrackingIdentifier:
        """
        Validate and classify a raw tracking number.

        Raises:
            InvalidTrackingNumberError: empty or over-long input
        """
        return self.classifier.classify_request(tracking_number)

    async def track(self, tracking_number: Optional[str], options: Optional[ResolveOptions] = None) -> TrackingResult:
        try:
            identifier = self.identify(tracking_number)
        except InvalidTrackingNumberError as e:
            return TrackingResult(success=False, error=e.message)
        return await self.resolve(identifier, options)

    async def resolve(self, identifier: TrackingIdentifier, options: Optional[ResolveOptions] = None) -> TrackingResult:
        options = options or ResolveOptions()
        policy = EscalationPolicy(options)
        candidates = policy.order(self.registry.candidates(identifier, options))

        log_context = {
            "tracking_number": identifier.normalized,
            "identifier_type": identifier.type.value,
            "carrier_hint": identifier.carrier_hint,
        }
        logger.info(
            f"Resolving {identifier.normalized} with {len(candidates)} candidate(s)",
            extra={**log_context, "candidates": [provider.name for provider in candidates]}
        )

        last_failure: Optional[TrackingResult] = None
        for provider in candidates:
            policy.record_attempt(provider)
            timeout = provider.timeout or self.timeout_seconds
            start = time.perf_counter()

            try:
                result = await call_with_timeout(provider.resolve(identifier, options), timeout, provider.name)
            except ProviderTimeoutError as e:
                logger.warning(e.message, extra={**log_context, "provider": provider.name, "timeout_seconds": timeout})
                last_failure = TrackingResult(success=False, error=e.message, source=provider.name)
                continue
            except Exception:
                logger.exception(f"Provider {provider.name} raised", extra={**log_context, "provider": provider.name})
                last_failure = TrackingResult(success=False, error=f"{provider.name} failed unexpectedly", source=provider.name)
                continue

            elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
            if result.success:
                policy.resolve()
                logger.info(
                    f"Resolved {identifier.normalized} via {provider.name}",
                    extra={**log_context, "provider": provider.name, "duration_ms": elapsed_ms}
                )
                return result.model_copy(update={"source": provider.name, "is_live_data": provider.is_live})

            logger.info(
                f"Provider {provider.name} failed: {result.error}",
                extra={**log_context, "provider": provider.name, "duration_ms": elapsed_ms}
            )
            last_failure = result

        policy.exhaust()
        logger.warning(f"All providers exhausted for {identifier.normalized}", extra=log_context)

        if options.enable_fallback:
            return TrackingResult(
                success=False,
                error=EXHAUSTED_MESSAGE,
                source="none",
                fallback_options=build_fallback_options(identifier),
            )
        if last_failure is not None:
            return last_failure
        return TrackingResult(success=False, error=NO_PROVIDER_MESSAGE)
