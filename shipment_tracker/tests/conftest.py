"""
Centralized Test Configuration.
"""

import asyncio
from typing import Optional

import pytest
from httpx import AsyncClient, ASGITransport

from shipment_tracker.app.main import app
from shipment_tracker.app.core.dependencies import get_orchestrator
from shipment_tracker.app.models.tracking_enums import ProviderKind
from shipment_tracker.app.schemas.tracking import ResolveOptions, TrackingIdentifier, TrackingResult
from shipment_tracker.app.services.normalizer import normalize
from shipment_tracker.app.services.orchestrator import TrackingOrchestrator
from shipment_tracker.app.services.providers.base import TrackingProvider
from shipment_tracker.app.services.registry import ProviderRegistry


class FakeProvider(TrackingProvider):
    """
    Scriptable provider.

    outcome: "success" | "failure" | "raise" | "hang"
    """

    def __init__(
        self,
        name: str,
        priority: int = 50,
        kind: ProviderKind = ProviderKind.AGGREGATOR,
        carrier: Optional[str] = None,
        outcome: str = "success",
        status_text: str = "In Transit",
        error: str = "boom",
        configured: bool = True,
        handles: bool = True,
        is_live: bool = True,
        timeout: Optional[float] = None,
    ):
        self.name = name
        self.priority = priority
        self.kind = kind
        self.carrier = carrier
        self.outcome = outcome
        self.status_text = status_text
        self.error = error
        self.configured = configured
        self.handles = handles
        self.is_live = is_live
        self.timeout = timeout
        self.calls = 0
        self.closed = False

    def is_configured(self) -> bool:
        return self.configured

    def can_handle(self, identifier: TrackingIdentifier) -> bool:
        return self.handles

    async def fetch(self, identifier: TrackingIdentifier, options: ResolveOptions) -> TrackingResult:
        self.calls += 1
        if self.outcome == "hang":
            await asyncio.sleep(3600)
        if self.outcome == "raise":
            raise RuntimeError(self.error)
        if self.outcome == "failure":
            return self.failure(self.error)
        data = normalize(
            {
                "shipment_number": identifier.normalized,
                "status": self.status_text,
                "pol": "Busan",
                "pod": "Los Angeles",
                "events": [
                    {"location": "Busan", "timestamp": "2024-03-01T06:00:00Z", "status": "Vessel departure"},
                ],
            },
            identifier.type,
        )
        return self.success(data)

    async def aclose(self):
        self.closed = True


@pytest.fixture
def fake_provider():
    """Factory for scriptable providers."""
    return FakeProvider


@pytest.fixture
def registry():
    return ProviderRegistry()


@pytest.fixture
def orchestrator(registry):
    return TrackingOrchestrator(registry, timeout_seconds=0.2)


@pytest.fixture
async def client(orchestrator):
    """Async client for testing, wired to the test orchestrator."""
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides = {}
