"""
Base Tracking Provider - Abstract base class for all tracking data sources.

All providers must implement:
- can_handle(identifier) - Whether the source can track this identifier
- fetch(identifier, options) - Query the source and return a TrackingResult

``resolve`` wraps ``fetch`` and turns every failure into a failed result,
so callers never see provider exceptions.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

import httpx

from shipment_tracker.app.core.exceptions import ProviderAuthError, ProviderDataError, ProviderError
from shipment_tracker.app.models.tracking_enums import ProviderKind
from shipment_tracker.app.schemas.tracking import (
    ProviderStatus,
    ResolveOptions,
    TrackingData,
    TrackingIdentifier,
    TrackingResult,
)

logger = logging.getLogger(__name__)


class TrackingProvider(ABC):
    """
    Abstract tracking provider.

    Class attributes describe the provider to the registry:
    ``name`` (unique), ``priority`` (lower is tried first), ``kind``,
    ``carrier`` (direct carrier adapters only), ``is_live`` and an optional
    per-call ``timeout`` overriding the orchestrator default.
    """

    name: str = ""
    priority: int = 50
    kind: ProviderKind = ProviderKind.AGGREGATOR
    carrier: Optional[str] = None
    is_live: bool = True
    timeout: Optional[float] = None

    def is_configured(self) -> bool:
        """True when required credentials/settings are present."""
        return True

    @abstractmethod
    def can_handle(self, identifier: TrackingIdentifier) -> bool:
        """Whether this provider should be tried for the identifier."""

    @abstractmethod
    async def fetch(self, identifier: TrackingIdentifier, options: ResolveOptions) -> TrackingResult:
        """
        Query the data source.

        May raise ProviderError, httpx errors or payload errors; ``resolve``
        converts them into failed results.
        """

    def matches_hint(self, hint: Optional[str]) -> bool:
        if not hint:
            return False
        hint = hint.strip().lower()
        return hint == self.name.lower() or (self.carrier is not None and hint == self.carrier.lower())

    async def resolve(self, identifier: TrackingIdentifier, options: ResolveOptions) -> TrackingResult:
        try:
            return await self.fetch(identifier, options)
        except ProviderError as e:
            logger.warning(f"{self.name} failed: {e.message}", extra={"provider": self.name, "error_code": e.error_code})
            return self.failure(e.message)
        except asyncio.TimeoutError:
            logger.warning(f"{self.name} timed out", extra={"provider": self.name})
            return self.failure(f"{self.name} timed out")
        except httpx.TimeoutException:
            logger.warning(f"{self.name} request timed out", extra={"provider": self.name})
            return self.failure(f"{self.name} request timed out")
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"{self.name} HTTP error: {e.response.status_code}",
                extra={"provider": self.name, "status_code": e.response.status_code}
            )
            return self.failure(f"{self.name} API error: {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.warning(f"{self.name} connection error: {e}", extra={"provider": self.name})
            return self.failure(f"{self.name} connection error")
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"{self.name} returned an unusable payload: {e}", extra={"provider": self.name})
            return self.failure(f"Invalid response from {self.name}")
        except Exception:
            logger.exception(f"{self.name} failed unexpectedly", extra={"provider": self.name})
            return self.failure(f"{self.name} failed unexpectedly")

    def success(self, data: TrackingData, scraped_at: Optional[datetime] = None) -> TrackingResult:
        return TrackingResult(
            success=True,
            data=data,
            source=self.name,
            is_live_data=self.is_live,
            scraped_at=scraped_at,
        )

    def failure(self, error: str) -> TrackingResult:
        return TrackingResult(success=False, error=error, source=self.name, is_live_data=False)

    def status(self) -> ProviderStatus:
        return ProviderStatus(
            name=self.name,
            kind=self.kind,
            priority=self.priority,
            available=self.is_configured(),
            carrier=self.carrier,
            is_live=self.is_live,
        )

    async def aclose(self):
        """Release resources owned by the provider."""
        return None


class HttpTrackingProvider(TrackingProvider):
    """Provider backed by an HTTP API, owning one httpx.AsyncClient."""

    request_timeout: float = 15.0

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.request_timeout)
        return self._client

    def check_response(self, response: httpx.Response):
        """Raise a typed provider error for auth/not-found responses."""
        if response.status_code in (401, 403):
            raise ProviderAuthError(self.name, f"{self.name} rejected the credentials ({response.status_code})")
        if response.status_code == 404:
            raise ProviderDataError(self.name)
        response.raise_for_status()

    async def aclose(self):
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
