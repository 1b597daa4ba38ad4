"""
Provider registry.

Holds the registered adapters and builds the ordered candidate list for
each request.
"""

import logging
from typing import Dict, List, Optional

from shipment_tracker.app.core.config import Settings
from shipment_tracker.app.models.tracking_enums import ProviderKind
from shipment_tracker.app.schemas.tracking import (
    ProviderStatusList,
    ResolveOptions,
    TrackingIdentifier,
)
from shipment_tracker.app.services.cache import TTLCache
from shipment_tracker.app.services.providers.base import TrackingProvider
from shipment_tracker.app.services.providers.gocomet import GoCometProvider
from shipment_tracker.app.services.providers.maersk import MaerskProvider
from shipment_tracker.app.services.providers.mock import MockProvider
from shipment_tracker.app.services.providers.msc import MSCProvider
from shipment_tracker.app.services.providers.scraping import ScrapingProvider
from shipment_tracker.app.services.providers.searates import SeaRatesProvider
from shipment_tracker.app.services.providers.trackship import TrackShipProvider

logger = logging.getLogger(__name__)


class ProviderRegistry:

    def __init__(self):
        self._providers: Dict[str, TrackingProvider] = {}

    def register(self, provider: TrackingProvider) -> TrackingProvider:
        if not provider.name:
            raise ValueError("Provider must have a name")
        if provider.name in self._providers:
            raise ValueError(f"Provider '{provider.name}' is already registered")
        self._providers[provider.name] = provider
        logger.info(
            f"Registered provider {provider.name}",
            extra={"provider": provider.name, "priority": provider.priority, "configured": provider.is_configured()}
        )
        return provider

    def get(self, name: str) -> Optional[TrackingProvider]:
        return self._providers.get(name)

    @property
    def providers(self) -> List[TrackingProvider]:
        """All providers in registration order."""
        return list(self._providers.values())

    def candidates(self, identifier: TrackingIdentifier, options: ResolveOptions) -> List[TrackingProvider]:
        """
        Configured providers able to handle the identifier, in attempt order.

        Ascending priority (ties keep registration order), then providers
        matching the caller's carrier hint moved to the front, then the
        scraping provider moved to the very front when scraping is preferred.
        """
        eligible = [
            provider for provider in self._providers.values()
            if provider.is_configured() and provider.can_handle(identifier)
        ]
        eligible.sort(key=lambda provider: provider.priority)

        if options.carrier_hint:
            eligible.sort(key=lambda provider: not provider.matches_hint(options.carrier_hint))
        if options.prefer_scraping:
            eligible.sort(key=lambda provider: provider.kind != ProviderKind.SCRAPING)
        return eligible

    def status(self) -> ProviderStatusList:
        statuses = [provider.status() for provider in sorted(self._providers.values(), key=lambda p: p.priority)]
        return ProviderStatusList(
            providers=statuses,
            total_providers=len(statuses),
            available_providers=sum(1 for status in statuses if status.available),
        )

    async def aclose(self):
        for provider in self._providers.values():
            try:
                await provider.aclose()
            except Exception:
                logger.exception(f"Failed to close provider {provider.name}")


def build_default_registry(settings: Settings, token_cache: TTLCache) -> ProviderRegistry:
    """Register every adapter; unconfigured ones are reported but never tried."""
    registry = ProviderRegistry()
    registry.register(MaerskProvider(
        settings.maersk_api_url,
        settings.maersk_client_id,
        settings.maersk_client_secret,
        token_cache,
        token_ttl_seconds=settings.token_cache_ttl_seconds,
    ))
    registry.register(MSCProvider(settings.msc_api_url, settings.msc_username, settings.msc_password))
    registry.register(GoCometProvider(
        settings.gocomet_auth_url,
        settings.gocomet_tracking_url,
        settings.gocomet_email,
        settings.gocomet_password,
        token_cache,
        token_ttl_seconds=settings.token_cache_ttl_seconds,
    ))
    registry.register(SeaRatesProvider(settings.searates_api_url, settings.searates_api_key))
    registry.register(TrackShipProvider(settings.trackship_api_url, settings.trackship_api_key))
    registry.register(ScrapingProvider(
        enabled=settings.scraping_enabled,
        headless=settings.scraping_headless,
        priority=settings.scraping_priority,
        timeout=settings.scraping_timeout_seconds,
    ))
    if settings.mock_provider_enabled:
        registry.register(MockProvider())
    return registry
