"""
Configuration settings for the Shipment Tracker.

This module handles application configuration using Pydantic settings.
Provider credentials are optional: an adapter without them is registered
but reported as unavailable and never tried.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = "Shipment Tracker"
    api_version: str = "v1"
    debug: bool = False
    log_level: str = "INFO"

    # Orchestration
    provider_timeout_seconds: float = 20.0
    scraping_timeout_seconds: float = 45.0
    token_cache_ttl_seconds: int = 3300
    courier_detector_enabled: bool = True

    # Maersk (DCSA track & trace, OAuth2 client credentials)
    maersk_api_url: str = "https://api.maersk.com"
    maersk_client_id: Optional[str] = None
    maersk_client_secret: Optional[str] = None

    # MSC (DCSA track & trace, basic auth)
    msc_api_url: str = "https://api.msc.com"
    msc_username: Optional[str] = None
    msc_password: Optional[str] = None

    # GoComet aggregator
    gocomet_auth_url: str = "https://login.gocomet.com/api/v1/integrations/generate-token-number"
    gocomet_tracking_url: str = "https://tracking.gocomet.com/api/v1/integrations/live-tracking"
    gocomet_email: Optional[str] = None
    gocomet_password: Optional[str] = None

    # SeaRates aggregator
    searates_api_url: str = "https://api.searates.com/tracking/v2"
    searates_api_key: Optional[str] = None

    # TrackShip parcel aggregator
    trackship_api_url: str = "https://api.trackship.com/v1"
    trackship_api_key: Optional[str] = None

    # Web scraping (Playwright)
    scraping_enabled: bool = True
    scraping_headless: bool = True
    scraping_priority: int = 100

    # Mock provider (demo data, never live)
    mock_provider_enabled: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
