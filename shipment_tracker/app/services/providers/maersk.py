"""
Maersk direct carrier adapter.

OAuth2 client-credentials token (cached until shortly before expiry),
then the DCSA track-and-trace events API.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from shipment_tracker.app.core.exceptions import ProviderAuthError
from shipment_tracker.app.services.cache import TTLCache
from shipment_tracker.app.services.providers.dcsa import DcsaEventsProvider

logger = logging.getLogger(__name__)

# Refresh tokens this many seconds before the server-side expiry
TOKEN_EXPIRY_MARGIN = 60


class MaerskProvider(DcsaEventsProvider):
    name = "maersk"
    carrier = "maersk"
    carrier_name = "Maersk"
    token_path = "/customer-identity/oauth/v2/access_token"
    events_path = "/track-and-trace-private/events"

    def __init__(
        self,
        api_url: str,
        client_id: Optional[str],
        client_secret: Optional[str],
        token_cache: TTLCache,
        token_ttl_seconds: int = 3300,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(api_url, client)
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_cache = token_cache
        self.token_ttl_seconds = token_ttl_seconds

    @property
    def token_key(self) -> str:
        return f"token:{self.name}:{self.client_id}"

    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    async def access_token(self) -> str:
        token = await self.token_cache.get(self.token_key)
        if token:
            return token

        response = await self.client.post(
            f"{self.api_url}{self.token_path}",
            data={
                "grant_type": "client_credentials",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            },
            headers={"Consumer-Key": self.client_id},
        )
        if response.status_code in (400, 401, 403):
            raise ProviderAuthError(self.name, f"Maersk token request rejected ({response.status_code})")
        response.raise_for_status()

        payload = response.json()
        token = payload.get("access_token")
        if not token:
            raise ProviderAuthError(self.name, "Maersk token response had no access_token")

        ttl = self.token_ttl_seconds
        if payload.get("expires_in"):
            ttl = min(ttl, int(payload["expires_in"]) - TOKEN_EXPIRY_MARGIN)
        await self.token_cache.set(self.token_key, token, ttl_seconds=ttl)
        logger.info("Maersk access token refreshed", extra={"provider": self.name, "ttl_seconds": ttl})
        return token

    async def request_options(self) -> Dict[str, Any]:
        token = await self.access_token()
        return {
            "headers": {
                "Authorization": f"Bearer {token}",
                "Consumer-Key": self.client_id,
            }
        }

    async def invalidate_credentials(self):
        await self.token_cache.delete(self.token_key)
