"""MSC direct carrier adapter (DCSA events API, HTTP basic auth)."""

from typing import Any, Dict, Optional

import httpx

from shipment_tracker.app.services.providers.dcsa import DcsaEventsProvider


class MSCProvider(DcsaEventsProvider):
    name = "msc"
    carrier = "msc"
    carrier_name = "MSC"
    events_path = "/track-and-trace/v2/events"

    def __init__(
        self,
        api_url: str,
        username: Optional[str],
        password: Optional[str],
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(api_url, client)
        self.username = username
        self.password = password

    def is_configured(self) -> bool:
        return bool(self.username and self.password)

    async def request_options(self) -> Dict[str, Any]:
        return {
            "auth": httpx.BasicAuth(self.username, self.password),
            "headers": {"Accept": "application/json"},
        }
