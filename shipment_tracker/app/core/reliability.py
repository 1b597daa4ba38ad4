"""
Reliability utilities for provider calls.

Every provider attempt gets its own time budget so a hung data source
cannot stall the rest of the chain.
"""

import asyncio
from typing import Awaitable, TypeVar

from shipment_tracker.app.core.exceptions import ProviderTimeoutError

T = TypeVar("T")


async def call_with_timeout(awaitable: Awaitable[T], timeout_seconds: float, provider: str) -> T:
    """
    Await a provider call, cancelling it when the budget runs out.

    Cancellation reaches the provider coroutine, so its ``finally`` blocks
    (browser sessions, open responses) run before this returns.

    Raises:
        ProviderTimeoutError: if the call does not finish in time
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_seconds)
    except asyncio.TimeoutError as e:
        raise ProviderTimeoutError(provider, timeout_seconds) from e
