"""
Failure Injection Tests.

Validates that provider failures and timeouts never escape as exceptions.
"""

import asyncio

import pytest

from shipment_tracker.app.core.exceptions import ProviderAuthError, ProviderTimeoutError
from shipment_tracker.app.core.reliability import call_with_timeout
from shipment_tracker.app.models.tracking_enums import ShipmentStatus
from shipment_tracker.app.schemas.tracking import ResolveOptions, TrackingData, TrackingResult
from shipment_tracker.app.services.classifier import classify
from shipment_tracker.app.services.providers.mock import MockProvider


@pytest.mark.asyncio
async def test_timeout_raises_provider_timeout():
    with pytest.raises(ProviderTimeoutError) as exc_info:
        await call_with_timeout(asyncio.sleep(3600), 0.01, "slow-provider")

    assert exc_info.value.provider == "slow-provider"
    assert exc_info.value.message == "slow-provider timed out after 0.01s"
    assert exc_info.value.error_code == "ERR_PROVIDER_001"


@pytest.mark.asyncio
async def test_timeout_passes_result_through():
    async def quick():
        return 42

    assert await call_with_timeout(quick(), 1, "fast") == 42


@pytest.mark.asyncio
@pytest.mark.parametrize("error, expected", [
    (ProviderAuthError("gocomet"), "gocomet authentication failed"),
    (asyncio.TimeoutError(), "gocomet timed out"),
    (KeyError("events"), "Invalid response from gocomet"),
    (RuntimeError("kaboom"), "gocomet failed unexpectedly"),
])
async def test_resolve_converts_exceptions(fake_provider, mocker, error, expected):
    provider = fake_provider("gocomet")
    mocker.patch.object(provider, "fetch", side_effect=error)

    result = await provider.resolve(classify("MAEU1234567"), ResolveOptions())

    assert result.success is False
    assert result.error == expected
    assert result.data is None


@pytest.mark.asyncio
async def test_resolve_does_not_swallow_cancellation(fake_provider):
    provider = fake_provider("hanging", outcome="hang")
    task = asyncio.ensure_future(provider.resolve(classify("MAEU1234567"), ResolveOptions()))
    await asyncio.sleep(0)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task


def test_result_cannot_be_both_success_and_error():
    with pytest.raises(ValueError):
        TrackingResult(success=True, data=TrackingData(shipment_number="X"), error="boom")
    with pytest.raises(ValueError):
        TrackingResult(success=False)
    with pytest.raises(ValueError):
        TrackingResult(success=True)


@pytest.mark.asyncio
async def test_mock_provider_is_never_live():
    provider = MockProvider()
    identifier = classify("MSCU9876543")

    assert provider.can_handle(identifier)
    assert not provider.can_handle(classify("MAEU7654321"))

    result = await provider.resolve(identifier, ResolveOptions())
    assert result.success is True
    assert result.is_live_data is False
    assert result.data.status == ShipmentStatus.CUSTOMS_CLEARED
    assert result.data.origin == "Busan"
    assert result.data.destination == "Los Angeles"
