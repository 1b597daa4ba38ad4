"""
Shipment Tracking API Endpoints.

Thin HTTP layer over the tracking orchestrator: 200 on success, 400 for a
missing or over-long tracking number, 502 when every provider failed.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from fastapi.responses import JSONResponse

from shipment_tracker.app.core.dependencies import get_orchestrator
from shipment_tracker.app.core.exceptions import InvalidTrackingNumberError, ResourceNotFoundError
from shipment_tracker.app.schemas.tracking import (
    IdentifierResponse,
    ProviderStatus,
    ProviderStatusList,
    ResolveOptions,
    TrackingRequest,
    TrackingResponse,
)
from shipment_tracker.app.services.carriers import carrier_info
from shipment_tracker.app.services.orchestrator import TrackingOrchestrator

router = APIRouter(prefix="/tracking", tags=["Tracking"])


def _json(response: TrackingResponse, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=response.model_dump(by_alias=True, exclude_none=True, mode="json"),
    )


async def _track(orchestrator: TrackingOrchestrator, tracking_number: Optional[str], options: ResolveOptions) -> JSONResponse:
    try:
        identifier = orchestrator.identify(tracking_number)
    except InvalidTrackingNumberError as e:
        return _json(TrackingResponse(success=False, error=e.message), status.HTTP_400_BAD_REQUEST)

    result = await orchestrator.resolve(identifier, options)
    response = TrackingResponse(
        success=result.success,
        data=result.data,
        source=result.source,
        is_live_data=result.is_live_data,
        scraped_at=result.scraped_at,
        error=result.error,
        carrier_info=carrier_info(
            identifier.carrier_hint or options.carrier_hint,
            identifier.normalized,
            identifier.type,
        ),
        fallback_options=result.fallback_options,
    )
    return _json(response, status.HTTP_200_OK if result.success else status.HTTP_502_BAD_GATEWAY)


@router.post("", response_model=TrackingResponse)
async def track_shipment(
    request: TrackingRequest,
    orchestrator: TrackingOrchestrator = Depends(get_orchestrator)
):
    """
    Track a shipment by container, BL, booking, AWB or parcel number.

    The carrier hint only changes the order in which providers are tried.
    """
    options = ResolveOptions(
        carrier_hint=request.carrier_hint,
        prefer_scraping=request.prefer_scraping,
        enable_fallback=request.enable_fallback,
    )
    return await _track(orchestrator, request.tracking_number, options)


@router.get("", response_model=TrackingResponse)
async def track_shipment_by_query(
    number: Optional[str] = Query(None, description="Tracking number"),
    carrier: Optional[str] = Query(None, max_length=50, description="Carrier hint"),
    scraping: bool = Query(False, description="Try web scraping first"),
    fallback: bool = Query(True, description="Escalate to scraping and carrier links on failure"),
    orchestrator: TrackingOrchestrator = Depends(get_orchestrator)
):
    """Query-string variant of the tracking endpoint."""
    options = ResolveOptions(carrier_hint=carrier, prefer_scraping=scraping, enable_fallback=fallback)
    return await _track(orchestrator, number, options)


@router.get("/identify", response_model=IdentifierResponse)
async def identify_tracking_number(
    number: Optional[str] = Query(None, description="Tracking number"),
    orchestrator: TrackingOrchestrator = Depends(get_orchestrator)
):
    """Classify a tracking number without contacting any provider."""
    identifier = orchestrator.identify(number)
    return IdentifierResponse(
        identifier=identifier,
        carrier_info=carrier_info(identifier.carrier_hint, identifier.normalized, identifier.type),
    )


@router.get("/providers", response_model=ProviderStatusList)
async def list_providers(orchestrator: TrackingOrchestrator = Depends(get_orchestrator)):
    """List registered providers and whether they are configured."""
    return orchestrator.registry.status()


@router.get("/providers/{name}", response_model=ProviderStatus)
async def get_provider(
    name: str = Path(..., description="Provider name"),
    orchestrator: TrackingOrchestrator = Depends(get_orchestrator)
):
    provider = orchestrator.registry.get(name)
    if provider is None:
        raise ResourceNotFoundError("Provider", name)
    return provider.status()
