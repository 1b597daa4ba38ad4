"""
Tracking dependencies for FastAPI.

The orchestrator is built once at startup and stored on the application
state; endpoints receive it through this dependency so tests can override it.
"""

from fastapi import Request

from shipment_tracker.app.services.orchestrator import TrackingOrchestrator


def get_orchestrator(request: Request) -> TrackingOrchestrator:
    """
    FastAPI dependency returning the application's tracking orchestrator.

    Returns:
        The orchestrator created in the application lifespan
    """
    return request.app.state.orchestrator
