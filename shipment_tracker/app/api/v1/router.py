"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from shipment_tracker.app.api.v1.endpoints import tracking

router = APIRouter()

# Shipment tracking endpoints
router.include_router(tracking.router)
