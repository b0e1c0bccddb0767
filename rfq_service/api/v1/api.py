# rfq_service/api/v1/api.py

from fastapi import APIRouter
from rfq_service.api.v1.endpoints import (
    agency_itineraries,
    health,
    itineraries,
    quotes,
    rfqs,
    supplier_rfq_segments,
)

# Main router for the v1 API.
api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(agency_itineraries.router)
api_router.include_router(itineraries.router)
api_router.include_router(rfqs.router)
api_router.include_router(supplier_rfq_segments.router)
api_router.include_router(quotes.router)
