# rfq_service/api/v1/endpoints/health.py
from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check():
    return {"status": "ok", "service": "itinerary-rfq-service"}
