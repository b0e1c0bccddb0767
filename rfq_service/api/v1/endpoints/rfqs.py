# rfq_service/api/v1/endpoints/rfqs.py
"""Agency RFQ endpoints: request a quote, follow segments, decide on proposals."""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from rfq_service.api import deps
from rfq_service.crud import crud_rfq, crud_rfq_audit_log, crud_rfq_segment
from rfq_service.db.session import get_db
from rfq_service.schemas.itinerary import ItineraryResponse
from rfq_service.schemas.rfq import (
    RfqAuditEntry,
    RfqCreate,
    RfqListItem,
    RfqResponse,
    RfqSegmentResponse,
    SegmentDecisionRequest,
)
from rfq_service.schemas.token import TokenPayload
from rfq_service.services import segmentation

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Agency RFQs"])


def _build_rfq_response(rfq) -> dict:
    data = RfqResponse.model_validate(rfq).model_dump()
    data["itinerary"] = (
        ItineraryResponse.model_validate(rfq.itinerary).model_dump()
        if rfq.itinerary
        else None
    )
    return data


@router.post("/agency/rfqs", status_code=status.HTTP_201_CREATED)
def request_quote(
    body: RfqCreate,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_agency_user),
):
    """Create the RFQ for an itinerary and fan segments out to in-tenant suppliers."""
    rfq = segmentation.request_quote(
        db,
        principal=current_user,
        itinerary_id=body.itinerary_id,
        expires_at=body.expires_at,
    )
    rfq = crud_rfq.get(db, rfq.id)  # reload with relations
    return _build_rfq_response(rfq)


@router.get("/agency/rfqs")
def list_rfqs(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_agency_user),
):
    result = crud_rfq.list_by_agency(
        db, current_user.agency_id, status=status_filter, page=page, page_size=page_size
    )
    return {
        "rfqs": [RfqListItem(**item) for item in result["rfqs"]],
        "pagination": result["pagination"],
    }


@router.get("/agency/rfqs/{rfqId}")
def get_rfq(
    rfqId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_agency_user),
):
    """RFQ detail with all segments and the parent itinerary."""
    rfq = crud_rfq.get_for_agency(db, rfqId, current_user)
    return _build_rfq_response(rfq)


@router.get("/agency/rfqs/{rfqId}/audit", response_model=List[RfqAuditEntry])
def get_rfq_audit_log(
    rfqId: str,
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_agency_user),
):
    rfq = crud_rfq.get_for_agency(db, rfqId, current_user)
    return crud_rfq_audit_log.get_audit_log_for_rfq(db, rfq.id, limit=limit)


@router.patch("/agency/rfq-segments/{segmentId}/status", response_model=RfqSegmentResponse)
def decide_segment(
    segmentId: str,
    body: SegmentDecisionRequest,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_agency_user),
):
    """Accept or reject a supplier's proposal. Only proposed segments can be decided."""
    return crud_rfq_segment.decide(
        db, principal=current_user, segment_id=segmentId, decision=body.status
    )
