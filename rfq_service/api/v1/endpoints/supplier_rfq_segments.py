# rfq_service/api/v1/endpoints/supplier_rfq_segments.py
"""Supplier endpoints: segment inbox, detail, and price proposals."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from rfq_service.api import deps
from rfq_service.crud import crud_rfq_segment
from rfq_service.db.session import get_db
from rfq_service.schemas.rfq import RfqSegmentResponse, SegmentQuoteProposal
from rfq_service.schemas.token import TokenPayload

router = APIRouter(prefix="/supplier/rfq-segments", tags=["Supplier RFQ Segments"])


def _build_inbox_item(segment) -> dict:
    rfq = segment.rfq
    data = RfqSegmentResponse.model_validate(segment).model_dump()
    data.update({
        "rfq_status": rfq.status,
        "rfq_expires_at": rfq.expires_at,
        "tenant_id": rfq.tenant_id,
        "agency_id": rfq.agency_id,
    })
    return data


@router.get("")
def supplier_inbox(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Segments addressed to every supplier the caller acts for."""
    result = crud_rfq_segment.list_for_supplier(
        db, current_user, status=status_filter, page=page, page_size=page_size
    )
    return {
        "segments": [_build_inbox_item(s) for s in result["segments"]],
        "pagination": result["pagination"],
    }


@router.get("/{segmentId}")
def get_segment(
    segmentId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    segment = crud_rfq_segment.get_for_supplier(db, segmentId, current_user)
    return _build_inbox_item(segment)


@router.post("/{segmentId}/quote", response_model=RfqSegmentResponse)
def propose_segment_quote(
    segmentId: str,
    body: SegmentQuoteProposal,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Submit a price and notes for a pending segment."""
    return crud_rfq_segment.propose(
        db, principal=current_user, segment_id=segmentId, proposal=body
    )
