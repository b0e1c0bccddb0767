# rfq_service/crud/crud_rfq.py
import math
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload, selectinload

from rfq_service.core.exceptions import AccessDenied, NotFound
from rfq_service.models.itinerary import Itinerary
from rfq_service.models.rfq import Rfq
from rfq_service.models.rfq_segment import RfqSegment
from rfq_service.schemas.token import TokenPayload
from rfq_service.utils.datetime_utils import as_utc, utcnow

TERMINAL_STATUSES = {"quoted", "declined"}


def get(db: Session, rfq_id: str) -> Optional[Rfq]:
    return (
        db.query(Rfq)
        .options(selectinload(Rfq.segments), joinedload(Rfq.itinerary))
        .filter(Rfq.id == rfq_id)
        .first()
    )


def get_by_itinerary(db: Session, itinerary_id: str) -> Optional[Rfq]:
    return db.query(Rfq).filter(Rfq.itinerary_id == itinerary_id).first()


def get_for_agency(db: Session, rfq_id: str, principal: TokenPayload) -> Rfq:
    """Fetch an RFQ owned by the caller's agency. Foreign RFQs are reported as missing."""
    if not principal.agency_id:
        raise AccessDenied("Agency context required")
    rfq = get(db, rfq_id)
    if not rfq or rfq.agency_id != principal.agency_id:
        raise NotFound("RFQ", rfq_id)
    return rfq


def is_expired(rfq: Rfq, now: Optional[datetime] = None) -> bool:
    if rfq.expires_at is None:
        return False
    return (now or utcnow()) > as_utc(rfq.expires_at)


def list_by_agency(
    db: Session,
    agency_id: str,
    status: Optional[str] = None,
    page: int = 1,
    page_size: int = 10,
) -> dict:
    page_size = min(page_size, 50)
    query = (
        db.query(Rfq)
        .options(joinedload(Rfq.itinerary))
        .filter(Rfq.agency_id == agency_id)
    )

    if status:
        query = query.filter(Rfq.status == status)

    total_count = query.count()
    total_pages = math.ceil(total_count / page_size) if page_size > 0 else 0
    offset = (page - 1) * page_size

    rfqs = (
        query.order_by(Rfq.created_at.desc(), Rfq.id)
        .offset(offset)
        .limit(page_size)
        .all()
    )

    # Batch-load segment counts and proposal counts
    rfq_ids = [r.id for r in rfqs]

    segment_counts = dict(
        db.query(RfqSegment.rfq_id, func.count(RfqSegment.id))
        .filter(RfqSegment.rfq_id.in_(rfq_ids))
        .group_by(RfqSegment.rfq_id)
        .all()
    ) if rfq_ids else {}

    proposed_counts = dict(
        db.query(RfqSegment.rfq_id, func.count(RfqSegment.id))
        .filter(
            RfqSegment.rfq_id.in_(rfq_ids),
            RfqSegment.status == "supplier_proposed",
        )
        .group_by(RfqSegment.rfq_id)
        .all()
    ) if rfq_ids else {}

    items = []
    for r in rfqs:
        itinerary: Optional[Itinerary] = r.itinerary
        items.append({
            "id": r.id,
            "itinerary_id": r.itinerary_id,
            "itinerary_title": itinerary.title if itinerary else None,
            "itinerary_start_date": itinerary.start_date if itinerary else None,
            "itinerary_end_date": itinerary.end_date if itinerary else None,
            "status": r.status,
            "expires_at": r.expires_at,
            "segment_count": segment_counts.get(r.id, 0),
            "proposed_count": proposed_counts.get(r.id, 0),
            "created_at": r.created_at,
        })

    return {
        "rfqs": items,
        "pagination": {
            "page": page,
            "page_size": page_size,
            "total_count": total_count,
            "total_pages": total_pages,
        },
    }
