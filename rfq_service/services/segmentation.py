# rfq_service/services/segmentation.py
"""
Segmentation engine: turns an itinerary into an RFQ.

Events are bucketed by the supplier type that quotes them and every
in-tenant supplier of that type receives its own segment carrying the
complete bucket. RFQ, segments, the itinerary status flip and the audit
entry are written in a single transaction.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rfq_service.core.exceptions import (
    AccessDenied,
    DuplicateRfq,
    EmptyItinerary,
    InvalidState,
    NotFound,
    ValidationError,
)
from rfq_service.crud import crud_itinerary, crud_rfq, crud_rfq_audit_log, crud_supplier
from rfq_service.models.itinerary import Itinerary
from rfq_service.models.itinerary_event import ItineraryEvent
from rfq_service.models.rfq import Rfq
from rfq_service.models.rfq_segment import RfqSegment
from rfq_service.schemas.token import TokenPayload
from rfq_service.services.classification import bucket_events
from rfq_service.utils.datetime_utils import as_utc, utcnow

logger = logging.getLogger(__name__)


def serialize_event(event: ItineraryEvent) -> Dict[str, Any]:
    """JSON snapshot of an event as sent to suppliers."""
    day = event.day
    return {
        "id": event.id,
        "day_id": event.day_id,
        "day_number": day.day_number if day else None,
        "date": day.date.isoformat() if day else None,
        "event_type": event.event_type,
        "category": event.category,
        "category_id": event.category_id,
        "summary": event.summary,
        "details": event.details or {},
        "start_time": event.start_time,
        "end_time": event.end_time,
        "supplier_ref": event.supplier_ref,
        "quantity": event.quantity,
        "unit": event.unit,
    }


def _load_itinerary(db: Session, itinerary_id: str, principal: TokenPayload) -> Itinerary:
    if not principal.agency_id:
        raise AccessDenied("Agency context required")
    itinerary = crud_itinerary.get(db, itinerary_id)
    if not itinerary:
        raise NotFound("Itinerary", itinerary_id)
    if itinerary.agency_id != principal.agency_id:
        raise AccessDenied(
            "Access denied: Itinerary not found or does not belong to your agency"
        )
    return itinerary


def request_quote(
    db: Session,
    *,
    principal: TokenPayload,
    itinerary_id: str,
    expires_at: Optional[datetime] = None,
) -> Rfq:
    itinerary = _load_itinerary(db, itinerary_id, principal)

    existing = crud_rfq.get_by_itinerary(db, itinerary.id)
    if existing:
        raise DuplicateRfq(itinerary.id, existing.id)

    events = sorted(
        itinerary.events,
        key=lambda e: (e.day.day_number if e.day else 0, e.start_time or "", e.id),
    )
    if not events:
        raise EmptyItinerary(itinerary.id)

    if itinerary.status in crud_itinerary.TERMINAL_STATUSES:
        raise InvalidState(
            f"Cannot request a quote for a '{itinerary.status}' itinerary",
            {"itinerary_id": itinerary.id, "status": itinerary.status},
        )

    if expires_at is not None and as_utc(expires_at) <= utcnow():
        raise ValidationError("expires_at must be in the future", field="expires_at")

    buckets, unbucketed = bucket_events(events)
    unassigned: List[str] = [e.id for e in unbucketed]

    try:
        rfq = Rfq(
            tenant_id=itinerary.tenant_id,
            itinerary=itinerary,
            agency_id=itinerary.agency_id,
            requested_by_contact_id=principal.sub,
            status="open",
            expires_at=expires_at,
        )
        db.add(rfq)

        segment_count = 0
        for supplier_type, bucket in buckets.items():
            if not bucket:
                continue
            supplier_ids = crud_supplier.list_ids_by_type(
                db, itinerary.tenant_id, supplier_type.value
            )
            if not supplier_ids:
                logger.warning(
                    f"No {supplier_type.value} suppliers in tenant {itinerary.tenant_id}; "
                    f"{len(bucket)} events on itinerary {itinerary.id} left unquoted"
                )
                unassigned.extend(e.id for e in bucket)
                continue

            payload = {"events": [serialize_event(e) for e in bucket]}
            for supplier_id in supplier_ids:
                db.add(RfqSegment(
                    rfq=rfq,
                    supplier_type=supplier_type.value,
                    supplier_id=supplier_id,
                    payload=payload,
                    status="pending",
                ))
                segment_count += 1

        if unbucketed:
            logger.warning(
                f"{len(unbucketed)} uncategorized events on itinerary {itinerary.id} "
                "are not part of any segment"
            )
        rfq.unassigned_event_ids = unassigned

        itinerary.status = "requested"

        crud_rfq_audit_log.add_entry(
            db,
            rfq=rfq,
            user_id=principal.sub,
            action="request_quote",
            new_state="open",
            metadata={
                "itinerary_id": itinerary.id,
                "segment_count": segment_count,
                "unassigned_event_ids": unassigned,
            },
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        # Another request created the RFQ after the duplicate check above
        existing = crud_rfq.get_by_itinerary(db, itinerary_id)
        if existing:
            logger.warning(f"Concurrent RFQ request on itinerary {itinerary_id}")
            raise DuplicateRfq(itinerary_id, existing.id)
        logger.error(f"Segmentation of itinerary {itinerary_id} failed, rolled back")
        raise
    except Exception:
        db.rollback()
        logger.error(f"Segmentation of itinerary {itinerary_id} failed, rolled back")
        raise

    db.refresh(rfq)
    logger.info(
        f"Created RFQ {rfq.id} for itinerary {itinerary_id} with {segment_count} segments"
    )
    return rfq
