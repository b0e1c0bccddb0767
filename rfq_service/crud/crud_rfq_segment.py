# rfq_service/crud/crud_rfq_segment.py
import logging
import math
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.exc import StaleDataError

from rfq_service.core.exceptions import (
    AccessDenied,
    ConcurrentModification,
    InvalidState,
    InvalidTransition,
    NotFound,
    RfqExpired,
    ValidationError,
)
from rfq_service.crud import crud_rfq, crud_rfq_audit_log, crud_supplier
from rfq_service.models.rfq import Rfq
from rfq_service.models.rfq_segment import RfqSegment
from rfq_service.schemas.rfq import SegmentDecision, SegmentQuoteProposal
from rfq_service.schemas.token import TokenPayload
from rfq_service.services.ownership import can_act_for
from rfq_service.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)

# supplier_review is kept for manual-review flows; nothing transitions into it yet.
VALID_SEGMENT_TRANSITIONS = {
    "pending": {"supplier_proposed"},
    "supplier_review": {"supplier_proposed"},
    "supplier_proposed": {"accepted", "rejected"},
    "accepted": set(),  # Terminal state
    "rejected": set(),  # Terminal state
}

PRICE_QUANTUM = Decimal("0.01")


def validate_transition(old_status: str, new_status: str) -> bool:
    """Returns True if the segment may move from old_status to new_status."""
    if old_status not in VALID_SEGMENT_TRANSITIONS:
        logger.warning(f"Unknown segment status: {old_status}")
        return False
    return new_status in VALID_SEGMENT_TRANSITIONS[old_status]


def _ensure_transition(segment: RfqSegment, new_status: str) -> None:
    if not validate_transition(segment.status, new_status):
        logger.warning(
            f"Invalid segment transition on {segment.id}: {segment.status} -> {new_status}"
        )
        raise InvalidTransition("segment", segment.status, new_status)


def _apply_transition(segment: RfqSegment, new_status: str) -> str:
    old_status = segment.status
    _ensure_transition(segment, new_status)
    segment.status = new_status
    return old_status


def normalize_price(value) -> Decimal:
    """Finite, strictly positive price rounded to cents."""
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("Proposed price must be a number", field="proposed_price")
    if not price.is_finite() or price <= 0:
        raise ValidationError(
            "Proposed price must be a finite positive number", field="proposed_price"
        )
    return price.quantize(PRICE_QUANTUM)


def get(db: Session, segment_id: str) -> Optional[RfqSegment]:
    return (
        db.query(RfqSegment)
        .options(joinedload(RfqSegment.rfq))
        .filter(RfqSegment.id == segment_id)
        .first()
    )


def get_for_update(db: Session, segment_id: str) -> Optional[RfqSegment]:
    """Load a segment with a row lock held until the transaction ends."""
    return (
        db.query(RfqSegment)
        .filter(RfqSegment.id == segment_id)
        .with_for_update()
        .first()
    )


def _ensure_rfq_open(rfq: Rfq) -> None:
    if rfq.status in crud_rfq.TERMINAL_STATUSES:
        raise InvalidState(
            f"RFQ is already '{rfq.status}'",
            {"rfq_id": rfq.id, "status": rfq.status},
        )
    if crud_rfq.is_expired(rfq):
        raise RfqExpired(rfq.id)


def _ensure_supplier_access(db: Session, segment: RfqSegment, principal: TokenPayload) -> None:
    supplier = crud_supplier.get(db, segment.supplier_id)
    if (
        supplier is None
        or supplier.tenant_id != segment.rfq.tenant_id
        or not can_act_for(principal, supplier)
    ):
        raise AccessDenied("Access denied: you do not act for this supplier")


def get_for_supplier(db: Session, segment_id: str, principal: TokenPayload) -> RfqSegment:
    segment = get(db, segment_id)
    if not segment:
        raise NotFound("RFQ segment", segment_id)
    _ensure_supplier_access(db, segment, principal)
    return segment


def list_for_supplier(
    db: Session,
    principal: TokenPayload,
    status: Optional[str] = None,
    page: int = 1,
    page_size: int = 10,
) -> dict:
    """Supplier inbox: segments addressed to any supplier the caller acts for."""
    page_size = min(page_size, 50)
    suppliers = crud_supplier.list_actable(db, principal)
    supplier_ids = [s.id for s in suppliers]

    if not supplier_ids:
        segments: List[RfqSegment] = []
        total_count = 0
    else:
        query = (
            db.query(RfqSegment)
            .join(Rfq, Rfq.id == RfqSegment.rfq_id)
            .options(joinedload(RfqSegment.rfq))
            .filter(RfqSegment.supplier_id.in_(supplier_ids))
        )
        if status:
            query = query.filter(RfqSegment.status == status)
        total_count = query.count()
        segments = (
            query.order_by(RfqSegment.created_at.desc(), RfqSegment.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )

    return {
        "segments": segments,
        "pagination": {
            "page": page,
            "page_size": page_size,
            "total_count": total_count,
            "total_pages": math.ceil(total_count / page_size) if page_size > 0 else 0,
        },
    }


def propose(
    db: Session,
    *,
    principal: TokenPayload,
    segment_id: str,
    proposal: SegmentQuoteProposal,
) -> RfqSegment:
    """
    Supplier submits a price and notes: pending/supplier_review -> supplier_proposed.
    Sibling segments and the parent RFQ status are left untouched.
    """
    segment = get_for_update(db, segment_id)
    if not segment:
        raise NotFound("RFQ segment", segment_id)

    try:
        _ensure_supplier_access(db, segment, principal)
        # An illegal move is reported as such whatever the state of the RFQ
        _ensure_transition(segment, "supplier_proposed")
        price = normalize_price(proposal.proposed_price)
        _ensure_rfq_open(segment.rfq)

        if (
            proposal.expected_version is not None
            and proposal.expected_version != segment.version
        ):
            raise ConcurrentModification(
                "Segment was modified by another request",
                {"segment_id": segment.id, "current_version": segment.version},
            )

        old_status = _apply_transition(segment, "supplier_proposed")
        segment.proposed_price = price
        segment.supplier_notes = proposal.supplier_notes
        segment.proposed_at = utcnow()
        segment.proposed_by_user_id = principal.sub

        crud_rfq_audit_log.add_entry(
            db,
            rfq=segment.rfq,
            rfq_segment_id=segment.id,
            user_id=principal.sub,
            action="propose",
            old_state=old_status,
            new_state=segment.status,
            metadata={"proposed_price": str(price)},
        )
        db.commit()
    except StaleDataError:
        db.rollback()
        logger.warning(f"Concurrent proposal on segment {segment_id}")
        raise ConcurrentModification(
            "Segment was modified by another request", {"segment_id": segment_id}
        )
    except Exception:
        db.rollback()
        raise

    db.refresh(segment)
    logger.info(f"Segment {segment.id} proposed at {price} by {principal.sub}")
    return segment


def decide(
    db: Session,
    *,
    principal: TokenPayload,
    segment_id: str,
    decision: SegmentDecision,
) -> RfqSegment:
    """Agency accepts or rejects a proposed segment. Siblings are not touched."""
    segment = get_for_update(db, segment_id)
    if not segment:
        raise NotFound("RFQ segment", segment_id)

    try:
        rfq = segment.rfq
        if not principal.agency_id or rfq.agency_id != principal.agency_id:
            raise AccessDenied("Access denied")

        new_status = SegmentDecision(decision).value
        _ensure_transition(segment, new_status)
        _ensure_rfq_open(rfq)

        old_status = _apply_transition(segment, new_status)
        segment.decided_at = utcnow()
        segment.decided_by_user_id = principal.sub

        crud_rfq_audit_log.add_entry(
            db,
            rfq=rfq,
            rfq_segment_id=segment.id,
            user_id=principal.sub,
            action="accept" if new_status == "accepted" else "reject",
            old_state=old_status,
            new_state=new_status,
        )
        db.commit()
    except StaleDataError:
        db.rollback()
        raise ConcurrentModification(
            "Segment was modified by another request", {"segment_id": segment_id}
        )
    except Exception:
        db.rollback()
        raise

    db.refresh(segment)
    logger.info(f"Segment {segment.id} {segment.status} by agency {principal.agency_id}")
    return segment
