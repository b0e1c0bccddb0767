# rfq_service/services/quote_compiler.py
"""
Quote compiler: records the agency's priced document for an RFQ.

The agency chooses which accepted segments become line items and supplies
subtotal and total. The compiler checks those figures add up, that every
line item points at an accepted segment of this RFQ, and that the RFQ has
no quote yet. It then stamps the validity window and marks the RFQ and its
itinerary as quoted.
"""
import logging
from datetime import timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rfq_service.core.config import settings
from rfq_service.core.exceptions import DuplicateQuote, InvalidState, ValidationError
from rfq_service.crud import crud_quote, crud_rfq, crud_rfq_audit_log
from rfq_service.models.quote import Quote
from rfq_service.models.rfq import Rfq
from rfq_service.models.rfq_segment import RfqSegment
from rfq_service.schemas.quote import QuoteCompile, QuoteLineItem, QuoteTax
from rfq_service.schemas.token import TokenPayload
from rfq_service.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)


def quote_validity() -> timedelta:
    return timedelta(days=settings.QUOTE_VALIDITY_DAYS)


def validate_totals(
    items: Iterable[QuoteLineItem],
    subtotal: Decimal,
    total: Decimal,
    taxes: Optional[Iterable[QuoteTax]] = None,
) -> None:
    items_sum = sum((i.amount for i in items), Decimal("0"))
    if items_sum != subtotal:
        raise ValidationError(
            f"subtotal {subtotal} does not equal the sum of line items {items_sum}",
            field="subtotal",
        )
    tax_sum = sum((t.amount for t in (taxes or [])), Decimal("0"))
    if subtotal + tax_sum != total:
        raise ValidationError(
            f"total {total} does not equal subtotal plus taxes {subtotal + tax_sum}",
            field="total",
        )


def validate_items(rfq: Rfq, items: List[QuoteLineItem]) -> None:
    segments: Dict[str, RfqSegment] = {s.id: s for s in rfq.segments}
    seen = set()
    for item in items:
        if item.segment_id in seen:
            raise ValidationError(
                f"Segment {item.segment_id} appears more than once", field="items"
            )
        seen.add(item.segment_id)
        segment = segments.get(item.segment_id)
        if segment is None:
            raise ValidationError(
                f"Segment {item.segment_id} does not belong to RFQ {rfq.id}",
                field="items",
            )
        if segment.status != "accepted":
            raise ValidationError(
                f"Segment {item.segment_id} is '{segment.status}', only accepted "
                "segments can be quoted",
                field="items",
            )


def compile_quote(db: Session, *, principal: TokenPayload, data: QuoteCompile) -> Quote:
    rfq = crud_rfq.get_for_agency(db, data.rfq_id, principal)

    existing = crud_quote.get_by_rfq(db, rfq.id)
    if existing:
        raise DuplicateQuote(rfq.id, existing.id)
    if rfq.status == "declined":
        raise InvalidState(
            "Cannot compile a quote for a declined RFQ", {"rfq_id": rfq.id}
        )

    validate_items(rfq, data.items)
    validate_totals(data.items, data.subtotal, data.total, data.taxes)

    now = utcnow()
    try:
        quote = Quote(
            rfq=rfq,
            currency=data.currency.upper(),
            items=[
                {
                    "segment_id": i.segment_id,
                    "description": i.description,
                    "amount": str(i.amount),
                }
                for i in data.items
            ],
            subtotal=data.subtotal,
            taxes=[
                {
                    "name": t.name,
                    "rate": str(t.rate) if t.rate is not None else None,
                    "amount": str(t.amount),
                }
                for t in data.taxes
            ] if data.taxes else None,
            total=data.total,
            validity_date=now + quote_validity(),
            terms=data.terms,
            prepared_by_user_id=principal.sub,
            created_at=now,
        )
        db.add(quote)

        old_status = rfq.status
        rfq.status = "quoted"
        if rfq.itinerary is not None and rfq.itinerary.status == "requested":
            rfq.itinerary.status = "quoted"

        crud_rfq_audit_log.add_entry(
            db,
            rfq=rfq,
            user_id=principal.sub,
            action="compile_quote",
            old_state=old_status,
            new_state="quoted",
            metadata={"total": str(data.total), "currency": quote.currency},
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        # Another request compiled a quote after the duplicate check above
        existing = crud_quote.get_by_rfq(db, data.rfq_id)
        if existing:
            logger.warning(f"Concurrent quote compilation on RFQ {data.rfq_id}")
            raise DuplicateQuote(data.rfq_id, existing.id)
        logger.error(f"Compiling quote for RFQ {data.rfq_id} failed, rolled back")
        raise
    except Exception:
        db.rollback()
        logger.error(f"Compiling quote for RFQ {data.rfq_id} failed, rolled back")
        raise

    db.refresh(quote)
    logger.info(f"Compiled quote {quote.id} for RFQ {rfq.id}: {quote.total} {quote.currency}")
    return quote
