# rfq_service/crud/crud_quote.py
from typing import List, Optional

from sqlalchemy.orm import Session

from rfq_service.core.exceptions import AccessDenied, NotFound
from rfq_service.models.quote import Quote
from rfq_service.models.rfq import Rfq
from rfq_service.schemas.token import TokenPayload


def get(db: Session, quote_id: str) -> Optional[Quote]:
    return db.query(Quote).filter(Quote.id == quote_id).first()


def get_by_rfq(db: Session, rfq_id: str) -> Optional[Quote]:
    return db.query(Quote).filter(Quote.rfq_id == rfq_id).first()


def get_for_agency(db: Session, quote_id: str, principal: TokenPayload) -> Quote:
    if not principal.agency_id:
        raise AccessDenied("Agency context required")
    quote = (
        db.query(Quote)
        .join(Rfq, Rfq.id == Quote.rfq_id)
        .filter(Quote.id == quote_id, Rfq.agency_id == principal.agency_id)
        .first()
    )
    if not quote:
        raise NotFound("Quote", quote_id)
    return quote


def list_by_agency(db: Session, agency_id: str, limit: int = 100) -> List[Quote]:
    return (
        db.query(Quote)
        .join(Rfq, Rfq.id == Quote.rfq_id)
        .filter(Rfq.agency_id == agency_id)
        .order_by(Quote.created_at.desc())
        .limit(limit)
        .all()
    )
