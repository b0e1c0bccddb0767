# rfq_service/api/v1/endpoints/quotes.py
"""Agency quote compilation."""
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from rfq_service.api import deps
from rfq_service.crud import crud_quote
from rfq_service.db.session import get_db
from rfq_service.schemas.quote import QuoteCompile, QuoteResponse
from rfq_service.schemas.token import TokenPayload
from rfq_service.services import quote_compiler

router = APIRouter(prefix="/agency/quotes", tags=["Quotes"])


@router.post("", response_model=QuoteResponse, status_code=status.HTTP_201_CREATED)
def compile_quote(
    body: QuoteCompile,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_agency_user),
):
    """Compile accepted segments into the RFQ's priced quote."""
    return quote_compiler.compile_quote(db, principal=current_user, data=body)


@router.get("", response_model=List[QuoteResponse])
def list_quotes(
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_agency_user),
):
    return crud_quote.list_by_agency(db, current_user.agency_id, limit=limit)


@router.get("/{quoteId}", response_model=QuoteResponse)
def get_quote(
    quoteId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_agency_user),
):
    return crud_quote.get_for_agency(db, quoteId, current_user)
