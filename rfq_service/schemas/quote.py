# rfq_service/schemas/quote.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal


class QuoteLineItem(BaseModel):
    segment_id: str
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)


class QuoteTax(BaseModel):
    name: str = Field(..., min_length=1)
    rate: Optional[Decimal] = Field(None, ge=0)
    amount: Decimal = Field(..., ge=0)


class QuoteCompile(BaseModel):
    rfq_id: str
    currency: str = Field(..., min_length=3, max_length=3)
    items: List[QuoteLineItem] = Field(..., min_length=1)
    subtotal: Decimal = Field(..., ge=0)
    total: Decimal = Field(..., ge=0)
    taxes: Optional[List[QuoteTax]] = None
    terms: Optional[str] = None


class QuoteResponse(BaseModel):
    id: str
    rfq_id: str
    currency: str
    items: List[dict]
    subtotal: float
    taxes: Optional[List[dict]] = None
    total: float
    validity_date: Optional[datetime] = None
    terms: Optional[str] = None
    prepared_by_user_id: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}
