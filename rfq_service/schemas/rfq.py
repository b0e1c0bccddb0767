# rfq_service/schemas/rfq.py
from pydantic import BaseModel
from typing import Any, Dict, List, Optional
from datetime import date, datetime
from decimal import Decimal
from enum import Enum


# --- Enums ---

class RfqStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    SUPPLIER_PENDING = "supplier_pending"
    QUOTED = "quoted"
    DECLINED = "declined"


class SupplierType(str, Enum):
    TRANSPORT = "transport"
    HOTEL = "hotel"
    GUIDE = "guide"
    SIGHT = "sight"


class SegmentStatus(str, Enum):
    PENDING = "pending"
    SUPPLIER_REVIEW = "supplier_review"
    SUPPLIER_PROPOSED = "supplier_proposed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class SegmentDecision(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


# --- Requests ---

class RfqCreate(BaseModel):
    itinerary_id: str
    expires_at: Optional[datetime] = None


class SegmentQuoteProposal(BaseModel):
    # Positivity and finiteness are enforced by the status machine so the
    # failure surfaces as a typed ValidationError.
    proposed_price: Decimal
    supplier_notes: Optional[str] = None
    expected_version: Optional[int] = None


class SegmentDecisionRequest(BaseModel):
    status: SegmentDecision


# --- Response shapes ---

class RfqSegmentResponse(BaseModel):
    id: str
    rfq_id: str
    supplier_type: SupplierType
    supplier_id: str
    payload: Dict[str, Any]
    status: SegmentStatus
    supplier_notes: Optional[str] = None
    proposed_price: Optional[float] = None
    proposed_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None
    version: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RfqResponse(BaseModel):
    id: str
    tenant_id: str
    itinerary_id: str
    agency_id: str
    requested_by_contact_id: Optional[str] = None
    status: RfqStatus
    expires_at: Optional[datetime] = None
    unassigned_event_ids: List[str] = []
    segments: List[RfqSegmentResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RfqListItem(BaseModel):
    id: str
    itinerary_id: str
    itinerary_title: Optional[str] = None
    itinerary_start_date: Optional[date] = None
    itinerary_end_date: Optional[date] = None
    status: RfqStatus
    expires_at: Optional[datetime] = None
    segment_count: int = 0
    proposed_count: int = 0
    created_at: Optional[datetime] = None


class RfqAuditEntry(BaseModel):
    id: str
    rfq_id: str
    rfq_segment_id: Optional[str] = None
    user_id: str
    action: str
    old_state: Optional[str] = None
    new_state: Optional[str] = None
    action_metadata: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
