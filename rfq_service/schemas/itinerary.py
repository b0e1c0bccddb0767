# rfq_service/schemas/itinerary.py
import re
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Dict, List, Optional
from datetime import date, datetime
from enum import Enum


# --- Enums ---

class ItineraryStatus(str, Enum):
    DRAFT = "draft"
    REQUESTED = "requested"
    QUOTED = "quoted"
    EXPIRED = "expired"
    CANCELED = "canceled"


class EventCategory(str, Enum):
    TRANSPORT = "transport"
    ACCOMMODATION = "accommodation"
    GUIDED_ACTIVITY = "guided_activity"
    SIGHT_ENTRY = "sight_entry"
    UNCATEGORIZED = "uncategorized"


_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


# --- Itinerary ---

class ItineraryCreate(BaseModel):
    tenant_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=500)
    pax_adults: int = Field(..., ge=1)
    pax_children: int = Field(0, ge=0)
    start_date: date
    end_date: date
    notes: Optional[str] = None

    @model_validator(mode="after")
    def validate_date_range(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must be <= end_date")
        return self


class ItineraryUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    pax_adults: Optional[int] = Field(None, ge=1)
    pax_children: Optional[int] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator(
        "title", "pax_adults", "pax_children", "start_date", "end_date"
    )
    @classmethod
    def reject_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} may not be null")
        return v


# --- Events ---

class ItineraryEventCreate(BaseModel):
    day_id: str
    category_id: Optional[str] = None
    event_type: str = Field(..., min_length=1, max_length=100)
    # When omitted, derived once from event_type at creation time
    category: Optional[EventCategory] = None
    summary: str = Field(..., min_length=1)
    details: Dict[str, Any] = {}
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    supplier_ref: Optional[Dict[str, Any]] = None
    quantity: int = Field(1, ge=1)
    unit: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v):
        if v is not None and not _TIME_RE.match(v):
            raise ValueError("time must be HH:MM")
        return v


class ItineraryEventUpdate(BaseModel):
    day_id: Optional[str] = None
    category_id: Optional[str] = None
    event_type: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[EventCategory] = None
    summary: Optional[str] = Field(None, min_length=1)
    details: Optional[Dict[str, Any]] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    supplier_ref: Optional[Dict[str, Any]] = None
    quantity: Optional[int] = Field(None, ge=1)
    unit: Optional[str] = None

    # Omitted fields are left alone; an explicit null on a required column is an error
    @field_validator("day_id", "event_type", "summary", "details", "quantity")
    @classmethod
    def reject_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} may not be null")
        return v

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v):
        if v is not None and not _TIME_RE.match(v):
            raise ValueError("time must be HH:MM")
        return v


# --- Response shapes ---

class ItineraryDayResponse(BaseModel):
    id: str
    day_number: int
    date: date

    model_config = {"from_attributes": True}


class ItineraryEventResponse(BaseModel):
    id: str
    tenant_id: str
    itinerary_id: str
    day_id: str
    category_id: Optional[str] = None
    event_type: str
    category: EventCategory
    summary: str
    details: Dict[str, Any] = {}
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    supplier_ref: Optional[Dict[str, Any]] = None
    quantity: int
    unit: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ItineraryResponse(BaseModel):
    id: str
    tenant_id: str
    agency_id: Optional[str] = None
    created_by_user_id: Optional[str] = None
    title: str
    pax_adults: int
    pax_children: int
    start_date: date
    end_date: date
    notes: Optional[str] = None
    status: ItineraryStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ItineraryDetail(ItineraryResponse):
    days: List[ItineraryDayResponse] = []
    events: List[ItineraryEventResponse] = []
