# rfq_service/models/itinerary.py
import uuid
from sqlalchemy import (
    Column, String, Text, Integer, Date, DateTime, CheckConstraint, Index, text
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from rfq_service.db.base_class import Base


class Itinerary(Base):
    __tablename__ = "itineraries"

    id = Column(
        String, primary_key=True, default=lambda: f"itn_{uuid.uuid4().hex[:12]}"
    )
    tenant_id = Column(String, nullable=False, index=True)

    # Owning party: exactly one of agency / individual user
    agency_id = Column(String, nullable=True, index=True)
    created_by_user_id = Column(String, nullable=True, index=True)

    title = Column(String, nullable=False)
    pax_adults = Column(Integer, nullable=False)
    pax_children = Column(Integer, nullable=False, server_default=text("0"), default=0)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)

    # draft, requested, quoted, expired, canceled
    status = Column(String, nullable=False, server_default=text("'draft'"), default="draft")

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Relationships
    days = relationship(
        "ItineraryDay",
        back_populates="itinerary",
        cascade="all, delete-orphan",
        order_by="ItineraryDay.day_number",
    )
    events = relationship(
        "ItineraryEvent", back_populates="itinerary", cascade="all, delete-orphan"
    )
    rfq = relationship(
        "Rfq", back_populates="itinerary", uselist=False, cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint(
            "(agency_id IS NULL) <> (created_by_user_id IS NULL)",
            name="ck_itinerary_single_owner",
        ),
        CheckConstraint("start_date <= end_date", name="ck_itinerary_date_range"),
        CheckConstraint("pax_children >= 0", name="ck_itinerary_pax_children"),
        Index("ix_itineraries_agency_status", "agency_id", "status"),
    )
