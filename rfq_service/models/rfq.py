# rfq_service/models/rfq.py
import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from rfq_service.db.base_class import Base, JSONType


class Rfq(Base):
    __tablename__ = "rfqs"

    id = Column(
        String, primary_key=True, default=lambda: f"rfq_{uuid.uuid4().hex[:12]}"
    )
    tenant_id = Column(String, nullable=False, index=True)
    itinerary_id = Column(
        String,
        ForeignKey("itineraries.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,  # one RFQ per itinerary
    )
    agency_id = Column(String, nullable=False, index=True)
    requested_by_contact_id = Column(String, nullable=True)

    # open, in_progress, supplier_pending, quoted, declined
    status = Column(String, nullable=False, server_default=text("'open'"), default="open")
    expires_at = Column(DateTime(timezone=True), nullable=True)

    # Events that ended up in no segment (uncategorized or no supplier in tenant)
    unassigned_event_ids = Column(JSONType, nullable=False, default=list)

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
    itinerary = relationship("Itinerary", back_populates="rfq")
    segments = relationship(
        "RfqSegment", back_populates="rfq", cascade="all, delete-orphan"
    )
    quotes = relationship("Quote", back_populates="rfq", cascade="all, delete-orphan")
    audit_logs = relationship(
        "RfqAuditLog", back_populates="rfq", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_rfqs_agency_status", "agency_id", "status"),
    )
