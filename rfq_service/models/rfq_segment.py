# rfq_service/models/rfq_segment.py
import uuid
from sqlalchemy import (
    Column, String, Text, Integer, DateTime, Numeric, ForeignKey, UniqueConstraint, text
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from rfq_service.db.base_class import Base, JSONType


class RfqSegment(Base):
    __tablename__ = "rfq_segments"

    id = Column(
        String, primary_key=True, default=lambda: f"rfs_{uuid.uuid4().hex[:12]}"
    )
    rfq_id = Column(
        String, ForeignKey("rfqs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    supplier_type = Column(String, nullable=False)  # transport, hotel, guide, sight
    supplier_id = Column(String, nullable=False, index=True)
    payload = Column(JSONType, nullable=False)  # {"events": [...]}

    # pending, supplier_review, supplier_proposed, accepted, rejected
    status = Column(String, nullable=False, server_default=text("'pending'"), default="pending")
    supplier_notes = Column(Text, nullable=True)
    proposed_price = Column(Numeric(10, 2), nullable=True)

    # Tracking
    proposed_at = Column(DateTime(timezone=True), nullable=True)
    proposed_by_user_id = Column(String, nullable=True)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    decided_by_user_id = Column(String, nullable=True)

    # Optimistic concurrency counter, bumped by SQLAlchemy on every UPDATE
    version = Column(Integer, nullable=False)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    rfq = relationship("Rfq", back_populates="segments")

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint(
            "rfq_id", "supplier_type", "supplier_id", name="uq_rfq_segment_supplier"
        ),
    )
