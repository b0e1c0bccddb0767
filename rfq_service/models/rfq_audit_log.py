# rfq_service/models/rfq_audit_log.py
"""
Audit trail for RFQ state changes.
Tracks: request_quote, propose, accept, reject, compile_quote.
"""
import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from rfq_service.db.base_class import Base, JSONType


class RfqAuditLog(Base):
    __tablename__ = "rfq_audit_log"

    id = Column(
        String, primary_key=True, default=lambda: f"rqa_{uuid.uuid4().hex[:12]}"
    )
    rfq_id = Column(
        String, ForeignKey("rfqs.id", ondelete="CASCADE"), nullable=False, index=True
    )
    rfq_segment_id = Column(
        String, ForeignKey("rfq_segments.id", ondelete="SET NULL"), nullable=True
    )
    user_id = Column(String, nullable=False, index=True)

    action = Column(String(50), nullable=False, index=True)
    old_state = Column(String(50), nullable=True)
    new_state = Column(String(50), nullable=True)
    # 'metadata' is reserved on declarative classes
    action_metadata = Column(JSONType, nullable=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    rfq = relationship("Rfq", back_populates="audit_logs")

    __table_args__ = (
        Index("idx_rfq_audit_rfq_created", "rfq_id", text("created_at DESC")),
    )
