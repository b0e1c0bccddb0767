# rfq_service/models/quote.py
import uuid
from sqlalchemy import Column, String, Text, DateTime, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from rfq_service.db.base_class import Base, JSONType


class Quote(Base):
    __tablename__ = "quotes"

    id = Column(
        String, primary_key=True, default=lambda: f"quo_{uuid.uuid4().hex[:12]}"
    )
    rfq_id = Column(
        String,
        ForeignKey("rfqs.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,  # one quote per RFQ
    )
    currency = Column(String(3), nullable=False)
    items = Column(JSONType, nullable=False)  # line items mirroring accepted segments
    subtotal = Column(Numeric(10, 2), nullable=False)
    taxes = Column(JSONType, nullable=True)
    total = Column(Numeric(10, 2), nullable=False)
    validity_date = Column(DateTime(timezone=True), nullable=True)
    terms = Column(Text, nullable=True)
    prepared_by_user_id = Column(String, nullable=True)

    # Set by the compiler so validity_date is exactly created_at + window
    created_at = Column(DateTime(timezone=True), nullable=False)

    rfq = relationship("Rfq", back_populates="quotes")
