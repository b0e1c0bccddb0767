# rfq_service/models/itinerary_event.py
import uuid
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from rfq_service.db.base_class import Base, JSONType


class ItineraryEvent(Base):
    __tablename__ = "itinerary_events"

    id = Column(
        String, primary_key=True, default=lambda: f"ite_{uuid.uuid4().hex[:12]}"
    )
    tenant_id = Column(String, nullable=False, index=True)
    itinerary_id = Column(
        String,
        ForeignKey("itineraries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day_id = Column(
        String,
        ForeignKey("itinerary_days.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category_id = Column(String, nullable=True)  # catalog event category

    event_type = Column(String, nullable=False)  # free-text tag, e.g. "transport_transfer"
    # transport, accommodation, guided_activity, sight_entry, uncategorized
    category = Column(
        String,
        nullable=False,
        server_default=text("'uncategorized'"),
        default="uncategorized",
    )

    summary = Column(String, nullable=False)
    details = Column(JSONType, nullable=False, default=dict)
    start_time = Column(String(5), nullable=True)  # HH:MM
    end_time = Column(String(5), nullable=True)
    supplier_ref = Column(JSONType, nullable=True)
    quantity = Column(Integer, nullable=False, server_default=text("1"), default=1)
    unit = Column(String, nullable=True)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    itinerary = relationship("Itinerary", back_populates="events")
    day = relationship("ItineraryDay", back_populates="events")
