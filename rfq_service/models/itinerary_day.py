# rfq_service/models/itinerary_day.py
import uuid
from sqlalchemy import Column, String, Integer, Date, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from rfq_service.db.base_class import Base


class ItineraryDay(Base):
    __tablename__ = "itinerary_days"

    id = Column(
        String, primary_key=True, default=lambda: f"itd_{uuid.uuid4().hex[:12]}"
    )
    itinerary_id = Column(
        String,
        ForeignKey("itineraries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day_number = Column(Integer, nullable=False)  # 1-based
    date = Column(Date, nullable=False)

    created_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    itinerary = relationship("Itinerary", back_populates="days")
    events = relationship(
        "ItineraryEvent", back_populates="day", cascade="all"
    )

    __table_args__ = (
        UniqueConstraint("itinerary_id", "day_number", name="uq_itinerary_day_number"),
    )
