# rfq_service/models/__init__.py
# Import all models so SQLAlchemy can resolve string relationships.

from rfq_service.db.base_class import Base
from rfq_service.models.itinerary import Itinerary
from rfq_service.models.itinerary_day import ItineraryDay
from rfq_service.models.itinerary_event import ItineraryEvent
from rfq_service.models.rfq import Rfq
from rfq_service.models.rfq_segment import RfqSegment
from rfq_service.models.quote import Quote
from rfq_service.models.supplier import Supplier
from rfq_service.models.rfq_audit_log import RfqAuditLog
