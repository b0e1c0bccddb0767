# rfq_service/services/classification.py
"""
Event classification.

Every itinerary event carries an explicit EventCategory. The keyword
heuristic below is only used to fill that column when a caller does not
supply a category, and by the one-time backfill for rows created before
the column existed. Segmentation reads the stored category and never
re-infers it from the free-text tag.
"""
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from rfq_service.models.itinerary_event import ItineraryEvent
from rfq_service.schemas.itinerary import EventCategory
from rfq_service.schemas.rfq import SupplierType

logger = logging.getLogger(__name__)

# Checked in order; the first matching keyword group wins.
LEGACY_KEYWORDS: Tuple[Tuple[Tuple[str, ...], EventCategory], ...] = (
    (("transfer", "transport"), EventCategory.TRANSPORT),
    (("accommodation", "hotel"), EventCategory.ACCOMMODATION),
    (("tour", "guide"), EventCategory.GUIDED_ACTIVITY),
    (("sight", "attraction"), EventCategory.SIGHT_ENTRY),
)

CATEGORY_TO_SUPPLIER_TYPE: Dict[EventCategory, SupplierType] = {
    EventCategory.TRANSPORT: SupplierType.TRANSPORT,
    EventCategory.ACCOMMODATION: SupplierType.HOTEL,
    EventCategory.GUIDED_ACTIVITY: SupplierType.GUIDE,
    EventCategory.SIGHT_ENTRY: SupplierType.SIGHT,
}


def classify_event_type(event_type: str) -> EventCategory:
    """Map a free-text event type tag to a category (case-insensitive substring)."""
    tag = (event_type or "").lower()
    for keywords, category in LEGACY_KEYWORDS:
        if any(k in tag for k in keywords):
            return category
    return EventCategory.UNCATEGORIZED


def resolve_category(
    event_type: str, category: Optional[EventCategory] = None
) -> EventCategory:
    if category is not None:
        return EventCategory(category)
    return classify_event_type(event_type)


def supplier_type_for(category: str) -> Optional[SupplierType]:
    """Supplier type that quotes a category, or None for uncategorized events."""
    return CATEGORY_TO_SUPPLIER_TYPE.get(EventCategory(category))


def bucket_events(
    events: Iterable[ItineraryEvent],
) -> Tuple[Dict[SupplierType, List[ItineraryEvent]], List[ItineraryEvent]]:
    """
    Group events by the supplier type that quotes them.
    Returns (buckets, unbucketed); every supplier type has a (possibly empty) bucket.
    """
    buckets: Dict[SupplierType, List[ItineraryEvent]] = {t: [] for t in SupplierType}
    unbucketed: List[ItineraryEvent] = []
    for event in events:
        supplier_type = supplier_type_for(event.category)
        if supplier_type is None:
            unbucketed.append(event)
        else:
            buckets[supplier_type].append(event)
    return buckets, unbucketed


def backfill_event_categories(db: Session) -> int:
    """
    One-time migration: derive the category of legacy rows from their tag.
    Only rows still marked uncategorized are touched. Returns rows updated.
    """
    updated = 0
    query = (
        db.query(ItineraryEvent)
        .filter(ItineraryEvent.category == EventCategory.UNCATEGORIZED.value)
        .order_by(ItineraryEvent.id)
    )
    for event in query.all():
        category = classify_event_type(event.event_type)
        if category is not EventCategory.UNCATEGORIZED:
            event.category = category.value
            updated += 1
    db.commit()
    logger.info(f"Backfilled category on {updated} itinerary events")
    return updated
