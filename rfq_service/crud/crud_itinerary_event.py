# rfq_service/crud/crud_itinerary_event.py
import logging
from typing import Optional

from sqlalchemy.orm import Session

from rfq_service.core.exceptions import InvalidState, NotFound
from rfq_service.crud.crud_itinerary import FROZEN_STATUSES
from rfq_service.models.itinerary import Itinerary
from rfq_service.models.itinerary_day import ItineraryDay
from rfq_service.models.itinerary_event import ItineraryEvent
from rfq_service.schemas.itinerary import ItineraryEventCreate, ItineraryEventUpdate
from rfq_service.services.classification import resolve_category

logger = logging.getLogger(__name__)


def _ensure_mutable(itinerary: Itinerary) -> None:
    if itinerary.status in FROZEN_STATUSES:
        raise InvalidState(
            f"Cannot modify events of an itinerary with status '{itinerary.status}'",
            {"itinerary_id": itinerary.id, "status": itinerary.status},
        )


def _get_day(db: Session, itinerary: Itinerary, day_id: str) -> ItineraryDay:
    day = (
        db.query(ItineraryDay)
        .filter(ItineraryDay.id == day_id, ItineraryDay.itinerary_id == itinerary.id)
        .first()
    )
    if not day:
        raise NotFound("Itinerary day", day_id)
    return day


def get(db: Session, *, itinerary: Itinerary, event_id: str) -> ItineraryEvent:
    event = (
        db.query(ItineraryEvent)
        .filter(
            ItineraryEvent.id == event_id,
            ItineraryEvent.itinerary_id == itinerary.id,
        )
        .first()
    )
    if not event:
        raise NotFound("Itinerary event", event_id)
    return event


def count_for_itinerary(db: Session, itinerary_id: str) -> int:
    return (
        db.query(ItineraryEvent)
        .filter(ItineraryEvent.itinerary_id == itinerary_id)
        .count()
    )


def create(
    db: Session, *, itinerary: Itinerary, data: ItineraryEventCreate
) -> ItineraryEvent:
    """Add an event to one of the itinerary's days. The category is fixed here."""
    _ensure_mutable(itinerary)
    day = _get_day(db, itinerary, data.day_id)

    obj_data = data.model_dump(exclude={"day_id", "category"})
    category = resolve_category(data.event_type, data.category)

    db_obj = ItineraryEvent(
        **obj_data,
        tenant_id=itinerary.tenant_id,
        itinerary=itinerary,
        day=day,
        category=category.value,
    )
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    logger.info(
        f"Added {category.value} event {db_obj.id} to itinerary {itinerary.id} day {day.day_number}"
    )
    return db_obj


def update(
    db: Session,
    *,
    itinerary: Itinerary,
    event: ItineraryEvent,
    data: ItineraryEventUpdate,
) -> ItineraryEvent:
    _ensure_mutable(itinerary)
    update_data = data.model_dump(exclude_unset=True)

    day_id: Optional[str] = update_data.pop("day_id", None)
    if day_id is not None and day_id != event.day_id:
        event.day = _get_day(db, itinerary, day_id)

    category = update_data.pop("category", None)
    if category is not None:
        event.category = resolve_category(event.event_type, category).value
    elif "event_type" in update_data:
        # A retagged event is reclassified unless the caller pins a category
        event.category = resolve_category(update_data["event_type"]).value

    for field, value in update_data.items():
        setattr(event, field, value)

    try:
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"Updating event {event.id} failed, rolled back")
        raise

    db.refresh(event)
    return event


def delete(db: Session, *, itinerary: Itinerary, event: ItineraryEvent) -> None:
    _ensure_mutable(itinerary)
    db.delete(event)
    db.commit()
    logger.info(f"Deleted event {event.id} from itinerary {itinerary.id}")
