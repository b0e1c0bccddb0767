# rfq_service/crud/crud_itinerary.py
import logging
import math
from datetime import date, timedelta
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, selectinload

from rfq_service.core.exceptions import (
    AccessDenied,
    ItineraryLocked,
    NotFound,
    ValidationError,
)
from rfq_service.models.itinerary import Itinerary
from rfq_service.models.itinerary_day import ItineraryDay
from rfq_service.models.itinerary_event import ItineraryEvent
from rfq_service.schemas.itinerary import ItineraryCreate, ItineraryUpdate
from rfq_service.schemas.token import TokenPayload

logger = logging.getLogger(__name__)

OWNER_AGENCY = "agency"
OWNER_USER = "user"

# Statuses after which the itinerary content is frozen
FROZEN_STATUSES = {"quoted", "expired", "canceled"}
TERMINAL_STATUSES = {"expired", "canceled"}


def build_day_plan(start: date, end: date) -> List[Tuple[int, date]]:
    """(day_number, date) for every calendar day in [start, end], 1-based."""
    if start > end:
        raise ValidationError("start_date must be <= end_date", field="start_date")
    day_count = (end - start).days + 1
    return [(n, start + timedelta(days=n - 1)) for n in range(1, day_count + 1)]


def _build_days(start: date, end: date) -> List[ItineraryDay]:
    return [
        ItineraryDay(day_number=n, date=day_date)
        for n, day_date in build_day_plan(start, end)
    ]


def is_owned_by(itinerary: Itinerary, principal: TokenPayload) -> bool:
    if itinerary.agency_id is not None:
        return principal.agency_id is not None and itinerary.agency_id == principal.agency_id
    return itinerary.created_by_user_id == principal.sub


def create(
    db: Session,
    *,
    principal: TokenPayload,
    data: ItineraryCreate,
    owner: str = OWNER_AGENCY,
) -> Itinerary:
    """Create an itinerary owned by the caller's agency or by the caller, with its days."""
    if owner == OWNER_AGENCY:
        if not principal.agency_id:
            raise AccessDenied("Agency context required")
        owner_fields = {"agency_id": principal.agency_id, "created_by_user_id": None}
    else:
        if not principal.has_tenant(data.tenant_id):
            raise AccessDenied("You do not have access to this tenant")
        owner_fields = {"agency_id": None, "created_by_user_id": principal.sub}

    db_obj = Itinerary(
        **data.model_dump(),
        **owner_fields,
        status="draft",
    )
    db_obj.days = _build_days(data.start_date, data.end_date)
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    logger.info(f"Created itinerary {db_obj.id} with {len(db_obj.days)} days")
    return db_obj


def get(db: Session, itinerary_id: str) -> Optional[Itinerary]:
    return (
        db.query(Itinerary)
        .options(selectinload(Itinerary.days), selectinload(Itinerary.events))
        .filter(Itinerary.id == itinerary_id)
        .first()
    )


def get_owned(db: Session, itinerary_id: str, principal: TokenPayload) -> Itinerary:
    """Fetch an itinerary the caller owns. Foreign itineraries are reported as missing."""
    itinerary = get(db, itinerary_id)
    if not itinerary or not is_owned_by(itinerary, principal):
        raise NotFound("Itinerary", itinerary_id)
    return itinerary


def list_by_owner(
    db: Session,
    principal: TokenPayload,
    owner: str = OWNER_AGENCY,
    status: Optional[str] = None,
    page: int = 1,
    page_size: int = 10,
) -> dict:
    page_size = min(page_size, 50)
    query = db.query(Itinerary)
    if owner == OWNER_AGENCY:
        if not principal.agency_id:
            raise AccessDenied("Agency context required")
        query = query.filter(Itinerary.agency_id == principal.agency_id)
    else:
        query = query.filter(Itinerary.created_by_user_id == principal.sub)

    if status:
        query = query.filter(Itinerary.status == status)

    total_count = query.count()
    total_pages = math.ceil(total_count / page_size) if page_size > 0 else 0
    offset = (page - 1) * page_size

    itineraries = (
        query.order_by(Itinerary.created_at.desc(), Itinerary.id)
        .offset(offset)
        .limit(page_size)
        .all()
    )
    return {
        "itineraries": itineraries,
        "pagination": {
            "page": page,
            "page_size": page_size,
            "total_count": total_count,
            "total_pages": total_pages,
        },
    }


def has_events(db: Session, itinerary_id: str) -> bool:
    return (
        db.query(ItineraryEvent.id)
        .filter(ItineraryEvent.itinerary_id == itinerary_id)
        .first()
        is not None
    )


def update(db: Session, *, itinerary: Itinerary, data: ItineraryUpdate) -> Itinerary:
    """
    Update itinerary fields. A date-range change regenerates the days and is
    refused once any event exists, whatever the itinerary status.
    """
    update_data = data.model_dump(exclude_unset=True)
    new_start = update_data.pop("start_date", None)
    new_end = update_data.pop("end_date", None)

    days = None
    if new_start is not None or new_end is not None:
        start = new_start or itinerary.start_date
        end = new_end or itinerary.end_date
        if start != itinerary.start_date or end != itinerary.end_date:
            if has_events(db, itinerary.id):
                logger.warning(f"Refused date change on itinerary {itinerary.id}: events exist")
                raise ItineraryLocked(itinerary.id)
            days = _build_days(start, end)

    try:
        if days is not None:
            # Old days must be gone before the replacements reuse their numbers
            itinerary.days = []
            db.flush()
            itinerary.start_date = start
            itinerary.end_date = end
            itinerary.days = days

        for field, value in update_data.items():
            setattr(itinerary, field, value)

        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"Updating itinerary {itinerary.id} failed, rolled back")
        raise

    db.refresh(itinerary)
    return itinerary


def update_dates(
    db: Session, *, itinerary: Itinerary, start_date: date, end_date: date
) -> Itinerary:
    return update(
        db,
        itinerary=itinerary,
        data=ItineraryUpdate(start_date=start_date, end_date=end_date),
    )


def delete(db: Session, *, itinerary: Itinerary) -> None:
    """Delete an itinerary with its days, events and any RFQ."""
    db.delete(itinerary)
    db.commit()
    logger.info(f"Deleted itinerary {itinerary.id}")
