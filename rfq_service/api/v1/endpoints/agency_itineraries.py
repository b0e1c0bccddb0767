# rfq_service/api/v1/endpoints/agency_itineraries.py
"""Agency itinerary management: itineraries, generated days and events."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from rfq_service.api import deps
from rfq_service.crud import crud_itinerary, crud_itinerary_event
from rfq_service.db.session import get_db
from rfq_service.schemas.itinerary import (
    ItineraryCreate,
    ItineraryDetail,
    ItineraryEventCreate,
    ItineraryEventResponse,
    ItineraryEventUpdate,
    ItineraryResponse,
    ItineraryUpdate,
)
from rfq_service.schemas.token import TokenPayload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/agency/itineraries", tags=["Agency Itineraries"])


@router.post("", response_model=ItineraryDetail, status_code=status.HTTP_201_CREATED)
def create_itinerary(
    itinerary_in: ItineraryCreate,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_agency_user),
):
    """Create a draft itinerary; one day is generated per calendar date."""
    return crud_itinerary.create(
        db, principal=current_user, data=itinerary_in, owner=crud_itinerary.OWNER_AGENCY
    )


@router.get("")
def list_itineraries(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_agency_user),
):
    result = crud_itinerary.list_by_owner(
        db,
        current_user,
        owner=crud_itinerary.OWNER_AGENCY,
        status=status_filter,
        page=page,
        page_size=page_size,
    )
    return {
        "itineraries": [
            ItineraryResponse.model_validate(i) for i in result["itineraries"]
        ],
        "pagination": result["pagination"],
    }


@router.get("/{itineraryId}", response_model=ItineraryDetail)
def get_itinerary(
    itineraryId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_agency_user),
):
    return crud_itinerary.get_owned(db, itineraryId, current_user)


@router.patch("/{itineraryId}", response_model=ItineraryDetail)
def update_itinerary(
    itineraryId: str,
    itinerary_in: ItineraryUpdate,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_agency_user),
):
    """Update an itinerary. Dates can only change while it has no events."""
    itinerary = crud_itinerary.get_owned(db, itineraryId, current_user)
    return crud_itinerary.update(db, itinerary=itinerary, data=itinerary_in)


@router.delete("/{itineraryId}", status_code=status.HTTP_204_NO_CONTENT)
def delete_itinerary(
    itineraryId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_agency_user),
):
    itinerary = crud_itinerary.get_owned(db, itineraryId, current_user)
    crud_itinerary.delete(db, itinerary=itinerary)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Events ───────────────────────────────────────────────────────────

@router.post(
    "/{itineraryId}/events",
    response_model=ItineraryEventResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_event(
    itineraryId: str,
    event_in: ItineraryEventCreate,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_agency_user),
):
    itinerary = crud_itinerary.get_owned(db, itineraryId, current_user)
    return crud_itinerary_event.create(db, itinerary=itinerary, data=event_in)


@router.patch("/{itineraryId}/events/{eventId}", response_model=ItineraryEventResponse)
def update_event(
    itineraryId: str,
    eventId: str,
    event_in: ItineraryEventUpdate,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_agency_user),
):
    itinerary = crud_itinerary.get_owned(db, itineraryId, current_user)
    event = crud_itinerary_event.get(db, itinerary=itinerary, event_id=eventId)
    return crud_itinerary_event.update(db, itinerary=itinerary, event=event, data=event_in)


@router.delete("/{itineraryId}/events/{eventId}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(
    itineraryId: str,
    eventId: str,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_agency_user),
):
    itinerary = crud_itinerary.get_owned(db, itineraryId, current_user)
    event = crud_itinerary_event.get(db, itinerary=itinerary, event_id=eventId)
    crud_itinerary_event.delete(db, itinerary=itinerary, event=event)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
