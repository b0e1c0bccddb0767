# rfq_service/api/v1/endpoints/itineraries.py
"""Itineraries owned by individual users (no agency)."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from rfq_service.api import deps
from rfq_service.core.exceptions import AccessDenied
from rfq_service.crud import crud_itinerary, crud_itinerary_event
from rfq_service.db.session import get_db
from rfq_service.schemas.itinerary import (
    ItineraryCreate,
    ItineraryDetail,
    ItineraryEventCreate,
    ItineraryEventResponse,
    ItineraryResponse,
)
from rfq_service.schemas.token import TokenPayload

router = APIRouter(prefix="/itineraries", tags=["Itineraries"])


@router.post("", response_model=ItineraryDetail, status_code=status.HTTP_201_CREATED)
def create_itinerary(
    itinerary_in: ItineraryCreate,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Create a user-owned itinerary. The caller must be a member of the tenant."""
    return crud_itinerary.create(
        db, principal=current_user, data=itinerary_in, owner=crud_itinerary.OWNER_USER
    )


@router.get("")
def list_itineraries(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    result = crud_itinerary.list_by_owner(
        db,
        current_user,
        owner=crud_itinerary.OWNER_USER,
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
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    return crud_itinerary.get_owned(db, itineraryId, current_user)


@router.post(
    "/{itineraryId}/events",
    response_model=ItineraryEventResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_event(
    itineraryId: str,
    event_in: ItineraryEventCreate,
    db: Session = Depends(get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    itinerary = crud_itinerary.get_owned(db, itineraryId, current_user)
    # Membership may have been revoked since the itinerary was created
    if not current_user.has_tenant(itinerary.tenant_id):
        raise AccessDenied("You no longer have access to this tenant")
    return crud_itinerary_event.create(db, itinerary=itinerary, data=event_in)
