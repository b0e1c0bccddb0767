# rfq_service/core/exceptions.py
"""
Exception hierarchy for the RFQ service.

Every error raised by the crud and service layers derives from
RfqServiceError, which carries a stable error code and the HTTP status the
API layer answers with.
"""

from typing import Optional


class RfqServiceError(Exception):
    """Base exception for all RFQ service errors."""

    status_code = 500
    error_code = "RFQ_SERVICE_ERROR"

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class NotFound(RfqServiceError):
    """Entity does not exist or is outside the caller's scope."""

    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Optional[str] = None):
        message = f"{entity} not found"
        details = {"entity": entity}
        if entity_id is not None:
            details["id"] = entity_id
        super().__init__(message, details)


class AccessDenied(RfqServiceError):
    status_code = 403
    error_code = "ACCESS_DENIED"


class InvalidState(RfqServiceError):
    """Operation forbidden by the current state of the target."""

    status_code = 409
    error_code = "INVALID_STATE"


class ItineraryLocked(InvalidState):
    error_code = "ITINERARY_LOCKED"

    def __init__(self, itinerary_id: str):
        super().__init__(
            "Cannot change dates after events have been added. "
            "Please delete all events first.",
            {"itinerary_id": itinerary_id},
        )


class EmptyItinerary(InvalidState):
    error_code = "EMPTY_ITINERARY"

    def __init__(self, itinerary_id: str):
        super().__init__(
            "Cannot create RFQ from empty itinerary",
            {"itinerary_id": itinerary_id},
        )


class DuplicateRfq(InvalidState):
    error_code = "DUPLICATE_RFQ"

    def __init__(self, itinerary_id: str, rfq_id: str):
        super().__init__(
            "RFQ already exists for this itinerary",
            {"itinerary_id": itinerary_id, "rfq_id": rfq_id},
        )


class DuplicateQuote(InvalidState):
    error_code = "DUPLICATE_QUOTE"

    def __init__(self, rfq_id: str, quote_id: str):
        super().__init__(
            "A quote has already been compiled for this RFQ",
            {"rfq_id": rfq_id, "quote_id": quote_id},
        )


class InvalidTransition(RfqServiceError):
    status_code = 409
    error_code = "INVALID_TRANSITION"

    def __init__(self, entity: str, old_status: str, new_status: str):
        super().__init__(
            f"Invalid {entity} transition: {old_status} -> {new_status}",
            {"from": old_status, "to": new_status},
        )


class ValidationError(RfqServiceError):
    status_code = 422
    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field} if field else {})


class RfqExpired(RfqServiceError):
    status_code = 410
    error_code = "RFQ_EXPIRED"

    def __init__(self, rfq_id: str):
        super().__init__(
            "RFQ has expired and no longer accepts changes",
            {"rfq_id": rfq_id},
        )


class ConcurrentModification(RfqServiceError):
    """Row was changed by another request since it was read."""

    status_code = 409
    error_code = "CONCURRENT_MODIFICATION"
