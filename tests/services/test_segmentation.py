# tests/services/test_segmentation.py
import pytest
from datetime import timedelta
from unittest.mock import MagicMock, patch

from sqlalchemy.exc import IntegrityError

from rfq_service.core.exceptions import (
    AccessDenied,
    DuplicateRfq,
    EmptyItinerary,
    InvalidState,
    ValidationError,
)
from rfq_service.crud import crud_rfq_audit_log
from rfq_service.models.rfq import Rfq
from rfq_service.models.rfq_segment import RfqSegment
from rfq_service.schemas.rfq import SupplierType
from rfq_service.services import segmentation
from rfq_service.utils.datetime_utils import utcnow

from tests.utils.auth import make_agency_principal
from tests.utils.itinerary import add_event, create_itinerary, create_supplier


@pytest.fixture()
def agency():
    return make_agency_principal()


def _request(db, principal, itinerary, **kwargs):
    return segmentation.request_quote(
        db, principal=principal, itinerary_id=itinerary.id, **kwargs
    )


def test_one_segment_per_supplier_of_bucket_type(db_session, agency):
    itinerary = create_itinerary(db_session)
    event = add_event(db_session, itinerary, event_type="transport_transfer")
    supplier_a = create_supplier(db_session, name="Athens Coaches")
    supplier_b = create_supplier(db_session, name="Attica Transfers")
    create_supplier(db_session, SupplierType.HOTEL, name="Unused Hotel")

    rfq = _request(db_session, agency, itinerary)

    assert rfq.status == "open"
    assert len(rfq.segments) == 2
    assert {s.supplier_id for s in rfq.segments} == {supplier_a.id, supplier_b.id}
    for segment in rfq.segments:
        assert segment.status == "pending"
        assert segment.supplier_type == "transport"
        assert segment.version == 1
        assert [e["id"] for e in segment.payload["events"]] == [event.id]
    assert rfq.unassigned_event_ids == []


def test_segments_of_same_type_share_identical_payload(db_session, agency):
    itinerary = create_itinerary(db_session)
    add_event(db_session, itinerary, event_type="transfer", day_number=2, start_time="14:00")
    add_event(db_session, itinerary, event_type="transfer", day_number=1, start_time="09:00")
    add_event(db_session, itinerary, event_type="transfer", day_number=2, start_time="08:30")
    for name in ("A", "B", "C"):
        create_supplier(db_session, name=name)

    rfq = _request(db_session, agency, itinerary)

    payloads = [s.payload for s in rfq.segments]
    assert len(payloads) == 3
    assert payloads[0] == payloads[1] == payloads[2]
    ordered = [(e["day_number"], e["start_time"]) for e in payloads[0]["events"]]
    assert ordered == [(1, "09:00"), (2, "08:30"), (2, "14:00")]


def test_payload_snapshot_fields(db_session, agency):
    itinerary = create_itinerary(db_session)
    event = add_event(
        db_session,
        itinerary,
        event_type="transfer",
        details={"from": "ATH", "to": "Plaka"},
        quantity=2,
        unit="vehicle",
    )
    create_supplier(db_session)

    rfq = _request(db_session, agency, itinerary)

    snapshot = rfq.segments[0].payload["events"][0]
    assert snapshot["id"] == event.id
    assert snapshot["day_number"] == 1
    assert snapshot["date"] == "2025-06-01"
    assert snapshot["category"] == "transport"
    assert snapshot["details"] == {"from": "ATH", "to": "Plaka"}
    assert snapshot["quantity"] == 2
    assert snapshot["unit"] == "vehicle"


def test_mixed_buckets_fan_out_independently(db_session, agency):
    itinerary = create_itinerary(db_session)
    add_event(db_session, itinerary, event_type="transfer")
    hotel_event = add_event(db_session, itinerary, event_type="hotel_night")
    tour_event = add_event(db_session, itinerary, event_type="city_tour", day_number=2)
    create_supplier(db_session, name="T1")
    create_supplier(db_session, name="T2")
    create_supplier(db_session, SupplierType.HOTEL, name="H1")

    rfq = _request(db_session, agency, itinerary)

    types = sorted(s.supplier_type for s in rfq.segments)
    assert types == ["hotel", "transport", "transport"]
    hotel_segment = next(s for s in rfq.segments if s.supplier_type == "hotel")
    assert [e["id"] for e in hotel_segment.payload["events"]] == [hotel_event.id]
    # No guide supplier in the tenant: the tour is reported, not silently lost
    assert rfq.unassigned_event_ids == [tour_event.id]


def test_suppliers_of_other_tenants_are_ignored(db_session, agency):
    itinerary = create_itinerary(db_session)
    add_event(db_session, itinerary, event_type="transfer")
    create_supplier(db_session, tenant_id="tenant_it", name="Roma Coaches")

    rfq = _request(db_session, agency, itinerary)

    assert rfq.segments == []


def test_uncategorized_only_itinerary_yields_no_segments(db_session, agency):
    itinerary = create_itinerary(db_session)
    misc = add_event(db_session, itinerary, event_type="miscellaneous_fee")
    create_supplier(db_session)

    rfq = _request(db_session, agency, itinerary)

    assert rfq.id
    assert rfq.segments == []
    assert rfq.unassigned_event_ids == [misc.id]


def test_itinerary_marked_requested_and_audited(db_session, agency):
    itinerary = create_itinerary(db_session)
    add_event(db_session, itinerary)
    create_supplier(db_session)

    rfq = _request(db_session, agency, itinerary)

    db_session.refresh(itinerary)
    assert itinerary.status == "requested"
    assert rfq.requested_by_contact_id == agency.sub
    entries = crud_rfq_audit_log.get_audit_log_for_rfq(db_session, rfq.id)
    assert [e.action for e in entries] == ["request_quote"]
    assert entries[0].action_metadata["segment_count"] == 1


def test_empty_itinerary_rejected(db_session, agency):
    itinerary = create_itinerary(db_session)

    with pytest.raises(EmptyItinerary):
        _request(db_session, agency, itinerary)
    assert db_session.query(Rfq).count() == 0


def test_second_request_is_duplicate(db_session, agency):
    itinerary = create_itinerary(db_session)
    add_event(db_session, itinerary)
    create_supplier(db_session)
    first = _request(db_session, agency, itinerary)

    with pytest.raises(DuplicateRfq) as exc_info:
        _request(db_session, agency, itinerary)
    assert exc_info.value.details["rfq_id"] == first.id


def test_canceled_itinerary_rejected(db_session, agency):
    itinerary = create_itinerary(db_session)
    add_event(db_session, itinerary)
    itinerary.status = "canceled"
    db_session.commit()

    with pytest.raises(InvalidState):
        _request(db_session, agency, itinerary)


def test_foreign_agency_rejected(db_session):
    itinerary = create_itinerary(db_session)
    add_event(db_session, itinerary)
    other = make_agency_principal(sub="contact_9", agency_id="agency_other")

    with pytest.raises(AccessDenied):
        _request(db_session, other, itinerary)


def test_past_expiry_rejected(db_session, agency):
    itinerary = create_itinerary(db_session)
    add_event(db_session, itinerary)

    with pytest.raises(ValidationError):
        _request(
            db_session, agency, itinerary, expires_at=utcnow() - timedelta(hours=1)
        )


def test_failure_rolls_back_everything(db_session, agency):
    itinerary = create_itinerary(db_session)
    add_event(db_session, itinerary)
    create_supplier(db_session, name="T1")
    create_supplier(db_session, name="T2")

    with patch(
        "rfq_service.crud.crud_rfq_audit_log.add_entry",
        side_effect=RuntimeError("audit store unavailable"),
    ):
        with pytest.raises(RuntimeError):
            _request(db_session, agency, itinerary)

    assert db_session.query(Rfq).count() == 0
    assert db_session.query(RfqSegment).count() == 0
    db_session.refresh(itinerary)
    assert itinerary.status == "draft"


def _unique_violation():
    return IntegrityError(
        "INSERT INTO rfqs", {}, Exception("UNIQUE constraint failed: rfqs.itinerary_id")
    )


def test_concurrent_request_reported_as_duplicate(db_session, agency):
    itinerary = create_itinerary(db_session)
    add_event(db_session, itinerary)
    create_supplier(db_session)
    winner = MagicMock(id="rfq_winner")

    # The row committed by the other request only shows up after our insert fails
    with patch(
        "rfq_service.crud.crud_rfq.get_by_itinerary", side_effect=[None, winner]
    ), patch(
        "rfq_service.crud.crud_rfq_audit_log.add_entry", side_effect=_unique_violation()
    ):
        with pytest.raises(DuplicateRfq) as exc_info:
            _request(db_session, agency, itinerary)

    assert exc_info.value.details["rfq_id"] == "rfq_winner"
    assert db_session.query(Rfq).count() == 0
    assert db_session.query(RfqSegment).count() == 0


def test_integrity_error_without_competing_rfq_propagates(db_session, agency):
    itinerary = create_itinerary(db_session)
    add_event(db_session, itinerary)
    create_supplier(db_session)

    with patch(
        "rfq_service.crud.crud_rfq_audit_log.add_entry", side_effect=_unique_violation()
    ):
        with pytest.raises(IntegrityError):
            _request(db_session, agency, itinerary)

    assert db_session.query(Rfq).count() == 0
