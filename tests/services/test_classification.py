# tests/services/test_classification.py
from types import SimpleNamespace

from rfq_service.schemas.itinerary import EventCategory
from rfq_service.schemas.rfq import SupplierType
from rfq_service.services.classification import (
    backfill_event_categories,
    bucket_events,
    classify_event_type,
    resolve_category,
    supplier_type_for,
)

from tests.utils.itinerary import add_event, create_itinerary


class TestClassifyEventType:

    def test_keyword_groups(self):
        assert classify_event_type("transport_transfer") is EventCategory.TRANSPORT
        assert classify_event_type("Hotel Night") is EventCategory.ACCOMMODATION
        assert classify_event_type("accommodation") is EventCategory.ACCOMMODATION
        assert classify_event_type("walking_tour") is EventCategory.GUIDED_ACTIVITY
        assert classify_event_type("private guide") is EventCategory.GUIDED_ACTIVITY
        assert classify_event_type("sight_acropolis") is EventCategory.SIGHT_ENTRY
        assert classify_event_type("ATTRACTION pass") is EventCategory.SIGHT_ENTRY

    def test_first_matching_group_wins(self):
        # "transfer" is checked before "hotel"
        assert classify_event_type("hotel_transfer") is EventCategory.TRANSPORT

    def test_unmatched_is_uncategorized(self):
        assert classify_event_type("miscellaneous_fee") is EventCategory.UNCATEGORIZED
        assert classify_event_type("") is EventCategory.UNCATEGORIZED


class TestResolveCategory:

    def test_explicit_category_is_kept(self):
        assert (
            resolve_category("transfer", EventCategory.SIGHT_ENTRY)
            is EventCategory.SIGHT_ENTRY
        )

    def test_falls_back_to_tag(self):
        assert resolve_category("transfer") is EventCategory.TRANSPORT


class TestBucketEvents:

    def setup_method(self):
        self.events = [
            SimpleNamespace(id="e1", category="transport"),
            SimpleNamespace(id="e2", category="accommodation"),
            SimpleNamespace(id="e3", category="transport"),
            SimpleNamespace(id="e4", category="uncategorized"),
        ]

    def test_every_supplier_type_has_a_bucket(self):
        buckets, _ = bucket_events([])
        assert set(buckets) == set(SupplierType)

    def test_bucketing_uses_stored_category(self):
        buckets, unbucketed = bucket_events(self.events)

        assert [e.id for e in buckets[SupplierType.TRANSPORT]] == ["e1", "e3"]
        assert [e.id for e in buckets[SupplierType.HOTEL]] == ["e2"]
        assert buckets[SupplierType.GUIDE] == []
        assert [e.id for e in unbucketed] == ["e4"]

    def test_supplier_type_mapping(self):
        assert supplier_type_for("guided_activity") is SupplierType.GUIDE
        assert supplier_type_for("sight_entry") is SupplierType.SIGHT
        assert supplier_type_for("uncategorized") is None


def test_backfill_only_touches_uncategorized_rows(db_session):
    itinerary = create_itinerary(db_session)
    legacy = add_event(db_session, itinerary, event_type="hotel_checkin")
    pinned = add_event(
        db_session, itinerary, event_type="hotel_dinner", category=EventCategory.SIGHT_ENTRY
    )
    misc = add_event(db_session, itinerary, event_type="miscellaneous_fee")

    # Simulate a row written before categories were stored
    legacy.category = "uncategorized"
    db_session.commit()

    updated = backfill_event_categories(db_session)

    assert updated == 1
    db_session.refresh(legacy)
    db_session.refresh(pinned)
    db_session.refresh(misc)
    assert legacy.category == "accommodation"
    assert pinned.category == "sight_entry"
    assert misc.category == "uncategorized"
