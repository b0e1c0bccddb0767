# tests/api/v1/test_rfq_workflow.py
"""
End-to-end tests for the quoting workflow over HTTP:
  - Agency itinerary + day generation + events
  - RFQ creation and supplier fan-out
  - Supplier proposals, agency decisions, quote compilation
  - Error envelope and auth boundaries
"""

from datetime import datetime, timedelta

from rfq_service.schemas.rfq import SupplierType
from rfq_service.api import deps
from rfq_service.main import app
from rfq_service.utils.datetime_utils import utcnow

from tests.utils.auth import (
    TENANT_ID,
    get_authentication_headers,
    make_agency_principal,
    make_supplier_principal,
    make_user_principal,
)
from tests.utils.itinerary import create_supplier

API = "/api/v1"


def _create_itinerary(client, start="2025-06-01", end="2025-06-03"):
    response = client.post(
        f"{API}/agency/itineraries",
        json={
            "tenant_id": TENANT_ID,
            "title": "Athens Long Weekend",
            "pax_adults": 2,
            "start_date": start,
            "end_date": end,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


def _add_event(client, itinerary, event_type="transport_transfer", day_index=0):
    response = client.post(
        f"{API}/agency/itineraries/{itinerary['id']}/events",
        json={
            "day_id": itinerary["days"][day_index]["id"],
            "event_type": event_type,
            "summary": "Airport to hotel",
            "start_time": "10:30",
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


# ---------------------------------------------------------------------------
# A. Itineraries
# ---------------------------------------------------------------------------

class TestItineraryEndpoints:

    def test_create_generates_days(self, test_client):
        data = _create_itinerary(test_client)

        assert data["status"] == "draft"
        assert [d["day_number"] for d in data["days"]] == [1, 2, 3]
        assert [d["date"] for d in data["days"]] == [
            "2025-06-01",
            "2025-06-02",
            "2025-06-03",
        ]

    def test_inverted_dates_answer_422_envelope(self, test_client):
        response = test_client.post(
            f"{API}/agency/itineraries",
            json={
                "tenant_id": TENANT_ID,
                "title": "Backwards",
                "pax_adults": 1,
                "start_date": "2025-06-03",
                "end_date": "2025-06-01",
            },
        )
        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["path"] == f"{API}/agency/itineraries"

    def test_date_change_locked_once_events_exist(self, test_client):
        itinerary = _create_itinerary(test_client)
        _add_event(test_client, itinerary)

        response = test_client.patch(
            f"{API}/agency/itineraries/{itinerary['id']}",
            json={"end_date": "2025-06-05"},
        )

        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "ITINERARY_LOCKED"
        assert error["itinerary_id"] == itinerary["id"]
        assert "delete all events" in error["message"]

    def test_date_change_allowed_without_events(self, test_client):
        itinerary = _create_itinerary(test_client)

        response = test_client.patch(
            f"{API}/agency/itineraries/{itinerary['id']}",
            json={"end_date": "2025-06-05"},
        )

        assert response.status_code == 200
        assert len(response.json()["days"]) == 5

    def test_null_required_field_answers_422(self, test_client):
        itinerary = _create_itinerary(test_client)

        response = test_client.patch(
            f"{API}/agency/itineraries/{itinerary['id']}",
            json={"title": None},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"
        fetched = test_client.get(f"{API}/agency/itineraries/{itinerary['id']}")
        assert fetched.json()["title"] == "Athens Long Weekend"

    def test_null_event_summary_answers_422(self, test_client):
        itinerary = _create_itinerary(test_client)
        event = _add_event(test_client, itinerary)

        response = test_client.patch(
            f"{API}/agency/itineraries/{itinerary['id']}/events/{event['id']}",
            json={"summary": None, "start_time": "11:00"},
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_omitted_fields_are_left_alone(self, test_client):
        itinerary = _create_itinerary(test_client)
        event = _add_event(test_client, itinerary)

        response = test_client.patch(
            f"{API}/agency/itineraries/{itinerary['id']}/events/{event['id']}",
            json={"start_time": "11:00"},
        )

        assert response.status_code == 200
        assert response.json()["summary"] == "Airport to hotel"
        assert response.json()["start_time"] == "11:00"

    def test_event_category_is_stored(self, test_client):
        itinerary = _create_itinerary(test_client)
        event = _add_event(test_client, itinerary, event_type="hotel_checkin")
        assert event["category"] == "accommodation"

    def test_foreign_agency_gets_404(self, test_client, auth):
        itinerary = _create_itinerary(test_client)
        auth.principal = make_agency_principal(sub="contact_9", agency_id="agency_other")

        response = test_client.get(f"{API}/agency/itineraries/{itinerary['id']}")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    def test_non_agency_caller_forbidden(self, test_client, auth):
        auth.principal = make_user_principal()

        response = test_client.get(f"{API}/agency/itineraries")

        assert response.status_code == 403

    def test_user_owned_itinerary(self, test_client, auth):
        auth.principal = make_user_principal(sub="user_42")

        response = test_client.post(
            f"{API}/itineraries",
            json={
                "tenant_id": TENANT_ID,
                "title": "Solo trip",
                "pax_adults": 1,
                "start_date": "2025-09-10",
                "end_date": "2025-09-10",
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["created_by_user_id"] == "user_42"
        assert data["agency_id"] is None
        listed = test_client.get(f"{API}/itineraries").json()
        assert [i["id"] for i in listed["itineraries"]] == [data["id"]]


# ---------------------------------------------------------------------------
# B. Full quoting workflow
# ---------------------------------------------------------------------------

class TestQuotingWorkflow:

    def test_three_day_transport_scenario(self, test_client, auth, db_session):
        supplier_a = create_supplier(db_session, owner_id="sup_user_a", name="Coaches A")
        supplier_b = create_supplier(db_session, owner_id="sup_user_b", name="Coaches B")
        create_supplier(db_session, SupplierType.HOTEL, name="Hotel Plaka")

        itinerary = _create_itinerary(test_client)
        assert len(itinerary["days"]) == 3
        event = _add_event(test_client, itinerary)

        # Agency requests the quote
        response = test_client.post(
            f"{API}/agency/rfqs", json={"itinerary_id": itinerary["id"]}
        )
        assert response.status_code == 201, response.text
        rfq = response.json()
        assert rfq["status"] == "open"
        assert rfq["itinerary"]["status"] == "requested"
        assert len(rfq["segments"]) == 2
        assert {s["supplier_id"] for s in rfq["segments"]} == {supplier_a.id, supplier_b.id}
        for segment in rfq["segments"]:
            assert segment["status"] == "pending"
            assert [e["id"] for e in segment["payload"]["events"]] == [event["id"]]

        segment_a = next(s for s in rfq["segments"] if s["supplier_id"] == supplier_a.id)

        # Supplier A sees it in the inbox and proposes
        auth.principal = make_supplier_principal("sup_user_a")
        inbox = test_client.get(f"{API}/supplier/rfq-segments").json()
        assert [s["id"] for s in inbox["segments"]] == [segment_a["id"]]

        response = test_client.post(
            f"{API}/supplier/rfq-segments/{segment_a['id']}/quote",
            json={"proposed_price": "120.00", "supplier_notes": "Mercedes Vito"},
        )
        assert response.status_code == 200, response.text
        assert response.json()["status"] == "supplier_proposed"
        assert response.json()["proposed_price"] == 120.0

        # Agency accepts
        auth.principal = make_agency_principal()
        response = test_client.patch(
            f"{API}/agency/rfq-segments/{segment_a['id']}/status",
            json={"status": "accepted"},
        )
        assert response.status_code == 200, response.text
        assert response.json()["status"] == "accepted"

        # The sibling segment is untouched
        detail = test_client.get(f"{API}/agency/rfqs/{rfq['id']}").json()
        statuses = {s["supplier_id"]: s["status"] for s in detail["segments"]}
        assert statuses == {supplier_a.id: "accepted", supplier_b.id: "pending"}

        # Compile
        response = test_client.post(
            f"{API}/agency/quotes",
            json={
                "rfq_id": rfq["id"],
                "currency": "EUR",
                "items": [
                    {
                        "segment_id": segment_a["id"],
                        "description": "Airport transfer",
                        "amount": "120.00",
                    }
                ],
                "subtotal": "120.00",
                "total": "120.00",
            },
        )
        assert response.status_code == 201, response.text
        quote = response.json()
        assert quote["total"] == 120.0
        created = datetime.fromisoformat(quote["created_at"])
        validity = datetime.fromisoformat(quote["validity_date"])
        assert validity - created == timedelta(days=30)

        detail = test_client.get(f"{API}/agency/rfqs/{rfq['id']}").json()
        assert detail["status"] == "quoted"

        quotes = test_client.get(f"{API}/agency/quotes").json()
        assert [q["id"] for q in quotes] == [quote["id"]]

        audit = test_client.get(f"{API}/agency/rfqs/{rfq['id']}/audit").json()
        assert {e["action"] for e in audit} == {
            "request_quote",
            "propose",
            "accept",
            "compile_quote",
        }

    def test_miscellaneous_fee_only(self, test_client, db_session):
        create_supplier(db_session, name="Coaches A")
        itinerary = _create_itinerary(test_client)
        event = _add_event(test_client, itinerary, event_type="miscellaneous_fee")

        response = test_client.post(
            f"{API}/agency/rfqs", json={"itinerary_id": itinerary["id"]}
        )

        assert response.status_code == 201
        rfq = response.json()
        assert rfq["segments"] == []
        assert rfq["unassigned_event_ids"] == [event["id"]]

    def test_empty_itinerary_and_duplicate_rfq(self, test_client):
        itinerary = _create_itinerary(test_client)

        response = test_client.post(
            f"{API}/agency/rfqs", json={"itinerary_id": itinerary["id"]}
        )
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "EMPTY_ITINERARY"

        _add_event(test_client, itinerary)
        first = test_client.post(f"{API}/agency/rfqs", json={"itinerary_id": itinerary["id"]})
        assert first.status_code == 201
        second = test_client.post(f"{API}/agency/rfqs", json={"itinerary_id": itinerary["id"]})
        assert second.status_code == 409
        assert second.json()["error"]["code"] == "DUPLICATE_RFQ"

    def test_decide_before_proposal_is_rejected(self, test_client, db_session):
        create_supplier(db_session, name="Coaches A")
        itinerary = _create_itinerary(test_client)
        _add_event(test_client, itinerary)
        rfq = test_client.post(
            f"{API}/agency/rfqs", json={"itinerary_id": itinerary["id"]}
        ).json()

        response = test_client.patch(
            f"{API}/agency/rfq-segments/{rfq['segments'][0]['id']}/status",
            json={"status": "accepted"},
        )

        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "INVALID_TRANSITION"
        assert error["from"] == "pending"

    def test_unknown_segment_decision_is_404(self, test_client):
        response = test_client.patch(
            f"{API}/agency/rfq-segments/rfs_missing/status",
            json={"status": "accepted"},
        )
        assert response.status_code == 404

    def test_invalid_decision_value_is_422(self, test_client):
        response = test_client.patch(
            f"{API}/agency/rfq-segments/rfs_missing/status",
            json={"status": "supplier_proposed"},
        )
        assert response.status_code == 422

    def test_non_positive_price_is_422(self, test_client, auth, db_session):
        create_supplier(db_session, owner_id="sup_user_a", name="Coaches A")
        itinerary = _create_itinerary(test_client)
        _add_event(test_client, itinerary)
        rfq = test_client.post(
            f"{API}/agency/rfqs", json={"itinerary_id": itinerary["id"]}
        ).json()

        auth.principal = make_supplier_principal("sup_user_a")
        response = test_client.post(
            f"{API}/supplier/rfq-segments/{rfq['segments'][0]['id']}/quote",
            json={"proposed_price": "-10"},
        )

        assert response.status_code == 422
        assert response.json()["error"]["field"] == "proposed_price"

    def test_expired_rfq_answers_410(self, test_client, auth, db_session):
        create_supplier(db_session, owner_id="sup_user_a", name="Coaches A")
        itinerary = _create_itinerary(test_client)
        _add_event(test_client, itinerary)
        rfq = test_client.post(
            f"{API}/agency/rfqs", json={"itinerary_id": itinerary["id"]}
        ).json()

        from rfq_service.models.rfq import Rfq

        db_rfq = db_session.query(Rfq).filter(Rfq.id == rfq["id"]).one()
        db_rfq.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()

        auth.principal = make_supplier_principal("sup_user_a")
        response = test_client.post(
            f"{API}/supplier/rfq-segments/{rfq['segments'][0]['id']}/quote",
            json={"proposed_price": "99.00"},
        )

        assert response.status_code == 410
        assert response.json()["error"]["code"] == "RFQ_EXPIRED"


# ---------------------------------------------------------------------------
# C. Auth boundary
# ---------------------------------------------------------------------------

class TestAuthentication:

    def test_health_is_public(self, test_client):
        response = test_client.get(f"{API}/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_real_token_is_decoded(self, test_client):
        app.dependency_overrides.pop(deps.get_current_user, None)
        headers = get_authentication_headers(make_agency_principal())

        response = test_client.get(f"{API}/agency/itineraries", headers=headers)

        assert response.status_code == 200
        assert response.json()["pagination"]["total_count"] == 0

    def test_missing_token_is_401(self, test_client):
        app.dependency_overrides.pop(deps.get_current_user, None)

        response = test_client.get(f"{API}/agency/itineraries")

        assert response.status_code == 401

    def test_garbage_token_is_401(self, test_client):
        app.dependency_overrides.pop(deps.get_current_user, None)

        response = test_client.get(
            f"{API}/agency/itineraries", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401
