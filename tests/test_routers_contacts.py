"""
test_routers_contacts.py — Tests for the contact search HTTP endpoints.

Called by: pytest
Depends on: crm_search/routers/contacts.py, crm_search/main.py, conftest.py
"""

from datetime import timedelta
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from crm_search.models import DealStage, InteractionType
from crm_search.schemas.errors import ErrorResponse
from crm_search.services import contact_search as contact_search_module

from .conftest import NOW


class TestSearchEndpoint:
    def test_empty_store(self, client):
        resp = client.get("/api/contacts/search")
        assert resp.status_code == 200
        data = resp.json()
        assert data["totalCount"] == 0
        assert data["data"] == []
        assert data["nextPageToken"] is None
        assert data["page"] == 1 and data["pageSize"] == 50

    def test_camel_case_response(self, client, make_contact):
        make_contact(first_name="Ann", last_name="Lee", tags=["VIP"], interactions=[InteractionType.CALL])
        dto = client.get("/api/contacts/search").json()["data"][0]
        assert dto["fullName"] == "Ann Lee"
        assert dto["tags"] == ["VIP"]
        assert dto["interactionCount"] == 1
        assert "dealValue" in dto and "lastContact" in dto

    def test_query_params_filter(self, client, make_contact):
        target = make_contact(city="Paris", tags=["Gold"], deal_stage=DealStage.PROPOSAL)
        make_contact(city="Paris", tags=["Silver"], deal_stage=DealStage.PROPOSAL)
        resp = client.get("/api/contacts/search", params={"city": "Paris", "tags": "VIP, Gold", "dealStage": "2"})
        assert resp.status_code == 200
        assert [d["id"] for d in resp.json()["data"]] == [target.id]

    def test_snake_case_params(self, client, make_contact):
        for i in range(3):
            make_contact(last_contact_date=NOW - timedelta(days=i + 1))
        data = client.get("/api/contacts/search", params={"page_size": "2", "page": "2"}).json()
        assert data["pageSize"] == 2
        assert len(data["data"]) == 1
        assert data["nextPageToken"] is None

    def test_malformed_params_are_ignored(self, client, make_contact):
        make_contact()
        resp = client.get(
            "/api/contacts/search",
            params={
                "lastContactBefore": "not-a-date",
                "dealStage": "99",
                "minDealValue": "lots",
                "page": "-3",
                "pageSize": "zero",
                "pageToken": "garbage",
            },
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["totalCount"] == 1
        assert data["page"] == 1

    def test_next_page_token_roundtrip(self, client, make_contact):
        for i in range(5):
            make_contact(last_contact_date=NOW - timedelta(days=i + 1))
        first = client.get("/api/contacts/search", params={"pageSize": "2"}).json()
        assert first["nextPageToken"]
        second = client.get(
            "/api/contacts/search", params={"pageSize": "2", "pageToken": first["nextPageToken"]}
        ).json()
        assert second["page"] == 2
        assert {d["id"] for d in first["data"]}.isdisjoint(d["id"] for d in second["data"])

    def test_post_body(self, client, make_contact):
        target = make_contact(city="Austin")
        make_contact(city="Berlin")
        resp = client.post("/api/contacts/search", json={"city": "Austin", "sortBy": "email"})
        assert resp.status_code == 200
        assert [d["id"] for d in resp.json()["data"]] == [target.id]

    def test_store_failure_returns_503(self, client):
        error = OperationalError("SELECT", {}, Exception("store down"))
        with patch.object(contact_search_module, "build_contact_query", side_effect=error):
            resp = client.get("/api/contacts/search", headers={"x-request-id": "req-1"})
        assert resp.status_code == 503
        body = resp.json()
        assert body["status_code"] == 503
        assert body["request_id"] == "req-1"
        assert "failed" in body["error"]


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_unknown_route_uses_error_body(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.json()["status_code"] == 404


def test_error_response_request_id_optional():
    body = ErrorResponse(error="Contact search failed", status_code=503)
    assert body.request_id is None
    assert body.model_dump() == {"error": "Contact search failed", "status_code": 503, "request_id": None}
