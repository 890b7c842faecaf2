# backend/tests/test_api.py
from __future__ import annotations

from app.auth import encode_identity_token

AGENT = {"X-User-Id": "agent-1", "X-User-Role": "agent", "X-User-Email": "agent-1@portal.local"}
OTHER_AGENT = {"X-User-Id": "agent-2", "X-User-Role": "agent"}
ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "admin"}


def _create(client, make_payload_data, headers=AGENT, **overrides) -> dict:
    r = client.post("/api/transactions", json=make_payload_data(**overrides), headers=headers)
    assert r.status_code == 201, r.text
    return r.json()


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["ok"] is True


def test_request_id_is_echoed(client):
    r = client.get("/api/health", headers={"X-Request-ID": "req-123"})
    assert r.headers["X-Request-ID"] == "req-123"
    assert client.get("/api/health").headers["X-Request-ID"]


def test_unauthenticated_is_401(client):
    assert client.get("/api/transactions/mine").status_code == 401


def test_unknown_role_is_401(client):
    r = client.get("/api/auth/me", headers={"X-User-Id": "x", "X-User-Role": "owner"})
    assert r.status_code == 401


def test_bearer_token_identity(client, settings):
    token = encode_identity_token(
        {"sub": "agent-9", "role": "agent", "email": "nine@portal.local", "name": "Nine"},
        settings=settings,
    )
    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json() == {"user_id": "agent-9", "role": "agent", "email": "nine@portal.local", "name": "Nine"}


def test_bad_token_is_401(client):
    r = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_create_and_read_back(client, make_payload_data):
    body = _create(client, make_payload_data)

    assert body["status"] == "draft"
    assert body["agent_id"] == "agent-1"
    assert float(body["commission_value"]) == 24000.0

    r = client.get(f"/api/transactions/{body['id']}", headers=AGENT)
    assert r.status_code == 200
    detail = r.json()
    assert [h["status"] for h in detail["history"]] == ["draft"]
    assert detail["documents"] == []


def test_create_rejects_lease_on_primary(client, make_payload_data):
    r = client.post(
        "/api/transactions",
        json=make_payload_data(transaction_type="lease"),
        headers=AGENT,
    )
    assert r.status_code == 422


def test_create_accepts_legacy_fixed_label(client, make_payload_data):
    body = _create(client, make_payload_data, commission_type="fixed", commission_value="12,500")
    assert body["commission_type"] == "fixed_amount"
    assert float(body["commission_value"]) == 12500.0


def test_create_rejects_malformed_money(client, make_payload_data):
    for raw in ("1.2.3", "12-3", "1,200.000.50"):
        r = client.post("/api/transactions", json=make_payload_data(total_price=raw), headers=AGENT)
        assert r.status_code == 422, raw

    assert client.get("/api/transactions/mine", headers=AGENT).json()["total_count"] == 0


def test_create_rejects_blank_co_broking_names(client, make_payload_data):
    r = client.post(
        "/api/transactions",
        json=make_payload_data(co_broking_type="co_broke", co_broking_agent_name=" ", co_broking_agency_name="Acme"),
        headers=AGENT,
    )
    assert r.status_code == 422

    body = _create(
        client,
        make_payload_data,
        co_broking_type="co_broke",
        co_broking_agent_name="Bob Lee",
        co_broking_agency_name="Acme Realty",
    )
    assert body["co_broking_agent_name"] == "Bob Lee"


def test_other_agent_sees_404(client, make_payload_data):
    body = _create(client, make_payload_data)
    assert client.get(f"/api/transactions/{body['id']}", headers=OTHER_AGENT).status_code == 404
    assert client.get(f"/api/transactions/{body['id']}", headers=ADMIN).status_code == 200


def test_agent_requesting_approved_is_forbidden(client, make_payload_data):
    body = _create(client, make_payload_data)

    r = client.post(f"/api/transactions/{body['id']}/status", json={"status": "approved"}, headers=AGENT)
    assert r.status_code == 403

    again = client.get(f"/api/transactions/{body['id']}", headers=AGENT).json()
    assert again["status"] == "draft"
    assert len(again["history"]) == 1


def test_review_flow(client, make_payload_data):
    body = _create(client, make_payload_data)
    tid = body["id"]

    r = client.post(f"/api/transactions/{tid}/submit", headers=AGENT)
    assert r.status_code == 200
    assert r.json()["status"] == "pending_review"

    # agents can't use the admin endpoint
    r = client.post(f"/api/admin/transactions/{tid}/status", json={"status": "approved"}, headers=AGENT)
    assert r.status_code == 403

    r = client.post(
        f"/api/admin/transactions/{tid}/status",
        json={"status": "approved", "review_notes": "All documents in order"},
        headers=ADMIN,
    )
    assert r.status_code == 200
    assert r.json()["review_notes"] == "All documents in order"

    stats = client.get("/api/transactions/stats", headers=AGENT).json()
    assert stats["approved"] == 1
    assert float(stats["total_commission"]) == 24000.0

    admin_stats = client.get("/api/admin/stats", headers=ADMIN).json()
    assert admin_stats["approved"] == 1
    assert float(admin_stats["total_value"]) == 1200000.0


def test_draft_edit_and_documents(client, make_payload_data):
    body = _create(client, make_payload_data)
    tid = body["id"]

    r = client.put(f"/api/transactions/{tid}", json=make_payload_data(client_name="Bob Lim"), headers=AGENT)
    assert r.status_code == 200
    assert r.json()["client_name"] == "Bob Lim"

    r = client.post(
        f"/api/transactions/{tid}/documents",
        json={"document_name": "SPA.pdf", "document_url": "https://files.local/spa.pdf", "document_type": "spa"},
        headers=AGENT,
    )
    assert r.status_code == 201
    assert r.json()["uploaded_by"] == "agent-1"

    client.post(f"/api/transactions/{tid}/submit", headers=AGENT)
    r = client.put(f"/api/transactions/{tid}", json=make_payload_data(), headers=AGENT)
    assert r.status_code == 400


def test_delete_rules(client, make_payload_data):
    draft = _create(client, make_payload_data)
    submitted = _create(client, make_payload_data)
    client.post(f"/api/transactions/{submitted['id']}/submit", headers=AGENT)

    r = client.delete(f"/api/transactions/{submitted['id']}", headers=AGENT)
    assert r.status_code == 403

    r = client.delete(f"/api/transactions/{draft['id']}", headers=AGENT)
    assert r.status_code == 200
    assert r.json() == {"success": True}
    assert client.get(f"/api/transactions/{draft['id']}", headers=AGENT).status_code == 404

    r = client.delete(f"/api/transactions/{submitted['id']}", headers=ADMIN)
    assert r.status_code == 200


def test_listing_endpoints(client, make_payload_data):
    for i in range(3):
        _create(client, make_payload_data, client_name=f"Client {i}")
    _create(client, make_payload_data, headers=OTHER_AGENT, client_name="Someone Else")

    r = client.get("/api/transactions/mine", params={"limit": 2}, headers=AGENT)
    assert r.status_code == 200
    page = r.json()
    assert len(page["items"]) == 2
    assert page["total_count"] == 3
    assert page["has_more"] is True

    recent = client.get("/api/transactions/recent", headers=AGENT).json()
    assert len(recent) == 3
    assert {row["property_name"] for row in recent} == {"Harbour View Residences"}

    assert client.get("/api/admin/transactions", headers=AGENT).status_code == 403

    everyone = client.get("/api/admin/transactions", params={"search": "someone"}, headers=ADMIN).json()
    assert everyone["total_count"] == 1
    assert everyone["items"][0]["agent_id"] == "agent-2"


def test_invalid_status_value_is_422(client, make_payload_data):
    body = _create(client, make_payload_data)
    r = client.post(f"/api/transactions/{body['id']}/status", json={"status": "archived"}, headers=AGENT)
    assert r.status_code == 422


def test_form_steps_endpoint(client):
    r = client.get("/api/transaction-form/steps", params={"market_type": "primary"}, headers=AGENT)
    assert r.status_code == 200
    body = r.json()
    assert body["commission_step_index"] == 5
    assert body["steps"][1] == {"id": "property-selection", "title": "Property Selection", "index": 1}


def test_form_validate_endpoint(client):
    r = client.post(
        "/api/transaction-form/validate",
        json={"step_id": "co-broking", "values": {"co_broking_enabled": True, "co_broking_agent_name": "Bob"}},
        headers=AGENT,
    )
    assert r.status_code == 200
    body = r.json()
    assert body["valid"] is False
    assert set(body["errors"]) == {"co_broking_agency_name"}

    r = client.post(
        "/api/transaction-form/validate",
        json={"step_id": "co-broking", "values": {"coBrokingEnabled": True}},
        headers=AGENT,
    )
    assert r.status_code == 422


def test_form_commission_endpoint(client):
    r = client.post(
        "/api/transaction-form/commission",
        json={"transaction_type": "sale", "total_price": "1,200,000", "commission_percentage": "2"},
        headers=AGENT,
    )
    assert r.status_code == 200
    body = r.json()
    assert body["commission_value"] == "24000.00"
    assert body["formatted"] == "$24,000.00"
    assert float(body["breakdown"]["agent_base_commission"]) == 14400.0

    # falls back to the configured default percentage (2%)
    r = client.post(
        "/api/transaction-form/commission",
        json={"transaction_type": "sale", "total_price": "500000"},
        headers=AGENT,
    )
    assert r.json()["commission_value"] == "10000.00"
