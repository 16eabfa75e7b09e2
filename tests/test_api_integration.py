# tests/test_api_integration.py

import json

import pytest
from fastapi.testclient import TestClient

import event_analytics.api.auth as auth_module
import event_analytics.api.rate_limit as rate_limit_module
from event_analytics.main import app as fastapi_app
from event_analytics.models.account import Application
from event_analytics.models.auth import AccessKey
from event_analytics.models.event import Event


PAGE_VIEW = {
    "event": "page_view",
    "url": "https://test.com/home",
    "device": "desktop",
    "ipAddress": "192.168.1.1",
    "userId": "123",
    "timestamp": "2024-01-01T00:00:00Z",
    "metadata": {"browser": "Chrome"},
}


def _collect(client, api_key: str, payload=None):
    return client.post(
        "/api/analytics/collect",
        headers={"X-API-Key": api_key},
        json=payload or PAGE_VIEW,
    )


def test_signup_login_and_me(client):
    r = client.post(
        "/api/auth/signup",
        json={"name": "Ada", "email": "Ada@Example.com", "password": "long-enough-pw"},
    )
    assert r.status_code == 201, r.text
    token = r.json()["data"]["accessToken"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200, me.text
    assert me.json()["data"]["email"] == "ada@example.com"

    ok = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "long-enough-pw"})
    assert ok.status_code == 200
    assert ok.json()["data"]["tokenType"] == "bearer"

    bad = client.post("/api/auth/login", json={"email": "ada@example.com", "password": "wrong"})
    assert bad.status_code == 401
    assert bad.json() == {"success": False, "message": "Invalid email or password"}


def test_signup_duplicate_email_conflicts(client, owner):
    r = client.post(
        "/api/auth/signup",
        json={"name": "Again", "email": "owner@example.com", "password": "long-enough-pw"},
    )
    assert r.status_code == 409


def test_bearer_required_for_analytics(client, registered_app):
    r = client.get("/api/analytics/event-summary", params={"event": "page_view", "app_id": registered_app["app_id"]})
    assert r.status_code == 401
    assert r.json()["success"] is False

    r = client.get(
        "/api/analytics/user-stats",
        params={"userId": "123"},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid token"


def test_register_app_returns_key_once(client, db_session, owner_headers):
    r = client.post(
        "/api/auth/register",
        headers=owner_headers,
        json={"name": "Shop", "domain": "shop.test", "type": "mobile"},
    )
    assert r.status_code == 201, r.text
    data = r.json()["data"]
    assert data["apiKey"].startswith("ea_")

    row = db_session.query(AccessKey).filter(AccessKey.application_id == data["appId"]).one()
    assert row.key_hash != data["apiKey"]  # never store plaintext
    assert row.is_active is True


def test_collect_then_event_summary(client, db_session, owner_headers, registered_app):
    r = _collect(client, registered_app["api_key"])
    assert r.status_code == 201, r.text
    assert r.json() == {"success": True, "message": "Event recorded successfully"}

    rows = db_session.query(Event).filter(Event.application_id == registered_app["app_id"]).all()
    assert len(rows) == 1
    assert rows[0].user_id == "123"
    assert rows[0].name == rows[0].type == "page_view"
    assert json.loads(rows[0].event_metadata)["browser"] == "Chrome"

    s = client.get(
        "/api/analytics/event-summary",
        headers=owner_headers,
        params={"event": "page_view", "app_id": registered_app["app_id"]},
    )
    assert s.status_code == 200, s.text
    data = s.json()["data"]
    assert data["event"] == "page_view"
    assert data["count"] >= 1
    assert data["deviceData"]["desktop"] >= 1
    assert data["uniqueUsers"] == 1


def test_collect_validation_error_writes_nothing(client, db_session, registered_app):
    bad = dict(PAGE_VIEW, url="not a url", ipAddress="999.1.1.1")
    r = _collect(client, registered_app["api_key"], bad)
    assert r.status_code == 400, r.text
    body = r.json()
    assert body["success"] is False
    assert body["message"] == "Validation Error"
    fields = {e["field"] for e in body["errors"]}
    assert {"url", "ipAddress"} <= fields

    assert db_session.query(Event).count() == 0


def test_collect_rejects_missing_and_unknown_keys(client, registered_app):
    r = client.post("/api/analytics/collect", json=PAGE_VIEW)
    assert r.status_code == 401
    assert r.json()["message"] == "API key is required"

    r = _collect(client, "ea_definitely-not-a-key")
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid or expired API key"


def test_event_summary_for_foreign_app_is_forbidden(client, fake_redis, other_headers, registered_app):
    r = client.get(
        "/api/analytics/event-summary",
        headers=other_headers,
        params={"event": "page_view", "app_id": registered_app["app_id"]},
    )
    assert r.status_code == 403
    assert r.json() == {"success": False, "message": "You do not have access to this app"}
    assert not [c for c in fake_redis.calls if c[0] == "get"]


def test_event_summary_rejects_bad_dates(client, owner_headers, registered_app):
    r = client.get(
        "/api/analytics/event-summary",
        headers=owner_headers,
        params={"event": "page_view", "app_id": registered_app["app_id"], "startDate": "yesterday"},
    )
    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "startDate"


def test_user_stats_not_found_and_device_fallback(client, owner_headers, registered_app):
    r = client.get("/api/analytics/user-stats", headers=owner_headers, params={"userId": "nobody"})
    assert r.status_code == 404
    assert r.json()["message"] == "No data found for this user"

    payload = dict(PAGE_VIEW, userId="u-9", device="mobile")
    payload.pop("metadata")
    assert _collect(client, registered_app["api_key"], payload).status_code == 201

    r = client.get("/api/analytics/user-stats", headers=owner_headers, params={"userId": "u-9"})
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert data["totalEvents"] == 1
    assert data["deviceDetails"] == {"browser": "Unknown", "os": "Unknown", "device": "mobile"}
    assert data["ipAddress"] == "192.168.1.1"


def test_account_summary_and_timeseries(client, owner_headers, registered_app):
    for event in ("page_view", "page_view", "click"):
        assert _collect(client, registered_app["api_key"], dict(PAGE_VIEW, event=event)).status_code == 201

    r = client.get("/api/analytics/summary", headers=owner_headers, params={"appId": registered_app["app_id"]})
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert data["totalEvents"] == 3
    assert data["eventTypes"] == [{"type": "page_view", "count": 2}, {"type": "click", "count": 1}]

    t = client.get("/api/analytics/events", headers=owner_headers, params={"appId": registered_app["app_id"]})
    assert t.status_code == 200, t.text
    assert {"date": "2024-01-01", "type": "page_view", "count": 2} in t.json()["data"]


def test_regenerate_invalidates_previous_key(client, owner_headers, registered_app):
    old_key = registered_app["api_key"]

    r = client.post("/api/auth/regenerate", headers=owner_headers, json={"appId": registered_app["app_id"]})
    assert r.status_code == 201, r.text
    new_key = r.json()["data"]["apiKey"]
    assert new_key != old_key

    assert _collect(client, old_key).status_code == 401
    assert _collect(client, new_key).status_code == 201


def test_revoke_then_issue(client, owner_headers, registered_app):
    app_id = registered_app["app_id"]

    conflict = client.post(f"/api/apps/{app_id}/api-key", headers=owner_headers)
    assert conflict.status_code == 409

    r = client.post("/api/auth/revoke", headers=owner_headers, json={"appId": app_id})
    assert r.status_code == 200
    assert r.json()["message"] == "API key(s) revoked successfully"
    assert _collect(client, registered_app["api_key"]).status_code == 401

    missing = client.get("/api/auth/api-key", headers=owner_headers, params={"appId": app_id})
    assert missing.status_code == 404

    issued = client.post(f"/api/apps/{app_id}/api-key", headers=owner_headers)
    assert issued.status_code == 201, issued.text
    assert _collect(client, issued.json()["data"]["apiKey"]).status_code == 201

    current = client.get("/api/auth/api-key", headers=owner_headers, params={"appId": app_id})
    assert current.status_code == 200
    assert "apiKey" not in current.json()["data"]
    assert issued.json()["data"]["apiKey"].startswith(current.json()["data"]["keyPrefix"])


def test_key_management_on_foreign_app_is_not_found(client, other_headers, registered_app):
    r = client.post("/api/auth/revoke", headers=other_headers, json={"appId": registered_app["app_id"]})
    assert r.status_code == 404
    assert r.json()["message"] == "App not found or you do not have access"


def test_list_update_and_delete_app(client, db_session, owner_headers, registered_app):
    app_id = registered_app["app_id"]

    listed = client.get("/api/apps", headers=owner_headers)
    assert listed.status_code == 200
    apps = listed.json()["data"]
    assert [a["id"] for a in apps] == [app_id]
    assert len(apps[0]["apiKeys"]) == 1

    u = client.put(f"/api/apps/{app_id}", headers=owner_headers, json={"name": "Renamed"})
    assert u.status_code == 200, u.text
    assert u.json()["data"]["name"] == "Renamed"
    assert u.json()["data"]["domain"] == "test.com"

    d = client.delete(f"/api/apps/{app_id}", headers=owner_headers)
    assert d.status_code == 200, d.text
    assert db_session.query(Application).filter(Application.id == app_id).first() is None

    g = client.get(f"/api/apps/{app_id}", headers=owner_headers)
    assert g.status_code == 404
    assert _collect(client, registered_app["api_key"]).status_code == 401


def test_collect_is_rate_limited_per_key(client, monkeypatch, registered_app):
    monkeypatch.setattr(rate_limit_module, "RATE_LIMIT_POINTS", 2)

    assert _collect(client, registered_app["api_key"]).status_code == 201
    assert _collect(client, registered_app["api_key"]).status_code == 201
    r = _collect(client, registered_app["api_key"])
    assert r.status_code == 429
    assert r.json()["message"] == "Too many requests, please try again later"


def test_profile_read_and_update(client, owner_headers):
    r = client.get("/api/user/profile", headers=owner_headers)
    assert r.status_code == 200
    assert r.json()["data"]["name"] == "Owner"

    blank = client.put("/api/user/profile", headers=owner_headers, json={"name": "   "})
    assert blank.status_code == 400

    u = client.put("/api/user/profile", headers=owner_headers, json={"name": "New Name"})
    assert u.status_code == 200
    assert client.get("/api/user/profile", headers=owner_headers).json()["data"]["name"] == "New Name"


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"timestamp": 1704067200}, "timestamp"),
        ({"ipAddress": 3232235777}, "ipAddress"),
        ({"metadata": {"browser": None, "os": "Linux"}}, "metadata"),
    ],
)
def test_collect_refuses_coercible_values(client, db_session, registered_app, overrides, field):
    r = _collect(client, registered_app["api_key"], dict(PAGE_VIEW, **overrides))
    assert r.status_code == 400, r.text
    assert any(e["field"].startswith(field) for e in r.json()["errors"])
    assert db_session.query(Event).count() == 0


def test_collect_stores_partial_metadata_as_submitted(client, db_session, registered_app):
    r = _collect(client, registered_app["api_key"], dict(PAGE_VIEW, metadata={"os": "Linux"}))
    assert r.status_code == 201, r.text
    assert json.loads(db_session.query(Event).one().event_metadata) == {"os": "Linux"}


def test_signup_password_limit_counts_bytes(client, db_session):
    r = client.post(
        "/api/auth/signup",
        json={"name": "Zoé", "email": "zoe@example.com", "password": "é" * 60},
    )
    assert r.status_code == 400, r.text
    assert r.json()["errors"][0]["field"] == "password"

    ok = client.post(
        "/api/auth/signup",
        json={"name": "Zoé", "email": "zoe@example.com", "password": "é" * 36},
    )
    assert ok.status_code == 201, ok.text


def test_unexpected_errors_use_the_error_body(client, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(auth_module, "create_account", explode)
    lenient = TestClient(fastapi_app, raise_server_exceptions=False)

    r = lenient.post(
        "/api/auth/signup",
        json={"name": "Ada", "email": "ada@example.com", "password": "long-enough-pw"},
    )
    assert r.status_code == 500
    assert r.json() == {"success": False, "message": "Internal server error"}
