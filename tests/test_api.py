from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace

import pytest

from shift_tracker.main import create_app

SETTINGS = SimpleNamespace(STORAGE_BACKEND="memory", ASYNC_CACHE_INVALIDATION=False, LOG_LEVEL="WARNING")


@pytest.fixture
def app(clock):
    app = create_app(SETTINGS, clock=clock)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def employee_id(client):
    resp = client.post("/api/employees", json={"company_id": 1, "full_name": "Nguyen Van A"})
    assert resp.status_code == 201
    return resp.get_json()["employee_id"]


def _create_shift(client, employee_id, clock):
    resp = client.post(
        "/api/shifts",
        json={
            "employee_id": employee_id,
            "planned_start_at": clock.now().isoformat(),
            "planned_end_at": (clock.now() + timedelta(hours=8)).isoformat(),
        },
    )
    assert resp.status_code == 201
    return resp.get_json()


def test_shift_lifecycle_over_http(client, employee_id, clock):
    shift = _create_shift(client, employee_id, clock)
    assert shift["status"] == "scheduled"

    assert client.post(f"/api/shifts/{shift['shift_id']}/start").get_json()["status"] == "active"
    clock.advance(hours=2)
    paused = client.post(f"/api/shifts/{shift['shift_id']}/pause", json={"kind": "break"})
    assert paused.get_json()["status"] == "paused"
    clock.advance(minutes=15)
    client.post(f"/api/shifts/{shift['shift_id']}/resume")
    clock.advance(hours=1)
    ended = client.post(f"/api/shifts/{shift['shift_id']}/end").get_json()

    assert ended["status"] == "completed"
    assert ended["worked_minutes"] == 180
    intervals = client.get(f"/api/shifts/{shift['shift_id']}/intervals").get_json()
    assert len(intervals["work"]) == 2
    assert intervals["breaks"][0]["kind"] == "break"


def test_invalid_transition_maps_to_409(client, employee_id, clock):
    shift = _create_shift(client, employee_id, clock)

    resp = client.post(f"/api/shifts/{shift['shift_id']}/pause")

    assert resp.status_code == 409
    body = resp.get_json()
    assert body["error"] == "invalid_state_transition"
    assert body["details"]["current_status"] == "scheduled"


def test_missing_shift_maps_to_404(client):
    resp = client.get("/api/shifts/999")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "not_found"


def test_validation_maps_to_422(client):
    resp = client.post("/api/employees", json={"company_id": 1})
    assert resp.status_code == 422
    assert resp.get_json()["error"] == "validation"


def test_violation_and_rating_flow(client, employee_id):
    rules = []
    for code, penalty in (("late", 5), ("no_report", 3)):
        resp = client.post(
            "/api/violation-rules",
            json={"company_id": 1, "code": code, "name": code, "penalty_percent": penalty},
        )
        assert resp.status_code == 201
        rules.append(resp.get_json())

    for rule in rules:
        resp = client.post(
            "/api/violations",
            json={"employee_id": employee_id, "company_id": 1, "rule_id": rule["rule_id"], "reason": "test"},
        )
        assert resp.status_code == 201
        assert resp.get_json()["source"] == "manual"

    assert client.get(f"/api/ratings/{employee_id}").get_json()["rating"] == 92

    adjusted = client.post(f"/api/ratings/{employee_id}/adjust", json={"delta": -10}).get_json()
    assert adjusted["rating"] == 82
    assert adjusted["origin"] == "manually_adjusted"

    listed = client.get("/api/ratings", query_string={"company_id": 1}).get_json()
    assert [r["rating"] for r in listed] == [82]


def test_cross_company_violation_maps_to_403(client, employee_id):
    rule = client.post(
        "/api/violation-rules",
        json={"company_id": 2, "code": "late", "name": "Late", "penalty_percent": 5},
    ).get_json()

    resp = client.post(
        "/api/violations",
        json={"employee_id": employee_id, "company_id": 1, "rule_id": rule["rule_id"]},
    )
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "scope_mismatch"


def test_inactive_rule_maps_to_422(client, employee_id):
    rule = client.post(
        "/api/violation-rules",
        json={"company_id": 1, "code": "late", "name": "Late", "penalty_percent": 5},
    ).get_json()
    deactivated = client.delete(f"/api/violation-rules/{rule['rule_id']}", query_string={"company_id": 1})
    assert deactivated.get_json()["is_active"] is False

    resp = client.post(
        "/api/violations",
        json={"employee_id": employee_id, "company_id": 1, "rule_id": rule["rule_id"]},
    )
    assert resp.status_code == 422
    assert resp.get_json()["error"] == "rule_inactive"


def test_duplicate_rule_maps_to_409(client):
    payload = {"company_id": 1, "code": "late", "name": "Late", "penalty_percent": 5}
    assert client.post("/api/violation-rules", json=payload).status_code == 201
    resp = client.post("/api/violation-rules", json=payload)
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "conflict"


def test_invite_issue_and_redeem(client):
    invite = client.post("/api/invites", json={"company_id": 1, "full_name": "Tran B"}).get_json()

    redeemed = client.post(f"/api/invites/{invite['code']}/redeem", json={"telegram_user_id": 555})
    assert redeemed.status_code == 200
    assert redeemed.get_json()["employee"]["telegram_user_id"] == "555"

    again = client.post(f"/api/invites/{invite['code']}/redeem", json={"telegram_user_id": 556})
    assert again.status_code == 409
    assert again.get_json()["error"] == "already_used"


def test_company_stats(client, employee_id, clock):
    shift = _create_shift(client, employee_id, clock)
    client.post(f"/api/shifts/{shift['shift_id']}/start")

    stats = client.get("/api/companies/1/stats").get_json()

    assert stats["employees"] == 1
    assert stats["active_shifts"] == 1
    assert stats["average_rating"] is None


def test_unknown_route_returns_json_404(client):
    resp = client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "not_found"


def test_shift_with_utc_offset_is_rejected(client, employee_id):
    resp = client.post(
        "/api/shifts",
        json={
            "employee_id": employee_id,
            "planned_start_at": "2026-03-02T09:00:00",
            "planned_end_at": "2026-03-02T17:00:00+00:00",
        },
    )

    assert resp.status_code == 422
    body = resp.get_json()
    assert body["error"] == "validation"
    assert body["details"]["field"] == "planned_end_at"


@pytest.mark.parametrize(
    "path, payload, field",
    [
        ("/api/violation-rules", {"company_id": 1, "code": 123, "name": "Late", "penalty_percent": 5}, "code"),
        ("/api/violation-rules", {"company_id": 1, "code": "late", "name": ["Late"], "penalty_percent": 5}, "name"),
        ("/api/employees", {"company_id": 1, "full_name": 42}, "full_name"),
        ("/api/employees", {"company_id": 1, "full_name": "A", "position": {"x": 1}}, "position"),
        ("/api/invites", {"company_id": 1, "full_name": 7}, "full_name"),
    ],
)
def test_non_string_text_fields_are_rejected(client, path, payload, field):
    resp = client.post(path, json=payload)

    assert resp.status_code == 422
    assert resp.get_json()["details"]["field"] == field


def test_non_string_violation_reason_is_rejected(client, employee_id):
    rule = client.post(
        "/api/violation-rules",
        json={"company_id": 1, "code": "late", "name": "Late", "penalty_percent": 5},
    ).get_json()

    resp = client.post(
        "/api/violations",
        json={"employee_id": employee_id, "company_id": 1, "rule_id": rule["rule_id"], "reason": 5},
    )

    assert resp.status_code == 422
    assert resp.get_json()["details"]["field"] == "reason"
