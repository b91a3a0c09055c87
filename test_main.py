# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false

"""
API tests for the On-Call Rotations service.
Seeded state: users alice/bob/carol/david, rotation "platform-engineering"
(America/Chicago, defaults alice/carol, Mon-Fri 09:00-17:00 templates)
and rotation "backend" (Europe/Paris, defaults david/bob, no templates).
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from main import app
from oncall_rotations.core import dependencies
from oncall_rotations.core.config import settings
from oncall_rotations.core.errors import DownstreamUnavailable
from oncall_rotations.services.seed import seed_defaults

client = TestClient(app)

ADMIN = {"X-User-Id": "admin", "X-User-Is-Admin": "true"}
VIEWER = {"X-User-Id": "viewer"}
ROTATION = "platform-engineering"


def _ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _create_period(name="Business Hours", start="2024-01-01T15:00:00Z",
                   end="2024-01-01T23:00:00Z", rotation_id=ROTATION, is_locked=False):
    response = client.post("/api/v1/periods", headers=ADMIN, json={
        "rotation_id": rotation_id,
        "name": name,
        "start_utc": start,
        "end_utc": end,
        "is_locked": is_locked,
    })
    assert response.status_code in (200, 201), response.text
    return response.json()


def _effective(rotation_id=ROTATION, start="2024-01-01T00:00:00Z", end="2024-01-02T00:00:00Z", **params):
    response = client.get("/api/v1/effective_schedule", params={
        "rotation_id": rotation_id, "start_utc": start, "end_utc": end, **params,
    })
    assert response.status_code == 200, response.text
    return response.json()


# ============================================
# Fixtures
# ============================================
@pytest.fixture(autouse=True)
def reset_state():
    """Reset in-memory state before each test, then re-seed defaults."""
    dependencies.reset_state()
    seed_defaults(
        dependencies.get_user_service(),
        dependencies.get_rotation_service(),
        dependencies.get_template_service(),
    )
    yield


# ============================================
# Health, Metrics & Identity
# ============================================
class TestHealth:
    def test_health_returns_ok_status(self):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == settings.SERVICE_NAME
        assert data["version"] == settings.SERVICE_VERSION
        assert data["rotations_count"] == 2

    def test_readiness_reports_loaded_rotations(self):
        data = client.get("/health/ready").json()
        assert data["status"] == "ready"
        assert data["rotations_loaded"] is True

    def test_readiness_without_rotations(self):
        dependencies.reset_state()
        data = client.get("/health/ready").json()
        assert data["rotations_loaded"] is False


class TestRequestID:
    def test_request_id_propagated(self):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    def test_request_id_generated(self):
        assert client.get("/health").headers.get("X-Request-ID")

    def test_error_body_carries_request_id(self):
        response = client.get("/api/v1/periods/missing", headers={"X-Request-ID": "req-404"})
        assert response.status_code == 404
        assert response.json()["request_id"] == "req-404"


class TestMetrics:
    def test_metrics_exposes_rotation_counters(self):
        client.get("/api/v1/rotations")
        text = client.get("/metrics").text
        assert "rotations_requests_total" in text
        assert "rotations_active" in text

    def test_lock_rejection_is_counted(self):
        period = _create_period(is_locked=True)
        client.patch(f"/api/v1/periods/{period['period_id']}", headers=ADMIN,
                     json={"start_utc": "2024-01-01T16:00:00Z"})
        assert "rotations_period_lock_rejections_total" in client.get("/metrics").text


class TestAuthorization:
    def test_whoami_echoes_claims(self):
        data = client.get("/whoami", headers=ADMIN).json()
        assert data == {"user_id": "admin", "is_admin": True}

    def test_anonymous_caller_is_not_admin(self):
        data = client.get("/whoami").json()
        assert data["user_id"] is None
        assert data["is_admin"] is False

    def test_non_admin_cannot_create_period(self):
        response = client.post("/api/v1/periods", headers=VIEWER, json={
            "rotation_id": ROTATION,
            "name": "x",
            "start_utc": "2024-01-01T15:00:00Z",
            "end_utc": "2024-01-01T23:00:00Z",
        })
        assert response.status_code == 403

    def test_non_admin_cannot_expand_templates(self):
        response = client.post(
            f"/api/v1/rotations/{ROTATION}/generate_periods_from_templates",
            headers=VIEWER,
            json={"start_utc": "2024-01-01T00:00:00Z", "end_utc": "2024-01-02T00:00:00Z"},
        )
        assert response.status_code == 403
        assert dependencies.get_period_repo().count() == 0

    def test_reads_need_no_admin(self):
        assert client.get("/api/v1/rotations").status_code == 200

    def test_dev_bypass_grants_admin(self):
        with patch.object(settings, "DEV_BYPASS_AUTH", True):
            data = client.get("/whoami").json()
        assert data == {"user_id": "dev", "is_admin": True}

    def test_actor_recorded_in_history(self):
        _create_period()
        events = client.get("/api/v1/history", params={"event_type": "period_created"}).json()
        assert events[-1]["actor"] == "admin"


# ============================================
# Users
# ============================================
class TestUsers:
    def test_list_seeded_users(self):
        users = client.get("/api/v1/users").json()
        assert {u["user_id"] for u in users} == {"alice", "bob", "carol", "david"}

    def test_create_user(self):
        response = client.post("/api/v1/users", headers=ADMIN, json={
            "display_name": "Erin Park", "email": "erin@company.com",
        })
        assert response.status_code == 201
        assert response.json()["is_active"] is True

    def test_duplicate_email_rejected(self):
        response = client.post("/api/v1/users", headers=ADMIN, json={
            "display_name": "Alice Again", "email": "ALICE@company.com",
        })
        assert response.status_code == 409

    def test_invalid_email_rejected(self):
        response = client.post("/api/v1/users", headers=ADMIN, json={
            "display_name": "Nope", "email": "not-an-email",
        })
        assert response.status_code == 422

    def test_deactivate_and_filter(self):
        client.post("/api/v1/users/bob/deactivate", headers=ADMIN)
        active = client.get("/api/v1/users", params={"is_active": True}).json()
        assert "bob" not in {u["user_id"] for u in active}
        client.post("/api/v1/users/bob/activate", headers=ADMIN)
        assert client.get("/api/v1/users/bob").json()["is_active"] is True

    def test_update_user(self):
        response = client.patch("/api/v1/users/carol", headers=ADMIN,
                                json={"time_zone": "Asia/Tokyo"})
        assert response.status_code == 200
        assert response.json()["time_zone"] == "Asia/Tokyo"

    def test_unknown_user_404(self):
        response = client.get("/api/v1/users/nobody")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_search_matches_name_email_and_upn(self):
        client.patch("/api/v1/users/david", headers=ADMIN, json={"upn": "dkumar@corp.example"})
        by_name = client.get("/api/v1/users", params={"q": "CHEN"}).json()
        assert [u["user_id"] for u in by_name] == ["carol"]
        by_email = client.get("/api/v1/users", params={"q": "bob@"}).json()
        assert [u["user_id"] for u in by_email] == ["bob"]
        by_upn = client.get("/api/v1/users", params={"q": "dkumar"}).json()
        assert [u["user_id"] for u in by_upn] == ["david"]

    def test_search_combines_with_active_filter(self):
        client.post("/api/v1/users/alice/deactivate", headers=ADMIN)
        users = client.get("/api/v1/users", params={"q": "company.com", "is_active": True}).json()
        assert {u["user_id"] for u in users} == {"bob", "carol", "david"}
        assert client.get("/api/v1/users", params={"q": "nobody"}).json() == []


# ============================================
# Global settings
# ============================================
class TestGlobalSettings:
    def test_defaults_from_environment(self):
        data = client.get("/api/v1/settings").json()
        assert data["default_time_zone"] == settings.DEFAULT_TIME_ZONE
        assert data["week_start"] == 0
        assert data["use_24h"] is False

    def test_update_settings(self):
        response = client.patch("/api/v1/settings", headers=ADMIN,
                                json={"week_start": 1, "use_24h": True})
        assert response.status_code == 200
        data = client.get("/api/v1/settings").json()
        assert data["week_start"] == 1
        assert data["use_24h"] is True
        assert data["default_time_zone"] == settings.DEFAULT_TIME_ZONE

    def test_non_admin_cannot_update(self):
        response = client.patch("/api/v1/settings", headers=VIEWER, json={"use_24h": True})
        assert response.status_code == 403

    def test_invalid_values_rejected(self):
        response = client.patch("/api/v1/settings", headers=ADMIN,
                                json={"default_time_zone": "Mars/Olympus_Mons"})
        assert response.status_code == 422
        assert response.json()["error"] == "invalid_template"
        assert client.patch("/api/v1/settings", headers=ADMIN,
                            json={"week_start": 7}).status_code == 422

    def test_new_rotation_uses_stored_default_zone(self):
        client.patch("/api/v1/settings", headers=ADMIN, json={"default_time_zone": "Asia/Tokyo"})
        response = client.post("/api/v1/rotations", headers=ADMIN, json={"name": "Data"})
        assert response.status_code == 201
        assert response.json()["time_zone"] == "Asia/Tokyo"

    def test_update_recorded_in_history(self):
        client.patch("/api/v1/settings", headers=ADMIN, json={"use_24h": True})
        events = client.get("/api/v1/history", params={"event_type": "settings_updated"}).json()
        assert events[-1]["actor"] == "admin"
        assert events[-1]["details"] == {"use_24h": True}


# ============================================
# Rotations, roster, templates
# ============================================
class TestRotations:
    def test_get_seeded_rotation(self):
        data = client.get(f"/api/v1/rotations/{ROTATION}").json()
        assert data["time_zone"] == "America/Chicago"
        assert data["default_primary_user_id"] == "alice"

    def test_create_rotation(self):
        response = client.post("/api/v1/rotations", headers=ADMIN, json={
            "name": "Data", "time_zone": "Asia/Tokyo", "period_length_days": 1,
            "start_date_utc": "2024-01-01T00:00:00Z", "default_primary_user_id": "bob",
        })
        assert response.status_code == 201
        assert response.json()["period_length_days"] == 1

    def test_unknown_time_zone_rejected(self):
        response = client.post("/api/v1/rotations", headers=ADMIN, json={
            "name": "Mars", "time_zone": "Mars/Olympus_Mons",
        })
        assert response.status_code == 422
        assert response.json()["error"] == "invalid_template"

    def test_unknown_default_user_rejected(self):
        response = client.post("/api/v1/rotations", headers=ADMIN, json={
            "name": "Ghost", "default_primary_user_id": "ghost",
        })
        assert response.status_code == 404

    def test_update_clears_default_secondary(self):
        response = client.patch(f"/api/v1/rotations/{ROTATION}", headers=ADMIN,
                                json={"default_secondary_user_id": None})
        assert response.status_code == 200
        assert response.json()["default_secondary_user_id"] is None

    def test_delete_rotation_cascades(self):
        _create_period(rotation_id="backend", name="Week 1")
        response = client.delete("/api/v1/rotations/backend", headers=ADMIN)
        assert response.status_code == 200
        assert client.get("/api/v1/rotations/backend").status_code == 404
        assert client.get("/api/v1/periods", params={"rotation_id": "backend"}).json() == []

    def test_roster(self):
        members = client.get(f"/api/v1/rotations/{ROTATION}/members").json()
        assert [m["user_id"] for m in members] == ["alice", "bob", "carol"]
        response = client.post(f"/api/v1/rotations/{ROTATION}/members", headers=ADMIN,
                               json={"user_id": "david"})
        assert response.status_code == 201
        member_id = response.json()["rotation_member_id"]
        client.delete(f"/api/v1/rotations/{ROTATION}/members/{member_id}", headers=ADMIN)
        members = client.get(f"/api/v1/rotations/{ROTATION}/members").json()
        assert "david" not in [m["user_id"] for m in members]


class TestTemplates:
    def test_seeded_templates_serialize_as_hhmm(self):
        templates = client.get(f"/api/v1/rotations/{ROTATION}/templates").json()
        assert len(templates) == 5
        assert {t["start_time"] for t in templates} == {"09:00"}
        assert {t["end_time"] for t in templates} == {"17:00"}

    def test_create_template(self):
        response = client.post(f"/api/v1/rotations/{ROTATION}/templates", headers=ADMIN, json={
            "day_of_week": 5, "start_time": "10:00", "end_time": "14:00", "name": "Saturday",
        })
        assert response.status_code == 201
        assert response.json()["day_of_week"] == 5

    def test_end_before_start_rejected(self):
        response = client.post(f"/api/v1/rotations/{ROTATION}/templates", headers=ADMIN, json={
            "day_of_week": 0, "start_time": "17:00", "end_time": "09:00",
        })
        assert response.status_code == 422
        assert response.json()["error"] == "invalid_template"

    def test_weekday_out_of_range_rejected(self):
        response = client.post(f"/api/v1/rotations/{ROTATION}/templates", headers=ADMIN, json={
            "day_of_week": 7, "start_time": "09:00", "end_time": "17:00",
        })
        assert response.status_code == 422

    def test_malformed_time_rejected(self):
        response = client.post(f"/api/v1/rotations/{ROTATION}/templates", headers=ADMIN, json={
            "day_of_week": 0, "start_time": "9am", "end_time": "17:00",
        })
        assert response.status_code == 422

    def test_update_and_delete_template(self):
        template_id = client.get(f"/api/v1/rotations/{ROTATION}/templates").json()[0]["template_id"]
        response = client.patch(f"/api/v1/templates/{template_id}", headers=ADMIN,
                                json={"is_active": False})
        assert response.json()["is_active"] is False
        assert client.delete(f"/api/v1/templates/{template_id}", headers=ADMIN).status_code == 200
        assert len(client.get(f"/api/v1/rotations/{ROTATION}/templates").json()) == 4


# ============================================
# Expansion
# ============================================
class TestExpansion:
    WINDOW = {"start_utc": "2024-01-01T00:00:00Z", "end_utc": "2024-01-02T00:00:00Z"}

    def _expand(self, rotation_id=ROTATION, **extra):
        return client.post(
            f"/api/v1/rotations/{rotation_id}/generate_periods_from_templates",
            headers=ADMIN, json={**self.WINDOW, **extra},
        )

    def test_monday_business_hours_in_chicago(self):
        response = self._expand()
        assert response.status_code == 200
        created = response.json()["created"]
        assert len(created) == 1
        assert _ts(created[0]["start_utc"]) == datetime(2024, 1, 1, 15, tzinfo=timezone.utc)
        assert _ts(created[0]["end_utc"]) == datetime(2024, 1, 1, 23, tzinfo=timezone.utc)
        assert created[0]["name"] == "Business Hours 2024-01-01"

    def test_expansion_is_idempotent(self):
        self._expand()
        report = self._expand().json()
        assert report["created"] == []
        assert len(report["existing"]) == 1
        assert dependencies.get_period_repo().count() == 1

    def test_custom_name_template(self):
        created = self._expand(name_template="{rotation}: {start:%a %H:%M}").json()["created"]
        assert created[0]["name"] == "Platform Engineering: Mon 09:00"

    @pytest.mark.parametrize("pattern", ["{unknown}", "{start[0]}"])
    def test_bad_name_template_rejected(self, pattern):
        response = self._expand(name_template=pattern)
        assert response.status_code == 422

    def test_inline_templates(self):
        response = self._expand(rotation_id="backend", inline_templates=[
            {"day_of_week": 0, "start_time": "08:00", "end_time": "12:00"},
        ])
        created = response.json()["created"]
        assert len(created) == 1
        # Paris is UTC+1 in January.
        assert _ts(created[0]["start_utc"]) == datetime(2024, 1, 1, 7, tzinfo=timezone.utc)

    def test_template_from_other_rotation_rejected(self):
        template_id = client.get(f"/api/v1/rotations/{ROTATION}/templates").json()[0]["template_id"]
        response = self._expand(rotation_id="backend", template_ids=[template_id])
        assert response.status_code == 404

    def test_no_templates_yields_empty_report(self):
        report = self._expand(rotation_id="backend").json()
        assert report == {"created": [], "existing": [], "failed": []}

    def test_inverted_window_rejected(self):
        response = client.post(
            f"/api/v1/rotations/{ROTATION}/generate_periods_from_templates", headers=ADMIN,
            json={"start_utc": "2024-01-02T00:00:00Z", "end_utc": "2024-01-01T00:00:00Z"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_range"

    def test_oversized_window_rejected(self):
        response = client.post(
            f"/api/v1/rotations/{ROTATION}/generate_periods_from_templates", headers=ADMIN,
            json={"start_utc": "2024-01-01T00:00:00Z", "end_utc": "2026-01-01T00:00:00Z"},
        )
        assert response.status_code == 400

    def test_generate_weekly_periods(self):
        response = client.post("/api/v1/rotations/backend/generate_periods", headers=ADMIN, json={
            "start_utc": "2024-01-01T00:00:00Z", "end_utc": "2024-01-15T00:00:00Z",
        })
        created = response.json()["created"]
        assert [p["name"] for p in created] == ["On-Call 2024-01-01", "On-Call 2024-01-08"]
        assert _ts(created[1]["start_utc"]) == datetime(2024, 1, 8, 15, tzinfo=timezone.utc)

    def test_expansion_recorded_in_history(self):
        self._expand()
        events = client.get("/api/v1/history", params={"event_type": "periods_expanded"}).json()
        assert events[-1]["details"]["created"] == 1


# ============================================
# Periods & lock guard
# ============================================
class TestPeriods:
    def test_create_period_returns_201(self):
        response = client.post("/api/v1/periods", headers=ADMIN, json={
            "rotation_id": ROTATION, "name": "Mon",
            "start_utc": "2024-01-01T15:00:00Z", "end_utc": "2024-01-01T23:00:00Z",
        })
        assert response.status_code == 201
        assert response.json()["version"] == 1

    def test_identical_create_returns_existing_with_200(self):
        first = _create_period()
        response = client.post("/api/v1/periods", headers=ADMIN, json={
            "rotation_id": ROTATION, "name": first["name"],
            "start_utc": first["start_utc"], "end_utc": first["end_utc"],
        })
        assert response.status_code == 200
        assert response.json()["period_id"] == first["period_id"]

    def test_naive_instants_read_as_utc(self):
        period = _create_period(start="2024-01-01T15:00:00", end="2024-01-01T23:00:00")
        assert _ts(period["start_utc"]) == datetime(2024, 1, 1, 15, tzinfo=timezone.utc)

    def test_start_not_before_end_rejected(self):
        response = client.post("/api/v1/periods", headers=ADMIN, json={
            "rotation_id": ROTATION, "name": "Bad",
            "start_utc": "2024-01-01T15:00:00Z", "end_utc": "2024-01-01T15:00:00Z",
        })
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_range"

    def test_unknown_rotation_rejected(self):
        response = client.post("/api/v1/periods", headers=ADMIN, json={
            "rotation_id": "nope", "name": "x",
            "start_utc": "2024-01-01T15:00:00Z", "end_utc": "2024-01-01T23:00:00Z",
        })
        assert response.status_code == 404

    def test_list_periods_in_window(self):
        _create_period()
        _create_period(name="Tue", start="2024-01-02T15:00:00Z", end="2024-01-02T23:00:00Z")
        periods = client.get("/api/v1/periods", params={
            "rotation_id": ROTATION,
            "start_utc": "2024-01-02T00:00:00Z", "end_utc": "2024-01-03T00:00:00Z",
        }).json()
        assert [p["name"] for p in periods] == ["Tue"]

    def test_move_unlocked_period(self):
        period = _create_period()
        response = client.patch(f"/api/v1/periods/{period['period_id']}", headers=ADMIN,
                                json={"start_utc": "2024-01-01T16:00:00Z"})
        assert response.status_code == 200
        data = response.json()
        assert _ts(data["start_utc"]) == datetime(2024, 1, 1, 16, tzinfo=timezone.utc)
        assert data["version"] == 2

    def test_locked_period_cannot_move(self):
        period = _create_period(is_locked=True)
        response = client.patch(f"/api/v1/periods/{period['period_id']}", headers=ADMIN,
                                json={"start_utc": "2024-01-01T16:00:00Z",
                                      "end_utc": "2024-01-02T00:00:00Z"})
        assert response.status_code == 409
        assert response.json()["error"] == "period_locked"
        stored = client.get(f"/api/v1/periods/{period['period_id']}").json()
        assert stored["start_utc"] == period["start_utc"]
        assert stored["end_utc"] == period["end_utc"]
        assert stored["version"] == period["version"]

    def test_locked_period_cannot_be_unlocked_and_moved_in_one_call(self):
        period = _create_period(is_locked=True)
        response = client.patch(f"/api/v1/periods/{period['period_id']}", headers=ADMIN,
                                json={"is_locked": False, "start_utc": "2024-01-01T16:00:00Z"})
        assert response.status_code == 409
        assert client.get(f"/api/v1/periods/{period['period_id']}").json()["is_locked"] is True

    def test_locked_period_can_be_renamed(self):
        period = _create_period(is_locked=True)
        response = client.patch(f"/api/v1/periods/{period['period_id']}", headers=ADMIN,
                                json={"name": "Renamed"})
        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"

    def test_unlock_then_move(self):
        period = _create_period(is_locked=True)
        url = f"/api/v1/periods/{period['period_id']}"
        client.patch(url, headers=ADMIN, json={"is_locked": False})
        response = client.patch(url, headers=ADMIN, json={"end_utc": "2024-01-02T01:00:00Z"})
        assert response.status_code == 200

    def test_delete_period_cascades(self):
        period = _create_period()
        pid = period["period_id"]
        client.post(f"/api/v1/periods/{pid}/assignments", headers=ADMIN,
                    json={"role": "primary", "user_id": "bob"})
        client.post("/api/v1/overrides", headers=ADMIN, json={
            "period_id": pid, "original_user_id": "bob", "replacement_user_id": "david",
            "start_utc": period["start_utc"], "end_utc": period["end_utc"],
        })
        client.post("/api/v1/overrides", headers=ADMIN, json={
            "rotation_id": ROTATION, "original_user_id": "carol", "replacement_user_id": "david",
            "start_utc": period["start_utc"], "end_utc": period["end_utc"],
        })
        response = client.delete(f"/api/v1/periods/{pid}", headers=ADMIN)
        assert response.json() == {"status": "deleted", "period_id": pid}
        assert client.get(f"/api/v1/periods/{pid}").status_code == 404
        remaining = client.get("/api/v1/overrides").json()
        assert [o["rotation_id"] for o in remaining] == [ROTATION]

    def test_overlap_is_flagged(self):
        first = _create_period()
        second = _create_period(name="Late shift", start="2024-01-01T16:00:00Z",
                                end="2024-01-01T18:00:00Z")
        assert second["overlapping_period_ids"] == [first["period_id"]]
        events = client.get("/api/v1/history",
                            params={"event_type": "period_overlap_detected"}).json()
        assert len(events) == 1


# ============================================
# Assignments
# ============================================
class TestAssignments:
    def test_defaults_apply_without_assignments(self):
        period = _create_period()
        resolved = client.get(f"/api/v1/periods/{period['period_id']}/resolved").json()
        assert resolved == {"primary": "alice", "secondary": "carol"}

    def test_explicit_assignment_wins_per_role(self):
        period = _create_period()
        pid = period["period_id"]
        response = client.post(f"/api/v1/periods/{pid}/assignments", headers=ADMIN,
                               json={"role": "secondary", "user_id": "bob"})
        assert response.status_code == 200
        resolved = client.get(f"/api/v1/periods/{pid}/resolved").json()
        assert resolved == {"primary": "alice", "secondary": "bob"}

    def test_assignment_is_upsert(self):
        pid = _create_period()["period_id"]
        for user_id in ("bob", "david"):
            client.post(f"/api/v1/periods/{pid}/assignments", headers=ADMIN,
                        json={"role": "primary", "user_id": user_id})
        assignments = client.get(f"/api/v1/periods/{pid}/assignments").json()
        assert [(a["role"], a["user_id"]) for a in assignments] == [("primary", "david")]

    def test_non_member_assignment_allowed(self):
        pid = _create_period()["period_id"]
        response = client.post(f"/api/v1/periods/{pid}/assignments", headers=ADMIN,
                               json={"role": "primary", "user_id": "david"})
        assert response.status_code == 200

    def test_unknown_user_rejected(self):
        pid = _create_period()["period_id"]
        response = client.post(f"/api/v1/periods/{pid}/assignments", headers=ADMIN,
                               json={"role": "primary", "user_id": "ghost"})
        assert response.status_code == 404

    def test_invalid_role_rejected(self):
        pid = _create_period()["period_id"]
        response = client.post(f"/api/v1/periods/{pid}/assignments", headers=ADMIN,
                               json={"role": "tertiary", "user_id": "bob"})
        assert response.status_code == 422

    def test_clear_falls_back_to_default(self):
        pid = _create_period()["period_id"]
        client.post(f"/api/v1/periods/{pid}/assignments", headers=ADMIN,
                    json={"role": "secondary", "user_id": "bob"})
        assert client.delete(f"/api/v1/periods/{pid}/assignments/secondary",
                             headers=ADMIN).status_code == 200
        assert client.get(f"/api/v1/periods/{pid}/resolved").json()["secondary"] == "carol"
        assert client.delete(f"/api/v1/periods/{pid}/assignments/secondary",
                             headers=ADMIN).status_code == 404

    def test_period_without_defaults_is_unassigned(self):
        client.patch(f"/api/v1/rotations/{ROTATION}", headers=ADMIN,
                     json={"default_primary_user_id": None, "default_secondary_user_id": None})
        pid = _create_period()["period_id"]
        resolved = client.get(f"/api/v1/periods/{pid}/resolved").json()
        assert resolved == {"primary": None, "secondary": None}


# ============================================
# Overrides & effective schedule
# ============================================
class TestOverrides:
    def _override(self, **body):
        payload = {
            "rotation_id": ROTATION,
            "original_user_id": "alice",
            "replacement_user_id": "david",
            "start_utc": "2024-01-01T00:00:00Z",
            "end_utc": "2024-01-02T00:00:00Z",
        }
        payload.update(body)
        return client.post("/api/v1/overrides", headers=ADMIN, json=payload)

    def test_default_primary_is_alice(self):
        _create_period()
        rows = _effective()
        assert len(rows) == 1
        assert rows[0]["primary_user_id"] == "alice"
        assert rows[0]["secondary_user_id"] == "carol"
        assert rows[0]["overridden"] is False

    def test_override_replaces_primary(self):
        _create_period()
        assert self._override(reason="vacation").status_code == 201
        row = _effective()[0]
        assert row["primary_user_id"] == "david"
        assert row["secondary_user_id"] == "carol"
        assert row["overridden"] is True
        assert "vacation" in row["notes"]

    def test_override_of_unrelated_user_has_no_effect(self):
        _create_period()
        self._override(original_user_id="bob")
        row = _effective()[0]
        assert row["primary_user_id"] == "alice"
        assert row["overridden"] is False
        assert row["notes"] is None

    def test_latest_override_wins(self):
        _create_period()
        self._override(replacement_user_id="bob")
        self._override(replacement_user_id="david")
        assert _effective()[0]["primary_user_id"] == "david"

    def test_partial_override_is_noted(self):
        _create_period()
        self._override(start_utc="2024-01-01T17:00:00Z", end_utc="2024-01-01T19:00:00Z")
        row = _effective()[0]
        assert row["overridden"] is True
        assert "from" in row["notes"]

    def test_override_outside_period_ignored(self):
        _create_period()
        self._override(start_utc="2024-01-02T00:00:00Z", end_utc="2024-01-03T00:00:00Z")
        assert _effective()[0]["overridden"] is False

    def test_both_scopes_rejected(self):
        pid = _create_period()["period_id"]
        assert self._override(period_id=pid).status_code == 422

    def test_same_user_rejected(self):
        response = self._override(replacement_user_id="alice")
        assert response.status_code == 422
        assert response.json()["error"] == "invalid_override"

    def test_inverted_range_rejected(self):
        response = self._override(start_utc="2024-01-02T00:00:00Z",
                                   end_utc="2024-01-01T00:00:00Z")
        assert response.status_code == 400

    def test_unknown_replacement_rejected(self):
        assert self._override(replacement_user_id="ghost").status_code == 404

    def test_list_overrides_by_rotation_includes_period_scoped(self):
        pid = _create_period()["period_id"]
        self._override(rotation_id=None, period_id=pid)
        self._override(rotation_id="backend", original_user_id="david",
                       replacement_user_id="bob")
        overrides = client.get("/api/v1/overrides", params={"rotation_id": ROTATION}).json()
        assert [o["period_id"] for o in overrides] == [pid]

    def test_delete_override_restores_schedule(self):
        _create_period()
        override_id = self._override().json()["override_id"]
        client.delete(f"/api/v1/overrides/{override_id}", headers=ADMIN)
        assert _effective()[0]["primary_user_id"] == "alice"


class TestEffectiveSchedule:
    def test_rows_not_clipped_to_window(self):
        _create_period()
        rows = _effective(start="2024-01-01T20:00:00Z", end="2024-01-01T21:00:00Z")
        assert _ts(rows[0]["start_utc"]) == datetime(2024, 1, 1, 15, tzinfo=timezone.utc)

    def test_overlapping_periods_both_listed(self):
        _create_period()
        _create_period(name="Late shift", start="2024-01-01T16:00:00Z",
                       end="2024-01-01T18:00:00Z")
        assert [r["period_name"] for r in _effective()] == ["Business Hours", "Late shift"]

    def test_all_rotations_when_unscoped(self):
        _create_period()
        _create_period(rotation_id="backend", name="Backend", start="2024-01-01T08:00:00Z",
                       end="2024-01-01T16:00:00Z")
        response = client.get("/api/v1/effective_schedule", params={
            "start_utc": "2024-01-01T00:00:00Z", "end_utc": "2024-01-02T00:00:00Z",
        })
        assert [r["rotation_id"] for r in response.json()] == ["backend", ROTATION]

    def test_user_filter(self):
        _create_period()
        assert _effective(user_id="carol")
        assert _effective(user_id="bob") == []

    def test_inverted_window_rejected(self):
        response = client.get("/api/v1/effective_schedule", params={
            "rotation_id": ROTATION,
            "start_utc": "2024-01-02T00:00:00Z", "end_utc": "2024-01-01T00:00:00Z",
        })
        assert response.status_code == 400

    def test_period_effective_row(self):
        pid = _create_period()["period_id"]
        row = client.get(f"/api/v1/periods/{pid}/effective").json()
        assert row["primary_user_id"] == "alice"


# ============================================
# Routing & incidents
# ============================================
class TestRouting:
    def _route(self, at):
        return client.get(f"/api/v1/rotations/{ROTATION}/route", params={"at": at}).json()

    def test_route_to_default_primary(self):
        pid = _create_period()["period_id"]
        data = self._route("2024-01-01T16:30:00Z")
        assert data["user_id"] == "alice"
        assert data["period_id"] == pid

    def test_later_starting_period_wins_under_overlap(self):
        _create_period()
        late = _create_period(name="Late shift", start="2024-01-01T16:00:00Z",
                              end="2024-01-01T18:00:00Z")
        client.post(f"/api/v1/periods/{late['period_id']}/assignments", headers=ADMIN,
                    json={"role": "primary", "user_id": "bob"})
        # 10:30 in Chicago
        data = self._route("2024-01-01T16:30:00Z")
        assert data["user_id"] == "bob"
        assert data["period_id"] == late["period_id"]

    def test_end_is_exclusive(self):
        _create_period()
        assert self._route("2024-01-01T23:00:00Z")["user_id"] is None

    def test_no_period_routes_to_nobody(self):
        data = self._route("2024-01-01T12:00:00Z")
        assert data["user_id"] is None
        assert data["period_id"] is None

    def test_override_applies_to_routing(self):
        _create_period()
        client.post("/api/v1/overrides", headers=ADMIN, json={
            "rotation_id": ROTATION, "original_user_id": "alice", "replacement_user_id": "bob",
            "start_utc": "2024-01-01T15:00:00Z", "end_utc": "2024-01-01T23:00:00Z",
        })
        data = self._route("2024-01-01T16:30:00Z")
        assert data["user_id"] == "bob"
        assert data["overridden"] is True


class TestIncidents:
    def _cover_now(self):
        now = datetime.now(timezone.utc)
        return _create_period(
            name="Now",
            start=(now - timedelta(hours=1)).isoformat(),
            end=(now + timedelta(hours=1)).isoformat(),
        )

    def test_incident_routed_to_current_primary(self):
        self._cover_now()
        response = client.post("/api/v1/incidents", headers=VIEWER,
                               json={"title": "API down", "rotation_id": ROTATION})
        assert response.status_code == 201
        data = response.json()
        assert data["assigned_user_id"] == "alice"
        assert data["routed"] is True
        assert data["status"] == "open"

    def test_incident_without_coverage_is_unassigned(self):
        response = client.post("/api/v1/incidents",
                               json={"title": "API down", "rotation_id": ROTATION})
        assert response.json()["assigned_user_id"] is None

    def test_explicit_assignee_not_routed(self):
        self._cover_now()
        data = client.post("/api/v1/incidents", json={
            "title": "Disk", "rotation_id": ROTATION, "assigned_user_id": "carol",
        }).json()
        assert data["assigned_user_id"] == "carol"
        assert data["routed"] is False

    def test_events_published(self):
        with patch.object(dependencies._event_client, "publish", return_value=True) as publish:
            incident_id = client.post("/api/v1/incidents", json={
                "title": "Latency", "rotation_id": ROTATION,
            }).json()["incident_id"]
            client.post(f"/api/v1/incidents/{incident_id}/resolve")
        assert [c.args[0] for c in publish.call_args_list] == [
            "incident.created", "incident.resolved",
        ]

    def test_resolve_is_idempotent(self):
        incident_id = client.post("/api/v1/incidents", json={
            "title": "Latency", "rotation_id": ROTATION,
        }).json()["incident_id"]
        first = client.post(f"/api/v1/incidents/{incident_id}/resolve").json()
        second = client.post(f"/api/v1/incidents/{incident_id}/resolve").json()
        assert first["status"] == "resolved"
        assert second["resolved_at"] == first["resolved_at"]

    def test_list_by_status(self):
        client.post("/api/v1/incidents", json={"title": "A", "rotation_id": ROTATION})
        incidents = client.get("/api/v1/incidents", params={"status": "open"}).json()
        assert len(incidents) == 1
        assert client.get("/api/v1/incidents", params={"status": "resolved"}).json() == []

    def test_unknown_rotation(self):
        response = client.post("/api/v1/incidents", json={"title": "A", "rotation_id": "nope"})
        assert response.status_code == 404


# ============================================
# Calendar sync
# ============================================
class TestCalendarSync:
    BODY = {"rotation_id": ROTATION,
            "start_utc": "2024-01-01T00:00:00Z", "end_utc": "2024-01-02T00:00:00Z"}

    def test_skipped_without_sync_url(self):
        pid = _create_period()["period_id"]
        with patch.object(settings, "CALENDAR_SYNC_URL", ""):
            data = client.post("/api/v1/calendar/sync", headers=ADMIN, json=self.BODY).json()
        assert data["summary"] == {"skipped": 1}
        assert data["results"][0]["period_id"] == pid

    def test_synced_event_id_stored_even_when_locked(self):
        pid = _create_period(is_locked=True)["period_id"]
        returned = {pid: {"period_id": pid, "status": "synced", "calendar_event_id": "evt-1"}}
        with patch.object(settings, "CALENDAR_SYNC_URL", "http://calendar.test/sync"), \
                patch.object(dependencies._calendar_client, "push", return_value=returned):
            data = client.post("/api/v1/calendar/sync", headers=ADMIN, json=self.BODY).json()
        assert data["summary"] == {"synced": 1}
        assert client.get(f"/api/v1/periods/{pid}").json()["calendar_event_id"] == "evt-1"

    def test_missing_result_reported_as_failed(self):
        _create_period()
        with patch.object(settings, "CALENDAR_SYNC_URL", "http://calendar.test/sync"), \
                patch.object(dependencies._calendar_client, "push", return_value={}):
            data = client.post("/api/v1/calendar/sync", headers=ADMIN, json=self.BODY).json()
        assert data["results"][0]["status"] == "failed"

    def test_downstream_failure_is_503(self):
        _create_period()
        with patch.object(settings, "CALENDAR_SYNC_URL", "http://calendar.test/sync"), \
                patch.object(dependencies._calendar_client, "push",
                             side_effect=DownstreamUnavailable("Calendar sync timed out")):
            response = client.post("/api/v1/calendar/sync", headers=ADMIN, json=self.BODY)
        assert response.status_code == 503
        data = response.json()
        assert data["error"] == "downstream_unavailable"
        assert data["retryable"] is True


# ============================================
# History & stats
# ============================================
class TestHistoryAndStats:
    def test_history_filtered_by_rotation(self):
        events = client.get("/api/v1/history", params={"rotation_id": "backend"}).json()
        assert events
        assert {e["rotation_id"] for e in events} == {"backend"}

    def test_history_limit(self):
        assert len(client.get("/api/v1/history", params={"limit": 2}).json()) == 2

    def test_stats(self):
        _create_period(is_locked=True)
        client.post("/api/v1/incidents", json={"title": "A", "rotation_id": ROTATION})
        stats = client.get("/api/v1/stats").json()
        assert stats["total_rotations"] == 2
        assert stats["locked_periods"] == 1
        assert stats["total_users"] == 4
        assert stats["incidents_by_status"] == {"open": 1}
