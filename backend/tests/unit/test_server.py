"""
Tests for server.py - HTTP surface of the degree planner
"""

import base64
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi import HTTPException
from fastapi.testclient import TestClient

import server
from api.client import ParseResult
from core.auth import AuthenticatedUser, get_current_user
from core.models import TranscriptAttempt
from services.firebase import StoreResult
from services.planner import PlannerService, StoreFailureError


FALL_2023 = "2023-2024 Güz Dönemi"
FALL_2024 = "2024-2025 Güz Dönemi"
SPRING_2025 = "2024-2025 Bahar Dönemi"

USER = AuthenticatedUser(uid="u1", email="student@itu.edu.tr", email_verified=True)


@pytest.fixture
def planner(mock_transcript_store, mock_plan_store, catalogs, sample_transcript, sample_plan):
    mock_transcript_store.get.return_value = (sample_transcript, True)
    mock_plan_store.get.return_value = (sample_plan, True)
    planner = PlannerService("u1", mock_transcript_store, mock_plan_store, catalogs=catalogs)
    planner.load()
    return planner


@pytest.fixture
def client(planner):
    server.app.dependency_overrides[server.get_planner] = lambda: planner
    server.app.dependency_overrides[get_current_user] = lambda: USER
    yield TestClient(server.app)
    server.app.dependency_overrides.clear()
    server._planners.clear()


class TestPublicEndpoints:

    @patch('server.is_cache_available')
    def test_health_check(self, mock_cache_available, client):
        mock_cache_available.return_value = False
        response = client.get("/")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "redis": "unavailable"}

    @patch('server.get_catalogs')
    def test_plan_templates(self, mock_get_catalogs, client, catalogs):
        mock_get_catalogs.return_value = catalogs
        response = client.get("/api/catalog/plans")
        assert response.status_code == 200
        assert response.json()["faculties"][0]["programs"][0]["name"] == "Bilgisayar Mühendisliği"

    def test_user_endpoints_require_token(self):
        response = TestClient(server.app).get("/api/state")
        assert response.status_code in (401, 403)


class TestStateEndpoints:

    def test_state(self, client):
        response = client.get("/api/state")
        assert response.status_code == 200
        body = response.json()
        assert body["selected_semester"] == FALL_2024
        assert len(body["attempts"]) == 6

    def test_overview(self, client):
        response = client.get("/api/overview")
        assert response.status_code == 200
        statuses = [view["status"] for view in response.json()["semesters"][1]]
        assert statuses == ["conditional", "in_progress"]

    def test_overview_for_semester(self, client):
        response = client.get("/api/overview", params={"semester": FALL_2023})
        assert response.json()["selected_semester"] == FALL_2023


class TestPlanEndpoints:

    def test_select_plan(self, client, mock_plan_store):
        response = client.post("/api/plan", json={
            "faculty": "Bilgisayar ve Bilişim Fakültesi",
            "program": "Bilgisayar Mühendisliği",
            "period": "2021-2022 ve Sonrası"
        })
        assert response.status_code == 200
        assert len(response.json()["plan"]) == 2
        mock_plan_store.put.assert_called_once()

    def test_unknown_plan(self, client):
        response = client.post("/api/plan", json={"faculty": "x", "program": "y", "period": "z"})
        assert response.status_code == 404

    def test_reset_plan(self, client):
        response = client.delete("/api/plan")
        assert response.status_code == 200
        assert response.json()["needs_plan_selection"] is True


class TestTranscriptEndpoints:

    @patch('server.TranscriptParserClient')
    def test_upload(self, mock_client_cls, client):
        parser = MagicMock()
        rows = [TranscriptAttempt(SPRING_2025, "BLG 223E", "Algorithms", "3", "AA")]
        parser.parse = AsyncMock(return_value=ParseResult(courses=rows))
        mock_client_cls.return_value.__aenter__.return_value = parser

        response = client.post("/api/transcript/upload", json={
            "pdf_base64": base64.b64encode(b"%PDF-1.4").decode("ascii")
        })

        assert response.status_code == 200
        assert response.json()["parsed"] == 1
        parser.parse.assert_awaited_once_with(b"%PDF-1.4")

    @patch('server.TranscriptParserClient')
    def test_upload_parse_error(self, mock_client_cls, client):
        parser = MagicMock()
        parser.parse = AsyncMock(return_value=ParseResult(error="Not a transcript"))
        mock_client_cls.return_value.__aenter__.return_value = parser

        response = client.post("/api/transcript/upload", json={"pdf_base64": base64.b64encode(b"x").decode()})

        assert response.status_code == 422
        assert response.json()["detail"] == "Not a transcript"

    def test_upload_bad_base64(self, client):
        response = client.post("/api/transcript/upload", json={"pdf_base64": "not base64!"})
        assert response.status_code == 400

    def test_reset_transcript(self, client, mock_transcript_store):
        response = client.delete("/api/transcript")
        assert response.status_code == 200
        assert response.json()["attempts"] == []

    def test_add_attempt(self, client):
        response = client.post("/api/transcript/attempts", json={"semester": FALL_2024, "code": "BLG 223E"})
        assert response.status_code == 200
        assert response.json()["dirty"] is True

    def test_add_duplicate_attempt(self, client):
        response = client.post("/api/transcript/attempts", json={"semester": FALL_2024, "code": "BLG 210E"})
        assert response.status_code == 409

    def test_delete_planned_attempt(self, client):
        response = client.request("DELETE", "/api/transcript/attempts",
                                  json={"semester": FALL_2024, "code": "BLG 210E"})
        assert response.status_code == 200

    def test_delete_finalized_attempt(self, client):
        response = client.request("DELETE", "/api/transcript/attempts",
                                  json={"semester": FALL_2023, "code": "BLG 101E"})
        assert response.status_code == 409

    def test_delete_missing_attempt(self, client):
        response = client.request("DELETE", "/api/transcript/attempts",
                                  json={"semester": FALL_2024, "code": "XYZ 999"})
        assert response.status_code == 404

    def test_set_grade(self, client):
        response = client.patch("/api/transcript/attempts/grade",
                                json={"semester": FALL_2024, "code": "BLG 210E", "grade": "BB"})
        assert response.status_code == 200

    def test_set_invalid_grade(self, client):
        response = client.patch("/api/transcript/attempts/grade",
                                json={"semester": FALL_2024, "code": "BLG 210E", "grade": "Z"})
        assert response.status_code == 400

    def test_set_session_from_lesson(self, client, planner):
        response = client.patch("/api/transcript/attempts/session",
                                json={"semester": FALL_2024, "code": "BLG 210E", "lesson_id": "21450"})
        assert response.status_code == 200
        assert planner.state.find(FALL_2024, "BLG 210E").session_id == "21450"

    def test_set_session_wrong_lesson(self, client):
        response = client.patch("/api/transcript/attempts/session",
                                json={"semester": FALL_2024, "code": "BLG 210E", "lesson_id": "20115"})
        assert response.status_code == 404

    def test_clear_session(self, client, planner):
        client.patch("/api/transcript/attempts/session",
                     json={"semester": FALL_2024, "code": "BLG 210E", "session_id": "abc"})
        response = client.patch("/api/transcript/attempts/session",
                                json={"semester": FALL_2024, "code": "BLG 210E"})
        assert response.status_code == 200
        assert planner.state.find(FALL_2024, "BLG 210E").session_id is None


class TestSemesterEndpoints:

    def test_add_and_delete_semester(self, client):
        response = client.post("/api/semesters")
        assert response.json()["semesters"][0]["label"] == SPRING_2025

        response = client.request("DELETE", "/api/semesters", json={"semester": SPRING_2025})
        assert response.status_code == 200
        assert all(s["label"] != SPRING_2025 for s in response.json()["semesters"])

    def test_delete_graded_semester(self, client):
        response = client.request("DELETE", "/api/semesters", json={"semester": FALL_2023})
        assert response.status_code == 409

    def test_select_semester(self, client, planner):
        response = client.patch("/api/semesters/selected", json={"semester": FALL_2023})
        assert response.status_code == 200
        assert response.json()["selected_semester"] == FALL_2023
        assert planner.state.selected_semester == FALL_2023

        overview = client.get("/api/overview").json()
        assert overview["selected_semester"] == FALL_2023


class TestSave:

    def test_save(self, client):
        client.patch("/api/transcript/attempts/grade",
                     json={"semester": FALL_2024, "code": "BLG 210E", "grade": "BB"})
        response = client.post("/api/save")
        assert response.status_code == 200
        assert response.json()["dirty"] is False

    def test_save_failure(self, client, mock_transcript_store):
        mock_transcript_store.put.return_value = StoreResult(ok=False, message="unavailable")
        response = client.post("/api/save")
        assert response.status_code == 502


class TestLessons:

    @patch('server.get_catalogs')
    def test_list_lessons(self, mock_get_catalogs, client, catalogs):
        mock_get_catalogs.return_value = catalogs
        response = client.get("/api/lessons/BLG%20210E")
        assert response.status_code == 200
        body = response.json()
        assert body["course_code"] == "BLG 210E"
        assert body["total"] == 1
        assert body["lessons"][0]["lesson_id"] == "21450"


class TestGetPlanner:

    def teardown_method(self):
        server._planners.clear()

    @patch('server.get_plan_store')
    @patch('server.get_transcript_store')
    @patch('server.PlannerService')
    def test_one_planner_per_user(self, mock_planner_cls, mock_get_transcript_store, mock_get_plan_store):
        first = server.get_planner(USER)
        second = server.get_planner(USER)

        assert first is second
        mock_planner_cls.return_value.load.assert_called_once()

    @patch('server.get_plan_store')
    @patch('server.get_transcript_store')
    @patch('server.PlannerService')
    def test_load_failure(self, mock_planner_cls, mock_get_transcript_store, mock_get_plan_store):
        mock_planner_cls.return_value.load.side_effect = StoreFailureError("Could not load plan")

        with pytest.raises(HTTPException) as exc_info:
            server.get_planner(USER)

        assert exc_info.value.status_code == 502
        assert "u1" not in server._planners
