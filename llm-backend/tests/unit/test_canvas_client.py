"""
Tests for canvas/client.py

Canvas is simulated with httpx.MockTransport; no network access.
"""

import asyncio
from datetime import datetime, timezone

import httpx
import pytest

from canvas.client import CanvasAuth, CanvasClient, resolve_canvas_auth
from shared.utils.exceptions import CanvasAPIError, ValidationFailureError

BASE = "https://school.instructure.com"


def _client(handler):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CanvasClient(CanvasAuth(base_url=BASE + "/", token="tok"), http_client=http_client)


def _run(coro):
    return asyncio.run(coro)


# ---------------------------------------------------------------------------
# Auth resolution
# ---------------------------------------------------------------------------

class TestResolveCanvasAuth:

    def test_headers_win_over_defaults(self):
        auth = resolve_canvas_auth("https://a.test/", "header-token", "https://b.test", "default-token")
        assert auth == CanvasAuth(base_url="https://a.test", token="header-token")

    def test_defaults_used_when_headers_missing(self):
        auth = resolve_canvas_auth(None, None, "https://b.test", "default-token")
        assert auth.token == "default-token"

    def test_missing_base_url(self):
        with pytest.raises(ValidationFailureError) as exc_info:
            resolve_canvas_auth(None, "tok")
        assert exc_info.value.field == "x-canvas-base-url"

    def test_missing_token(self):
        with pytest.raises(ValidationFailureError) as exc_info:
            resolve_canvas_auth("https://a.test", None)
        assert exc_info.value.field == "x-canvas-token"


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------

class TestPagination:

    def test_follows_next_links(self):
        seen = []

        def handler(request):
            seen.append(str(request.url))
            assert request.headers["Authorization"] == "Bearer tok"
            if request.url.params.get("page") == "2":
                return httpx.Response(200, json=[{"id": 2, "name": "Chemistry"}])
            return httpx.Response(
                200,
                json=[{"id": 1, "name": "Algebra II", "enrollments": [{"computed_current_score": 88.5}]}],
                headers={"Link": f'<{BASE}/api/v1/courses?page=2&per_page=100>; rel="next"'},
            )

        courses = _run(_client(handler).list_courses())

        assert [c.name for c in courses] == ["Algebra II", "Chemistry"]
        assert courses[0].current_score == 88.5
        assert courses[1].current_score is None
        assert len(seen) == 2
        assert "enrollment_state=active" in seen[0]
        assert "include=total_scores" in seen[0]

    def test_search_term_forwarded(self):
        def handler(request):
            assert request.url.params["search_term"] == "bio"
            return httpx.Response(200, json=[])

        assert _run(_client(handler).list_courses("bio")) == []

    def test_error_status_raises(self):
        def handler(request):
            return httpx.Response(401, text="Invalid access token")

        with pytest.raises(CanvasAPIError) as exc_info:
            _run(_client(handler).list_assignments(5))
        assert exc_info.value.status_code == 401
        assert "Invalid access token" in str(exc_info.value)

    def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(CanvasAPIError):
            _run(_client(handler).list_modules(5))


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

class TestEndpoints:

    def test_assignments_for_courses_fan_out(self):
        def handler(request):
            course_id = int(request.url.path.split("/")[4])
            return httpx.Response(200, json=[{"id": course_id * 10, "name": f"A{course_id}"}])

        result = _run(_client(handler).list_assignments_for_courses([1, 2, 3]))
        assert {cid: [a.id for a in items] for cid, items in result.items()} == {1: [10], 2: [20], 3: [30]}

    def test_fan_out_fails_as_unit(self):
        def handler(request):
            if "/courses/2/" in request.url.path:
                return httpx.Response(500, text="oops")
            return httpx.Response(200, json=[])

        with pytest.raises(CanvasAPIError):
            _run(_client(handler).list_assignments_for_courses([1, 2, 3]))

    def test_announcements_query(self):
        def handler(request):
            params = request.url.params
            assert params["context_codes[]"] == "course_9"
            assert params["per_page"] == "50"
            assert params["start_date"].startswith("2026-10-19")
            return httpx.Response(200, json=[{"id": 1, "title": "Quiz Friday", "message": "<p>review</p>"}])

        start = datetime(2026, 10, 19, tzinfo=timezone.utc)
        end = datetime(2026, 10, 29, 23, 59, tzinfo=timezone.utc)
        [announcement] = _run(_client(handler).list_announcements(9, start, end))
        assert announcement.title == "Quiz Friday"

    def test_get_quiz(self):
        def handler(request):
            assert request.url.path == "/api/v1/courses/3/quizzes/44"
            return httpx.Response(200, json={"id": 44, "title": "Unit 2", "time_limit": 25, "extra": "ignored"})

        quiz = _run(_client(handler).get_quiz(3, 44))
        assert quiz.time_limit == 25
        assert quiz.allowed_attempts is None

    def test_unreadable_records_skipped(self):
        def handler(request):
            return httpx.Response(200, json=[
                {"id": 1, "name": "Algebra II"},
                {"id": 2, "access_restricted_by_date": True},
            ])

        courses = _run(_client(handler).list_courses())
        assert [c.name for c in courses] == ["Algebra II"]

    def test_unreadable_object_is_canvas_error(self):
        def handler(request):
            return httpx.Response(200, json={"id": 44, "access_restricted_by_date": True})

        with pytest.raises(CanvasAPIError) as exc_info:
            _run(_client(handler).get_quiz(3, 44))
        assert "QuizSnapshot" in str(exc_info.value)
